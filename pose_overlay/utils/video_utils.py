"""Video sources and sinks built on OpenCV."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, Optional, Tuple, Union

import cv2
import numpy as np
from tqdm import tqdm

logger = logging.getLogger(__name__)

VideoSource = Union[str, int]

DEFAULT_FPS = 30.0


def parse_source(source: Union[str, int, Path]) -> VideoSource:
    """Camera indices may arrive as strings from the command line."""
    if isinstance(source, int):
        return source
    text = str(source)
    return int(text) if text.isdigit() else text


@dataclass
class VideoInfo:
    """
    Information about a video source.

    Attributes:
        path: Path of the video file or the camera index as text.
        width: Frame width in pixels.
        height: Frame height in pixels.
        fps: Frames per second.
        total_frames: Total number of frames (0 for live sources).
        duration_seconds: Duration in seconds.
        codec: Video codec fourcc code.
    """
    path: str
    width: int
    height: int
    fps: float
    total_frames: int
    duration_seconds: float
    codec: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "path": self.path,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
            "total_frames": self.total_frames,
            "duration_seconds": self.duration_seconds,
            "codec": self.codec,
        }


def _read_info(cap: "cv2.VideoCapture", source: VideoSource) -> VideoInfo:
    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
    fps = cap.get(cv2.CAP_PROP_FPS)
    total_frames = max(0, int(cap.get(cv2.CAP_PROP_FRAME_COUNT)))
    duration = total_frames / fps if fps > 0 else 0
    codec_int = int(cap.get(cv2.CAP_PROP_FOURCC))
    codec = "".join([chr((codec_int >> 8 * i) & 0xFF) for i in range(4)])

    return VideoInfo(
        path=str(source),
        width=width,
        height=height,
        fps=fps,
        total_frames=total_frames,
        duration_seconds=duration,
        codec=codec,
    )


def get_video_info(source: VideoSource) -> Optional[VideoInfo]:
    """
    Get information about a video file or camera.

    Args:
        source: Path to the video file or camera index.

    Returns:
        VideoInfo object or None if the source cannot be opened.
    """
    cap = cv2.VideoCapture(source)

    if not cap.isOpened():
        logger.error(f"Could not open video: {source}")
        return None

    try:
        return _read_info(cap, source)
    finally:
        cap.release()


class VideoProcessor:
    """
    Frame-by-frame reader for video files and cameras.

    Provides an iterator interface with optional resizing, and can skip
    frames cheaply when the consumer falls behind a live source.
    """

    def __init__(
        self,
        source: VideoSource,
        resize: Optional[Tuple[int, int]] = None,
    ):
        """
        Initialize the video processor.

        Args:
            source: Path to the video file or camera index.
            resize: Optional (width, height) to resize frames.
        """
        self.source = parse_source(source)
        self.resize = resize

        self._cap = None
        self._info = None
        self._frame_number = 0

    @property
    def is_live(self) -> bool:
        """Cameras deliver frames in real time and cannot seek."""
        return isinstance(self.source, int)

    @property
    def info(self) -> Optional[VideoInfo]:
        """Get video information."""
        if self._info is None:
            if self._cap is not None:
                self._info = _read_info(self._cap, self.source)
            else:
                self._info = get_video_info(self.source)
        return self._info

    @property
    def fps(self) -> float:
        info = self.info
        if info is None or info.fps <= 0:
            return DEFAULT_FPS
        return info.fps

    def open(self) -> None:
        """Open the video source."""
        if self._cap is not None:
            return

        self._cap = cv2.VideoCapture(self.source)
        if not self._cap.isOpened():
            self._cap = None
            raise ValueError(f"Could not open video: {self.source}")

        self._frame_number = 0

        logger.debug(f"Opened video: {self.source}")

    def close(self) -> None:
        """Release the video source."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug(f"Closed video: {self.source}")

    def read_frame(self) -> Optional[Tuple[int, float, np.ndarray]]:
        """
        Read the next frame.

        Returns:
            Tuple of (frame_number, timestamp_ms, frame) or None if no more frames.
        """
        if self._cap is None:
            self.open()

        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None

        frame_num = self._frame_number
        self._frame_number += 1
        timestamp_ms = self._timestamp_ms(frame_num)

        if self.resize is not None:
            frame = cv2.resize(frame, self.resize)

        return frame_num, timestamp_ms, frame

    def _timestamp_ms(self, frame_num: int) -> float:
        if not self.is_live:
            pos_ms = self._cap.get(cv2.CAP_PROP_POS_MSEC)
            if pos_ms and pos_ms > 0:
                return float(pos_ms)
        return (frame_num / self.fps) * 1000.0

    def skip(self, count: int) -> int:
        """
        Discard up to count frames without decoding them.

        Returns:
            Number of frames actually skipped.
        """
        if self._cap is None:
            self.open()

        skipped = 0
        for _ in range(max(0, count)):
            if not self._cap.grab():
                break
            self._frame_number += 1
            skipped += 1
        return skipped

    def iterate_frames(
        self,
        show_progress: bool = True,
    ) -> Generator[Tuple[int, float, np.ndarray], None, None]:
        """
        Iterate over all frames in the source.

        Args:
            show_progress: Whether to show progress bar.

        Yields:
            Tuple of (frame_number, timestamp_ms, frame).
        """
        self.open()

        total = None
        if not self.is_live and self.info and self.info.total_frames:
            total = self.info.total_frames

        pbar = tqdm(total=total, desc="Processing video") if show_progress else None

        try:
            while True:
                result = self.read_frame()
                if result is None:
                    break

                yield result

                if pbar:
                    pbar.update(1)
        finally:
            if pbar:
                pbar.close()
            self.close()

    def __enter__(self):
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False

    def __iter__(self):
        """Iterate over frames."""
        return self.iterate_frames(show_progress=False)


class VideoWriter:
    """
    Lazily opened video sink.

    The output size is taken from the first frame written.
    """

    def __init__(
        self,
        output_path: str,
        fps: float = DEFAULT_FPS,
        codec: str = "mp4v",
    ):
        """
        Args:
            output_path: Path for output video file.
            fps: Frames per second.
            codec: Video codec fourcc code.
        """
        self.output_path = Path(output_path)
        self.fps = fps if fps and fps > 0 else DEFAULT_FPS
        self.codec = codec
        self.frames_written = 0
        self._writer = None
        self._size: Optional[Tuple[int, int]] = None

    def write(self, frame: np.ndarray) -> None:
        """Append a BGR frame, resizing it to the output size if needed."""
        if self._writer is None:
            height, width = frame.shape[:2]
            self._size = (width, height)
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            fourcc = cv2.VideoWriter_fourcc(*self.codec)
            self._writer = cv2.VideoWriter(str(self.output_path), fourcc, self.fps, self._size)
            if not self._writer.isOpened():
                self._writer = None
                raise ValueError(f"Could not open video writer: {self.output_path}")

        if (frame.shape[1], frame.shape[0]) != self._size:
            frame = cv2.resize(frame, self._size)
        self._writer.write(frame)
        self.frames_written += 1

    def close(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None
            logger.info(f"Created video: {self.output_path} ({self.frames_written} frames)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
