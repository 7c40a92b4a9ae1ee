"""Per-frame capture, inference and overlay loop."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generator, Optional

import cv2
import numpy as np

from pose_overlay.analysis.angles import JointAngles, compute_joint_angles
from pose_overlay.config import OverlayConfig
from pose_overlay.pose import PoseBackend, PoseResult, create_backend
from pose_overlay.render.overlay import get_style, render_pose
from pose_overlay.utils.logging_config import LoggerMixin
from pose_overlay.utils.video_utils import VideoProcessor, VideoSource, VideoWriter

# q or Esc
QUIT_KEYS = (ord("q"), 27)


@dataclass
class FrameOutput:
    """
    Everything produced for one frame.

    Attributes:
        frame_number: Frame index in the source.
        timestamp_ms: Timestamp in milliseconds.
        pose: Model output for the frame.
        angles: Joint angles measured on the frame.
        image: Rendered overlay.
        inference_ms: Time spent in the model call.
    """
    frame_number: int
    timestamp_ms: float
    pose: PoseResult
    angles: JointAngles
    image: np.ndarray
    inference_ms: float


@dataclass
class LoopStats:
    """Counters for one run of the loop."""
    frames_processed: int = 0
    frames_dropped: int = 0
    frames_with_pose: int = 0
    total_inference_ms: float = 0.0
    stop_reason: str = ""

    @property
    def mean_inference_ms(self) -> float:
        if self.frames_processed == 0:
            return 0.0
        return self.total_inference_ms / self.frames_processed


class OverlayLoop(LoggerMixin):
    """
    Reads frames, runs the pose model and draws the result, one frame at a time.

    Each iteration waits for its inference call before drawing and moving on,
    so at most one frame is in flight. When the source is live and a model
    call outlasts the frame interval, the frames that arrived meanwhile are
    discarded rather than queued.

    The loop ends at the end of the stream, after ``max_frames`` frames, when
    the quit key is pressed in the display window, or when ``stop()`` is
    called from another thread. The backend, source and writer are released
    on exit.
    """

    def __init__(
        self,
        backend: PoseBackend,
        source: VideoProcessor,
        config: Optional[OverlayConfig] = None,
        writer: Optional[VideoWriter] = None,
        on_frame: Optional[Callable[[FrameOutput], None]] = None,
    ):
        """
        Args:
            backend: Pose estimation backend.
            source: Video source to read from.
            config: Loop settings. Uses defaults if not provided.
            writer: Optional sink for rendered frames; closed by the loop.
            on_frame: Optional callback invoked with every FrameOutput.
        """
        self.backend = backend
        self.source = source
        self.config = config or OverlayConfig()
        self.writer = writer
        self.on_frame = on_frame
        self.style = get_style(self.config.style)
        self.stats = LoopStats()
        self.last_output: Optional[FrameOutput] = None
        self._stop_event = threading.Event()
        self._stop_reason = ""

    def stop(self, reason: str = "stopped") -> None:
        """Ask the loop to finish after the current frame."""
        self._stop_reason = reason
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def process(self, frame: np.ndarray, frame_number: int, timestamp_ms: float) -> FrameOutput:
        """Run inference on one frame and render its overlay."""
        started = time.perf_counter()
        pose = self.backend.process_frame(frame, frame_number, timestamp_ms)
        inference_ms = (time.perf_counter() - started) * 1000.0

        threshold = self.config.score_threshold
        angles = compute_joint_angles(pose, threshold)
        image = render_pose(
            frame,
            pose,
            style=self.style,
            threshold=threshold,
            angles=angles,
            canvas_only=self.config.canvas_only,
        )

        return FrameOutput(
            frame_number=frame_number,
            timestamp_ms=timestamp_ms,
            pose=pose,
            angles=angles,
            image=image,
            inference_ms=inference_ms,
        )

    def _drop_late_frames(self, inference_ms: float) -> None:
        if not (self.config.drop_late_frames and self.source.is_live):
            return
        frame_interval_ms = 1000.0 / self.source.fps
        late = int(inference_ms // frame_interval_ms)
        if late > 0:
            dropped = self.source.skip(late)
            self.stats.frames_dropped += dropped
            self.logger.debug(f"Dropped {dropped} frames after {inference_ms:.1f} ms inference")

    def iter_frames(self) -> Generator[FrameOutput, None, None]:
        """
        Yield a FrameOutput for every processed frame.

        Resources are released when the generator is exhausted or closed.
        """
        max_frames = self.config.max_frames
        try:
            self.backend.initialize()
            self.source.open()
            self.logger.info(f"Overlay loop started on {self.source.source} with {self.backend.name}")

            while True:
                if self._stop_event.is_set():
                    self.stats.stop_reason = self._stop_reason
                    break
                if max_frames is not None and self.stats.frames_processed >= max_frames:
                    self.stats.stop_reason = "max_frames"
                    break

                item = self.source.read_frame()
                if item is None:
                    self.stats.stop_reason = "end_of_stream"
                    break

                frame_number, timestamp_ms, frame = item
                output = self.process(frame, frame_number, timestamp_ms)

                self.stats.frames_processed += 1
                self.stats.total_inference_ms += output.inference_ms
                if output.pose.is_valid:
                    self.stats.frames_with_pose += 1

                if self.writer is not None:
                    self.writer.write(output.image)

                self.last_output = output
                yield output

                self._drop_late_frames(output.inference_ms)
        finally:
            self.source.close()
            self.backend.cleanup()
            if self.writer is not None:
                self.writer.close()
            self.logger.info(
                f"Overlay loop finished ({self.stats.stop_reason or 'closed'}): "
                f"{self.stats.frames_processed} frames, {self.stats.frames_dropped} dropped"
            )

    def run(self) -> LoopStats:
        """
        Run until a stop condition is met.

        Returns:
            Statistics for the run.
        """
        window_open = False
        try:
            for output in self.iter_frames():
                if self.on_frame is not None:
                    self.on_frame(output)

                if self.config.display:
                    cv2.imshow(self.config.window_name, output.image)
                    window_open = True
                    key = cv2.waitKey(1) & 0xFF
                    if key in QUIT_KEYS:
                        self.stop("quit_key")
        finally:
            if window_open:
                cv2.destroyWindow(self.config.window_name)

        return self.stats


def create_overlay_loop(
    source: VideoSource,
    config: Optional[OverlayConfig] = None,
    on_frame: Optional[Callable[[FrameOutput], None]] = None,
) -> OverlayLoop:
    """
    Wire a backend, source and optional writer from a config.

    Args:
        source: Video file path or camera index.
        config: Overlay settings. Uses defaults if not provided.
        on_frame: Optional per-frame callback.
    """
    config = config or OverlayConfig()
    backend = create_backend(config.backend, **config.backend_options())
    video = VideoProcessor(source, resize=config.resize)

    writer = None
    if config.output_path:
        writer = VideoWriter(config.output_path, fps=video.fps)

    return OverlayLoop(backend, video, config=config, writer=writer, on_frame=on_frame)
