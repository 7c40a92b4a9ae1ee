"""Download and cache pretrained pose model files."""

import logging
import time
from pathlib import Path
from typing import Optional

import requests
from tqdm import tqdm

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "pose_overlay"

MEDIAPIPE_MODEL_URLS = {
    0: "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/1/pose_landmarker_lite.task",
    1: "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_full/float16/1/pose_landmarker_full.task",
    2: "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_heavy/float16/1/pose_landmarker_heavy.task",
}


class ModelCache:
    """
    Local store for model files fetched from a remote registry.

    Files are streamed to a ``.part`` file and renamed once complete, so an
    interrupted download is never mistaken for a cached model.
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        chunk_size: int = 8192,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: int = 30,
    ):
        """
        Initialize the model cache.

        Args:
            cache_dir: Directory to store model files.
            chunk_size: Chunk size for streaming downloads.
            max_retries: Maximum retry attempts for failed downloads.
            retry_delay: Base delay between retries in seconds.
            timeout: Request timeout in seconds.
        """
        self.cache_dir = Path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR
        self.chunk_size = chunk_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.session = requests.Session()

    def path_for(self, url: str) -> Path:
        """Local path a URL is cached under."""
        return self.cache_dir / url.rstrip("/").rsplit("/", 1)[-1]

    def is_cached(self, url: str) -> bool:
        path = self.path_for(url)
        return path.exists() and path.stat().st_size > 0

    def fetch(self, url: str, force: bool = False, show_progress: bool = True) -> Path:
        """
        Return the local path of a model file, downloading it if needed.

        Args:
            url: Remote URL of the model file.
            force: If True, re-download even if the file is cached.
            show_progress: Whether to show a download progress bar.

        Returns:
            Path to the cached file.

        Raises:
            requests.RequestException: If the download fails after all retries.
        """
        model_path = self.path_for(url)
        if self.is_cached(url) and not force:
            logger.debug(f"Model already cached: {model_path}")
            return model_path

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        temp_path = model_path.with_name(model_path.name + ".part")

        try:
            for attempt in range(self.max_retries):
                try:
                    logger.info(f"Downloading model from {url}...")
                    self._download(url, temp_path, show_progress)
                    temp_path.replace(model_path)
                    logger.info(f"Model downloaded to {model_path}")
                    return model_path

                except requests.RequestException as e:
                    logger.warning(
                        f"Model download failed (attempt {attempt + 1}/{self.max_retries}): {e}"
                    )
                    if attempt < self.max_retries - 1:
                        time.sleep(self.retry_delay * (attempt + 1))
                    else:
                        logger.error(f"Failed to download model: {url}")
                        raise
        finally:
            # a partial file is never left behind
            temp_path.unlink(missing_ok=True)

        raise RuntimeError(f"Could not download model: {url}")

    def _download(self, url: str, temp_path: Path, show_progress: bool) -> None:
        response = self.session.get(url, stream=True, timeout=self.timeout)
        response.raise_for_status()

        content_length = response.headers.get("Content-Length")
        total_size = int(content_length) if content_length else None

        pbar = None
        if show_progress and total_size:
            pbar = tqdm(
                total=total_size,
                unit="B",
                unit_scale=True,
                desc=f"Downloading {temp_path.stem}",
            )

        try:
            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)
                        if pbar:
                            pbar.update(len(chunk))
        finally:
            if pbar:
                pbar.close()

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def get_mediapipe_model_path(
    model_complexity: int = 1,
    cache_dir: Optional[str] = None,
) -> str:
    """
    Download and return path to a MediaPipe pose landmarker model.

    Args:
        model_complexity: 0=lite, 1=full, 2=heavy. Unknown values fall back to full.
        cache_dir: Optional cache directory override.
    """
    url = MEDIAPIPE_MODEL_URLS.get(model_complexity, MEDIAPIPE_MODEL_URLS[1])
    with ModelCache(cache_dir) as cache:
        return str(cache.fetch(url))
