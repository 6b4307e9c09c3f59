"""Video surfaces the frame source can read from.

Acquisition (permission prompts, picking a window or device) is handled by
whoever constructs the surface; the analysis core only reads frames.
"""

from pathlib import Path

import cv2
import numpy as np
from loguru import logger

from bosscycle.exceptions import VideoSourceError

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp")


class VideoCaptureSurface:
    """OpenCV backed surface for video files, streams and capture devices."""

    def __init__(self, source: str | int):
        """Open a video source.

        Args:
            source: File path, stream URL or capture device index

        Raises:
            VideoSourceError: If OpenCV cannot open the source
        """
        logger.debug(f"Opening video source {source!r}")
        self._source = source
        self._capture = cv2.VideoCapture(source)
        if not self._capture.isOpened():
            raise VideoSourceError(f"Could not open video source {source!r}")
        self._ended = False

    @property
    def width(self) -> int:
        return int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))

    @property
    def height(self) -> int:
        return int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))

    @property
    def ended(self) -> bool:
        return self._ended

    def is_ready(self) -> bool:
        return not self._ended and self._capture.isOpened()

    def read(self) -> np.ndarray | None:
        ok, frame = self._capture.read()
        if not ok:
            # Device streams can drop single frames; files end for good.
            if not isinstance(self._source, int):
                logger.info(f"Video source {self._source!r} ended")
                self._ended = True
            return None
        return frame

    def release(self) -> None:
        self._capture.release()
        self._ended = True


class ImageDirectorySurface:
    """Replays screenshots from a directory in filename order."""

    def __init__(self, directory: Path):
        directory = Path(directory)
        if not directory.is_dir():
            raise VideoSourceError(f"Frame directory {directory} does not exist")

        self._paths = sorted(
            p for p in directory.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES
        )
        if not self._paths:
            raise VideoSourceError(f"No images found in {directory}")

        first = cv2.imread(str(self._paths[0]))
        if first is None:
            raise VideoSourceError(f"Could not decode {self._paths[0]}")

        self._index = 0
        self._shape = first.shape
        logger.debug(f"Replaying {len(self._paths)} frames from {directory}")

    @property
    def width(self) -> int:
        return int(self._shape[1])

    @property
    def height(self) -> int:
        return int(self._shape[0])

    @property
    def ended(self) -> bool:
        return self._index >= len(self._paths)

    def is_ready(self) -> bool:
        return not self.ended

    def read(self) -> np.ndarray | None:
        if self.ended:
            return None
        path = self._paths[self._index]
        self._index += 1
        frame = cv2.imread(str(path))
        if frame is None:
            logger.warning(f"Could not decode frame {path}")
        return frame

    def release(self) -> None:
        self._index = len(self._paths)


class ArraySurface:
    """In-memory sequence of frames.

    With loop=False the surface ends after the last frame; with loop=True the
    last frame is repeated forever (a paused stream).
    """

    def __init__(self, frames: list[np.ndarray], loop: bool = False):
        self._frames = list(frames)
        self._loop = loop
        self._index = 0
        self._released = False

    @property
    def width(self) -> int:
        return int(self._frames[0].shape[1]) if self._frames else 0

    @property
    def height(self) -> int:
        return int(self._frames[0].shape[0]) if self._frames else 0

    @property
    def ended(self) -> bool:
        if self._released:
            return True
        return bool(self._frames) and not self._loop and self._index >= len(self._frames)

    def is_ready(self) -> bool:
        return bool(self._frames) and not self.ended

    def push(self, frame: np.ndarray) -> None:
        self._frames.append(frame)

    def read(self) -> np.ndarray | None:
        if not self._frames or self.ended:
            return None
        index = min(self._index, len(self._frames) - 1)
        self._index += 1
        return self._frames[index]

    def release(self) -> None:
        self._frames = []
        self._released = True
