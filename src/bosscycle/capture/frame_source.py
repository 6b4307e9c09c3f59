"""Frame capture and ROI extraction from a video surface."""

import time

import numpy as np
from loguru import logger

from bosscycle.exceptions import VideoSourceEndedError
from bosscycle.models import FrameInfo
from bosscycle.protocols import VideoSurfaceProtocol
from bosscycle.regions import Region, RegionUnit


def _now_ms() -> int:
    return int(time.time() * 1000)


class FrameSource:
    """Holds the most recent frame of a surface and crops regions from it.

    Responsibilities:
    - Draw the current surface frame into an internal buffer
    - Crop percentage or pixel regions, clamped to the buffer extent

    Crops are copies, so they stay valid after the next capture_frame().
    """

    def __init__(self, surface: VideoSurfaceProtocol, clock=_now_ms):
        """Initialize FrameSource with a video surface.

        Args:
            surface: Readable video surface
            clock: Callable returning the current time in milliseconds
        """
        logger.debug("Initializing")
        self._surface = surface
        self._clock = clock
        self._buffer: np.ndarray | None = None

    @property
    def surface(self) -> VideoSurfaceProtocol:
        return self._surface

    @property
    def resolution(self) -> tuple[int, int]:
        """(width, height) of the buffered frame, (0, 0) before the first frame."""
        if self._buffer is None:
            return (0, 0)
        return (int(self._buffer.shape[1]), int(self._buffer.shape[0]))

    def capture_frame(self) -> FrameInfo | None:
        """Draw the current frame of the surface into the buffer.

        Returns:
            FrameInfo of the captured frame, or None if the surface has no
            readable frame yet. Callers skip vision work for this tick and
            keep their previous state.

        Raises:
            VideoSourceEndedError: If the surface has permanently ended
        """
        if self._surface.ended:
            raise VideoSourceEndedError("Video source has ended")

        if not self._surface.is_ready():
            return None

        if self._surface.width == 0 or self._surface.height == 0:
            return None

        frame = self._surface.read()
        if frame is None:
            if self._surface.ended:
                raise VideoSourceEndedError("Video source has ended")
            return None

        if frame.ndim == 2:
            frame = np.stack([frame] * 3, axis=-1)
        self._buffer = np.array(frame[..., :3], dtype=np.uint8, copy=True)

        height, width = self._buffer.shape[:2]
        return FrameInfo(width=width, height=height, timestamp_ms=self._clock())

    def crop(self, region: Region) -> np.ndarray | None:
        if region.unit == RegionUnit.PERCENT:
            return self.crop_percent(region)
        return self.crop_pixels(region)

    def crop_percent(self, region: Region) -> np.ndarray | None:
        """Crop a region given in percent (0-100) of the frame."""
        if self._buffer is None:
            return None

        frame_width, frame_height = self.resolution
        return self._crop(
            int(np.floor(region.x / 100 * frame_width)),
            int(np.floor(region.y / 100 * frame_height)),
            int(np.floor(region.width / 100 * frame_width)),
            int(np.floor(region.height / 100 * frame_height)),
        )

    def crop_pixels(self, region: Region) -> np.ndarray | None:
        """Crop a region given in absolute pixels."""
        if self._buffer is None:
            return None

        return self._crop(
            int(region.x), int(region.y), int(region.width), int(region.height)
        )

    def full_frame(self) -> np.ndarray | None:
        return None if self._buffer is None else self._buffer.copy()

    def _crop(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        # Out of range rectangles shrink silently; recalibration is imprecise.
        frame_width, frame_height = self.resolution
        safe_x = max(0, min(x, frame_width - 1))
        safe_y = max(0, min(y, frame_height - 1))
        safe_width = max(1, min(width, frame_width - safe_x))
        safe_height = max(1, min(height, frame_height - safe_y))

        if (safe_x, safe_y, safe_width, safe_height) != (x, y, width, height):
            logger.debug(
                f"Clamped region ({x}, {y}, {width}, {height}) to "
                f"({safe_x}, {safe_y}, {safe_width}, {safe_height})"
            )

        return self._buffer[
            safe_y : safe_y + safe_height, safe_x : safe_x + safe_width
        ].copy()
