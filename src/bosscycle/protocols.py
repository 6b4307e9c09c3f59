"""Protocol definitions for dependency injection.

This module defines protocol interfaces for the external capabilities the
analysis core depends on. Protocols enable type-safe dependency injection
while decoupling the pipeline from concrete video and OCR implementations.

All protocols are marked @runtime_checkable to support isinstance() validation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from bosscycle.models import OcrLine
    from bosscycle.regions import RegionConfig


@runtime_checkable
class VideoSurfaceProtocol(Protocol):
    """Protocol for a decodable video surface (file, stream or capture device)."""

    @property
    def width(self) -> int:
        """Native frame width in pixels, 0 while not yet known."""
        ...

    @property
    def height(self) -> int:
        """Native frame height in pixels, 0 while not yet known."""
        ...

    @property
    def ended(self) -> bool:
        """True once the surface will never produce another frame."""
        ...

    def is_ready(self) -> bool:
        """Check whether a frame can be read now.

        Returns:
            True if the next read() is expected to return a frame
        """
        ...

    def read(self) -> np.ndarray | None:
        """Read the current frame.

        Returns:
            BGR image as numpy array, or None if no frame is available yet
        """
        ...

    def release(self) -> None:
        """Release the underlying video resource."""
        ...


@runtime_checkable
class OcrEngineProtocol(Protocol):
    """Protocol for combat log text recognition."""

    def init(self) -> None:
        """Initialize the engine.

        Raises:
            OcrInitializationError: If the engine cannot be started
        """
        ...

    def recognize(self, log_image: np.ndarray) -> list[OcrLine]:
        """Recognize text lines in a cropped combat log image.

        Args:
            log_image: BGR numpy array of the log region

        Returns:
            List of recognized lines, possibly empty
        """
        ...

    def terminate(self) -> None:
        """Release engine resources."""
        ...

    def is_ready(self) -> bool:
        """Whether init() completed and recognize() may be called."""
        ...


@runtime_checkable
class SimilarityFunction(Protocol):
    """Protocol for string similarity used by fuzzy action matching."""

    def __call__(self, a: str, b: str) -> float:
        """Return similarity in [0, 1], 1 meaning identical."""
        ...


@runtime_checkable
class RegionCacheProtocol(Protocol):
    """Protocol for calibrated region storage."""

    def get_regions(self, frame_size: tuple[int, int]) -> RegionConfig | None:
        """Get calibrated regions for a frame size.

        Args:
            frame_size: Tuple of (width, height) in pixels

        Returns:
            RegionConfig, or None if no calibration is stored
        """
        ...

    def set_regions(self, frame_size: tuple[int, int], regions: RegionConfig) -> None:
        """Store calibrated regions for a frame size.

        Args:
            frame_size: Tuple of (width, height) in pixels
            regions: Regions to store
        """
        ...
