"""Cache service for calibrated regions."""

from diskcache import Cache
from loguru import logger

from bosscycle.exceptions import RegionConfigError
from bosscycle.regions import RegionConfig


class CacheService:
    """Persists calibrated RegionConfigs keyed by frame size.

    A calibration is only valid for the capture resolution it was made at,
    so each (width, height) gets its own entry.
    """

    def __init__(self, cache: Cache):
        """Initialize CacheService with a diskcache.Cache instance.

        Args:
            cache: diskcache.Cache instance for persistent storage
        """
        self._cache = cache

    @staticmethod
    def create_regions_key(frame_size: tuple[int, int]) -> str:
        """Cache key in the format "regions_{width}_{height}"."""
        return f"regions_{frame_size[0]}_{frame_size[1]}"

    def get_regions(self, frame_size: tuple[int, int]) -> RegionConfig | None:
        """Retrieve calibrated regions for a frame size.

        Args:
            frame_size: Tuple of (width, height)

        Returns:
            RegionConfig if found and readable, None otherwise
        """
        data = self._cache.get(self.create_regions_key(frame_size))
        if data is None:
            logger.debug("No cached regions for frame size {}", frame_size)
            return None

        try:
            regions = RegionConfig.from_dict(data)
        except RegionConfigError as e:
            logger.warning(f"Ignoring unreadable cached regions for {frame_size}: {e}")
            return None

        logger.debug("Found cached regions for frame size {}", frame_size)
        return regions

    def set_regions(self, frame_size: tuple[int, int], regions: RegionConfig) -> None:
        self._cache.set(self.create_regions_key(frame_size), regions.to_dict())
        logger.debug("Cached regions for frame size {}", frame_size)

    def clear_regions(self, frame_size: tuple[int, int]) -> bool:
        """Delete calibrated regions for a frame size.

        Returns:
            True if an entry was removed
        """
        removed = self._cache.delete(self.create_regions_key(frame_size))
        logger.debug("Cleared cached regions for frame size {}", frame_size)
        return bool(removed)
