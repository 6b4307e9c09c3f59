"""Service layer for bosscycle.

This module contains service classes that integrate with external
dependencies such as the on-disk cache.
"""

from bosscycle.services.app_data import AppData
from bosscycle.services.cache_service import CacheService

__all__ = [
    "AppData",
    "CacheService",
]
