from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppData:
    """Directory layout under the bosscycle cache directory.

    cache-bosscycle/
        regions/         diskcache store of calibrated RegionConfigs
        debug/           only with --debug
            bosscycle.log
            <session>/   frames, ROI crops and debug_summary.json
    """

    DEFAULT_CACHE_DIR = Path("cache-bosscycle")
    REGIONS_SUBDIR = "regions"
    DEBUG_SUBDIR = "debug"
    LOG_FILE_NAME = "bosscycle.log"

    cache_dir: Path
    debug_enabled: bool

    @property
    def regions_dir(self) -> Path:
        return Path(self.cache_dir) / self.REGIONS_SUBDIR

    @property
    def debug_dir(self) -> Path | None:
        """Parent of the per-session debug directories, None unless debugging."""
        if not self.debug_enabled:
            return None
        return Path(self.cache_dir) / self.DEBUG_SUBDIR

    def ensure_directories(self) -> None:
        dirs = [self.regions_dir]
        if self.debug_dir is not None:
            dirs.append(self.debug_dir)
        for path in dirs:
            path.mkdir(parents=True, exist_ok=True)

    def get_log_file_path(self) -> Path | None:
        if self.debug_dir is None:
            return None
        return self.debug_dir / self.LOG_FILE_NAME
