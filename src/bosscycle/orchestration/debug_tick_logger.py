"""Debug tick logging for analysis sessions.

This module provides optional debug data capture during a session
without polluting the pipeline.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
import json

import cv2
import numpy as np
from loguru import logger

from bosscycle.models import AnalysisTickResult


@dataclass
class DebugTick:
    """Single tick of debug data captured during a session."""

    tick_number: int
    timestamp: int
    label: str
    frame_file: str | None
    roi_files: dict[str, str]
    result: dict


class DebugTickLogger:
    """Captures frames, ROI crops and tick snapshots for offline review.

    Full frames go to a frames/ subdirectory so it can be replayed with
    ImageDirectorySurface; ROI crops stay in the session directory.
    """

    def __init__(self, output_dir: Path, session_name: str | None = None):
        """Initialize logger with output directory.

        Args:
            output_dir: Base directory for debug output
            session_name: Optional session name (default: session_<start time>)
        """
        self._session_name = session_name or datetime.now().strftime("session_%Y%m%d_%H%M%S")
        self._session_dir = Path(output_dir) / self._session_name
        self._frames_dir = self._session_dir / "frames"
        self._frames_dir.mkdir(parents=True, exist_ok=True)

        self._ticks: list[DebugTick] = []

        logger.info(f"DebugTickLogger initialized: {self._session_dir}")

    def log_tick(
        self,
        tick_number: int,
        result: AnalysisTickResult,
        frame: np.ndarray | None = None,
        rois: dict[str, np.ndarray | None] | None = None,
    ) -> None:
        """Log a single tick with its frame and ROI crops.

        Args:
            tick_number: Sequential tick number (0-indexed)
            result: Snapshot produced by the tick
            frame: Full frame (BGR), if one was captured
            rois: Named ROI crops (BGR)
        """
        prefix = f"{tick_number:06d}"

        frame_file = None
        if frame is not None:
            frame_file = f"frames/{prefix}.png"
            cv2.imwrite(str(self._session_dir / frame_file), frame)

        roi_files = {}
        for name, roi in (rois or {}).items():
            if roi is None or roi.size == 0:
                continue
            roi_files[name] = f"{prefix}_{name}.png"
            cv2.imwrite(str(self._session_dir / roi_files[name]), roi)

        self._ticks.append(
            DebugTick(
                tick_number=tick_number,
                timestamp=result.timestamp,
                label=result.label,
                frame_file=frame_file,
                roi_files=roi_files,
                result=result.to_dict(),
            )
        )

        if (tick_number + 1) % 10 == 0:
            logger.debug(f"DebugTickLogger: {tick_number + 1} ticks captured")

    def save_summary(self, metadata: dict | None = None) -> Path:
        summary = {
            "session_name": self._session_name,
            "total_ticks": len(self._ticks),
            "ticks": [asdict(tick) for tick in self._ticks],
        }

        if metadata:
            summary.update(metadata)

        summary_path = self._session_dir / "debug_summary.json"
        with open(summary_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)

        logger.info(f"DebugTickLogger: Saved summary to {summary_path}")
        return summary_path

    @property
    def session_dir(self) -> Path:
        return self._session_dir

    @property
    def tick_count(self) -> int:
        return len(self._ticks)
