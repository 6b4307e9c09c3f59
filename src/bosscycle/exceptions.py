"""Custom exception classes for bosscycle.

This module defines custom exceptions used throughout the application to provide
clear error messages and facilitate error handling.
"""


class BossCycleError(Exception):
    """Base exception class for all bosscycle errors."""

    pass


class BossDataError(BossCycleError):
    """Raised when boss reference data is missing or malformed."""

    pass


class OcrInitializationError(BossCycleError):
    """Raised when the OCR engine cannot be initialized."""

    pass


class VideoSourceError(BossCycleError):
    """Raised when a video source cannot be opened."""

    pass


class VideoSourceEndedError(BossCycleError):
    """Raised when the video source has permanently ended.

    This is a terminal condition for an analysis session; the pipeline does
    not attempt to resume.
    """

    pass


class RegionConfigError(BossCycleError):
    """Raised when a region mapping is structurally invalid (e.g. missing keys)."""

    pass
