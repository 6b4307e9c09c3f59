"""Video surfaces and frame capture."""

from bosscycle.capture.frame_source import FrameSource
from bosscycle.capture.surfaces import (
    ArraySurface,
    ImageDirectorySurface,
    VideoCaptureSurface,
)

__all__ = [
    "FrameSource",
    "ArraySurface",
    "ImageDirectorySurface",
    "VideoCaptureSurface",
]
