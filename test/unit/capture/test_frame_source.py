"""Unit tests for FrameSource and in-memory surfaces."""

from unittest.mock import Mock

import numpy as np
import pytest

from bosscycle.capture.frame_source import FrameSource
from bosscycle.capture.surfaces import ArraySurface
from bosscycle.exceptions import VideoSourceEndedError
from bosscycle.protocols import VideoSurfaceProtocol
from bosscycle.regions import Region, RegionUnit


def make_frame(width: int = 100, height: int = 50) -> np.ndarray:
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    # encode x into the blue channel so crops can be located
    frame[..., 0] = np.arange(width, dtype=np.uint8)[None, :]
    return frame


@pytest.fixture
def source():
    return FrameSource(ArraySurface([make_frame()], loop=True), clock=lambda: 1234)


def test_capture_frame_returns_frame_info(source):
    info = source.capture_frame()

    assert info.width == 100
    assert info.height == 50
    assert info.timestamp_ms == 1234
    assert source.resolution == (100, 50)


def test_crop_before_capture_returns_none(source):
    assert source.crop_pixels(Region(0, 0, 10, 10)) is None
    assert source.crop_percent(Region(0, 0, 10, 10, RegionUnit.PERCENT)) is None
    assert source.full_frame() is None


def test_crop_pixels(source):
    source.capture_frame()

    crop = source.crop_pixels(Region(10, 5, 20, 10))

    assert crop.shape == (10, 20, 3)
    assert crop[0, 0, 0] == 10


def test_crop_percent_floors_to_pixels(source):
    source.capture_frame()

    crop = source.crop(Region(10.5, 10, 25, 50, RegionUnit.PERCENT))

    assert crop.shape == (25, 25, 3)
    assert crop[0, 0, 0] == 10


@pytest.mark.parametrize(
    "region,expected_shape",
    [
        (Region(90, 40, 50, 50), (10, 10, 3)),
        (Region(-20, -20, 30, 30), (30, 30, 3)),
        (Region(500, 500, 10, 10), (1, 1, 3)),
        (Region(0, 0, 0, 0), (1, 1, 3)),
    ],
)
def test_out_of_range_regions_are_clamped(source, region, expected_shape):
    source.capture_frame()

    crop = source.crop_pixels(region)

    assert crop.shape == expected_shape


def test_crop_is_a_snapshot(source):
    source.capture_frame()
    crop = source.crop_pixels(Region(0, 0, 10, 10))

    crop[:] = 255

    assert source.full_frame()[0, 0, 0] == 0


def test_buffer_is_decoupled_from_surface_frame():
    frame = make_frame()
    source = FrameSource(ArraySurface([frame]))
    source.capture_frame()

    frame[:] = 255

    assert source.full_frame()[0, 0, 0] == 0


def test_grayscale_frames_are_expanded():
    gray = np.full((20, 30), 77, dtype=np.uint8)
    source = FrameSource(ArraySurface([gray]))

    source.capture_frame()

    assert source.full_frame().shape == (20, 30, 3)


def test_surface_not_ready_returns_none():
    surface = Mock(spec=VideoSurfaceProtocol)
    surface.ended = False
    surface.is_ready.return_value = False

    assert FrameSource(surface).capture_frame() is None
    surface.read.assert_not_called()


def test_zero_dimension_surface_returns_none():
    surface = Mock(spec=VideoSurfaceProtocol)
    surface.ended = False
    surface.is_ready.return_value = True
    surface.width = 0
    surface.height = 0

    assert FrameSource(surface).capture_frame() is None


def test_ended_surface_raises():
    source = FrameSource(ArraySurface([make_frame()]))

    source.capture_frame()

    with pytest.raises(VideoSourceEndedError):
        source.capture_frame()


def test_empty_array_surface_is_not_ready_but_not_ended():
    surface = ArraySurface([])

    assert surface.ended is False
    assert FrameSource(surface).capture_frame() is None

    surface.push(make_frame())

    assert FrameSource(surface).capture_frame() is not None


def test_released_surface_has_ended():
    surface = ArraySurface([make_frame()], loop=True)

    surface.release()

    assert surface.ended is True
    with pytest.raises(VideoSourceEndedError):
        FrameSource(surface).capture_frame()
