import numpy as np
import pytest

from groupshot.errors import SegmentationFailed
from groupshot.types import Frame, Layer, Mask, Phase


def test_frame_is_a_readonly_copy():
    src = np.zeros((4, 6, 3), np.uint8)
    frame = Frame(src)
    src[:] = 99
    assert np.all(frame.pixels == 0)
    assert not frame.pixels.flags.writeable
    with pytest.raises(ValueError):
        frame.pixels[0, 0, 0] = 1
    assert frame.size == (6, 4)


def test_frame_from_array_converts_channels():
    gray = np.full((3, 5), 7, np.uint8)
    assert Frame.from_array(gray).pixels.shape == (3, 5, 3)
    bgra = np.zeros((3, 5, 4), np.uint8)
    assert Frame.from_array(bgra).pixels.shape == (3, 5, 3)


def test_frame_rejects_bad_shape():
    with pytest.raises(ValueError):
        Frame(np.zeros((3, 5), np.uint8))


def test_mask_from_uint8_is_normalized():
    mask = Mask.from_array(np.array([[0, 255], [51, 255]], np.uint8))
    assert mask.values.dtype == np.float32
    assert mask.values[0, 1] == pytest.approx(1.0)
    assert mask.values[1, 0] == pytest.approx(0.2)


def test_mask_from_array_squeezes_channel_and_clips():
    mask = Mask.from_array(np.array([[[1.5]], [[-0.2]]], np.float32))
    assert mask.size == (1, 2)
    assert mask.values.min() == 0.0
    assert mask.values.max() == 1.0


@pytest.mark.parametrize(
    "data",
    [None, np.zeros((0, 0), np.float32), np.zeros((2, 2, 3), np.float32), np.array([[np.nan]], np.float32)],
)
def test_mask_rejects_unusable_data(data):
    with pytest.raises(SegmentationFailed):
        Mask.from_array(data)


def test_layer_channels():
    px = np.zeros((2, 3, 4), np.uint8)
    px[..., 3] = 128
    layer = Layer(px)
    assert layer.size == (3, 2)
    assert np.all(layer.alpha == 128)
    assert layer.color.shape == (2, 3, 3)
    with pytest.raises(ValueError):
        Layer(np.zeros((2, 3, 3), np.uint8))


def test_export_eligible_phases():
    assert Phase.READY_FOR_PEOPLE.export_eligible
    assert Phase.HAS_PEOPLE.export_eligible
    assert not Phase.NO_BACKGROUND.export_eligible
    assert not Phase.IDLE.export_eligible


def test_mask_constructor_rejects_non_finite():
    with pytest.raises(SegmentationFailed):
        Mask(np.array([[0.5, np.inf]], np.float32))
