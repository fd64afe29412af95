from __future__ import annotations

import threading

import numpy as np
import pytest

from groupshot.errors import SegmentationFailed
from groupshot.types import Frame, Layer, Mask


BLUE = (255, 0, 0)
GREEN = (0, 255, 0)
RED = (0, 0, 255)


def solid_frame(color, width=100, height=100) -> Frame:
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:] = color
    return Frame(img)


def rect_layer(color, box, width=100, height=100, alpha=255) -> Layer:
    """Layer that is `color` with `alpha` inside box=(x0, y0, x1, y1), transparent elsewhere."""
    px = np.zeros((height, width, 4), dtype=np.uint8)
    x0, y0, x1, y1 = box
    px[y0:y1, x0:x1, :3] = color
    px[y0:y1, x0:x1, 3] = alpha
    return Layer(px)


class BoxSegmenter:
    """Foreground is a fixed box, given in fractions of the frame size."""

    def __init__(self, box=(0.25, 0.25, 0.75, 0.75)) -> None:
        self.box = box
        self.calls = 0

    def segment(self, frame: Frame) -> Mask:
        self.calls += 1
        m = np.zeros((frame.height, frame.width), dtype=np.float32)
        fx0, fy0, fx1, fy1 = self.box
        m[int(fy0 * frame.height) : int(fy1 * frame.height), int(fx0 * frame.width) : int(fx1 * frame.width)] = 1.0
        return Mask(m)


class GatedSegmenter(BoxSegmenter):
    """Blocks inside segment() until the test opens the gate."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = threading.Event()
        self.entered = threading.Event()

    def segment(self, frame: Frame) -> Mask:
        self.entered.set()
        self.gate.wait(5.0)
        return super().segment(frame)


class FailingSegmenter:
    def segment(self, frame: Frame) -> Mask:
        raise SegmentationFailed("model exploded")


class NoMaskSegmenter:
    def segment(self, frame: Frame) -> Mask:
        return Mask.from_array(None)


@pytest.fixture
def red_bg() -> Frame:
    return solid_frame(RED)


@pytest.fixture
def blue_bg() -> Frame:
    return solid_frame(BLUE)
