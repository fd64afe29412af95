import threading
from types import SimpleNamespace

import numpy as np
import pytest

from groupshot.errors import SegmentationFailed
from groupshot.segmentation import SelfieSegmenter, _SolutionsBackend, _TasksBackend

from conftest import GREEN, solid_frame


class _Results:
    def __init__(self, mask):
        self.segmentation_mask = mask


class _FakeSolution:
    """Stands in for mp.solutions.selfie_segmentation.SelfieSegmentation."""

    def __init__(self, mask=None, error=None):
        self.mask = mask
        self.error = error
        self.seen = None
        self.closed = False

    def process(self, frame_rgb):
        self.seen = frame_rgb
        if self.error is not None:
            raise self.error
        return _Results(self.mask)

    def close(self):
        self.closed = True


def _segmenter(backend) -> SelfieSegmenter:
    # Skip __init__ so no MediaPipe graph is built.
    seg = SelfieSegmenter.__new__(SelfieSegmenter)
    seg._lock = threading.Lock()
    seg._tasks = None
    seg._solutions = _SolutionsBackend(mp=None, segmentation=backend)
    return seg


def test_segment_returns_mask_and_feeds_rgb():
    backend = _FakeSolution(mask=np.full((100, 100), 0.75, np.float32))
    seg = _segmenter(backend)
    mask = seg.segment(solid_frame(GREEN))
    assert mask.size == (100, 100)
    assert np.allclose(mask.values, 0.75)
    seg.segment(solid_frame((255, 0, 0)))
    assert tuple(backend.seen[0, 0]) == (0, 0, 255)


def test_missing_mask_fails():
    seg = _segmenter(_FakeSolution(mask=None))
    with pytest.raises(SegmentationFailed):
        seg.segment(solid_frame(GREEN))


def test_backend_error_wrapped():
    seg = _segmenter(_FakeSolution(error=RuntimeError("graph crashed")))
    with pytest.raises(SegmentationFailed) as info:
        seg.segment(solid_frame(GREEN))
    assert isinstance(info.value.__cause__, RuntimeError)


def test_close_releases_backend():
    backend = _FakeSolution(mask=np.zeros((2, 2), np.float32))
    with _segmenter(backend):
        pass
    assert backend.closed


class _BlockingSolution(_FakeSolution):
    def __init__(self):
        super().__init__(mask=np.zeros((100, 100), np.float32))
        self.entered = threading.Event()
        self.release = threading.Event()
        self.running = False
        self.closed_while_running = False

    def process(self, frame_rgb):
        self.running = True
        self.entered.set()
        self.release.wait(5.0)
        self.running = False
        return super().process(frame_rgb)

    def close(self):
        self.closed_while_running = self.running
        super().close()


def test_close_waits_for_running_segmentation():
    backend = _BlockingSolution()
    seg = _segmenter(backend)

    worker = threading.Thread(target=seg.segment, args=(solid_frame(GREEN),))
    worker.start()
    assert backend.entered.wait(5.0)

    closer = threading.Thread(target=seg.close)
    closer.start()
    closer.join(0.2)
    assert closer.is_alive()
    assert not backend.closed

    backend.release.set()
    worker.join(5.0)
    closer.join(5.0)
    assert backend.closed
    assert not backend.closed_while_running


def test_segment_after_close_fails():
    seg = _segmenter(_FakeSolution(mask=np.zeros((2, 2), np.float32)))
    seg.close()
    with pytest.raises(SegmentationFailed):
        seg.segment(solid_frame(GREEN))


class _FakeMpImage:
    def __init__(self, image_format, data):
        self.data = data


class _FakeMp:
    """Just enough of the `mediapipe` module for the Tasks path."""

    Image = _FakeMpImage

    class ImageFormat:
        SRGB = "srgb"


class _ConfidenceMask:
    def __init__(self, values):
        self.values = values

    def numpy_view(self):
        return self.values


class _FakeTasksSegmenter:
    def __init__(self, masks):
        self.masks = masks

    def segment(self, mp_image):
        return SimpleNamespace(confidence_masks=self.masks)

    def close(self):
        pass


def _tasks_segmenter(masks) -> SelfieSegmenter:
    seg = SelfieSegmenter.__new__(SelfieSegmenter)
    seg._lock = threading.Lock()
    seg._solutions = None
    seg._tasks = _TasksBackend(mp=_FakeMp, segmenter=_FakeTasksSegmenter(masks))
    return seg


def test_tasks_backend_uses_person_confidence_mask():
    person = np.full((100, 100), 0.9, np.float32)
    seg = _tasks_segmenter([_ConfidenceMask(person)])
    mask = seg.segment(solid_frame(GREEN))
    assert np.allclose(mask.values, 0.9)


def test_tasks_backend_without_masks_fails():
    seg = _tasks_segmenter([])
    with pytest.raises(SegmentationFailed):
        seg.segment(solid_frame(GREEN))
