from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

import cv2

from .errors import SegmentationFailed
from .model_assets import ensure_model_asset
from .types import Frame, Mask

logger = logging.getLogger(__name__)


class Segmenter(Protocol):
    """Anything that can turn a frame into a foreground mask."""

    def segment(self, frame: Frame) -> Mask:
        ...


@dataclass(frozen=True)
class _SolutionsBackend:
    mp: object
    segmentation: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    segmenter: object


def _try_create_solutions_backend(model_selection: int) -> Optional[_SolutionsBackend]:
    import mediapipe as mp  # type: ignore

    if not hasattr(mp, "solutions"):
        return None
    seg = mp.solutions.selfie_segmentation.SelfieSegmentation(model_selection=model_selection)
    return _SolutionsBackend(mp=mp, segmentation=seg)


def _try_create_tasks_backend(model_path: str) -> _TasksBackend:
    """
    Fallback for MediaPipe builds without `mp.solutions`.

    Uses the Tasks ImageSegmenter, which needs the selfie segmenter `.tflite` on disk.
    """

    import mediapipe as mp  # type: ignore

    try:
        from mediapipe.tasks.python import BaseOptions  # type: ignore
        from mediapipe.tasks.python.vision import ImageSegmenter, ImageSegmenterOptions, RunningMode  # type: ignore
    except ImportError:  # pragma: no cover
        from mediapipe.tasks import python as mp_python  # type: ignore

        BaseOptions = mp_python.BaseOptions
        vision = mp_python.vision
        ImageSegmenter = vision.ImageSegmenter
        ImageSegmenterOptions = vision.ImageSegmenterOptions
        RunningMode = vision.RunningMode

    model_path = ensure_model_asset(model_path)

    options = ImageSegmenterOptions(
        base_options=BaseOptions(model_asset_path=model_path),
        running_mode=RunningMode.IMAGE,
        output_confidence_masks=True,
        output_category_mask=False,
    )
    return _TasksBackend(mp=mp, segmenter=ImageSegmenter.create_from_options(options))


class SelfieSegmenter:
    """
    Person segmentation using MediaPipe Selfie Segmentation.

    Frames are BGR (OpenCV default); masks come back at the frame's resolution.
    Calls are serialized: the underlying graph is not reentrant.
    """

    def __init__(
        self,
        model_selection: int = 1,
        tasks_model_path: str = "models/selfie_segmenter.tflite",
    ) -> None:
        self._lock = threading.Lock()
        self._tasks: Optional[_TasksBackend] = None
        self._solutions: Optional[_SolutionsBackend] = _try_create_solutions_backend(model_selection)

        if self._solutions is None:
            try:
                self._tasks = _try_create_tasks_backend(tasks_model_path)
            except FileNotFoundError as e:
                raise RuntimeError(
                    "MediaPipe does not provide `mp.solutions` here, and the Tasks ImageSegmenter\n"
                    "fallback needs a model file on disk:\n"
                    f"  {tasks_model_path}\n"
                ) from e
            except Exception as e:  # pragma: no cover
                raise RuntimeError(
                    "Could not initialize MediaPipe selfie segmentation.\n"
                    "Neither `mp.solutions.selfie_segmentation` nor the Tasks ImageSegmenter is usable\n"
                    "with the installed `mediapipe` package."
                ) from e
            logger.info("using MediaPipe Tasks ImageSegmenter (%s)", tasks_model_path)
        else:
            logger.info("using mp.solutions.selfie_segmentation (model_selection=%d)", model_selection)

    def close(self) -> None:
        # Waits for an in-flight segment() so the graph is never closed under it.
        with self._lock:
            if self._solutions is not None:
                self._solutions.segmentation.close()
                self._solutions = None
            if self._tasks is not None:
                self._tasks.segmenter.close()
                self._tasks = None

    def __enter__(self) -> "SelfieSegmenter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def segment(self, frame: Frame) -> Mask:
        frame_rgb = cv2.cvtColor(frame.pixels, cv2.COLOR_BGR2RGB)
        with self._lock:
            try:
                raw = self._run(frame_rgb)
            except SegmentationFailed:
                raise
            except Exception as e:
                logger.exception("segmentation backend raised")
                raise SegmentationFailed(f"segmentation backend error: {e}") from e
        return Mask.from_array(raw)

    def _run(self, frame_rgb):
        if self._solutions is not None:
            results = self._solutions.segmentation.process(frame_rgb)
            return getattr(results, "segmentation_mask", None)

        if self._tasks is None:
            raise SegmentationFailed("no segmentation backend available")

        mp = self._tasks.mp
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = self._tasks.segmenter.segment(mp_image)
        masks = getattr(result, "confidence_masks", None) or []
        if not masks:
            return None
        # selfie_segmenter.tflite is binary: its only confidence mask is the person.
        return masks[0].numpy_view()
