from __future__ import annotations

import logging
import platform
from typing import Optional, Protocol

import cv2
import numpy as np

from .types import Frame

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def get_current_frame(self) -> Frame:
        ...


class StaticFrameSource:
    """Serves the same image every time (image files, tests)."""

    def __init__(self, image: np.ndarray) -> None:
        self._frame = Frame.from_array(image)

    @classmethod
    def from_file(cls, path: str) -> "StaticFrameSource":
        image = cv2.imread(path)
        if image is None:
            raise RuntimeError(f"Could not read image: {path}")
        return cls(image)

    def get_current_frame(self) -> Frame:
        return self._frame


class CameraFrameSource:
    """
    Live webcam frames via OpenCV.

    Frames are mirrored by default (selfie mode). `switch` re-opens a different
    device; callers only pick up the new size on the next background lock.
    """

    def __init__(self, camera: int = 0, width: int = 1280, height: int = 720, mirror: bool = True) -> None:
        self.width = width
        self.height = height
        self.mirror = mirror
        self.camera = camera
        self._cap: Optional[cv2.VideoCapture] = None
        self._last: Optional[np.ndarray] = None
        self.open(camera)

    def open(self, camera: int) -> None:
        self.release()
        if platform.system() == "Darwin":
            cap = cv2.VideoCapture(camera, cv2.CAP_AVFOUNDATION)
        else:
            cap = cv2.VideoCapture(camera)
        if not cap.isOpened():
            raise RuntimeError(
                f"Could not open camera index {camera}. "
                "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap
        self.camera = camera
        logger.info("camera %d opened", camera)

    def switch(self, camera: int) -> None:
        self.open(camera)

    def read(self) -> Optional[np.ndarray]:
        """Grab the next raw BGR frame, or None if the device stopped delivering."""
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok:
            return None
        if self.mirror:
            frame = cv2.flip(frame, 1)
        self._last = frame
        return frame

    def get_current_frame(self) -> Frame:
        frame = self.read()
        if frame is None:
            frame = self._last
        if frame is None:
            raise RuntimeError(f"Camera {self.camera} returned no frame")
        return Frame.from_array(frame)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "CameraFrameSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
