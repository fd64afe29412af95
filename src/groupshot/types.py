from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import cv2
import numpy as np

from .errors import SegmentationFailed


Size2 = Tuple[int, int]  # (width, height)


class Phase(Enum):
    IDLE = "idle"  # camera not running yet
    NO_BACKGROUND = "no_background"
    READY_FOR_PEOPLE = "ready_for_people"
    HAS_PEOPLE = "has_people"

    @property
    def export_eligible(self) -> bool:
        return self in (Phase.READY_FOR_PEOPLE, Phase.HAS_PEOPLE)


def _frozen_copy(arr: np.ndarray, dtype) -> np.ndarray:
    out = np.array(arr, dtype=dtype, copy=True, order="C")
    out.flags.writeable = False
    return out


@dataclass(frozen=True, eq=False)
class Frame:
    """A single BGR uint8 snapshot of the live input. Read-only once built."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        px = self.pixels
        if px.ndim != 3 or px.shape[2] != 3 or px.shape[0] == 0 or px.shape[1] == 0:
            raise ValueError(f"Frame expects an (H, W, 3) image, got shape {px.shape}")
        object.__setattr__(self, "pixels", _frozen_copy(px, np.uint8))

    @classmethod
    def from_array(cls, image: np.ndarray) -> "Frame":
        """Build a frame from a grayscale, BGR or BGRA array (OpenCV layout)."""
        if image is None:
            raise ValueError("Frame.from_array got None")
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        return cls(image)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Size2:
        return (self.width, self.height)


@dataclass(frozen=True, eq=False)
class Mask:
    """Per-pixel foreground confidence in [0, 1], float32, shape (H, W)."""

    values: np.ndarray

    def __post_init__(self) -> None:
        v = self.values
        if v.ndim != 2 or v.shape[0] == 0 or v.shape[1] == 0:
            raise SegmentationFailed(f"mask must be a non-empty (H, W) array, got shape {v.shape}")
        if not np.all(np.isfinite(v)):
            raise SegmentationFailed("mask contains non-finite values")
        object.__setattr__(self, "values", _frozen_copy(v, np.float32))

    @classmethod
    def from_array(cls, data: Optional[np.ndarray]) -> "Mask":
        """
        Normalize raw segmentation output into a Mask.

        Accepts float confidences or uint8 (0-255) data, with or without a trailing
        channel axis of size 1.
        """

        if data is None:
            raise SegmentationFailed("segmentation returned no mask")
        arr = np.asarray(data)
        if arr.ndim == 3 and arr.shape[2] == 1:
            arr = arr[:, :, 0]
        if arr.ndim != 2 or arr.size == 0:
            raise SegmentationFailed(f"malformed mask with shape {arr.shape}")
        if arr.dtype == np.uint8:
            arr = arr.astype(np.float32) / 255.0
        else:
            arr = arr.astype(np.float32)
        return cls(np.clip(arr, 0.0, 1.0))

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def size(self) -> Size2:
        return (self.width, self.height)


@dataclass(frozen=True, eq=False)
class Layer:
    """A BGRA uint8 person cutout, transparent outside the foreground."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        px = self.pixels
        if px.ndim != 3 or px.shape[2] != 4:
            raise ValueError(f"Layer expects an (H, W, 4) image, got shape {px.shape}")
        object.__setattr__(self, "pixels", _frozen_copy(px, np.uint8))

    @property
    def color(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Size2:
        return (self.width, self.height)
