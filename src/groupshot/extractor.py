from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from .types import Frame, Layer, Mask
from .utils import resize_to


@dataclass(frozen=True)
class ExtractorSettings:
    """
    Fixed constants for turning a frame + mask into a cutout layer.

    feather_sigma: Gaussian sigma (px) used to soften mask edges; 0 disables it.
    brightness: multiplier applied to every color channel.
    contrast: multiplier around mid-gray (127.5), applied after brightness.
    """

    feather_sigma: float = 2.0
    brightness: float = 1.0
    contrast: float = 1.0

    @property
    def tone_is_identity(self) -> bool:
        return self.brightness == 1.0 and self.contrast == 1.0


class LayerExtractor:
    """Builds BGRA person layers from a frame and its segmentation mask."""

    def __init__(self, settings: ExtractorSettings = ExtractorSettings()) -> None:
        if settings.feather_sigma < 0:
            raise ValueError("feather_sigma must be >= 0")
        self.settings = settings

    def soften(self, mask: Mask, size) -> np.ndarray:
        """Resample `mask` to `size` (width, height) and feather its edges."""
        m = resize_to(mask.values, size, interpolation=cv2.INTER_LINEAR)
        sigma = self.settings.feather_sigma
        if sigma > 0:
            # Kernel size derived from sigma; replicate border keeps edge pixels stable.
            m = cv2.GaussianBlur(m, (0, 0), sigmaX=sigma, sigmaY=sigma, borderType=cv2.BORDER_REPLICATE)
        return np.clip(m, 0.0, 1.0)

    def adjust_tone(self, bgr: np.ndarray) -> np.ndarray:
        s = self.settings
        if s.tone_is_identity:
            return bgr.copy()
        c = bgr.astype(np.float32) * s.brightness
        c = (c - 127.5) * s.contrast + 127.5
        return np.clip(np.rint(c), 0, 255).astype(np.uint8)

    def extract(self, frame: Frame, mask: Mask) -> Layer:
        alpha = self.soften(mask, frame.size)
        out = np.empty((frame.height, frame.width, 4), dtype=np.uint8)
        # Color is kept everywhere, even where alpha is 0.
        out[:, :, :3] = self.adjust_tone(frame.pixels)
        out[:, :, 3] = np.rint(alpha * 255.0).astype(np.uint8)
        return Layer(out)
