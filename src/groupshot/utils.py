from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np


def resize_to(image: np.ndarray, size: Tuple[int, int], interpolation: int = cv2.INTER_LINEAR) -> np.ndarray:
    """Resize `image` to `size` = (width, height); returns the input untouched if it already matches."""
    w, h = size
    if image.shape[1] == w and image.shape[0] == h:
        return image
    return cv2.resize(image, (w, h), interpolation=interpolation)
