from __future__ import annotations

import logging
import os

import cv2
import numpy as np

logger = logging.getLogger(__name__)


DEFAULT_FILENAME = "group_photo.png"


def encode_image(image: np.ndarray, fmt: str = ".png") -> bytes:
    """Encode a BGR composite to image file bytes (".png", ".jpg", ...)."""
    if not fmt.startswith("."):
        fmt = "." + fmt
    ok, buf = cv2.imencode(fmt, image)
    if not ok:
        raise RuntimeError(f"Could not encode composite as {fmt}")
    return buf.tobytes()


def save_image(image: np.ndarray, path: str = DEFAULT_FILENAME) -> str:
    ext = os.path.splitext(path)[1] or ".png"
    data = encode_image(image, ext)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    logger.info("wrote %d bytes to %s", len(data), path)
    return path
