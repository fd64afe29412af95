from __future__ import annotations

import logging
from typing import Sequence, Union

import numpy as np

from .errors import DimensionMismatch
from .types import Frame, Layer

logger = logging.getLogger(__name__)


def compose(background: Union[Frame, np.ndarray], layers: Sequence[Layer]) -> np.ndarray:
    """
    Composite person layers over the background, in order.

    Each layer is drawn with the standard "over" operator
    (``out = color * a + dest * (1 - a)``), so later layers end up on top.
    The result is an opaque BGR uint8 image the size of the background.
    """

    bg = background.pixels if isinstance(background, Frame) else np.asarray(background)
    h, w = bg.shape[:2]

    if not layers:
        return bg.copy()

    acc = bg.astype(np.float32)
    for i, layer in enumerate(layers):
        if layer.size != (w, h):
            raise DimensionMismatch(f"layer {i} is {layer.width}x{layer.height}, canvas is {w}x{h}")
        a = layer.alpha.astype(np.float32)[:, :, None] / 255.0
        acc = layer.color.astype(np.float32) * a + acc * (1.0 - a)

    logger.debug("composed %d layer(s) onto %dx%d background", len(layers), w, h)
    return np.clip(np.rint(acc), 0, 255).astype(np.uint8)
