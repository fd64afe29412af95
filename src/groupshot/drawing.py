from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_banner(frame, message: str, color=(255, 255, 255), alpha: float = 0.55):
    """Translucent strip along the bottom edge with a status message."""
    if not message:
        return frame
    h, w = frame.shape[:2]
    bar_h = 40
    y0 = max(0, h - bar_h)
    strip = frame[y0:h, :].astype(np.float32)
    frame[y0:h, :] = (strip * (1.0 - alpha)).astype(np.uint8)
    draw_text(frame, message, (12, h - 13), color=color, scale=0.7, thickness=2)
    return frame


def draw_countdown(frame, value: int, color=(40, 255, 120)):
    """Big centered countdown digit."""
    h, w = frame.shape[:2]
    text = str(value)
    scale = max(2.0, h / 120.0)
    thickness = max(3, int(scale * 2))
    (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
    org = ((w - tw) // 2, (h + th) // 2)
    return draw_text(frame, text, org, color=color, scale=scale, thickness=thickness)


def draw_busy(frame, message: str = "Processing..."):
    """Dim the whole frame while a person is being cut out."""
    frame[:] = (frame.astype(np.float32) * 0.6).astype(np.uint8)
    h, w = frame.shape[:2]
    (tw, _), _ = cv2.getTextSize(message, cv2.FONT_HERSHEY_SIMPLEX, 1.0, 2)
    return draw_text(frame, message, ((w - tw) // 2, h // 2), scale=1.0, thickness=2)


def idle_screen(width: int, height: int, message: str = "Press space to start the camera"):
    """Dark placeholder shown before the camera is opened."""
    frame = np.full((height, width, 3), 18, dtype=np.uint8)
    (tw, _), _ = cv2.getTextSize(message, cv2.FONT_HERSHEY_SIMPLEX, 0.9, 2)
    return draw_text(frame, message, (max(12, (width - tw) // 2), height // 2), scale=0.9, thickness=2)
