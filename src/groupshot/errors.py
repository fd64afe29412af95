from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class ErrorKind(Enum):
    INVALID_TRANSITION = "invalid_transition"
    BUSY = "busy"
    DIMENSION_MISMATCH = "dimension_mismatch"
    SEGMENTATION_FAILED = "segmentation_failed"
    STALE_RESULT = "stale_result"


# Message categories for a UI layer; wording is not load-bearing.
ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_TRANSITION: "That action is not available right now.",
    ErrorKind.BUSY: "Still processing the last person. Please wait.",
    ErrorKind.DIMENSION_MISMATCH: "The captured photo does not match the background size.",
    ErrorKind.SEGMENTATION_FAILED: "Segmentation failed. Try again.",
    ErrorKind.STALE_RESULT: "",
}


class CompositionError(Exception):
    """Base class for every error raised by the compositing pipeline."""

    kind: ErrorKind = ErrorKind.INVALID_TRANSITION

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail or ERROR_MESSAGES[self.kind]
        super().__init__(self.detail)

    @property
    def user_message(self) -> str:
        return ERROR_MESSAGES[self.kind]


class InvalidTransition(CompositionError):
    kind = ErrorKind.INVALID_TRANSITION


class Busy(CompositionError):
    kind = ErrorKind.BUSY


class DimensionMismatch(CompositionError):
    kind = ErrorKind.DIMENSION_MISMATCH


class SegmentationFailed(CompositionError):
    kind = ErrorKind.SEGMENTATION_FAILED


class StaleResult(CompositionError):
    """A worker finished for a session that has since been reset."""

    kind = ErrorKind.STALE_RESULT
