from .compositor import compose
from .errors import (
    Busy,
    CompositionError,
    DimensionMismatch,
    ErrorKind,
    InvalidTransition,
    SegmentationFailed,
    StaleResult,
)
from .extractor import ExtractorSettings, LayerExtractor
from .state import CompositionState, EventKind, PendingAdd, StateEvent
from .types import Frame, Layer, Mask, Phase

__all__ = [
    "compose",
    "Busy",
    "CompositionError",
    "DimensionMismatch",
    "ErrorKind",
    "InvalidTransition",
    "SegmentationFailed",
    "StaleResult",
    "ExtractorSettings",
    "LayerExtractor",
    "CompositionState",
    "EventKind",
    "PendingAdd",
    "StateEvent",
    "Frame",
    "Layer",
    "Mask",
    "Phase",
]
