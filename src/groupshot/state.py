from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from .compositor import compose
from .errors import (
    Busy,
    CompositionError,
    DimensionMismatch,
    InvalidTransition,
    SegmentationFailed,
    StaleResult,
)
from .export import encode_image
from .extractor import LayerExtractor
from .segmentation import Segmenter
from .types import Frame, Layer, Phase, Size2
from .utils import resize_to

logger = logging.getLogger(__name__)


class EventKind(Enum):
    PHASE_CHANGED = "phase_changed"
    BUSY_CHANGED = "busy_changed"
    LAYER_ADDED = "layer_added"
    ERROR = "error"


@dataclass(frozen=True)
class StateEvent:
    kind: EventKind
    phase: Phase
    busy: bool
    error: Optional[CompositionError] = None


Listener = Callable[[StateEvent], None]


class PendingAdd:
    """Handle for one in-flight add-person request."""

    def __init__(self, token: int) -> None:
        self.token = token
        self.layer: Optional[Layer] = None
        self.error: Optional[CompositionError] = None
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def succeeded(self) -> bool:
        return self.done and self.error is None and self.layer is not None

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def _finish(self, layer: Optional[Layer] = None, error: Optional[CompositionError] = None) -> None:
        self.layer = layer
        self.error = error
        self._done.set()


class CompositionState:
    """
    Background + ordered person layers, and the phase machine around them.

    Mutated only through `lock_background`, `add_layer` and `reset`. Person
    layers are built on a worker thread and published atomically, so `render`
    is safe to call at any time and never sees a half-built layer.
    """

    def __init__(
        self,
        segmenter: Optional[Segmenter] = None,
        extractor: Optional[LayerExtractor] = None,
        camera_live: bool = True,
    ) -> None:
        self._segmenter = segmenter
        self._extractor = extractor if extractor is not None else LayerExtractor()
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

        self._background: Optional[Frame] = None
        self._layers: Tuple[Layer, ...] = ()
        self._phase = Phase.NO_BACKGROUND if camera_live else Phase.IDLE
        self._busy = False
        # Bumped on every reset; workers from an older session are discarded.
        self._session = 0

    # -- read-only views ---------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def background(self) -> Optional[Frame]:
        return self._background

    @property
    def has_background(self) -> bool:
        return self._background is not None

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return self._layers

    @property
    def canvas_size(self) -> Optional[Size2]:
        bg = self._background
        return bg.size if bg is not None else None

    @property
    def session(self) -> int:
        return self._session

    # -- signals -----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, kind: EventKind, error: Optional[CompositionError] = None) -> None:
        event = StateEvent(kind=kind, phase=self._phase, busy=self._busy, error=error)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("state listener failed on %s", kind.value)

    def _set_phase(self, phase: Phase) -> None:
        if phase is not self._phase:
            self._phase = phase
            self._emit(EventKind.PHASE_CHANGED)

    def _set_busy(self, busy: bool) -> None:
        if busy != self._busy:
            self._busy = busy
            self._emit(EventKind.BUSY_CHANGED)

    def _reject(self, error: CompositionError) -> CompositionError:
        logger.info("rejected: %s (%s)", error.kind.value, error.detail)
        self._emit(EventKind.ERROR, error)
        return error

    # -- operations --------------------------------------------------------

    def camera_started(self) -> None:
        with self._lock:
            if self._phase is Phase.IDLE:
                self._set_phase(Phase.NO_BACKGROUND)

    def lock_background(self, frame: Frame, force: bool = False) -> None:
        """
        Lock `frame` as the background and fix the canvas size to it.

        Only valid with no background. `force=True` resets first, discarding any
        people already added (the "recapture background" flow).
        """

        with self._lock:
            if force:
                self.reset()
            if self._phase is not Phase.NO_BACKGROUND:
                raise self._reject(
                    InvalidTransition(f"cannot lock background in phase {self._phase.value}; reset first")
                )
            self._background = frame
            self._layers = ()
            logger.info("background locked at %dx%d", frame.width, frame.height)
            self._set_phase(Phase.READY_FOR_PEOPLE)

    def request_add_person(self, frame: Frame) -> PendingAdd:
        """
        Start segmenting `frame` on a worker thread.

        At most one request may be pending; a second one raises `Busy`. The
        returned handle completes once the layer is published or the attempt
        failed.
        """

        if self._segmenter is None:
            raise RuntimeError("CompositionState has no segmenter configured")

        with self._lock:
            if not self._phase.export_eligible:
                raise self._reject(InvalidTransition(f"cannot add a person in phase {self._phase.value}"))
            if self._busy:
                raise self._reject(Busy())
            self._set_busy(True)
            token = self._session
            canvas = self.canvas_size

        # The canvas size is fixed at lock time; a switched camera is resampled to it.
        frame = Frame(resize_to(frame.pixels, canvas))
        pending = PendingAdd(token)
        worker = threading.Thread(
            target=self._run_add,
            args=(pending, frame),
            name=f"groupshot-add-{token}",
            daemon=True,
        )
        worker.start()
        return pending

    def _run_add(self, pending: PendingAdd, frame: Frame) -> None:
        try:
            mask = self._segmenter.segment(frame)
            layer = self._extractor.extract(frame, mask)
        except CompositionError as e:
            self._finish_failed(pending, e)
            return
        except Exception as e:
            logger.exception("unexpected error while extracting person layer")
            self._finish_failed(pending, SegmentationFailed(f"could not build layer: {e}"))
            return

        try:
            self._publish(pending.token, layer)
        except StaleResult as e:
            logger.debug("discarding layer from session %d: %s", pending.token, e.detail)
            pending._finish(error=e)
            return
        except CompositionError as e:
            self._finish_failed(pending, e)
            return
        pending._finish(layer=layer)

    def _finish_failed(self, pending: PendingAdd, error: CompositionError) -> None:
        with self._lock:
            if pending.token != self._session:
                logger.debug("ignoring failure from stale session %d", pending.token)
                pending._finish(error=StaleResult(str(error)))
                return
            self._set_busy(False)
            self._reject(error)
        pending._finish(error=error)

    def _publish(self, token: int, layer: Layer) -> None:
        with self._lock:
            if token != self._session:
                raise StaleResult(f"result for session {token}, current session is {self._session}")
            try:
                self.add_layer(layer)
            finally:
                self._set_busy(False)

    def add_layer(self, layer: Layer) -> None:
        """Append a finished layer on top of the stack."""
        with self._lock:
            canvas = self.canvas_size
            if canvas is None:
                raise InvalidTransition("no background locked")
            if layer.size != canvas:
                raise DimensionMismatch(
                    f"layer is {layer.width}x{layer.height}, canvas is {canvas[0]}x{canvas[1]}"
                )
            self._layers = self._layers + (layer,)
            logger.info("person layer %d added", len(self._layers))
            self._set_phase(Phase.HAS_PEOPLE)
            self._emit(EventKind.LAYER_ADDED)

    def reset(self, camera_stopped: bool = False) -> None:
        """Drop background and layers. Always succeeds and releases the busy flag."""
        with self._lock:
            self._session += 1
            self._background = None
            self._layers = ()
            self._set_busy(False)
            self._set_phase(Phase.IDLE if camera_stopped else Phase.NO_BACKGROUND)
            logger.info("composition reset (session %d)", self._session)

    # -- output ------------------------------------------------------------

    def render(self) -> Optional[np.ndarray]:
        """Current composite, or None when there is no background to show."""
        with self._lock:
            background = self._background
            layers = self._layers
        if background is None:
            return None
        return compose(background, layers)

    def export(self, fmt: str = ".png") -> bytes:
        image = self.render()
        if image is None:
            raise self._reject(InvalidTransition("nothing to export: no background locked"))
        return encode_image(image, fmt)
