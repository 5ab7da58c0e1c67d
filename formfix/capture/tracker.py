from __future__ import annotations
import logging
from typing import Callable, Dict, List, Mapping, Optional

from ..clock import now_ms
from ..config import DEFAULT_THRESHOLDS, FrictionThresholds
from ..errors import TransportError
from ..events import UNKNOWN, FrictionEvent
from . import state as st
from .abandonment import FormLifecycle, check_abandon, mark_started, mark_submitted
from .session import process_session_id
from .transport import Transport

log = logging.getLogger(__name__)

LABEL_ATTRS = ("aria-label", "placeholder", "name", "id")
FORM_ID_ATTRS = ("id", "name")


def _first_attr(attrs: Mapping[str, Optional[str]], keys) -> str:
    for k in keys:
        v = attrs.get(k)
        if v:
            return v
    return UNKNOWN


def resolve_label(attrs: Mapping[str, Optional[str]]) -> str:
    return _first_attr(attrs, LABEL_ATTRS)


def resolve_form_id(attrs: Mapping[str, Optional[str]]) -> str:
    return _first_attr(attrs, FORM_ID_ATTRS)


class FormTracker:
    """
    Instruments one form: a FieldInteractionState per field plus the form's
    started/submitted lifecycle.

    Handlers never raise because of delivery. Each returns the events it
    emitted, which makes the tracker usable without any transport at all.
    """

    def __init__(
        self,
        form_attrs: Optional[Mapping[str, Optional[str]]] = None,
        transport: Optional[Transport] = None,
        session_id: Optional[str] = None,
        thresholds: FrictionThresholds = DEFAULT_THRESHOLDS,
        clock: Callable[[], float] = now_ms,
    ):
        form_attrs = form_attrs or {}
        self.session_id = session_id or process_session_id()
        self.form_id = resolve_form_id(form_attrs)
        self.form_label = resolve_label(form_attrs)
        self.transport = transport
        self.thresholds = thresholds
        self.clock = clock
        self.lifecycle = FormLifecycle()
        self._states: Dict[str, st.FieldInteractionState] = {}
        self._labels: Dict[str, str] = {}

    # ---------- fields ----------
    def register_field(self, key: str, attrs: Optional[Mapping[str, Optional[str]]] = None) -> str:
        label = resolve_label(attrs if attrs is not None else {"id": key})
        self._labels[key] = label
        self._states.setdefault(key, st.FieldInteractionState())
        return label

    def state_of(self, key: str) -> st.FieldInteractionState:
        return self._states.get(key, st.FieldInteractionState())

    def handle(self, key: str, kind: str, at: Optional[float] = None, input_type: Optional[str] = None) -> List[FrictionEvent]:
        if key not in self._labels:
            self.register_field(key)
        at = self.clock() if at is None else at
        new_state, emissions = st.transition(self.state_of(key), st.Interaction(kind, at, input_type), self.thresholds)
        self._states[key] = new_state
        if kind == st.FOCUS:
            self.lifecycle = mark_started(self.lifecycle)
        return [self._emit(self._labels[key], e, at) for e in emissions]

    def focus(self, key, at=None):
        return self.handle(key, st.FOCUS, at)

    def input(self, key, input_type="insertText", at=None):
        return self.handle(key, st.INPUT, at, input_type)

    def paste(self, key, at=None):
        return self.handle(key, st.PASTE, at)

    def pointer_enter(self, key, at=None):
        return self.handle(key, st.POINTER_ENTER, at)

    def pointer_leave(self, key, at=None):
        return self.handle(key, st.POINTER_LEAVE, at)

    def click(self, key, at=None):
        return self.handle(key, st.CLICK, at)

    def blur(self, key, at=None):
        return self.handle(key, st.BLUR, at)

    # ---------- form ----------
    def submit(self, at: Optional[float] = None, trigger: Optional[str] = None) -> List[FrictionEvent]:
        at = self.clock() if at is None else at
        self.lifecycle, emissions = mark_submitted(self.lifecycle, at, trigger)
        return [self._emit(self.form_label, e, at) for e in emissions]

    def submit_click(self, at: Optional[float] = None) -> List[FrictionEvent]:
        return self.submit(at, trigger="button_click")

    def teardown(self, at: Optional[float] = None) -> List[FrictionEvent]:
        at = self.clock() if at is None else at
        self.lifecycle, emissions = check_abandon(self.lifecycle, at)
        return [self._emit(self.form_label, e, at) for e in emissions]

    # ---------- delivery ----------
    def _emit(self, field: str, emission: st.Emission, at: float) -> FrictionEvent:
        event = FrictionEvent(
            sessionId=self.session_id,
            form=self.form_id,
            field=field,
            type=emission.type,
            data=emission.data,
            ts=at,
        )
        self._send(event)
        return event

    def _send(self, event: FrictionEvent) -> None:
        if self.transport is None:
            return
        try:
            result = self.transport.deliver(event)
        except Exception:
            # instrumentation must never break the form
            log.exception("[FormFix Metric] transport raised for %s/%s", event.field, event.type)
            return
        if isinstance(result, TransportError):
            log.warning("[FormFix Metric] %s (POST failed): %s", result.payload, result)
