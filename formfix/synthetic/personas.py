from __future__ import annotations
import random
import time
from typing import Callable, Dict, List, Optional

from ..capture.session import new_session_id
from ..capture.tracker import FormTracker
from ..capture.transport import Delivered, DeliveryResult, Transport
from ..events import FrictionEvent

CONTACT_FORM = {"id": "contact"}
FIELDS = {
    "name": {"name": "name", "placeholder": "Name"},
    "email": {"name": "email", "aria-label": "Email"},
    "subject": {"name": "subject", "placeholder": "Subject"},
    "message": {"name": "message", "placeholder": "Message"},
}


def _now(): return time.time() * 1000.0


class _Recorder(Transport):
    def __init__(self, inner: Optional[Transport]):
        self.inner = inner
        self.events: List[FrictionEvent] = []

    def deliver(self, event: FrictionEvent) -> DeliveryResult:
        self.events.append(event)
        return self.inner.deliver(event) if self.inner is not None else Delivered(200)


def _type(tr: FormTracker, key: str, t: float, chars: int, gap=(80, 160)) -> float:
    for _ in range(chars):
        t += random.randint(*gap)
        tr.input(key, "insertText", at=t)
    return t


def _fill(tr: FormTracker, key: str, t: float, hesitate=(200, 600), chars=8) -> float:
    tr.pointer_enter(key, at=t)
    t += random.randint(100, 300)
    tr.click(key, at=t)
    tr.focus(key, at=t)
    tr.pointer_leave(key, at=t + 50)
    t += random.randint(*hesitate)
    tr.input(key, "insertText", at=t)
    t = _type(tr, key, t, chars - 1)
    t += random.randint(100, 400)
    tr.blur(key, at=t)
    return t


def smooth(tr: FormTracker, t: float) -> None:
    """Fills every field quickly and submits."""
    for key in FIELDS:
        t = _fill(tr, key, t)
    tr.submit(at=t + 300)


def hesitant(tr: FormTracker, t: float) -> None:
    """Long pause before the message field, then submits via the button."""
    for key in FIELDS:
        t = _fill(tr, key, t, hesitate=(6000, 9000) if key == "message" else (300, 800))
    tr.submit_click(at=t + 500)


def corrector(tr: FormTracker, t: float) -> None:
    """Types and deletes a lot in the email field, slowing down halfway."""
    t = _fill(tr, "name", t)
    tr.focus("email", at=t)
    t += 700
    for i in range(12):
        t += 100 if i < 6 else 400
        tr.input("email", "insertText", at=t)
        if i % 2:
            t += 150
            tr.input("email", "deleteContentBackward", at=t)
    tr.blur("email", at=t + 200)
    t = _fill(tr, "message", t + 400)
    tr.submit(at=t + 300)


def rager(tr: FormTracker, t: float) -> None:
    """Rage-clicks the subject select, then leaves."""
    t = _fill(tr, "name", t)
    tr.focus("subject", at=t)
    for j in range(5):
        tr.click("subject", at=t + 120 * j)
    tr.blur("subject", at=t + 1000)
    tr.teardown(at=t + 3000)


def abandoner(tr: FormTracker, t: float) -> None:
    """Gets through name and email, then closes the page."""
    t = _fill(tr, "name", t)
    t = _fill(tr, "email", t, hesitate=(1500, 3500))
    tr.teardown(at=t + 5000)


PERSONAS: Dict[str, Callable[[FormTracker, float], None]] = {
    "smooth": smooth,
    "hesitant": hesitant,
    "corrector": corrector,
    "rager": rager,
    "abandoner": abandoner,
}


def run_persona(name: str, transport: Optional[Transport] = None, t0: Optional[float] = None) -> List[FrictionEvent]:
    """Drive one fresh session through the contact form; returns every emitted event."""
    rec = _Recorder(transport)
    t0 = _now() if t0 is None else t0
    tr = FormTracker(CONTACT_FORM, transport=rec, session_id=new_session_id(), clock=lambda: t0)
    for key, attrs in FIELDS.items():
        tr.register_field(key, attrs)
    PERSONAS[name](tr, t0)
    return rec.events
