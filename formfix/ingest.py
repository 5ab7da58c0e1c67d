from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError as SchemaError

from .clock import now_ms
from .errors import ValidationError
from .events import FrictionEvent
from .store import MetricStore

log = logging.getLogger(__name__)

INVALID_PAYLOAD = "Invalid metric payload"


@dataclass(frozen=True)
class Accepted:
    event: FrictionEvent
    position: int


@dataclass(frozen=True)
class Rejected:
    error: ValidationError


IngestResult = Union[Accepted, Rejected]


def parse_metric(payload: Any) -> FrictionEvent:
    if not isinstance(payload, dict):
        raise ValidationError(INVALID_PAYLOAD)
    try:
        return FrictionEvent.model_validate(payload)
    except SchemaError as e:
        raise ValidationError(INVALID_PAYLOAD) from e


def ingest(store: MetricStore, payload: Any, now: Optional[float] = None) -> IngestResult:
    """
    Validate one wire payload, stamp ``receivedAt`` and append it.

    ``receivedAt`` is always assigned here; a client-supplied value is
    overwritten.
    """
    try:
        event = parse_metric(payload)
    except ValidationError as e:
        log.warning("rejected metric: %s", e.__cause__ or e)
        return Rejected(e)
    event = event.received(now_ms() if now is None else now)
    pos = store.append(event)
    log.debug("received metric #%d %s/%s %s", pos, event.sessionId, event.field, event.type)
    return Accepted(event, pos)
