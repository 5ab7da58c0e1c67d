import math
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Literal, Optional, get_args

EventType = Literal[
    "field_focus",
    "hesitation",
    "typing_rate",
    "backspace",
    "correction_rate",
    "typing_speed_dropoff",
    "paste",
    "hover",
    "rage_click",
    "field_blur",
    "form_submit",
    "form_abandon",
]
EVENT_TYPES = get_args(EventType)

UNKNOWN = "unknown"


def _finite(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, dict):
        return all(_finite(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return all(_finite(v) for v in value)
    return True


class FrictionEvent(BaseModel):
    # immutable once emitted; the store only ever appends
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    sessionId: str = Field(UNKNOWN, description="opaque tracking session token")
    form: str = Field(UNKNOWN, description="form id, best effort")
    field: str = Field(..., min_length=1, description="field label")
    type: EventType
    data: Dict[str, Any] = Field(default_factory=dict, description="per-type payload")
    ts: Optional[float] = Field(None, description="client capture time, epoch ms")
    receivedAt: Optional[float] = Field(None, description="server receipt time, epoch ms")

    @field_validator("data")
    @classmethod
    def _data_is_finite(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        # stored payloads never hold NaN or Infinity
        if not _finite(v):
            raise ValueError("data values must be finite")
        return v

    def received(self, now_ms: float) -> "FrictionEvent":
        return self.model_copy(update={"receivedAt": float(now_ms)})


class InsightsRequest(BaseModel):
    formId: Optional[str] = None
    metrics: Optional[list] = None
