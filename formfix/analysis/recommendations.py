from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Literal, Sequence

import pandas as pd
from pydantic import BaseModel

from ..config import DEFAULT_THRESHOLDS, FrictionThresholds
from ..events import FrictionEvent
from .frame import events_frame, numeric, of_type
from .friction import FieldFrictionAggregate, field_aggregates


class Recommendation(BaseModel):
    type: str
    field: str
    suggestion: str
    impact: Literal["Low", "Medium", "High"]
    reasoning: str


@dataclass(frozen=True)
class FieldPattern:
    """Per-field totals taken from field_blur snapshots."""

    name: str
    avg_hesitation: float = 0.0
    backspaces: float = 0.0
    characters: float = 0.0

    @property
    def backspace_rate(self) -> float:
        return self.backspaces / self.characters if self.characters > 0 else 0.0


def field_patterns(df: pd.DataFrame, aggregates: Dict[str, FieldFrictionAggregate]) -> List[FieldPattern]:
    blurs = of_type(df, "field_blur")
    backspaces, characters = {}, {}
    if not blurs.empty:
        backspaces = numeric(blurs, "data.backspaceCount").fillna(0.0).groupby(blurs["field"], sort=False).sum()
        characters = numeric(blurs, "data.charCount").fillna(0.0).groupby(blurs["field"], sort=False).sum()
    return [
        FieldPattern(
            name=name,
            avg_hesitation=agg.avg_hesitation,
            backspaces=float(backspaces.get(name, 0.0)),
            characters=float(characters.get(name, 0.0)),
        )
        for name, agg in aggregates.items()
    ]


def rules_for(p: FieldPattern, th: FrictionThresholds) -> List[Recommendation]:
    recs = []
    if p.avg_hesitation > th.clarity_hesitation_ms:
        recs.append(Recommendation(
            type="field_clarity",
            field=p.name,
            suggestion=f'Clarify the purpose of "{p.name}" field',
            impact="High",
            reasoning="Users hesitate significantly before filling this field",
        ))
    if p.backspace_rate > th.validation_correction_rate:
        recs.append(Recommendation(
            type="field_validation",
            field=p.name,
            suggestion=f'Add real-time validation for "{p.name}"',
            impact="Medium",
            reasoning="High correction rate indicates unclear requirements",
        ))
    return recs


def recommend_frame(df: pd.DataFrame, th: FrictionThresholds = DEFAULT_THRESHOLDS) -> List[Recommendation]:
    recs = []
    for p in field_patterns(df, field_aggregates(df)):
        recs.extend(rules_for(p, th))
    return recs


def recommend(events: Sequence[FrictionEvent], th: FrictionThresholds = DEFAULT_THRESHOLDS) -> List[Recommendation]:
    return recommend_frame(events_frame(events), th)
