from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Literal, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel

from ..config import DEFAULT_THRESHOLDS, FrictionThresholds
from ..events import FrictionEvent
from .frame import events_frame, field_order, numeric, of_type


@dataclass(frozen=True)
class FieldFrictionAggregate:
    field: str
    hesitations: Tuple[float, ...] = ()
    backspaces: float = 0.0
    rage_clicks: float = 0.0
    focus_count: int = 0

    @property
    def avg_hesitation(self) -> float:
        return sum(self.hesitations) / len(self.hesitations) if self.hesitations else 0.0

    def friction_score(self, th: FrictionThresholds = DEFAULT_THRESHOLDS) -> float:
        return (
            self.avg_hesitation / th.hesitation_divisor_ms
            + self.backspaces * th.backspace_weight
            + self.rage_clicks * th.rage_click_weight
        )


class FrictionIssues(BaseModel):
    highHesitation: bool
    manyBackspaces: bool
    rageClicks: bool


class FieldFrictionIssue(BaseModel):
    field: str
    frictionScore: float
    issues: FrictionIssues


class FrictionReport(BaseModel):
    score: Literal["Low", "High"]
    problematicFields: List[FieldFrictionIssue]


def backspace_deltas(bs: pd.DataFrame) -> pd.Series:
    """
    Backspace events carry a running per-focus-cycle count. Per (session, field)
    a rising count contributes its increase; a count that does not rise
    belongs to a new cycle and contributes itself.
    """
    n = numeric(bs, "data.backspaceCount")
    keyed = bs.assign(n=n).dropna(subset=["n"])
    if keyed.empty:
        return pd.Series(dtype=float)
    prev = keyed.groupby(["sessionId", "field"], sort=False)["n"].shift(1)
    delta = keyed["n"].where(~(keyed["n"] > prev), keyed["n"] - prev)
    return delta.groupby(keyed["field"], sort=False).sum()


def field_aggregates(df: pd.DataFrame) -> Dict[str, FieldFrictionAggregate]:
    fields = field_order(df)
    if not fields:
        return {}

    hes = of_type(df, "hesitation")
    hes = hes.assign(h=numeric(hes, "data.hesitation")).dropna(subset=["h"])
    hes_by_field = {f: tuple(float(x) for x in g["h"]) for f, g in hes.groupby("field", sort=False)}

    backspaces = backspace_deltas(of_type(df, "backspace"))

    rage = of_type(df, "rage_click")
    rage_by_field = numeric(rage, "data.count").groupby(rage["field"], sort=False).sum()

    focus = of_type(df, "field_focus")
    focus_by_field = numeric(focus, "data.focusCount").groupby(focus["field"], sort=False).last()

    out = {}
    for f in fields:
        fc = focus_by_field.get(f)
        out[f] = FieldFrictionAggregate(
            field=f,
            hesitations=hes_by_field.get(f, ()),
            backspaces=float(backspaces.get(f, 0.0)),
            rage_clicks=float(rage_by_field.get(f, 0.0)),
            focus_count=int(fc) if fc is not None and pd.notna(fc) else 0,
        )
    return out


def friction_issue(agg: FieldFrictionAggregate, th: FrictionThresholds) -> FieldFrictionIssue:
    return FieldFrictionIssue(
        field=agg.field,
        frictionScore=agg.friction_score(th),
        issues=FrictionIssues(
            highHesitation=agg.avg_hesitation > th.high_hesitation_ms,
            manyBackspaces=agg.backspaces > th.many_backspaces,
            rageClicks=agg.rage_clicks > 0,
        ),
    )


def analyze_friction_frame(df: pd.DataFrame, th: FrictionThresholds = DEFAULT_THRESHOLDS) -> FrictionReport:
    problematic = [
        friction_issue(agg, th)
        for agg in field_aggregates(df).values()
        if agg.friction_score(th) > th.problematic_score
    ]
    return FrictionReport(score="High" if problematic else "Low", problematicFields=problematic)


def analyze_friction(events: Sequence[FrictionEvent], th: FrictionThresholds = DEFAULT_THRESHOLDS) -> FrictionReport:
    return analyze_friction_frame(events_frame(events), th)
