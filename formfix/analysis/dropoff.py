from __future__ import annotations
import math
from typing import List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel

from ..events import FrictionEvent
from .frame import events_frame, numeric, of_type

UNKNOWN_FIELD = "Unknown"


class DropOffPoint(BaseModel):
    sessionId: str
    timestamp: Optional[float] = None
    lastField: str


class DropOffReport(BaseModel):
    totalSessions: int
    abandonments: int
    completions: int
    # None when no session has ended yet; not the same as 0%
    dropOffRate: Optional[float] = None
    points: List[DropOffPoint]


class UserJourney(BaseModel):
    sessionId: str
    fieldOrder: List[str]
    completed: bool
    abandoned: bool


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def last_field_before(df: pd.DataFrame, session_id: str, pos: int, ts: Optional[float]) -> str:
    """Most recent field_blur of the session at or before the given event."""
    blurs = of_type(df, "field_blur")
    blurs = blurs[blurs["sessionId"] == session_id]
    if blurs.empty:
        return UNKNOWN_FIELD
    # a blur without ts ranks right after the blur received before it
    blurs = blurs.sort_values("pos", kind="mergesort")
    rank = blurs["ts"].ffill().fillna(-math.inf)
    if ts is not None and not pd.isna(ts):
        by_ts = blurs["ts"].notna() & (blurs["ts"] <= ts)
        by_pos = blurs["ts"].isna() & (blurs["pos"] < pos)
        before = blurs[by_ts | by_pos]
    else:
        before = blurs[blurs["pos"] < pos]
    if before.empty:
        return UNKNOWN_FIELD
    latest = before.assign(_rank=rank).sort_values(["_rank", "pos"], kind="mergesort").iloc[-1]
    return str(latest["field"])


def analyze_dropoff_frame(df: pd.DataFrame) -> DropOffReport:
    abandons = of_type(df, "form_abandon")
    completions = len(of_type(df, "form_submit"))
    ended = len(abandons) + completions
    abandoned_at = numeric(abandons, "data.abandonedAt")

    points = []
    for idx, row in abandons.iterrows():
        ts = row["ts"] if pd.notna(row["ts"]) else None
        stamp = abandoned_at.get(idx)
        stamp = float(stamp) if stamp is not None and pd.notna(stamp) else ts
        points.append(DropOffPoint(
            sessionId=str(row["sessionId"]),
            timestamp=stamp,
            lastField=last_field_before(df, row["sessionId"], int(row["pos"]), ts),
        ))

    return DropOffReport(
        totalSessions=int(df["sessionId"].nunique()) if len(df) else 0,
        abandonments=len(abandons),
        completions=completions,
        dropOffRate=(len(abandons) / ended * 100) if ended else None,
        points=points,
    )


def predicted_completion_frame(df: pd.DataFrame) -> Optional[int]:
    """Rounded completion percentage; 0 with no sessions, None while no session has ended."""
    if not len(df) or df["sessionId"].nunique() == 0:
        return 0
    completions = len(of_type(df, "form_submit"))
    ended = completions + len(of_type(df, "form_abandon"))
    if not ended:
        return None
    return round_half_up(completions / ended * 100)


def user_journeys_frame(df: pd.DataFrame) -> List[UserJourney]:
    journeys = []
    if not len(df):
        return journeys
    for sid, g in df.groupby("sessionId", sort=False):
        order = of_type(g, "field_focus")["field"].tolist()
        if len(order) < 2:
            continue
        types = set(g["type"])
        journeys.append(UserJourney(
            sessionId=str(sid),
            fieldOrder=order,
            completed="form_submit" in types,
            abandoned="form_abandon" in types,
        ))
    return journeys


def analyze_dropoff(events: Sequence[FrictionEvent]) -> DropOffReport:
    return analyze_dropoff_frame(events_frame(events))


def predicted_completion_rate(events: Sequence[FrictionEvent]) -> Optional[int]:
    return predicted_completion_frame(events_frame(events))


def user_journeys(events: Sequence[FrictionEvent]) -> List[UserJourney]:
    return user_journeys_frame(events_frame(events))
