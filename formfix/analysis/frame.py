from __future__ import annotations
from typing import Iterable

import numpy as np
import pandas as pd

from ..events import FrictionEvent

BASE_COLUMNS = ["pos", "sessionId", "form", "field", "type", "ts", "receivedAt"]


def events_frame(events: Iterable[FrictionEvent]) -> pd.DataFrame:
    """One row per event in store order; payload keys flattened to ``data.<key>``."""
    rows = []
    for i, ev in enumerate(events):
        row = {
            "pos": i,
            "sessionId": ev.sessionId,
            "form": ev.form,
            "field": ev.field,
            "type": ev.type,
            "ts": ev.ts,
            "receivedAt": ev.receivedAt,
        }
        for k, v in ev.data.items():
            row[f"data.{k}"] = v
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=BASE_COLUMNS)
    df = pd.DataFrame(rows)
    for c in ["ts", "receivedAt"]:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    return df


def numeric(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(np.nan, index=df.index, dtype=float)
    return pd.to_numeric(df[col], errors="coerce")


def of_type(df: pd.DataFrame, event_type: str) -> pd.DataFrame:
    return df[df["type"] == event_type]


def field_order(df: pd.DataFrame) -> list:
    # first appearance, store order
    return list(pd.unique(df["field"])) if len(df) else []
