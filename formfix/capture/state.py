"""
Per-field interaction state machine.

Every transition is a pure function ``(state, interaction) -> (state', emissions)``;
``FormTracker`` owns the states and turns emissions into events.
"""
from __future__ import annotations
from dataclasses import dataclass, replace, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import DEFAULT_THRESHOLDS, FrictionThresholds

FOCUS = "focus"
INPUT = "input"
PASTE = "paste"
POINTER_ENTER = "pointer_enter"
POINTER_LEAVE = "pointer_leave"
CLICK = "click"
BLUR = "blur"

DROPOFF_WINDOW = 3  # intervals per side of the typing-speed comparison


@dataclass(frozen=True)
class Interaction:
    kind: str
    at: float  # epoch ms
    input_type: Optional[str] = None


@dataclass(frozen=True)
class Emission:
    type: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldInteractionState:
    focus_started_at: Optional[float] = None
    hesitation_recorded: bool = False
    backspace_count: int = 0
    char_count: int = 0
    paste_count: int = 0
    total_hover_ms: float = 0.0
    hover_started_at: Optional[float] = None
    recent_click_timestamps: Tuple[float, ...] = ()
    recent_typing_intervals: Tuple[float, ...] = ()
    last_change_at: Optional[float] = None
    last_typing_rate: Optional[float] = None
    # survives blur
    focus_count: int = 0

    @property
    def correction_rate(self) -> float:
        return self.backspace_count / self.char_count if self.char_count > 0 else 0.0

    def reset(self) -> "FieldInteractionState":
        return FieldInteractionState(focus_count=self.focus_count)


Transition = Tuple[FieldInteractionState, List[Emission]]


def is_deletion(input_type: Optional[str]) -> bool:
    return bool(input_type) and input_type.startswith("delete")


def is_insertion(input_type: Optional[str]) -> bool:
    return bool(input_type) and input_type.startswith("insert")


def on_focus(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    s = replace(s, focus_count=s.focus_count + 1, focus_started_at=ev.at, hesitation_recorded=False)
    return s, [Emission("field_focus", {"focusCount": s.focus_count})]


def typing_dropoff(intervals, factor: float) -> Optional[Tuple[float, float]]:
    """(prevAvg, currAvg) when the last window is `factor` times slower than the one before it."""
    if len(intervals) < 2 * DROPOFF_WINDOW:
        return None
    prev = intervals[-2 * DROPOFF_WINDOW:-DROPOFF_WINDOW]
    curr = intervals[-DROPOFF_WINDOW:]
    prev_avg = sum(prev) / DROPOFF_WINDOW
    curr_avg = sum(curr) / DROPOFF_WINDOW
    if prev_avg > 0 and curr_avg > 0 and curr_avg > prev_avg * factor:
        return prev_avg, curr_avg
    return None


def on_input(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    out = []
    now = ev.at
    if not s.hesitation_recorded and s.focus_started_at is not None:
        out.append(Emission("hesitation", {"hesitation": now - s.focus_started_at}))
        s = replace(s, hesitation_recorded=True)

    if s.last_change_at is not None:
        interval = now - s.last_change_at
        intervals = (s.recent_typing_intervals + (interval,))[-2 * DROPOFF_WINDOW:]
        s = replace(s, recent_typing_intervals=intervals)
        if interval > 0:
            rate = 1000.0 / interval
            s = replace(s, last_typing_rate=rate)
            out.append(Emission("typing_rate", {"rate": rate}))
    s = replace(s, last_change_at=now)

    if is_deletion(ev.input_type):
        s = replace(s, backspace_count=s.backspace_count + 1)
        out.append(Emission("backspace", {"backspaceCount": s.backspace_count}))
    elif is_insertion(ev.input_type):
        s = replace(s, char_count=s.char_count + 1)

    if s.char_count > 0:
        out.append(Emission("correction_rate", {"correctionRate": s.correction_rate}))

    drop = typing_dropoff(s.recent_typing_intervals, th.dropoff_slowdown_factor)
    if drop is not None:
        out.append(Emission("typing_speed_dropoff", {"prevAvg": drop[0], "currAvg": drop[1]}))
    return s, out


def on_paste(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    s = replace(s, paste_count=s.paste_count + 1)
    return s, [Emission("paste", {"pasteCount": s.paste_count})]


def on_pointer_enter(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    return replace(s, hover_started_at=ev.at), []


def on_pointer_leave(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    if s.hover_started_at is None:
        return s, []
    total = s.total_hover_ms + (ev.at - s.hover_started_at)
    s = replace(s, total_hover_ms=total, hover_started_at=None)
    return s, [Emission("hover", {"totalHoverMs": total})]


def on_click(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    now = ev.at
    clicks = tuple(t for t in s.recent_click_timestamps + (now,) if now - t < th.rage_window_ms)
    s = replace(s, recent_click_timestamps=clicks)
    if len(clicks) >= th.rage_min_clicks:
        return s, [Emission("rage_click", {"count": len(clicks)})]
    return s, []


def on_blur(s: FieldInteractionState, ev: Interaction, th: FrictionThresholds) -> Transition:
    snapshot = {
        "totalHoverMs": s.total_hover_ms,
        "backspaceCount": s.backspace_count,
        "charCount": s.char_count,
        "correctionRate": s.correction_rate,
        "focusCount": s.focus_count,
        "pasteCount": s.paste_count,
    }
    return s.reset(), [Emission("field_blur", snapshot)]


HANDLERS: Dict[str, Callable[..., Transition]] = {
    FOCUS: on_focus,
    INPUT: on_input,
    PASTE: on_paste,
    POINTER_ENTER: on_pointer_enter,
    POINTER_LEAVE: on_pointer_leave,
    CLICK: on_click,
    BLUR: on_blur,
}


def transition(
    state: FieldInteractionState,
    interaction: Interaction,
    thresholds: FrictionThresholds = DEFAULT_THRESHOLDS,
) -> Transition:
    try:
        handler = HANDLERS[interaction.kind]
    except KeyError:
        raise ValueError(f"unknown interaction kind: {interaction.kind!r}") from None
    return handler(state, interaction, thresholds)
