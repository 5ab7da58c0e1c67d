from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .state import Emission

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormLifecycle:
    started: bool = False
    submitted: bool = False
    abandon_checked: bool = False


def mark_started(lc: FormLifecycle) -> FormLifecycle:
    return lc if lc.started else replace(lc, started=True)


def mark_submitted(lc: FormLifecycle, at: float, trigger: Optional[str] = None) -> Tuple[FormLifecycle, List[Emission]]:
    # only the first submit counts as a completion
    if lc.submitted:
        return lc, []
    data = {"submittedAt": at}
    if trigger:
        data["trigger"] = trigger
    return replace(lc, submitted=True), [Emission("form_submit", data)]


def check_abandon(lc: FormLifecycle, at: float) -> Tuple[FormLifecycle, List[Emission]]:
    """Teardown check. Runs once per form lifetime, whatever the outcome."""
    if lc.abandon_checked:
        return lc, []
    checked = replace(lc, abandon_checked=True)
    if lc.started and not lc.submitted:
        return checked, [Emission("form_abandon", {"abandonedAt": at})]
    return checked, []


class AbandonmentDetector:
    """Process-wide watcher: tears down every registered form at once."""

    def __init__(self):
        self._trackers = []

    def watch(self, tracker) -> None:
        if tracker not in self._trackers:
            self._trackers.append(tracker)

    def teardown(self, at: Optional[float] = None) -> list:
        emitted = []
        for tracker in self._trackers:
            emitted.extend(tracker.teardown(at))
        if emitted:
            log.info("teardown: %d form(s) abandoned", len(emitted))
        return emitted
