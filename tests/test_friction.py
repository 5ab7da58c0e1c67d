"""
Tests for per-field friction aggregation and scoring.
"""

from formfix.analysis.frame import events_frame
from formfix.analysis.friction import analyze_friction, field_aggregates
from formfix.config import FrictionThresholds


class TestScoring:
    def test_backspaces_and_rage_click(self, ev):
        events = [
            ev("field_focus", focusCount=1),
            ev("backspace", backspaceCount=6),
            ev("rage_click", count=1),
        ]
        report = analyze_friction(events)
        assert report.score == "High"
        [issue] = report.problematicFields
        assert issue.field == "Email"
        assert issue.frictionScore == 5.0
        assert issue.issues.manyBackspaces is True
        assert issue.issues.highHesitation is False
        assert issue.issues.rageClicks is True

    def test_hesitation_alone(self, ev):
        events = [ev("hesitation", hesitation=3000), ev("hesitation", hesitation=5000)]
        [issue] = analyze_friction(events).problematicFields
        assert issue.frictionScore == 4.0
        assert issue.issues.highHesitation is True
        assert issue.issues.rageClicks is False

    def test_score_at_threshold_is_not_problematic(self, ev):
        report = analyze_friction([ev("hesitation", hesitation=3000)])
        assert report.score == "Low"
        assert report.problematicFields == []

    def test_empty(self):
        report = analyze_friction([])
        assert report.score == "Low"
        assert report.problematicFields == []

    def test_thresholds_are_overridable(self, ev):
        events = [ev("backspace", backspaceCount=6), ev("rage_click", count=1)]
        strict = FrictionThresholds(problematic_score=10)
        assert analyze_friction(events, strict).score == "Low"
        heavy = FrictionThresholds(backspace_weight=2.0)
        assert analyze_friction(events, heavy).problematicFields[0].frictionScore == 14.0


class TestAggregates:
    def test_running_backspace_counts_become_deltas(self, ev):
        # one cycle counting to 3, a second cycle counting to 2
        counts = [1, 2, 3, 1, 2]
        events = [ev("backspace", backspaceCount=n) for n in counts]
        agg = field_aggregates(events_frame(events))["Email"]
        assert agg.backspaces == 5

    def test_backspace_deltas_are_per_session(self, ev):
        events = [
            ev("backspace", session="a", backspaceCount=1),
            ev("backspace", session="b", backspaceCount=1),
            ev("backspace", session="a", backspaceCount=2),
            ev("backspace", session="b", backspaceCount=2),
        ]
        assert field_aggregates(events_frame(events))["Email"].backspaces == 4

    def test_rage_clicks_sum(self, ev):
        events = [ev("rage_click", count=3), ev("rage_click", count=4)]
        assert field_aggregates(events_frame(events))["Email"].rage_clicks == 7

    def test_latest_focus_count(self, ev):
        events = [ev("field_focus", focusCount=1), ev("field_focus", focusCount=3), ev("field_focus", focusCount=2)]
        assert field_aggregates(events_frame(events))["Email"].focus_count == 2

    def test_first_appearance_order(self, ev):
        events = [
            ev("field_focus", field="Name", focusCount=1),
            ev("field_focus", field="Email", focusCount=1),
            ev("hesitation", field="Name", hesitation=10),
            ev("field_focus", field="Message", focusCount=1),
        ]
        assert list(field_aggregates(events_frame(events))) == ["Name", "Email", "Message"]

    def test_non_numeric_payload_is_ignored(self, ev):
        events = [ev("hesitation", hesitation="slow"), ev("hesitation", hesitation=2000)]
        assert field_aggregates(events_frame(events))["Email"].hesitations == (2000.0,)


class TestDeterminism:
    def test_same_input_same_output(self, ev):
        events = [
            ev("hesitation", field="Name", ts=500, hesitation=4200),
            ev("backspace", field="Email", ts=100, backspaceCount=4),
            ev("rage_click", field="Subject", ts=300, count=3),
            ev("backspace", field="Email", ts=50, backspaceCount=8),
        ]
        first = analyze_friction(events)
        second = analyze_friction(list(events))
        assert first == second
        assert first.model_dump() == second.model_dump()
        assert [p.field for p in first.problematicFields] == ["Name", "Email", "Subject"]
