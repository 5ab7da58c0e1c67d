"""
End-to-end: synthetic personas drive the tracker into a store, then the store is analysed.
"""

import random

import pandas as pd
import pytest

from formfix.analysis.dropoff import analyze_dropoff
from formfix.analysis.friction import analyze_friction
from formfix.analysis.recommendations import recommend
from formfix.capture.transport import StoreTransport
from formfix.synthetic.personas import PERSONAS, run_persona
from formfix.workers.export_metrics import export


@pytest.fixture(autouse=True)
def seeded():
    random.seed(7)


def types(events):
    return [e.type for e in events]


class TestPersonas:
    @pytest.mark.parametrize("name", sorted(PERSONAS))
    def test_each_persona_is_one_session(self, name):
        events = run_persona(name, t0=0)
        assert events
        assert len({e.sessionId for e in events}) == 1
        assert {e.form for e in events} == {"contact"}

    def test_smooth_submits(self):
        events = run_persona("smooth", t0=0)
        assert types(events).count("form_submit") == 1
        assert "form_abandon" not in types(events)
        assert analyze_friction(events).score == "Low"

    def test_hesitant_gets_clarity_recommendation(self):
        recs = recommend(run_persona("hesitant", t0=0))
        assert ("Message", "field_clarity") in [(r.field, r.type) for r in recs]

    def test_corrector_flags_email(self):
        events = run_persona("corrector", t0=0)
        assert "typing_speed_dropoff" in types(events)
        fields = [p.field for p in analyze_friction(events).problematicFields]
        assert fields == ["Email"]
        assert ("Email", "field_validation") in [(r.field, r.type) for r in recommend(events)]

    def test_rager(self):
        events = run_persona("rager", t0=0)
        [issue] = analyze_friction(events).problematicFields
        assert issue.field == "Subject"
        assert issue.issues.rageClicks
        assert analyze_dropoff(events).points[0].lastField == "Subject"

    def test_abandoner_left_after_email(self):
        report = analyze_dropoff(run_persona("abandoner", t0=0))
        assert report.abandonments == 1
        assert report.points[0].lastField == "Email"


class TestThroughStore:
    def test_all_personas(self, store):
        transport = StoreTransport(store)
        for name in PERSONAS:
            run_persona(name, transport, t0=0)
        report = analyze_dropoff(store.read_all())
        assert report.totalSessions == len(PERSONAS)
        assert report.completions == 3
        assert report.abandonments == 2
        assert report.dropOffRate == pytest.approx(40.0)

    def test_export_to_parquet(self, store, tmp_path):
        run_persona("rager", StoreTransport(store), t0=0)
        path = export(store, tmp_path / "parquet")
        assert path is not None and path.exists()
        df = pd.read_parquet(path)
        assert len(df) == len(store)
        assert {"sessionId", "field", "type", "ts", "receivedAt"} <= set(df.columns)

    def test_export_empty_store(self, store, tmp_path):
        assert export(store, tmp_path) is None
