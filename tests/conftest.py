import pytest

from formfix.events import FrictionEvent
from formfix.store import InMemoryMetricStore


@pytest.fixture
def store():
    return InMemoryMetricStore()


@pytest.fixture
def ev():
    """Factory for FrictionEvents with sensible defaults."""

    def make(type_, field="Email", session="s1", ts=None, **data):
        return FrictionEvent(sessionId=session, form="contact", field=field, type=type_, data=data, ts=ts)

    return make
