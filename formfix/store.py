from __future__ import annotations
import logging
import threading
from abc import ABC, abstractmethod
from typing import Tuple

import redis

from .config import Settings
from .events import FrictionEvent

log = logging.getLogger(__name__)


class MetricStore(ABC):
    """Append-only, receipt-ordered log of friction events."""

    name = "abstract"

    @abstractmethod
    def append(self, event: FrictionEvent) -> int:
        """Append one event and return its position (0-based)."""

    @abstractmethod
    def read_since(self, cursor: int) -> Tuple[FrictionEvent, ...]:
        """Events at positions >= cursor, in receipt order."""

    def read_all(self) -> Tuple[FrictionEvent, ...]:
        return self.read_since(0)

    @abstractmethod
    def __len__(self) -> int: ...

    def healthy(self) -> bool:
        return True


class InMemoryMetricStore(MetricStore):
    """Keeps its own deep copies; callers never share the stored payload dicts."""

    name = "memory"

    def __init__(self):
        self._events = []
        self._lock = threading.Lock()

    def append(self, event: FrictionEvent) -> int:
        with self._lock:
            self._events.append(event.model_copy(deep=True))
            return len(self._events) - 1

    def read_since(self, cursor: int) -> Tuple[FrictionEvent, ...]:
        with self._lock:
            stored = self._events[max(cursor, 0):]
        return tuple(ev.model_copy(deep=True) for ev in stored)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class RedisMetricStore(MetricStore):
    """Events kept as JSON strings in one Redis list; RPUSH keeps receipt order."""

    name = "redis"

    def __init__(self, client: redis.Redis, key: str = "formfix:metrics"):
        self.r = client
        self.key = key

    @classmethod
    def from_url(cls, url: str, key: str = "formfix:metrics") -> "RedisMetricStore":
        return cls(redis.Redis.from_url(url, decode_responses=False), key=key)

    def append(self, event: FrictionEvent) -> int:
        return int(self.r.rpush(self.key, event.model_dump_json())) - 1

    def read_since(self, cursor: int) -> Tuple[FrictionEvent, ...]:
        raw = self.r.lrange(self.key, max(cursor, 0), -1)
        return tuple(FrictionEvent.model_validate_json(item) for item in raw)

    def __len__(self) -> int:
        return int(self.r.llen(self.key))

    def healthy(self) -> bool:
        try:
            return bool(self.r.ping())
        except redis.RedisError as e:
            log.warning("redis ping failed: %r", e)
            return False


def build_store(settings: Settings) -> MetricStore:
    if settings.store == "redis":
        return RedisMetricStore.from_url(settings.redis_url, key=settings.redis_key)
    return InMemoryMetricStore()
