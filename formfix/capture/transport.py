from __future__ import annotations
import http.client
import json
import logging
import urllib.request
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Union

from ..errors import TransportError
from ..events import FrictionEvent
from ..ingest import Accepted, ingest
from ..store import MetricStore

log = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:8123/api/formfix"


@dataclass(frozen=True)
class Delivered:
    status: int


DeliveryResult = Union[Delivered, TransportError]


def wire_payload(event: FrictionEvent) -> dict:
    # receivedAt belongs to the server
    return event.model_dump(exclude={"receivedAt"})


class Transport(ABC):
    @abstractmethod
    def deliver(self, event: FrictionEvent) -> DeliveryResult:
        """Hand one event over. Never raises; failures come back as TransportError."""

    def close(self) -> None:
        pass


class HttpTransport(Transport):
    def __init__(self, url: str = DEFAULT_ENDPOINT, timeout: float = 2.0):
        self.url = url
        self.timeout = timeout

    def deliver(self, event: FrictionEvent) -> DeliveryResult:
        payload = wire_payload(event)
        data = json.dumps(payload).encode("utf-8")
        try:
            req = urllib.request.Request(self.url, data=data, headers={"Content-Type": "application/json"})
            with urllib.request.urlopen(req, timeout=self.timeout) as r:
                r.read()
                return Delivered(r.status)
        except (OSError, ValueError, http.client.HTTPException) as e:
            return TransportError(f"POST {self.url} failed: {e!r}", payload=payload)


class StoreTransport(Transport):
    """In-process delivery straight into a store (replays, tests, synthetic seeding)."""

    def __init__(self, store: MetricStore):
        self.store = store

    def deliver(self, event: FrictionEvent) -> DeliveryResult:
        payload = wire_payload(event)
        result = ingest(self.store, payload)
        if isinstance(result, Accepted):
            return Delivered(200)
        return TransportError(str(result.error), payload=payload)


class BackgroundTransport(Transport):
    """Fire-and-forget wrapper: delivery runs on a worker thread, failures are only logged."""

    QUEUED = 202

    def __init__(self, inner: Transport, max_workers: int = 2):
        self.inner = inner
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="formfix-send")

    def deliver(self, event: FrictionEvent) -> DeliveryResult:
        try:
            fut = self._pool.submit(self.inner.deliver, event)
        except RuntimeError as e:
            # pool already shut down
            return TransportError(str(e), payload=wire_payload(event))
        fut.add_done_callback(self._log_failure)
        return Delivered(self.QUEUED)

    @staticmethod
    def _log_failure(fut: Future) -> None:
        exc = fut.exception()
        result = exc if exc is not None else fut.result()
        if isinstance(result, BaseException):
            log.warning("[FormFix Metric] %s (POST failed): %s", getattr(result, "payload", None), result)

    def close(self) -> None:
        self._pool.shutdown(wait=True)
        self.inner.close()
