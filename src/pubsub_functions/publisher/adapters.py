from __future__ import annotations

import itertools
import threading
import time
from collections import deque
from typing import Deque, List, Protocol

from google.cloud import pubsub_v1

from pubsub_functions.schemas.envelope import MessageEnvelope
from pubsub_functions.utils.logger_util import get_logger

logger = get_logger(__name__)


class Publisher(Protocol):
    """Pluggable publish interface.

    Implementations submit one envelope to ``envelope.topic`` and return the
    identifier the queue assigned to it. Any exception means the message was
    not accepted; callers do not retry.
    """

    def publish(self, envelope: MessageEnvelope) -> str:
        ...


class InMemoryPublisher:
    """Deterministic publisher used in tests and local dev.

    Assigns increasing numeric ids and keeps only the last ``history``
    accepted envelopes across all topics. ``count`` is the number still held,
    ``accepted`` the number ever published. Setting ``fail_with`` makes the
    next publishes raise that exception.
    """

    def __init__(self, fail_with: BaseException | None = None, history: int = 100):
        if history < 1:
            raise ValueError("history must be at least 1")
        self.fail_with = fail_with
        self.history = int(history)
        self.accepted = 0
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.published: Deque[MessageEnvelope] = deque(maxlen=self.history)

    def publish(self, envelope: MessageEnvelope) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            message_id = str(next(self._ids))
            self.published.append(envelope)
            self.accepted += 1
        logger.debug("InMemoryPublisher accepted message %s on %s (%d bytes)", message_id, envelope.topic, len(envelope.data()))
        return message_id

    def messages(self, topic: str) -> List[MessageEnvelope]:
        with self._lock:
            return [e for e in self.published if e.topic == topic]

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.published)


class PubSubPublisher:
    """Publisher backed by google-cloud-pubsub.

    Topic names are expanded to ``projects/<project>/topics/<name>`` unless the
    caller already passes a full topic path.
    """

    def __init__(self, project_id: str | None = None, client: pubsub_v1.PublisherClient | None = None, timeout: float | None = None):
        if not project_id:
            raise ValueError("PubSubPublisher requires a project id; set GOOGLE_CLOUD_PROJECT")
        self.project_id = project_id
        self.timeout = timeout
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> pubsub_v1.PublisherClient:
        # created on first use so constructing the adapter needs no credentials
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = self._new_client()
        return self._client

    def _new_client(self) -> pubsub_v1.PublisherClient:
        return pubsub_v1.PublisherClient()

    def topic_path(self, topic: str) -> str:
        if topic.startswith("projects/"):
            return topic
        return self.client.topic_path(self.project_id, topic)

    def publish(self, envelope: MessageEnvelope) -> str:
        start = time.time()
        path = self.topic_path(envelope.topic)
        future = self.client.publish(path, envelope.data(), **envelope.attributes)
        message_id = future.result(timeout=self.timeout)
        logger.debug("PubSubPublisher published %s to %s in %.3fms", message_id, path, (time.time() - start) * 1000)
        return message_id


def create_publisher(name: str | None = None, project_id: str | None = None, **kwargs) -> Publisher:
    """Build the publisher named by ``name``; ``project_id`` only applies to Pub/Sub."""
    n = (name or "memory").strip().lower()
    if n in ("memory", "mock", "inmemory"):
        return InMemoryPublisher(**kwargs)
    if n in ("pubsub", "gcp", "google"):
        return PubSubPublisher(project_id=project_id, **kwargs)
    raise ValueError(f"Unknown publisher name: {name}")
