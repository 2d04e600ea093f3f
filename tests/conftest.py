import base64
import json
import logging
import os
from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

# tests/conftest.py

# the module-level app reads configuration on import
os.environ.setdefault("PUBSUB_PUBLISHER", "memory")
os.environ.setdefault("PUBSUB_DEFAULT_TOPIC", "your-topic-name")
os.environ.setdefault("PUBSUB_GREETING_TOPIC", "your-topic-name")

from pubsub_functions.config import Settings
from pubsub_functions.main import create_app
from pubsub_functions.publisher import InMemoryPublisher
from pubsub_functions.schemas.envelope import PubsubMessage
from pubsub_functions.subscribers import build_registry, no_delay
from pubsub_functions.utils.logger_util import set_package_level

LOGGER_NAMES = [
    "pubsub_functions.gateway",
    "pubsub_functions.main",
    "pubsub_functions.subscribers.handlers",
    "pubsub_functions.subscribers.registry",
]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        publisher="memory",
        default_topic="your-topic-name",
        greeting_topic="greetings",
        orders_topic="orders",
        order_delay_ms=0,
    )


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def app(settings, publisher):
    """FastAPI app wired to an in-memory publisher and a no-wait order handler."""
    return create_app(settings=settings, publisher=publisher, registry=build_registry(settings, delay=no_delay()))


@pytest.fixture
def client(app) -> TestClient:
    """TestClient for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_log_level():
    """Tests may raise the package log level through create_app; put it back."""
    yield
    set_package_level("INFO")


@pytest.fixture
def logs(caplog):
    """caplog attached to the package loggers (they do not propagate to root)."""
    loggers = [logging.getLogger(n) for n in LOGGER_NAMES]
    for lg in loggers:
        lg.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG)
    yield caplog
    for lg in loggers:
        lg.removeHandler(caplog.handler)


@pytest.fixture
def make_message() -> Callable[..., PubsubMessage]:
    """
    Return a helper that builds a delivered message.
    Usage: msg = make_message(json_data={"name": "Alice"}) or make_message(text="hi", attributes={...})
    """
    def _make(text: str = None, json_data: Any = None, raw: bytes = None, attributes: Dict[str, str] = None) -> PubsubMessage:
        data = raw
        if text is not None:
            data = text.encode("utf-8")
        elif json_data is not None:
            data = json.dumps(json_data).encode("utf-8")
        return PubsubMessage(data=data, attributes=attributes or {}, message_id="m-1")
    return _make


@pytest.fixture
def make_push_body() -> Callable[..., Dict[str, Any]]:
    """Build a push subscription request body the way Pub/Sub sends it."""
    def _make(data: bytes = None, attributes: Dict[str, str] = None, message_id: str = "123") -> Dict[str, Any]:
        message: Dict[str, Any] = {"messageId": message_id, "publishTime": "2026-10-19T10:00:00Z"}
        if data is not None:
            message["data"] = base64.b64encode(data).decode("ascii")
        if attributes is not None:
            message["attributes"] = attributes
        return {"message": message, "subscription": "projects/demo/subscriptions/demo-sub"}
    return _make


@pytest.fixture
def messages_at(logs):
    """Messages captured at one level: messages_at(logging.ERROR)."""
    def _at(level: int):
        return [r.getMessage() for r in logs.records if r.levelno == level]
    return _at
