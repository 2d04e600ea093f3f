import asyncio
import json
import logging

from fastapi.testclient import TestClient

from pubsub_functions.main import create_app
from pubsub_functions.subscribers import TriggerRegistry, build_registry, no_delay


def test_push_to_greeting_topic_runs_all_greeting_handlers(client, make_push_body, messages_at):
    body = make_push_body(data=json.dumps({"name": "Bob"}).encode(), attributes={"name": "Alice"})
    r = client.post("/pubsub/push/greetings", json=body)
    assert r.status_code == 200
    assert r.json()["handled"] == ["hello_pubsub", "hello_pubsub_json", "hello_pubsub_attributes"]
    assert r.json()["messageId"] == "123"
    info = messages_at(logging.INFO)
    assert 'Hello {"name": "Bob"}!' in info
    assert "Hello Bob!" in info
    assert "Hello Alice!" in info


def test_push_without_data_or_attributes(client, make_push_body, messages_at):
    r = client.post("/pubsub/push/greetings", json=make_push_body())
    assert r.status_code == 200
    assert messages_at(logging.INFO).count("Hello World!") == 3


def test_push_order(client, make_push_body, messages_at):
    order = {"orderId": "A-100", "customerId": "C-1", "total": 10, "type": "bulk"}
    r = client.post("/pubsub/push/orders", json=make_push_body(data=json.dumps(order).encode()))
    assert r.status_code == 200
    assert r.json()["handled"] == ["process_order"]
    assert "Order A-100 processed successfully" in messages_at(logging.INFO)


def test_push_rejected_order_is_still_acknowledged(client, make_push_body):
    r = client.post("/pubsub/push/orders", json=make_push_body(data=b'{"orderId": "A-1"}'))
    assert r.status_code == 200


def test_push_unknown_topic_is_404(client, make_push_body):
    r = client.post("/pubsub/push/nobody-listens", json=make_push_body(data=b"x"))
    assert r.status_code == 404
    assert "error" in r.json()


def test_push_malformed_wrapper_is_400(client):
    r = client.post("/pubsub/push/greetings", json={"subscription": "s"})
    assert r.status_code == 400
    r = client.post("/pubsub/push/greetings", content=b"nope", headers={"content-type": "application/json"})
    assert r.status_code == 400


def test_push_bad_base64_is_400(client):
    r = client.post("/pubsub/push/greetings", json={"message": {"data": "!!!not-base64!!!"}})
    assert r.status_code == 400


def test_push_handler_failure_is_500(settings, publisher, make_push_body):
    registry = TriggerRegistry()

    @registry.on_publish("boom")
    def explode(message):
        raise RuntimeError("handler crashed")

    client = TestClient(create_app(settings=settings, publisher=publisher, registry=registry))
    r = client.post("/pubsub/push/boom", json=make_push_body(data=b"x"))
    assert r.status_code == 500
    assert r.json() == {"error": "Handler failed"}


def test_registry_dispatch_awaits_coroutines(make_message):
    registry = TriggerRegistry()
    seen = []

    @registry.on_publish("t")
    def plain(message):
        seen.append("plain")
        return 1

    async def coro(message):
        seen.append("coro")
        return 2

    registry.on_publish("t", name="async_handler")(coro)
    results = asyncio.run(registry.dispatch("t", make_message(text="x")))
    assert results == {"plain": 1, "async_handler": 2}
    assert seen == ["plain", "coro"]


def test_registry_unknown_topic_dispatches_nothing(make_message):
    assert asyncio.run(TriggerRegistry().dispatch("none", make_message())) == {}


def test_build_registry_binds_configured_topics(settings):
    registry = build_registry(settings, delay=no_delay())
    assert registry.topics() == ["greetings", "orders"]
    assert [name for name, _ in registry.handlers_for("orders")] == ["process_order"]


def test_build_registry_greeting_topic_falls_back_to_default(settings):
    settings = settings.model_copy(update={"greeting_topic": None})
    registry = build_registry(settings)
    assert "your-topic-name" in registry.topics()
