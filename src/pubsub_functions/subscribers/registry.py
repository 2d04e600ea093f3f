from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Dict, List, Tuple

from pubsub_functions.config import Settings
from pubsub_functions.schemas.envelope import PubsubMessage
from pubsub_functions.utils.logger_util import get_logger

from .handlers import ProcessingDelay, hello_pubsub, hello_pubsub_attributes, hello_pubsub_json, process_order

logger = get_logger(__name__)

Handler = Callable[[PubsubMessage], Any]


class TriggerRegistry:
    """Binds message handlers to topic names.

    ``on_publish(topic)`` is used as a decorator (or called directly with a
    handler) and ``dispatch`` invokes every handler bound to a topic once for
    one delivered message. Coroutine handlers are awaited.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Tuple[str, Handler]]] = {}

    def on_publish(self, topic: str, name: str | None = None):
        if not topic:
            raise ValueError("on_publish requires a topic name")

        def _register(fn: Handler) -> Handler:
            label = name or getattr(fn, "__name__", None) or repr(fn)
            self._handlers.setdefault(topic, []).append((label, fn))
            logger.debug("registered handler %s on topic %s", label, topic)
            return fn

        return _register

    def topics(self) -> List[str]:
        return sorted(self._handlers)

    def handlers_for(self, topic: str) -> List[Tuple[str, Handler]]:
        return list(self._handlers.get(topic, []))

    async def dispatch(self, topic: str, message: PubsubMessage) -> Dict[str, Any]:
        """Run each handler for ``topic``; exceptions propagate to the caller."""
        results: Dict[str, Any] = {}
        for label, fn in self.handlers_for(topic):
            logger.debug("delivering message %s on %s to %s", message.message_id, topic, label)
            out = fn(message)
            if inspect.isawaitable(out):
                out = await out
            results[label] = out
        return results


def build_registry(settings: Settings, delay: ProcessingDelay | None = None) -> TriggerRegistry:
    """Registry with the greeting handlers on the greeting topic and order processing on the orders topic."""
    registry = TriggerRegistry()
    greeting_topic = settings.resolved_greeting_topic
    if greeting_topic:
        registry.on_publish(greeting_topic)(hello_pubsub)
        registry.on_publish(greeting_topic)(hello_pubsub_json)
        registry.on_publish(greeting_topic)(hello_pubsub_attributes)
    else:
        logger.warning("no greeting topic configured; greeting handlers are not bound")
    if delay is None:
        delay = ProcessingDelay(settings.order_delay_ms)
    registry.on_publish(settings.orders_topic, name="process_order")(functools.partial(process_order, delay=delay))
    return registry
