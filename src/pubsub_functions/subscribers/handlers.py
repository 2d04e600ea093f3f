"""Message-triggered handlers.

Each handler receives one delivered :class:`PubsubMessage`. Malformed input is
logged and absorbed so the platform never redelivers a message that can not
be processed anyway.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pubsub_functions.errors import BusinessRejection, DecodeError
from pubsub_functions.schemas.envelope import PubsubMessage
from pubsub_functions.schemas.orders import OrderResult, decode_order
from pubsub_functions.utils.logger_util import get_logger

logger = get_logger(__name__)

FALLBACK_NAME = "World"

ORDER_TYPE_MESSAGES = {
    "standard": "Processing standard order",
    "express": "Processing express order - priority handling",
    "bulk": "Processing bulk order - special pricing",
}


class ProcessingDelay:
    """Awaitable pause standing in for real order work."""

    def __init__(self, ms: int = 100):
        self.ms = max(0, int(ms))

    async def __call__(self) -> None:
        if self.ms:
            await asyncio.sleep(self.ms / 1000.0)


def no_delay() -> ProcessingDelay:
    return ProcessingDelay(0)


def greeting(name: Optional[str]) -> str:
    return f"Hello {name or FALLBACK_NAME}!"


def hello_pubsub(message: PubsubMessage) -> None:
    logger.info(greeting(message.text()))
    return None


def _name_from_json(message: PubsubMessage) -> Optional[str]:
    decoded = message.decode_json()
    if not decoded.ok:
        raise decoded.error
    if not isinstance(decoded.value, dict):
        raise DecodeError(f"expected a JSON object, got {type(decoded.value).__name__}")
    if "name" not in decoded.value:
        raise DecodeError("JSON payload has no 'name' field")
    name = decoded.value["name"]
    return name if isinstance(name, str) else (str(name) if name is not None else None)


def hello_pubsub_json(message: PubsubMessage) -> None:
    name = None
    try:
        name = _name_from_json(message)
    except DecodeError as e:
        logger.error("PubSub message was not JSON with a name: %s", e.message, extra={"context": {"messageId": message.message_id}})
    logger.info(greeting(name))
    return None


def hello_pubsub_attributes(message: PubsubMessage) -> None:
    logger.info(greeting(message.attribute("name")))
    return None


async def process_order(message: PubsubMessage, delay: ProcessingDelay | None = None) -> Optional[Dict[str, Any]]:
    if delay is None:
        delay = ProcessingDelay()
    try:
        decoded = message.decode_json()
        if not decoded.ok:
            raise decoded.error
        result = decode_order(decoded.value)
        if not result.ok:
            raise BusinessRejection(result.missing, payload=decoded.value)

        order = result.order
        logger.info(
            "Processing order %s", order.order_id,
            extra={"context": {
                "orderId": order.order_id,
                "customerId": order.customer_id,
                "total": order.total,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }},
        )

        category = ORDER_TYPE_MESSAGES.get(order.type) if isinstance(order.type, str) else None
        if category is not None:
            logger.info(category)
        else:
            logger.warning("Unknown order type: %s", order.type)

        await delay()

        logger.info("Order %s processed successfully", order.order_id)
        return OrderResult(order_id=order.order_id).model_dump(by_alias=True)
    except BusinessRejection as e:
        logger.error("Invalid order data: %s", e.message, extra={"context": {"payload": e.payload}})
        return None
    except DecodeError as e:
        logger.error("Invalid order data: %s", e.message, extra={"context": {"messageId": message.message_id}})
        return None
    except Exception:
        logger.exception("Error processing order")
        return None
