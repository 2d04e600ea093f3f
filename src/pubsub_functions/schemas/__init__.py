"""Schemas package: outbound envelopes, delivered messages, push wrappers and orders.

Models are pydantic; decode helpers return result objects instead of raising
so subscriber handlers can decide how to absorb bad input.
"""

from .envelope import MessageEnvelope, PubsubMessage, DecodeResult
from .orders import Order, OrderDecode, OrderResult, decode_order, REQUIRED_ORDER_FIELDS
from .push import PushMessage, PushRequest

__all__ = [
    "MessageEnvelope",
    "PubsubMessage",
    "DecodeResult",
    "Order",
    "OrderDecode",
    "OrderResult",
    "decode_order",
    "REQUIRED_ORDER_FIELDS",
    "PushMessage",
    "PushRequest",
]
