from .handlers import (
    FALLBACK_NAME,
    ProcessingDelay,
    no_delay,
    hello_pubsub,
    hello_pubsub_json,
    hello_pubsub_attributes,
    process_order,
)
from .registry import TriggerRegistry, build_registry

__all__ = [
    "FALLBACK_NAME",
    "ProcessingDelay",
    "no_delay",
    "hello_pubsub",
    "hello_pubsub_json",
    "hello_pubsub_attributes",
    "process_order",
    "TriggerRegistry",
    "build_registry",
]
