from .adapters import Publisher, InMemoryPublisher, PubSubPublisher, create_publisher

__all__ = ["Publisher", "InMemoryPublisher", "PubSubPublisher", "create_publisher"]
