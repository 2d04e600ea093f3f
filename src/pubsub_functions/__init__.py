"""HTTP publish endpoints and message-triggered handlers for Google Cloud Pub/Sub."""

__version__ = "0.1.0"
