from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from pubsub_functions.errors import MethodNotAllowedError, SubmissionError, ValidationError
from pubsub_functions.publisher import Publisher
from pubsub_functions.schemas.envelope import MessageEnvelope
from pubsub_functions.utils.logger_util import get_logger

logger = get_logger(__name__)

WRITE_METHOD = "POST"


class PublisherGateway:
    """Request-triggered publish operations.

    Each operation validates the request body, builds one
    :class:`MessageEnvelope`, makes a single publish attempt and returns the
    acknowledgement body. Failures are raised as :mod:`pubsub_functions.errors`
    types carrying the HTTP status for the caller.
    """

    def __init__(self, publisher: Publisher, default_topic: str | None = None):
        self.publisher = publisher
        self.default_topic = default_topic

    def _check_method(self, method: str):
        if (method or "").upper() != WRITE_METHOD:
            raise MethodNotAllowedError(method)

    def _resolve_topic(self, body: Mapping[str, Any]) -> str:
        topic = body.get("topic")
        if topic is None or topic == "":
            topic = self.default_topic
        if not topic:
            raise ValidationError("Topic is required", field="topic")
        if not isinstance(topic, str):
            raise ValidationError("Topic must be a string", field="topic")
        return topic

    @staticmethod
    def _require_message(body: Mapping[str, Any]) -> str:
        message = body.get("message")
        if message is None or message == "":
            raise ValidationError("Message is required", field="message")
        if not isinstance(message, str):
            raise ValidationError("Message must be a string", field="message")
        return message

    @staticmethod
    def _attributes(body: Mapping[str, Any]) -> Dict[str, str]:
        attributes = body.get("attributes")
        if attributes is None:
            return {}
        if not isinstance(attributes, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in attributes.items()):
            raise ValidationError("Attributes must be a mapping of strings to strings", field="attributes")
        return dict(attributes)

    def _envelope(self, **fields) -> MessageEnvelope:
        try:
            return MessageEnvelope(**fields)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid message: {e.errors()[0].get('msg')}") from e

    async def _submit(self, envelope: MessageEnvelope, label: str) -> str:
        try:
            # publisher clients block on the network round trip
            return await asyncio.to_thread(self.publisher.publish, envelope)
        except Exception as e:
            err = SubmissionError(envelope.topic, cause=e)
            logger.error("Error publishing %s to topic %s: %s", label, envelope.topic, err.detail(), exc_info=e)
            raise err from e

    async def publish_message(self, method: str, body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        self._check_method(method)
        body = body or {}
        message = self._require_message(body)
        topic = self._resolve_topic(body)
        envelope = self._envelope(topic=topic, body=message.encode("utf-8"))
        message_id = await self._submit(envelope, "message")
        logger.info("Message %s published to topic %s", message_id, topic, extra={"context": {"messageId": message_id, "topic": topic}})
        return {"success": True, "messageId": message_id, "topic": topic, "message": message}

    async def publish_json(self, method: str, body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        self._check_method(method)
        body = body or {}
        data = body.get("data")
        if data is None:
            raise ValidationError("Data is required", field="data")
        topic = self._resolve_topic(body)
        envelope = self._envelope(topic=topic, json_payload=data)
        message_id = await self._submit(envelope, "JSON message")
        logger.info("JSON message %s published to topic %s", message_id, topic, extra={"context": {"messageId": message_id, "topic": topic}})
        return {"success": True, "messageId": message_id, "topic": topic, "data": data}

    async def publish_with_attributes(self, method: str, body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        self._check_method(method)
        body = body or {}
        message = self._require_message(body)
        topic = self._resolve_topic(body)
        attributes = self._attributes(body)
        envelope = self._envelope(topic=topic, body=message.encode("utf-8"), attributes=attributes)
        message_id = await self._submit(envelope, "message with attributes")
        logger.info(
            "Message %s published to topic %s with attributes", message_id, topic,
            extra={"context": {"messageId": message_id, "topic": topic, "attributes": attributes}},
        )
        return {"success": True, "messageId": message_id, "topic": topic, "message": message, "attributes": attributes}
