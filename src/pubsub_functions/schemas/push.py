"""Wire format of Pub/Sub push deliveries.

A push subscription POSTs::

    {"message": {"data": "<base64>", "attributes": {...},
                 "messageId": "...", "publishTime": "..."},
     "subscription": "projects/p/subscriptions/s"}

``message_id``/``publish_time`` (snake case) are sent alongside the camel case
keys by the service; either is accepted.
"""

from __future__ import annotations

import base64
import binascii
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pubsub_functions.errors import DeliveryError
from .envelope import PubsubMessage


class PushMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: Optional[str] = None
    attributes: Optional[Dict[str, str]] = None
    message_id: Optional[str] = Field(None, validation_alias=AliasChoices("messageId", "message_id"))
    publish_time: Optional[str] = Field(None, validation_alias=AliasChoices("publishTime", "publish_time"))


class PushRequest(BaseModel):
    message: PushMessage
    subscription: Optional[str] = None

    @field_validator("subscription")
    def _strip_subscription(cls, v: Optional[str]):
        return v.strip() if isinstance(v, str) else v

    def to_message(self) -> PubsubMessage:
        raw = None
        if self.message.data:
            try:
                raw = base64.b64decode(self.message.data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise DeliveryError(f"message data is not valid base64: {e}") from e
        return PubsubMessage(
            data=raw,
            attributes=self.message.attributes or {},
            message_id=self.message.message_id,
            publish_time=self.message.publish_time,
        )
