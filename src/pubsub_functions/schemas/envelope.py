from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pubsub_functions.errors import DecodeError


class MessageEnvelope(BaseModel):
    """Outbound unit handed to the publisher.

    Carries raw ``body`` bytes, a structured ``json_payload``, or both, plus
    string attributes. The model is frozen: nothing mutates an envelope once it
    has been built for submission.
    """

    model_config = ConfigDict(frozen=True)

    topic: str = Field(..., min_length=1)
    body: Optional[bytes] = None
    json_payload: Optional[Any] = None
    attributes: Dict[str, str] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    def _none_attributes(cls, v):
        return {} if v is None else v

    @model_validator(mode="after")
    def _require_content(self):
        if self.body is None and self.json_payload is None:
            raise ValueError("envelope requires a body or a json payload")
        return self

    def data(self) -> bytes:
        """Bytes placed on the wire: the raw body, else the JSON-encoded payload."""
        if self.body is not None:
            return self.body
        return json.dumps(self.json_payload, separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True)
class DecodeResult:
    value: Any = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PubsubMessage(BaseModel):
    """A message as delivered to a subscriber handler."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data: Optional[bytes] = None
    attributes: Dict[str, str] = Field(default_factory=dict)
    message_id: Optional[str] = Field(None, alias="messageId")
    publish_time: Optional[str] = Field(None, alias="publishTime")

    @field_validator("attributes", mode="before")
    def _none_attributes(cls, v):
        return {} if v is None else v

    @field_validator("data", mode="before")
    def _empty_data(cls, v):
        # an empty payload is delivered as "" or omitted; both mean no body
        if v in (b"", ""):
            return None
        return v

    def text(self) -> Optional[str]:
        if self.data is None:
            return None
        return self.data.decode("utf-8", errors="replace")

    def decode_json(self) -> DecodeResult:
        if self.data is None:
            return DecodeResult(error=DecodeError("message has no data to decode as JSON"))
        try:
            return DecodeResult(value=json.loads(self.data.decode("utf-8")))
        except (UnicodeDecodeError, ValueError) as e:
            return DecodeResult(error=DecodeError(f"message data is not valid JSON: {e}", cause=e))

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)
