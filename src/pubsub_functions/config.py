from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, field_validator

# read before any logger is configured so LOG_LEVEL from .env applies
dotenv.load_dotenv(".env")


class Settings(BaseModel):
    """Runtime configuration read from the environment (and ``.env``)."""

    # 'pubsub' uses google-cloud-pubsub, 'memory' keeps messages in-process
    publisher: str = "memory"
    project_id: Optional[str] = None
    # used when a publish request omits `topic`; no literal fallback
    default_topic: Optional[str] = None
    greeting_topic: Optional[str] = None
    orders_topic: str = "orders"
    order_delay_ms: int = Field(100, ge=0)
    log_level: str = "INFO"

    @field_validator("default_topic", "greeting_topic", "project_id", mode="before")
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level", mode="before")
    def _level_name(cls, v):
        return str(v or "INFO").strip().upper()

    @property
    def resolved_greeting_topic(self) -> Optional[str]:
        return self.greeting_topic or self.default_topic


def load_settings(env_file: str | None = ".env") -> Settings:
    if env_file:
        dotenv.load_dotenv(env_file)
    env = os.environ
    return Settings(
        publisher=env.get("PUBSUB_PUBLISHER", "memory"),
        project_id=env.get("GOOGLE_CLOUD_PROJECT"),
        default_topic=env.get("PUBSUB_DEFAULT_TOPIC"),
        greeting_topic=env.get("PUBSUB_GREETING_TOPIC"),
        orders_topic=env.get("PUBSUB_ORDERS_TOPIC", "orders"),
        order_delay_ms=env.get("ORDER_PROCESSING_DELAY_MS", 100),
        log_level=env.get("LOG_LEVEL", "INFO"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
