"""
Shared data models for the Emotion Journal service.

This module defines the core domain models used across multiple layers
of the application (storage, API, CLI). Attributes are snake_case in Python
and camelCase on the wire.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current UTC time truncated to the millisecond precision BSON stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class Record(BaseModel):
    """Fields shared by every persisted record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Identifier assigned by the store")
    created_at: datetime = Field(..., description="When the record was created")
    updated_at: datetime = Field(..., description="When the record was last modified")


class User(Record):
    """A registered journal owner."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address (unique)")


class Emotion(Record):
    """A single journal entry with its detected emotion label."""

    user_id: str = Field(..., description="Id of the owning user")
    email: str = Field(..., description="Owner's stored email at creation time")
    text: str = Field(..., description="Journal text")
    detected_emotion: str = Field(..., description="Emotion label, e.g. 'happy'")
