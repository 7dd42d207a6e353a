# src/campfire_stage/schemas/message.py
"""Message-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageCreate(BaseModel):
    """Schema for posting a message to a group."""

    group_id: str = Field(..., description="Target group id")
    content: str = Field(..., min_length=1, max_length=4000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        """Reject content made only of whitespace."""
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class MessageUpdate(BaseModel):
    """Schema for editing a message's content."""

    content: str = Field(..., min_length=1, max_length=4000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class MessageResponse(BaseModel):
    """Schema for message information returned by the API."""

    id: str
    group_id: str
    sender_id: str
    sender_name: str
    content: str
    timestamp: int
    is_edited: bool
    edited_at: int | None = None

    model_config = ConfigDict(from_attributes=True)
