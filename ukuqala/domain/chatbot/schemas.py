"""Chatbot schemas"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_TITLE = "New chat"


class ChatbotConversationCreate(BaseModel):
    title: Optional[str] = None

    @field_validator("title")
    @classmethod
    def default_title(cls, v):
        if v is None or not v.strip():
            return DEFAULT_TITLE
        return v.strip()


class ChatbotMessageCreate(BaseModel):
    content: str = Field(min_length=1)


class ReactionUpdate(BaseModel):
    reaction: Literal["like", "save"]
    active: bool = True


class ChatbotConversationResponse(BaseModel):
    id: str
    title: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChatbotMessageResponse(BaseModel):
    id: str
    role: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    reactions: list[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("reactions", mode="before")
    @classmethod
    def reaction_names(cls, v):
        return [r if isinstance(r, str) else r.reaction for r in v or []]
