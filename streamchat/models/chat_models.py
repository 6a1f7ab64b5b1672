from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatTurn(BaseModel):
    """A single message in the conversation, tagged with the role that produced it."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> ChatTurn:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> ChatTurn:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> ChatTurn:
        return cls(role=Role.ASSISTANT, content=content)


class UsageStats(BaseModel):
    """Server-reported token counts for one completed exchange."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)


class StreamUpdate(BaseModel):
    """One element of a streamed completion: a text fragment, usage, or both."""

    model_config = ConfigDict(frozen=True)

    fragment: Optional[str] = None
    usage: Optional[UsageStats] = None


class StreamResult(BaseModel):
    """The outcome of a fully consumed stream."""

    text: str
    usage: Optional[UsageStats] = None
