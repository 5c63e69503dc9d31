from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatTurn(BaseModel):
    """One message of a conversation, tagged with its speaker."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: Role
    content: str


class GenerationParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_tokens: int = Field(..., ge=1)
    temperature: float = Field(..., ge=0.0)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    session_id: Optional[str] = Field(None, alias="sessionId", description="Client-side conversation id")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    session_id: str = Field(..., alias="sessionId")


class ClearRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(None, alias="sessionId")


class ClearResponse(BaseModel):
    success: bool = True
