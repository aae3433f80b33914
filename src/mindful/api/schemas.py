"""
Pydantic request/response models for the companion API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# REQUEST MODELS
# =============================================================================

class StartSessionRequest(BaseModel):
    """Request to start a new chat session."""
    persona: Optional[str] = Field(None, description="Persona key (defaults to 'friend')")
    name: Optional[str] = Field(None, description="User's name for the greeting")


class ChatRequest(BaseModel):
    """One user turn."""
    message: str = Field(..., min_length=1, description="User's text")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class PersonaRequest(BaseModel):
    persona: str = Field(..., description="Persona key")


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class MessageData(BaseModel):
    """A single conversation log entry."""
    id: str
    content: str
    sender: str
    timestamp: str
    emotion: Optional[str] = None
    suggested_actions: Optional[List[str]] = None


class StartSessionResponse(BaseModel):
    session_id: str
    persona: str
    message: str


class ChatResponse(BaseModel):
    user_message: MessageData
    reply: MessageData


class PersonaResponse(BaseModel):
    persona: str


class StatusResponse(BaseModel):
    providers: List[str]
    personas: List[str]
