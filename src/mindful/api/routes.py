"""
REST API routes for the companion.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from ..content.exercises import catalog
from ..content.templates import welcome_message
from ..core.session import ChatSession
from .schemas import (
    ChatRequest,
    ChatResponse,
    MessageData,
    PersonaRequest,
    PersonaResponse,
    StartSessionRequest,
    StartSessionResponse,
    StatusResponse,
)
from .session import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Global session manager (created on first use)
session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    global session_manager
    if session_manager is None:
        session_manager = SessionManager()
    return session_manager


def _require_session(session_id: str) -> ChatSession:
    session = get_session_manager().get_session(session_id)
    if session is None:
        raise HTTPException(404, f"Session {session_id} not found")
    return session


@router.get("/status", response_model=StatusResponse)
async def status():
    """Configured providers (in fallback order) and available personas."""
    sm = get_session_manager()
    return StatusResponse(providers=sm.chain.provider_names, personas=sm.catalog.keys())


@router.post("/session/start", response_model=StartSessionResponse)
async def start_session(request: StartSessionRequest = StartSessionRequest()):
    """Start a new chat session."""
    sm = get_session_manager()
    session_id = sm.create_session(persona=request.persona)
    session = sm.get_session(session_id)
    return StartSessionResponse(
        session_id=session_id,
        persona=session.persona_key,
        message=welcome_message(request.name),
    )


@router.post("/session/{session_id}/chat", response_model=ChatResponse)
async def chat(session_id: str, request: ChatRequest):
    """Send one user message and get the companion's reply."""
    session = _require_session(session_id)
    user_msg, reply = await session.send_user_message(request.message)
    return ChatResponse(
        user_message=MessageData(**user_msg.to_dict()),
        reply=MessageData(**reply.to_dict()),
    )


@router.get("/session/{session_id}/messages", response_model=List[MessageData])
async def get_messages(session_id: str):
    """The session's conversation log, oldest first."""
    session = _require_session(session_id)
    return [MessageData(**m.to_dict()) for m in session.messages]


@router.post("/session/{session_id}/persona", response_model=PersonaResponse)
async def set_persona(session_id: str, request: PersonaRequest):
    """Switch persona for the rest of the session."""
    session = _require_session(session_id)
    return PersonaResponse(persona=session.set_persona(request.persona))


@router.delete("/session/{session_id}", status_code=204)
async def end_session(session_id: str):
    """Forget a session and its conversation log."""
    if not get_session_manager().delete_session(session_id):
        raise HTTPException(404, f"Session {session_id} not found")
    logger.info(f"[API] Session {session_id} ended")


@router.get("/exercises")
async def get_exercises():
    """Breathing exercises, grounding steps and journaling prompts."""
    return catalog()
