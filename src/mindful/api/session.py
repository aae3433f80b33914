"""
In-memory session manager for the companion API.

Stores active ChatSession instances keyed by session_id. The provider
chain, classifier and prompt builder are built once and shared; each
session owns only its message log and persona.
"""

from __future__ import annotations

import uuid
from typing import Dict, Optional

from ..content.personas import PersonaCatalog
from ..core.session import ChatSession
from ..llm.chain import ProviderChain, build_provider_chain
from ..llm.classifier import EmotionClassifier
from ..llm.config import Settings, load_settings
from ..llm.prompts import PromptBuilder


class SessionManager:
    """Manages active chat sessions in memory."""

    def __init__(
        self,
        chain: Optional[ProviderChain] = None,
        catalog: Optional[PersonaCatalog] = None,
        settings: Optional[Settings] = None,
    ):
        if chain is None:
            chain = build_provider_chain(settings or load_settings())
        self.chain = chain
        self.catalog = catalog or PersonaCatalog()
        self.classifier = EmotionClassifier()
        self.prompt_builder = PromptBuilder(self.catalog)
        self._sessions: Dict[str, ChatSession] = {}

    def create_session(self, persona: Optional[str] = None) -> str:
        """Create a new session and return its ID."""
        session_id = str(uuid.uuid4())[:8]
        self._sessions[session_id] = ChatSession(
            chain=self.chain,
            classifier=self.classifier,
            prompt_builder=self.prompt_builder,
            persona_key=persona or self.catalog.default_key,
        )
        return session_id

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Drop a session. Returns False when it did not exist."""
        return self._sessions.pop(session_id, None) is not None
