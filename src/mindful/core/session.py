"""
ChatSession: one user's conversation with the companion.

Each turn classifies the user's text, builds a stateless prompt, asks the
provider chain for a reply and appends both messages to an append-only
log. Provider calls are blocking HTTP, so they run in a worker thread and
the event loop stays free while a reply is pending.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..content.exercises import suggested_actions_for
from ..llm.chain import ProviderChain
from ..llm.classifier import CALM, EmotionClassifier
from ..llm.prompts import PromptBuilder

logger = logging.getLogger(__name__)

SENDER_USER = "user"
SENDER_ASSISTANT = "assistant"


def _new_message_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Message:
    """One entry of the conversation log. Never modified after creation."""
    content: str
    sender: str
    emotion: Optional[str] = None
    suggested_actions: Optional[Tuple[str, ...]] = None
    id: str = field(default_factory=_new_message_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender,
            "timestamp": self.timestamp.isoformat(),
            "emotion": self.emotion,
            "suggested_actions": list(self.suggested_actions) if self.suggested_actions else None,
        }


class ChatSession:
    """
    Owns the message log for a single conversation.

    Sends are expected one at a time (the UI waits for the reply before
    allowing the next message); nothing here enforces it.
    """

    def __init__(
        self,
        chain: ProviderChain,
        classifier: Optional[EmotionClassifier] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        persona_key: str = "friend",
    ):
        self.chain = chain
        self.classifier = classifier or EmotionClassifier()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.persona_key = self.prompt_builder.persona(persona_key).key
        self._log: List[Message] = []
        self._pending = 0

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._log)

    @property
    def is_awaiting_reply(self) -> bool:
        """True while a reply is outstanding (drives the typing indicator)."""
        return self._pending > 0

    def set_persona(self, persona_key: Optional[str]) -> str:
        """Switch persona for later turns; unknown keys fall back to the default."""
        self.persona_key = self.prompt_builder.persona(persona_key).key
        return self.persona_key

    def _append(self, message: Message) -> Message:
        self._log.append(message)
        return message

    async def send_user_message(self, text: str) -> Tuple[Message, Message]:
        """Run one turn. Returns (user message, assistant message)."""
        emotion = self.classifier.classify(text)
        user_msg = self._append(Message(content=text, sender=SENDER_USER, emotion=emotion))
        logger.info(f"[ChatSession] User message classified as '{emotion}' (persona={self.persona_key})")

        prompt = self.prompt_builder.build(text, self.persona_key, emotion)

        self._pending += 1
        try:
            reply = await asyncio.to_thread(self.chain.respond, prompt)
        finally:
            self._pending -= 1

        actions = suggested_actions_for(emotion)
        assistant_msg = self._append(Message(
            content=reply,
            sender=SENDER_ASSISTANT,
            emotion=CALM,
            suggested_actions=tuple(actions) if actions else None,
        ))
        return user_msg, assistant_msg
