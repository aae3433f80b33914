"""
Prompt construction for the companion.

Each request is stateless: the prompt carries the system directive, the
persona, the detected emotion and the user's text, nothing else. The user
text is inserted verbatim.
"""

from __future__ import annotations

from typing import Optional

from ..content.personas import SYSTEM_DIRECTIVE, PersonaCatalog, PersonaDirective


def build_prompt(
    system_directive: str,
    persona_directive: str,
    user_text: str,
    detected_emotion: str,
) -> str:
    """Compose the four prompt sections in fixed order."""
    parts = [
        "SYSTEM:",
        system_directive.strip(),
        "",
        persona_directive.strip(),
        "",
        f"User feeling: {detected_emotion}",
        "",
        "USER:",
        user_text,
    ]
    return "\n".join(parts)


class PromptBuilder:
    """Binds the system directive and persona catalog for per-turn prompt building."""

    def __init__(
        self,
        catalog: Optional[PersonaCatalog] = None,
        system_directive: str = SYSTEM_DIRECTIVE,
    ):
        self.catalog = catalog or PersonaCatalog()
        self.system_directive = system_directive

    def persona(self, persona_key: Optional[str]) -> PersonaDirective:
        return self.catalog.resolve(persona_key)

    def build(self, user_text: str, persona_key: Optional[str], detected_emotion: str) -> str:
        return build_prompt(
            self.system_directive,
            self.persona(persona_key).text,
            user_text,
            detected_emotion,
        )
