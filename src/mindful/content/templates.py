"""
Fixed user-facing copy for the companion.
"""

from __future__ import annotations

from typing import Optional

WELCOME_MESSAGE = "Hello{name}! I'm here to support you today. How are you feeling?"


def welcome_message(name: Optional[str] = None) -> str:
    name = (name or "").strip()
    return WELCOME_MESSAGE.format(name=f" {name}" if name else "")
