"""
ProviderChain: ordered fallback across text-generation providers.

Providers are tried strictly in order, one attempt each. The first usable
reply wins and nothing after it is contacted. When every provider fails,
the caller still gets a reply: a fixed, in-voice fallback message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .client import ProviderError, build_providers
from .config import Settings

logger = logging.getLogger(__name__)


FALLBACK_REPLY = (
    "I'm still here with you. Even if I'm facing connection issues, "
    "your feelings matter. Talk to me — I'm listening."
)


class Provider(Protocol):
    name: str

    def generate(self, prompt: str) -> str:
        ...


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one attempt against one provider."""
    provider: str
    text: Optional[str] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


class ProviderChain:
    """
    Sequential fallback over an immutable, ordered provider list.

    Every call restarts from the first provider; past failures never
    reorder the chain.
    """

    def __init__(self, providers: Sequence[Provider], fallback_reply: str = FALLBACK_REPLY):
        self._providers = tuple(providers)
        self.fallback_reply = fallback_reply

    @property
    def provider_names(self) -> List[str]:
        return [p.name for p in self._providers]

    def _try(self, provider: Provider, prompt: str) -> ProviderResult:
        name = getattr(provider, "name", type(provider).__name__)
        try:
            text = provider.generate(prompt)
        except ProviderError as e:
            return ProviderResult(provider=name, error=e)
        except Exception as e:
            logger.exception(f"[ProviderChain] Unexpected failure in {name}")
            return ProviderResult(provider=name, error=ProviderError(name, -1, repr(e)))

        if not isinstance(text, str) or not text.strip():
            return ProviderResult(provider=name, error=ProviderError(name, 502, "Empty reply"))
        return ProviderResult(provider=name, text=text.strip())

    def attempt(self, prompt: str) -> List[ProviderResult]:
        """
        Run the chain and return every attempt that was made, in order.

        The list ends at the first successful attempt, or covers all
        providers when none succeeded.
        """
        results: List[ProviderResult] = []
        for provider in self._providers:
            result = self._try(provider, prompt)
            results.append(result)
            if result.ok:
                logger.info(f"[ProviderChain] {result.provider} replied ({len(result.text)} chars)")
                break
            logger.warning(f"[ProviderChain] {result.provider} failed, trying next: {result.error}")
        return results

    def respond(self, prompt: str) -> str:
        """Return the first usable reply, or the fallback message. Never raises."""
        results = self.attempt(prompt)
        if results and results[-1].ok:
            return results[-1].text
        logger.warning(f"[ProviderChain] All {len(self._providers)} providers failed; sending fallback reply")
        return self.fallback_reply


def build_provider_chain(settings: Optional[Settings] = None) -> ProviderChain:
    """Primary (OpenRouter) then secondary (Hugging Face)."""
    return ProviderChain(build_providers(settings))
