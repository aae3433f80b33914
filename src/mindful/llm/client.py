"""
HTTP clients for the hosted text-generation backends.

Two request shapes are supported:
  - OpenAI-compatible /chat/completions (OpenRouter), reply at
    choices[0].message.content
  - Hugging Face inference API, reply at [0].generated_text

Every failure mode (missing key, transport error, timeout, non-2xx,
malformed payload, empty reply) surfaces as a single ProviderError so
the chain can treat them uniformly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from .config import Settings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider cannot produce a usable reply."""

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"{provider} error {status_code}: {message}")


@dataclass
class HTTPProvider:
    """
    Base class for a single-shot POST to a generation endpoint.

    Subclasses define the URL, the request body and where the reply lives
    in the response. One call is one attempt: no retries here.
    """

    name: str = "provider"
    api_key: str = field(default="", repr=False)
    base_url: str = ""
    model: str = ""
    timeout: float = 20.0

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _url(self) -> str:
        raise NotImplementedError

    def _body(self, prompt: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _extract(self, data: Any) -> str:
        raise NotImplementedError

    def generate(self, prompt: str) -> str:
        """Send the prompt and return the generated text. Raises ProviderError."""
        if not self.api_key:
            raise ProviderError(self.name, 401, "No API key configured")

        try:
            resp = requests.post(
                self._url(),
                headers=self._headers(),
                json=self._body(prompt),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise ProviderError(self.name, 408, "Request timed out")
        except requests.exceptions.RequestException as e:
            raise ProviderError(self.name, 0, f"Connection error: {e}")

        if not 200 <= resp.status_code < 300:
            if resp.status_code == 429:
                retry_after = resp.headers.get("Retry-After", "?")
                raise ProviderError(
                    self.name, 429, f"Rate limited (Retry-After: {retry_after}s)"
                )
            raise ProviderError(self.name, resp.status_code, resp.text[:200])

        try:
            text = self._extract(resp.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, 502, f"Malformed payload: {e!r}")

        if not isinstance(text, str) or not text.strip():
            raise ProviderError(self.name, 502, "Empty reply")
        return text.strip()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class OpenRouterProvider(HTTPProvider):
    """Chat-completion endpoint with a single user message."""

    name: str = "openrouter"
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "anthropic/claude-3-haiku"
    referer: str = "http://localhost:8000"
    title: str = "Mental Wellness Companion"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["HTTP-Referer"] = self.referer
        headers["X-Title"] = self.title
        return headers

    def _url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def _body(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _extract(self, data: Any) -> str:
        return data["choices"][0]["message"]["content"]


@dataclass
class HuggingFaceProvider(HTTPProvider):
    """Text-generation inference endpoint taking the raw prompt as `inputs`."""

    name: str = "huggingface"
    base_url: str = "https://api-inference.huggingface.co"
    model: str = "HuggingFaceH4/zephyr-7b-beta"

    def _url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}"

    def _body(self, prompt: str) -> Dict[str, Any]:
        return {"inputs": prompt}

    def _extract(self, data: Any) -> str:
        return data[0]["generated_text"]


def build_providers(settings: Optional[Settings] = None) -> list:
    """Primary then secondary provider, configured from settings."""
    settings = settings or Settings()
    primary = OpenRouterProvider(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        model=settings.openrouter_model,
        timeout=settings.timeout,
        referer=settings.app_url,
        title=settings.app_title,
    )
    secondary = HuggingFaceProvider(
        api_key=settings.hf_api_key,
        base_url=settings.hf_base_url,
        model=settings.hf_model,
        timeout=settings.timeout,
    )
    for provider in (primary, secondary):
        if not provider.is_configured:
            logger.info(f"[Providers] {provider.name} has no API key; it will be skipped at call time")
    return [primary, secondary]
