"""
Process configuration for the provider backends.

Values come from environment variables, with a `.env` file loaded first
for anything not already set. Settings are read once at startup and
passed explicitly to whoever needs them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class Settings:
    """Immutable provider configuration."""

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "anthropic/claude-3-haiku"
    hf_api_key: str = ""
    hf_base_url: str = "https://api-inference.huggingface.co"
    hf_model: str = "HuggingFaceH4/zephyr-7b-beta"
    timeout: float = 20.0
    app_url: str = "http://localhost:8000"
    app_title: str = "Mental Wellness Companion"


def load_dotenv(start: Optional[Path] = None) -> None:
    """Load .env file into os.environ (only vars not already set)."""
    here = Path(__file__).resolve()
    for parent in [start or Path.cwd()] + list(here.parents):
        env_path = parent / ".env"
        if env_path.exists():
            for line in env_path.read_text().splitlines():
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" in line:
                    key, value = line.split("=", 1)
                    key, value = key.strip(), value.strip().strip('"').strip("'")
                    if key and key not in os.environ:
                        os.environ[key] = value
            break  # only load the first .env found


def _first_env(names: Tuple[str, ...], default: str = "") -> str:
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return default


def load_settings(use_dotenv: bool = True) -> Settings:
    """Build Settings from the environment."""
    if use_dotenv:
        load_dotenv()

    defaults = Settings()
    timeout_raw = os.environ.get("MINDFUL_PROVIDER_TIMEOUT", "").strip()
    try:
        timeout = float(timeout_raw) if timeout_raw else defaults.timeout
    except ValueError:
        timeout = defaults.timeout

    return Settings(
        openrouter_api_key=_first_env(("OPENROUTER_API_KEY", "CLAUDE_TOKEN")),
        openrouter_base_url=_first_env(
            ("OPENROUTER_BASE_URL",), defaults.openrouter_base_url
        ).rstrip("/"),
        openrouter_model=_first_env(("OPENROUTER_MODEL",), defaults.openrouter_model),
        hf_api_key=_first_env(("HF_TOKEN", "HUGGINGFACE_API_KEY")),
        hf_base_url=_first_env(("HF_BASE_URL",), defaults.hf_base_url).rstrip("/"),
        hf_model=_first_env(("HF_MODEL",), defaults.hf_model),
        timeout=timeout if timeout > 0 else defaults.timeout,
        app_url=_first_env(("MINDFUL_APP_URL",), defaults.app_url),
        app_title=_first_env(("MINDFUL_APP_TITLE",), defaults.app_title),
    )
