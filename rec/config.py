"""Configuration defaults, paths and provider credential resolution for rec."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from platformdirs import user_config_dir

from rec import credentials
from rec.errors import ConfigError

logger = logging.getLogger(__name__)

# Audio defaults
SAMPLE_RATE = 16000
INPUT_CHANNELS = 1
CHUNK_MS = 50

# Transcription defaults
MISTRAL_URL = "https://api.mistral.ai/v1/audio/transcriptions"
RELAY_PATH = "/api/transcribe"
MODEL_V1 = "voxtral-mini-2507"
MODEL_V2 = "voxtral-mini-2602"
TRANSCRIPTION_TIMEOUT = 60.0

# Correction defaults
DEFAULT_CLAUDE_MODEL = "claude-haiku-4-5"
CORRECTION_TIMEOUT = 30.0
CORRECTION_MAX_TOKENS = 1024
CONTEXT_WINDOW = 5

# Environment variables
ENV_RELAY_URL = "REC_API_URL"
ENV_RELAY_KEY = "REC_API_KEY"
ENV_MISTRAL_KEY = "MISTRAL_API_KEY"
ENV_ANTHROPIC_KEY = "ANTHROPIC_API_KEY"
ENV_CONFIG_DIR = "REC_CONFIG_DIR"

# Credentials that may also live in the OS keyring
KEYRING_NAMES = (ENV_MISTRAL_KEY, ENV_ANTHROPIC_KEY, ENV_RELAY_KEY)

Backend = Literal["relay", "mistral"]


def get_config_dir() -> Path:
    """Return the directory holding config.json, history.json and logs."""
    override = os.environ.get(ENV_CONFIG_DIR)
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir("rec", appauthor=False))


def get_config_file() -> Path:
    return get_config_dir() / "config.json"


def get_history_file() -> Path:
    return get_config_dir() / "history.json"


@dataclass(frozen=True)
class ProviderConfig:
    """Resolved provider settings, immutable for one invocation."""

    backend: Backend
    endpoint: str
    api_key: str | None
    model: str = MODEL_V1
    language: str | None = None
    anthropic_api_key: str | None = None
    claude_model: str = DEFAULT_CLAUDE_MODEL
    timeout: float = TRANSCRIPTION_TIMEOUT

    def __repr__(self) -> str:
        # Keep secrets out of logs
        return (
            f"ProviderConfig(backend={self.backend!r}, endpoint={self.endpoint!r}, "
            f"model={self.model!r}, language={self.language!r}, "
            f"claude_model={self.claude_model!r}, "
            f"api_key={'set' if self.api_key else 'unset'}, "
            f"anthropic_api_key={'set' if self.anthropic_api_key else 'unset'})"
        )


def lookup_credential(
    name: str, env: Mapping[str, str] | None = None, use_keyring: bool = True
) -> str | None:
    """Find a credential in the environment, falling back to the OS keyring."""
    env = os.environ if env is None else env
    value = (env.get(name) or "").strip()
    if value:
        return value
    if not use_keyring:
        return None
    return credentials.read_key(name)


def relay_endpoint(api_url: str) -> str:
    return api_url.rstrip("/") + RELAY_PATH


def resolve_provider_config(
    env: Mapping[str, str] | None = None,
    *,
    correct: bool = False,
    v2: bool = False,
    language: str | None = None,
    claude_model: str = DEFAULT_CLAUDE_MODEL,
    use_keyring: bool = True,
) -> ProviderConfig:
    """Resolve which transcription backend to use and with which credentials.

    Precedence:
        1. REC_API_URL and REC_API_KEY both set: relay backend
        2. MISTRAL_API_KEY set: direct backend
        3. Otherwise ConfigError

    When ``correct`` is requested ANTHROPIC_API_KEY must also resolve.

    Raises:
        ConfigError: If a required credential is missing
    """
    model = MODEL_V2 if v2 else MODEL_V1
    language = language.strip() if language and language.strip() else None

    anthropic_key = None
    if correct:
        anthropic_key = lookup_credential(ENV_ANTHROPIC_KEY, env, use_keyring)
        if not anthropic_key:
            raise ConfigError(f"{ENV_ANTHROPIC_KEY} not set (required for --correct)")

    relay_url = lookup_credential(ENV_RELAY_URL, env, use_keyring=False)
    relay_key = lookup_credential(ENV_RELAY_KEY, env, use_keyring)
    if relay_url and relay_key:
        config = ProviderConfig(
            backend="relay",
            endpoint=relay_endpoint(relay_url),
            api_key=relay_key,
            model=model,
            language=language,
            anthropic_api_key=anthropic_key,
            claude_model=claude_model,
        )
    else:
        mistral_key = lookup_credential(ENV_MISTRAL_KEY, env, use_keyring)
        if not mistral_key:
            raise ConfigError(
                f"{ENV_MISTRAL_KEY} not set (or set both {ENV_RELAY_URL} and {ENV_RELAY_KEY})"
            )
        config = ProviderConfig(
            backend="mistral",
            endpoint=MISTRAL_URL,
            api_key=mistral_key,
            model=model,
            language=language,
            anthropic_api_key=anthropic_key,
            claude_model=claude_model,
        )

    logger.debug("Resolved %r", config)
    return config
