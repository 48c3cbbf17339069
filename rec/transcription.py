"""Speech-to-text through the Mistral API or a relay in front of it."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

import requests

from rec.audio import AudioBuffer
from rec.config import TRANSCRIPTION_TIMEOUT, ProviderConfig
from rec.errors import ConfigError, ProviderError
from rec.status import StatusChannel

logger = logging.getLogger(__name__)


class TranscriptionBackend(ABC):
    """Submit WAV audio, get text back.

    Both variants post the same multipart form and parse the same
    ``{"text": ...}`` response; they differ only in URL and authentication.
    """

    name: str = "base"
    credential_name: str = ""

    def __init__(self, endpoint: str, api_key: str | None, timeout: float = TRANSCRIPTION_TIMEOUT):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Headers that authenticate a request."""

    def transcribe(
        self,
        wav_bytes: bytes,
        model: str,
        language: str | None = None,
        context_bias: Iterable[str] = (),
    ) -> str:
        """
        Upload audio and return the transcript.

        Args:
            wav_bytes: Encoded WAV file
            model: Transcription model identifier
            language: Optional language hint (e.g. "en")
            context_bias: Terms the recognizer should favour

        Returns:
            Transcribed text (may be empty)

        Raises:
            ConfigError: If no credential is configured
            ProviderError: If the request fails or the response is malformed
        """
        if not self.api_key:
            raise ConfigError(f"{self.credential_name} not set")

        data: list[tuple[str, str]] = [("model", model)]
        if language:
            data.append(("language", language))
        data.extend(("context_bias", term) for term in context_bias)
        files = {"file": ("audio.wav", wav_bytes, "audio/wav")}

        logger.debug(f"POST {self.endpoint} ({self.name}, {len(wav_bytes)} bytes, model={model})")
        try:
            response = requests.post(
                self.endpoint,
                headers=self.auth_headers(),
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(f"{self.name} request failed: {e}") from e

        if not response.ok:
            body = response.text
            raise ProviderError(
                f"{self.name} API error ({response.status_code}): {body}",
                status=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned invalid JSON: {e}",
                status=response.status_code,
                body=response.text,
            ) from e

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise ProviderError(
                f"{self.name} response has no text field",
                status=response.status_code,
                body=response.text,
            )
        return text.strip()


class MistralBackend(TranscriptionBackend):
    """Direct calls to the Mistral transcription API."""

    name = "Mistral"
    credential_name = "MISTRAL_API_KEY"

    def auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key or ""}


class RelayBackend(TranscriptionBackend):
    """Calls through a relay so the user needs no Mistral key."""

    name = "Rec API"
    credential_name = "REC_API_KEY"

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key or ''}"}


BACKENDS: dict[str, type[TranscriptionBackend]] = {
    "mistral": MistralBackend,
    "relay": RelayBackend,
}


def create_backend(config: ProviderConfig) -> TranscriptionBackend:
    """Instantiate the backend named by ``config.backend``.

    Raises:
        ConfigError: If the backend is unknown or its credential is missing
    """
    try:
        backend_cls = BACKENDS[config.backend]
    except KeyError as e:
        raise ConfigError(f"Unknown transcription backend: {config.backend}") from e

    if not config.endpoint:
        raise ConfigError(f"No endpoint configured for {backend_cls.name}")
    if not config.api_key:
        raise ConfigError(f"{backend_cls.credential_name} not set")
    return backend_cls(config.endpoint, config.api_key, timeout=config.timeout)


class TranscriptionClient:
    """Turns an AudioBuffer into text using the configured backend."""

    def __init__(
        self,
        status: StatusChannel | None = None,
        backend_factory: Callable[[ProviderConfig], TranscriptionBackend] = create_backend,
    ):
        self.status = status or StatusChannel()
        self.backend_factory = backend_factory

    def transcribe(
        self,
        audio: AudioBuffer,
        config: ProviderConfig,
        context_bias: Iterable[str] = (),
    ) -> str:
        """
        Transcribe ``audio``. Audio with no frames yields "" without a request.

        Raises:
            ConfigError: If the selected backend lacks a credential (before any request)
            ProviderError: If the provider call fails
        """
        backend = self.backend_factory(config)

        if audio.is_empty():
            logger.info("No audio frames captured; skipping transcription")
            return ""

        self.status.show(f"{audio.duration:.1f}s transcribing...")
        start_time = time.perf_counter()
        text = backend.transcribe(
            audio.to_wav_bytes(),
            model=config.model,
            language=config.language,
            context_bias=list(context_bias),
        )
        elapsed = time.perf_counter() - start_time

        self.status.show(f"{elapsed:.1f}s transcribing... done")
        logger.info(
            "Transcription statistics: backend=%s model=%s audio=%.1fs total_time=%.3fs chars=%d",
            backend.name,
            config.model,
            audio.duration,
            elapsed,
            len(text),
        )
        return text
