"""End-to-end flow: capture or load audio, transcribe, optionally correct."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from rec.audio import AudioBuffer, load_audio_file
from rec.config import CONTEXT_WINDOW, ProviderConfig
from rec.correction import CorrectionClient
from rec.errors import ConfigError, DeviceError, ProviderError, StorageError
from rec.history import HistoryStore
from rec.status import StatusChannel
from rec.transcription import TranscriptionClient
from rec.vocabulary import VocabularyStore

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    TRANSCRIBING = "transcribing"
    CORRECTING = "correcting"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.FAILED})

ALLOWED_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.CAPTURING, PipelineState.TRANSCRIBING}),
    PipelineState.CAPTURING: frozenset({PipelineState.TRANSCRIBING}),
    PipelineState.TRANSCRIBING: frozenset({PipelineState.CORRECTING, PipelineState.DONE}),
    PipelineState.CORRECTING: frozenset({PipelineState.DONE}),
    PipelineState.DONE: frozenset(),
    PipelineState.FAILED: frozenset(),
}


class Capture(Protocol):
    def record(self) -> AudioBuffer: ...


@dataclass(frozen=True)
class PipelineResult:
    """What a finished run produced.

    ``corrected_text`` is None unless a correction changed the transcript.
    ``warnings`` lists non-fatal problems such as a failed correction.
    """

    original_text: str
    corrected_text: str | None = None
    used_history: bool = False
    explanation: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def final_text(self) -> str:
        return self.corrected_text if self.corrected_text is not None else self.original_text


def load_stores(
    config_path: Path | None = None, history_path: Path | None = None
) -> tuple[VocabularyStore, HistoryStore]:
    """Load vocabulary and history, degrading to empty in-memory stores.

    An unreadable file never aborts transcription; the returned store simply
    has no words or no context and will not write back to the broken file.
    """
    try:
        vocabulary = VocabularyStore.load(config_path)
    except StorageError as e:
        logger.warning(f"Custom vocabulary unavailable: {e}")
        vocabulary = VocabularyStore.empty()

    try:
        history = HistoryStore.load(history_path)
    except StorageError as e:
        logger.warning(f"Correction history unavailable: {e}")
        history = HistoryStore.empty()

    return vocabulary, history


class Pipeline:
    """Single-use state machine for one dictation.

    ``Idle -> Capturing -> Transcribing -> [Correcting] -> Done``, with
    ``Failed`` reachable from any non-terminal state. Capture and
    transcription failures are fatal; correction failures fall back to the
    uncorrected transcript.
    """

    def __init__(
        self,
        config: ProviderConfig,
        transcriber: TranscriptionClient,
        vocabulary: VocabularyStore,
        history: HistoryStore,
        corrector: CorrectionClient | None = None,
        capture: Capture | None = None,
        status: StatusChannel | None = None,
    ):
        self.config = config
        self.transcriber = transcriber
        self.vocabulary = vocabulary
        self.history = history
        self.corrector = corrector
        self.capture = capture
        self.status = status or StatusChannel()
        self.state = PipelineState.IDLE
        self.transitions: list[PipelineState] = [PipelineState.IDLE]

    def _transition(self, new_state: PipelineState) -> None:
        if new_state is not PipelineState.FAILED and new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {new_state.value}")
        if new_state is PipelineState.FAILED and self.state in TERMINAL_STATES:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Pipeline {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.transitions.append(new_state)

    def run(self, file: str | Path | None = None, correct: bool = False) -> PipelineResult:
        """
        Produce a transcript, recording from the microphone unless ``file`` is given.

        Raises:
            ConfigError: If correction is requested without a correction client
            DeviceError: If recording is needed but unavailable
            InputError: If ``file`` cannot be read or decoded
            ProviderError: If transcription fails
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError("Pipeline instances are single-use")

        try:
            if correct and self.corrector is None:
                raise ConfigError("ANTHROPIC_API_KEY not set (required for --correct)")

            if file is not None:
                self._transition(PipelineState.TRANSCRIBING)
                self.status.show("Reading file...")
                audio = load_audio_file(file)
            else:
                self._transition(PipelineState.CAPTURING)
                if self.capture is None:
                    raise DeviceError("No audio capture available")
                audio = self.capture.record()
                self._transition(PipelineState.TRANSCRIBING)

            text = self.transcriber.transcribe(
                audio, self.config, context_bias=self.vocabulary.words
            )
        except BaseException:
            self._transition(PipelineState.FAILED)
            raise

        if not correct or not text.strip():
            self._transition(PipelineState.DONE)
            return PipelineResult(original_text=text)

        self._transition(PipelineState.CORRECTING)
        try:
            result = self._correct(text, self.corrector)
        except BaseException:
            self._transition(PipelineState.FAILED)
            raise
        self._transition(PipelineState.DONE)
        return result

    def _correct(self, text: str, corrector: CorrectionClient) -> PipelineResult:
        vocabulary_snapshot = self.vocabulary.words
        context = self.history.recent(CONTEXT_WINDOW)

        try:
            correction = corrector.correct(text, vocabulary_snapshot, context)
        except ProviderError as e:
            logger.info(f"Correction failed, falling back to original transcription: {e}")
            return PipelineResult(
                original_text=text,
                warnings=(f"Claude correction failed: {e}",),
            )

        corrected = correction.corrected_text
        if corrected is None or corrected == text:
            return PipelineResult(
                original_text=text,
                used_history=bool(context),
                explanation=correction.explanation,
            )

        warnings: tuple[str, ...] = ()
        try:
            self.history.append(text, corrected, corrector.model, vocabulary_snapshot)
        except StorageError as e:
            logger.warning(f"Failed to save to history: {e}")
            warnings = (f"Failed to save to history: {e}",)

        return PipelineResult(
            original_text=text,
            corrected_text=corrected,
            used_history=bool(context),
            explanation=correction.explanation,
            warnings=warnings,
        )
