"""Audio buffers, WAV encoding and audio file loading."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import soundfile as sf

from rec.errors import InputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """Captured or decoded audio as ``(frames, channels)`` float32 samples.

    The sample array is copied on construction and marked read-only, so a
    buffer handed to a transcription backend can never be modified by it.
    """

    samples: np.ndarray
    sample_rate: int
    source: Path | None = None

    def __post_init__(self) -> None:
        samples = np.array(self.samples, dtype=np.float32, copy=True)
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        elif samples.ndim != 2:
            raise ValueError(f"Expected 1-D or 2-D samples, got shape {samples.shape}")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @classmethod
    def empty(cls, sample_rate: int, channels: int = 1) -> AudioBuffer:
        return cls(np.zeros((0, channels), dtype=np.float32), sample_rate)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate

    def is_empty(self) -> bool:
        return self.frame_count == 0

    def to_wav_bytes(self) -> bytes:
        """Encode as 16-bit PCM WAV."""
        audio_int16 = (np.clip(self.samples, -1.0, 1.0) * 32767).astype(np.int16)
        buffer = io.BytesIO()
        sf.write(buffer, audio_int16, self.sample_rate, format="WAV", subtype="PCM_16")
        return buffer.getvalue()


def load_audio_file(path: str | Path) -> AudioBuffer:
    """Read and decode an audio file.

    Raises:
        InputError: If the file is missing or cannot be decoded
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise InputError(f"Audio file not found: {path}")

    try:
        samples, sample_rate = sf.read(str(path), dtype="float32", always_2d=True)
    except (sf.LibsndfileError, RuntimeError, OSError, TypeError, ValueError) as e:
        # LibsndfileError: unsupported or corrupt container
        # OSError: file became unreadable
        # TypeError/ValueError: headerless formats such as .raw need an explicit layout
        raise InputError(f"Could not decode audio file {path}: {e}") from e

    logger.debug(f"Loaded {path}: {samples.shape[0]} frames at {sample_rate} Hz")
    return AudioBuffer(samples, int(sample_rate), source=path)
