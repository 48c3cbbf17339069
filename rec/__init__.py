"""rec - Quick speech-to-text for devs, with optional Claude correction."""

__version__ = "0.1.0"

__all__ = [
    "audio",
    "config",
    "correction",
    "history",
    "pipeline",
    "transcription",
    "vocabulary",
]
