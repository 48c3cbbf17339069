"""Append-only log of past corrections, also used as correction context."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from rec.config import CONTEXT_WINDOW, get_history_file
from rec.settings_store import read_json, write_json_atomic

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class HistoryEntry:
    """One transcription/correction pair and the vocabulary active at the time."""

    timestamp: str
    original_text: str
    corrected_text: str
    model: str
    vocabulary_snapshot: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Serialize to the on-disk JSON shape."""

        return {
            "timestamp": self.timestamp,
            "original": self.original_text,
            "corrected": self.corrected_text,
            "model": self.model,
            "custom_words": list(self.vocabulary_snapshot),
        }

    @classmethod
    def from_dict(cls, data: dict) -> HistoryEntry:
        return cls(
            timestamp=str(data.get("timestamp", "")),
            original_text=str(data.get("original", "")),
            corrected_text=str(data.get("corrected", "")),
            model=str(data.get("model", "")),
            vocabulary_snapshot=tuple(
                str(word) for word in data.get("custom_words") or [] if isinstance(word, str)
            ),
        )


class HistoryStore:
    """Ordered history of corrections backed by history.json.

    Only the newest ``CONTEXT_WINDOW`` entries are ever read back as context;
    older ones are kept for the record. A store without a path keeps entries
    in memory only.
    """

    def __init__(self, entries: Iterable[HistoryEntry] | None = None, path: Path | None = None):
        self._entries: list[HistoryEntry] = list(entries or [])
        self.path = path

    @classmethod
    def load(cls, path: Path | None = None) -> HistoryStore:
        """Load history from disk. A missing file yields an empty history.

        Raises:
            StorageError: If the file exists but cannot be read
        """
        path = path or get_history_file()
        if not path.is_file():
            return cls(path=path)

        data = read_json(path)
        if data is None:
            return cls(path=path)
        if not isinstance(data, list):
            logger.warning(f"{path.name} does not hold a JSON array; starting fresh")
            return cls(path=path)

        entries = [HistoryEntry.from_dict(item) for item in data if isinstance(item, dict)]
        return cls(entries, path)

    @classmethod
    def empty(cls) -> HistoryStore:
        return cls()

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def persistent(self) -> bool:
        return self.path is not None

    def __len__(self) -> int:
        return len(self._entries)

    def recent(self, limit: int = CONTEXT_WINDOW) -> list[HistoryEntry]:
        """Return the newest ``limit`` entries, oldest first."""

        if limit <= 0:
            return []
        return list(self._entries[-limit:])

    def _next_timestamp(self) -> str:
        now = _utc_now()
        if self._entries:
            previous = _parse_timestamp(self._entries[-1].timestamp)
            if previous is not None and previous > now:
                # Clock went backwards; keep the log ordered
                now = previous
        return now.isoformat()

    def append(
        self,
        original_text: str,
        corrected_text: str,
        model: str,
        vocabulary_snapshot: Iterable[str],
    ) -> HistoryEntry:
        """Record a correction and persist the whole history.

        Raises:
            StorageError: If the history file cannot be written
        """
        entry = HistoryEntry(
            timestamp=self._next_timestamp(),
            original_text=original_text,
            corrected_text=corrected_text,
            model=model,
            vocabulary_snapshot=tuple(vocabulary_snapshot),
        )
        updated = [*self._entries, entry]
        if self.path is not None:
            write_json_atomic(self.path, [item.to_dict() for item in updated])
        self._entries = updated
        logger.debug(f"History now holds {len(updated)} entries")
        return entry
