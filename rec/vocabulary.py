"""Custom vocabulary used to bias transcription and correction."""

from __future__ import annotations

import logging
from pathlib import Path

from rec.config import get_config_file
from rec.settings_store import UserConfig, load_config, save_config

logger = logging.getLogger(__name__)


class VocabularyStore:
    """Ordered, duplicate-free list of custom words backed by config.json.

    A store built without a path (see :meth:`empty`) keeps changes in memory
    only; the pipeline falls back to one when the config file is unreadable so
    a broken file is never overwritten.
    """

    def __init__(self, config: UserConfig | None = None, path: Path | None = None):
        self._config = config or UserConfig()
        self.path = path

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: Path | None = None) -> VocabularyStore:
        """Load the vocabulary from disk.

        Raises:
            StorageError: If the config file cannot be read or created
        """
        path = path or get_config_file()
        return cls(load_config(path), path)

    @classmethod
    def empty(cls) -> VocabularyStore:
        return cls()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def words(self) -> tuple[str, ...]:
        return tuple(self._config.custom_words)

    @property
    def claude_model(self) -> str:
        return self._config.claude_model

    @property
    def persistent(self) -> bool:
        return self.path is not None

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.strip() in self._config.custom_words

    def __len__(self) -> int:
        return len(self._config.custom_words)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def add_word(self, word: str) -> bool:
        """Append ``word`` and persist immediately.

        Duplicates are ignored rather than rejected.

        Returns:
            True if the word was added, False if it was already present

        Raises:
            ValueError: If the word is empty
            StorageError: If the config file cannot be written
        """
        cleaned = (word or "").strip()
        if not cleaned:
            raise ValueError("Custom word cannot be empty")

        if cleaned in self._config.custom_words:
            logger.info(f"Custom word already present: {cleaned}")
            return False

        updated = UserConfig(
            custom_words=[*self._config.custom_words, cleaned],
            claude_model=self._config.claude_model,
            extra=self._config.extra,
        )
        if self.path is not None:
            save_config(updated, self.path)
        self._config = updated
        logger.info(f"Added custom word: {cleaned}")
        return True
