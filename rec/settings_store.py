"""Persistent user configuration (``config.json``) for rec."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rec.config import DEFAULT_CLAUDE_MODEL, get_config_file
from rec.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass
class UserConfig:
    """Contents of config.json."""

    custom_words: list[str] = field(default_factory=list)
    claude_model: str = DEFAULT_CLAUDE_MODEL
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data["custom_words"] = list(self.custom_words)
        data["claude_model"] = self.claude_model
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserConfig:
        """Build a config from parsed JSON, ignoring malformed fields."""

        words: list[str] = []
        for word in data.get("custom_words") or []:
            if isinstance(word, str) and word.strip() and word.strip() not in words:
                words.append(word.strip())

        model = data.get("claude_model")
        if not isinstance(model, str) or not model.strip():
            model = DEFAULT_CLAUDE_MODEL

        extra = {k: v for k, v in data.items() if k not in ("custom_words", "claude_model")}
        return cls(custom_words=words, claude_model=model.strip(), extra=extra)


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON next to ``path`` and move it into place in one step.

    Raises:
        StorageError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except (OSError, TypeError, ValueError) as e:
        # OSError: File/directory write errors
        # TypeError/ValueError: Non-serializable payload
        raise StorageError(f"Could not write {path}: {e}") from e


def read_json(path: Path) -> Any:
    """Read and parse a JSON file, backing it up and returning None if corrupt.

    Raises:
        StorageError: If the file exists but cannot be read
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError(f"Could not read {path}: {e}") from e

    if not content.strip():
        return None

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        backup_path = path.with_name(path.name + ".bak")
        try:
            shutil.copyfile(path, backup_path)
        except OSError as copy_error:
            raise StorageError(f"Could not back up corrupted {path}: {copy_error}") from e
        logger.warning(
            f"{path.name} was corrupted and has been reset (backup saved to {backup_path}): {e}"
        )
        return None


def load_config(path: Path | None = None) -> UserConfig:
    """Load config.json, creating it with defaults when missing or corrupted.

    Raises:
        StorageError: If the file cannot be read or the defaults cannot be written
    """
    path = path or get_config_file()

    if not path.is_file():
        config = UserConfig()
        save_config(config, path)
        return config

    data = read_json(path)
    if not isinstance(data, dict):
        if data is not None:
            logger.warning(f"{path.name} does not hold a JSON object; using defaults")
        config = UserConfig()
        save_config(config, path)
        return config

    return UserConfig.from_dict(data)


def save_config(config: UserConfig, path: Path | None = None) -> None:
    """Persist config.json.

    Raises:
        StorageError: If the file cannot be written
    """
    write_json_atomic(path or get_config_file(), config.to_dict())
