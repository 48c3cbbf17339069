"""Tests for the custom vocabulary store."""

import json
from unittest.mock import patch

import pytest

from rec.errors import StorageError
from rec.vocabulary import VocabularyStore


class TestVocabularyStore:
    """Test VocabularyStore behaviour."""

    def test_add_word_persists_immediately(self, tmp_path):
        """A fresh load sees a word added by another store instance."""
        path = tmp_path / "config.json"

        store = VocabularyStore.load(path)
        assert store.add_word("Voxtral") is True

        reloaded = VocabularyStore.load(path)
        assert reloaded.words == ("Voxtral",)

    def test_add_word_twice_keeps_one(self, tmp_path):
        """Adding the same word twice leaves exactly one copy."""
        path = tmp_path / "config.json"

        VocabularyStore.load(path).add_word("Voxtral")
        assert VocabularyStore.load(path).add_word("Voxtral") is False

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["custom_words"] == ["Voxtral"]

    def test_duplicate_does_not_rewrite_file(self, tmp_path):
        path = tmp_path / "config.json"
        store = VocabularyStore.load(path)
        store.add_word("Voxtral")

        with patch("rec.vocabulary.save_config") as mock_save:
            store.add_word("Voxtral")

        mock_save.assert_not_called()

    def test_insertion_order_preserved(self, tmp_path):
        path = tmp_path / "config.json"
        store = VocabularyStore.load(path)
        for word in ("pytest", "Voxtral", "asyncio"):
            store.add_word(word)

        assert VocabularyStore.load(path).words == ("pytest", "Voxtral", "asyncio")

    def test_whitespace_stripped(self, tmp_path):
        store = VocabularyStore.load(tmp_path / "config.json")
        store.add_word("  Voxtral \n")

        assert store.words == ("Voxtral",)
        assert " Voxtral" in store
        assert store.add_word("Voxtral") is False

    def test_matching_is_case_sensitive(self, tmp_path):
        store = VocabularyStore.load(tmp_path / "config.json")
        store.add_word("Voxtral")

        assert store.add_word("voxtral") is True
        assert len(store) == 2

    def test_empty_word_rejected(self, tmp_path):
        store = VocabularyStore.load(tmp_path / "config.json")

        with pytest.raises(ValueError, match="cannot be empty"):
            store.add_word("   ")

    def test_failed_save_leaves_store_unchanged(self, tmp_path):
        """A word is only visible once it is on disk."""
        store = VocabularyStore.load(tmp_path / "config.json")

        with patch("rec.vocabulary.save_config", side_effect=StorageError("read-only")):
            with pytest.raises(StorageError):
                store.add_word("Voxtral")

        assert store.words == ()

    def test_model_preserved_when_adding(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"custom_words": [], "claude_model": "claude-opus-4-1"}), encoding="utf-8")

        store = VocabularyStore.load(path)
        store.add_word("Voxtral")

        assert VocabularyStore.load(path).claude_model == "claude-opus-4-1"

    def test_empty_store_is_in_memory(self, tmp_path):
        """The degraded store never writes to disk."""
        store = VocabularyStore.empty()

        with patch("rec.vocabulary.save_config") as mock_save:
            assert store.add_word("Voxtral") is True

        mock_save.assert_not_called()
        assert store.persistent is False
        assert store.words == ("Voxtral",)
