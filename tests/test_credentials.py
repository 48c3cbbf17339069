"""Tests for keyring credential storage."""

from unittest.mock import patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from rec import credentials
from rec.errors import StorageError


class TestReadKey:
    """Test reading keys back from the keyring."""

    @patch("rec.credentials.keyring")
    def test_found(self, mock_keyring):
        mock_keyring.get_password.return_value = "secret"

        assert credentials.read_key("MISTRAL_API_KEY") == "secret"
        mock_keyring.get_password.assert_called_once_with("rec", "MISTRAL_API_KEY")

    @patch("rec.credentials.keyring")
    def test_missing(self, mock_keyring):
        mock_keyring.get_password.return_value = None

        assert credentials.read_key("MISTRAL_API_KEY") is None

    @patch("rec.credentials.keyring")
    def test_blank_value_counts_as_missing(self, mock_keyring):
        mock_keyring.get_password.return_value = " \n"

        assert credentials.read_key("MISTRAL_API_KEY") is None

    @patch("rec.credentials.keyring")
    def test_backend_error_is_logged_not_raised(self, mock_keyring, caplog):
        """An unusable keyring must not stop env-only setups from working."""
        mock_keyring.get_password.side_effect = KeyringError("No backend")

        assert credentials.read_key("ANTHROPIC_API_KEY") is None
        assert "Could not read ANTHROPIC_API_KEY from keyring" in caplog.text

    @patch("rec.credentials.keyring")
    def test_missing_backend_runtime_error(self, mock_keyring):
        mock_keyring.get_password.side_effect = RuntimeError("no recommended backend")

        assert credentials.read_key("REC_API_KEY") is None


class TestSaveKey:
    """Test storing keys."""

    @patch("rec.credentials.keyring")
    def test_strips_pasted_whitespace(self, mock_keyring):
        credentials.save_key("MISTRAL_API_KEY", "  secret\n")

        mock_keyring.set_password.assert_called_once_with("rec", "MISTRAL_API_KEY", "secret")

    @patch("rec.credentials.keyring")
    def test_blank_value_rejected(self, mock_keyring):
        with pytest.raises(ValueError, match="MISTRAL_API_KEY cannot be empty"):
            credentials.save_key("MISTRAL_API_KEY", "   ")

        mock_keyring.set_password.assert_not_called()

    @patch("rec.credentials.keyring")
    def test_backend_error_raises_storage_error(self, mock_keyring):
        mock_keyring.set_password.side_effect = KeyringError("Backend error")

        with pytest.raises(StorageError, match="Could not store MISTRAL_API_KEY") as exc_info:
            credentials.save_key("MISTRAL_API_KEY", "secret")
        assert exc_info.value.exit_code == 6


class TestForgetKey:
    """Test removing keys."""

    @patch("rec.credentials.keyring")
    def test_removed(self, mock_keyring):
        assert credentials.forget_key("ANTHROPIC_API_KEY") is True

        mock_keyring.delete_password.assert_called_once_with("rec", "ANTHROPIC_API_KEY")

    @patch("rec.credentials.keyring")
    def test_nothing_stored(self, mock_keyring):
        mock_keyring.delete_password.side_effect = PasswordDeleteError()

        assert credentials.forget_key("ANTHROPIC_API_KEY") is False

    @patch("rec.credentials.keyring")
    def test_backend_error_raises_storage_error(self, mock_keyring):
        mock_keyring.delete_password.side_effect = KeyringError("locked")

        with pytest.raises(StorageError, match="Could not remove ANTHROPIC_API_KEY"):
            credentials.forget_key("ANTHROPIC_API_KEY")
