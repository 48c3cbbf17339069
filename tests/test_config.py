"""Tests for configuration defaults and provider credential resolution."""

from pathlib import Path

import pytest

from rec import credentials
from rec.config import (
    DEFAULT_CLAUDE_MODEL,
    MISTRAL_URL,
    MODEL_V1,
    MODEL_V2,
    get_config_dir,
    get_history_file,
    lookup_credential,
    relay_endpoint,
    resolve_provider_config,
)
from rec.errors import ConfigError


class TestPaths:
    """Test config directory resolution."""

    def test_config_dir_override(self, monkeypatch, tmp_path):
        """REC_CONFIG_DIR wins over the platform default."""
        monkeypatch.setenv("REC_CONFIG_DIR", str(tmp_path / "custom"))

        assert get_config_dir() == tmp_path / "custom"
        assert get_history_file() == tmp_path / "custom" / "history.json"

    def test_config_dir_default(self, monkeypatch):
        """Without an override the platform config dir is used."""
        monkeypatch.delenv("REC_CONFIG_DIR", raising=False)

        assert get_config_dir().name == "rec"
        assert isinstance(get_config_dir(), Path)


class TestLookupCredential:
    """Test environment/keyring credential lookup."""

    def test_environment_takes_precedence(self, isolated_environment):
        """Environment value is used without touching the keyring."""
        isolated_environment.get_password.return_value = "from-keyring"

        assert lookup_credential("MISTRAL_API_KEY", {"MISTRAL_API_KEY": "from-env"}) == "from-env"
        isolated_environment.get_password.assert_not_called()

    def test_keyring_fallback(self, isolated_environment):
        """Keyring is consulted when the environment has no value."""
        isolated_environment.get_password.return_value = "from-keyring"

        assert lookup_credential("MISTRAL_API_KEY", {}) == "from-keyring"
        isolated_environment.get_password.assert_called_once_with(
            credentials.SERVICE_NAME, "MISTRAL_API_KEY"
        )

    def test_blank_environment_value_ignored(self):
        """Whitespace-only values count as unset."""
        assert lookup_credential("MISTRAL_API_KEY", {"MISTRAL_API_KEY": "  "}, use_keyring=False) is None

    def test_keyring_error_treated_as_unset(self, isolated_environment, caplog):
        """A broken keyring backend is logged, not raised."""
        from keyring.errors import KeyringError

        isolated_environment.get_password.side_effect = KeyringError("no backend")

        assert lookup_credential("MISTRAL_API_KEY", {}) is None
        assert "Could not read MISTRAL_API_KEY from keyring" in caplog.text


class TestResolveProviderConfig:
    """Test backend selection precedence."""

    def test_direct_backend(self):
        """MISTRAL_API_KEY alone selects the direct backend."""
        config = resolve_provider_config({"MISTRAL_API_KEY": "mk"})

        assert config.backend == "mistral"
        assert config.endpoint == MISTRAL_URL
        assert config.api_key == "mk"
        assert config.model == MODEL_V1
        assert config.anthropic_api_key is None
        assert config.claude_model == DEFAULT_CLAUDE_MODEL

    def test_relay_wins_when_both_configured(self):
        """Relay URL + key take precedence over a direct key."""
        config = resolve_provider_config(
            {
                "MISTRAL_API_KEY": "mk",
                "REC_API_URL": "https://relay.example.com/",
                "REC_API_KEY": "rk",
            }
        )

        assert config.backend == "relay"
        assert config.endpoint == "https://relay.example.com/api/transcribe"
        assert config.api_key == "rk"

    def test_relay_needs_both_values(self):
        """A relay URL without its key falls back to the direct backend."""
        config = resolve_provider_config(
            {"MISTRAL_API_KEY": "mk", "REC_API_URL": "https://relay.example.com"}
        )

        assert config.backend == "mistral"

    def test_relay_without_direct_key(self):
        """The relay works without any Mistral key."""
        config = resolve_provider_config(
            {"REC_API_URL": "https://relay.example.com", "REC_API_KEY": "rk"}
        )

        assert config.backend == "relay"

    def test_missing_transcription_key(self):
        """No usable transcription credential raises ConfigError."""
        with pytest.raises(ConfigError, match="MISTRAL_API_KEY not set"):
            resolve_provider_config({})

    def test_correct_requires_anthropic_key(self):
        """--correct without ANTHROPIC_API_KEY raises ConfigError."""
        with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
            resolve_provider_config({"MISTRAL_API_KEY": "mk"}, correct=True)

    def test_correct_with_anthropic_key(self):
        """Correction settings are carried in the resolved config."""
        config = resolve_provider_config(
            {"MISTRAL_API_KEY": "mk", "ANTHROPIC_API_KEY": "ak"},
            correct=True,
            claude_model="claude-sonnet-4-5",
        )

        assert config.anthropic_api_key == "ak"
        assert config.claude_model == "claude-sonnet-4-5"

    def test_v2_and_language(self):
        """--v2 picks the newer model and the language hint is normalized."""
        config = resolve_provider_config({"MISTRAL_API_KEY": "mk"}, v2=True, language=" fr ")

        assert config.model == MODEL_V2
        assert config.language == "fr"

    def test_repr_hides_secrets(self):
        """Credentials never appear in the config repr."""
        config = resolve_provider_config({"MISTRAL_API_KEY": "super-secret"})

        assert "super-secret" not in repr(config)
        assert "api_key='set'" not in repr(config)
        assert "api_key=set" in repr(config)

    def test_relay_endpoint_strips_trailing_slashes(self):
        assert relay_endpoint("https://relay.example.com//") == "https://relay.example.com/api/transcribe"
