"""Shared fixtures: keep tests away from the real keyring, config dir and env."""

from unittest.mock import MagicMock

import numpy as np
import pytest
import soundfile as sf

CREDENTIAL_VARS = ("REC_API_URL", "REC_API_KEY", "MISTRAL_API_KEY", "ANTHROPIC_API_KEY")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Point the config dir at tmp_path, clear credentials and stub the keyring."""
    monkeypatch.setenv("REC_CONFIG_DIR", str(tmp_path / "config"))
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)

    fake_keyring = MagicMock()
    fake_keyring.get_password.return_value = None
    monkeypatch.setattr("rec.credentials.keyring", fake_keyring)
    return fake_keyring


@pytest.fixture
def silence_wav(tmp_path):
    """One second of 16 kHz mono silence written as test.wav."""
    path = tmp_path / "test.wav"
    sf.write(path, np.zeros(16000, dtype=np.float32), 16000, subtype="PCM_16")
    return path
