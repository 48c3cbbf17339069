"""Exception hierarchy shared by the capture, transcription and correction steps."""


class RecError(Exception):
    """Base class for all errors surfaced to the command line."""

    exit_code = 1


class ConfigError(RecError):
    """Raised when a required credential or setting is missing or invalid."""

    exit_code = 2


class DeviceError(RecError):
    """Raised when no usable audio input device is available."""

    exit_code = 3


class InputError(RecError):
    """Raised when an input file (or word) cannot be used."""

    exit_code = 4


class ProviderError(RecError):
    """Raised when a remote provider request fails.

    Args:
        message: Human readable description
        status: Upstream HTTP status code, or None for transport failures
        body: Raw upstream response body, if any
    """

    exit_code = 5

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


class StorageError(RecError):
    """Raised when the config or history file cannot be read or written."""

    exit_code = 6
