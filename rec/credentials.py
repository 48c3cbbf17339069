"""API keys kept in the OS keyring.

Environment variables always take precedence; the keyring is the fallback so
API keys do not have to live in shell profiles. Values are stored under the
``rec`` service using the environment variable name as the key.
"""

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from rec.errors import StorageError

logger = logging.getLogger(__name__)

SERVICE_NAME = "rec"

# KeyringError: backend refused the operation
# RuntimeError: no usable backend (headless sessions, locked collections)
BACKEND_ERRORS = (KeyringError, RuntimeError)


def read_key(name: str) -> str | None:
    """Return the stored value for ``name``, or None if absent or unreadable."""
    try:
        value = keyring.get_password(SERVICE_NAME, name)
    except BACKEND_ERRORS as e:
        logger.warning(f"Could not read {name} from keyring: {e}")
        return None

    value = (value or "").strip()
    if not value:
        logger.debug(f"{name} not in keyring")
        return None
    logger.debug(f"{name} read from keyring")
    return value


def save_key(name: str, value: str) -> None:
    """Store ``value`` under ``name``, stripped of pasted whitespace.

    Raises:
        ValueError: If the value is blank
        StorageError: If the keyring cannot be written
    """
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{name} cannot be empty")

    try:
        keyring.set_password(SERVICE_NAME, name, value)
    except BACKEND_ERRORS as e:
        raise StorageError(f"Could not store {name} in the system keyring: {e}") from e
    logger.info(f"Stored {name} in keyring")


def forget_key(name: str) -> bool:
    """Remove ``name`` from the keyring.

    Returns:
        True if a stored value was removed, False if there was none

    Raises:
        StorageError: If the keyring cannot be modified
    """
    try:
        keyring.delete_password(SERVICE_NAME, name)
    except PasswordDeleteError:
        logger.debug(f"{name} was not stored")
        return False
    except BACKEND_ERRORS as e:
        raise StorageError(f"Could not remove {name} from the system keyring: {e}") from e
    logger.info(f"Removed {name} from keyring")
    return True
