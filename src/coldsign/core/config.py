"""
coldsign Configuration

All settings are read from environment variables once at import time.
Nothing here is secret: the hot wallet never holds spending keys.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a configuration value is missing or invalid."""
    pass


def _get_int_env(env_var: str, default: int, minimum: int = 1) -> int:
    """Read a positive integer from the environment.

    Raises ConfigurationError for values that are not integers or are below
    ``minimum``.
    """
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{env_var} must be >= {minimum}, got {value}")
    return value


# Bytes a single QR frame can carry with error correction; larger payloads
# are still encoded but trigger a warning.
QR_FRAME_CAPACITY = _get_int_env("COLDSIGN_QR_FRAME_CAPACITY", 2900)

# Nesting limit when skipping unknown CBOR values
CBOR_MAX_DEPTH = _get_int_env("COLDSIGN_CBOR_MAX_DEPTH", 16)

DEFAULT_WALLET_LABEL = os.getenv("COLDSIGN_DEFAULT_WALLET_LABEL", "Zigner Wallet").strip() or "Zigner Wallet"
DEFAULT_ZCASH_WALLET_LABEL = (
    os.getenv("COLDSIGN_DEFAULT_ZCASH_WALLET_LABEL", "Zcash Wallet").strip() or "Zcash Wallet"
)

LOG_LEVEL = os.getenv("COLDSIGN_LOG_LEVEL", "INFO").strip().upper() or "INFO"
if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
    raise ConfigurationError(f"COLDSIGN_LOG_LEVEL must be a logging level name, got {LOG_LEVEL!r}")

ENVIRONMENT = os.getenv("COLDSIGN_ENVIRONMENT", "production").strip() or "production"
