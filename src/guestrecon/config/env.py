"""Typed readers for the ``GUESTRECON_*`` environment variables."""

from __future__ import annotations

import os

from .errors import ConfigurationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _raw(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def env_int(name: str, default: int) -> int:
    """Positive integer setting; blank or unset falls back to ``default``."""

    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(name, f"must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigurationError(name, f"must be positive, got {value}")
    return value


def env_flag(name: str, *, default: bool) -> bool:
    raw = _raw(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(name, f"must be a boolean flag, got {raw!r}")
