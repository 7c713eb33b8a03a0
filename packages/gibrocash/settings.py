"""Process-level configuration read from the environment.

The CLI loads a local ``.env`` (without overriding already-set variables)
before calling :func:`load_settings`, so either source works.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_SESSION_FILE = Path("~/.gibrocash/session.json")


@dataclass(frozen=True, slots=True)
class Settings:
    api_base_url: str
    session_file: Path
    log_level: str | None = None


def read_log_level() -> str | None:
    """``GIBROCASH_LOG_LEVEL``, readable even when the rest of the config is missing."""

    return (os.getenv("GIBROCASH_LOG_LEVEL") or "").strip() or None


def load_settings() -> Settings:
    """Build :class:`Settings` from ``GIBROCASH_*`` environment variables.

    - ``GIBROCASH_API_BASE_URL`` (required): remote API root; trailing slashes
      are stripped so path helpers can always prepend ``/``.
    - ``GIBROCASH_SESSION_FILE`` (optional): where the token and identity are
      persisted. Defaults to ``~/.gibrocash/session.json``.
    - ``GIBROCASH_LOG_LEVEL`` (optional): handed to ``configure_logging``.
    """

    base_url = (os.getenv("GIBROCASH_API_BASE_URL") or "").strip().rstrip("/")
    if not base_url:
        raise ConfigurationError("GIBROCASH_API_BASE_URL is not set in the environment.")

    session_raw = os.getenv("GIBROCASH_SESSION_FILE")
    if session_raw and session_raw.strip():
        session_file = Path(session_raw.strip()).expanduser()
    else:
        session_file = DEFAULT_SESSION_FILE.expanduser()

    return Settings(
        api_base_url=base_url,
        session_file=session_file,
        log_level=read_log_level(),
    )


__all__ = ["DEFAULT_SESSION_FILE", "Settings", "load_settings", "read_log_level"]
