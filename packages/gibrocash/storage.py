"""On-disk persistence for the credential token and identity record.

The file is a small JSON object under two fixed keys, ``token`` and ``user``.
Both are written and cleared together. Writes go to ``<file>.tmp`` first and
are then moved into place with ``os.replace`` so a crash never leaves half a
session on disk.

Only :class:`gibrocash.session.SessionStore` writes through this class; the
gateway reads the token via :meth:`SessionStorage.token`.
"""

from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .logging_setup import get_logger

TOKEN_KEY = "token"
USER_KEY = "user"

_logger = get_logger("gibrocash.storage")


class StoredUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str
    name: str | None = None
    phone: str | None = None
    designation: str | None = None


class StoredSession(BaseModel):
    """Schema of the session file; both keys are optional."""

    model_config = ConfigDict(extra="ignore")

    token: str | None = None
    user: StoredUser | None = None


class SessionStorage:
    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def read(self) -> StoredSession:
        """Return the persisted state; a missing or unreadable file reads as empty."""

        if not self.path.exists():
            return StoredSession()
        try:
            return StoredSession.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, PydanticValidationError):
            _logger.warning(
                "session_file:unreadable; treating as logged out path=%s",
                os.fspath(self.path),
                exc_info=True,
            )
            return StoredSession()

    def token(self) -> str | None:
        return self.read().token or None

    def write(self, *, token: str, user: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = {TOKEN_KEY: token, USER_KEY: user}
        try:
            tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise

    def clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()


__all__ = ["SessionStorage", "StoredSession", "StoredUser", "TOKEN_KEY", "USER_KEY"]
