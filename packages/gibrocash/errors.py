"""Error kinds raised by the gateway, the session store and the forms.

Screen controllers catch :class:`GibroCashError` and turn it into a visible
message; anything else is a programming error and propagates.
"""

from __future__ import annotations


class GibroCashError(Exception):
    """Base class for every error this package raises on purpose."""


class ConfigurationError(GibroCashError):
    """Required configuration (e.g., the API base URL) is missing."""


class NetworkError(GibroCashError):
    """The request never reached the server or no response came back."""


class AuthError(GibroCashError):
    """Credentials were rejected (401/403) or a login attempt failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServerMessageError(GibroCashError):
    """A non-2xx response other than an authorization failure.

    ``message`` is the server-supplied ``message`` field when the body carried
    one, otherwise ``None``; ``str(exc)`` always has something printable.
    """

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or f"Request failed with status {status_code}")
        self.status_code = status_code
        self.message = message


class ValidationError(GibroCashError):
    """A client-side form check failed; raised before any network call."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


def user_message(exc: BaseException, fallback: str) -> str:
    """Return the text a form should show for ``exc``.

    Server-supplied messages and client-side validation messages are shown
    verbatim; everything else collapses to ``fallback``.
    """

    if isinstance(exc, ServerMessageError) and exc.message:
        return exc.message
    if isinstance(exc, (ValidationError, AuthError)):
        return str(exc)
    return fallback


__all__ = [
    "AuthError",
    "ConfigurationError",
    "GibroCashError",
    "NetworkError",
    "ServerMessageError",
    "ValidationError",
    "user_message",
]
