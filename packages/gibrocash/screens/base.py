"""Shared plumbing for screen controllers.

A screen owns one slice of view state and runs fetch → normalize → compute
cycles against the gateway. The rules every screen follows:

- Listing failures set the page-level ``error`` banner and leave previously
  loaded lists untouched.
- Form failures set ``form_error`` next to the form.
- Mutations never patch local copies; they re-fetch.
- Results that arrive after :meth:`Screen.unmount`, or after a newer request
  for the same slice started, are discarded (see :meth:`Screen._begin`).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..errors import AuthError, GibroCashError, user_message
from ..gateway import ApiGateway
from ..logging_setup import get_logger
from ..models import Session
from ..parallel import run_concurrently
from ..session import SessionStore

LOGIN_REQUIRED_MESSAGE = "Please log in."
SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."

_logger = get_logger("gibrocash.screens")


class Screen:
    title: str = ""

    def __init__(self, gateway: ApiGateway, session: SessionStore) -> None:
        self.gateway = gateway
        self.session = session
        self.loading = False
        self.submitting = False
        self.error = ""
        self.form_error = ""
        self.mounted = True
        self._generations: dict[str, int] = {}

    # ---- liveness ----------------------------------------------------------

    def unmount(self) -> None:
        """Mark the screen as gone; in-flight results will be dropped."""

        self.mounted = False
        for key in self._generations:
            self._generations[key] += 1

    def _begin(self, slice_name: str) -> int:
        token = self._generations.get(slice_name, 0) + 1
        self._generations[slice_name] = token
        return token

    def _is_current(self, slice_name: str, token: int) -> bool:
        return self.mounted and self._generations.get(slice_name) == token

    # ---- session -----------------------------------------------------------

    def _require_session(self) -> Session | None:
        current = self.session.current
        if current is None:
            self.error = LOGIN_REQUIRED_MESSAGE
        return current

    def is_admin(self) -> bool:
        return self.session.is_admin()

    # ---- helpers -----------------------------------------------------------

    def _fetch_both(self, first: Callable[[], Any], second: Callable[[], Any]) -> tuple[Any, Any]:
        a, b = run_concurrently(first, second)
        return a, b

    def _load_failed(self, exc: GibroCashError, message: str) -> None:
        _logger.warning("%s: %s", type(self).__name__, message, exc_info=exc)
        self.error = SESSION_EXPIRED_MESSAGE if isinstance(exc, AuthError) else message

    def _submit_failed(self, exc: GibroCashError, fallback: str) -> None:
        _logger.warning("%s: %s", type(self).__name__, fallback, exc_info=exc)
        if isinstance(exc, AuthError) and not self.session.is_authenticated:
            self.form_error = SESSION_EXPIRED_MESSAGE
        else:
            self.form_error = user_message(exc, fallback)


__all__ = ["LOGIN_REQUIRED_MESSAGE", "SESSION_EXPIRED_MESSAGE", "Screen"]
