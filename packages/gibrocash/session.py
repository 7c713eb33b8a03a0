"""Session store: the single owner of the authenticated identity.

The store keeps the in-memory :class:`~gibrocash.models.Session` in step with
the persisted token/identity (see :mod:`gibrocash.storage`). Other components
get read-only access through :attr:`SessionStore.current`,
:meth:`SessionStore.is_admin` and :meth:`SessionStore.token`.

Forced logout is wired explicitly: the store subscribes to the gateway's
authorization-failure event, and anything that needs to "navigate to login"
subscribes to :meth:`SessionStore.on_logout`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

from .errors import AuthError, NetworkError, ServerMessageError
from .gateway import ApiGateway
from .logging_setup import get_logger
from .models import Session
from .storage import SessionStorage

_logger = get_logger("gibrocash.session")

LogoutListener: TypeAlias = Callable[[str], None]


class SessionStore:
    def __init__(self, storage: SessionStorage, gateway: ApiGateway) -> None:
        self._storage = storage
        self._gateway = gateway
        self._session: Session | None = None
        self._logout_listeners: list[LogoutListener] = []
        # Concurrent 401/403 responses may both force a logout.
        self._logout_lock = threading.Lock()
        gateway.on_unauthorized(self._handle_unauthorized)

    # ---- read-only access --------------------------------------------------

    @property
    def current(self) -> Session | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def is_admin(self) -> bool:
        return self._session is not None and self._session.is_admin

    def token(self) -> str | None:
        return self._storage.token()

    # ---- lifecycle ---------------------------------------------------------

    def restore(self) -> Session | None:
        """Load the persisted session; both identity and token must be present."""

        stored = self._storage.read()
        if stored.user is not None and stored.token:
            self._session = Session(
                user_id=stored.user.id,
                name=stored.user.name,
                phone=stored.user.phone,
                designation=stored.user.designation,
            )
        else:
            self._session = None
        return self._session

    def login(self, phone: str, password: str) -> Session:
        """Authenticate, persist the credential and identity, and return the session.

        Rejected credentials and transport failures both surface as
        :class:`AuthError` carrying the gateway's message unmodified.
        """

        try:
            body = self._gateway.login(phone, password)
        except AuthError:
            raise
        except (NetworkError, ServerMessageError) as exc:
            raise AuthError(str(exc), status_code=getattr(exc, "status_code", None)) from exc

        data: Mapping[str, Any] = body if isinstance(body, Mapping) else {}
        token = data.get("token")
        if not token or data.get("id") is None:
            raise AuthError("Login response did not include a token.")

        session = Session(
            user_id=data["id"],
            name=data.get("name"),
            phone=data.get("phone"),
            designation=data.get("designation"),
        )
        self._storage.write(token=str(token), user=session.to_storage())
        self._session = session
        _logger.info("login user_id=%s admin=%s", session.user_id, session.is_admin)
        return session

    def logout(self, reason: str = "logout") -> None:
        """Clear persisted and in-memory state; safe to call repeatedly."""

        with self._logout_lock:
            was_authenticated = self._session is not None or self._storage.token() is not None
            self._storage.clear()
            self._session = None
        if not was_authenticated:
            return
        _logger.info("logout reason=%s", reason)
        for listener in list(self._logout_listeners):
            listener(reason)

    def on_logout(self, listener: LogoutListener) -> None:
        self._logout_listeners.append(listener)

    def _handle_unauthorized(self, status_code: int) -> None:
        self.logout(reason=f"unauthorized:{status_code}")


__all__ = ["SessionStore"]
