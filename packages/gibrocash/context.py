"""Application wiring: settings → storage → gateway → session store."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from .gateway import ApiGateway
from .session import SessionStore
from .settings import Settings, load_settings
from .storage import SessionStorage


@dataclass(slots=True)
class AppContext:
    settings: Settings
    storage: SessionStorage
    gateway: ApiGateway
    session: SessionStore

    def close(self) -> None:
        self.gateway.close()

    def __enter__(self) -> AppContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_context(
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> AppContext:
    """Build the object graph and restore any persisted session.

    ``transport`` replaces the network layer; tests pass an
    ``httpx.MockTransport`` here.
    """

    settings = settings or load_settings()
    storage = SessionStorage(settings.session_file)
    gateway = ApiGateway(
        settings.api_base_url, token_provider=storage.token, transport=transport
    )
    session = SessionStore(storage, gateway)
    session.restore()
    return AppContext(settings=settings, storage=storage, gateway=gateway, session=session)


__all__ = ["AppContext", "create_context"]
