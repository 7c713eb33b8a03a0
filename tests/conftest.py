"""Pytest configuration for test isolation.

Every test gets its own session file and a fixed fake API base URL, so no test
can read (or clobber) a real ``~/.gibrocash/session.json`` or reach a real
server. Network traffic goes through :class:`tests.helpers.api_stub.FakeApi`.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `gibrocash` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from gibrocash.context import AppContext, create_context  # noqa: E402
from gibrocash.settings import load_settings  # noqa: E402
from gibrocash.storage import SessionStorage  # noqa: E402
from tests.helpers.api_stub import BASE_URL, FakeApi  # noqa: E402

TOKEN = "tok-123"


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the session file at the test's temp dir and fix the API root."""

    monkeypatch.setenv("GIBROCASH_SESSION_FILE", os.fspath(tmp_path / "session.json"))
    monkeypatch.setenv("GIBROCASH_API_BASE_URL", BASE_URL)
    monkeypatch.delenv("GIBROCASH_LOG_LEVEL", raising=False)


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def login_as(api: FakeApi) -> Iterator[Callable[..., AppContext]]:
    """Build an :class:`AppContext` with a persisted session for the given role."""

    opened: list[AppContext] = []

    def _make(designation: str | None = "ADMIN", *, user_id: int = 1) -> AppContext:
        settings = load_settings()
        if designation is not None:
            SessionStorage(settings.session_file).write(
                token=TOKEN,
                user={
                    "id": user_id,
                    "name": "Amina",
                    "phone": "0712345678",
                    "designation": designation,
                },
            )
        ctx = create_context(settings, transport=api.transport)
        opened.append(ctx)
        return ctx

    yield _make
    for ctx in opened:
        ctx.close()
