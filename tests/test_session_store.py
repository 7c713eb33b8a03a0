from __future__ import annotations

import json
import threading

import httpx
import pytest

from gibrocash.context import create_context
from gibrocash.errors import AuthError
from gibrocash.screens import SESSION_EXPIRED_MESSAGE, DashboardScreen
from gibrocash.settings import load_settings
from gibrocash.storage import SessionStorage

LOGIN_OK = {
    "token": "tok-new",
    "id": 4,
    "name": "Brian",
    "phone": "0722000111",
    "designation": "Staff",
}


@pytest.fixture
def ctx(api):
    with create_context(load_settings(), transport=api.transport) as c:
        yield c


def test_restore_without_persisted_state_is_logged_out(ctx):
    assert ctx.session.restore() is None
    assert ctx.session.current is None
    assert ctx.session.is_authenticated is False
    assert ctx.session.is_admin() is False


def test_restore_requires_both_token_and_identity(ctx):
    ctx.settings.session_file.write_text(json.dumps({"token": "t"}), encoding="utf-8")
    assert ctx.session.restore() is None

    ctx.settings.session_file.write_text(
        json.dumps({"user": {"id": 1, "designation": "ADMIN"}}), encoding="utf-8"
    )
    assert ctx.session.restore() is None


def test_corrupt_session_file_reads_as_logged_out(ctx):
    ctx.settings.session_file.write_text("{not json", encoding="utf-8")
    assert ctx.session.restore() is None
    assert ctx.storage.token() is None


def test_restore_makes_no_network_call(login_as, api):
    c = login_as("ADMIN")
    assert c.session.current is not None
    assert c.session.is_admin() is True
    assert api.requests == []


def test_login_persists_token_and_identity(ctx, api):
    api.on("POST", "/login", LOGIN_OK)
    api.on("GET", "/getImprests/4", {"response": []})

    session = ctx.session.login("0722000111", "secret")

    assert session.user_id == 4
    assert session.is_admin is False
    assert ctx.session.token() == "tok-new"
    stored = json.loads(ctx.settings.session_file.read_text(encoding="utf-8"))
    assert stored["token"] == "tok-new"
    assert stored["user"]["designation"] == "Staff"

    # The next request carries the new credential.
    ctx.gateway.get_imprests(4)
    assert api.requests[-1].headers["Authorization"] == "Bearer tok-new"

    # A fresh process restores the same identity.
    with create_context(load_settings(), transport=api.transport) as again:
        assert again.session.current == session


def test_rejected_login_raises_with_server_message_and_persists_nothing(ctx, api):
    api.on("POST", "/login", {"message": "Invalid phone number or password"}, status=401)
    with pytest.raises(AuthError, match="Invalid phone number or password"):
        ctx.session.login("0722000111", "wrong")
    assert ctx.session.current is None
    assert not ctx.settings.session_file.exists()


def test_login_server_error_surfaces_as_auth_error(ctx, api):
    api.on("POST", "/login", {"message": "User not found"}, status=404)
    with pytest.raises(AuthError, match="User not found"):
        ctx.session.login("0722000111", "secret")


def test_login_network_failure_surfaces_as_auth_error(ctx, api):
    api.on("POST", "/login", error=httpx.ConnectError)
    with pytest.raises(AuthError, match="Network error"):
        ctx.session.login("0722000111", "secret")


def test_login_response_without_token_is_rejected(ctx, api):
    api.on("POST", "/login", {"id": 4})
    with pytest.raises(AuthError, match="did not include a token"):
        ctx.session.login("0722000111", "secret")
    assert not ctx.settings.session_file.exists()


def test_logout_is_idempotent_and_notifies_once(login_as):
    c = login_as("STAFF")
    reasons: list[str] = []
    c.session.on_logout(reasons.append)

    c.session.logout()
    c.session.logout()

    assert reasons == ["logout"]
    assert c.session.current is None
    assert c.session.token() is None
    assert not c.settings.session_file.exists()


def test_authorization_failure_forces_logout(login_as, api):
    c = login_as("STAFF", user_id=2)
    reasons: list[str] = []
    c.session.on_logout(reasons.append)
    api.on("GET", "/getImprests/2", {"message": "jwt expired"}, status=403)

    with pytest.raises(AuthError):
        c.gateway.get_imprests(2)

    assert reasons == ["unauthorized:403"]
    assert c.session.current is None
    assert SessionStorage(c.settings.session_file).read().token is None


def test_concurrent_authorization_failures_log_out_once(login_as, api):
    c = login_as("ADMIN")
    reasons: list[str] = []
    c.session.on_logout(reasons.append)
    both_in_flight = threading.Barrier(2, timeout=5)

    def _wait_for_peer(request):
        both_in_flight.wait()

    expired = {"message": "jwt expired"}
    api.on("GET", "/adminSummaries", expired, status=403, before=_wait_for_peer)
    api.on("GET", "/adminAllImprestSummation", expired, status=403, before=_wait_for_peer)

    screen = DashboardScreen(c.gateway, c.session)
    screen.load()

    assert screen.error == SESSION_EXPIRED_MESSAGE
    assert reasons == ["unauthorized:403"]
    assert c.session.current is None
