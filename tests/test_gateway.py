from __future__ import annotations

import httpx
import pytest

from gibrocash.errors import AuthError, NetworkError, ServerMessageError
from gibrocash.gateway import ApiGateway
from tests.helpers.api_stub import BASE_URL, FakeApi


def _gateway(api: FakeApi, token: str | None = None) -> ApiGateway:
    return ApiGateway(BASE_URL, token_provider=lambda: token, transport=api.transport)


def test_bearer_token_attached_when_present(api):
    api.on("GET", "/proposals", {"proposals": []})
    with _gateway(api, token="tok-abc") as gw:
        gw.get_proposals()
    assert api.requests[-1].headers["Authorization"] == "Bearer tok-abc"


def test_no_authorization_header_without_token(api):
    api.on("GET", "/proposals", {"proposals": []})
    with _gateway(api) as gw:
        gw.get_proposals()
    assert "Authorization" not in api.requests[-1].headers


@pytest.mark.parametrize("status", [401, 403])
def test_auth_failure_notifies_listeners_before_raising(api, status):
    api.on("GET", "/adminSummaries", {"message": "Token expired"}, status=status)
    seen: list[int] = []
    with _gateway(api, token="t") as gw:
        gw.on_unauthorized(seen.append)
        with pytest.raises(AuthError) as excinfo:
            gw.get_admin_totals()
    assert seen == [status]
    assert excinfo.value.status_code == status
    assert str(excinfo.value) == "Token expired"


def test_server_error_carries_server_message(api):
    api.on("POST", "/create_imprest", {"message": "Imprest name already exists"}, status=400)
    with _gateway(api, token="t") as gw:
        with pytest.raises(ServerMessageError) as excinfo:
            gw.create_imprest({"name": "Office"})
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Imprest name already exists"


def test_server_error_without_json_body(api):
    api.on("GET", "/proposals", handler=lambda req: httpx.Response(502, text="Bad gateway"))
    with _gateway(api) as gw:
        with pytest.raises(ServerMessageError) as excinfo:
            gw.get_proposals()
    assert excinfo.value.message is None
    assert "502" in str(excinfo.value)


def test_transport_failure_becomes_network_error(api):
    api.on("GET", "/proposals", error=httpx.ConnectError)
    with _gateway(api) as gw:
        with pytest.raises(NetworkError):
            gw.get_proposals()


def test_empty_body_decodes_to_none(api):
    api.on("DELETE", "/create_transaction/10", status=204)
    with _gateway(api, token="t") as gw:
        assert gw.delete_transaction(10) is None


@pytest.mark.parametrize(
    ("call", "method", "path"),
    [
        (lambda gw: gw.get_users(1), "GET", "/getUsers/1"),
        (lambda gw: gw.get_imprests(2), "GET", "/getImprests/2"),
        (lambda gw: gw.get_admin_imprest_summary(), "GET", "/adminAllImprestSummation"),
        (lambda gw: gw.get_transactions(3), "GET", "/imprestAccount_trnsctns/3"),
        (lambda gw: gw.get_proposal(5), "GET", "/proposals/5"),
        (lambda gw: gw.get_transaction_image(33), "GET", "/TransactionImages/33"),
        (lambda gw: gw.get_imprest_images(3), "GET", "/requestImage/3"),
        (lambda gw: gw.get_imprest_image_count(3), "GET", "/getImprestImagesCount/3"),
        (lambda gw: gw.create_user({}), "POST", "/create_user"),
        (lambda gw: gw.create_transaction({}), "POST", "/create_transaction"),
        (lambda gw: gw.create_proposal({}), "POST", "/imprestProposal"),
    ],
)
def test_endpoint_paths(api, call, method, path):
    api.on(method, path, {"ok": True})
    with _gateway(api, token="t") as gw:
        assert call(gw) == {"ok": True}
    assert api.requests[-1].method == method
    assert api.requests[-1].url.path == path


def test_login_and_status_update_bodies(api):
    api.on("POST", "/login", {"token": "x", "id": 1})
    api.on("PATCH", "/imprestProposal", {"message": "ok"})
    with _gateway(api) as gw:
        gw.login("0712345678", "secret")
        gw.update_proposal_status(5, "approved")
    assert api.json_of("POST", "/login") == {"phoneNo": "0712345678", "password": "secret"}
    assert api.json_of("PATCH", "/imprestProposal") == {"proposalId": 5, "status": "approved"}


def test_receipt_upload_is_multipart_with_imprest_id(api, tmp_path):
    receipt = tmp_path / "receipt.png"
    receipt.write_bytes(b"\x89PNG fake")
    api.on("POST", "/upload_fromImprest", {"url": "receipts/receipt.png"})

    with _gateway(api, token="t") as gw:
        body = gw.upload_receipt_to_imprest(receipt, 4)

    assert body == {"url": "receipts/receipt.png"}
    req = api.calls("POST", "/upload_fromImprest")[0]
    assert req.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="file"; filename="receipt.png"' in req.content
    assert b'name="imprest_id"' in req.content
    assert b"image/png" in req.content


def test_image_url_makes_no_request(api):
    with ApiGateway(BASE_URL + "/", transport=api.transport) as gw:
        assert gw.image_url("r/1.pdf") == f"{BASE_URL}/gibroFinanceimages/r/1.pdf"
    assert api.requests == []
