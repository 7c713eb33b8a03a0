"""HTTP gateway to the GibroCash REST API.

A single :class:`ApiGateway` wraps one ``httpx.Client`` whose base URL is
fixed at construction. Two event hooks play the role of interceptors:

- request hook: attaches ``Authorization: Bearer <token>`` whenever the token
  provider returns a token; without one the call goes out unauthenticated and
  the server decides.
- response hook: on 401/403 notifies every ``on_unauthorized`` listener
  (the session store logs out, the CLI shows the login prompt) *before* the
  error reaches the caller.

Every helper returns the decoded response body as received. Shape handling is
:mod:`gibrocash.normalizer`'s job. Errors are mapped onto
:mod:`gibrocash.errors`: transport failures become ``NetworkError``, 401/403
become ``AuthError`` and any other non-2xx becomes ``ServerMessageError``.

There is no timeout policy and no retry logic.
"""

from __future__ import annotations

import mimetypes
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeAlias

import httpx

from .errors import AuthError, NetworkError, ServerMessageError
from .logging_setup import get_logger
from .models import EntityId

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})
IMAGES_PATH = "gibroFinanceimages"

_logger = get_logger("gibrocash.gateway")

TokenProvider: TypeAlias = Callable[[], str | None]
UnauthorizedListener: TypeAlias = Callable[[int], None]


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        msg = body.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg
    return None


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiGateway:
    """Typed request helpers over the remote API (see module docstring)."""

    def __init__(
        self,
        base_url: str,
        *,
        token_provider: TokenProvider | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider or (lambda: None)
        self._listeners: list[UnauthorizedListener] = []
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=None,
            transport=transport,
            event_hooks={
                "request": [self._attach_credentials],
                "response": [self._detect_auth_failure],
            },
        )

    # ---- interceptors ------------------------------------------------------

    def _attach_credentials(self, request: httpx.Request) -> None:
        token = self._token_provider()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        _logger.debug("request method=%s path=%s", request.method, request.url.path)

    def _detect_auth_failure(self, response: httpx.Response) -> None:
        if response.status_code not in AUTH_FAILURE_STATUSES:
            return
        _logger.warning(
            "authorization rejected status=%d path=%s",
            response.status_code,
            response.request.url.path,
        )
        for listener in list(self._listeners):
            listener(response.status_code)

    def on_unauthorized(self, listener: UnauthorizedListener) -> None:
        """Register ``listener(status_code)`` for authorization failures."""

        self._listeners.append(listener)

    # ---- transport ---------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(f"Network error: {exc}") from exc

        if response.status_code in AUTH_FAILURE_STATUSES:
            raise AuthError(
                _server_message(response) or "Your session is no longer authorized.",
                status_code=response.status_code,
            )
        if response.is_error:
            raise ServerMessageError(response.status_code, _server_message(response))
        return _decode(response)

    def _upload(self, path: str, file_path: str | os.PathLike[str], **data: Any) -> Any:
        p = Path(file_path)
        mime = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        with p.open("rb") as fh:
            return self._request(
                "POST",
                path,
                files={"file": (p.name, fh, mime)},
                data={k: str(v) for k, v in data.items()} or None,
            )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ApiGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---- auth & users ------------------------------------------------------

    def login(self, phone_no: str, password: str) -> Any:
        return self._request("POST", "/login", json={"phoneNo": phone_no, "password": password})

    def get_users(self, user_id: EntityId) -> Any:
        return self._request("GET", f"/getUsers/{user_id}")

    def create_user(self, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", "/create_user", json=dict(payload))

    # ---- imprests ----------------------------------------------------------

    def create_imprest(self, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", "/create_imprest", json=dict(payload))

    def get_imprests(self, user_id: EntityId) -> Any:
        return self._request("GET", f"/getImprests/{user_id}")

    def get_admin_imprest_summary(self) -> Any:
        return self._request("GET", "/adminAllImprestSummation")

    def get_admin_totals(self) -> Any:
        return self._request("GET", "/adminSummaries")

    # ---- transactions ------------------------------------------------------

    def create_transaction(self, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", "/create_transaction", json=dict(payload))

    def get_transactions(self, imprest_id: EntityId) -> Any:
        return self._request("GET", f"/imprestAccount_trnsctns/{imprest_id}")

    def delete_transaction(self, transaction_id: EntityId) -> Any:
        return self._request("DELETE", f"/create_transaction/{transaction_id}")

    # ---- proposals ---------------------------------------------------------

    def create_proposal(self, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", "/imprestProposal", json=dict(payload))

    def update_proposal_status(self, proposal_id: EntityId, status: str) -> Any:
        return self._request(
            "PATCH", "/imprestProposal", json={"proposalId": proposal_id, "status": status}
        )

    def get_proposals(self) -> Any:
        return self._request("GET", "/proposals")

    def get_proposal(self, proposal_id: EntityId) -> Any:
        return self._request("GET", f"/proposals/{proposal_id}")

    # ---- receipts ----------------------------------------------------------

    def upload_receipt(self, file_path: str | os.PathLike[str]) -> Any:
        return self._upload("/upload", file_path)

    def upload_receipt_to_imprest(
        self, file_path: str | os.PathLike[str], imprest_id: EntityId
    ) -> Any:
        return self._upload("/upload_fromImprest", file_path, imprest_id=imprest_id)

    def get_transaction_image(self, image_id: EntityId) -> Any:
        return self._request("GET", f"/TransactionImages/{image_id}")

    def get_imprest_images(self, imprest_id: EntityId) -> Any:
        return self._request("GET", f"/requestImage/{imprest_id}")

    def get_imprest_image_count(self, imprest_id: EntityId) -> Any:
        return self._request("GET", f"/getImprestImagesCount/{imprest_id}")

    def image_url(self, image_path: str) -> str:
        return f"{self.base_url}/{IMAGES_PATH}/{image_path}"


__all__ = ["AUTH_FAILURE_STATUSES", "ApiGateway"]
