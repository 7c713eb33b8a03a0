"""Fake GibroCash API served through ``httpx.MockTransport``.

Tests register canned responses per ``(method, path)`` and then inspect the
recorded requests. A route can also be given a ``before`` hook that runs
arbitrary code while the request is in flight (e.g., unmounting a screen or
starting a newer request), which is how stale-result dropping is exercised.

Unregistered routes answer ``404`` with a JSON ``message`` so a missing stub
shows up as a visible error rather than a hang.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

BASE_URL = "https://api.test"

Handler = Callable[[httpx.Request], httpx.Response]


@dataclass
class _Route:
    responses: list[Handler] = field(default_factory=list)
    served_last: bool = False

    def add(self, respond: Handler) -> None:
        # A repeating response that was already served gives way to a new one.
        if self.served_last:
            self.responses.clear()
            self.served_last = False
        self.responses.append(respond)

    def next(self) -> Handler:
        # Responses are served in order; the last one repeats.
        if len(self.responses) > 1:
            return self.responses.pop(0)
        self.served_last = True
        return self.responses[0]


class FakeApi:
    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], _Route] = {}
        self.requests: list[httpx.Request] = []

    # ---- registration --------------------------------------------------

    def on(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        *,
        status: int = 200,
        error: type[httpx.TransportError] | None = None,
        handler: Handler | None = None,
        before: Callable[[httpx.Request], None] | None = None,
    ) -> FakeApi:
        """Queue a response for ``method path``.

        Exactly one of ``json_body``/``status``, ``error`` or ``handler``
        decides the outcome. ``before`` runs first in every case.
        """

        def _respond(request: httpx.Request) -> httpx.Response:
            if before is not None:
                before(request)
            if handler is not None:
                return handler(request)
            if error is not None:
                raise error("simulated transport failure", request=request)
            if json_body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=json_body)

        route = self._routes.setdefault((method.upper(), path), _Route())
        route.add(_respond)
        return self

    # ---- transport -----------------------------------------------------

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(
                404, json={"message": f"no stub for {request.method} {request.url.path}"}
            )
        return route.next()(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._dispatch)

    # ---- inspection ----------------------------------------------------

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if (method is None or r.method == method.upper())
            and (path is None or r.url.path == path)
        ]

    def json_of(self, method: str, path: str, index: int = -1) -> Any:
        return json.loads(self.calls(method, path)[index].content)


# ---------------------------------------------------------------------------
# Payload builders (raw server shapes)
# ---------------------------------------------------------------------------


def admin_imprest_row(
    id: int = 1,
    *,
    name: str = "Office",
    allocated: Any = 1000,
    used: Any = 250,
    created_at: str = "2026-10-01T08:00:00.000Z",
    source: Any = None,
    assigned_to: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": id,
        "imprestName": name,
        "allocated": allocated,
        "usedAmount": used,
        "createdAt": created_at,
        "assignedTo": assigned_to if assigned_to is not None else [{"id": 7, "name": "Jane"}],
    }
    if source is not None:
        row["source"] = source
    return row


def staff_imprest_row(
    id: int = 2,
    *,
    name: str = "Fuel",
    amount: Any = 500,
    used: Any = 100,
    closed: Any = 0,
    created_at: str = "2026-10-02T09:30:00.000Z",
    source: str = "company imprest",
) -> dict[str, Any]:
    return {
        "id": id,
        "name": name,
        "amount": amount,
        "totalTransactionPrice": used,
        "closedStatus_Flag": closed,
        "createdAt": created_at,
        "source": source,
    }


def transaction_row(
    id: int = 10,
    *,
    item: str = "Printer paper",
    quantity: Any = 2,
    unit_price: Any = 40,
    vat: Any = 20,
    price: Any = 100,
    imprest_id: Any = 1,
    images_id: Any = None,
    created_at: str = "2026-10-03T10:15:00.000Z",
) -> dict[str, Any]:
    return {
        "id": id,
        "item": item,
        "quantity": quantity,
        "unitPrice": unit_price,
        "vat_charged": vat,
        "price": price,
        "imprestAccount_id": imprest_id,
        "images_id": images_id,
        "createdAt": created_at,
    }


def transactions_body(*rows: dict[str, Any]) -> dict[str, Any]:
    return {"transactions": {"count": len(rows), "rows": list(rows)}}


def proposal_row(
    id: int = 5,
    *,
    name: str = "Team lunch",
    total: Any = 3000,
    status: Any = "pending",
    items: list[dict[str, Any]] | None = None,
    created_at: str = "2026-10-04T12:00:00.000Z",
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": id,
        "name": name,
        "total": total,
        "status": status,
        "createdAt": created_at,
    }
    if items is not None:
        row["item_proposed_tbls"] = items
    return row


def user_row(
    id: int = 7,
    *,
    name: str = "Jane",
    phone: str = "0712345678",
    role: str | None = "STAFF",
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": id,
        "name": name,
        "phone": phone,
        "createdAt": "2026-09-30T07:00:00.000Z",
    }
    if role is not None:
        row["designation_tbl"] = {"name": role}
    return row


__all__ = [
    "BASE_URL",
    "FakeApi",
    "admin_imprest_row",
    "proposal_row",
    "staff_imprest_row",
    "transaction_row",
    "transactions_body",
    "user_row",
]
