"""Raw API payload → canonical view-model normalizers.

The remote API names the same concept differently depending on which endpoint
(and which role) served it. This module is the single place that knows those
raw names; everything downstream consumes :mod:`gibrocash.models` records.

Rules
-----
- Admin imprest summary rows (``imprestName``/``allocated``/``usedAmount``/
  ``assignedTo``) and staff imprest rows (``name``/``amount``/
  ``totalTransactionPrice``/``closedStatus_Flag``) each have an explicit
  mapper; callers pick the mapper by role, never by probing fields.
- Collections are read from fixed envelope keys (``response``,
  ``transactions.rows``, ``proposals``, ``proposal``). A missing envelope or a
  non-sequence value yields an empty list.
- Amounts go through :func:`to_amount`: missing, empty, non-numeric or
  non-finite input becomes ``Decimal(0)``.

Nothing here raises on a malformed payload.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from .models import (
    AdminTotals,
    Assignee,
    EntityId,
    ImprestAccount,
    Proposal,
    ProposalLineItem,
    Transaction,
    User,
)

DEFAULT_IMPREST_SOURCE = "company imprest"
UNKNOWN_ROLE = "N/A"

_ZERO = Decimal(0)

# ---------------------------------------------------------------------------
# Helpers (amount parsing, envelope access)
# ---------------------------------------------------------------------------


def to_amount(value: Any) -> Decimal:
    """Parse ``value`` as a finite ``Decimal``; anything unusable becomes 0."""

    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        # Go through repr so 0.1 stays 0.1 rather than its binary expansion.
        d = Decimal(repr(value)) if value == value else _ZERO
    elif isinstance(value, str):
        s = value.strip().replace(",", "")
        if not s:
            return _ZERO
        try:
            d = Decimal(s)
        except InvalidOperation:
            return _ZERO
    else:
        return _ZERO
    return d if d.is_finite() else _ZERO


def _text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s if s else None


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_rows(value: Any) -> list[Mapping[str, Any]]:
    # Strings and bytes are sequences too; they are never a row collection.
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes, bytearray)):
        return []
    return [row for row in value if isinstance(row, Mapping)]


def _envelope_rows(body: Any, key: str) -> list[Mapping[str, Any]]:
    return _as_rows(_as_mapping(body).get(key))


# ---------------------------------------------------------------------------
# Imprest accounts
# ---------------------------------------------------------------------------


def _assignees(raw: Any) -> tuple[Assignee, ...] | None:
    if raw is None:
        return None
    return tuple(Assignee(id=a.get("id"), name=_text(a.get("name"))) for a in _as_rows(raw))


def imprest_from_admin(row: Mapping[str, Any]) -> ImprestAccount:
    """Map one ``/adminAllImprestSummation`` row to :class:`ImprestAccount`."""

    return ImprestAccount(
        id=row.get("id"),
        display_name=row.get("imprestName"),
        allocated_amount=to_amount(row.get("allocated")),
        used_amount=to_amount(row.get("usedAmount")),
        source=row.get("source") or DEFAULT_IMPREST_SOURCE,
        created_at=row.get("createdAt"),
        assignees=_assignees(row.get("assignedTo")),
    )


def imprest_from_staff(row: Mapping[str, Any]) -> ImprestAccount:
    """Map one ``/getImprests/{userId}`` row to :class:`ImprestAccount`."""

    closed_raw = row.get("closedStatus_Flag")
    return ImprestAccount(
        id=row.get("id"),
        display_name=row.get("name"),
        allocated_amount=to_amount(row.get("amount")),
        used_amount=to_amount(row.get("totalTransactionPrice")),
        source=row.get("source"),
        created_at=row.get("createdAt"),
        closed_flag=None if closed_raw is None else bool(closed_raw),
    )


def normalize_admin_imprests(body: Any) -> list[ImprestAccount]:
    return [imprest_from_admin(row) for row in _envelope_rows(body, "response")]


def normalize_staff_imprests(body: Any) -> list[ImprestAccount]:
    return [imprest_from_staff(row) for row in _envelope_rows(body, "response")]


def normalize_admin_totals(body: Any) -> AdminTotals:
    data = _as_mapping(body)
    return AdminTotals(
        total_allocated=to_amount(data.get("totalAllocated")),
        total_used=to_amount(data.get("totalUsedAmount")),
    )


# ---------------------------------------------------------------------------
# Transactions and receipts
# ---------------------------------------------------------------------------


def transaction_from_row(
    row: Mapping[str, Any], *, imprest_id: EntityId | None = None
) -> Transaction:
    image_id = row.get("images_id")
    owner = row.get("imprestAccount_id")
    return Transaction(
        id=row.get("id"),
        imprest_id=owner if owner is not None else imprest_id,
        item=row.get("item"),
        quantity=to_amount(row.get("quantity")),
        unit_price=to_amount(row.get("unitPrice")),
        vat_charged=to_amount(row.get("vat_charged")),
        total_price=to_amount(row.get("price")),
        created_at=row.get("createdAt"),
        receipt_image_id=image_id if image_id not in (None, "", 0) else None,
    )


def normalize_transactions(
    body: Any, *, imprest_id: EntityId | None = None
) -> list[Transaction]:
    """Read ``transactions.rows``; an absent or malformed path yields ``[]``."""

    envelope = _as_mapping(_as_mapping(body).get("transactions"))
    return [
        transaction_from_row(row, imprest_id=imprest_id) for row in _as_rows(envelope.get("rows"))
    ]


def receipt_image_path(body: Any) -> str | None:
    return _text(_as_mapping(body).get("path"))


def uploaded_receipt_url(body: Any) -> str:
    return _text(_as_mapping(body).get("url")) or ""


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


def unit_price_of(total: Decimal, quantity: Decimal) -> Decimal:
    """Back-compute a unit price, yielding a non-finite value for zero quantity.

    Mirrors IEEE division: ``x / 0`` is ``±Infinity`` by the sign of ``x`` and
    ``0 / 0`` is ``NaN``. Whether the server can ever send a zero quantity is
    unknown, so the value is displayed rather than corrected.
    """

    if quantity == 0:
        if total == 0:
            return Decimal("NaN")
        return Decimal("-Infinity") if total < 0 else Decimal("Infinity")
    return total / quantity


def _line_item(row: Mapping[str, Any]) -> ProposalLineItem:
    quantity = to_amount(row.get("quantity"))
    total = to_amount(row.get("total_price"))
    return ProposalLineItem(
        id=row.get("id"),
        item_name=row.get("item"),
        quantity=quantity,
        unit_total_price=unit_price_of(total, quantity),
        total_price=total,
    )


def proposal_from_row(row: Mapping[str, Any]) -> Proposal:
    status = (_text(row.get("status")) or "pending").lower()
    return Proposal(
        id=row.get("id"),
        title=row.get("name"),
        total_amount=to_amount(row.get("total")),
        status=status,
        created_at=row.get("createdAt"),
        line_items=tuple(_line_item(r) for r in _as_rows(row.get("item_proposed_tbls"))),
    )


def normalize_proposals(body: Any) -> list[Proposal]:
    return [proposal_from_row(row) for row in _envelope_rows(body, "proposals")]


def normalize_proposal_detail(body: Any) -> Proposal | None:
    raw = _as_mapping(body).get("proposal")
    if not isinstance(raw, Mapping):
        return None
    return proposal_from_row(raw)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def user_from_row(row: Mapping[str, Any]) -> User:
    role = _text(_as_mapping(row.get("designation_tbl")).get("name"))
    return User(
        id=row.get("id"),
        name=row.get("name"),
        phone=row.get("phone"),
        role=role or UNKNOWN_ROLE,
        created_at=row.get("createdAt"),
    )


def normalize_users(body: Any) -> list[User]:
    return [user_from_row(row) for row in _envelope_rows(body, "response")]


__all__ = [
    "DEFAULT_IMPREST_SOURCE",
    "UNKNOWN_ROLE",
    "imprest_from_admin",
    "imprest_from_staff",
    "normalize_admin_imprests",
    "normalize_admin_totals",
    "normalize_proposal_detail",
    "normalize_proposals",
    "normalize_staff_imprests",
    "normalize_transactions",
    "normalize_users",
    "proposal_from_row",
    "receipt_image_path",
    "to_amount",
    "transaction_from_row",
    "unit_price_of",
    "uploaded_receipt_url",
    "user_from_row",
]
