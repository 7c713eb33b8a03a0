"""Canonical view-model records.

Every screen works on these shapes regardless of which endpoint (or which
role) served the underlying payload; :mod:`gibrocash.normalizer` is the only
place that knows the raw field names.

Monetary amounts are ``Decimal`` values in Kenyan Shillings. Identifiers and
timestamps are carried exactly as the server sent them (``id`` may be an
``int`` or a ``str``; ``created_at`` is the raw ISO string) because the client
never owns these entities and only echoes them back in later requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, TypeAlias

EntityId: TypeAlias = int | str


@dataclass(frozen=True, slots=True)
class Session:
    """The authenticated identity; role is derived from ``designation``."""

    user_id: EntityId
    name: str | None
    phone: str | None
    designation: str | None

    @property
    def is_admin(self) -> bool:
        return (self.designation or "").lower() == "admin"

    def to_storage(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "designation": self.designation,
        }


@dataclass(frozen=True, slots=True)
class Assignee:
    id: EntityId
    name: str | None


@dataclass(frozen=True, slots=True)
class ImprestAccount:
    """A pre-allocated fund account.

    ``closed_flag`` is only reported by the staff listing and ``assignees``
    only by the admin listing; the other source leaves them ``None``.
    ``allocated_amount - used_amount`` may legitimately be negative.
    """

    id: EntityId
    display_name: str | None
    allocated_amount: Decimal
    used_amount: Decimal
    source: str | None
    created_at: str | None
    closed_flag: bool | None = None
    assignees: tuple[Assignee, ...] | None = None


@dataclass(frozen=True, slots=True)
class Transaction:
    """One expense drawn against an imprest.

    ``total_price`` is authoritative from the server and is never recomputed
    from ``quantity * unit_price + vat_charged`` on the client.
    """

    id: EntityId
    imprest_id: EntityId | None
    item: str | None
    quantity: Decimal
    unit_price: Decimal
    vat_charged: Decimal
    total_price: Decimal
    created_at: str | None
    receipt_image_id: EntityId | None = None


@dataclass(frozen=True, slots=True)
class ProposalLineItem:
    """A proposed purchase line.

    ``unit_total_price`` is back-computed as ``total_price / quantity`` and is
    non-finite (``Infinity``/``NaN``) when the server reports a zero quantity.
    """

    id: EntityId | None
    item_name: str | None
    quantity: Decimal
    unit_total_price: Decimal
    total_price: Decimal


PROPOSAL_STATUSES: tuple[str, ...] = ("pending", "approved", "partial", "rejected")
TERMINAL_PROPOSAL_STATUSES: frozenset[str] = frozenset({"approved", "partial", "rejected"})


@dataclass(frozen=True, slots=True)
class Proposal:
    id: EntityId
    title: str | None
    total_amount: Decimal
    status: str
    created_at: str | None
    line_items: tuple[ProposalLineItem, ...] = field(default_factory=tuple)

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


@dataclass(frozen=True, slots=True)
class User:
    id: EntityId
    name: str | None
    phone: str | None
    role: str
    created_at: str | None = None


@dataclass(frozen=True, slots=True)
class AdminTotals:
    total_allocated: Decimal
    total_used: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.total_allocated - self.total_used


@dataclass(frozen=True, slots=True)
class ReceiptImage:
    """A resolved receipt location for display."""

    url: str

    @property
    def is_pdf(self) -> bool:
        return self.url.lower().endswith(".pdf")


__all__ = [
    "AdminTotals",
    "Assignee",
    "EntityId",
    "ImprestAccount",
    "PROPOSAL_STATUSES",
    "Proposal",
    "ProposalLineItem",
    "ReceiptImage",
    "Session",
    "TERMINAL_PROPOSAL_STATUSES",
    "Transaction",
    "User",
]
