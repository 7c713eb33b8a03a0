"""Derived metrics over canonical records, plus KES display formatting.

All functions are pure. Amount inputs are parsed with
:func:`gibrocash.normalizer.to_amount`, so garbage counts as zero rather than
raising.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal, Protocol, TypeAlias

from .models import ImprestAccount, Transaction
from .normalizer import to_amount

CURRENCY_CODE = "KES"
LOW_BALANCE_RATIO = Decimal("0.2")

StatusClass: TypeAlias = Literal["closed", "depleted", "low", "active"]

_HUNDRED = Decimal(100)
_CENT = Decimal("0.01")


def balance(account: ImprestAccount) -> Decimal:
    """``allocated - used``; negative values signal overspend and are kept."""

    return to_amount(account.allocated_amount) - to_amount(account.used_amount)


def balance_class(value: Decimal) -> Literal["positive", "negative"]:
    return "negative" if value < 0 else "positive"


def utilization_percent(account: ImprestAccount) -> Decimal:
    """Percentage of the allocation used, for the text label (not clamped).

    A zero allocation divides by 1 instead, so the label never raises and an
    unfunded account with spend reads as heavily overspent.
    """

    allocated = to_amount(account.allocated_amount)
    return to_amount(account.used_amount) / (allocated or Decimal(1)) * _HUNDRED


def progress_width(account: ImprestAccount) -> Decimal:
    """:func:`utilization_percent` clamped to ``[0, 100]`` for progress bars."""

    return min(max(utilization_percent(account), Decimal(0)), _HUNDRED)


def status_class(account: ImprestAccount) -> StatusClass:
    # First matching rule wins: closed, depleted, low, active.
    if account.closed_flag:
        return "closed"
    remaining = balance(account)
    if remaining <= 0:
        return "depleted"
    if remaining < to_amount(account.allocated_amount) * LOW_BALANCE_RATIO:
        return "low"
    return "active"


def transaction_total(quantity: Any, unit_price: Any, vat_charged: Any = 0) -> Decimal:
    """Preview total of an unsaved line: ``quantity * unit_price + vat_charged``.

    Never used to override a ``total_price`` the server has confirmed.
    """

    return to_amount(quantity) * to_amount(unit_price) + to_amount(vat_charged)


class _PricedLine(Protocol):
    quantity: Any
    price: Any


def proposal_total(items: Iterable[_PricedLine]) -> Decimal:
    return sum((to_amount(i.quantity) * to_amount(i.price) for i in items), Decimal(0))


def sum_debits(transactions: Iterable[Transaction]) -> Decimal:
    return sum((to_amount(t.total_price) for t in transactions), Decimal(0))


def proposal_status_class(status: str | None) -> Literal["approved", "rejected", "partial", "pending"]:
    s = (status or "").lower()
    if s == "approved":
        return "approved"
    if s == "rejected":
        return "rejected"
    if s == "partial":
        return "partial"
    return "pending"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_kes(value: Any) -> str:
    """Render an amount as ``KES 1,234.56`` (``-KES 1,234.56`` when negative).

    ``None`` and unparseable input render as ``KES 0.00``. Non-finite values
    (from back-computed unit prices) render as ``KES ∞``/``-KES ∞``/``KES NaN``.
    """

    if isinstance(value, Decimal) and not value.is_finite():
        if value.is_nan():
            return f"{CURRENCY_CODE} NaN"
        return f"-{CURRENCY_CODE} ∞" if value < 0 else f"{CURRENCY_CODE} ∞"
    q = to_amount(value).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if q < 0 else ""
    return f"{sign}{CURRENCY_CODE} {abs(q):,.2f}"


def format_percent(value: Decimal) -> str:
    return f"{value.quantize(Decimal(1), rounding=ROUND_HALF_UP)}%"


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: str | None, *, with_time: bool = False) -> str:
    """Render an ISO timestamp as ``19 Oct 2026`` (optionally ``, 14:05``)."""

    dt = parse_timestamp(value)
    if dt is None:
        return value or ""
    text = f"{dt.day} {dt:%b %Y}"
    if with_time:
        text += f", {dt:%H:%M}"
    return text


__all__ = [
    "CURRENCY_CODE",
    "LOW_BALANCE_RATIO",
    "balance",
    "balance_class",
    "format_date",
    "format_kes",
    "format_percent",
    "parse_timestamp",
    "progress_width",
    "proposal_status_class",
    "proposal_total",
    "status_class",
    "sum_debits",
    "transaction_total",
    "utilization_percent",
]
