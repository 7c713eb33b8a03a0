"""Fetch helpers shared by more than one screen."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

from ..gateway import ApiGateway
from ..metrics import parse_timestamp
from ..models import EntityId, ImprestAccount, ReceiptImage, Session, Transaction
from ..normalizer import (
    normalize_admin_imprests,
    normalize_staff_imprests,
    receipt_image_path,
)

T = TypeVar("T")


def same_id(a: EntityId | None, b: EntityId | None) -> bool:
    """Compare identifiers loosely; the CLI passes strings, the API sends ints."""

    if a is None or b is None:
        return False
    return str(a) == str(b)


def find_by_id(items: Iterable[T], wanted: EntityId | None) -> T | None:
    for item in items:
        if same_id(getattr(item, "id", None), wanted):
            return item
    return None


def fetch_role_imprests(gateway: ApiGateway, session: Session) -> list[ImprestAccount]:
    """Admins see every imprest (summary endpoint); staff see their own."""

    if session.is_admin:
        return normalize_admin_imprests(gateway.get_admin_imprest_summary())
    return normalize_staff_imprests(gateway.get_imprests(session.user_id))


def newest_first(imprests: Sequence[ImprestAccount]) -> list[ImprestAccount]:
    def _key(account: ImprestAccount) -> float:
        dt = parse_timestamp(account.created_at)
        return dt.timestamp() if dt is not None else float("-inf")

    return sorted(imprests, key=_key, reverse=True)


NO_IMAGE_PATH_MESSAGE = "No image path returned from server"


def resolve_receipt(gateway: ApiGateway, transaction: Transaction) -> ReceiptImage | None:
    """Look up a transaction's receipt; ``None`` when the server has no path."""

    if transaction.receipt_image_id is None:
        return None
    path = receipt_image_path(gateway.get_transaction_image(transaction.receipt_image_id))
    if not path:
        return None
    return ReceiptImage(url=gateway.image_url(path))


__all__ = [
    "NO_IMAGE_PATH_MESSAGE",
    "fetch_role_imprests",
    "find_by_id",
    "newest_first",
    "resolve_receipt",
    "same_id",
]
