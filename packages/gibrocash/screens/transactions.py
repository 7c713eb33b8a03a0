"""Transactions: per-imprest expense ledger with receipt upload and deletion.

Deletion is not role-gated here: the observed client lets any authenticated
user delete any transaction, and whether that is intended is a server-side
authorization decision.
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Any

from ..errors import GibroCashError
from ..forms import TransactionForm, build_form
from ..logging_setup import get_logger
from ..metrics import sum_debits, transaction_total
from ..models import EntityId, ImprestAccount, ReceiptImage, Transaction
from ..normalizer import normalize_transactions, uploaded_receipt_url
from .base import Screen
from .common import (
    NO_IMAGE_PATH_MESSAGE,
    fetch_role_imprests,
    find_by_id,
    resolve_receipt,
    same_id,
)

_logger = get_logger("gibrocash.screens.transactions")


class TransactionsScreen(Screen):
    title = "Transactions"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.imprests: list[ImprestAccount] = []
        self.selected_imprest_id: EntityId | None = None
        self.transactions: list[Transaction] = []
        self.loading_transactions = False
        self.selected_transaction: Transaction | None = None
        self.receipt: ReceiptImage | None = None
        self.image_error = ""
        self.loading_image = False

    @property
    def selected_imprest(self) -> ImprestAccount | None:
        return find_by_id(self.imprests, self.selected_imprest_id)

    def total_debits(self) -> Decimal:
        return sum_debits(self.transactions)

    # ---- loading -----------------------------------------------------------

    def load(self) -> None:
        """Load the role's imprests and the selected imprest's transactions.

        The first imprest is selected when nothing (or a vanished imprest) was
        selected before.
        """

        if not self._load_imprests():
            return
        if self.selected_imprest is None and self.imprests:
            self.selected_imprest_id = self.imprests[0].id
        if self.selected_imprest_id is not None:
            self.refresh_transactions()

    def _load_imprests(self) -> bool:
        current = self._require_session()
        if current is None:
            return False
        token = self._begin("imprests")
        self.loading = True
        self.error = ""
        try:
            imprests = fetch_role_imprests(self.gateway, current)
        except GibroCashError as exc:
            if self._is_current("imprests", token):
                self._load_failed(exc, "Failed to load imprests.")
                self.loading = False
            return False
        if not self._is_current("imprests", token):
            return False
        self.imprests = imprests
        self.loading = False
        return True

    def select_imprest(self, imprest_id: EntityId) -> None:
        if self._require_session() is None:
            return
        if find_by_id(self.imprests, imprest_id) is None:
            self.error = f"Imprest {imprest_id} not found."
            return
        self.selected_imprest_id = imprest_id
        self.selected_transaction = None
        self.receipt = None
        self.image_error = ""
        self.refresh_transactions()

    def refresh_transactions(self) -> None:
        imprest = self.selected_imprest
        if imprest is None or self._require_session() is None:
            return
        token = self._begin("transactions")
        self.loading_transactions = True
        self.error = ""
        try:
            rows = normalize_transactions(
                self.gateway.get_transactions(imprest.id), imprest_id=imprest.id
            )
        except GibroCashError as exc:
            if self._is_current("transactions", token):
                self.transactions = []
                self._load_failed(exc, "Failed to load transactions.")
                self.loading_transactions = False
            return
        if self._is_current("transactions", token):
            self.transactions = rows
            self.loading_transactions = False

    # ---- mutations ---------------------------------------------------------

    @staticmethod
    def preview_total(item_quantity: Any, unit_price: Any, vat_charged: Any = 0) -> Decimal:
        """Live total of the unsaved form; the server's figure wins once saved."""

        return transaction_total(item_quantity, unit_price, vat_charged)

    def add_transaction(
        self,
        *,
        item: str,
        unit_price: Any,
        item_quantity: Any = 1,
        vat_charged: Any = 0,
        receipt: str | os.PathLike[str] | None = None,
    ) -> bool:
        """Validate, upload the receipt (if any), create, then re-fetch."""

        current = self._require_session()
        if current is None:
            return False
        self.form_error = ""
        imprest = self.selected_imprest
        if imprest is None:
            self.form_error = "Select an imprest account first."
            return False

        self.submitting = True
        try:
            form = build_form(
                TransactionForm,
                item=item,
                item_quantity=item_quantity,
                unit_price=unit_price,
                vat_charged=vat_charged,
                receipt=receipt,
            )
            image_url = ""
            if form.receipt is not None:
                uploaded = self.gateway.upload_receipt_to_imprest(form.receipt, imprest.id)
                image_url = uploaded_receipt_url(uploaded)
            self.gateway.create_transaction(
                form.to_payload(imprest_id=imprest.id, user_id=current.user_id, image_url=image_url)
            )
        except GibroCashError as exc:
            self._submit_failed(exc, "Failed to create transaction.")
            return False
        finally:
            self.submitting = False

        if self._load_imprests():
            self.refresh_transactions()
        return True

    def delete_transaction(self, transaction_id: EntityId) -> bool:
        if self._require_session() is None:
            return False
        try:
            self.gateway.delete_transaction(transaction_id)
        except GibroCashError as exc:
            self._load_failed(exc, "Failed to delete transaction.")
            return False
        if self.selected_transaction is not None and same_id(
            self.selected_transaction.id, transaction_id
        ):
            self.selected_transaction = None
            self.receipt = None
        if self._load_imprests():
            self.refresh_transactions()
        return True

    # ---- receipts ----------------------------------------------------------

    def select_transaction(self, transaction_id: EntityId) -> None:
        """Toggle the receipt viewer for a transaction."""

        if self.selected_transaction is not None and same_id(
            self.selected_transaction.id, transaction_id
        ):
            self.selected_transaction = None
            self.receipt = None
            self.image_error = ""
            return

        txn = find_by_id(self.transactions, transaction_id)
        if txn is None:
            self.error = f"Transaction {transaction_id} not found."
            return
        self.selected_transaction = txn
        self.receipt = None
        self.image_error = ""
        if txn.receipt_image_id is None:
            return

        token = self._begin("receipt")
        self.loading_image = True
        try:
            receipt = resolve_receipt(self.gateway, txn)
        except GibroCashError as exc:
            _logger.warning("failed to load receipt transaction_id=%s", txn.id, exc_info=True)
            if self._is_current("receipt", token):
                self.image_error = f"Failed to load image: {exc}"
                self.loading_image = False
            return
        if not self._is_current("receipt", token):
            return
        self.receipt = receipt
        if receipt is None:
            self.image_error = NO_IMAGE_PATH_MESSAGE
        self.loading_image = False


__all__ = ["TransactionsScreen"]
