"""Dashboard: imprest overview, admin totals and per-imprest transactions."""

from __future__ import annotations

from ..errors import GibroCashError
from ..logging_setup import get_logger
from ..models import AdminTotals, EntityId, ImprestAccount, ReceiptImage, Transaction
from ..normalizer import (
    normalize_admin_imprests,
    normalize_admin_totals,
    normalize_staff_imprests,
    normalize_transactions,
)
from .base import Screen
from .common import NO_IMAGE_PATH_MESSAGE, find_by_id, newest_first, resolve_receipt, same_id

_logger = get_logger("gibrocash.screens.dashboard")


class DashboardScreen(Screen):
    title = "Dashboard"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.imprests: list[ImprestAccount] = []
        self.summary: AdminTotals | None = None
        self.selected_imprest: ImprestAccount | None = None
        self.transactions: list[Transaction] = []
        self.selected_transaction: Transaction | None = None
        self.receipt: ReceiptImage | None = None
        self.image_error = ""
        self.loading_image = False

    def load(self) -> None:
        current = self._require_session()
        if current is None:
            return
        token = self._begin("imprests")
        self.loading = True
        self.error = ""
        try:
            if current.is_admin:
                totals_body, summary_body = self._fetch_both(
                    self.gateway.get_admin_totals, self.gateway.get_admin_imprest_summary
                )
                summary: AdminTotals | None = normalize_admin_totals(totals_body)
                imprests = normalize_admin_imprests(summary_body)
            else:
                summary = None
                imprests = normalize_staff_imprests(self.gateway.get_imprests(current.user_id))
        except GibroCashError as exc:
            if self._is_current("imprests", token):
                self._load_failed(exc, "Failed to load data. Please try again.")
                self.loading = False
            return

        if not self._is_current("imprests", token):
            return
        self.summary = summary
        self.imprests = newest_first(imprests)
        self.loading = False

    def select_imprest(self, imprest_id: EntityId) -> None:
        if self._require_session() is None:
            return
        imprest = find_by_id(self.imprests, imprest_id)
        if imprest is None:
            self.error = f"Imprest {imprest_id} not found."
            return
        self.selected_imprest = imprest
        self.selected_transaction = None
        self.receipt = None
        self.image_error = ""

        token = self._begin("transactions")
        self.error = ""
        try:
            rows = normalize_transactions(
                self.gateway.get_transactions(imprest.id), imprest_id=imprest.id
            )
        except GibroCashError as exc:
            if self._is_current("transactions", token):
                self.transactions = []
                self._load_failed(exc, "Failed to load transactions.")
            return
        if self._is_current("transactions", token):
            self.transactions = rows

    def select_transaction(self, transaction_id: EntityId) -> None:
        """Toggle the receipt panel for a transaction of the selected imprest."""

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


__all__ = ["DashboardScreen"]
