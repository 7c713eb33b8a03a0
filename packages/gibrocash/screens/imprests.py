"""Imprests: account list with status, and imprest creation for admins."""

from __future__ import annotations

from typing import Any

from ..errors import GibroCashError
from ..forms import ImprestForm, build_form
from ..models import EntityId, ImprestAccount, User
from ..normalizer import normalize_admin_imprests, normalize_staff_imprests, normalize_users
from .base import Screen
from .common import find_by_id, newest_first


class ImprestsScreen(Screen):
    title = "Imprests"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.imprests: list[ImprestAccount] = []
        self.users: list[User] = []

    @property
    def can_create(self) -> bool:
        return self.is_admin()

    def load(self) -> None:
        current = self._require_session()
        if current is None:
            return
        token = self._begin("imprests")
        self.loading = True
        self.error = ""
        users: list[User] | None = None
        try:
            if current.is_admin:
                summary_body, users_body = self._fetch_both(
                    self.gateway.get_admin_imprest_summary,
                    lambda: self.gateway.get_users(current.user_id),
                )
                imprests = normalize_admin_imprests(summary_body)
                users = normalize_users(users_body)
            else:
                imprests = normalize_staff_imprests(self.gateway.get_imprests(current.user_id))
        except GibroCashError as exc:
            if self._is_current("imprests", token):
                self._load_failed(exc, "Failed to load imprests. Please try again.")
                self.loading = False
            return

        if not self._is_current("imprests", token):
            return
        self.imprests = newest_first(imprests)
        if users is not None:
            self.users = users
        self.loading = False

    def create_imprest(
        self,
        *,
        name: str,
        amount: Any,
        assignee_id: EntityId | None,
        imprest_type: str = "company imprest",
    ) -> bool:
        """Create an imprest assigned to one of the loaded users; re-fetch on success."""

        current = self._require_session()
        if current is None:
            return False
        self.form_error = ""
        if not current.is_admin:
            self.form_error = "Only administrators can create imprests."
            return False

        self.submitting = True
        try:
            form = build_form(
                ImprestForm,
                name=name,
                amount=amount,
                imprest_type=imprest_type,
                assignee=find_by_id(self.users, assignee_id),
            )
            self.gateway.create_imprest(form.to_payload(current.user_id))
        except GibroCashError as exc:
            self._submit_failed(exc, "Failed to create imprest.")
            return False
        finally:
            self.submitting = False

        self.load()
        return True


__all__ = ["ImprestsScreen"]
