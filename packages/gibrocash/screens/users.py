"""Users: admin-only listing and registration."""

from __future__ import annotations

from ..errors import GibroCashError
from ..forms import UserForm, build_form
from ..models import User
from ..normalizer import normalize_users
from .base import Screen

ADMIN_ONLY_MESSAGE = "Only administrators can manage users."


class UsersScreen(Screen):
    title = "Users"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.users: list[User] = []

    def load(self) -> None:
        current = self._require_session()
        if current is None:
            return
        if not current.is_admin:
            self.error = ADMIN_ONLY_MESSAGE
            return
        token = self._begin("users")
        self.loading = True
        self.error = ""
        try:
            users = normalize_users(self.gateway.get_users(current.user_id))
        except GibroCashError as exc:
            if self._is_current("users", token):
                self._load_failed(exc, "Failed to load users.")
                self.loading = False
            return
        if not self._is_current("users", token):
            return
        self.users = users
        self.loading = False

    def create_user(
        self,
        *,
        user_name: str,
        phone_no: str,
        password: str,
        confirm_password: str,
        designation: str = "STAFF",
    ) -> bool:
        """Validate locally first; nothing is sent when a check fails."""

        current = self._require_session()
        if current is None:
            return False
        self.form_error = ""
        if not current.is_admin:
            self.form_error = ADMIN_ONLY_MESSAGE
            return False

        self.submitting = True
        try:
            form = build_form(
                UserForm,
                user_name=user_name,
                phone_no=phone_no,
                password=password,
                confirm_password=confirm_password,
                designation=designation,
            )
            self.gateway.create_user(form.to_payload())
        except GibroCashError as exc:
            self._submit_failed(exc, "Failed to create user.")
            return False
        finally:
            self.submitting = False
        self.load()
        return True


__all__ = ["ADMIN_ONLY_MESSAGE", "UsersScreen"]
