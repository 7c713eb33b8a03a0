"""Screen controllers and the role-aware navigation list."""

from __future__ import annotations

from ..models import Session
from .base import LOGIN_REQUIRED_MESSAGE, SESSION_EXPIRED_MESSAGE, Screen
from .dashboard import DashboardScreen
from .imprests import ImprestsScreen
from .proposals import ProposalsScreen
from .transactions import TransactionsScreen
from .users import UsersScreen

_ALL_USERS: tuple[type[Screen], ...] = (
    DashboardScreen,
    ImprestsScreen,
    TransactionsScreen,
    ProposalsScreen,
)


def available_screens(session: Session | None) -> list[type[Screen]]:
    """Screens shown in navigation; Users is admin-only."""

    if session is None:
        return []
    screens = list(_ALL_USERS)
    if session.is_admin:
        screens.append(UsersScreen)
    return screens


__all__ = [
    "DashboardScreen",
    "ImprestsScreen",
    "LOGIN_REQUIRED_MESSAGE",
    "ProposalsScreen",
    "SESSION_EXPIRED_MESSAGE",
    "Screen",
    "TransactionsScreen",
    "UsersScreen",
    "available_screens",
]
