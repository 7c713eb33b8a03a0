"""Public interface for the ``gibrocash`` package.

This module exposes the client's wiring, gateway, session store and canonical
records as the stable import surface. There is no runtime logic here, only
symbol re-exports.
"""

from .context import AppContext, create_context
from .errors import (
    AuthError,
    ConfigurationError,
    GibroCashError,
    NetworkError,
    ServerMessageError,
    ValidationError,
)
from .gateway import ApiGateway
from .models import (
    AdminTotals,
    Assignee,
    ImprestAccount,
    Proposal,
    ProposalLineItem,
    ReceiptImage,
    Session,
    Transaction,
    User,
)
from .session import SessionStore
from .settings import Settings, load_settings
from .storage import SessionStorage

__all__ = [
    # Wiring
    "AppContext",
    "create_context",
    "Settings",
    "load_settings",
    "ApiGateway",
    "SessionStorage",
    "SessionStore",
    # Errors
    "GibroCashError",
    "AuthError",
    "ConfigurationError",
    "NetworkError",
    "ServerMessageError",
    "ValidationError",
    # Models
    "AdminTotals",
    "Assignee",
    "ImprestAccount",
    "Proposal",
    "ProposalLineItem",
    "ReceiptImage",
    "Session",
    "Transaction",
    "User",
]
