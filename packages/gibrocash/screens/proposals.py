"""Proposals: pre-approval requests and the admin approval workflow.

Status moves one way only: ``pending`` → ``approved`` | ``partial`` |
``rejected``. Once a proposal has left ``pending`` no further transition is
offered.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..errors import GibroCashError
from ..forms import ProposalForm, build_form
from ..models import TERMINAL_PROPOSAL_STATUSES, EntityId, Proposal
from ..normalizer import normalize_proposal_detail, normalize_proposals
from .base import Screen
from .common import find_by_id, same_id


class ProposalsScreen(Screen):
    title = "Proposals"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.proposals: list[Proposal] = []
        self.selected: Proposal | None = None

    def load(self) -> None:
        if self._require_session() is None:
            return
        token = self._begin("proposals")
        self.loading = True
        self.error = ""
        try:
            proposals = normalize_proposals(self.gateway.get_proposals())
        except GibroCashError as exc:
            if self._is_current("proposals", token):
                self._load_failed(exc, "Failed to load proposals.")
                self.loading = False
            return
        if not self._is_current("proposals", token):
            return
        self.proposals = proposals
        self.loading = False

    def view(self, proposal_id: EntityId) -> None:
        if self._require_session() is None:
            return
        token = self._begin("detail")
        try:
            detail = normalize_proposal_detail(self.gateway.get_proposal(proposal_id))
        except GibroCashError as exc:
            if self._is_current("detail", token):
                self._load_failed(exc, "Failed to load proposal details.")
            return
        if not self._is_current("detail", token):
            return
        if detail is None:
            self.error = f"Proposal {proposal_id} not found."
            return
        self.selected = detail

    def create_proposal(self, *, title: str, items: Iterable[Mapping[str, Any]]) -> bool:
        current = self._require_session()
        if current is None:
            return False
        self.form_error = ""
        self.submitting = True
        try:
            form = build_form(ProposalForm, title=title, items=[dict(i) for i in items])
            self.gateway.create_proposal(form.to_payload(current.user_id))
        except GibroCashError as exc:
            self._submit_failed(exc, "Failed to create proposal.")
            return False
        finally:
            self.submitting = False
        self.load()
        return True

    def can_transition(self, proposal: Proposal, status: str | None = None) -> bool:
        """Whether the approve/partial/reject actions are offered for ``proposal``."""

        if not self.is_admin() or not proposal.is_pending:
            return False
        return status is None or status in TERMINAL_PROPOSAL_STATUSES

    def _known_proposal(self, proposal_id: EntityId) -> Proposal | None:
        if self.selected is not None and same_id(self.selected.id, proposal_id):
            return self.selected
        return find_by_id(self.proposals, proposal_id)

    def update_status(self, proposal_id: EntityId, status: str) -> bool:
        """Move a pending proposal to a terminal status, then re-fetch.

        A proposal this screen has not loaded yet is fetched first so the
        pending check always runs before the PATCH.
        """

        if self._require_session() is None:
            return False
        status = status.strip().lower()
        if status not in TERMINAL_PROPOSAL_STATUSES:
            self.error = "Status must be one of: approved, partial, rejected."
            return False
        if not self.is_admin():
            self.error = "Only administrators can approve or reject proposals."
            return False

        known = self._known_proposal(proposal_id)
        if known is None:
            self.view(proposal_id)
            known = self._known_proposal(proposal_id)
            if known is None:
                return False
        if not self.can_transition(known, status):
            self.error = f"Proposal is already {known.status}."
            return False

        try:
            self.gateway.update_proposal_status(proposal_id, status)
        except GibroCashError as exc:
            self._load_failed(exc, "Failed to update proposal status.")
            return False

        self.load()
        if self.selected is not None and same_id(self.selected.id, proposal_id):
            self.view(proposal_id)
        return True


__all__ = ["ProposalsScreen"]
