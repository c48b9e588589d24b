"""
LazyMint Approval Registry

Operator approvals for the issuance ledger, from three independent sets:

    standard          (holder, operator) pairs each holder grants itself
    global_approvers  operators the ledger owner approves for every holder
    opt_outs          holders that refuse global approvals

    is_approved_for_all(h, op) =
        (h, op) in standard or (op in global_approvers and h not in opt_outs)

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Set, Tuple

from lazymint.events import ApprovalForAll, GlobalApprovalOptOutUpdated, GlobalApprovalUpdated
from lazymint.hardening import normalize_address
from lazymint.security import require_owner

if TYPE_CHECKING:
    from lazymint.ledger import LazyMint1155


@dataclass
class ApprovalState:
    standard: Set[Tuple[str, str]] = field(default_factory=set)
    global_approvers: Set[str] = field(default_factory=set)
    opt_outs: Set[str] = field(default_factory=set)


class ApprovalRegistry:
    """
    Approval logic composed into the ledger.

    The registry reads the ledger's current ``state.approvals`` on every
    call, so it stays correct after the runtime restores a snapshot.
    Mutations are only reached through the ledger's transactional
    entry points.
    """

    def __init__(self, ledger: "LazyMint1155"):
        self._ledger = ledger

    @property
    def state(self) -> ApprovalState:
        return self._ledger.state.approvals

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def is_approved_for_all(self, holder: str, operator: str) -> bool:
        holder = normalize_address(holder, "holder")
        operator = normalize_address(operator, "operator")
        state = self.state
        if (holder, operator) in state.standard:
            return True
        return operator in state.global_approvers and holder not in state.opt_outs

    def is_global_approver(self, operator: str) -> bool:
        return normalize_address(operator, "operator") in self.state.global_approvers

    def has_opted_out(self, holder: str) -> bool:
        return normalize_address(holder, "holder") in self.state.opt_outs

    # ─────────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────────

    def set_approval_for_all(self, holder: str, operator: str, approved: bool) -> None:
        operator = normalize_address(operator, "operator")
        if approved:
            self.state.standard.add((holder, operator))
        else:
            self.state.standard.discard((holder, operator))
        self._ledger.emit(ApprovalForAll(account=holder, operator=operator, approved=approved))

    def set_global_approval(self, caller: str, operator: str, approved: bool) -> None:
        require_owner(self._ledger.owner(), caller)
        operator = normalize_address(operator, "operator")
        if approved:
            self.state.global_approvers.add(operator)
        else:
            self.state.global_approvers.discard(operator)
        self._ledger.emit(GlobalApprovalUpdated(operator=operator, approved=approved))

    def set_opt_out(self, holder: str, opted_out: bool) -> None:
        if opted_out:
            self.state.opt_outs.add(holder)
        else:
            self.state.opt_outs.discard(holder)
        self._ledger.emit(GlobalApprovalOptOutUpdated(holder=holder, opted_out=opted_out))
