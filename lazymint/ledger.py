"""
LazyMint Issuance Ledger

Multi-token ledger whose tokens come into existence on first redemption
of a signed voucher ("lazy minting"). Each token id is issued at most
once; later redemptions for the same id are validated and then ignored.

Issuance checks, in order:

    1. voucher.owner == recipient          else OwnershipMismatch
    2. signature recovers to the signer    else SignatureMismatch
    3. token already minted                -> no-op
    4. recipient is not the zero address   else InvalidAddress
    5. credit balance, store URI, mark minted, emit TransferSingle + URI

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional, Tuple, Union

from lazymint.approvals import ApprovalRegistry, ApprovalState
from lazymint.config import get_config
from lazymint.domain import AuthorizationDomain, Voucher
from lazymint.events import URI, SignerUpdated, TransferSingle
from lazymint.hardening import (
    ZERO_ADDRESS,
    InvalidAddress,
    OwnershipMismatch,
    ValidationError,
    Validators,
    is_zero_address,
    normalize_address,
    require_bool,
    require_uint256,
    same_address,
)
from lazymint.observability import Layer, get_logger, timed_operation
from lazymint.runtime import Contract, transactional
from lazymint.security import Ownable, VoucherValidator

if TYPE_CHECKING:
    from lazymint.runtime import ExecutionRuntime

logger = get_logger("ledger", Layer.LEDGER)

ERC165_INTERFACE_ID = bytes.fromhex("01ffc9a7")
ERC1155_INTERFACE_ID = bytes.fromhex("d9b67a26")
ERC1155_METADATA_URI_INTERFACE_ID = bytes.fromhex("0e89341c")


def interface_id(value: Union[bytes, str]) -> bytes:
    """Normalize a 4-byte interface identifier given as bytes or 0x-hex."""
    result = Validators.validate_bytes(value, "interface_id", exact_length=4)
    if not result.is_valid:
        raise result.errors[0]
    return result.sanitized_value


@dataclass
class TokenRecord:
    minted: bool = False
    uri: str = ""


@dataclass
class LedgerState:
    """All mutable ledger data; snapshotted by the runtime around each call."""
    owner: str = ZERO_ADDRESS
    signer: str = ZERO_ADDRESS
    tokens: Dict[int, TokenRecord] = field(default_factory=dict)
    balances: Dict[Tuple[str, int], int] = field(default_factory=dict)
    approvals: ApprovalState = field(default_factory=ApprovalState)


class LazyMint1155(Ownable, Contract):
    """
    Voucher-driven issuance ledger.

    Deployed through ``ExecutionRuntime.deploy``; the deployer becomes the
    owner. Pass ``state`` to start from a prepared LedgerState instead.
    """

    SUPPORTED_INTERFACES: FrozenSet[bytes] = frozenset({
        ERC165_INTERFACE_ID,
        ERC1155_INTERFACE_ID,
        ERC1155_METADATA_URI_INTERFACE_ID,
    })

    def __init__(
        self,
        runtime: "ExecutionRuntime",
        address: str,
        deployer: str,
        signer: Optional[str] = None,
        state: Optional[LedgerState] = None,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ):
        super().__init__(runtime, address, deployer)

        ledger_config = get_config().ledger
        self.domain = AuthorizationDomain(
            name=name or ledger_config.name.get(),
            version=version or ledger_config.version.get(),
            chain_id=runtime.chain_id,
            verifying_contract=address,
        )
        self._validator = VoucherValidator(self.domain)
        self.approvals = ApprovalRegistry(self)

        if state is not None:
            self.state = state
            return

        if signer is None:
            raise ValidationError("signer", "A signer is required when no state is given")
        signer = normalize_address(signer, "signer")
        if is_zero_address(signer):
            raise InvalidAddress("Invalid signer address", signer)

        self.state = LedgerState()
        self._set_owner(deployer)
        self.state.signer = signer
        self.emit(SignerUpdated(previous_signer=ZERO_ADDRESS, new_signer=signer))

    # ─────────────────────────────────────────────────────────────────────
    # Issuance
    # ─────────────────────────────────────────────────────────────────────

    @transactional
    @timed_operation(logger, "mint_if_not_exists")
    def mint_if_not_exists(self, voucher: Voucher, recipient: str, *, caller: str) -> bool:
        """
        Issue the voucher's tokens to ``recipient`` unless already issued.

        Returns True when tokens were issued and False for the idempotent
        no-op. Any failure leaves the ledger unchanged.
        """
        if not isinstance(voucher, Voucher):
            raise ValidationError("voucher", f"Expected Voucher, got {type(voucher).__name__}")
        caller = normalize_address(caller, "caller")
        recipient = normalize_address(recipient, "recipient")

        if not same_address(voucher.owner, recipient):
            raise OwnershipMismatch()

        self._validator.require_valid(voucher, self.state.signer)

        if self.is_token_minted(voucher.token_id):
            logger.debug(
                "Token already minted",
                operation="mint_if_not_exists",
                token_id=voucher.token_id,
            )
            self.audit(caller, "mint_if_not_exists", "noop", token_id=voucher.token_id)
            return False

        if is_zero_address(recipient):
            raise InvalidAddress(f"ERC1155InvalidReceiver({recipient})", recipient)

        key = (recipient, voucher.token_id)
        self.state.balances[key] = self.state.balances.get(key, 0) + voucher.amount
        self.state.tokens[voucher.token_id] = TokenRecord(minted=True, uri=voucher.uri)

        self.emit(TransferSingle(
            operator=caller,
            sender=ZERO_ADDRESS,
            recipient=recipient,
            token_id=voucher.token_id,
            value=voucher.amount,
        ))
        self.emit(URI(value=voucher.uri, token_id=voucher.token_id))

        logger.info(
            "Token minted",
            operation="mint_if_not_exists",
            token_id=voucher.token_id,
            recipient=recipient,
            amount=voucher.amount,
        )
        self.audit(
            caller,
            "mint_if_not_exists",
            "success",
            token_id=voucher.token_id,
            recipient=recipient,
            amount=voucher.amount,
        )
        return True

    def is_token_minted(self, token_id: int) -> bool:
        record = self.state.tokens.get(require_uint256(token_id, "token_id"))
        return record is not None and record.minted

    def balance_of(self, holder: str, token_id: int) -> int:
        holder = normalize_address(holder, "holder")
        return self.state.balances.get((holder, require_uint256(token_id, "token_id")), 0)

    def uri(self, token_id: int) -> str:
        record = self.state.tokens.get(require_uint256(token_id, "token_id"))
        return record.uri if record is not None else ""

    # ─────────────────────────────────────────────────────────────────────
    # Signer administration
    # ─────────────────────────────────────────────────────────────────────

    def signer(self) -> str:
        return self.state.signer

    @transactional
    def set_signer(self, new_signer: str, *, caller: str) -> None:
        caller = self._only_owner(caller)
        new_signer = normalize_address(new_signer, "new_signer")
        if is_zero_address(new_signer):
            raise InvalidAddress("Invalid signer address", new_signer)

        previous = self.state.signer
        self.state.signer = new_signer
        self.emit(SignerUpdated(previous_signer=previous, new_signer=new_signer))
        logger.info("Signer updated", operation="set_signer", new_signer=new_signer)
        self.audit(caller, "set_signer", "success", previous_signer=previous, new_signer=new_signer)

    # ─────────────────────────────────────────────────────────────────────
    # Approvals
    # ─────────────────────────────────────────────────────────────────────

    def is_approved_for_all(self, holder: str, operator: str) -> bool:
        return self.approvals.is_approved_for_all(holder, operator)

    def is_global_approver(self, operator: str) -> bool:
        return self.approvals.is_global_approver(operator)

    def has_opted_out_of_global_approval(self, holder: str) -> bool:
        return self.approvals.has_opted_out(holder)

    @transactional
    def set_approval_for_all(self, operator: str, approved: bool, *, caller: str) -> None:
        caller = normalize_address(caller, "caller")
        self.approvals.set_approval_for_all(caller, operator, require_bool(approved, "approved"))

    @transactional
    def set_global_approval(self, operator: str, approved: bool, *, caller: str) -> None:
        caller = normalize_address(caller, "caller")
        operator = normalize_address(operator, "operator")
        self.approvals.set_global_approval(caller, operator, require_bool(approved, "approved"))
        self.audit(caller, "set_global_approval", "success", operator=operator, approved=approved)

    @transactional
    def set_global_approval_opt_out(self, opted_out: bool, *, caller: str) -> None:
        caller = normalize_address(caller, "caller")
        self.approvals.set_opt_out(caller, require_bool(opted_out, "opted_out"))

    # ─────────────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────────────

    def supports_interface(self, interface: Union[bytes, str]) -> bool:
        return interface_id(interface) in self.SUPPORTED_INTERFACES
