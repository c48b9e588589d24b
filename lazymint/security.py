"""
LazyMint Security Layer

Voucher signature verification and owner-only access control.

1. Signature Verification - recover the voucher signer from a typed
   structured-data signature and compare it with the registered signer
2. Malleability - only low-s signatures with v in {27, 28} are accepted
3. Access Control - a single owner guards every administrative mutation

Security Model:
    - Fail-secure: any recovery failure counts as a signature mismatch
    - Domain binding: a signature is only valid for one ledger on one chain
    - Audit everything: administrative actions land in the audit trail

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import keccak

from lazymint.domain import AuthorizationDomain, Voucher
from lazymint.events import OwnershipTransferred
from lazymint.hardening import (
    ZERO_ADDRESS,
    InvalidAddress,
    NotOwner,
    SignatureMismatch,
    is_zero_address,
    normalize_address,
    same_address,
)
from lazymint.observability import Layer, get_logger
from lazymint.runtime import transactional

logger = get_logger("security", Layer.SECURITY)

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2
SIGNATURE_LENGTH = 65


# =============================================================================
# SIGNATURE VERIFICATION
# =============================================================================

def voucher_digest(voucher: Voucher, domain: AuthorizationDomain) -> bytes:
    """The 32-byte hash a voucher signer signs."""
    return keccak(b"\x19\x01" + domain.separator + voucher.struct_hash())


class VoucherValidator:
    """
    Verifies voucher signatures for one authorization domain.

    Signatures are 65 bytes laid out as ``r || s || v``.
    """

    def __init__(self, domain: AuthorizationDomain):
        self.domain = domain

    def digest(self, voucher: Voucher) -> bytes:
        return voucher_digest(voucher, self.domain)

    def recover(self, voucher: Voucher) -> Optional[str]:
        """Recover the signing address, or None if the signature is unusable."""
        signature = voucher.signature
        if len(signature) != SIGNATURE_LENGTH:
            return None

        r = int.from_bytes(signature[:32], "big")
        s = int.from_bytes(signature[32:64], "big")
        v = signature[64]

        if v not in (27, 28):
            return None
        if not (0 < r < SECP256K1_N) or not (0 < s <= SECP256K1_HALF_N):
            return None

        try:
            public_key = keys.Signature(vrs=(v - 27, r, s)).recover_public_key_from_msg_hash(
                self.digest(voucher)
            )
        except (BadSignature, KeyValidationError, ValueError):
            return None
        return public_key.to_checksum_address()

    def check(self, voucher: Voucher, expected_signer: str) -> Tuple[bool, str]:
        """
        Verify a voucher against the expected signer.

        Returns (valid, reason).
        """
        recovered = self.recover(voucher)
        if recovered is None:
            return (False, "Signature could not be recovered")
        if not same_address(recovered, expected_signer):
            return (False, f"Recovered signer {recovered} is not the registered signer")
        return (True, "Signature valid")

    def verify(self, voucher: Voucher, expected_signer: str) -> bool:
        return self.check(voucher, expected_signer)[0]

    def require_valid(self, voucher: Voucher, expected_signer: str) -> None:
        valid, reason = self.check(voucher, expected_signer)
        if not valid:
            logger.warning(
                "Voucher signature rejected",
                operation="verify_voucher",
                token_id=voucher.token_id,
                reason=reason,
            )
            raise SignatureMismatch()


def verify_voucher(voucher: Voucher, domain: AuthorizationDomain, expected_signer: str) -> bool:
    return VoucherValidator(domain).verify(voucher, expected_signer)


# =============================================================================
# ACCESS CONTROL
# =============================================================================

def require_owner(owner: str, caller: str) -> None:
    """Raise NotOwner unless ``caller`` is ``owner``; the zero address never qualifies."""
    if is_zero_address(caller) or not same_address(owner, caller):
        raise NotOwner(caller)


class Ownable:
    """
    Single-owner access control for runtime contracts.

    Host classes keep the owner in ``self.state.owner`` and derive from
    ``lazymint.runtime.Contract``.
    """

    state: Any

    def owner(self) -> str:
        return self.state.owner

    def _only_owner(self, caller: str) -> str:
        caller = normalize_address(caller, "caller")
        require_owner(self.state.owner, caller)
        return caller

    def _set_owner(self, new_owner: str) -> None:
        previous = self.state.owner
        self.state.owner = new_owner
        self.emit(OwnershipTransferred(previous_owner=previous, new_owner=new_owner))  # type: ignore[attr-defined]

    @transactional
    def transfer_ownership(self, new_owner: str, *, caller: str) -> None:
        caller = self._only_owner(caller)
        new_owner = normalize_address(new_owner, "new_owner")
        if is_zero_address(new_owner):
            raise InvalidAddress(f"OwnableInvalidOwner({new_owner})", new_owner)
        self._set_owner(new_owner)
        self.audit(caller, "transfer_ownership", "success", new_owner=new_owner)  # type: ignore[attr-defined]

    @transactional
    def renounce_ownership(self, *, caller: str) -> None:
        caller = self._only_owner(caller)
        self._set_owner(ZERO_ADDRESS)
        self.audit(caller, "renounce_ownership", "success")  # type: ignore[attr-defined]
