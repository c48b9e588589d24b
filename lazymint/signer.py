"""
LazyMint Voucher Signer

Off-system counterpart of the ledger's voucher validator: holds the
authorized signing key and produces signed vouchers for a ledger's
authorization domain.

Usage:
    signer = VoucherSigner.from_key(os.environ["LAZYMINT_SIGNER_KEY"])
    voucher = signer.sign_voucher(ledger.domain, owner, 189, 7, "ipfs://x")

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import copy
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount

from lazymint.config import ConfigError, get_config
from lazymint.domain import VOUCHER_TYPES, AuthorizationDomain, Voucher
from lazymint.observability import Layer, get_logger

logger = get_logger("signer", Layer.SECURITY)


class VoucherSigner:
    """Signs vouchers with a local secp256k1 account."""

    def __init__(self, account: LocalAccount):
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> "VoucherSigner":
        try:
            return cls(Account.from_key(private_key.strip()))
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid signer private key: {e}") from e

    @classmethod
    def from_config(cls) -> "VoucherSigner":
        """Load the signer key from the ``signer.private_key`` setting."""
        key = get_config().signer.private_key.get()
        if not key:
            raise ConfigError("No signer key configured (set LAZYMINT_SIGNER_KEY)")
        return cls.from_key(key)

    @classmethod
    def generate(cls, extra_entropy: Optional[str] = None) -> "VoucherSigner":
        return cls(Account.create(extra_entropy or ""))

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def account(self) -> LocalAccount:
        return self._account

    def sign_voucher(
        self,
        domain: AuthorizationDomain,
        owner: str,
        token_id: int,
        amount: int,
        uri: str,
    ) -> Voucher:
        unsigned = Voucher(owner=owner, token_id=token_id, amount=amount, uri=uri)
        signable = encode_typed_data(
            domain_data=domain.to_eip712(),
            message_types=copy.deepcopy(VOUCHER_TYPES),
            message_data=unsigned.message(),
        )
        signed = self._account.sign_message(signable)
        logger.debug(
            "Signed voucher",
            operation="sign_voucher",
            token_id=token_id,
            verifying_contract=domain.verifying_contract,
        )
        return unsigned.with_signature(bytes(signed.signature))
