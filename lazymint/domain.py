"""
LazyMint Authorization Domain and Voucher Records

The signing domain binds a voucher signature to one ledger instance on one
network. A Voucher is the off-system authorization to issue ``amount``
units of ``token_id`` to ``owner`` exactly once.

Hashing follows typed structured data signing (EIP-712):

    domainSeparator = keccak(abi.encode(DOMAIN_TYPEHASH, keccak(name),
                                        keccak(version), chainId,
                                        verifyingContract))
    structHash      = keccak(abi.encode(VOUCHER_TYPEHASH, owner, tokenId,
                                        amount, keccak(uri)))

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List

from eth_abi import encode
from eth_utils import keccak, to_hex

from lazymint.hardening import ValidationError, Validators

EIP712_DOMAIN_TYPE = (
    "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)
VOUCHER_TYPE = "Voucher(address owner,uint256 tokenId,uint256 amount,string uri)"

DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)
VOUCHER_TYPEHASH = keccak(text=VOUCHER_TYPE)

VOUCHER_TYPES: Dict[str, List[Dict[str, str]]] = {
    "Voucher": [
        {"name": "owner", "type": "address"},
        {"name": "tokenId", "type": "uint256"},
        {"name": "amount", "type": "uint256"},
        {"name": "uri", "type": "string"},
    ],
}


def _check(result: Any) -> Any:
    if not result.is_valid:
        raise result.errors[0]
    return result.sanitized_value


@dataclass(frozen=True)
class AuthorizationDomain:
    """Signing domain of one issuance ledger instance."""
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def __post_init__(self) -> None:
        _check(Validators.validate_string(self.name, "name"))
        _check(Validators.validate_string(self.version, "version"))
        _check(Validators.validate_uint256(self.chain_id, "chain_id"))
        object.__setattr__(
            self,
            "verifying_contract",
            _check(Validators.validate_address(self.verifying_contract, "verifying_contract")),
        )

    @property
    def separator(self) -> bytes:
        return keccak(encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                DOMAIN_TYPEHASH,
                keccak(text=self.name),
                keccak(text=self.version),
                self.chain_id,
                self.verifying_contract,
            ],
        ))

    def to_eip712(self) -> Dict[str, Any]:
        """Domain in the key layout typed-data signers expect."""
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }

    @classmethod
    def from_eip712(cls, data: Dict[str, Any]) -> "AuthorizationDomain":
        try:
            return cls(
                name=data["name"],
                version=data["version"],
                chain_id=data["chainId"],
                verifying_contract=data["verifyingContract"],
            )
        except KeyError as e:
            raise ValidationError(str(e.args[0]), "Missing domain field") from e


@dataclass(frozen=True)
class Voucher:
    """
    Signed issuance authorization.

    Construction validates every field and normalizes ``owner`` to its
    checksum form; ``signature`` may be given as bytes or 0x-hex.
    """
    owner: str
    token_id: int
    amount: int
    uri: str
    signature: bytes = field(default=b"", repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "owner", _check(Validators.validate_address(self.owner, "owner")))
        _check(Validators.validate_uint256(self.token_id, "token_id"))
        _check(Validators.validate_uint256(self.amount, "amount"))
        _check(Validators.validate_string(self.uri, "uri"))
        object.__setattr__(
            self, "signature", _check(Validators.validate_bytes(self.signature, "signature"))
        )

    def message(self) -> Dict[str, Any]:
        """The signed fields, keyed by their typed-data names."""
        return {
            "owner": self.owner,
            "tokenId": self.token_id,
            "amount": self.amount,
            "uri": self.uri,
        }

    def struct_hash(self) -> bytes:
        return keccak(encode(
            ["bytes32", "address", "uint256", "uint256", "bytes32"],
            [VOUCHER_TYPEHASH, self.owner, self.token_id, self.amount, keccak(text=self.uri)],
        ))

    def with_signature(self, signature: bytes) -> "Voucher":
        return replace(self, signature=signature)

    def to_dict(self) -> Dict[str, Any]:
        data = self.message()
        data["signature"] = to_hex(self.signature)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Voucher":
        try:
            return cls(
                owner=data["owner"],
                token_id=data["tokenId"],
                amount=data["amount"],
                uri=data["uri"],
                signature=data.get("signature", b""),
            )
        except KeyError as e:
            raise ValidationError(str(e.args[0]), "Missing voucher field") from e
