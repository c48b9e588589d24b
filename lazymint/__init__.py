"""
LazyMint — Signature-Authorized Lazy Issuance

Multi-token ledger entries created on first redemption of an off-system
signed voucher, plus the order zone that redeems vouchers while a
settlement protocol authorizes an order.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                                                                          │
    │  ORDER LAYER                                                            │
    │    zone.py          authorizeOrder / validateOrder hook                  │
    │    codec.py         ABI voucher payload carried in extraData             │
    │                                                                          │
    │  ISSUANCE LAYER                                                         │
    │    ledger.py        Exactly-once issuance, balances, token URIs          │
    │    approvals.py     Standard and global operator approvals               │
    │    security.py      Voucher signature recovery, owner-only guard         │
    │    domain.py        Signing domain and voucher records                   │
    │                                                                          │
    │  RUNTIME                                                                │
    │    runtime.py       Contract registry, atomic calls, event log           │
    │    signer.py        Off-system voucher signer                            │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Design Principles
─────────────────

    Exactly Once: A token id is issued by the first valid redemption. Every
    later redemption still validates its own voucher, then does nothing.

    All or Nothing: Every mutating call either completes or leaves state
    and the event log exactly as it found them.

    Domain Binding: A voucher signature is valid for one ledger on one
    chain and nowhere else.

Copyright © 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

__version__ = "0.1.0"

# Lazy imports to avoid circular dependencies
def __getattr__(name):

    # Ledger exports
    if name in ("LazyMint1155", "LedgerState", "TokenRecord"):
        from lazymint import ledger
        return getattr(ledger, name)

    # Approval exports
    if name in ("ApprovalRegistry", "ApprovalState"):
        from lazymint import approvals
        return getattr(approvals, name)

    # Zone exports
    if name in ("LazyMintZone", "ZoneParameters", "ZoneState", "SpentItem",
                "ReceivedItem", "ItemType", "Schema", "AUTHORIZE_ORDER_SELECTOR",
                "VALIDATE_ORDER_SELECTOR", "ZONE_INTERFACE_ID"):
        from lazymint import zone
        return getattr(zone, name)

    # Domain exports
    if name in ("AuthorizationDomain", "Voucher", "VOUCHER_TYPES"):
        from lazymint import domain
        return getattr(domain, name)

    # Security exports
    if name in ("VoucherValidator", "verify_voucher", "voucher_digest",
                "require_owner", "Ownable"):
        from lazymint import security
        return getattr(security, name)

    # Codec exports
    if name in ("encode_voucher", "decode_voucher"):
        from lazymint import codec
        return getattr(codec, name)

    # Runtime exports
    if name in ("ExecutionRuntime", "Contract", "transactional"):
        from lazymint import runtime
        return getattr(runtime, name)

    if name == "VoucherSigner":
        from lazymint.signer import VoucherSigner
        return VoucherSigner

    # Hardening exports
    if name in ("LazyMintError", "ErrorCode", "NotOwner", "SignatureMismatch",
                "OwnershipMismatch", "InvalidAddress", "DecodeFailure",
                "UnknownContract", "ValidationError", "ValidationErrors",
                "ZERO_ADDRESS"):
        from lazymint import hardening
        return getattr(hardening, name)

    raise AttributeError(f"module 'lazymint' has no attribute '{name}'")

__all__ = [
    # Version info
    "__version__",
    # Ledger
    "LazyMint1155", "LedgerState", "TokenRecord",
    "ApprovalRegistry", "ApprovalState",
    # Zone
    "LazyMintZone", "ZoneParameters", "ZoneState", "SpentItem", "ReceivedItem",
    "ItemType", "Schema", "AUTHORIZE_ORDER_SELECTOR", "VALIDATE_ORDER_SELECTOR",
    "ZONE_INTERFACE_ID",
    # Vouchers
    "AuthorizationDomain", "Voucher", "VOUCHER_TYPES", "VoucherValidator",
    "verify_voucher", "voucher_digest", "require_owner", "Ownable",
    "encode_voucher", "decode_voucher", "VoucherSigner",
    # Runtime
    "ExecutionRuntime", "Contract", "transactional",
    # Errors
    "LazyMintError", "ErrorCode", "NotOwner", "SignatureMismatch",
    "OwnershipMismatch", "InvalidAddress", "DecodeFailure", "UnknownContract",
    "ValidationError", "ValidationErrors", "ZERO_ADDRESS",
]
