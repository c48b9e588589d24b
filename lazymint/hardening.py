"""
LazyMint Validation and Hardening Module

Error taxonomy, input validation and address utilities shared by the
issuance ledger, the order zone and the off-system voucher signer.

Security Model:
    - All inputs are untrusted until validated
    - Addresses are compared in EIP-55 checksum form
    - Every failure aborts the whole invocation; nothing is retried

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import hmac
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from eth_utils import is_checksum_address, is_hex, to_bytes, to_checksum_address


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
UINT256_MAX = 2**256 - 1


# =============================================================================
# LEDGER ERROR TYPES
# =============================================================================

class ErrorCode(str, Enum):
    """Stable machine-readable codes for every ledger and zone failure."""
    NOT_OWNER = "not_owner"
    SIGNATURE_MISMATCH = "signature_mismatch"
    OWNERSHIP_MISMATCH = "ownership_mismatch"
    INVALID_ADDRESS = "invalid_address"
    DECODE_FAILURE = "decode_failure"
    UNKNOWN_CONTRACT = "unknown_contract"


class LazyMintError(Exception):
    """Base exception for failures that abort a ledger or zone invocation."""

    code: Optional[ErrorCode] = None

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotOwner(LazyMintError):
    """Administrative call made by an account other than the owner."""

    code = ErrorCode.NOT_OWNER

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"OwnableUnauthorizedAccount({account})")


class SignatureMismatch(LazyMintError):
    """Recovered voucher signer differs from the registered signer."""

    code = ErrorCode.SIGNATURE_MISMATCH

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class OwnershipMismatch(LazyMintError):
    """Voucher owner differs from the recipient of the issuance call."""

    code = ErrorCode.OWNERSHIP_MISMATCH

    def __init__(self, message: str = "Voucher owner mismatch"):
        super().__init__(message)


class InvalidAddress(LazyMintError):
    """The zero address was supplied where a live identity is required."""

    code = ErrorCode.INVALID_ADDRESS

    def __init__(self, message: str = "Invalid address", value: Any = None):
        self.value = value
        super().__init__(message)


class DecodeFailure(LazyMintError):
    """An opaque payload could not be decoded into the expected record."""

    code = ErrorCode.DECODE_FAILURE


class UnknownContract(LazyMintError):
    """A call targeted an address with no contract deployed."""

    code = ErrorCode.UNKNOWN_CONTRACT

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No contract deployed at {address}")


# =============================================================================
# VALIDATION ERROR TYPES
# =============================================================================

class ValidationError(Exception):
    """Base exception for input validation failures."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")


class ValidationErrors(Exception):
    """Collection of validation errors."""

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        messages = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Validation failed: {messages}")


@dataclass
class ValidationResult:
    """Result of a validation operation."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    sanitized_value: Any = None

    @classmethod
    def success(cls, sanitized_value: Any = None) -> 'ValidationResult':
        return cls(is_valid=True, sanitized_value=sanitized_value)

    @classmethod
    def failure(cls, errors: List[ValidationError]) -> 'ValidationResult':
        return cls(is_valid=False, errors=errors)


# =============================================================================
# INPUT VALIDATORS
# =============================================================================

class Validators:
    """Collection of input validators."""

    HEX40_PATTERN = re.compile(r'^0x[a-f0-9]{40}$')

    @classmethod
    def validate_address(cls, value: Any, field_name: str = "address") -> ValidationResult:
        """Validate an Ethereum address and return its checksum form."""
        if not isinstance(value, str):
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected str, got {type(value).__name__}", value)
            ])

        if not cls.HEX40_PATTERN.match(value.lower()):
            return ValidationResult.failure([
                ValidationError(field_name, "Must be valid Ethereum address (0x + 40 hex)", value)
            ])

        # Mixed-case input must carry a correct EIP-55 checksum
        body = value[2:]
        if body != body.lower() and body != body.upper() and not is_checksum_address(value):
            return ValidationResult.failure([
                ValidationError(field_name, "Invalid EIP-55 checksum", value)
            ])

        return ValidationResult.success(to_checksum_address(value))

    @classmethod
    def validate_uint256(cls, value: Any, field_name: str) -> ValidationResult:
        """Validate an unsigned 256-bit integer."""
        if isinstance(value, bool) or not isinstance(value, int):
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected int, got {type(value).__name__}", value)
            ])

        if value < 0 or value > UINT256_MAX:
            return ValidationResult.failure([
                ValidationError(field_name, "Out of uint256 range", value)
            ])

        return ValidationResult.success(value)

    @classmethod
    def validate_bool(cls, value: Any, field_name: str) -> ValidationResult:
        if not isinstance(value, bool):
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected bool, got {type(value).__name__}", value)
            ])
        return ValidationResult.success(value)

    @classmethod
    def validate_string(
        cls,
        value: Any,
        field_name: str,
        max_length: Optional[int] = None,
    ) -> ValidationResult:
        """Validate a string field. Empty strings are allowed."""
        if not isinstance(value, str):
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected str, got {type(value).__name__}", value)
            ])

        if max_length is not None and len(value) > max_length:
            return ValidationResult.failure([
                ValidationError(field_name, f"Exceeds maximum length {max_length}", len(value))
            ])

        return ValidationResult.success(value)

    @classmethod
    def validate_bytes(
        cls,
        value: Any,
        field_name: str,
        exact_length: Optional[int] = None,
    ) -> ValidationResult:
        """Validate raw bytes, accepting 0x-prefixed hex strings as well."""
        if isinstance(value, str):
            if not (value.startswith("0x") and is_hex(value)):
                return ValidationResult.failure([
                    ValidationError(field_name, "Expected 0x-prefixed hex string", value)
                ])
            value = to_bytes(hexstr=value)
        elif isinstance(value, (bytes, bytearray)):
            value = bytes(value)
        else:
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected bytes, got {type(value).__name__}", value)
            ])

        if exact_length is not None and len(value) != exact_length:
            return ValidationResult.failure([
                ValidationError(field_name, f"Must be exactly {exact_length} bytes", len(value))
            ])

        return ValidationResult.success(value)


# =============================================================================
# ADDRESS UTILITIES
# =============================================================================

def normalize_address(value: Any, field_name: str = "address") -> str:
    """Return the checksum form of ``value`` or raise ValidationError."""
    result = Validators.validate_address(value, field_name)
    if not result.is_valid:
        raise result.errors[0]
    return result.sanitized_value


def is_zero_address(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS


def same_address(a: str, b: str) -> bool:
    """Case-insensitive, constant-time address comparison."""
    return hmac.compare_digest(a.lower().encode(), b.lower().encode())


def require_bool(value: Any, field_name: str) -> bool:
    result = Validators.validate_bool(value, field_name)
    if not result.is_valid:
        raise result.errors[0]
    return value


def require_uint256(value: Any, field_name: str) -> int:
    result = Validators.validate_uint256(value, field_name)
    if not result.is_valid:
        raise result.errors[0]
    return value
