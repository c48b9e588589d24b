"""
LazyMint Payload Codec

ABI encoding of the voucher tuple carried in an order's ``extraData``:

    (address owner, uint256 tokenId, uint256 amount, string uri, bytes signature)

Decoding is strict. A payload must be the canonical encoding of exactly
this tuple, optionally followed by trailing bytes; anything else raises
DecodeFailure.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from lazymint.domain import Voucher
from lazymint.hardening import DecodeFailure, ValidationError, ValidationErrors

VOUCHER_ABI_TYPE = "(address,uint256,uint256,string,bytes)"


def encode_voucher(voucher: Voucher) -> bytes:
    return encode(
        [VOUCHER_ABI_TYPE],
        [(voucher.owner, voucher.token_id, voucher.amount, voucher.uri, voucher.signature)],
    )


def decode_voucher(data: Union[bytes, bytearray]) -> Voucher:
    """Decode ``extraData`` into a Voucher or raise DecodeFailure."""
    data = bytes(data)
    try:
        (fields,) = decode([VOUCHER_ABI_TYPE], data)
    except (DecodingError, ValueError, OverflowError, TypeError) as e:
        raise DecodeFailure(f"Malformed voucher payload: {e}") from e

    owner, token_id, amount, uri, signature = fields
    try:
        voucher = Voucher(
            owner=owner,
            token_id=token_id,
            amount=amount,
            uri=uri,
            signature=signature,
        )
    except (ValidationError, ValidationErrors) as e:
        raise DecodeFailure(f"Malformed voucher payload: {e}") from e

    canonical = encode_voucher(voucher)
    if data[:len(canonical)] != canonical:
        raise DecodeFailure("Voucher payload is not a canonical encoding")
    return voucher
