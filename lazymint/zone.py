"""
LazyMint Order Zone

Order-authorization hook called by the settlement protocol during
fulfillment. ``authorize_order`` redeems the voucher embedded in the
order's ``extraData`` against the issuance ledger, so the offered token
exists by the time the protocol transfers it.

Acknowledgement values are the 4-byte selectors of the entry points:

    authorizeOrder(ZoneParameters)   0x01e4d72a
    validateOrder(ZoneParameters)    0x17b1f942
    getSeaportMetadata()             0x2e778efc
    supportsInterface(bytes4)        0x01ffc9a7

The zone interface id is the XOR of all four, 0x39dd6933.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from functools import reduce
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from lazymint.codec import decode_voucher
from lazymint.events import NftAddressUpdated
from lazymint.hardening import (
    ZERO_ADDRESS,
    InvalidAddress,
    UnknownContract,
    ValidationError,
    Validators,
    is_zero_address,
    normalize_address,
    require_uint256,
)
from lazymint.ledger import ERC165_INTERFACE_ID, LazyMint1155, interface_id
from lazymint.observability import Layer, get_logger
from lazymint.runtime import Contract, transactional
from lazymint.security import Ownable

if TYPE_CHECKING:
    from lazymint.runtime import ExecutionRuntime

logger = get_logger("zone", Layer.ZONE)

AUTHORIZE_ORDER_SELECTOR = bytes.fromhex("01e4d72a")
VALIDATE_ORDER_SELECTOR = bytes.fromhex("17b1f942")
GET_SEAPORT_METADATA_SELECTOR = bytes.fromhex("2e778efc")
SUPPORTS_INTERFACE_SELECTOR = ERC165_INTERFACE_ID

ZONE_INTERFACE_ID = reduce(
    lambda acc, sel: bytes(a ^ b for a, b in zip(acc, sel)),
    [
        VALIDATE_ORDER_SELECTOR,
        GET_SEAPORT_METADATA_SELECTOR,
        SUPPORTS_INTERFACE_SELECTOR,
    ],
    AUTHORIZE_ORDER_SELECTOR,
)

ZONE_NAME = "ArtiartZone"
ZONE_SCHEMA_ID = 3003


# =============================================================================
# ORDER PARAMETERS
# =============================================================================

class ItemType(IntEnum):
    NATIVE = 0
    ERC20 = 1
    ERC721 = 2
    ERC1155 = 3
    ERC721_WITH_CRITERIA = 4
    ERC1155_WITH_CRITERIA = 5


@dataclass(frozen=True)
class SpentItem:
    item_type: ItemType
    token: str
    identifier: int
    amount: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpentItem":
        return cls(
            item_type=ItemType(data["itemType"]),
            token=normalize_address(data["token"], "token"),
            identifier=int(data["identifier"]),
            amount=int(data["amount"]),
        )


@dataclass(frozen=True)
class ReceivedItem:
    item_type: ItemType
    token: str
    identifier: int
    amount: int
    recipient: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReceivedItem":
        return cls(
            item_type=ItemType(data["itemType"]),
            token=normalize_address(data["token"], "token"),
            identifier=int(data["identifier"]),
            amount=int(data["amount"]),
            recipient=normalize_address(data["recipient"], "recipient"),
        )


def _bytes32(value: Any, field_name: str) -> bytes:
    result = Validators.validate_bytes(value, field_name, exact_length=32)
    if not result.is_valid:
        raise result.errors[0]
    return result.sanitized_value


@dataclass
class ZoneParameters:
    """
    The fields of the settlement protocol's zone call this hook reads.

    ``extra_data`` carries the ABI-encoded voucher; everything else is
    passed through untouched.
    """
    order_hash: bytes = b"\x00" * 32
    fulfiller: str = ZERO_ADDRESS
    offerer: str = ZERO_ADDRESS
    offer: List[SpentItem] = field(default_factory=list)
    consideration: List[ReceivedItem] = field(default_factory=list)
    extra_data: bytes = b""
    order_hashes: List[bytes] = field(default_factory=list)
    start_time: int = 0
    end_time: int = 0
    zone_hash: bytes = b"\x00" * 32

    def __post_init__(self) -> None:
        self.order_hash = _bytes32(self.order_hash, "order_hash")
        self.zone_hash = _bytes32(self.zone_hash, "zone_hash")
        self.fulfiller = normalize_address(self.fulfiller, "fulfiller")
        self.offerer = normalize_address(self.offerer, "offerer")
        self.order_hashes = [_bytes32(h, "order_hashes") for h in self.order_hashes]
        require_uint256(self.start_time, "start_time")
        require_uint256(self.end_time, "end_time")

        result = Validators.validate_bytes(self.extra_data, "extra_data")
        if not result.is_valid:
            raise result.errors[0]
        self.extra_data = result.sanitized_value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZoneParameters":
        """Build from the protocol's camelCase JSON layout."""
        try:
            return cls(
                order_hash=data.get("orderHash", b"\x00" * 32),
                fulfiller=data["fulfiller"],
                offerer=data.get("offerer", ZERO_ADDRESS),
                offer=[SpentItem.from_dict(i) for i in data.get("offer", [])],
                consideration=[ReceivedItem.from_dict(i) for i in data.get("consideration", [])],
                extra_data=data.get("extraData", b""),
                order_hashes=list(data.get("orderHashes", [])),
                start_time=data.get("startTime", 0),
                end_time=data.get("endTime", 0),
                zone_hash=data.get("zoneHash", b"\x00" * 32),
            )
        except KeyError as e:
            raise ValidationError(str(e.args[0]), "Missing zone parameter") from e


@dataclass(frozen=True)
class Schema:
    id: int
    metadata: bytes = b""


# =============================================================================
# ZONE CONTRACT
# =============================================================================

@dataclass
class ZoneState:
    owner: str = ZERO_ADDRESS
    nft: str = ZERO_ADDRESS


class LazyMintZone(Ownable, Contract):
    """
    Zone that lazily mints the offered token while an order is authorized.

    ``owner`` defaults to the deployer; ``nft`` is the issuance ledger the
    zone redeems vouchers against.
    """

    SUPPORTED_INTERFACES = frozenset({ZONE_INTERFACE_ID, ERC165_INTERFACE_ID})

    def __init__(
        self,
        runtime: "ExecutionRuntime",
        address: str,
        deployer: str,
        nft: Optional[str] = None,
        owner: Optional[str] = None,
        state: Optional[ZoneState] = None,
    ):
        super().__init__(runtime, address, deployer)

        if state is not None:
            self.state = state
            return

        if nft is None:
            raise ValidationError("nft", "A ledger address is required when no state is given")
        owner = normalize_address(owner or deployer, "owner")
        if is_zero_address(owner):
            raise InvalidAddress(f"OwnableInvalidOwner({owner})", owner)

        self.state = ZoneState()
        self._set_owner(owner)
        self.state.nft = normalize_address(nft, "nft")

    # ─────────────────────────────────────────────────────────────────────
    # Zone hooks
    # ─────────────────────────────────────────────────────────────────────

    @transactional
    def authorize_order(self, params: ZoneParameters, *, caller: str) -> bytes:
        """
        Redeem the voucher in ``params.extra_data`` for the fulfiller.

        Returns AUTHORIZE_ORDER_SELECTOR. Decode and ledger failures
        propagate and revert the whole call.
        """
        caller = normalize_address(caller, "caller")
        voucher = decode_voucher(params.extra_data)

        ledger = self._ledger()
        minted = ledger.mint_if_not_exists(voucher, params.fulfiller, caller=self.address)

        logger.info(
            "Order authorized",
            operation="authorize_order",
            order_hash=params.order_hash.hex(),
            token_id=voucher.token_id,
            minted=minted,
        )
        return AUTHORIZE_ORDER_SELECTOR

    def validate_order(self, params: ZoneParameters, *, caller: Optional[str] = None) -> bytes:
        return VALIDATE_ORDER_SELECTOR

    def _ledger(self) -> LazyMint1155:
        contract = self.runtime.get_contract(self.state.nft)
        if not isinstance(contract, LazyMint1155):
            raise UnknownContract(self.state.nft)
        return contract

    # ─────────────────────────────────────────────────────────────────────
    # Administration
    # ─────────────────────────────────────────────────────────────────────

    def nft(self) -> str:
        return self.state.nft

    @transactional
    def set_nft_address(self, new_nft: str, *, caller: str) -> None:
        caller = self._only_owner(caller)
        new_nft = normalize_address(new_nft, "new_nft")
        if is_zero_address(new_nft):
            raise InvalidAddress("Invalid NFT address", new_nft)

        previous = self.state.nft
        self.state.nft = new_nft
        self.emit(NftAddressUpdated(previous_address=previous, new_address=new_nft))
        logger.info("NFT address updated", operation="set_nft_address", new_nft=new_nft)
        self.audit(caller, "set_nft_address", "success", previous=previous, new_nft=new_nft)

    # ─────────────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────────────

    def get_seaport_metadata(self) -> Tuple[str, List[Schema]]:
        return (ZONE_NAME, [Schema(id=ZONE_SCHEMA_ID, metadata=b"")])

    def supports_interface(self, interface: Union[bytes, str]) -> bool:
        return interface_id(interface) in self.SUPPORTED_INTERFACES
