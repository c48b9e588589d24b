"""
Order zone tests: administration, introspection and lazy minting during
order authorization.

Run with: pytest tests/test_zone.py -v

Copyright (c) 2026 Momentum. All rights reserved.
"""

import os
from functools import reduce

import pytest
from eth_abi import encode
from eth_utils import keccak

from lazymint.codec import encode_voucher
from lazymint.events import NftAddressUpdated, TransferSingle
from lazymint.hardening import (
    ZERO_ADDRESS,
    DecodeFailure,
    InvalidAddress,
    NotOwner,
    OwnershipMismatch,
    SignatureMismatch,
    UnknownContract,
    ValidationError,
)
from lazymint.ledger import LazyMint1155
from lazymint.signer import VoucherSigner
from lazymint.zone import (
    AUTHORIZE_ORDER_SELECTOR,
    VALIDATE_ORDER_SELECTOR,
    ZONE_INTERFACE_ID,
    ItemType,
    LazyMintZone,
    Schema,
    SpentItem,
    ZoneParameters,
)


def _selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


ZONE_PARAMETERS_TUPLE = (
    "(bytes32,address,address,"
    "(uint8,address,uint256,uint256)[],"
    "(uint8,address,uint256,uint256,address)[],"
    "bytes,bytes32[],uint256,uint256,bytes32)"
)


@pytest.fixture
def order(zone, signer, make_voucher):
    """Zone parameters whose extraData carries a valid voucher for token 123."""
    voucher = make_voucher(owner=signer.address, token_id=123, amount=1, uri="ipfs://test")
    return ZoneParameters(
        order_hash=b"\x00" * 32,
        fulfiller=signer.address,
        offerer=signer.address,
        extra_data=encode_voucher(voucher),
    )


class TestDeployment:
    def test_sets_nft_address(self, zone, ledger):
        assert zone.nft() == ledger.address

    def test_sets_owner(self, zone, owner):
        assert zone.owner() == owner.address

    def test_owner_may_differ_from_deployer(self, runtime, ledger, owner, account1):
        other = runtime.deploy(LazyMintZone, deployer=account1.address, owner=owner.address, nft=ledger.address)
        assert other.owner() == owner.address


class TestSetNftAddress:
    def test_owner_sets_new_address(self, runtime, zone, owner, ledger):
        new_nft = VoucherSigner.generate().address
        zone.set_nft_address(new_nft, caller=owner.address)

        assert zone.nft() == new_nft
        (event,) = runtime.events.filter(NftAddressUpdated, address=zone.address)
        assert event.previous_address == ledger.address
        assert event.new_address == new_nft

    def test_non_owner_rejected(self, zone, signer, ledger):
        with pytest.raises(NotOwner, match="OwnableUnauthorizedAccount"):
            zone.set_nft_address(VoucherSigner.generate().address, caller=signer.address)
        assert zone.nft() == ledger.address

    def test_zero_address_rejected(self, zone, owner, ledger):
        with pytest.raises(InvalidAddress, match="Invalid NFT address"):
            zone.set_nft_address(ZERO_ADDRESS, caller=owner.address)
        assert zone.nft() == ledger.address


class TestIntrospection:
    def test_seaport_metadata(self, zone):
        name, schemas = zone.get_seaport_metadata()
        assert name == "ArtiartZone"
        assert schemas == [Schema(id=3003, metadata=b"")]

    def test_supports_zone_interface_and_erc165(self, zone):
        assert zone.supports_interface("0x39dd6933") is True
        assert zone.supports_interface("0x01ffc9a7") is True

    def test_rejects_random_interface(self, zone):
        assert zone.supports_interface("0xffffffff") is False
        assert zone.supports_interface("0xd9b67a26") is False

    def test_malformed_interface_id(self, zone):
        with pytest.raises(ValidationError):
            zone.supports_interface("0x01")

    def test_selectors_match_function_signatures(self):
        assert AUTHORIZE_ORDER_SELECTOR == _selector(f"authorizeOrder({ZONE_PARAMETERS_TUPLE})")
        assert VALIDATE_ORDER_SELECTOR == _selector(f"validateOrder({ZONE_PARAMETERS_TUPLE})")

    def test_interface_id_is_xor_of_selectors(self):
        selectors = [
            AUTHORIZE_ORDER_SELECTOR,
            VALIDATE_ORDER_SELECTOR,
            _selector("getSeaportMetadata()"),
            _selector("supportsInterface(bytes4)"),
        ]
        combined = reduce(lambda a, b: bytes(x ^ y for x, y in zip(a, b)), selectors)
        assert combined == ZONE_INTERFACE_ID == bytes.fromhex("39dd6933")


class TestAuthorizeOrder:
    def test_mints_and_returns_selector(self, zone, ledger, order, outsider):
        """A valid voucher in extraData mints the token."""
        assert ledger.is_token_minted(123) is False

        result = zone.authorize_order(order, caller=outsider.address)

        assert result == AUTHORIZE_ORDER_SELECTOR
        assert ledger.is_token_minted(123) is True
        assert ledger.balance_of(order.fulfiller, 123) == 1

    def test_zone_is_transfer_operator(self, runtime, zone, ledger, order, outsider):
        zone.authorize_order(order, caller=outsider.address)

        (transfer,) = runtime.events.filter(TransferSingle, address=ledger.address)
        assert transfer.operator == zone.address

    def test_second_authorization_is_noop(self, zone, ledger, order, outsider):
        zone.authorize_order(order, caller=outsider.address)
        assert zone.authorize_order(order, caller=outsider.address) == AUTHORIZE_ORDER_SELECTOR
        assert ledger.balance_of(order.fulfiller, 123) == 1

    def test_missing_signature_field(self, runtime, zone, ledger, signer, outsider):
        """A four-field tuple aborts with DecodeFailure and mutates nothing."""
        extra_data = encode(
            ["(address,uint256,uint256,string)"],
            [(signer.address, 123, 1, "ipfs://test")],
        )
        params = ZoneParameters(fulfiller=signer.address, offerer=signer.address, extra_data=extra_data)
        ledger_state = ledger.snapshot()
        mark = runtime.events.position

        with pytest.raises(DecodeFailure):
            zone.authorize_order(params, caller=outsider.address)

        assert ledger.state == ledger_state
        assert runtime.events.position == mark
        assert ledger.is_token_minted(123) is False

    def test_invalid_signature_propagates(self, zone, ledger, signer, owner, make_voucher, outsider):
        voucher = make_voucher(owner=signer.address, token_id=123, by=owner)
        params = ZoneParameters(fulfiller=signer.address, extra_data=encode_voucher(voucher))

        with pytest.raises(SignatureMismatch):
            zone.authorize_order(params, caller=outsider.address)
        assert ledger.is_token_minted(123) is False

    def test_fulfiller_must_own_voucher(self, zone, ledger, account1, signer, make_voucher, outsider):
        voucher = make_voucher(owner=signer.address, token_id=123)
        params = ZoneParameters(fulfiller=account1.address, extra_data=encode_voucher(voucher))

        with pytest.raises(OwnershipMismatch):
            zone.authorize_order(params, caller=outsider.address)
        assert ledger.is_token_minted(123) is False

    def test_ledger_without_code(self, zone, owner, order, outsider):
        """A zone pointed at an empty address cannot mint."""
        zone.set_nft_address(VoucherSigner.generate().address, caller=owner.address)
        with pytest.raises(UnknownContract):
            zone.authorize_order(order, caller=outsider.address)

    def test_repointed_zone_mints_on_new_ledger(self, runtime, zone, owner, signer, outsider):
        other = runtime.deploy(LazyMint1155, deployer=owner.address, signer=signer.address)
        zone.set_nft_address(other.address, caller=owner.address)
        voucher = signer.sign_voucher(other.domain, signer.address, 9, 2, "ipfs://nine")

        zone.authorize_order(
            ZoneParameters(fulfiller=signer.address, extra_data=encode_voucher(voucher)),
            caller=outsider.address,
        )
        assert other.balance_of(signer.address, 9) == 2


class TestValidateOrder:
    def test_returns_selector(self, zone):
        params = ZoneParameters(fulfiller=ZERO_ADDRESS, extra_data=os.urandom(32))
        assert zone.validate_order(params) == VALIDATE_ORDER_SELECTOR

    def test_no_state_change(self, runtime, zone, ledger, order):
        mark = runtime.events.position
        zone.validate_order(order)
        assert runtime.events.position == mark
        assert ledger.is_token_minted(123) is False


class TestZoneParameters:
    def test_from_dict(self, signer):
        params = ZoneParameters.from_dict({
            "orderHash": "0x" + "00" * 32,
            "orderHashes": [],
            "fulfiller": signer.address,
            "offerer": signer.address,
            "offer": [{
                "itemType": 3,
                "token": "0x1234567890123456789012345678901234567890",
                "identifier": 123,
                "amount": 1,
            }],
            "consideration": [],
            "extraData": "0x1234",
            "startTime": 0,
            "endTime": 0,
            "zoneHash": "0x" + "00" * 32,
        })
        assert params.extra_data == b"\x12\x34"
        assert params.offer == [SpentItem(ItemType.ERC1155, "0x1234567890123456789012345678901234567890", 123, 1)]
        assert params.order_hash == b"\x00" * 32

    def test_missing_fulfiller(self):
        with pytest.raises(ValidationError):
            ZoneParameters.from_dict({"extraData": "0x"})

    def test_bad_order_hash(self, signer):
        with pytest.raises(ValidationError):
            ZoneParameters(order_hash=b"\x00" * 31, fulfiller=signer.address)
