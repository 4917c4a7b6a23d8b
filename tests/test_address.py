"""Test contract address derivation."""

import pytest
from ethereum_types.bytes import Bytes32
from ethereum_types.numeric import U256, Uint

from ledger_evm.crypto.hash import keccak256
from ledger_evm.fork_types import Address
from ledger_evm.ledger import (
    HashedAddressMapping,
    IdentityAddressMapping,
    truncate_account_id,
)
from ledger_evm.utils.address import (
    compute_contract_address,
    compute_create2_contract_address,
    to_address_masked,
)
from ledger_evm.utils.hexadecimal import hex_to_address

from helpers import SENDER


@pytest.mark.parametrize(
    "nonce,expected",
    [
        pytest.param(
            0, "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d", id="nonce_0"
        ),
        pytest.param(
            1, "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8", id="nonce_1"
        ),
    ],
)
def test_create_address(nonce: int, expected: str) -> None:
    address = compute_contract_address(SENDER, Uint(nonce))
    assert address == hex_to_address(expected)


def test_create_address_is_deterministic() -> None:
    first = compute_contract_address(SENDER, Uint(7))
    second = compute_contract_address(SENDER, Uint(7))
    assert first == second


def test_create_address_distinct_per_nonce() -> None:
    addresses = {
        compute_contract_address(SENDER, Uint(nonce)) for nonce in range(256)
    }
    assert len(addresses) == 256


@pytest.mark.parametrize(
    "sender,salt,init_code,expected",
    [
        pytest.param(
            "0x0000000000000000000000000000000000000000",
            b"\x00" * 32,
            b"\x00",
            "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38",
            id="zero_sender",
        ),
        pytest.param(
            "0xdeadbeef00000000000000000000000000000000",
            b"\x00" * 32,
            b"\x00",
            "0xB928f69Bb1D91Cd65274e3c79d8986362984fDA3",
            id="deadbeef_sender",
        ),
    ],
)
def test_create2_address(
    sender: str, salt: bytes, init_code: bytes, expected: str
) -> None:
    address = compute_create2_contract_address(
        hex_to_address(sender), Bytes32(salt), keccak256(init_code)
    )
    assert address == hex_to_address(expected.lower())


def test_create2_address_depends_on_salt() -> None:
    init_hash = keccak256(b"\x00")
    first = compute_create2_contract_address(
        SENDER, Bytes32(b"\x00" * 32), init_hash
    )
    second = compute_create2_contract_address(
        SENDER, Bytes32(b"\x00" * 31 + b"\x01"), init_hash
    )
    assert first != second


def test_to_address_masked_keeps_low_bytes() -> None:
    word = U256.from_be_bytes(b"\xff" * 12 + bytes(SENDER))
    assert to_address_masked(word) == SENDER


def test_hashed_mapping_is_not_truncation() -> None:
    account_id = HashedAddressMapping().into_account_id(SENDER)
    assert len(account_id) == 32
    assert truncate_account_id(account_id) != SENDER


def test_identity_mapping_round_trips() -> None:
    account_id = IdentityAddressMapping().into_account_id(SENDER)
    assert account_id == b"\x00" * 12 + SENDER
    assert Address(account_id[12:]) == SENDER
