"""Test gas to currency conversion."""

import pytest
from ethereum_types.numeric import U256, Uint

from ledger_evm.exceptions import FeeOverflow, PaymentOverflow
from ledger_evm.fees import (
    TX_BASE_COST,
    TX_CREATE_COST,
    BlockAuthor,
    BurnFees,
    Treasury,
    calculate_intrinsic_cost,
    compute_upfront_cost,
    correct_and_deposit_fee,
    withdraw_fee,
)
from ledger_evm.ledger import Ledger
from ledger_evm.state import State, get_account
from ledger_evm.vm import BlockEnvironment

from helpers import COINBASE, RECIPIENT, SENDER, SENDER_BALANCE


@pytest.mark.parametrize(
    "data,is_create,expected",
    [
        pytest.param(b"", False, 21000, id="empty_call"),
        pytest.param(b"\x00\x01", False, 21000 + 4 + 16, id="mixed_bytes"),
        pytest.param(b"", True, 21000 + 32000, id="empty_create"),
        pytest.param(b"\xff" * 3, True, 53000 + 48, id="create_with_data"),
    ],
)
def test_intrinsic_cost(data: bytes, is_create: bool, expected: int) -> None:
    assert calculate_intrinsic_cost(data, is_create) == Uint(expected)
    assert TX_BASE_COST + TX_CREATE_COST == Uint(53000)


def test_upfront_cost() -> None:
    assert compute_upfront_cost(Uint(100), U256(3), U256(7)) == U256(307)


def test_upfront_fee_overflow() -> None:
    with pytest.raises(FeeOverflow):
        compute_upfront_cost(Uint(2), U256.MAX_VALUE, U256(0))


def test_upfront_payment_overflow() -> None:
    with pytest.raises(PaymentOverflow):
        compute_upfront_cost(Uint(1), U256(1), U256.MAX_VALUE)


def test_settlement_pays_block_author(state: State, ledger: Ledger) -> None:
    block_env = BlockEnvironment(coinbase=COINBASE)
    withdraw_fee(state, SENDER, U256(1000 * 10))

    settlement = correct_and_deposit_fee(
        state,
        SENDER,
        Uint(1000),
        Uint(600),
        U256(10),
        BlockAuthor(),
        block_env,
    )

    assert settlement.refund == U256(4000)
    assert settlement.fee == U256(6000)
    assert settlement.recipient == COINBASE
    assert get_account(state, SENDER).balance == U256(SENDER_BALANCE - 6000)
    assert get_account(state, COINBASE).balance == U256(6000)
    assert ledger.total_balance() == ledger.total_issuance


def test_settlement_pays_treasury(state: State) -> None:
    withdraw_fee(state, SENDER, U256(100))
    correct_and_deposit_fee(
        state,
        SENDER,
        Uint(100),
        Uint(100),
        U256(1),
        Treasury(RECIPIENT),
        BlockEnvironment(coinbase=COINBASE),
    )
    assert get_account(state, RECIPIENT).balance == U256(100)
    assert get_account(state, COINBASE).balance == U256(0)


def test_burned_fees_leave_issuance(state: State, ledger: Ledger) -> None:
    withdraw_fee(state, SENDER, U256(100))
    settlement = correct_and_deposit_fee(
        state,
        SENDER,
        Uint(100),
        Uint(40),
        U256(1),
        BurnFees(),
        BlockEnvironment(),
    )
    assert settlement.recipient is None
    assert ledger.total_issuance == U256(SENDER_BALANCE - 40)
    assert ledger.total_balance() == ledger.total_issuance
