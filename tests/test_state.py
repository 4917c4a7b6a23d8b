"""Test the checkpointed state adapter."""

import pytest
from ethereum_types.bytes import Bytes32
from ethereum_types.numeric import U256, Uint

from ledger_evm.exceptions import InsufficientFunds, StateInvariantError
from ledger_evm.ledger import Ledger
from ledger_evm.state import (
    State,
    account_exists,
    account_has_storage,
    add_balance,
    basic,
    begin_transaction,
    checkpoint_depth,
    clear_account,
    commit_transaction,
    get_account,
    get_storage,
    get_storage_original,
    increment_nonce,
    mark_account_created,
    move_ether,
    rollback_transaction,
    set_code,
    set_storage,
    sub_balance,
)

from helpers import RECIPIENT, SENDER, SENDER_BALANCE

KEY = Bytes32(b"\x00" * 31 + b"\x01")


def test_basic_does_not_materialise(state: State, ledger: Ledger) -> None:
    info = basic(state, RECIPIENT)
    assert info.nonce == Uint(0)
    assert info.balance == U256(0)
    assert not ledger.account_exists(ledger.account_id(RECIPIENT))
    assert not account_exists(state, RECIPIENT)


def test_write_without_checkpoint_reaches_ledger(
    state: State, ledger: Ledger
) -> None:
    increment_nonce(state, SENDER)
    assert ledger.get_nonce(ledger.account_id(SENDER)) == Uint(1)


def test_sub_balance_underflow_leaves_balance(state: State) -> None:
    with pytest.raises(InsufficientFunds):
        sub_balance(state, SENDER, U256(SENDER_BALANCE + 1))
    assert get_account(state, SENDER).balance == U256(SENDER_BALANCE)


def test_move_ether_is_checked_before_mutation(state: State) -> None:
    begin_transaction(state)
    with pytest.raises(InsufficientFunds):
        move_ether(state, RECIPIENT, SENDER, U256(1))
    assert get_account(state, SENDER).balance == U256(SENDER_BALANCE)
    rollback_transaction(state)


def test_rollback_discards_changes(state: State, ledger: Ledger) -> None:
    begin_transaction(state)
    move_ether(state, SENDER, RECIPIENT, U256(100))
    set_storage(state, RECIPIENT, KEY, U256(5))
    assert get_account(state, RECIPIENT).balance == U256(100)
    rollback_transaction(state)

    assert get_account(state, RECIPIENT).balance == U256(0)
    assert get_storage(state, RECIPIENT, KEY) == U256(0)
    assert ledger.total_balance() == U256(SENDER_BALANCE)


def test_nested_commit_only_reaches_ledger_at_the_top(
    state: State, ledger: Ledger
) -> None:
    begin_transaction(state)
    begin_transaction(state)
    set_storage(state, RECIPIENT, KEY, U256(9))
    commit_transaction(state)

    assert checkpoint_depth(state) == 1
    assert ledger.get_storage(RECIPIENT, KEY) == U256(0)
    assert get_storage(state, RECIPIENT, KEY) == U256(9)

    commit_transaction(state)
    assert checkpoint_depth(state) == 0
    assert ledger.get_storage(RECIPIENT, KEY) == U256(9)


def test_inner_commit_undone_by_outer_rollback(state: State) -> None:
    begin_transaction(state)
    begin_transaction(state)
    add_balance(state, RECIPIENT, U256(1))
    commit_transaction(state)
    rollback_transaction(state)
    assert get_account(state, RECIPIENT).balance == U256(0)


def test_zero_storage_reads_like_absent(state: State) -> None:
    set_storage(state, RECIPIENT, KEY, U256(3))
    assert account_has_storage(state, RECIPIENT)
    set_storage(state, RECIPIENT, KEY, U256(0))
    assert get_storage(state, RECIPIENT, KEY) == U256(0)
    assert not account_has_storage(state, RECIPIENT)


def test_code_is_set_once(state: State) -> None:
    set_code(state, RECIPIENT, b"\x00")
    with pytest.raises(StateInvariantError):
        set_code(state, RECIPIENT, b"\x01")


def test_original_storage_ignores_pending_writes(
    state: State, ledger: Ledger
) -> None:
    ledger.set_storage(RECIPIENT, KEY, U256(1))
    begin_transaction(state)
    set_storage(state, RECIPIENT, KEY, U256(2))
    assert get_storage_original(state, RECIPIENT, KEY) == U256(1)
    rollback_transaction(state)


def test_original_storage_of_created_account_is_zero(
    state: State, ledger: Ledger
) -> None:
    ledger.set_storage(RECIPIENT, KEY, U256(1))
    begin_transaction(state)
    mark_account_created(state, RECIPIENT)
    assert get_storage_original(state, RECIPIENT, KEY) == U256(0)
    rollback_transaction(state)


def test_clear_account_waits_for_outermost_commit(
    state: State, ledger: Ledger
) -> None:
    ledger.set_code(RECIPIENT, b"\x00")
    ledger.set_storage(RECIPIENT, KEY, U256(1))

    begin_transaction(state)
    begin_transaction(state)
    clear_account(state, RECIPIENT)
    commit_transaction(state)
    assert ledger.get_code(RECIPIENT) == b"\x00"
    assert ledger.has_storage(RECIPIENT)

    commit_transaction(state)
    assert ledger.get_code(RECIPIENT) == b""
    assert not ledger.has_storage(RECIPIENT)


def test_clear_account_dropped_on_rollback(
    state: State, ledger: Ledger
) -> None:
    ledger.set_storage(RECIPIENT, KEY, U256(1))
    begin_transaction(state)
    clear_account(state, RECIPIENT)
    clear_account(state, RECIPIENT)
    rollback_transaction(state)
    assert ledger.get_storage(RECIPIENT, KEY) == U256(1)
