"""
State
^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

The state adapter sits between the executing frames and the host
`Ledger`. It exposes account operations (balance, nonce, code) and
contract storage, and stages every write in an overlay layer belonging to
the innermost open checkpoint.

There is one layer per running frame. `begin_transaction` pushes a layer,
`commit_transaction` merges the top layer into the one below it, or applies
it to the ledger when it is the last one, and `rollback_transaction` throws
the top layer away. Reads walk the layers from the top down and fall
back to the ledger.

When no checkpoint is open, writes go straight to the ledger. The
transaction pipeline uses this for the fee withdrawal and the sender's
nonce bump, which must survive a reverted execution.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Set

from ethereum_types.bytes import Bytes, Bytes32
from ethereum_types.numeric import U256, Uint

from .exceptions import InsufficientFunds, StateInvariantError
from .fork_types import EMPTY_ACCOUNT, Account, AccountBasic, Address
from .ledger import Ledger


@dataclass
class _Layer:
    """
    Changes staged by a single checkpoint.

    `cleared` holds addresses whose code and storage are wiped when the
    outermost layer reaches the ledger.
    """

    accounts: Dict[Address, Account] = field(default_factory=dict)
    storage: Dict[Address, Dict[Bytes32, U256]] = field(default_factory=dict)
    cleared: Set[Address] = field(default_factory=set)
    created: Set[Address] = field(default_factory=set)


@dataclass
class State:
    """
    Checkpointed view over the host ledger.
    """

    ledger: Ledger
    _layers: List[_Layer] = field(default_factory=list)


def checkpoint_depth(state: State) -> int:
    """
    Number of open checkpoints.
    """
    return len(state._layers)


def begin_transaction(state: State) -> None:
    """
    Start a state transaction.

    Transactions are entirely implicit and can be nested. It is not possible
    to calculate the state root during a transaction.

    Parameters
    ----------
    state : State
        The state.

    """
    state._layers.append(_Layer())


def commit_transaction(state: State) -> None:
    """
    Commit a state transaction.

    The changes of the innermost checkpoint are merged into its parent. If
    it has no parent they are applied to the ledger, including any pending
    account wipes.

    Parameters
    ----------
    state : State
        The state.

    """
    top = state._layers.pop()
    if state._layers:
        _merge_layer(state._layers[-1], top)
    else:
        _apply_layer(state.ledger, top)


def rollback_transaction(state: State) -> None:
    """
    Rollback a state transaction, resetting the state to the point when the
    corresponding `begin_transaction()` call was made.

    Parameters
    ----------
    state : State
        The state.

    """
    state._layers.pop()


def discard_all_checkpoints(state: State) -> None:
    """
    Throw away every open checkpoint. Used when a dispatch is aborted.
    """
    state._layers.clear()


def _merge_layer(parent: _Layer, child: _Layer) -> None:
    parent.accounts.update(child.accounts)
    for address, slots in child.storage.items():
        parent.storage.setdefault(address, {}).update(slots)
    parent.cleared |= child.cleared
    parent.created |= child.created


def _apply_layer(ledger: Ledger, layer: _Layer) -> None:
    for address, account in layer.accounts.items():
        _write_account(ledger, address, account)
    for address, slots in layer.storage.items():
        for key, value in slots.items():
            ledger.set_storage(address, key, value)
    for address in sorted(layer.cleared):
        ledger.remove_storage(address)
        ledger.remove_code(address)


def _read_ledger_account(ledger: Ledger, address: Address) -> Account:
    account_id = ledger.account_id(address)
    return Account(
        nonce=ledger.get_nonce(account_id),
        balance=ledger.get_balance(account_id),
        code=ledger.get_code(address),
    )


def _write_account(ledger: Ledger, address: Address, account: Account) -> None:
    # Only touch the fields that changed, so reads never materialise
    # native accounts.
    current = _read_ledger_account(ledger, address)
    account_id = ledger.account_id(address)
    if account.balance != current.balance:
        ledger.set_balance(account_id, account.balance)
    if account.nonce != current.nonce:
        ledger.set_nonce(account_id, account.nonce)
    if account.code != current.code:
        ledger.set_code(address, account.code)


def get_account(state: State, address: Address) -> Account:
    """
    Get the `Account` object at an address. Returns `EMPTY_ACCOUNT` if there
    is no account at the address.

    Parameters
    ----------
    state: `State`
        The state
    address : `Address`
        Address to lookup.

    Returns
    -------
    account : `Account`
        Account at address.

    """
    for layer in reversed(state._layers):
        if address in layer.accounts:
            return layer.accounts[address]
    return _read_ledger_account(state.ledger, address)


def set_account(state: State, address: Address, account: Account) -> None:
    """
    Set the `Account` object at an address.

    Parameters
    ----------
    state: `State`
        The state
    address : `Address`
        Address to set.
    account : `Account`
        Account to set at address.

    """
    if state._layers:
        state._layers[-1].accounts[address] = account
    else:
        _write_account(state.ledger, address, account)


def modify_state(
    state: State, address: Address, f: Callable[[Account], Account]
) -> None:
    """
    Modify an `Account` in the `State`.
    """
    set_account(state, address, f(get_account(state, address)))


def basic(state: State, address: Address) -> AccountBasic:
    """
    Nonce and balance of `address`, zero for an unknown account. Reading
    never materialises an account.
    """
    account = get_account(state, address)
    return AccountBasic(nonce=account.nonce, balance=account.balance)


def get_code(state: State, address: Address) -> Bytes:
    """
    Code deployed at `address`, empty for accounts without code.
    """
    return get_account(state, address).code


def account_exists(state: State, address: Address) -> bool:
    """
    Checks if an account exists in the state trie

    Parameters
    ----------
    state:
        The state
    address:
        Address of the account that needs to be checked.

    Returns
    -------
    account_exists : `bool`
        True if account exists in the state trie, False otherwise

    """
    for layer in reversed(state._layers):
        if address in layer.accounts:
            return True
    ledger = state.ledger
    return ledger.account_exists(ledger.account_id(address)) or bool(
        ledger.get_code(address)
    )


def account_has_code_or_nonce(state: State, address: Address) -> bool:
    """
    Checks if an account has non zero nonce or non empty code

    Parameters
    ----------
    state:
        The state
    address:
        Address of the account that needs to be checked.

    Returns
    -------
    has_code_or_nonce : `bool`
        True if the account has non zero nonce or non empty code,
        False otherwise.

    """
    account = get_account(state, address)
    return account.nonce != Uint(0) or account.code != b""


def increment_nonce(state: State, address: Address) -> None:
    """
    Increments the nonce of an account.

    Parameters
    ----------
    state:
        The current state.

    address:
        Address of the account whose nonce needs to be incremented.

    """

    def increase_nonce(account: Account) -> Account:
        return replace(account, nonce=account.nonce + Uint(1))

    modify_state(state, address, increase_nonce)


def add_balance(state: State, address: Address, amount: U256) -> None:
    """
    Credit `amount` to `address`.
    """

    def increase_balance(account: Account) -> Account:
        return replace(account, balance=account.balance + amount)

    modify_state(state, address, increase_balance)


def sub_balance(state: State, address: Address, amount: U256) -> None:
    """
    Debit `amount` from `address`.

    Raises
    ------
    InsufficientFunds
        If the balance is lower than `amount`. Nothing is modified.

    """
    account = get_account(state, address)
    if account.balance < amount:
        raise InsufficientFunds(
            f"balance of {address.hex()} is {account.balance}, "
            f"cannot withdraw {amount}"
        )
    set_account(
        state, address, replace(account, balance=account.balance - amount)
    )


def move_ether(
    state: State,
    sender_address: Address,
    recipient_address: Address,
    amount: U256,
) -> None:
    """
    Move funds between accounts. The debit is checked first, so a failed
    move leaves both balances untouched.
    """
    sub_balance(state, sender_address, amount)
    add_balance(state, recipient_address, amount)


def set_code(state: State, address: Address, code: Bytes) -> None:
    """
    Sets Account code.

    Code is immutable once set; only the creation path calls this, once per
    address.

    Parameters
    ----------
    state:
        The current state.

    address:
        Address of the account whose code needs to be update.

    code:
        The bytecode that needs to be set.

    """
    account = get_account(state, address)
    if account.code:
        raise StateInvariantError(f"code of {address.hex()} is already set")
    set_account(state, address, replace(account, code=code))


def mark_account_created(state: State, address: Address) -> None:
    """
    Mark an account as having been created in the current transaction.

    Parameters
    ----------
    state:
        The state
    address:
        Address of the account that has been created.

    """
    if state._layers:
        state._layers[-1].created.add(address)


def is_account_created(state: State, address: Address) -> bool:
    """
    Whether `address` was created by a still-uncommitted frame.
    """
    return any(address in layer.created for layer in state._layers)


def get_storage(state: State, address: Address, key: Bytes32) -> U256:
    """
    Get a value at a storage key on an account. Returns `U256(0)` if the
    storage key has not been set previously.

    Parameters
    ----------
    state: `State`
        The state
    address : `Address`
        Address of the account.
    key : `Bytes`
        Key to lookup.

    Returns
    -------
    value : `U256`
        Value at the key.

    """
    for layer in reversed(state._layers):
        slots = layer.storage.get(address)
        if slots is not None and key in slots:
            return slots[key]
    return state.ledger.get_storage(address, key)


def get_storage_original(
    state: State, address: Address, key: Bytes32
) -> U256:
    """
    Get the original value in a storage slot i.e. the value before the
    current transaction began. Used for storage refund accounting.

    Parameters
    ----------
    state:
        The current state.
    address:
        Address of the account to read the value from.
    key:
        Key of the storage slot.

    """
    # In the transaction where an account is created, its preexisting
    # storage is ignored.
    if is_account_created(state, address):
        return U256(0)
    return state.ledger.get_storage(address, key)


def set_storage(
    state: State, address: Address, key: Bytes32, value: U256
) -> None:
    """
    Set a value at a storage key on an account. Zero is a storable value
    that reads back exactly like an absent slot.

    Parameters
    ----------
    state: `State`
        The state
    address : `Address`
        Address of the account.
    key : `Bytes`
        Key to set.
    value : `U256`
        Value to set at the key.

    """
    if state._layers:
        state._layers[-1].storage.setdefault(address, {})[key] = value
    else:
        state.ledger.set_storage(address, key, value)


def account_has_storage(state: State, address: Address) -> bool:
    """
    Checks if an account has storage.

    Parameters
    ----------
    state:
        The state
    address:
        Address of the account that needs to be checked.

    Returns
    -------
    has_storage : `bool`
        True if the account has storage, False otherwise.

    """
    for layer in state._layers:
        slots = layer.storage.get(address, {})
        if any(value != U256(0) for value in slots.values()):
            return True
    return state.ledger.has_storage(address)


def clear_account(state: State, address: Address) -> None:
    """
    Schedule the removal of the code and storage of `address`.

    The wipe travels with the current checkpoint: it is dropped if any
    enclosing frame rolls back and applied only when the outermost
    checkpoint reaches the ledger. Clearing an address twice is the same as
    clearing it once.
    """
    if state._layers:
        state._layers[-1].cleared.add(address)
    else:
        state.ledger.remove_storage(address)
        state.ledger.remove_code(address)
