"""
Host Ledger
^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

The flat keyed store of the host ledger runtime. Native balances and
nonces are keyed by a 32-byte native account id; contract code and storage
are keyed by EVM address. The execution layer never writes here directly
while a frame is running: it stages changes in `ledger_evm.state` overlays
and applies them once the outermost frame commits.

An `AddressMapping` decides which native account backs an EVM address.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict

from ethereum_types.bytes import Bytes, Bytes32
from ethereum_types.numeric import U256, Uint

from .crypto.hash import blake2b_256
from .fork_types import AccountId, Address

EVM_ACCOUNT_PREFIX = b"evm:"


class AddressMapping(ABC):
    """
    Maps an EVM address to the native account that holds its balance and
    nonce.
    """

    @abstractmethod
    def into_account_id(self, address: Address) -> AccountId:
        """
        Native account id backing `address`.
        """
        raise NotImplementedError


class HashedAddressMapping(AddressMapping):
    """
    Hash `b"evm:" + address` with 256-bit BLAKE2b. No native key holder
    can control the resulting account.
    """

    def into_account_id(self, address: Address) -> AccountId:
        """
        Native account id backing `address`.
        """
        return AccountId(blake2b_256(EVM_ACCOUNT_PREFIX + address))


class IdentityAddressMapping(AddressMapping):
    """
    Use the address itself, left padded to 32 bytes, as the native id.
    """

    def into_account_id(self, address: Address) -> AccountId:
        """
        Native account id backing `address`.
        """
        return AccountId(address.rjust(32, b"\x00"))


def truncate_account_id(account_id: AccountId) -> Address:
    """
    The EVM address a native account is allowed to act for: the first
    twenty bytes of its id.
    """
    return Address(account_id[:20])


@dataclass
class Ledger:
    """
    In-memory model of the host ledger's storage maps.
    """

    address_mapping: AddressMapping = field(
        default_factory=HashedAddressMapping
    )
    balances: Dict[AccountId, U256] = field(default_factory=dict)
    nonces: Dict[AccountId, Uint] = field(default_factory=dict)
    codes: Dict[Address, Bytes] = field(default_factory=dict)
    storage: Dict[Address, Dict[Bytes32, U256]] = field(default_factory=dict)
    total_issuance: U256 = U256(0)

    def account_id(self, address: Address) -> AccountId:
        """
        Native account id backing `address`.
        """
        return self.address_mapping.into_account_id(address)

    def account_exists(self, account_id: AccountId) -> bool:
        """
        Whether the native account has been materialised.
        """
        return account_id in self.balances or account_id in self.nonces

    def get_balance(self, account_id: AccountId) -> U256:
        """
        Free balance of a native account, zero when it does not exist.
        """
        return self.balances.get(account_id, U256(0))

    def set_balance(self, account_id: AccountId, balance: U256) -> None:
        """
        Overwrite a native balance, materialising the account if needed.
        Issuance is not touched: callers move value, they never create it.
        """
        self.balances[account_id] = balance
        self.nonces.setdefault(account_id, Uint(0))

    def get_nonce(self, account_id: AccountId) -> Uint:
        """
        Nonce of a native account, zero when it does not exist.
        """
        return self.nonces.get(account_id, Uint(0))

    def set_nonce(self, account_id: AccountId, nonce: Uint) -> None:
        """
        Overwrite a native nonce, materialising the account if needed.
        """
        self.nonces[account_id] = nonce
        self.balances.setdefault(account_id, U256(0))

    def get_code(self, address: Address) -> Bytes:
        """
        Contract code stored for `address`.
        """
        return self.codes.get(address, b"")

    def set_code(self, address: Address, code: Bytes) -> None:
        """
        Store contract code; empty code removes the entry.
        """
        if code:
            self.codes[address] = code
        else:
            self.codes.pop(address, None)

    def remove_code(self, address: Address) -> None:
        """
        Drop the contract code of `address`.
        """
        self.codes.pop(address, None)

    def get_storage(self, address: Address, key: Bytes32) -> U256:
        """
        Storage value of a contract slot, zero when absent.
        """
        return self.storage.get(address, {}).get(key, U256(0))

    def set_storage(self, address: Address, key: Bytes32, value: U256) -> None:
        """
        Write a contract slot. Zero is stored as absence.
        """
        if value == U256(0):
            slots = self.storage.get(address)
            if slots is not None:
                slots.pop(key, None)
                if not slots:
                    del self.storage[address]
            return
        self.storage.setdefault(address, {})[key] = value

    def has_storage(self, address: Address) -> bool:
        """
        Whether any non-zero slot is stored for `address`.
        """
        return bool(self.storage.get(address))

    def remove_storage(self, address: Address) -> None:
        """
        Remove every slot stored for `address`.
        """
        self.storage.pop(address, None)

    def mint(self, account_id: AccountId, amount: U256) -> None:
        """
        Create `amount` new currency in `account_id` (genesis endowments,
        test fixtures). Raises `OverflowError` if issuance would overflow.
        """
        self.total_issuance = self.total_issuance + amount
        self.set_balance(account_id, self.get_balance(account_id) + amount)

    def burn(self, amount: U256) -> None:
        """
        Retire `amount` of currency that has already been taken out of a
        balance.
        """
        self.total_issuance = self.total_issuance - amount

    def total_balance(self) -> U256:
        """
        Sum of every native balance.
        """
        total = U256(0)
        for balance in self.balances.values():
            total = total + balance
        return total
