"""
Types re-used throughout the execution layer.

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Types re-used throughout the execution layer, independent of the host
ledger that stores them.
"""

from dataclasses import dataclass
from typing import Tuple

from ethereum_types.bytes import Bytes, Bytes20, Bytes32
from ethereum_types.numeric import U256, Uint

from .crypto.hash import Hash32, keccak256

Address = Bytes20
AccountId = Bytes32

EMPTY_CODE_HASH = keccak256(b"")

MAX_LOG_TOPICS = 4


@dataclass(frozen=True)
class Account:
    """
    State associated with an address.
    """

    nonce: Uint
    balance: U256
    code: Bytes

    @property
    def code_hash(self) -> Hash32:
        """
        Keccak-256 hash of the account's code.
        """
        if not self.code:
            return EMPTY_CODE_HASH
        return keccak256(self.code)


EMPTY_ACCOUNT = Account(
    nonce=Uint(0),
    balance=U256(0),
    code=b"",
)


@dataclass(frozen=True)
class AccountBasic:
    """
    Nonce and balance of an account, as returned by `basic`.
    """

    nonce: Uint
    balance: U256


@dataclass(frozen=True)
class Log:
    """
    Data record produced during the execution of a transaction.
    """

    address: Address
    topics: Tuple[Hash32, ...]
    data: Bytes

    def __post_init__(self) -> None:
        if len(self.topics) > MAX_LOG_TOPICS:
            raise ValueError(
                f"a log carries at most {MAX_LOG_TOPICS} topics, "
                f"got {len(self.topics)}"
            )
