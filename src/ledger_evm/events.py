"""
Execution Layer Events
^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Events surfaced to the host once a dispatch has been settled. They are
collected on `Runner.events` in the order they were produced.
"""

from dataclasses import dataclass
from typing import Union

from ethereum_types.numeric import U256

from .fork_types import AccountId, Address, Log
from .vm import ExecutionOutcome


@dataclass(frozen=True)
class LogEmitted:
    """
    A log from a successful execution.
    """

    log: Log


@dataclass(frozen=True)
class Executed:
    """
    A call to `address` succeeded.
    """

    address: Address
    outcome: ExecutionOutcome


@dataclass(frozen=True)
class ExecutedFailed:
    """
    A call to `address` reverted, halted or was aborted.
    """

    address: Address
    outcome: ExecutionOutcome


@dataclass(frozen=True)
class Created:
    """
    A contract was deployed at `address`.
    """

    address: Address


@dataclass(frozen=True)
class CreatedFailed:
    """
    Deploying a contract at `address` failed.
    """

    address: Address


@dataclass(frozen=True)
class BalanceDeposit:
    """
    `value` moved from the native account `origin` to the account backing
    `address`.
    """

    origin: AccountId
    address: Address
    value: U256


@dataclass(frozen=True)
class BalanceWithdraw:
    """
    `value` moved from the account backing `address` to the native account
    `origin`.
    """

    origin: AccountId
    address: Address
    value: U256


Event = Union[
    LogEmitted,
    Executed,
    ExecutedFailed,
    Created,
    CreatedFailed,
    BalanceDeposit,
    BalanceWithdraw,
]
