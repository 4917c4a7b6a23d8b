"""
Exceptions which cause the dispatch of a transaction to be refused or
aborted.
"""

from typing import Optional

from ethereum_types.numeric import Uint


class EvmException(Exception):
    """
    Base class for all exceptions _expected_ to be raised by the execution
    layer.
    """


class InvalidTransaction(EvmException):
    """
    Thrown before execution when a transaction cannot be dispatched. No
    state is modified and no gas is charged.
    """


class GasLimitTooLow(InvalidTransaction):
    """
    The gas limit does not cover the intrinsic cost of the transaction.
    """


class GasLimitTooHigh(InvalidTransaction):
    """
    The gas limit is above the block gas limit.
    """


class GasPriceTooLow(InvalidTransaction):
    """
    The gas price is below the configured minimum.
    """


class InvalidNonce(InvalidTransaction):
    """
    The nonce supplied with the transaction does not match the sender's.
    """


class FeeOverflow(InvalidTransaction):
    """
    `gas_limit * gas_price` does not fit in 256 bits.
    """


class PaymentOverflow(InvalidTransaction):
    """
    The fee plus the transferred value does not fit in 256 bits.
    """


class OutOfFund(InvalidTransaction):
    """
    The sender cannot pay for the gas limit and the transferred value.
    """


class BadOrigin(EvmException):
    """
    The dispatching account is not allowed to act for the given address.
    """


class BalanceLow(EvmException):
    """
    The balance of the mapped account is too low for a withdrawal.
    """


class InsufficientFunds(EvmException):
    """
    A balance would go negative. Raised before any mutation.
    """


class StateInvariantError(EvmException):
    """
    An operation broke an invariant of the state adapter, for example
    setting the code of an address twice.
    """


class FatalInterpreterError(EvmException):
    """
    The interpreter violated one of its own invariants. The whole dispatch
    is aborted; `gas_used` is filled in once the penalty has been settled.
    """

    gas_used: Optional[Uint]

    def __init__(self, message: str = "", gas_used: Optional[Uint] = None):
        super().__init__(message)
        self.gas_used = gas_used
