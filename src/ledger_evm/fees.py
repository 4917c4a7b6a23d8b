"""
Gas Fees
^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Conversion between gas and the native currency. The sender pays for the
whole gas limit before execution starts; once the top-level frame has
resolved the unused part is refunded and the price of the gas actually
used is handed to the fee recipient policy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256, Uint

from .exceptions import FeeOverflow, PaymentOverflow
from .fork_types import Address
from .state import State, add_balance, sub_balance

if TYPE_CHECKING:
    from .vm import BlockEnvironment

TX_BASE_COST = Uint(21000)
TX_DATA_COST_PER_NON_ZERO = Uint(16)
TX_DATA_COST_PER_ZERO = Uint(4)
TX_CREATE_COST = Uint(32000)


def calculate_intrinsic_cost(data: Bytes, is_create: bool) -> Uint:
    """
    Calculates the gas that is charged before execution is started.

    The intrinsic cost of the transaction is charged before execution has
    begun. Functions/operations in the EVM cost money to execute so this
    intrinsic cost is for the operations that need to be paid for as part of
    the transaction. Data transfer, for example, is part of this intrinsic
    cost. It costs ether to send data over the wire and that ether is
    accounted for in the intrinsic cost calculated in this function. This
    intrinsic cost must be calculated and paid for before execution in order
    for all operations to be implemented.

    Parameters
    ----------
    data :
        Call data or init code of the transaction.
    is_create :
        Whether the transaction deploys a contract.

    Returns
    -------
    intrinsic_gas : `Uint`
        The intrinsic cost of the transaction.

    """
    data_cost = Uint(0)

    for byte in data:
        if byte == 0:
            data_cost += TX_DATA_COST_PER_ZERO
        else:
            data_cost += TX_DATA_COST_PER_NON_ZERO

    if is_create:
        create_cost = TX_CREATE_COST
    else:
        create_cost = Uint(0)

    return TX_BASE_COST + data_cost + create_cost


def compute_upfront_cost(
    gas_limit: Uint, gas_price: U256, value: U256
) -> U256:
    """
    `gas_limit * gas_price + value`, the amount the sender must hold.

    Raises
    ------
    FeeOverflow
        If the fee does not fit in 256 bits.
    PaymentOverflow
        If the fee plus the value does not fit in 256 bits.

    """
    fee = int(gas_limit) * int(gas_price)
    if fee > int(U256.MAX_VALUE):
        raise FeeOverflow(f"gas fee {gas_limit} * {gas_price} overflows")
    total = fee + int(value)
    if total > int(U256.MAX_VALUE):
        raise PaymentOverflow(f"fee {fee} plus value {value} overflows")
    return U256(total)


class FeeRecipientPolicy(ABC):
    """
    Decides where the price of the consumed gas goes.
    """

    @abstractmethod
    def recipient(self, block_env: "BlockEnvironment") -> Optional[Address]:
        """
        Address credited with the fee, or `None` to burn it.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class BlockAuthor(FeeRecipientPolicy):
    """
    Pay fees to the author of the current block.
    """

    def recipient(self, block_env: "BlockEnvironment") -> Optional[Address]:
        """
        The block's coinbase.
        """
        return block_env.coinbase


class Treasury(FeeRecipientPolicy):
    """
    Pay fees to a fixed treasury address.
    """

    def __init__(self, address: Address) -> None:
        self.address = address

    def recipient(self, block_env: "BlockEnvironment") -> Optional[Address]:
        """
        The treasury address.
        """
        return self.address

    def __repr__(self) -> str:
        return f"Treasury(0x{self.address.hex()})"


class BurnFees(FeeRecipientPolicy):
    """
    Take fees out of circulation.
    """

    def recipient(self, block_env: "BlockEnvironment") -> Optional[Address]:
        """
        Always `None`.
        """
        return None


@dataclass(frozen=True)
class FeeSettlement:
    """
    Outcome of `correct_and_deposit_fee`.
    """

    refund: U256
    fee: U256
    recipient: Optional[Address]


def withdraw_fee(state: State, address: Address, fee: U256) -> U256:
    """
    Take the maximum fee from `address` before execution. Must run with no
    checkpoint open so the debit survives a reverted execution.
    """
    sub_balance(state, address, fee)
    return fee


def correct_and_deposit_fee(
    state: State,
    address: Address,
    gas_limit: Uint,
    gas_used: Uint,
    gas_price: U256,
    policy: FeeRecipientPolicy,
    block_env: "BlockEnvironment",
) -> FeeSettlement:
    """
    Settle the fee once the top-level frame has resolved.

    Parameters
    ----------
    state :
        The state, with no checkpoint open.
    address :
        The sender, who paid `gas_limit * gas_price` upfront.
    gas_limit :
        The gas limit that was paid for.
    gas_used :
        Gas actually consumed, after refunds.
    gas_price :
        Price per unit of gas.
    policy :
        Where the consumed part goes.
    block_env :
        The block being built.

    Returns
    -------
    settlement : `FeeSettlement`
        Refunded and paid amounts.

    """
    refund = U256((int(gas_limit) - int(gas_used)) * int(gas_price))
    fee = U256(int(gas_used) * int(gas_price))

    if refund != U256(0):
        add_balance(state, address, refund)

    recipient = policy.recipient(block_env)
    if fee != U256(0):
        if recipient is None:
            state.ledger.burn(fee)
        else:
            add_balance(state, recipient, fee)

    return FeeSettlement(refund=refund, fee=fee, recipient=recipient)
