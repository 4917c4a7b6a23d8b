"""
Ethereum Virtual Machine (EVM)
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

The abstract computer which runs the code stored in an
`.fork_types.Account`.

This package holds the data passed between the executor and an
interpreter: the environments, the `Message` describing one call or
creation, the `Frame` that records what became of it and the possible
outcomes of a frame.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple, Union

from ethereum_types.bytes import Bytes, Bytes0
from ethereum_types.numeric import U256, Uint

from ..exceptions import StateInvariantError
from ..fork_types import Address, Log

__all__ = (
    "BlockEnvironment",
    "TransactionEnvironment",
    "Message",
    "Succeeded",
    "Reverted",
    "Errored",
    "ExecutionOutcome",
    "Frame",
    "InterpreterResult",
    "incorporate_child_on_success",
    "incorporate_child_on_error",
)


@dataclass
class BlockEnvironment:
    """
    Items external to the virtual machine itself, provided by the block
    being built.
    """

    number: Uint = Uint(0)
    coinbase: Address = Address(b"\x00" * 20)
    time: U256 = U256(0)


@dataclass
class TransactionEnvironment:
    """
    Items that are used by contract creation or message call.
    """

    origin: Address
    gas_price: U256
    gas: Uint


@dataclass
class Message:
    """
    Items that are used by contract creation or message call.

    `target` is empty for a contract creation; `current_target` is the
    account whose balance and storage the code acts on.
    """

    block_env: BlockEnvironment
    tx_env: TransactionEnvironment
    caller: Address
    target: Union[Bytes0, Address]
    current_target: Address
    gas: Uint
    value: U256
    data: Bytes
    code_address: Optional[Address]
    code: Bytes
    depth: Uint
    should_transfer_value: bool
    is_static: bool

    @property
    def is_create(self) -> bool:
        """
        Whether this message deploys a contract.
        """
        return isinstance(self.target, Bytes0)


@dataclass(frozen=True)
class Succeeded:
    """
    The frame stopped normally. `created_address` is set for creations.
    """

    output: Bytes = b""
    created_address: Optional[Address] = None


@dataclass(frozen=True)
class Reverted:
    """
    The frame reverted. Its state changes are discarded but its unused gas
    goes back to the caller.
    """

    output: Bytes = b""


@dataclass(frozen=True)
class Errored:
    """
    The frame halted exceptionally. `error` is the exception that stopped
    it.
    """

    error: Exception

    @property
    def kind(self) -> str:
        """
        Name of the error, e.g. `"OutOfGasError"`.
        """
        return type(self.error).__name__


ExecutionOutcome = Union[Succeeded, Reverted, Errored]


@dataclass
class Frame:
    """
    One running (or finished) call frame.

    A frame starts out running, with no outcome. `finish` records the
    outcome exactly once; the logs, refunds and destructions collected by a
    frame that did not succeed are dropped at that point.
    """

    message: Message
    gas_limit: Uint
    gas_used: Uint = Uint(0)
    children: List["Frame"] = field(default_factory=list)
    logs: Tuple[Log, ...] = field(default_factory=tuple)
    accounts_to_delete: Set[Address] = field(default_factory=set)
    refund_counter: int = 0
    outcome: Optional[ExecutionOutcome] = None

    @property
    def depth(self) -> Uint:
        """
        Call depth, zero for the top-level frame.
        """
        return self.message.depth

    @property
    def is_static(self) -> bool:
        """
        Whether state modifications are forbidden in this frame.
        """
        return self.message.is_static

    @property
    def caller(self) -> Address:
        """
        Address that sent the message.
        """
        return self.message.caller

    @property
    def target(self) -> Address:
        """
        Account whose balance and storage the frame acts on.
        """
        return self.message.current_target

    @property
    def value(self) -> U256:
        """
        Value carried by the message.
        """
        return self.message.value

    @property
    def input(self) -> Bytes:
        """
        Call data of the message.
        """
        return self.message.data

    @property
    def gas_left(self) -> Uint:
        """
        Gas not consumed by the frame.
        """
        return self.gas_limit - self.gas_used

    @property
    def is_running(self) -> bool:
        """
        Whether `finish` has not been called yet.
        """
        return self.outcome is None

    @property
    def succeeded(self) -> bool:
        """
        Whether the frame finished with `Succeeded`.
        """
        return isinstance(self.outcome, Succeeded)

    @property
    def output(self) -> Bytes:
        """
        Return or revert data, empty for errors.
        """
        if isinstance(self.outcome, (Succeeded, Reverted)):
            return self.outcome.output
        return b""

    def finish(self, outcome: ExecutionOutcome, gas_left: Uint) -> None:
        """
        Record the outcome of the frame.

        Raises
        ------
        StateInvariantError
            If the frame already has an outcome or `gas_left` exceeds its
            gas limit.

        """
        if self.outcome is not None:
            raise StateInvariantError(
                f"frame at depth {self.depth} already finished with "
                f"{type(self.outcome).__name__}"
            )
        if gas_left > self.gas_limit:
            raise StateInvariantError(
                f"frame reports {gas_left} gas left out of {self.gas_limit}"
            )
        self.gas_used = self.gas_limit - gas_left
        self.outcome = outcome
        if not isinstance(outcome, Succeeded):
            self.logs = ()
            self.accounts_to_delete = set()
            self.refund_counter = 0


@dataclass
class InterpreterResult:
    """
    What an interpreter reports after running the code of a frame.

    `error` is `None` for a normal stop, a `Revert` or an
    `ExceptionalHalt`. `refund_counter` holds the frame's own refunds;
    those of its children are already on the frame.
    """

    gas_left: Uint
    output: Bytes = b""
    error: Optional[Exception] = None
    refund_counter: int = 0


def incorporate_child_on_success(frame: Frame, child: Frame) -> None:
    """
    Incorporate the state of a successful `child` into the parent `frame`.

    Parameters
    ----------
    frame :
        The parent frame.
    child :
        The child frame to incorporate.

    """
    frame.children.append(child)
    frame.logs += child.logs
    frame.refund_counter += child.refund_counter
    frame.accounts_to_delete.update(child.accounts_to_delete)


def incorporate_child_on_error(frame: Frame, child: Frame) -> None:
    """
    Incorporate the state of an unsuccessful `child` into the parent
    `frame`. Only the record of the child is kept.

    Parameters
    ----------
    frame :
        The parent frame.
    child :
        The child frame to incorporate.

    """
    frame.children.append(child)
