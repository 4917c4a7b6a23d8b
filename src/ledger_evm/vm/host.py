"""
Ethereum Virtual Machine (EVM) Host Interface
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

The capability set an interpreter is given to touch the world outside its
own stack and memory. Everything an interpreter may read or change goes
through a `Host`; it never sees the state adapter or the ledger.

`FrameHost` is the implementation handed out by the executor. It is bound
to one frame: storage and logs always belong to the frame's
`current_target`, and every mutating capability refuses to run in a static
frame.
"""

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol, Sequence

from ethereum_types.bytes import Bytes, Bytes32
from ethereum_types.numeric import U256, Uint

from ..crypto.hash import Hash32
from ..fork_types import MAX_LOG_TOPICS, AccountBasic, Address, Log
from ..state import (
    account_exists,
    basic,
    get_account,
    get_code,
    get_storage,
    get_storage_original,
    move_ether,
    set_storage,
)
from . import (
    BlockEnvironment,
    ExecutionOutcome,
    Frame,
    InterpreterResult,
    Message,
    Succeeded,
    TransactionEnvironment,
)
from .exceptions import InvalidParameter, WriteInStaticContext

if TYPE_CHECKING:
    from ..config import EvmConfig
    from .executor import Executor


class CallKind(enum.Enum):
    """
    The ways a frame can start a sub-frame.
    """

    CALL = "CALL"
    CALLCODE = "CALLCODE"
    DELEGATECALL = "DELEGATECALL"
    STATICCALL = "STATICCALL"
    CREATE = "CREATE"
    CREATE2 = "CREATE2"

    @property
    def is_create(self) -> bool:
        """
        Whether the sub-frame deploys a contract.
        """
        return self in (CallKind.CREATE, CallKind.CREATE2)


@dataclass(frozen=True)
class CallRequest:
    """
    A sub-call or sub-creation asked for by an interpreter.

    `gas` is what the code asked to forward and `available_gas` what the
    frame has left once the cost of the instruction itself is paid; the
    executor decides how much is actually handed over. `target` is the
    account called, or the account whose code runs for `CALLCODE` and
    `DELEGATECALL`. For creations `data` is the init code.
    """

    kind: CallKind
    gas: Uint
    available_gas: Uint
    target: Optional[Address] = None
    value: U256 = U256(0)
    data: Bytes = b""
    salt: Optional[Bytes32] = None
    stipend: Uint = Uint(0)


@dataclass(frozen=True)
class CallResult:
    """
    What became of a `CallRequest`.

    The caller pays `gas_allocated` and gets `gas_left` back, which may
    include an unused stipend.
    """

    outcome: ExecutionOutcome
    gas_allocated: Uint
    gas_left: Uint
    output: Bytes = b""
    created_address: Optional[Address] = None

    @property
    def success(self) -> bool:
        """
        Whether the sub-frame finished normally.
        """
        return isinstance(self.outcome, Succeeded)


class Host(Protocol):
    """
    Capabilities available to running code.
    """

    @property
    def message(self) -> Message:
        """
        The message being executed.
        """
        ...

    @property
    def block_env(self) -> BlockEnvironment:
        """
        The block being built.
        """
        ...

    @property
    def tx_env(self) -> TransactionEnvironment:
        """
        The transaction being executed.
        """
        ...

    @property
    def config(self) -> "EvmConfig":
        """
        Parameters of the execution layer.
        """
        ...

    def basic(self, address: Address) -> AccountBasic:
        """
        Nonce and balance of `address`.
        """
        ...

    def get_balance(self, address: Address) -> U256:
        """
        Balance of `address`.
        """
        ...

    def get_code(self, address: Address) -> Bytes:
        """
        Code of `address`.
        """
        ...

    def get_code_hash(self, address: Address) -> Bytes32:
        """
        Keccak-256 hash of the code of `address`, zero if it has no
        account.
        """
        ...

    def account_exists(self, address: Address) -> bool:
        """
        Whether `address` has an account.
        """
        ...

    def get_storage(self, key: Bytes32) -> U256:
        """
        Storage slot of the current target.
        """
        ...

    def get_storage_original(self, key: Bytes32) -> U256:
        """
        Storage slot of the current target as it was when the transaction
        started.
        """
        ...

    def set_storage(self, key: Bytes32, value: U256) -> None:
        """
        Write a storage slot of the current target.
        """
        ...

    def emit_log(self, topics: Sequence[Hash32], data: Bytes) -> None:
        """
        Record a log from the current target.
        """
        ...

    def selfdestruct(self, beneficiary: Address) -> None:
        """
        Move the balance of the current target to `beneficiary` and
        schedule its destruction.
        """
        ...

    def call(self, request: CallRequest) -> CallResult:
        """
        Run a sub-frame.
        """
        ...


class Interpreter(Protocol):
    """
    Runs the code of a frame.

    An interpreter reports a normal stop, a `Revert` or an
    `ExceptionalHalt` through `InterpreterResult.error`. Raising
    `FatalInterpreterError` (or anything unexpected) aborts the whole
    dispatch.
    """

    def execute(self, frame: Frame, host: Host) -> InterpreterResult:
        """
        Run `frame.message.code` with at most `frame.gas_limit` gas.
        """
        ...


class FrameHost:
    """
    `Host` bound to one frame of an `Executor`.
    """

    def __init__(self, executor: "Executor", frame: Frame) -> None:
        self.executor = executor
        self.frame = frame

    @property
    def message(self) -> Message:
        """
        The message being executed.
        """
        return self.frame.message

    @property
    def block_env(self) -> BlockEnvironment:
        """
        The block being built.
        """
        return self.frame.message.block_env

    @property
    def tx_env(self) -> TransactionEnvironment:
        """
        The transaction being executed.
        """
        return self.frame.message.tx_env

    @property
    def config(self) -> "EvmConfig":
        """
        Parameters of the execution layer.
        """
        return self.executor.config

    def _ensure_writable(self) -> None:
        if self.frame.is_static:
            raise WriteInStaticContext(
                f"state change in static frame at depth {self.frame.depth}"
            )

    def basic(self, address: Address) -> AccountBasic:
        """
        Nonce and balance of `address`.
        """
        return basic(self.executor.state, address)

    def get_balance(self, address: Address) -> U256:
        """
        Balance of `address`.
        """
        return get_account(self.executor.state, address).balance

    def get_code(self, address: Address) -> Bytes:
        """
        Code of `address`.
        """
        return get_code(self.executor.state, address)

    def get_code_hash(self, address: Address) -> Bytes32:
        """
        Keccak-256 hash of the code of `address`, zero if it has no
        account.
        """
        state = self.executor.state
        if not account_exists(state, address):
            return Bytes32(b"\x00" * 32)
        return get_account(state, address).code_hash

    def account_exists(self, address: Address) -> bool:
        """
        Whether `address` has an account.
        """
        return account_exists(self.executor.state, address)

    def get_storage(self, key: Bytes32) -> U256:
        """
        Storage slot of the current target.
        """
        return get_storage(self.executor.state, self.frame.target, key)

    def get_storage_original(self, key: Bytes32) -> U256:
        """
        Storage slot of the current target as it was when the transaction
        started.
        """
        return get_storage_original(
            self.executor.state, self.frame.target, key
        )

    def set_storage(self, key: Bytes32, value: U256) -> None:
        """
        Write a storage slot of the current target.
        """
        self._ensure_writable()
        set_storage(self.executor.state, self.frame.target, key, value)

    def emit_log(self, topics: Sequence[Hash32], data: Bytes) -> None:
        """
        Record a log from the current target.

        Raises
        ------
        InvalidParameter
            If more than `MAX_LOG_TOPICS` topics are given.

        """
        self._ensure_writable()
        if len(topics) > MAX_LOG_TOPICS:
            raise InvalidParameter(
                f"a log carries at most {MAX_LOG_TOPICS} topics, "
                f"got {len(topics)}"
            )
        log_entry = Log(
            address=self.frame.target,
            topics=tuple(topics),
            data=data,
        )
        self.frame.logs = self.frame.logs + (log_entry,)

    def selfdestruct(self, beneficiary: Address) -> None:
        """
        Move the balance of the current target to `beneficiary` and
        schedule its destruction at the end of the transaction. Destroying
        an account twice is the same as destroying it once.
        """
        self._ensure_writable()
        state = self.executor.state
        originator = self.frame.target
        balance = get_account(state, originator).balance
        move_ether(state, originator, beneficiary, balance)
        self.frame.accounts_to_delete.add(originator)

    def call(self, request: CallRequest) -> CallResult:
        """
        Run a sub-frame.

        Raises
        ------
        WriteInStaticContext
            For creations, and for calls carrying value, from a static
            frame.

        """
        if request.kind.is_create or (
            request.kind == CallKind.CALL and request.value != U256(0)
        ):
            self._ensure_writable()
        return self.executor.dispatch(request, self.frame)

