"""
Ethereum Virtual Machine (EVM) Executor
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Runs messages as a stack of call frames. Each frame works on its own
checkpoint of the state: it is committed into the parent's checkpoint when
the frame succeeds and thrown away otherwise, so a failing frame never
leaves a trace beyond the gas it consumed.

The executor owns every rule about frames (depth, value transfer, gas
handed to sub-calls, contract creation and code deposit, precompiles).
Bytecode itself is run by a pluggable `Interpreter`, which reaches back
into the executor only through the `Host` it is given.
"""

from dataclasses import dataclass
from typing import Optional, Set, Tuple

from ethereum_types.bytes import Bytes, Bytes0, Bytes32
from ethereum_types.numeric import U256, Uint, ulen

from ..config import EvmConfig
from ..crypto.hash import keccak256
from ..exceptions import FatalInterpreterError, InsufficientFunds
from ..fork_types import Address, Log
from ..logging import get_logger
from ..precompiles import Precompile
from ..state import (
    State,
    account_has_code_or_nonce,
    account_has_storage,
    begin_transaction,
    commit_transaction,
    get_account,
    get_code,
    increment_nonce,
    mark_account_created,
    move_ether,
    rollback_transaction,
    set_code,
)
from ..utils.address import (
    compute_contract_address,
    compute_create2_contract_address,
)
from . import (
    Errored,
    ExecutionOutcome,
    Frame,
    InterpreterResult,
    Message,
    Reverted,
    Succeeded,
    incorporate_child_on_error,
    incorporate_child_on_success,
)
from .exceptions import (
    AddressCollision,
    ExceptionalHalt,
    InvalidContractPrefix,
    OutOfGasError,
    Revert,
    StackDepthLimitError,
)
from .gas import allocate_call_gas, max_message_call_gas
from .host import CallKind, CallRequest, CallResult, FrameHost, Interpreter

logger = get_logger(__name__)

MAX_NONCE = Uint(2**64 - 1)


@dataclass
class MessageCallOutput:
    """
    Output of a particular message call

    Contains the following:

          1. `gas_left`: remaining gas after execution.
          2. `refund_counter`: gas to refund after execution.
          3. `logs`: list of `Log` generated during execution.
          4. `accounts_to_delete`: Contracts which have self-destructed.
          5. `outcome`: how the top-level frame finished.
    """

    frame: Frame

    @property
    def gas_left(self) -> Uint:
        """
        Gas the top-level frame did not consume.
        """
        return self.frame.gas_left

    @property
    def refund_counter(self) -> int:
        """
        Refunds earned by the successful frames.
        """
        return self.frame.refund_counter

    @property
    def logs(self) -> Tuple[Log, ...]:
        """
        Logs of the successful frames, in emission order.
        """
        return self.frame.logs

    @property
    def accounts_to_delete(self) -> Set[Address]:
        """
        Accounts that self-destructed in a successful frame.
        """
        return self.frame.accounts_to_delete

    @property
    def outcome(self) -> ExecutionOutcome:
        """
        How the top-level frame finished.
        """
        assert self.frame.outcome is not None
        return self.frame.outcome


class Executor:
    """
    Runs messages against a `State` with the given interpreter.
    """

    def __init__(
        self,
        config: EvmConfig,
        state: State,
        interpreter: Interpreter,
    ) -> None:
        self.config = config
        self.state = state
        self.interpreter = interpreter

    def process_message_call(self, message: Message) -> MessageCallOutput:
        """
        If `message.target` is empty then it creates a smart contract
        else it executes a call from the `message.caller` to the
        `message.target`.

        Parameters
        ----------
        message :
            Transaction specific items.

        Returns
        -------
        output : `MessageCallOutput`
            Output of the message call

        """
        state = self.state
        if message.is_create:
            address = message.current_target
            if account_has_code_or_nonce(
                state, address
            ) or account_has_storage(state, address):
                frame = Frame(message=message, gas_limit=message.gas)
                frame.finish(
                    Errored(
                        AddressCollision(
                            f"contract already exists at 0x{address.hex()}"
                        )
                    ),
                    Uint(0),
                )
                logger.debug("create collided at 0x%s", address.hex())
            else:
                frame = self.process_create_message(message)
        else:
            frame = self.process_message(message)
        return MessageCallOutput(frame=frame)

    def process_create_message(
        self, message: Message, parent: Optional[Frame] = None
    ) -> Frame:
        """
        Executes a call to create a smart contract.

        The new account is marked as created and, unless disabled, its
        nonce set to one before the init code runs. The code returned by
        the init code is deposited only if the frame succeeds.

        Parameters
        ----------
        message :
            Transaction specific items.
        parent :
            The frame that asked for the creation, if any.

        Returns
        -------
        frame : `Frame`
            The finished frame.

        """
        state = self.state
        frame = Frame(message=message, gas_limit=message.gas)

        begin_transaction(state)
        mark_account_created(state, message.current_target)
        if self.config.create_increase_nonce:
            increment_nonce(state, message.current_target)

        self._run_frame(frame)

        if frame.succeeded:
            commit_transaction(state)
        else:
            rollback_transaction(state)

        self._incorporate(parent, frame)
        return frame

    def process_message(
        self, message: Message, parent: Optional[Frame] = None
    ) -> Frame:
        """
        Move ether and execute the relevant code.

        Parameters
        ----------
        message :
            Transaction specific items.
        parent :
            The calling frame, if any.

        Returns
        -------
        frame : `Frame`
            The finished frame.

        """
        frame = Frame(message=message, gas_limit=message.gas)
        self._run_frame(frame)
        self._incorporate(parent, frame)
        return frame

    def _run_frame(self, frame: Frame) -> None:
        message = frame.message
        if message.depth > self.config.depth_limit:
            frame.finish(
                Errored(
                    StackDepthLimitError(
                        f"call depth {message.depth} exceeds "
                        f"{self.config.call_depth_limit}"
                    )
                ),
                Uint(0),
            )
            return

        state = self.state
        begin_transaction(state)

        if message.should_transfer_value and message.value != U256(0):
            try:
                move_ether(
                    state,
                    message.caller,
                    message.current_target,
                    message.value,
                )
            except InsufficientFunds as error:
                rollback_transaction(state)
                frame.finish(Errored(error), frame.gas_limit)
                return

        self.execute_code(frame)

        if frame.succeeded:
            commit_transaction(state)
        else:
            rollback_transaction(state)

        logger.verbose(
            "frame depth=%s target=0x%s outcome=%s gas_used=%s",
            frame.depth,
            frame.target.hex(),
            type(frame.outcome).__name__,
            frame.gas_used,
        )

    def _incorporate(self, parent: Optional[Frame], child: Frame) -> None:
        if parent is None:
            return
        if child.succeeded:
            incorporate_child_on_success(parent, child)
        else:
            incorporate_child_on_error(parent, child)

    def execute_code(self, frame: Frame) -> None:
        """
        Executes bytecode present in the `message`.

        Parameters
        ----------
        frame :
            The running frame. It is finished when this returns.

        Raises
        ------
        FatalInterpreterError
            If the interpreter broke its contract. Any other exception it
            raises is wrapped in one.

        """
        message = frame.message
        if not message.is_create:
            precompile = self.config.precompiles.get(message.code_address)
            if precompile is not None:
                self._run_precompile(frame, precompile)
                return

        if not message.code:
            self._finish(frame, InterpreterResult(gas_left=frame.gas_limit))
            return

        host = FrameHost(self, frame)
        try:
            result = self.interpreter.execute(frame, host)
        except FatalInterpreterError:
            raise
        except ExceptionalHalt as error:
            result = InterpreterResult(gas_left=Uint(0), error=error)
        except Exception as error:
            raise FatalInterpreterError(
                f"interpreter raised {type(error).__name__}: {error}"
            ) from error

        if result.gas_left > frame.gas_limit:
            raise FatalInterpreterError(
                f"interpreter returned {result.gas_left} gas out of "
                f"{frame.gas_limit}"
            )
        self._finish(frame, result)

    def _finish(self, frame: Frame, result: InterpreterResult) -> None:
        error = result.error
        if error is None:
            frame.refund_counter += result.refund_counter
            if frame.message.is_create:
                self._deposit_code(frame, result.output, result.gas_left)
            else:
                frame.finish(Succeeded(result.output), result.gas_left)
        elif isinstance(error, Revert):
            frame.finish(Reverted(result.output), result.gas_left)
        elif isinstance(error, ExceptionalHalt):
            frame.finish(Errored(error), Uint(0))
        else:
            raise FatalInterpreterError(
                f"interpreter reported {type(error).__name__}: {error}"
            ) from error

    def _deposit_code(self, frame: Frame, code: Bytes, gas_left: Uint) -> None:
        config = self.config
        address = frame.target
        error: Optional[ExceptionalHalt] = None
        deposit_cost = Uint(config.code_deposit_gas) * ulen(code)

        if code and code[0] == 0xEF:
            error = InvalidContractPrefix("contract code starts with 0xEF")
        elif len(code) > config.max_code_size:
            error = OutOfGasError(
                f"contract code of {len(code)} bytes exceeds "
                f"{config.max_code_size}"
            )
        elif deposit_cost > gas_left:
            error = OutOfGasError(
                f"code deposit costs {deposit_cost}, {gas_left} gas left"
            )

        if error is not None:
            frame.finish(Errored(error), Uint(0))
            return

        if code:
            set_code(self.state, address, code)
        frame.finish(
            Succeeded(b"", created_address=address),
            gas_left - deposit_cost,
        )

    def _run_precompile(self, frame: Frame, precompile: Precompile) -> None:
        data = frame.message.data
        gas_cost = precompile.gas_cost(data)
        if gas_cost > frame.gas_limit:
            frame.finish(
                Errored(
                    OutOfGasError(
                        f"{precompile.name} costs {gas_cost}, "
                        f"{frame.gas_limit} gas given"
                    )
                ),
                Uint(0),
            )
            return
        try:
            output = precompile.run(data)
        except ExceptionalHalt as error:
            frame.finish(Errored(error), Uint(0))
            return
        except Exception as error:
            raise FatalInterpreterError(
                f"precompile {precompile.name} raised "
                f"{type(error).__name__}: {error}"
            ) from error
        frame.finish(Succeeded(output), frame.gas_limit - gas_cost)

    def dispatch(self, request: CallRequest, parent: Frame) -> CallResult:
        """
        Run the sub-frame asked for by the code of `parent`.

        The gas handed over is the requested amount, capped so that the
        caller keeps `1 / gas_retention_denominator` of what it has left.
        Creations always receive the whole cap. A stipend is added on top
        of the allocation without being charged to the caller.

        Parameters
        ----------
        request :
            The sub-call or sub-creation.
        parent :
            The frame whose code made the request.

        Returns
        -------
        result : `CallResult`
            Outcome, gas taken from the caller and gas given back.

        """
        denominator = self.config.gas_retention_denominator
        if request.kind.is_create:
            allocated = max_message_call_gas(
                request.available_gas, denominator
            )
            return self._dispatch_create(request, parent, allocated)

        allocated = allocate_call_gas(
            request.gas, request.available_gas, denominator
        )
        target = request.target
        if target is None:
            raise FatalInterpreterError(f"{request.kind.value} without target")

        parent_message = parent.message
        if request.kind == CallKind.CALL:
            caller, current_target = parent.target, target
            value, should_transfer_value = request.value, True
            is_static = parent.is_static
        elif request.kind == CallKind.CALLCODE:
            caller, current_target = parent.target, parent.target
            value, should_transfer_value = request.value, True
            is_static = parent.is_static
        elif request.kind == CallKind.DELEGATECALL:
            caller, current_target = parent_message.caller, parent.target
            value, should_transfer_value = parent_message.value, False
            is_static = parent.is_static
        else:
            caller, current_target = parent.target, target
            value, should_transfer_value = U256(0), True
            is_static = True

        # An unfunded value transfer never starts the child, so no stipend
        # is handed out.
        depth = parent_message.depth + Uint(1)
        if (
            should_transfer_value
            and value != U256(0)
            and depth <= self.config.depth_limit
        ):
            balance = get_account(self.state, caller).balance
            if balance < value:
                return CallResult(
                    outcome=Errored(
                        InsufficientFunds(
                            f"balance of 0x{caller.hex()} is {balance}, "
                            f"cannot send {value}"
                        )
                    ),
                    gas_allocated=allocated,
                    gas_left=allocated,
                )

        child_message = Message(
            block_env=parent_message.block_env,
            tx_env=parent_message.tx_env,
            caller=caller,
            target=current_target,
            current_target=current_target,
            gas=allocated + request.stipend,
            value=value,
            data=request.data,
            code_address=target,
            code=get_code(self.state, target),
            depth=depth,
            should_transfer_value=should_transfer_value,
            is_static=is_static,
        )
        child = self.process_message(child_message, parent)
        assert child.outcome is not None
        return CallResult(
            outcome=child.outcome,
            gas_allocated=allocated,
            gas_left=child.gas_left,
            output=child.output,
        )

    def _dispatch_create(
        self, request: CallRequest, parent: Frame, allocated: Uint
    ) -> CallResult:
        state = self.state
        sender = parent.target
        depth = parent.depth + Uint(1)

        if depth > self.config.depth_limit:
            return CallResult(
                outcome=Errored(
                    StackDepthLimitError(
                        f"call depth {depth} exceeds "
                        f"{self.config.call_depth_limit}"
                    )
                ),
                gas_allocated=allocated,
                gas_left=Uint(0),
            )

        sender_account = get_account(state, sender)
        if sender_account.balance < request.value:
            return CallResult(
                outcome=Errored(
                    InsufficientFunds(
                        f"balance of 0x{sender.hex()} is "
                        f"{sender_account.balance}, cannot endow "
                        f"{request.value}"
                    )
                ),
                gas_allocated=allocated,
                gas_left=allocated,
            )
        if sender_account.nonce >= MAX_NONCE:
            return CallResult(
                outcome=Errored(
                    InsufficientFunds(
                        f"nonce of 0x{sender.hex()} is exhausted"
                    )
                ),
                gas_allocated=allocated,
                gas_left=allocated,
            )

        if request.kind == CallKind.CREATE:
            address = compute_contract_address(sender, sender_account.nonce)
        else:
            salt = request.salt or Bytes32(b"\x00" * 32)
            address = compute_create2_contract_address(
                sender, salt, keccak256(request.data)
            )

        increment_nonce(state, sender)

        if account_has_code_or_nonce(state, address) or account_has_storage(
            state, address
        ):
            return CallResult(
                outcome=Errored(
                    AddressCollision(
                        f"contract already exists at 0x{address.hex()}"
                    )
                ),
                gas_allocated=allocated,
                gas_left=Uint(0),
            )

        child_message = Message(
            block_env=parent.message.block_env,
            tx_env=parent.message.tx_env,
            caller=sender,
            target=Bytes0(),
            current_target=address,
            gas=allocated,
            value=request.value,
            data=b"",
            code_address=None,
            code=request.data,
            depth=depth,
            should_transfer_value=True,
            is_static=False,
        )
        child = self.process_create_message(child_message, parent)
        assert child.outcome is not None
        return CallResult(
            outcome=child.outcome,
            gas_allocated=allocated,
            gas_left=child.gas_left,
            output=child.output,
            created_address=address if child.succeeded else None,
        )
