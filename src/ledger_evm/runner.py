"""
Transaction Dispatch
^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Entry points through which the host submits EVM transactions: `call`,
`create` and `create2`, plus `withdraw` and `deposit` for moving native
balance in and out of the accounts that back EVM addresses.

A transaction goes through the same steps whatever its kind:

1. it is validated; a rejected transaction changes nothing,
2. the fee for the whole gas limit is taken from the sender,
3. the sender's nonce is bumped,
4. the top-level frame runs,
5. refunds are applied and the fee is settled,
6. self-destructed accounts are removed and events are surfaced.

Steps 2 and 3 write straight to the ledger, so they stand whatever the
frame does.

Every dispatch ends with an `Executed` or `ExecutedFailed` event. For a
creation it is preceded by `Created` or `CreatedFailed`.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ethereum_types.bytes import Bytes, Bytes0, Bytes32
from ethereum_types.numeric import U256, Uint

from .config import EvmConfig
from .crypto.hash import keccak256
from .events import (
    BalanceDeposit,
    BalanceWithdraw,
    Created,
    CreatedFailed,
    Event,
    Executed,
    ExecutedFailed,
    LogEmitted,
)
from .exceptions import (
    BadOrigin,
    BalanceLow,
    FatalInterpreterError,
    GasLimitTooHigh,
    GasLimitTooLow,
    GasPriceTooLow,
    InvalidNonce,
    OutOfFund,
    StateInvariantError,
)
from .fees import (
    calculate_intrinsic_cost,
    compute_upfront_cost,
    correct_and_deposit_fee,
    withdraw_fee,
)
from .fork_types import AccountId, Address, Log
from .interpreter import BytecodeInterpreter
from .ledger import Ledger, truncate_account_id
from .logging import get_logger
from .state import (
    State,
    checkpoint_depth,
    clear_account,
    discard_all_checkpoints,
    get_account,
    get_code,
    increment_nonce,
    sub_balance,
)
from .utils.address import (
    compute_contract_address,
    compute_create2_contract_address,
)
from .vm import (
    BlockEnvironment,
    Errored,
    ExecutionOutcome,
    Message,
    Reverted,
    Succeeded,
    TransactionEnvironment,
)
from .vm.executor import MAX_NONCE, Executor, MessageCallOutput
from .vm.host import Interpreter

logger = get_logger(__name__)

IntLike = Union[int, Uint, U256]


@dataclass
class ExecutionInfo:
    """
    Result of a dispatched transaction.

    `gas_used` is net of refunds and is what the sender paid for; `fee` is
    `gas_used * gas_price`. `created_address` is set for a successful
    creation.
    """

    outcome: ExecutionOutcome
    gas_used: Uint
    fee: U256
    logs: Tuple[Log, ...] = field(default_factory=tuple)
    created_address: Optional[Address] = None

    @property
    def output(self) -> Bytes:
        """
        Return or revert data of the top-level frame.
        """
        if isinstance(self.outcome, (Succeeded, Reverted)):
            return self.outcome.output
        return b""

    @property
    def succeeded(self) -> bool:
        """
        Whether the top-level frame finished normally.
        """
        return isinstance(self.outcome, Succeeded)


class Runner:
    """
    Dispatches transactions against a `Ledger`.

    Parameters
    ----------
    config :
        Parameters of the execution layer; the defaults when omitted.
    ledger :
        The host ledger; an empty one when omitted.
    interpreter :
        Runs the bytecode of each frame; the reference
        `BytecodeInterpreter` when omitted.
    block_env :
        Block environment used when a dispatch does not bring its own.

    """

    def __init__(
        self,
        config: Optional[EvmConfig] = None,
        ledger: Optional[Ledger] = None,
        interpreter: Optional[Interpreter] = None,
        block_env: Optional[BlockEnvironment] = None,
    ) -> None:
        self.config = config if config is not None else EvmConfig()
        self.ledger = ledger if ledger is not None else Ledger()
        self.state = State(self.ledger)
        self.interpreter: Interpreter = (
            interpreter if interpreter is not None else BytecodeInterpreter()
        )
        self.block_env = (
            block_env if block_env is not None else BlockEnvironment()
        )
        self.events: List[Event] = []

    def call(
        self,
        source: Address,
        target: Address,
        input: Bytes,
        value: IntLike,
        gas_limit: IntLike,
        gas_price: IntLike,
        nonce: Optional[IntLike] = None,
        block_env: Optional[BlockEnvironment] = None,
    ) -> ExecutionInfo:
        """
        Call the code at `target` with `input`, sending `value`.

        Raises
        ------
        InvalidTransaction
            If the transaction is rejected before execution.
        FatalInterpreterError
            If the interpreter failed; the sender has paid the penalty.

        """
        return self._transact(
            source=source,
            target=target,
            data=input,
            value=U256(value),
            gas_limit=Uint(gas_limit),
            gas_price=U256(gas_price),
            nonce=nonce,
            block_env=block_env,
        )

    def create(
        self,
        source: Address,
        init: Bytes,
        value: IntLike,
        gas_limit: IntLike,
        gas_price: IntLike,
        nonce: Optional[IntLike] = None,
        block_env: Optional[BlockEnvironment] = None,
    ) -> ExecutionInfo:
        """
        Deploy a contract at the address derived from `source` and its
        nonce, running `init` as init code.
        """
        return self._transact(
            source=source,
            target=None,
            data=init,
            value=U256(value),
            gas_limit=Uint(gas_limit),
            gas_price=U256(gas_price),
            nonce=nonce,
            block_env=block_env,
        )

    def create2(
        self,
        source: Address,
        init: Bytes,
        salt: Bytes32,
        value: IntLike,
        gas_limit: IntLike,
        gas_price: IntLike,
        nonce: Optional[IntLike] = None,
        block_env: Optional[BlockEnvironment] = None,
    ) -> ExecutionInfo:
        """
        Deploy a contract at the address derived from `source`, `salt` and
        the hash of `init`.
        """
        return self._transact(
            source=source,
            target=None,
            data=init,
            value=U256(value),
            gas_limit=Uint(gas_limit),
            gas_price=U256(gas_price),
            nonce=nonce,
            block_env=block_env,
            salt=salt,
        )

    def withdraw(
        self, origin: AccountId, address: Address, value: IntLike
    ) -> None:
        """
        Move `value` from the account backing `address` to the native
        account `origin`.

        Raises
        ------
        BadOrigin
            If `origin` does not truncate to `address`.
        BalanceLow
            If the account backing `address` holds less than `value`.

        """
        value = U256(value)
        if truncate_account_id(origin) != address:
            raise BadOrigin(
                f"0x{origin.hex()} may not withdraw from 0x{address.hex()}"
            )
        ledger = self.ledger
        account_id = ledger.account_id(address)
        balance = ledger.get_balance(account_id)
        if balance < value:
            raise BalanceLow(
                f"balance of 0x{address.hex()} is {balance}, "
                f"cannot withdraw {value}"
            )
        ledger.set_balance(account_id, balance - value)
        ledger.set_balance(origin, ledger.get_balance(origin) + value)
        self.events.append(BalanceWithdraw(origin, address, value))
        logger.info("withdraw %s from 0x%s", value, address.hex())

    def deposit(
        self, origin: AccountId, address: Address, value: IntLike
    ) -> None:
        """
        Move `value` from the native account `origin` to the account backing
        `address`.

        Raises
        ------
        BalanceLow
            If `origin` holds less than `value`.

        """
        value = U256(value)
        ledger = self.ledger
        balance = ledger.get_balance(origin)
        if balance < value:
            raise BalanceLow(
                f"balance of 0x{origin.hex()} is {balance}, "
                f"cannot deposit {value}"
            )
        account_id = ledger.account_id(address)
        ledger.set_balance(origin, balance - value)
        ledger.set_balance(account_id, ledger.get_balance(account_id) + value)
        self.events.append(BalanceDeposit(origin, address, value))
        logger.info("deposit %s to 0x%s", value, address.hex())

    def validate_transaction(
        self,
        source: Address,
        data: Bytes,
        is_create: bool,
        value: U256,
        gas_limit: Uint,
        gas_price: U256,
        nonce: Optional[IntLike] = None,
    ) -> Uint:
        """
        Check that a transaction can be dispatched, without changing
        anything.

        Returns
        -------
        intrinsic_gas : `Uint`
            Gas charged before execution starts.

        Raises
        ------
        InvalidTransaction
            The first rule the transaction breaks.

        """
        config = self.config
        intrinsic_gas = calculate_intrinsic_cost(data, is_create)
        if gas_limit < intrinsic_gas:
            raise GasLimitTooLow(
                f"gas limit {gas_limit} is below the intrinsic cost "
                f"{intrinsic_gas}"
            )
        if gas_limit > Uint(config.block_gas_limit):
            raise GasLimitTooHigh(
                f"gas limit {gas_limit} exceeds the block gas limit "
                f"{config.block_gas_limit}"
            )
        if gas_price < U256(config.min_gas_price):
            raise GasPriceTooLow(
                f"gas price {gas_price} is below {config.min_gas_price}"
            )

        account = get_account(self.state, source)
        if nonce is not None and Uint(nonce) != account.nonce:
            raise InvalidNonce(
                f"nonce {nonce} does not match {account.nonce} "
                f"of 0x{source.hex()}"
            )
        if account.nonce >= MAX_NONCE:
            raise InvalidNonce(f"nonce of 0x{source.hex()} is exhausted")

        upfront_cost = compute_upfront_cost(gas_limit, gas_price, value)
        if account.balance < upfront_cost:
            raise OutOfFund(
                f"0x{source.hex()} holds {account.balance}, "
                f"needs {upfront_cost}"
            )
        return intrinsic_gas

    def _transact(
        self,
        source: Address,
        target: Optional[Address],
        data: Bytes,
        value: U256,
        gas_limit: Uint,
        gas_price: U256,
        nonce: Optional[IntLike],
        block_env: Optional[BlockEnvironment],
        salt: Optional[Bytes32] = None,
    ) -> ExecutionInfo:
        state = self.state
        config = self.config
        if checkpoint_depth(state) != 0:
            raise StateInvariantError("dispatch started with open checkpoints")
        if block_env is None:
            block_env = self.block_env

        is_create = target is None
        intrinsic_gas = self.validate_transaction(
            source, data, is_create, value, gas_limit, gas_price, nonce
        )

        sender_nonce = get_account(state, source).nonce
        if target is not None:
            address = target
        elif salt is None:
            address = compute_contract_address(source, sender_nonce)
        else:
            address = compute_create2_contract_address(
                source, salt, keccak256(data)
            )

        withdraw_fee(state, source, U256(int(gas_limit) * int(gas_price)))
        increment_nonce(state, source)

        tx_env = TransactionEnvironment(
            origin=source, gas_price=gas_price, gas=gas_limit
        )
        message = Message(
            block_env=block_env,
            tx_env=tx_env,
            caller=source,
            target=Bytes0() if is_create else address,
            current_target=address,
            gas=gas_limit - intrinsic_gas,
            value=value,
            data=b"" if is_create else data,
            code_address=None if is_create else address,
            code=data if is_create else get_code(state, address),
            depth=Uint(0),
            should_transfer_value=True,
            is_static=False,
        )

        executor = Executor(config, state, self.interpreter)
        try:
            output = executor.process_message_call(message)
        except FatalInterpreterError as error:
            self._abort(
                error,
                source,
                address,
                is_create,
                gas_limit,
                gas_price,
                intrinsic_gas,
                block_env,
            )
            raise
        except Exception as error:
            fatal = FatalInterpreterError(
                f"execution raised {type(error).__name__}: {error}"
            )
            self._abort(
                fatal,
                source,
                address,
                is_create,
                gas_limit,
                gas_price,
                intrinsic_gas,
                block_env,
            )
            raise fatal from error

        gas_used = self._apply_refund(gas_limit, output)
        settlement = correct_and_deposit_fee(
            state,
            source,
            gas_limit,
            gas_used,
            gas_price,
            config.fee_recipient,
            block_env,
        )

        for destroyed in sorted(output.accounts_to_delete):
            self._destroy_account(destroyed)

        outcome = output.outcome
        succeeded = isinstance(outcome, Succeeded)
        for log_entry in output.logs:
            self.events.append(LogEmitted(log_entry))
        if is_create:
            if succeeded:
                self.events.append(Created(address))
            else:
                self.events.append(CreatedFailed(address))
        if succeeded:
            self.events.append(Executed(address, outcome))
        else:
            self.events.append(ExecutedFailed(address, outcome))

        logger.info(
            "%s from 0x%s to 0x%s: %s, gas used %s",
            "create" if is_create else "call",
            source.hex(),
            address.hex(),
            type(outcome).__name__,
            gas_used,
        )

        return ExecutionInfo(
            outcome=outcome,
            gas_used=gas_used,
            fee=settlement.fee,
            logs=output.logs,
            created_address=address if is_create and succeeded else None,
        )

    def _apply_refund(
        self, gas_limit: Uint, output: MessageCallOutput
    ) -> Uint:
        gas_used = gas_limit - output.gas_left
        refund_counter = Uint(max(output.refund_counter, 0))
        refund_cap = gas_used // Uint(self.config.max_refund_quotient)
        return gas_used - min(refund_counter, refund_cap)

    def _destroy_account(self, address: Address) -> None:
        # Whatever the account received after destructing itself leaves
        # circulation with it.
        state = self.state
        balance = get_account(state, address).balance
        if balance != U256(0):
            sub_balance(state, address, balance)
            self.ledger.burn(balance)
        clear_account(state, address)

    def _abort(
        self,
        error: FatalInterpreterError,
        source: Address,
        address: Address,
        is_create: bool,
        gas_limit: Uint,
        gas_price: U256,
        intrinsic_gas: Uint,
        block_env: BlockEnvironment,
    ) -> None:
        discard_all_checkpoints(self.state)
        if self.config.fatal_penalty_gas is None:
            penalty = intrinsic_gas
        else:
            penalty = min(Uint(self.config.fatal_penalty_gas), gas_limit)
        correct_and_deposit_fee(
            self.state,
            source,
            gas_limit,
            penalty,
            gas_price,
            self.config.fee_recipient,
            block_env,
        )
        error.gas_used = penalty
        if is_create:
            self.events.append(CreatedFailed(address))
        self.events.append(ExecutedFailed(address, Errored(error)))
        logger.error(
            "dispatch from 0x%s aborted, charged %s gas: %s",
            source.hex(),
            penalty,
            error,
        )
