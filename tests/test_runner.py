"""Test transaction dispatch, fee settlement and surfaced events."""

import pytest
from ethereum_types.bytes import Bytes32
from ethereum_types.numeric import U256, Uint

from ledger_evm import EvmConfig, Ledger, Runner
from ledger_evm.crypto.hash import keccak256
from ledger_evm.events import (
    BalanceDeposit,
    BalanceWithdraw,
    Created,
    CreatedFailed,
    Executed,
    ExecutedFailed,
)
from ledger_evm.exceptions import (
    BadOrigin,
    BalanceLow,
    FatalInterpreterError,
    GasLimitTooHigh,
    GasLimitTooLow,
    GasPriceTooLow,
    InvalidNonce,
    InvalidTransaction,
    OutOfFund,
)
from ledger_evm.fees import BurnFees
from ledger_evm.fork_types import AccountId, Address
from ledger_evm.interpreter.instructions import Ops
from ledger_evm.precompiles import Precompile
from ledger_evm.state import checkpoint_depth
from ledger_evm.utils.address import (
    compute_contract_address,
    compute_create2_contract_address,
)
from ledger_evm.vm import Errored, Frame, InterpreterResult, Succeeded
from ledger_evm.vm.exceptions import AddressCollision
from ledger_evm.vm.host import Host

from helpers import (
    COINBASE,
    GAS_LIMIT,
    GAS_PRICE,
    RECIPIENT,
    SENDER,
    SENDER_BALANCE,
    call,
    deploy,
    op,
    push,
    return_word,
    revert,
    store,
    to_int,
)

CONTRACT = Address(b"\xcc" * 20)
OTHER = Address(b"\xdd" * 20)
SLOT_0 = Bytes32(b"\x00" * 32)
SALT = Bytes32(b"\x00" * 31 + b"\x07")


def balance_of(ledger: Ledger, address: Address) -> U256:
    return ledger.get_balance(ledger.account_id(address))


def nonce_of(ledger: Ledger, address: Address) -> Uint:
    return ledger.get_nonce(ledger.account_id(address))


def assert_conserved(ledger: Ledger) -> None:
    assert ledger.total_balance() == ledger.total_issuance


def test_value_transfer(runner: Runner, ledger: Ledger) -> None:
    info = runner.call(SENDER, RECIPIENT, b"", 500, 21000, GAS_PRICE)

    assert isinstance(info.outcome, Succeeded)
    assert info.gas_used == Uint(21000)
    assert info.fee == U256(21000 * GAS_PRICE)
    assert balance_of(ledger, RECIPIENT) == U256(500)
    assert balance_of(ledger, COINBASE) == U256(21000 * GAS_PRICE)
    assert balance_of(ledger, SENDER) == U256(
        SENDER_BALANCE - 500 - 21000 * GAS_PRICE
    )
    assert nonce_of(ledger, SENDER) == Uint(1)
    assert runner.events == [Executed(RECIPIENT, info.outcome)]
    assert_conserved(ledger)
    assert ledger.total_balance() == U256(SENDER_BALANCE)


def test_deploy_and_read_slot(runner: Runner, ledger: Ledger) -> None:
    runtime = return_word(push(0) + op(Ops.SLOAD))
    init = deploy(runtime, prologue=store(0, 42))
    expected = compute_contract_address(SENDER, Uint(0))

    info = runner.create(SENDER, init, 0, GAS_LIMIT, GAS_PRICE)

    assert info.succeeded
    assert info.created_address == expected
    assert info.output == b""
    assert ledger.get_code(expected) == runtime
    assert ledger.get_storage(expected, SLOT_0) == U256(42)
    assert nonce_of(ledger, expected) == Uint(1)
    assert nonce_of(ledger, SENDER) == Uint(1)
    assert runner.events[-2:] == [
        Created(expected),
        Executed(expected, info.outcome),
    ]

    info = runner.call(SENDER, expected, b"", 0, GAS_LIMIT, GAS_PRICE)
    assert to_int(info.output) == 42
    assert nonce_of(ledger, SENDER) == Uint(2)
    assert_conserved(ledger)


def test_create2_address_and_collision(
    runner: Runner, ledger: Ledger
) -> None:
    init = deploy(op(Ops.STOP))
    expected = compute_create2_contract_address(
        SENDER, SALT, keccak256(init)
    )

    first = runner.create2(SENDER, init, SALT, 0, GAS_LIMIT, GAS_PRICE)
    assert first.created_address == expected

    second = runner.create2(SENDER, init, SALT, 0, GAS_LIMIT, GAS_PRICE)
    assert isinstance(second.outcome, Errored)
    assert isinstance(second.outcome.error, AddressCollision)
    assert second.created_address is None
    assert second.gas_used == Uint(GAS_LIMIT)
    assert runner.events[-2:] == [
        CreatedFailed(expected),
        ExecutedFailed(expected, second.outcome),
    ]
    assert nonce_of(ledger, SENDER) == Uint(2)
    assert_conserved(ledger)


def test_failed_create_leaves_no_code(runner: Runner, ledger: Ledger) -> None:
    init = store(0, 1) + revert()
    expected = compute_contract_address(SENDER, Uint(0))

    info = runner.create(SENDER, init, 1000, GAS_LIMIT, GAS_PRICE)

    assert not info.succeeded
    assert info.created_address is None
    assert ledger.get_code(expected) == b""
    assert not ledger.has_storage(expected)
    assert balance_of(ledger, expected) == U256(0)
    assert nonce_of(ledger, SENDER) == Uint(1)
    assert runner.events[-2:] == [
        CreatedFailed(expected),
        ExecutedFailed(expected, info.outcome),
    ]


@pytest.mark.parametrize(
    "overrides,error",
    [
        pytest.param({"gas_limit": 20999}, GasLimitTooLow, id="intrinsic"),
        pytest.param(
            {"gas_limit": 30_000_001}, GasLimitTooHigh, id="block_limit"
        ),
        pytest.param({"nonce": 3}, InvalidNonce, id="nonce"),
        pytest.param({"value": SENDER_BALANCE}, OutOfFund, id="funds"),
    ],
)
def test_rejected_transaction_changes_nothing(
    runner: Runner, ledger: Ledger, overrides: dict, error: type
) -> None:
    arguments = {
        "source": SENDER,
        "target": RECIPIENT,
        "input": b"",
        "value": 0,
        "gas_limit": 21000,
        "gas_price": GAS_PRICE,
    }
    arguments.update(overrides)

    with pytest.raises(error) as excinfo:
        runner.call(**arguments)

    assert isinstance(excinfo.value, InvalidTransaction)
    assert balance_of(ledger, SENDER) == U256(SENDER_BALANCE)
    assert nonce_of(ledger, SENDER) == Uint(0)
    assert not ledger.account_exists(ledger.account_id(RECIPIENT))
    assert runner.events == []


def test_gas_price_floor(ledger: Ledger) -> None:
    runner = Runner(config=EvmConfig(min_gas_price=5), ledger=ledger)
    with pytest.raises(GasPriceTooLow):
        runner.call(SENDER, RECIPIENT, b"", 0, 21000, 4)
    runner.call(SENDER, RECIPIENT, b"", 0, 21000, 5)


def test_matching_nonce_is_accepted(runner: Runner, ledger: Ledger) -> None:
    runner.call(SENDER, RECIPIENT, b"", 0, 21000, GAS_PRICE, nonce=0)
    runner.call(SENDER, RECIPIENT, b"", 0, 21000, GAS_PRICE, nonce=1)
    assert nonce_of(ledger, SENDER) == Uint(2)


def test_reverted_call_still_pays(runner: Runner, ledger: Ledger) -> None:
    ledger.set_code(CONTRACT, store(0, 1) + revert())

    info = runner.call(SENDER, CONTRACT, b"", 300, GAS_LIMIT, GAS_PRICE)

    assert not info.succeeded
    assert not ledger.has_storage(CONTRACT)
    assert balance_of(ledger, CONTRACT) == U256(0)
    assert balance_of(ledger, SENDER) == U256(
        SENDER_BALANCE - int(info.gas_used) * GAS_PRICE
    )
    assert nonce_of(ledger, SENDER) == Uint(1)
    assert runner.events == [ExecutedFailed(CONTRACT, info.outcome)]
    assert_conserved(ledger)


def test_inner_call_undone_by_outer_revert(
    runner: Runner, ledger: Ledger
) -> None:
    ledger.set_code(OTHER, store(0, 1))
    ledger.set_code(CONTRACT, call(OTHER) + revert())

    runner.call(SENDER, CONTRACT, b"", 0, GAS_LIMIT, GAS_PRICE)
    assert not ledger.has_storage(OTHER)

    ledger.set_code(CONTRACT, call(OTHER))
    runner.call(SENDER, CONTRACT, b"", 0, GAS_LIMIT, GAS_PRICE)
    assert ledger.get_storage(OTHER, SLOT_0) == U256(1)


def test_call_stipend_lets_callee_log(
    runner: Runner, ledger: Ledger
) -> None:
    # The callee gets no gas except the stipend.
    ledger.set_code(OTHER, push(0) + push(0) + op(Ops.LOG0))
    ledger.mint(ledger.account_id(CONTRACT), U256(10))
    ledger.set_code(CONTRACT, call(OTHER, gas=0, value=10))

    info = runner.call(SENDER, CONTRACT, b"", 0, GAS_LIMIT, GAS_PRICE)

    assert info.succeeded
    assert [log.address for log in info.logs] == [OTHER]
    assert balance_of(ledger, OTHER) == U256(10)


def test_recursion_stops_at_depth_limit(ledger: Ledger) -> None:
    runner = Runner(config=EvmConfig(call_depth_limit=4), ledger=ledger)
    increment = push(1) + push(0) + op(Ops.SLOAD, Ops.ADD)
    increment += push(0) + op(Ops.SSTORE)
    recurse = push(0) * 5 + push(CONTRACT) + op(Ops.GAS, Ops.CALL)
    ledger.set_code(CONTRACT, increment + recurse)

    info = runner.call(SENDER, CONTRACT, b"", 0, GAS_LIMIT, GAS_PRICE)

    assert info.succeeded
    assert ledger.get_storage(CONTRACT, SLOT_0) == U256(5)


def test_selfdestruct_removes_contract(
    runner: Runner, ledger: Ledger
) -> None:
    ledger.set_code(CONTRACT, push(RECIPIENT) + op(Ops.SELFDESTRUCT))
    ledger.set_storage(CONTRACT, SLOT_0, U256(3))
    ledger.mint(ledger.account_id(CONTRACT), U256(100))

    info = runner.call(SENDER, CONTRACT, b"", 10, GAS_LIMIT, GAS_PRICE)

    assert info.succeeded
    assert balance_of(ledger, RECIPIENT) == U256(110)
    assert balance_of(ledger, CONTRACT) == U256(0)
    assert ledger.get_code(CONTRACT) == b""
    assert not ledger.has_storage(CONTRACT)
    assert_conserved(ledger)


def test_selfdestruct_to_self_burns(runner: Runner, ledger: Ledger) -> None:
    ledger.set_code(CONTRACT, push(CONTRACT) + op(Ops.SELFDESTRUCT))
    ledger.mint(ledger.account_id(CONTRACT), U256(100))
    issuance = ledger.total_issuance

    runner.call(SENDER, CONTRACT, b"", 0, GAS_LIMIT, GAS_PRICE)

    assert balance_of(ledger, CONTRACT) == U256(0)
    assert ledger.total_issuance == issuance - U256(100)
    assert_conserved(ledger)


def test_burned_fees(ledger: Ledger) -> None:
    runner = Runner(config=EvmConfig(fee_recipient=BurnFees()), ledger=ledger)
    info = runner.call(SENDER, RECIPIENT, b"", 0, 21000, GAS_PRICE)

    assert ledger.total_issuance == U256(SENDER_BALANCE) - info.fee
    assert_conserved(ledger)


class CrashingInterpreter:
    def execute(self, frame: Frame, host: Host) -> InterpreterResult:
        host.set_storage(SLOT_0, U256(1))
        raise RuntimeError("interpreter bug")


def test_fatal_error_aborts_and_charges_penalty(ledger: Ledger) -> None:
    runner = Runner(ledger=ledger, interpreter=CrashingInterpreter())
    runner.block_env.coinbase = COINBASE
    ledger.set_code(CONTRACT, b"\x00")

    with pytest.raises(FatalInterpreterError) as excinfo:
        runner.call(SENDER, CONTRACT, b"", 5, GAS_LIMIT, GAS_PRICE)

    assert excinfo.value.gas_used == Uint(21000)
    assert checkpoint_depth(runner.state) == 0
    assert not ledger.has_storage(CONTRACT)
    assert balance_of(ledger, CONTRACT) == U256(0)
    assert balance_of(ledger, SENDER) == U256(
        SENDER_BALANCE - 21000 * GAS_PRICE
    )
    assert balance_of(ledger, COINBASE) == U256(21000 * GAS_PRICE)
    assert nonce_of(ledger, SENDER) == Uint(1)
    event = runner.events[-1]
    assert isinstance(event, ExecutedFailed)
    assert event.outcome == Errored(excinfo.value)
    assert_conserved(ledger)


def test_fatal_penalty_from_config(ledger: Ledger) -> None:
    runner = Runner(
        config=EvmConfig(fatal_penalty_gas=50_000),
        ledger=ledger,
        interpreter=CrashingInterpreter(),
    )
    ledger.set_code(CONTRACT, b"\x00")

    with pytest.raises(FatalInterpreterError) as excinfo:
        runner.call(SENDER, CONTRACT, b"", 0, GAS_LIMIT, GAS_PRICE)
    assert excinfo.value.gas_used == Uint(50_000)


def test_fatal_create_reports_failed_creation(ledger: Ledger) -> None:
    runner = Runner(ledger=ledger, interpreter=CrashingInterpreter())
    expected = compute_contract_address(SENDER, Uint(0))

    with pytest.raises(FatalInterpreterError) as excinfo:
        runner.create(SENDER, b"\x00", 0, GAS_LIMIT, GAS_PRICE)

    assert runner.events == [
        CreatedFailed(expected),
        ExecutedFailed(expected, Errored(excinfo.value)),
    ]
    assert ledger.get_code(expected) == b""
    assert_conserved(ledger)


def _failing_precompile(data: bytes) -> bytes:
    raise ValueError("native failure")


BROKEN = Address(b"\x00" * 19 + b"\x0f")


def test_crashing_precompile_aborts_cleanly(ledger: Ledger) -> None:
    broken = Precompile("broken", lambda data: Uint(10), _failing_precompile)
    runner = Runner(
        config=EvmConfig(precompiles={BROKEN: broken}), ledger=ledger
    )
    runner.block_env.coinbase = COINBASE

    with pytest.raises(FatalInterpreterError) as excinfo:
        runner.call(SENDER, BROKEN, b"", 0, 100_000, GAS_PRICE)

    assert isinstance(excinfo.value.__cause__, ValueError)
    assert excinfo.value.gas_used == Uint(21000)
    assert checkpoint_depth(runner.state) == 0
    assert balance_of(ledger, SENDER) == U256(
        SENDER_BALANCE - 21000 * GAS_PRICE
    )
    assert balance_of(ledger, COINBASE) == U256(21000 * GAS_PRICE)
    assert_conserved(ledger)

    info = runner.call(SENDER, RECIPIENT, b"", 7, 21000, GAS_PRICE)
    assert info.succeeded
    assert balance_of(ledger, RECIPIENT) == U256(7)
    assert nonce_of(ledger, SENDER) == Uint(2)
    assert_conserved(ledger)


def _origin_for(address: Address) -> AccountId:
    return AccountId(address + b"\x01" * 12)


def test_deposit_and_withdraw(runner: Runner, ledger: Ledger) -> None:
    origin = _origin_for(SENDER)
    ledger.mint(origin, U256(1000))

    runner.deposit(origin, SENDER, 400)
    assert ledger.get_balance(origin) == U256(600)
    assert balance_of(ledger, SENDER) == U256(SENDER_BALANCE + 400)

    runner.withdraw(origin, SENDER, 100)
    assert ledger.get_balance(origin) == U256(700)
    assert balance_of(ledger, SENDER) == U256(SENDER_BALANCE + 300)

    assert runner.events == [
        BalanceDeposit(origin, SENDER, U256(400)),
        BalanceWithdraw(origin, SENDER, U256(100)),
    ]
    assert_conserved(ledger)


def test_withdraw_requires_matching_origin(runner: Runner) -> None:
    with pytest.raises(BadOrigin):
        runner.withdraw(_origin_for(RECIPIENT), SENDER, 1)


def test_withdraw_and_deposit_check_balance(runner: Runner) -> None:
    origin = _origin_for(SENDER)
    with pytest.raises(BalanceLow):
        runner.withdraw(origin, SENDER, SENDER_BALANCE + 1)
    with pytest.raises(BalanceLow):
        runner.deposit(origin, SENDER, 1)
    assert runner.events == []
