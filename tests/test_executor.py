"""Test the call-frame executor against a scripted interpreter."""

from typing import Callable, Dict, List, Optional

import pytest
from ethereum_types.bytes import Bytes, Bytes0, Bytes32
from ethereum_types.numeric import U256, Uint

from ledger_evm import EvmConfig
from ledger_evm.exceptions import (
    FatalInterpreterError,
    InsufficientFunds,
    StateInvariantError,
)
from ledger_evm.fork_types import Address
from ledger_evm.ledger import Ledger
from ledger_evm.precompiles import IDENTITY_ADDRESS, Precompile
from ledger_evm.state import (
    State,
    checkpoint_depth,
    get_account,
    get_code,
    get_storage,
    set_code,
)
from ledger_evm.utils.address import compute_contract_address
from ledger_evm.vm import (
    BlockEnvironment,
    Errored,
    Frame,
    InterpreterResult,
    Message,
    Reverted,
    Succeeded,
    TransactionEnvironment,
)
from ledger_evm.vm.exceptions import (
    AddressCollision,
    InvalidContractPrefix,
    InvalidParameter,
    Revert,
    StackDepthLimitError,
    WriteInStaticContext,
)
from ledger_evm.vm.executor import Executor
from ledger_evm.vm.host import CallKind, CallRequest, CallResult, Host

from helpers import RECIPIENT, SENDER

Script = Callable[[Frame, Host], InterpreterResult]

CONTRACT = Address(b"\xaa" * 20)
OTHER = Address(b"\xbb" * 20)
KEY = Bytes32(b"\x00" * 32)
GAS = Uint(1_000_000)


class ScriptedInterpreter:
    """Runs the Python function registered for each piece of code."""

    def __init__(self, scripts: Dict[Bytes, Script]) -> None:
        self.scripts = scripts

    def execute(self, frame: Frame, host: Host) -> InterpreterResult:
        return self.scripts[frame.message.code](frame, host)


def make_executor(
    state: State, scripts: Dict[Bytes, Script], **overrides: int
) -> Executor:
    return Executor(
        EvmConfig(**overrides), state, ScriptedInterpreter(scripts)
    )


def make_message(
    state: State,
    target: Address,
    gas: Uint = GAS,
    value: int = 0,
    data: Bytes = b"",
) -> Message:
    return Message(
        block_env=BlockEnvironment(),
        tx_env=TransactionEnvironment(
            origin=SENDER, gas_price=U256(1), gas=gas
        ),
        caller=SENDER,
        target=target,
        current_target=target,
        gas=gas,
        value=U256(value),
        data=data,
        code_address=target,
        code=get_code(state, target),
        depth=Uint(0),
        should_transfer_value=True,
        is_static=False,
    )


def call_request(
    frame: Frame,
    target: Address,
    kind: CallKind = CallKind.CALL,
    value: int = 0,
    data: Bytes = b"",
    gas: Optional[Uint] = None,
    stipend: int = 0,
) -> CallRequest:
    return CallRequest(
        kind=kind,
        gas=frame.gas_limit if gas is None else gas,
        available_gas=frame.gas_limit,
        target=target,
        value=U256(value),
        data=data,
        stipend=Uint(stipend),
    )


def finish(frame: Frame, *results: CallResult) -> InterpreterResult:
    """Stop normally, paying for every sub-call in `results`."""
    gas_left = frame.gas_limit
    for result in results:
        gas_left = gas_left - result.gas_allocated + result.gas_left
    return InterpreterResult(gas_left=gas_left)


def deploy_script(state: State, address: Address, tag: bytes) -> Bytes:
    code = b"\x5b" + tag
    set_code(state, address, code)
    return code


def test_child_revert_is_atomic(state: State, ledger: Ledger) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")
    child = deploy_script(state, OTHER, b"child")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        host.set_storage(KEY, U256(1))
        host.emit_log([], b"parent")
        result = host.call(call_request(frame, OTHER))
        assert isinstance(result.outcome, Reverted)
        assert result.output == b"nope"
        return finish(frame, result)

    def child_script(frame: Frame, host: Host) -> InterpreterResult:
        host.set_storage(KEY, U256(2))
        host.emit_log([], b"child")
        return InterpreterResult(
            gas_left=frame.gas_limit - Uint(10),
            output=b"nope",
            error=Revert(),
        )

    executor = make_executor(
        state, {parent: parent_script, child: child_script}
    )
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Succeeded)
    assert output.gas_left == GAS - Uint(10)
    assert [log.data for log in output.logs] == [b"parent"]
    assert ledger.get_storage(CONTRACT, KEY) == U256(1)
    assert ledger.get_storage(OTHER, KEY) == U256(0)
    assert checkpoint_depth(state) == 0


def test_successful_child_logs_are_kept_in_order(state: State) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")
    child = deploy_script(state, OTHER, b"child")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        host.emit_log([], b"first")
        result = host.call(call_request(frame, OTHER))
        host.emit_log([], b"third")
        return finish(frame, result)

    def child_script(frame: Frame, host: Host) -> InterpreterResult:
        host.emit_log([Bytes32(b"\x01" * 32)], b"second")
        return InterpreterResult(gas_left=frame.gas_limit)

    executor = make_executor(
        state, {parent: parent_script, child: child_script}
    )
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert [log.data for log in output.logs] == [b"first", b"second", b"third"]
    assert output.logs[1].address == OTHER
    assert output.logs[1].topics == (Bytes32(b"\x01" * 32),)


def test_too_many_topics_halts_only_the_frame(state: State) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")
    child = deploy_script(state, OTHER, b"child")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        result = host.call(call_request(frame, OTHER))
        assert isinstance(result.outcome, Errored)
        assert isinstance(result.outcome.error, InvalidParameter)
        assert result.gas_left == Uint(0)
        return finish(frame, result)

    def child_script(frame: Frame, host: Host) -> InterpreterResult:
        host.emit_log([Bytes32(b"\x01" * 32)] * 5, b"noisy")
        return InterpreterResult(gas_left=frame.gas_limit)

    executor = make_executor(
        state, {parent: parent_script, child: child_script}
    )
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Succeeded)
    assert output.logs == ()


def test_depth_is_bounded(state: State) -> None:
    code = deploy_script(state, CONTRACT, b"recurse")
    depths: List[int] = []
    outcomes: List[object] = []

    def recurse(frame: Frame, host: Host) -> InterpreterResult:
        depths.append(int(frame.depth))
        result = host.call(call_request(frame, CONTRACT))
        outcomes.append(result.outcome)
        return finish(frame, result)

    executor = make_executor(state, {code: recurse}, call_depth_limit=8)
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Succeeded)
    assert depths == list(range(9))
    deepest = outcomes[0]
    assert isinstance(deepest, Errored)
    assert isinstance(deepest.error, StackDepthLimitError)
    assert all(isinstance(o, Succeeded) for o in outcomes[1:])


def test_child_gas_keeps_one_64th_back(state: State) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")
    child = deploy_script(state, OTHER, b"child")
    seen: List[Uint] = []

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        result = host.call(call_request(frame, OTHER))
        assert result.gas_allocated == GAS - GAS // Uint(64)
        return finish(frame, result)

    def child_script(frame: Frame, host: Host) -> InterpreterResult:
        seen.append(frame.gas_limit)
        return InterpreterResult(gas_left=Uint(0))

    executor = make_executor(
        state, {parent: parent_script, child: child_script}
    )
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert seen == [GAS - GAS // Uint(64)]
    assert output.gas_left == GAS // Uint(64)


def test_static_frame_cannot_write(state: State, ledger: Ledger) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")
    child = deploy_script(state, OTHER, b"child")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        result = host.call(
            call_request(frame, OTHER, kind=CallKind.STATICCALL)
        )
        assert isinstance(result.outcome, Errored)
        assert isinstance(result.outcome.error, WriteInStaticContext)
        assert result.gas_left == Uint(0)
        return finish(frame, result)

    def child_script(frame: Frame, host: Host) -> InterpreterResult:
        assert frame.is_static
        host.get_storage(KEY)
        host.set_storage(KEY, U256(1))
        raise AssertionError("unreachable")

    executor = make_executor(
        state, {parent: parent_script, child: child_script}
    )
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Succeeded)
    assert ledger.get_storage(OTHER, KEY) == U256(0)


def test_delegatecall_runs_in_caller_context(
    state: State, ledger: Ledger
) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")
    library = deploy_script(state, OTHER, b"library")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        result = host.call(
            call_request(frame, OTHER, kind=CallKind.DELEGATECALL)
        )
        return finish(frame, result)

    def library_script(frame: Frame, host: Host) -> InterpreterResult:
        assert frame.target == CONTRACT
        assert frame.caller == SENDER
        host.set_storage(KEY, U256(7))
        return InterpreterResult(gas_left=frame.gas_limit)

    executor = make_executor(
        state, {parent: parent_script, library: library_script}
    )
    executor.process_message_call(make_message(state, CONTRACT))

    assert ledger.get_storage(CONTRACT, KEY) == U256(7)
    assert ledger.get_storage(OTHER, KEY) == U256(0)


def test_value_beyond_balance_returns_gas(state: State) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        result = host.call(call_request(frame, RECIPIENT, value=1))
        assert isinstance(result.outcome, Errored)
        assert isinstance(result.outcome.error, InsufficientFunds)
        assert result.gas_left == result.gas_allocated
        return finish(frame, result)

    executor = make_executor(state, {parent: parent_script})
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Succeeded)
    assert output.gas_left == GAS


def test_unfunded_call_keeps_no_stipend(state: State) -> None:
    parent = deploy_script(state, CONTRACT, b"parent")

    def parent_script(frame: Frame, host: Host) -> InterpreterResult:
        request = call_request(
            frame, RECIPIENT, value=1, gas=Uint(0), stipend=2300
        )
        result = host.call(request)
        assert isinstance(result.outcome, Errored)
        assert isinstance(result.outcome.error, InsufficientFunds)
        assert result.gas_allocated == Uint(0)
        assert result.gas_left == Uint(0)
        return finish(frame, result)

    executor = make_executor(state, {parent: parent_script})
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Succeeded)
    assert output.gas_left == GAS
    assert get_account(state, RECIPIENT).balance == U256(0)


def test_selfdestruct_twice_is_once(state: State, ledger: Ledger) -> None:
    code = deploy_script(state, CONTRACT, b"destruct")
    ledger.mint(ledger.account_id(CONTRACT), U256(50))

    def destruct(frame: Frame, host: Host) -> InterpreterResult:
        host.selfdestruct(RECIPIENT)
        host.selfdestruct(RECIPIENT)
        return InterpreterResult(gas_left=frame.gas_limit)

    executor = make_executor(state, {code: destruct})
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert output.accounts_to_delete == {CONTRACT}
    assert get_account(state, RECIPIENT).balance == U256(50)
    assert get_account(state, CONTRACT).balance == U256(0)


def test_reverted_selfdestruct_is_forgotten(state: State) -> None:
    code = deploy_script(state, CONTRACT, b"destruct")

    def destruct(frame: Frame, host: Host) -> InterpreterResult:
        host.selfdestruct(RECIPIENT)
        return InterpreterResult(gas_left=frame.gas_limit, error=Revert())

    executor = make_executor(state, {code: destruct})
    output = executor.process_message_call(make_message(state, CONTRACT))

    assert isinstance(output.outcome, Reverted)
    assert output.accounts_to_delete == set()


def test_precompile_bypasses_interpreter(state: State) -> None:
    executor = make_executor(state, {})
    message = make_message(state, IDENTITY_ADDRESS, data=b"\x01\x02")
    output = executor.process_message_call(message)

    assert output.outcome == Succeeded(b"\x01\x02")
    assert output.gas_left == GAS - Uint(18)


def test_precompile_out_of_gas(state: State) -> None:
    executor = make_executor(state, {})
    message = make_message(state, IDENTITY_ADDRESS, gas=Uint(10))
    output = executor.process_message_call(message)

    assert isinstance(output.outcome, Errored)
    assert output.gas_left == Uint(0)


def _broken(data: Bytes) -> Bytes:
    raise ValueError("native failure")


BROKEN = Address(b"\x00" * 19 + b"\x0f")
BROKEN_PRECOMPILE = Precompile("broken", lambda data: Uint(10), _broken)


def test_precompile_crash_is_fatal(state: State) -> None:
    config = EvmConfig(precompiles={BROKEN: BROKEN_PRECOMPILE})
    executor = Executor(config, state, ScriptedInterpreter({}))

    with pytest.raises(FatalInterpreterError) as excinfo:
        executor.process_message_call(make_message(state, BROKEN))
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_interpreter_crash_is_fatal(state: State) -> None:
    code = deploy_script(state, CONTRACT, b"crash")

    def crash(frame: Frame, host: Host) -> InterpreterResult:
        raise RuntimeError("boom")

    executor = make_executor(state, {code: crash})
    with pytest.raises(FatalInterpreterError):
        executor.process_message_call(make_message(state, CONTRACT))


def test_interpreter_minting_gas_is_fatal(state: State) -> None:
    code = deploy_script(state, CONTRACT, b"mint")

    def mint(frame: Frame, host: Host) -> InterpreterResult:
        return InterpreterResult(gas_left=frame.gas_limit + Uint(1))

    executor = make_executor(state, {code: mint})
    with pytest.raises(FatalInterpreterError):
        executor.process_message_call(make_message(state, CONTRACT))


def _create_message(state: State, init: Bytes, address: Address) -> Message:
    message = make_message(state, address)
    message.target = Bytes0()
    message.code_address = None
    message.code = init
    return message


def test_create_deposits_code(state: State, ledger: Ledger) -> None:
    init = b"init"
    address = compute_contract_address(SENDER, Uint(0))

    def run_init(frame: Frame, host: Host) -> InterpreterResult:
        host.set_storage(KEY, U256(42))
        return InterpreterResult(gas_left=frame.gas_limit, output=b"\x60")

    executor = make_executor(state, {init: run_init})
    output = executor.process_message_call(
        _create_message(state, init, address)
    )

    assert output.outcome == Succeeded(b"", created_address=address)
    assert output.gas_left == GAS - Uint(200)
    assert ledger.get_code(address) == b"\x60"
    assert ledger.get_storage(address, KEY) == U256(42)
    assert get_account(state, address).nonce == Uint(1)


def test_create_rejects_ef_prefix(state: State, ledger: Ledger) -> None:
    init = b"init"
    address = compute_contract_address(SENDER, Uint(0))

    def run_init(frame: Frame, host: Host) -> InterpreterResult:
        return InterpreterResult(gas_left=frame.gas_limit, output=b"\xef")

    executor = make_executor(state, {init: run_init})
    output = executor.process_message_call(
        _create_message(state, init, address)
    )

    assert isinstance(output.outcome, Errored)
    assert isinstance(output.outcome.error, InvalidContractPrefix)
    assert ledger.get_code(address) == b""
    assert get_account(state, address).nonce == Uint(0)


def test_create_collision(state: State) -> None:
    address = compute_contract_address(SENDER, Uint(0))
    set_code(state, address, b"\x00")

    executor = make_executor(state, {})
    output = executor.process_message_call(
        _create_message(state, b"init", address)
    )

    assert isinstance(output.outcome, Errored)
    assert isinstance(output.outcome.error, AddressCollision)
    assert output.gas_left == Uint(0)


def test_nested_create_bumps_creator_nonce(
    state: State, ledger: Ledger
) -> None:
    parent = deploy_script(state, CONTRACT, b"factory")
    init = b"child-init"
    expected = compute_contract_address(CONTRACT, Uint(0))

    def factory(frame: Frame, host: Host) -> InterpreterResult:
        result = host.call(
            CallRequest(
                kind=CallKind.CREATE,
                gas=frame.gas_limit,
                available_gas=frame.gas_limit,
                data=init,
            )
        )
        assert result.created_address == expected
        return finish(frame, result)

    def run_init(frame: Frame, host: Host) -> InterpreterResult:
        assert host.basic(CONTRACT).nonce == Uint(1)
        return InterpreterResult(gas_left=frame.gas_limit, output=b"\x00")

    executor = make_executor(state, {parent: factory, init: run_init})
    executor.process_message_call(make_message(state, CONTRACT))

    assert ledger.get_code(expected) == b"\x00"
    assert get_account(state, CONTRACT).nonce == Uint(1)


def test_frame_finishes_once(state: State) -> None:
    frame = Frame(message=make_message(state, CONTRACT), gas_limit=GAS)
    frame.finish(Succeeded(), GAS)
    with pytest.raises(StateInvariantError):
        frame.finish(Reverted(), GAS)


def test_frame_rejects_gas_above_limit(state: State) -> None:
    frame = Frame(message=make_message(state, CONTRACT), gas_limit=GAS)
    with pytest.raises(StateInvariantError):
        frame.finish(Succeeded(), GAS + Uint(1))
    assert frame.is_running
