"""Shared fixtures for the execution layer tests."""

import pytest
from ethereum_types.numeric import U256

from ledger_evm import EvmConfig, Ledger, Runner
from ledger_evm.state import State

from helpers import COINBASE, SENDER, SENDER_BALANCE


@pytest.fixture
def ledger() -> Ledger:
    ledger = Ledger()
    ledger.mint(ledger.account_id(SENDER), U256(SENDER_BALANCE))
    return ledger


@pytest.fixture
def config() -> EvmConfig:
    return EvmConfig()


@pytest.fixture
def state(ledger: Ledger) -> State:
    return State(ledger)


@pytest.fixture
def runner(config: EvmConfig, ledger: Ledger) -> Runner:
    runner = Runner(config=config, ledger=ledger)
    runner.block_env.coinbase = COINBASE
    return runner
