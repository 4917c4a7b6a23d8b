"""Test the logging helpers."""

import logging

import pytest

from ledger_evm.logging import (
    VERBOSE_LEVEL,
    EvmLogger,
    configure_logging,
    get_logger,
)

from helpers import GAS_PRICE, RECIPIENT, SENDER


def test_get_logger_has_verbose() -> None:
    logger = get_logger("ledger_evm.tests")
    assert isinstance(logger, EvmLogger)
    assert not isinstance(logging.getLogger("elsewhere.tests"), EvmLogger)


def test_configure_logging_replaces_handler() -> None:
    package_logger = logging.getLogger("ledger_evm")
    before = list(package_logger.handlers)
    configure_logging("debug")
    configure_logging(logging.INFO)
    added = [h for h in package_logger.handlers if h not in before]
    assert len(added) == 1
    assert package_logger.level == logging.INFO
    package_logger.removeHandler(added[0])
    package_logger.setLevel(logging.NOTSET)


def test_frames_logged_at_verbose(
    runner, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(VERBOSE_LEVEL, logger="ledger_evm"):
        runner.call(SENDER, RECIPIENT, b"", 0, 21000, GAS_PRICE)

    levels = {record.levelname for record in caplog.records}
    assert "VERBOSE" in levels
    assert "INFO" in levels
