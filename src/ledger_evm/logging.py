"""
Logging helpers for the execution layer.

Wraps the standard library `logging` module with an extra `VERBOSE` level
used for per-frame tracing, which is too chatty for `DEBUG`.
"""

import logging
from typing import Any, Optional, Union, cast

VERBOSE_LEVEL = 15
logging.addLevelName(VERBOSE_LEVEL, "VERBOSE")

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class EvmLogger(logging.Logger):
    """
    Logger with a `verbose` method.
    """

    def verbose(self, msg: object, *args: Any, **kwargs: Any) -> None:
        """
        Log `msg` at the `VERBOSE` level.
        """
        if self.isEnabledFor(VERBOSE_LEVEL):
            self._log(VERBOSE_LEVEL, msg, args, **kwargs)


def get_logger(name: str) -> EvmLogger:
    """
    Get a logger with the `verbose` method available.
    """
    previous = logging.getLoggerClass()
    logging.setLoggerClass(EvmLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous)
    return cast(EvmLogger, logger)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: Optional[str] = None,
) -> None:
    """
    Attach a stream handler to the package logger.

    Calling this more than once replaces the previous handler rather than
    stacking another one.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    package_logger = logging.getLogger("ledger_evm")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_ledger_evm_handler", False):
            package_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    setattr(handler, "_ledger_evm_handler", True)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
