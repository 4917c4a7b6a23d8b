"""
EVM execution layer for a modular ledger runtime.

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Runs externally submitted EVM transactions (calls and contract creations)
against the native balances and the flat keyed store of a host ledger.
Gas is pre-charged in the native currency and settled once the top-level
frame resolves. Every nested frame works on its own checkpoint and only the
outermost commit reaches the ledger.
"""

import sys

from .config import EvmConfig
from .ledger import HashedAddressMapping, IdentityAddressMapping, Ledger
from .runner import ExecutionInfo, Runner

__version__ = "0.1.0"

__all__ = (
    "EvmConfig",
    "ExecutionInfo",
    "HashedAddressMapping",
    "IdentityAddressMapping",
    "Ledger",
    "Runner",
)

#
#  Ensure we can reach 1024 frames of recursion
#
EVM_RECURSION_LIMIT = 1024 * 12
sys.setrecursionlimit(max(EVM_RECURSION_LIMIT, sys.getrecursionlimit()))
