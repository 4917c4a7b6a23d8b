"""
Ethereum Virtual Machine (EVM) IDENTITY PRECOMPILED CONTRACT
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the `IDENTITY` precompiled contract.
"""

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import Uint, ulen

from ..utils.numeric import words

GAS_IDENTITY = Uint(15)
GAS_IDENTITY_WORD = Uint(3)


def identity_gas(data: Bytes) -> Uint:
    """
    15 gas plus 3 per word of input.
    """
    return GAS_IDENTITY + GAS_IDENTITY_WORD * words(ulen(data))


def identity(data: Bytes) -> Bytes:
    """
    Writes the message data to output.
    """
    return data
