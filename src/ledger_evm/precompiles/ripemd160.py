"""
Ethereum Virtual Machine (EVM) RIPEMD160 PRECOMPILED CONTRACT
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the `RIPEMD160` precompiled contract.
"""

from Crypto.Hash import RIPEMD160
from ethereum_types.bytes import Bytes
from ethereum_types.numeric import Uint, ulen

from ..utils.byte import left_pad_zero_bytes
from ..utils.numeric import words

GAS_RIPEMD160 = Uint(600)
GAS_RIPEMD160_WORD = Uint(120)


def ripemd160_gas(data: Bytes) -> Uint:
    """
    600 gas plus 120 per word of input.
    """
    return GAS_RIPEMD160 + GAS_RIPEMD160_WORD * words(ulen(data))


def ripemd160(data: Bytes) -> Bytes:
    """
    Writes the ripemd160 hash to output, left padded to 32 bytes.
    """
    hash_bytes = RIPEMD160.new(data).digest()
    return left_pad_zero_bytes(hash_bytes, 32)
