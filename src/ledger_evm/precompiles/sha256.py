"""
Ethereum Virtual Machine (EVM) SHA256 PRECOMPILED CONTRACT
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the `SHA256` precompiled contract, and of the FIPS-202
`SHA3-256` contract used by the host ledger.
"""

import hashlib

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import Uint, ulen

from ..crypto.hash import sha3_256
from ..utils.numeric import words

GAS_SHA256 = Uint(60)
GAS_SHA256_WORD = Uint(12)
GAS_SHA3_FIPS256 = Uint(60)
GAS_SHA3_FIPS256_WORD = Uint(12)


def sha256_gas(data: Bytes) -> Uint:
    """
    60 gas plus 12 per word of input.
    """
    return GAS_SHA256 + GAS_SHA256_WORD * words(ulen(data))


def sha256(data: Bytes) -> Bytes:
    """
    Writes the sha256 hash of the input data.
    """
    return hashlib.sha256(data).digest()


def sha3_fips256_gas(data: Bytes) -> Uint:
    """
    60 gas plus 12 per word of input.
    """
    return GAS_SHA3_FIPS256 + GAS_SHA3_FIPS256_WORD * words(ulen(data))


def sha3_fips256(data: Bytes) -> Bytes:
    """
    Writes the FIPS-202 SHA3-256 hash of the input data.
    """
    return sha3_256(data)
