"""
Ethereum Virtual Machine (EVM) Blake2 PRECOMPILED CONTRACT
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the `Blake2` precompiled contract (EIP-152).
"""

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import Uint

from ..crypto.blake2 import (
    BLAKE2B_INPUT_LENGTH,
    compress,
    get_blake2_parameters,
)
from ..vm.exceptions import InvalidParameter

GAS_BLAKE2_PER_ROUND = Uint(1)


def blake2f_gas(data: Bytes) -> Uint:
    """
    One gas per round. Malformed input costs nothing and fails in
    `blake2f`.
    """
    if len(data) != BLAKE2B_INPUT_LENGTH:
        return Uint(0)
    return GAS_BLAKE2_PER_ROUND * Uint.from_be_bytes(data[:4])


def blake2f(data: Bytes) -> Bytes:
    """
    Writes the Blake2 hash to output.

    Parameters
    ----------
    data :
        Exactly 213 bytes: rounds, state, message, offset counters and the
        final block flag.

    Raises
    ------
    InvalidParameter
        If the input length is wrong or the flag is neither 0 nor 1.

    """
    if len(data) != BLAKE2B_INPUT_LENGTH:
        raise InvalidParameter(
            f"blake2f input must be {BLAKE2B_INPUT_LENGTH} bytes"
        )
    if data[-1] not in (0, 1):
        raise InvalidParameter("blake2f final block flag must be 0 or 1")

    parameters = get_blake2_parameters(data)
    return compress(
        parameters.rounds,
        parameters.h,
        parameters.m,
        parameters.t_0,
        parameters.t_1,
        parameters.f,
    )
