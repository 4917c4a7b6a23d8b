"""
Ethereum Virtual Machine (EVM) MODEXP PRECOMPILED CONTRACT
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the `MODEXP` precompiled contract, priced as in
EIP-2565.
"""

from typing import Tuple

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256, Uint

from ..utils.byte import buffer_read

GAS_MODEXP_MINIMUM = Uint(200)
GAS_MODEXP_DIVISOR = Uint(3)


def _lengths(data: Bytes) -> Tuple[U256, U256, U256]:
    base_length = U256.from_be_bytes(buffer_read(data, U256(0), U256(32)))
    exp_length = U256.from_be_bytes(buffer_read(data, U256(32), U256(32)))
    modulus_length = U256.from_be_bytes(buffer_read(data, U256(64), U256(32)))
    return base_length, exp_length, modulus_length


def modexp_gas(data: Bytes) -> Uint:
    """
    Gas for `MODEXP`: the multiplication complexity times the number of
    iterations, divided by 3, with a floor of 200.
    """
    base_length, exp_length, modulus_length = _lengths(data)

    exp_start = Uint(32 * 3) + Uint(base_length)
    exp_head = Uint.from_be_bytes(
        buffer_read(data, exp_start, min(Uint(32), Uint(exp_length)))
    )

    return gas_cost(base_length, modulus_length, exp_length, exp_head)


def modexp(data: Bytes) -> Bytes:
    """
    Calculates `(base**exp) % modulus` for arbitrary sized `base`, `exp` and.
    `modulus`. The return value is the same length as the modulus.
    """
    base_length, exp_length, modulus_length = _lengths(data)
    if base_length == 0 and modulus_length == 0:
        return b""

    exp_start = Uint(32 * 3) + Uint(base_length)

    base = Uint.from_be_bytes(buffer_read(data, U256(32 * 3), base_length))
    exp = Uint.from_be_bytes(buffer_read(data, exp_start, exp_length))

    modulus_start = exp_start + Uint(exp_length)
    modulus = Uint.from_be_bytes(
        buffer_read(data, modulus_start, modulus_length)
    )

    if modulus == Uint(0):
        return Bytes(b"\0") * modulus_length
    return pow(int(base), int(exp), int(modulus)).to_bytes(
        int(modulus_length), "big"
    )


def complexity(base_length: U256, modulus_length: U256) -> Uint:
    """
    Estimate the complexity of performing a modular exponentiation.

    Parameters
    ----------
    base_length :
        Length of the array representing the base integer.

    modulus_length :
        Length of the array representing the modulus integer.

    Returns
    -------
    complexity : `Uint`
        Complexity of performing the operation.

    """
    max_length = max(Uint(base_length), Uint(modulus_length))
    words = (max_length + Uint(7)) // Uint(8)
    return words * words


def iterations(exponent_length: U256, exponent_head: Uint) -> Uint:
    """
    Calculate the number of iterations required to perform a modular
    exponentiation.

    Parameters
    ----------
    exponent_length :
        Length of the array representing the exponent integer.

    exponent_head :
        First 32 bytes of the exponent (with leading zero padding if it is
        shorter than 32 bytes), as an unsigned integer.

    Returns
    -------
    iterations : `Uint`
        Number of iterations.

    """
    if exponent_length <= U256(32) and exponent_head == Uint(0):
        count = Uint(0)
    elif exponent_length <= U256(32):
        bit_length = Uint(exponent_head.bit_length())

        if bit_length > Uint(0):
            bit_length -= Uint(1)

        count = bit_length
    else:
        length_part = Uint(8) * (Uint(exponent_length) - Uint(32))
        bits_part = Uint(exponent_head.bit_length())

        if bits_part > Uint(0):
            bits_part -= Uint(1)

        count = length_part + bits_part

    return max(count, Uint(1))


def gas_cost(
    base_length: U256,
    modulus_length: U256,
    exponent_length: U256,
    exponent_head: Uint,
) -> Uint:
    """
    Calculate the gas cost of performing a modular exponentiation.

    Parameters
    ----------
    base_length :
        Length of the array representing the base integer.

    modulus_length :
        Length of the array representing the modulus integer.

    exponent_length :
        Length of the array representing the exponent integer.

    exponent_head :
        First 32 bytes of the exponent (with leading zero padding if it is
        shorter than 32 bytes), as an unsigned integer.

    Returns
    -------
    gas_cost : `Uint`
        Gas required for performing the operation.

    """
    multiplication_complexity = complexity(base_length, modulus_length)
    iteration_count = iterations(exponent_length, exponent_head)
    cost = multiplication_complexity * iteration_count
    cost //= GAS_MODEXP_DIVISOR
    return max(GAS_MODEXP_MINIMUM, cost)
