"""
Ethereum Virtual Machine (EVM) ALT_BN128 CONTRACTS
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the ALT_BN128 precompiled contracts, priced as in
EIP-1108.
"""

from typing import Tuple

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256, Uint, ulen
from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    Z1,
    add,
    b,
    b2,
    curve_order,
    field_modulus,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    normalize,
    pairing,
)

from ..vm.exceptions import InvalidParameter

GAS_ECADD = Uint(150)
GAS_ECMUL = Uint(6000)
GAS_ECPAIRING_BASE = Uint(45000)
GAS_ECPAIRING_PER_POINT = Uint(34000)

PAIR_SIZE = 192

G1Point = Tuple[FQ, FQ, FQ]
G2Point = Tuple[FQ2, FQ2, FQ2]


def bytes_to_fq(data: Bytes) -> int:
    """
    Decode a 32-byte big-endian field element, rejecting values outside
    the field.
    """
    value = int(U256.from_be_bytes(data))
    if value >= field_modulus:
        raise InvalidParameter("field element out of range")
    return value


def bytes_to_g1(data: Bytes) -> G1Point:
    """
    Decode 64 bytes into a point of G1. `(0, 0)` is the point at infinity.
    """
    x = bytes_to_fq(data[:32])
    y = bytes_to_fq(data[32:64])
    if x == 0 and y == 0:
        return Z1
    point = (FQ(x), FQ(y), FQ(1))
    if not is_on_curve(point, b):
        raise InvalidParameter("point is not on curve")
    return point


def bytes_to_g2(data: Bytes) -> G2Point:
    """
    Decode 128 bytes into a point of G2. Each coordinate is encoded
    imaginary part first.
    """
    x_imaginary = bytes_to_fq(data[:32])
    x_real = bytes_to_fq(data[32:64])
    y_imaginary = bytes_to_fq(data[64:96])
    y_real = bytes_to_fq(data[96:128])
    if x_imaginary == x_real == y_imaginary == y_real == 0:
        return (FQ2.one(), FQ2.one(), FQ2.zero())
    point = (
        FQ2([x_real, x_imaginary]),
        FQ2([y_real, y_imaginary]),
        FQ2.one(),
    )
    if not is_on_curve(point, b2):
        raise InvalidParameter("point is not on curve")
    if not is_inf(multiply(point, curve_order)):
        raise InvalidParameter("point is not in the G2 subgroup")
    return point


def g1_to_bytes(point: G1Point) -> Bytes:
    """
    Encode a point of G1, infinity as 64 zero bytes.
    """
    if is_inf(point):
        return b"\x00" * 64
    x, y = normalize(point)
    return int(x).to_bytes(32, "big") + int(y).to_bytes(32, "big")


def alt_bn128_add_gas(data: Bytes) -> Uint:
    """
    Flat cost of 150 gas.
    """
    return GAS_ECADD


def alt_bn128_add(data: Bytes) -> Bytes:
    """
    The ALT_BN128 addition precompiled contract.
    """
    data = data[:128].ljust(128, b"\x00")
    p0 = bytes_to_g1(data[:64])
    p1 = bytes_to_g1(data[64:128])
    return g1_to_bytes(add(p0, p1))


def alt_bn128_mul_gas(data: Bytes) -> Uint:
    """
    Flat cost of 6000 gas.
    """
    return GAS_ECMUL


def alt_bn128_mul(data: Bytes) -> Bytes:
    """
    The ALT_BN128 multiplication precompiled contract.
    """
    data = data[:96].ljust(96, b"\x00")
    p0 = bytes_to_g1(data[:64])
    n = int(U256.from_be_bytes(data[64:96]))
    return g1_to_bytes(multiply(p0, n))


def alt_bn128_pairing_check_gas(data: Bytes) -> Uint:
    """
    45000 gas plus 34000 per pair of points.
    """
    pairs = ulen(data) // Uint(PAIR_SIZE)
    return GAS_ECPAIRING_BASE + GAS_ECPAIRING_PER_POINT * pairs


def alt_bn128_pairing_check(data: Bytes) -> Bytes:
    """
    The ALT_BN128 pairing check precompiled contract. Returns 1 as a
    32-byte word when the product of the pairings is one, 0 otherwise.
    """
    if len(data) % PAIR_SIZE != 0:
        raise InvalidParameter("input is not a whole number of pairs")
    result = FQ12.one()
    for i in range(len(data) // PAIR_SIZE):
        start = i * PAIR_SIZE
        p = bytes_to_g1(data[start : start + 64])
        q = bytes_to_g2(data[start + 64 : start + PAIR_SIZE])
        if is_inf(p) or is_inf(q):
            continue
        result = result * pairing(q, p, final_exponentiate=False)
    if final_exponentiate(result) == FQ12.one():
        return U256(1).to_be_bytes32()
    return U256(0).to_be_bytes32()
