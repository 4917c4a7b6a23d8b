"""
Precompiled Contract Addresses
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Addresses of precompiled contracts and the `Precompile` record that binds
an address to a gas function and a native implementation.
"""

from dataclasses import dataclass
from typing import Callable

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import Uint

from ..utils.hexadecimal import hex_to_address

__all__ = (
    "Precompile",
    "ECRECOVER_ADDRESS",
    "SHA256_ADDRESS",
    "RIPEMD160_ADDRESS",
    "IDENTITY_ADDRESS",
    "MODEXP_ADDRESS",
    "ALT_BN128_ADD_ADDRESS",
    "ALT_BN128_MUL_ADDRESS",
    "ALT_BN128_PAIRING_CHECK_ADDRESS",
    "BLAKE2F_ADDRESS",
    "SHA3_FIPS256_ADDRESS",
    "ECRECOVER_PUBLIC_KEY_ADDRESS",
)

ECRECOVER_ADDRESS = hex_to_address("0x01")
SHA256_ADDRESS = hex_to_address("0x02")
RIPEMD160_ADDRESS = hex_to_address("0x03")
IDENTITY_ADDRESS = hex_to_address("0x04")
MODEXP_ADDRESS = hex_to_address("0x05")
ALT_BN128_ADD_ADDRESS = hex_to_address("0x06")
ALT_BN128_MUL_ADDRESS = hex_to_address("0x07")
ALT_BN128_PAIRING_CHECK_ADDRESS = hex_to_address("0x08")
BLAKE2F_ADDRESS = hex_to_address("0x09")
SHA3_FIPS256_ADDRESS = hex_to_address("0x400")
ECRECOVER_PUBLIC_KEY_ADDRESS = hex_to_address("0x401")


@dataclass(frozen=True)
class Precompile:
    """
    A natively implemented contract.

    `gas_cost` is evaluated on the call data before `run`; `run` either
    returns the output or raises an `ExceptionalHalt`.
    """

    name: str
    gas_cost: Callable[[Bytes], Uint]
    run: Callable[[Bytes], Bytes]
