"""
Precompiled Contract Addresses
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Mapping of precompiled contracts to their implementations.
"""

from types import MappingProxyType
from typing import Mapping

from ..fork_types import Address
from . import (
    ALT_BN128_ADD_ADDRESS,
    ALT_BN128_MUL_ADDRESS,
    ALT_BN128_PAIRING_CHECK_ADDRESS,
    BLAKE2F_ADDRESS,
    ECRECOVER_ADDRESS,
    ECRECOVER_PUBLIC_KEY_ADDRESS,
    IDENTITY_ADDRESS,
    MODEXP_ADDRESS,
    RIPEMD160_ADDRESS,
    SHA3_FIPS256_ADDRESS,
    SHA256_ADDRESS,
    Precompile,
)
from .alt_bn128 import (
    alt_bn128_add,
    alt_bn128_add_gas,
    alt_bn128_mul,
    alt_bn128_mul_gas,
    alt_bn128_pairing_check,
    alt_bn128_pairing_check_gas,
)
from .blake2f import blake2f, blake2f_gas
from .ecrecover import (
    ecrecover,
    ecrecover_gas,
    ecrecover_public_key,
)
from .identity import identity, identity_gas
from .modexp import modexp, modexp_gas
from .ripemd160 import ripemd160, ripemd160_gas
from .sha256 import sha3_fips256, sha3_fips256_gas, sha256, sha256_gas

PrecompileSet = Mapping[Address, Precompile]


def istanbul_precompiles() -> PrecompileSet:
    """
    The nine Ethereum precompiles at 0x01 to 0x09, with the Istanbul gas
    schedule and the EIP-2565 modexp pricing.
    """
    return MappingProxyType(
        {
            ECRECOVER_ADDRESS: Precompile(
                "ecrecover", ecrecover_gas, ecrecover
            ),
            SHA256_ADDRESS: Precompile("sha256", sha256_gas, sha256),
            RIPEMD160_ADDRESS: Precompile(
                "ripemd160", ripemd160_gas, ripemd160
            ),
            IDENTITY_ADDRESS: Precompile("identity", identity_gas, identity),
            MODEXP_ADDRESS: Precompile("modexp", modexp_gas, modexp),
            ALT_BN128_ADD_ADDRESS: Precompile(
                "ecadd", alt_bn128_add_gas, alt_bn128_add
            ),
            ALT_BN128_MUL_ADDRESS: Precompile(
                "ecmul", alt_bn128_mul_gas, alt_bn128_mul
            ),
            ALT_BN128_PAIRING_CHECK_ADDRESS: Precompile(
                "ecpairing",
                alt_bn128_pairing_check_gas,
                alt_bn128_pairing_check,
            ),
            BLAKE2F_ADDRESS: Precompile("blake2f", blake2f_gas, blake2f),
        }
    )


def frontier_precompiles() -> PrecompileSet:
    """
    The first four Ethereum precompiles together with the ledger's own
    `sha3fips256` (0x400) and `ecrecover_public_key` (0x401).
    """
    istanbul = istanbul_precompiles()
    return MappingProxyType(
        {
            ECRECOVER_ADDRESS: istanbul[ECRECOVER_ADDRESS],
            SHA256_ADDRESS: istanbul[SHA256_ADDRESS],
            RIPEMD160_ADDRESS: istanbul[RIPEMD160_ADDRESS],
            IDENTITY_ADDRESS: istanbul[IDENTITY_ADDRESS],
            SHA3_FIPS256_ADDRESS: Precompile(
                "sha3fips256", sha3_fips256_gas, sha3_fips256
            ),
            ECRECOVER_PUBLIC_KEY_ADDRESS: Precompile(
                "ecrecover_public_key",
                ecrecover_gas,
                ecrecover_public_key,
            ),
        }
    )
