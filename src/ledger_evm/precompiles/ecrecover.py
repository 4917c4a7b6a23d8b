"""
Ethereum Virtual Machine (EVM) ECRECOVER PRECOMPILED CONTRACT
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementation of the ECRECOVER precompiled contract, plus the variant
that returns the recovered public key instead of the address.
"""

from typing import Optional

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256, Uint

from ..crypto.elliptic_curve import SECP256K1N, secp256k1_recover
from ..crypto.hash import Hash32, keccak256
from ..utils.byte import left_pad_zero_bytes

GAS_ECRECOVER = Uint(3000)


def ecrecover_gas(data: Bytes) -> Uint:
    """
    Flat cost of 3000 gas.
    """
    return GAS_ECRECOVER


def _recover_public_key(data: Bytes) -> Optional[Bytes]:
    data = data[:128].ljust(128, b"\x00")
    message_hash = Hash32(data[:32])
    v = U256.from_be_bytes(data[32:64])
    r = U256.from_be_bytes(data[64:96])
    s = U256.from_be_bytes(data[96:128])

    if v != U256(27) and v != U256(28):
        return None
    if U256(0) >= r or r >= SECP256K1N:
        return None
    if U256(0) >= s or s >= SECP256K1N:
        return None

    try:
        return secp256k1_recover(r, s, v - U256(27), message_hash)
    except ValueError:
        # unable to extract public key
        return None


def ecrecover(data: Bytes) -> Bytes:
    """
    Decrypts the address using elliptic curve DSA recovery mechanism and
    returns it left padded to 32 bytes. Invalid signatures produce empty
    output rather than an error.

    Parameters
    ----------
    data :
        `hash ‖ v ‖ r ‖ s`, 32 bytes each.

    """
    public_key = _recover_public_key(data)
    if public_key is None:
        return b""

    address = keccak256(public_key)[12:32]
    padded_address = left_pad_zero_bytes(address, 32)
    return padded_address


def ecrecover_public_key(data: Bytes) -> Bytes:
    """
    Like `ecrecover` but returns the 64-byte uncompressed public key.
    """
    public_key = _recover_public_key(data)
    if public_key is None:
        return b""
    return public_key
