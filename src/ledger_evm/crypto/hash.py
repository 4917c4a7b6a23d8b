"""
Cryptographic Hash Functions
^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Cryptographic hashing functions.
"""

from Crypto.Hash import BLAKE2b, SHA3_256, keccak
from ethereum_types.bytes import Bytes, Bytes32

Hash32 = Bytes32


def keccak256(buffer: Bytes) -> Hash32:
    """
    Computes the keccak256 hash of the input `buffer`.

    Parameters
    ----------
    buffer :
        Input for the hashing function.

    Returns
    -------
    hash : `Hash32`
        Output of the hash function.

    """
    k = keccak.new(digest_bits=256)
    return Hash32(k.update(buffer).digest())


def sha3_256(buffer: Bytes) -> Hash32:
    """
    Computes the FIPS-202 SHA3-256 hash of the input `buffer`.

    This differs from `keccak256` only in the padding rule.
    """
    return Hash32(SHA3_256.new(buffer).digest())


def blake2b_256(buffer: Bytes) -> Hash32:
    """
    Computes a 256-bit BLAKE2b digest of the input `buffer`.
    """
    h = BLAKE2b.new(digest_bits=256)
    h.update(buffer)
    return Hash32(h.digest())
