"""
Elliptic Curves
^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Recovery of secp256k1 public keys from signatures.
"""

import coincurve
from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256

from .hash import Hash32

SECP256K1N = U256(
    0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
)


def secp256k1_recover(r: U256, s: U256, v: U256, msg_hash: Hash32) -> Bytes:
    """
    Recovers the public key from a given signature.

    Parameters
    ----------
    r :
        The `r` component of the signature.
    s :
        The `s` component of the signature.
    v :
        The recovery id, `0` or `1`.
    msg_hash :
        Hash of the message being recovered.

    Returns
    -------
    public_key : `Bytes`
        Recovered public key, without the leading `0x04` prefix.

    """
    r_bytes = r.to_be_bytes32()
    s_bytes = s.to_be_bytes32()

    signature = bytearray([0] * 65)
    signature[32 - len(r_bytes) : 32] = r_bytes
    signature[64 - len(s_bytes) : 64] = s_bytes
    signature[64] = v

    public_key = coincurve.PublicKey.from_signature_and_message(
        bytes(signature), msg_hash, hasher=None
    )
    public_key = public_key.format(compressed=False)[1:]
    return public_key
