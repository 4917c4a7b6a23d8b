"""
The BLAKE2b compression function ``F``, as used by the `blake2f`
precompile.
"""

import struct
from dataclasses import dataclass
from typing import List, Tuple

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import Uint

MASK_64 = 2**64 - 1

IV = (
    0x6A09E667F3BCC908,
    0xBB67AE8584CAA73B,
    0x3C6EF372FE94F82B,
    0xA54FF53A5F1D36F1,
    0x510E527FADE682D1,
    0x9B05688C2B3E6C1F,
    0x1F83D9ABFB41BD6B,
    0x5BE0CD19137E2179,
)

SIGMA = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15),
    (14, 10, 4, 8, 9, 15, 13, 6, 1, 12, 0, 2, 11, 7, 5, 3),
    (11, 8, 12, 0, 5, 2, 15, 13, 10, 14, 3, 6, 7, 1, 9, 4),
    (7, 9, 3, 1, 13, 12, 11, 14, 2, 6, 5, 10, 4, 0, 15, 8),
    (9, 0, 5, 7, 2, 4, 10, 15, 14, 1, 11, 12, 6, 8, 3, 13),
    (2, 12, 6, 10, 0, 11, 8, 3, 4, 13, 7, 5, 15, 14, 1, 9),
    (12, 5, 1, 15, 14, 13, 4, 10, 0, 7, 6, 3, 9, 2, 8, 11),
    (13, 11, 7, 14, 12, 1, 3, 9, 5, 0, 15, 4, 8, 6, 2, 10),
    (6, 15, 14, 9, 11, 3, 0, 8, 12, 2, 13, 7, 1, 4, 10, 5),
    (10, 2, 8, 4, 7, 6, 1, 5, 15, 11, 9, 14, 3, 12, 13, 0),
)

R1, R2, R3, R4 = 32, 24, 16, 63

BLAKE2B_INPUT_LENGTH = 213


@dataclass
class Blake2bParameters:
    """
    Decoded input of the `blake2f` precompile.
    """

    rounds: Uint
    h: Tuple[int, ...]
    m: Tuple[int, ...]
    t_0: int
    t_1: int
    f: bool


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (64 - n))) & MASK_64


def _mix(
    v: List[int], a: int, b: int, c: int, d: int, x: int, y: int
) -> None:
    v[a] = (v[a] + v[b] + x) & MASK_64
    v[d] = _rotr(v[d] ^ v[a], R1)
    v[c] = (v[c] + v[d]) & MASK_64
    v[b] = _rotr(v[b] ^ v[c], R2)
    v[a] = (v[a] + v[b] + y) & MASK_64
    v[d] = _rotr(v[d] ^ v[a], R3)
    v[c] = (v[c] + v[d]) & MASK_64
    v[b] = _rotr(v[b] ^ v[c], R4)


def get_blake2_parameters(data: Bytes) -> Blake2bParameters:
    """
    Split the 213 bytes of precompile input into the compression
    parameters. The caller checks the length and the final-block flag.
    """
    rounds = Uint.from_be_bytes(data[:4])
    h = struct.unpack("<8Q", data[4:68])
    m = struct.unpack("<16Q", data[68:196])
    t_0, t_1 = struct.unpack("<2Q", data[196:212])
    f = data[212] == 1
    return Blake2bParameters(rounds, h, m, t_0, t_1, f)


def compress(
    rounds: Uint,
    h: Tuple[int, ...],
    m: Tuple[int, ...],
    t_0: int,
    t_1: int,
    f: bool,
) -> Bytes:
    """
    The BLAKE2b compression function ``F`` with a caller-chosen number of
    rounds (RFC 7693, section 3.2).

    Parameters
    ----------
    rounds :
        Number of mixing rounds.
    h :
        The eight words of state.
    m :
        The sixteen words of the message block.
    t_0, t_1 :
        The 128-bit offset counter, low word first.
    f :
        Final block indicator.

    Returns
    -------
    state : `Bytes`
        The new state, little-endian encoded.

    """
    v = list(h) + list(IV)
    v[12] ^= t_0
    v[13] ^= t_1
    if f:
        v[14] ^= MASK_64

    for r in range(int(rounds)):
        s = SIGMA[r % 10]
        _mix(v, 0, 4, 8, 12, m[s[0]], m[s[1]])
        _mix(v, 1, 5, 9, 13, m[s[2]], m[s[3]])
        _mix(v, 2, 6, 10, 14, m[s[4]], m[s[5]])
        _mix(v, 3, 7, 11, 15, m[s[6]], m[s[7]])
        _mix(v, 0, 5, 10, 15, m[s[8]], m[s[9]])
        _mix(v, 1, 6, 11, 12, m[s[10]], m[s[11]])
        _mix(v, 2, 7, 8, 13, m[s[12]], m[s[13]])
        _mix(v, 3, 4, 9, 14, m[s[14]], m[s[15]])

    result = [h[i] ^ v[i] ^ v[i + 8] for i in range(8)]
    return struct.pack("<8Q", *result)
