"""
Utility Functions For Byte Strings
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Byte specific utility functions used in this application.
"""

from typing import Union

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256, Uint


def left_pad_zero_bytes(value: Bytes, size: Union[int, Uint]) -> Bytes:
    """
    Left pad zeroes to `value` if its length is less than the given `size`.

    Parameters
    ----------
    value :
        The byte string that needs to be padded.
    size :
        The number of bytes that need that need to be padded.

    Returns
    -------
    left_padded_value: `Bytes`
        left padded byte string of given `size`.

    """
    return value.rjust(int(size), b"\x00")


def right_pad_zero_bytes(value: Bytes, size: Union[int, Uint]) -> Bytes:
    """
    Right pad zeroes to `value` if its length is less than the given `size`.
    """
    return value.ljust(int(size), b"\x00")


def buffer_read(
    buffer: Bytes,
    start_position: Union[U256, Uint],
    size: Union[U256, Uint],
) -> Bytes:
    """
    Read bytes from a buffer. Padding with zeros if necessary.

    Parameters
    ----------
    buffer :
        Memory contents of the EVM.
    start_position :
        Starting pointer to the memory.
    size :
        Size of the data that needs to be read from `start_position`.

    Returns
    -------
    data_bytes :
        Data read from memory.

    """
    return right_pad_zero_bytes(
        buffer[start_position : Uint(start_position) + Uint(size)], size
    )
