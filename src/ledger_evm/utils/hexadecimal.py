"""
Utility Functions For Hexadecimal Strings
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Hexadecimal utility functions used in this application.
"""

from ethereum_types.bytes import Bytes20


def has_hex_prefix(hex_string: str) -> bool:
    """
    Check if a hex string starts with hex prefix (0x).
    """
    return hex_string.startswith("0x")


def remove_hex_prefix(hex_string: str) -> str:
    """
    Remove 0x prefix from a hex string if present.
    """
    if has_hex_prefix(hex_string):
        return hex_string[len("0x") :]
    return hex_string


def hex_to_address(hex_string: str) -> Bytes20:
    """
    Convert hex string to a 20 byte address, left padding with zeros.
    """
    return Bytes20(bytes.fromhex(remove_hex_prefix(hex_string).rjust(40, "0")))
