"""
Ethereum Virtual Machine (EVM) Call Gas
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

How much of its gas a frame may hand to a sub-call.
"""

from ethereum_types.numeric import Uint


def max_message_call_gas(gas: Uint, denominator: int = 64) -> Uint:
    """
    Calculates the maximum gas that is allowed for making a message call.

    Parameters
    ----------
    gas :
        The amount of gas provided to the message-call.
    denominator :
        The caller keeps `gas // denominator` for itself. Zero disables
        the rule.

    Returns
    -------
    max_allowed_message_call_gas: `Uint`
        The maximum gas allowed for making the message-call.

    """
    if denominator == 0:
        return gas
    return gas - (gas // Uint(denominator))


def allocate_call_gas(
    requested: Uint, available: Uint, denominator: int = 64
) -> Uint:
    """
    Gas taken from the caller for a sub-call: what it asked for, capped at
    the part of its remaining gas it may give away.
    """
    return min(requested, max_message_call_gas(available, denominator))
