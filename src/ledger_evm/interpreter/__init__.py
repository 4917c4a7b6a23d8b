"""
Reference Bytecode Interpreter
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

A compact EVM stack machine that plugs into the executor through the
`Interpreter` protocol. It covers the arithmetic, bitwise, stack, memory,
environment, storage, logging and system instructions needed to deploy and
call ordinary contracts; any other opcode halts the frame with
`InvalidOpcode`.

The interpreter owns the stack, memory and program counter of a frame.
Everything else (accounts, storage, logs, sub-calls) goes through the
`Host` it is given.
"""

from dataclasses import dataclass
from typing import List, Optional, Set

from ethereum_types.bytes import Bytes
from ethereum_types.numeric import U256, Uint

from ..exceptions import EvmException
from ..vm import Message
from ..vm.host import Host

__all__ = ("Evm", "BytecodeInterpreter")


@dataclass
class Evm:
    """The internal state of the virtual machine."""

    pc: Uint
    stack: List[U256]
    memory: bytearray
    code: Bytes
    gas_left: Uint
    valid_jump_destinations: Set[Uint]
    running: bool
    message: Message
    host: Host
    output: Bytes
    return_data: Bytes
    refund_counter: int
    error: Optional[EvmException]


from .machine import BytecodeInterpreter  # noqa: E402
