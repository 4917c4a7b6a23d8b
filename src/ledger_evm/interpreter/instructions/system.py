"""
Ethereum Virtual Machine (EVM) System Instructions
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Implementations of the EVM system related instructions.

Sub-calls and creations are handed to the host as a `CallRequest`. The
executor decides how much of the frame's gas the child receives; the
instruction pays what was allocated and takes back whatever the child did
not use.
"""

from typing import Optional

from ethereum_types.bytes import Bytes, Bytes32
from ethereum_types.numeric import U256, Uint

from ...fork_types import Address
from ...utils.address import to_address_masked
from ...utils.numeric import ceil32
from ...vm.exceptions import Revert, WriteInStaticContext
from ...vm.host import CallKind, CallRequest, CallResult
from .. import Evm
from ..gas import (
    GAS_CALL,
    GAS_CALL_VALUE,
    GAS_CREATE,
    GAS_KECCAK256_WORD,
    GAS_NEW_ACCOUNT,
    GAS_SELF_DESTRUCT,
    GAS_SELF_DESTRUCT_NEW_ACCOUNT,
    GAS_ZERO,
    calculate_gas_extend_memory,
    charge_gas,
)
from ..memory import memory_read_bytes, memory_write
from ..stack import pop, push


def _settle_call_gas(evm: Evm, result: CallResult) -> None:
    evm.gas_left -= result.gas_allocated
    evm.gas_left += result.gas_left


def generic_create(
    evm: Evm,
    kind: CallKind,
    endowment: U256,
    memory_start_position: U256,
    memory_size: U256,
    salt: Optional[Bytes32] = None,
) -> None:
    """
    Core logic used by the `CREATE*` family of opcodes.
    """
    if evm.message.is_static:
        raise WriteInStaticContext

    call_data = memory_read_bytes(
        evm.memory, memory_start_position, memory_size
    )
    evm.return_data = b""

    result = evm.host.call(
        CallRequest(
            kind=kind,
            gas=evm.gas_left,
            available_gas=evm.gas_left,
            value=endowment,
            data=call_data,
            salt=salt,
        )
    )
    _settle_call_gas(evm, result)

    if result.success and result.created_address is not None:
        push(evm.stack, U256.from_be_bytes(result.created_address))
    else:
        evm.return_data = result.output
        push(evm.stack, U256(0))


def create(evm: Evm) -> None:
    """
    Creates a new account with associated code.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    endowment = pop(evm.stack)
    memory_start_position = pop(evm.stack)
    memory_size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory, [(memory_start_position, memory_size)]
    )

    charge_gas(evm, GAS_CREATE + extend_memory.cost)

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    generic_create(
        evm, CallKind.CREATE, endowment, memory_start_position, memory_size
    )

    # PROGRAM COUNTER
    evm.pc += Uint(1)


def create2(evm: Evm) -> None:
    """
    Creates a new account with associated code.

    It's similar to CREATE opcode except that the address of new account
    depends on the init_code instead of the nonce of sender.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    endowment = pop(evm.stack)
    memory_start_position = pop(evm.stack)
    memory_size = pop(evm.stack)
    salt = pop(evm.stack).to_be_bytes32()

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory, [(memory_start_position, memory_size)]
    )
    call_data_words = ceil32(Uint(memory_size)) // Uint(32)
    charge_gas(
        evm,
        GAS_CREATE
        + GAS_KECCAK256_WORD * call_data_words
        + extend_memory.cost,
    )

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    generic_create(
        evm,
        CallKind.CREATE2,
        endowment,
        memory_start_position,
        memory_size,
        salt,
    )

    # PROGRAM COUNTER
    evm.pc += Uint(1)


def return_(evm: Evm) -> None:
    """
    Halts execution returning output data.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    memory_start_position = pop(evm.stack)
    memory_size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory, [(memory_start_position, memory_size)]
    )

    charge_gas(evm, GAS_ZERO + extend_memory.cost)

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    evm.output = memory_read_bytes(
        evm.memory, memory_start_position, memory_size
    )

    evm.running = False

    # PROGRAM COUNTER
    pass


def generic_call(
    evm: Evm,
    kind: CallKind,
    gas: Uint,
    value: U256,
    to: Address,
    memory_input_start_position: U256,
    memory_input_size: U256,
    memory_output_start_position: U256,
    memory_output_size: U256,
) -> None:
    """
    Perform the core logic of the `CALL*` family of opcodes.
    """
    evm.return_data = b""

    call_data = memory_read_bytes(
        evm.memory, memory_input_start_position, memory_input_size
    )

    stipend = Uint(0)
    if value != U256(0) and kind in (CallKind.CALL, CallKind.CALLCODE):
        stipend = evm.host.config.stipend

    result = evm.host.call(
        CallRequest(
            kind=kind,
            gas=gas,
            available_gas=evm.gas_left,
            target=to,
            value=value,
            data=call_data,
            stipend=stipend,
        )
    )
    _settle_call_gas(evm, result)

    evm.return_data = result.output
    push(evm.stack, U256(1) if result.success else U256(0))

    actual_output_size = min(memory_output_size, U256(len(result.output)))
    memory_write(
        evm.memory,
        memory_output_start_position,
        result.output[:actual_output_size],
    )


def call(evm: Evm) -> None:
    """
    Message-call into an account.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    gas = Uint(pop(evm.stack))
    to = to_address_masked(pop(evm.stack))
    value = pop(evm.stack)
    memory_input_start_position = pop(evm.stack)
    memory_input_size = pop(evm.stack)
    memory_output_start_position = pop(evm.stack)
    memory_output_size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory,
        [
            (memory_input_start_position, memory_input_size),
            (memory_output_start_position, memory_output_size),
        ],
    )

    create_gas_cost = GAS_NEW_ACCOUNT
    if value == 0 or evm.host.account_exists(to):
        create_gas_cost = Uint(0)
    transfer_gas_cost = Uint(0) if value == 0 else GAS_CALL_VALUE
    charge_gas(
        evm,
        GAS_CALL + create_gas_cost + transfer_gas_cost + extend_memory.cost,
    )
    if evm.message.is_static and value != U256(0):
        raise WriteInStaticContext

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    generic_call(
        evm,
        CallKind.CALL,
        gas,
        value,
        to,
        memory_input_start_position,
        memory_input_size,
        memory_output_start_position,
        memory_output_size,
    )

    # PROGRAM COUNTER
    evm.pc += Uint(1)


def callcode(evm: Evm) -> None:
    """
    Message-call into this account with alternative account's code.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    gas = Uint(pop(evm.stack))
    code_address = to_address_masked(pop(evm.stack))
    value = pop(evm.stack)
    memory_input_start_position = pop(evm.stack)
    memory_input_size = pop(evm.stack)
    memory_output_start_position = pop(evm.stack)
    memory_output_size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory,
        [
            (memory_input_start_position, memory_input_size),
            (memory_output_start_position, memory_output_size),
        ],
    )
    transfer_gas_cost = Uint(0) if value == 0 else GAS_CALL_VALUE
    charge_gas(evm, GAS_CALL + transfer_gas_cost + extend_memory.cost)

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    generic_call(
        evm,
        CallKind.CALLCODE,
        gas,
        value,
        code_address,
        memory_input_start_position,
        memory_input_size,
        memory_output_start_position,
        memory_output_size,
    )

    # PROGRAM COUNTER
    evm.pc += Uint(1)


def delegatecall(evm: Evm) -> None:
    """
    Message-call into this account with an alternative account's code,
    keeping the current caller and value.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    gas = Uint(pop(evm.stack))
    code_address = to_address_masked(pop(evm.stack))
    memory_input_start_position = pop(evm.stack)
    memory_input_size = pop(evm.stack)
    memory_output_start_position = pop(evm.stack)
    memory_output_size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory,
        [
            (memory_input_start_position, memory_input_size),
            (memory_output_start_position, memory_output_size),
        ],
    )
    charge_gas(evm, GAS_CALL + extend_memory.cost)

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    generic_call(
        evm,
        CallKind.DELEGATECALL,
        gas,
        U256(0),
        code_address,
        memory_input_start_position,
        memory_input_size,
        memory_output_start_position,
        memory_output_size,
    )

    # PROGRAM COUNTER
    evm.pc += Uint(1)


def staticcall(evm: Evm) -> None:
    """
    Message-call into an account, forbidding any state change in the
    callee.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    gas = Uint(pop(evm.stack))
    to = to_address_masked(pop(evm.stack))
    memory_input_start_position = pop(evm.stack)
    memory_input_size = pop(evm.stack)
    memory_output_start_position = pop(evm.stack)
    memory_output_size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory,
        [
            (memory_input_start_position, memory_input_size),
            (memory_output_start_position, memory_output_size),
        ],
    )
    charge_gas(evm, GAS_CALL + extend_memory.cost)

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    generic_call(
        evm,
        CallKind.STATICCALL,
        gas,
        U256(0),
        to,
        memory_input_start_position,
        memory_input_size,
        memory_output_start_position,
        memory_output_size,
    )

    # PROGRAM COUNTER
    evm.pc += Uint(1)


def selfdestruct(evm: Evm) -> None:
    """
    Halt execution and register account for later deletion.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    if evm.message.is_static:
        raise WriteInStaticContext

    # STACK
    beneficiary = to_address_masked(pop(evm.stack))

    # GAS
    gas_cost = GAS_SELF_DESTRUCT
    host = evm.host
    if (
        not host.account_exists(beneficiary)
        and host.get_balance(evm.message.current_target) != 0
    ):
        gas_cost += GAS_SELF_DESTRUCT_NEW_ACCOUNT

    charge_gas(evm, gas_cost)

    # OPERATION
    host.selfdestruct(beneficiary)

    # HALT the execution
    evm.running = False

    # PROGRAM COUNTER
    pass


def revert(evm: Evm) -> None:
    """
    Stop execution and revert state changes, without consuming all provided gas
    and also has the ability to return a reason.

    Parameters
    ----------
    evm :
        The current EVM frame.

    """
    # STACK
    memory_start_index = pop(evm.stack)
    size = pop(evm.stack)

    # GAS
    extend_memory = calculate_gas_extend_memory(
        evm.memory, [(memory_start_index, size)]
    )

    charge_gas(evm, extend_memory.cost)

    # OPERATION
    evm.memory += b"\x00" * extend_memory.expand_by
    output = memory_read_bytes(evm.memory, memory_start_index, size)
    evm.output = Bytes(output)
    raise Revert

    # PROGRAM COUNTER
    # no-op
