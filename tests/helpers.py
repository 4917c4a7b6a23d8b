"""Bytecode builders and well-known accounts used across the tests."""

from typing import Union

from ethereum_types.numeric import U256, Uint

from ledger_evm.fork_types import Address
from ledger_evm.interpreter.instructions import Ops

SENDER = Address(bytes.fromhex("6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"))
RECIPIENT = Address(b"\x22" * 20)
COINBASE = Address(b"\xc0" * 20)
SENDER_BALANCE = 10**18

GAS_PRICE = 10
GAS_LIMIT = 1_000_000


def push(value: Union[int, bytes]) -> bytes:
    """Smallest `PUSHn` (never `PUSH0`) for `value`."""
    if isinstance(value, bytes):
        data = value
    else:
        data = U256(value).to_be_bytes() or b"\x00"
    return bytes([Ops.PUSH1.value + len(data) - 1]) + data


def op(*opcodes: Ops) -> bytes:
    return bytes(opcode.value for opcode in opcodes)


def return_word(code: bytes) -> bytes:
    """Run `code`, then return the word it left on the stack."""
    return (
        code
        + push(0)
        + op(Ops.MSTORE)
        + push(32)
        + push(0)
        + op(Ops.RETURN)
    )


def deploy(runtime: bytes, prologue: bytes = b"") -> bytes:
    """
    Init code running `prologue` then returning `runtime` as the code of
    the new contract.
    """
    # Every push below is a PUSH1, so the copier is twelve bytes long.
    assert len(runtime) < 256 and len(prologue) + 12 < 256
    offset = len(prologue) + 12
    copier = (
        push(len(runtime))
        + push(offset)
        + push(0)
        + op(Ops.CODECOPY)
        + push(len(runtime))
        + push(0)
        + op(Ops.RETURN)
    )
    return prologue + copier + runtime


def store(slot: int, value: int) -> bytes:
    return push(value) + push(slot) + op(Ops.SSTORE)


def call(
    to: Address,
    gas: int = 100_000,
    value: int = 0,
    opcode: Ops = Ops.CALL,
) -> bytes:
    """A call with no input and no output buffer; pushes the success flag."""
    args = push(0) + push(0) + push(0) + push(0)
    if opcode in (Ops.CALL, Ops.CALLCODE):
        args += push(value)
    return args + push(to) + push(gas) + op(opcode)


def revert() -> bytes:
    return push(0) + push(0) + op(Ops.REVERT)


def to_int(data: bytes) -> int:
    return int(Uint.from_be_bytes(data))
