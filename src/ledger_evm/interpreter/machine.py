"""
Ethereum Virtual Machine (EVM) Interpreter
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

A straightforward interpreter that executes EVM code.
"""

from ethereum_types.numeric import Uint, ulen

from ..logging import get_logger
from ..vm import Frame, InterpreterResult
from ..vm.exceptions import ExceptionalHalt, InvalidOpcode, Revert
from ..vm.host import Host
from . import Evm
from .instructions import Ops, op_implementation
from .runtime import get_valid_jump_destinations

logger = get_logger(__name__)


class BytecodeInterpreter:
    """
    Runs EVM bytecode one instruction at a time.
    """

    def execute(self, frame: Frame, host: Host) -> InterpreterResult:
        """
        Executes bytecode present in the `frame`.

        Parameters
        ----------
        frame :
            The frame to run. Its gas limit is the budget of the code.
        host :
            Capabilities for everything outside the stack and memory.

        Returns
        -------
        result : `InterpreterResult`
            Gas left, output and the `Revert` or `ExceptionalHalt` that
            stopped the code, if any.

        """
        message = frame.message
        code = message.code
        evm = Evm(
            pc=Uint(0),
            stack=[],
            memory=bytearray(),
            code=code,
            gas_left=frame.gas_limit,
            valid_jump_destinations=get_valid_jump_destinations(code),
            running=True,
            message=message,
            host=host,
            output=b"",
            return_data=b"",
            refund_counter=0,
            error=None,
        )
        try:
            while evm.running and evm.pc < ulen(evm.code):
                try:
                    op = Ops(evm.code[evm.pc])
                except ValueError as e:
                    raise InvalidOpcode(evm.code[evm.pc]) from e

                op_implementation[op](evm)

        except ExceptionalHalt as error:
            logger.debug(
                "halt at pc=%s depth=%s: %s",
                evm.pc,
                message.depth,
                type(error).__name__,
            )
            evm.gas_left = Uint(0)
            evm.output = b""
            evm.error = error
        except Revert as error:
            evm.error = error

        return InterpreterResult(
            gas_left=evm.gas_left,
            output=evm.output,
            error=evm.error,
            refund_counter=evm.refund_counter,
        )
