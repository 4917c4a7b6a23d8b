"""
Execution Layer Configuration
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. contents:: Table of Contents
    :backlinks: none
    :local:

Introduction
------------

Parameters of the execution layer. An `EvmConfig` is fixed when it is
built: every field is validated on construction and the model is frozen,
so changing a parameter means building a new configuration.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional

from ethereum_types.numeric import Uint
from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator

from .fees import BlockAuthor, FeeRecipientPolicy
from .fork_types import Address
from .precompiles import Precompile
from .precompiles.mapping import PrecompileSet, istanbul_precompiles

DEFAULT_CHAIN_ID = 42
DEFAULT_BLOCK_GAS_LIMIT = 30_000_000
STACK_DEPTH_LIMIT = 1024
MAX_CODE_SIZE = 0x6000


class EvmConfig(BaseModel):
    """
    Parameters of the execution layer.

    A `gas_retention_denominator` of zero disables the rule that keeps a
    fraction of the caller's gas back from every sub-call.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    chain_id: int = Field(default=DEFAULT_CHAIN_ID, ge=0)
    block_gas_limit: int = Field(default=DEFAULT_BLOCK_GAS_LIMIT, gt=0)
    min_gas_price: int = Field(default=0, ge=0)
    call_depth_limit: int = Field(default=STACK_DEPTH_LIMIT, ge=1)
    gas_retention_denominator: int = Field(default=64, ge=0)
    call_stipend: int = Field(default=2300, ge=0)
    max_code_size: int = Field(default=MAX_CODE_SIZE, ge=0)
    code_deposit_gas: int = Field(default=200, ge=0)
    create_increase_nonce: bool = True
    max_refund_quotient: int = Field(default=2, ge=1)
    fatal_penalty_gas: Optional[int] = Field(default=None, ge=0)
    fee_recipient: InstanceOf[FeeRecipientPolicy] = Field(
        default_factory=BlockAuthor
    )
    precompiles: InstanceOf[Mapping] = Field(
        default_factory=istanbul_precompiles
    )

    @field_validator("precompiles")
    @classmethod
    def freeze_precompiles(cls, value: Any) -> PrecompileSet:
        """
        Check the precompile table and store it as a read-only mapping.
        """
        for address, precompile in value.items():
            if not isinstance(address, bytes) or len(address) != 20:
                raise ValueError(
                    f"precompile address must be 20 bytes, got {address!r}"
                )
            if not isinstance(precompile, Precompile):
                raise ValueError(
                    f"precompile at 0x{address.hex()} is not a Precompile"
                )
        return MappingProxyType(
            {Address(address): value[address] for address in value}
        )

    @property
    def stipend(self) -> Uint:
        """
        Gas added to a value-carrying call on top of what the caller pays.
        """
        return Uint(self.call_stipend)

    @property
    def depth_limit(self) -> Uint:
        """
        Deepest call depth a frame may run at.
        """
        return Uint(self.call_depth_limit)
