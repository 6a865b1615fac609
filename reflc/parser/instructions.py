"""Instruction and operand nodes for parsed SPIR-V assembly."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class IdRef:
    """A `%name` reference to a result id."""
    name: str

    def __str__(self):
        return f"%{self.name}"


@dataclass(frozen=True)
class StringLit:
    value: str


# Enumerants (e.g. "Vertex", "Uniform", "Block") are plain str.
Operand = Union[IdRef, StringLit, int, float, str]


@dataclass
class Instruction:
    opcode: str
    operands: list[Operand] = field(default_factory=list)
    result_id: Optional[IdRef] = None
    line: int = 0

    def id_at(self, index: int) -> IdRef:
        op = self.operands[index]
        if not isinstance(op, IdRef):
            raise ValueError(f"{self.opcode}: operand {index} is not an id: {op!r}")
        return op

    def int_at(self, index: int) -> int:
        op = self.operands[index]
        if not isinstance(op, int):
            raise ValueError(f"{self.opcode}: operand {index} is not an integer: {op!r}")
        return op

    def str_at(self, index: int) -> str:
        op = self.operands[index]
        if isinstance(op, StringLit):
            return op.value
        if isinstance(op, str):
            return op
        raise ValueError(f"{self.opcode}: operand {index} is not a string: {op!r}")
