"""Resolved type descriptors for SPIR-V modules."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class BaseType(Enum):
    VOID = "void"
    BOOLEAN = "boolean"
    SBYTE = "sbyte"
    UBYTE = "ubyte"
    SHORT = "short"
    USHORT = "ushort"
    INT = "int"
    UINT = "uint"
    INT64 = "int64"
    UINT64 = "uint64"
    ATOMIC_COUNTER = "atomic_counter"
    HALF = "half"
    FLOAT = "float"
    DOUBLE = "double"
    STRUCT = "struct"
    IMAGE = "image"
    SAMPLED_IMAGE = "sampled_image"
    SAMPLER = "sampler"
    UNKNOWN = "unknown"


class Decoration(Enum):
    DESCRIPTOR_SET = "DescriptorSet"
    BINDING = "Binding"
    LOCATION = "Location"
    INDEX = "Index"


class ExecutionModel(Enum):
    VERTEX = "Vertex"
    FRAGMENT = "Fragment"
    GL_COMPUTE = "GLCompute"
    UNKNOWN = "Unknown"

    @classmethod
    def from_name(cls, name: str) -> ExecutionModel:
        for model in cls:
            if model.value == name:
                return model
        return cls.UNKNOWN


# Integer width/signedness -> base type (OpTypeInt)
INT_BASE_TYPES = {
    (8, True): BaseType.SBYTE,
    (8, False): BaseType.UBYTE,
    (16, True): BaseType.SHORT,
    (16, False): BaseType.USHORT,
    (32, True): BaseType.INT,
    (32, False): BaseType.UINT,
    (64, True): BaseType.INT64,
    (64, False): BaseType.UINT64,
}

# Float width -> base type (OpTypeFloat)
FLOAT_BASE_TYPES = {
    16: BaseType.HALF,
    32: BaseType.FLOAT,
    64: BaseType.DOUBLE,
}


@dataclass(frozen=True)
class TypeDescriptor:
    """A fully resolved type.

    `self_id` is the identity of the underlying declared type; arrays of and
    pointers to a type keep the element's identity. `type_alias` is the id of
    an earlier, equivalent struct this one forwards member names to (0 for
    none).
    """
    basetype: BaseType
    width: int = 0
    vecsize: int = 1
    columns: int = 1
    self_id: int = 0
    array: tuple[int, ...] = ()
    pointer: bool = False
    member_types: tuple[int, ...] = ()
    type_alias: int = 0

    @property
    def is_struct(self) -> bool:
        return self.basetype is BaseType.STRUCT

    @property
    def natural_size(self) -> int:
        """Byte size of a single element, without any layout rules."""
        return (self.width * self.vecsize * self.columns) // 8
