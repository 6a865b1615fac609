"""Host representations for shader types.

Maps primitive shader types onto the host's C++ types (`Scalar`, `Point`,
`Vector3`, `Vector4`, `Matrix`, fixed-width integers) and classifies struct
members by which host representation they take. Host sizes come from the
equivalent numpy dtypes so layouts match what gets packed on the host.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from reflc.ir.types import BaseType, TypeDescriptor

_FLOAT32 = np.dtype(np.float32)
_FLOAT32_BITS = _FLOAT32.itemsize * 8

_PADDING_RE = re.compile(r"^Padding<(\d+)>$")


@dataclass(frozen=True)
class KnownType:
    name: str
    dtype: np.dtype

    @property
    def byte_size(self) -> int:
        return self.dtype.itemsize


@dataclass(frozen=True)
class HostComposite:
    """A tightly packed float composite with a dedicated host type."""
    type_name: str
    dtype: np.dtype

    @property
    def byte_size(self) -> int:
        return self.dtype.itemsize


@dataclass(frozen=True)
class KnownScalar:
    known: KnownType
    padding: int  # trailing bytes when the declared width exceeds the host type


@dataclass(frozen=True)
class Opaque:
    byte_size: int


MemberClass = Union[HostComposite, KnownScalar, Opaque]

MATRIX = HostComposite("Matrix", np.dtype((np.float32, (4, 4))))
POINT = HostComposite("Point", np.dtype((np.float32, (2,))))
VECTOR3 = HostComposite("Vector3", np.dtype((np.float32, (3,))))
VECTOR4 = HostComposite("Vector4", np.dtype((np.float32, (4,))))

_KNOWN_SCALARS: dict[BaseType, KnownType] = {
    BaseType.BOOLEAN: KnownType("bool", np.dtype(np.bool_)),
    BaseType.FLOAT: KnownType("Scalar", _FLOAT32),
    BaseType.UINT: KnownType("uint32_t", np.dtype(np.uint32)),
    BaseType.INT: KnownType("int32_t", np.dtype(np.int32)),
}

# Host type name -> dtype, for building structured dtypes from layouts
HOST_DTYPES: dict[str, np.dtype] = {
    c.type_name: c.dtype for c in (MATRIX, POINT, VECTOR3, VECTOR4)
}
HOST_DTYPES.update({k.name: k.dtype for k in _KNOWN_SCALARS.values()})


def read_known_scalar_type(basetype: BaseType) -> Optional[KnownType]:
    return _KNOWN_SCALARS.get(basetype)


def padding_type_name(size: int) -> str:
    return f"Padding<{size}>"


def host_dtype(type_name: str) -> np.dtype:
    dtype = HOST_DTYPES.get(type_name)
    if dtype is not None:
        return dtype
    m = _PADDING_RE.match(type_name)
    if m is None:
        raise ValueError(f"No host representation for type '{type_name}'")
    return np.dtype(f"V{m.group(1)}")


def is_float32_vector(t: TypeDescriptor, size: int) -> bool:
    return (t.basetype is BaseType.FLOAT and t.width == _FLOAT32_BITS
            and t.columns == 1 and t.vecsize == size)


def classify_member(t: TypeDescriptor) -> MemberClass:
    """Pick the host representation of a struct member, first match wins."""
    if (t.basetype is BaseType.FLOAT and t.width == _FLOAT32_BITS
            and t.columns == 4 and t.vecsize == 4 and not t.array):
        return MATRIX
    if is_float32_vector(t, 2):
        return POINT
    if is_float32_vector(t, 3):
        return VECTOR3
    if is_float32_vector(t, 4):
        return VECTOR4

    known = read_known_scalar_type(t.basetype)
    if known is not None and t.columns == 1 and t.vecsize == 1:
        return KnownScalar(known, max(t.width // 8 - known.byte_size, 0))

    # Anything else (non-square matrices, doubles, nested structs, ...) is
    # carried as opaque bytes.
    return Opaque(t.natural_size)
