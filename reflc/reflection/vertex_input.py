"""Implicit per-vertex input struct for vertex shaders."""

from __future__ import annotations
import logging
from typing import Optional

from reflc.ir.module import Resource, ShaderModule
from reflc.ir.types import Decoration, TypeDescriptor
from reflc.reflection.document import StructDefinition, StructMember
from reflc.reflection.type_mapper import (
    POINT, VECTOR3, VECTOR4, is_float32_vector, padding_type_name,
)

logger = logging.getLogger(__name__)

PER_VERTEX_STRUCT_NAME = "PerVertexData"


def vertex_type_name(t: TypeDescriptor) -> str:
    if is_float32_vector(t, 2):
        return POINT.type_name
    if is_float32_vector(t, 4):
        return VECTOR4.type_name
    if is_float32_vector(t, 3):
        return VECTOR3.type_name
    return padding_type_name(t.natural_size)


def reflect_per_vertex_struct_definition(
    module: ShaderModule,
    stage_inputs: list[Resource],
) -> Optional[StructDefinition]:
    """Synthesize the vertex input struct, or None if inputs can't form one.

    Input locations must be exactly 0..n-1 with no repeats.
    """
    # Templates assume a non-zero sized struct
    if not stage_inputs:
        return None

    by_location: dict[int, Resource] = {}
    for res in stage_inputs:
        location = module.decoration(res.id, Decoration.LOCATION)
        if location in by_location:
            logger.debug("Not synthesizing %s: duplicate location %d",
                         PER_VERTEX_STRUCT_NAME, location)
            return None
        by_location[location] = res

    if set(by_location) != set(range(len(by_location))):
        logger.debug("Not synthesizing %s: locations %s are not contiguous",
                     PER_VERTEX_STRUCT_NAME, sorted(by_location))
        return None

    members = []
    offset = 0
    for location in range(len(by_location)):
        res = by_location[location]
        t = module.resolve_type(res.type_id)
        if t is None:
            return None
        member = StructMember(
            name=res.name,
            type=vertex_type_name(t),
            offset=offset,
            byte_length=t.natural_size,
        )
        members.append(member)
        offset += member.byte_length

    return StructDefinition(
        name=PER_VERTEX_STRUCT_NAME, byte_length=offset, members=tuple(members),
    )
