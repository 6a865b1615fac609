"""Tightly packed host layouts for reflected structs.

Members are laid out back to back with no implicit gaps: every byte is
accounted for by a member, either a recognized host type or an explicit
`Padding<N>` block.
"""

from __future__ import annotations
import logging
from typing import Optional

from reflc.ir.module import ShaderModule
from reflc.reflection.document import StructDefinition, StructMember
from reflc.reflection.naming import AnonymousNamer, member_name_at_index
from reflc.reflection.type_mapper import (
    HostComposite, KnownScalar, Opaque, classify_member, padding_type_name,
)

logger = logging.getLogger(__name__)

# Struct names containing this marker are compiler-generated and never reflected
RESERVED_IDENTIFIER_MARKER = "_RESERVED_IDENTIFIER_"


def read_struct_members(
    module: ShaderModule,
    type_id: int,
    namer: AnonymousNamer | None = None,
) -> list[StructMember]:
    struct_type = module.resolve_type(type_id)
    if struct_type is None or not struct_type.is_struct:
        raise ValueError(f"Type {type_id} is not a struct")

    members: list[StructMember] = []
    offset = 0

    def emit(type_name: str, name: str, byte_length: int) -> None:
        nonlocal offset
        members.append(StructMember(
            name=name, type=type_name, offset=offset, byte_length=byte_length,
        ))
        offset += byte_length

    for i, member_type_id in enumerate(struct_type.member_types):
        member = module.resolve_type(member_type_id)
        if member is None:
            raise ValueError(f"Unresolved member type {member_type_id} in struct {type_id}")

        kind = classify_member(member)
        if isinstance(kind, HostComposite):
            emit(kind.type_name, member_name_at_index(module, type_id, i, namer=namer),
                 kind.byte_size)
        elif isinstance(kind, KnownScalar):
            emit(kind.known.name, member_name_at_index(module, type_id, i, namer=namer),
                 kind.known.byte_size)
            if kind.padding:
                emit(padding_type_name(kind.padding),
                     member_name_at_index(module, type_id, i, "_pad", namer=namer),
                     kind.padding)
        elif isinstance(kind, Opaque):
            emit(padding_type_name(kind.byte_size),
                 member_name_at_index(module, type_id, i, namer=namer),
                 kind.byte_size)
    return members


def reflect_struct_definition(
    module: ShaderModule,
    type_id: int,
    namer: AnonymousNamer | None = None,
) -> Optional[StructDefinition]:
    t = module.resolve_type(type_id)
    if t is None or not t.is_struct:
        return None

    name = module.name(type_id)
    if RESERVED_IDENTIFIER_MARKER in name:
        logger.debug("Skipping reserved struct '%s'", name)
        return None

    total_size = 0
    for member_type_id in t.member_types:
        member = module.resolve_type(member_type_id)
        if member is None:
            logger.debug("Skipping struct '%s': unresolved member type %d", name, member_type_id)
            return None
        total_size += member.natural_size

    members = read_struct_members(module, type_id, namer)
    return StructDefinition(name=name, byte_length=total_size, members=tuple(members))


def reflect_struct_definitions(
    module: ShaderModule,
    namer: AnonymousNamer | None = None,
) -> list[StructDefinition]:
    """Reflect every struct in the module once, in declaration order."""
    known: set[int] = set()
    result = []
    for type_id in module.all_struct_type_ids():
        # Arrays of and pointers to a struct repeat its identity
        if type_id in known:
            continue
        known.add(type_id)
        struc = reflect_struct_definition(module, type_id, namer)
        if struc is not None:
            result.append(struc)
    return result
