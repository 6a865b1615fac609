"""Resolved shader module: the query interface reflection runs against.

`ShaderModule` is the read-only surface the reflector needs. `SpirvModule`
implements it over parsed SPIR-V assembly: it interns `%ids` to integers,
resolves every declared type into a `TypeDescriptor`, sorts module-scope
variables into resource categories and allocates automatic per-platform
resource indices for the descriptor-backed ones.
"""

from __future__ import annotations
import dataclasses
import itertools
from dataclasses import dataclass, field
from typing import Iterator, Optional, Protocol

from reflc.parser.instructions import Instruction, IdRef
from reflc.parser.tree_builder import parse_spvasm
from reflc.ir.types import (
    BaseType, Decoration, ExecutionModel, TypeDescriptor,
    INT_BASE_TYPES, FLOAT_BASE_TYPES,
)

# Reported for resource index slots the platform did not assign
UNASSIGNED_RESOURCE_INDEX = 0xFFFFFFFF

# OpTypeImage "Sampled" operand: 2 means storage image (no sampler)
_IMAGE_SAMPLED_STORAGE = 2


@dataclass(frozen=True)
class EntryPoint:
    name: str
    execution_model: ExecutionModel


@dataclass(frozen=True)
class Resource:
    id: int
    type_id: int
    base_type_id: int
    name: str


@dataclass
class ShaderResources:
    uniform_buffers: list[Resource] = field(default_factory=list)
    stage_inputs: list[Resource] = field(default_factory=list)
    stage_outputs: list[Resource] = field(default_factory=list)
    sampled_images: list[Resource] = field(default_factory=list)
    separate_images: list[Resource] = field(default_factory=list)
    separate_samplers: list[Resource] = field(default_factory=list)


class ShaderModule(Protocol):
    def entry_points(self) -> list[EntryPoint]: ...

    def resources_by_category(self) -> ShaderResources: ...

    def resolve_type(self, type_id: int) -> Optional[TypeDescriptor]: ...

    def name(self, id: int) -> str: ...

    def decoration(self, resource_id: int, kind: Decoration) -> int: ...

    def automatic_resource_indices(self, resource_id: int) -> tuple[int, int, int, int]: ...

    def struct_member_alias(self, type_id: int, member_index: int) -> Optional[str]: ...

    def all_struct_type_ids(self) -> Iterator[int]: ...


class ModuleError(Exception):
    pass


class SpirvModule:
    """A SPIR-V module resolved from its assembly instructions."""

    def __init__(self, instructions: list[Instruction]):
        self._ids: dict[str, int] = {}
        self._names: dict[int, str] = {}
        self._member_names: dict[int, dict[int, str]] = {}
        self._decorations: dict[int, dict[str, tuple]] = {}
        self._member_decorations: dict[int, dict[int, dict[str, tuple]]] = {}
        self._types: dict[int, TypeDescriptor] = {}
        self._pointees: dict[int, int] = {}
        self._image_sampled: dict[int, int] = {}
        self._constants: dict[int, int] = {}
        self._variables: list[tuple[int, int, str]] = []  # (id, pointer type id, storage class)
        self._entry_points: list[EntryPoint] = []
        self._struct_cache: list[int] = []
        self._resource_indices: dict[int, tuple[int, int, int, int]] = {}

        in_function = False
        for inst in instructions:
            if inst.opcode == "OpFunction":
                in_function = True
            elif inst.opcode == "OpFunctionEnd":
                in_function = False
            elif not in_function:
                self._visit(inst)

        self._resources = self._categorize_resources()
        self._assign_resource_indices()

    @classmethod
    def from_source(cls, source: str) -> SpirvModule:
        return cls(parse_spvasm(source))

    # --- ShaderModule ---

    def entry_points(self) -> list[EntryPoint]:
        return list(self._entry_points)

    def resources_by_category(self) -> ShaderResources:
        return ShaderResources(
            uniform_buffers=list(self._resources.uniform_buffers),
            stage_inputs=list(self._resources.stage_inputs),
            stage_outputs=list(self._resources.stage_outputs),
            sampled_images=list(self._resources.sampled_images),
            separate_images=list(self._resources.separate_images),
            separate_samplers=list(self._resources.separate_samplers),
        )

    def resolve_type(self, type_id: int) -> Optional[TypeDescriptor]:
        return self._types.get(type_id)

    def name(self, id: int) -> str:
        return self._names.get(id, "")

    def decoration(self, resource_id: int, kind: Decoration) -> int:
        values = self._decorations.get(resource_id, {}).get(kind.value)
        if not values or not isinstance(values[0], int):
            return 0
        return values[0]

    def automatic_resource_indices(self, resource_id: int) -> tuple[int, int, int, int]:
        return self._resource_indices.get(resource_id, (UNASSIGNED_RESOURCE_INDEX,) * 4)

    def struct_member_alias(self, type_id: int, member_index: int) -> Optional[str]:
        name = self._member_names.get(type_id, {}).get(member_index)
        return name or None

    def all_struct_type_ids(self) -> Iterator[int]:
        for t in self._types.values():
            if t.is_struct:
                yield t.self_id

    # --- Instruction handling ---

    def _id(self, ref: IdRef) -> int:
        n = self._ids.get(ref.name)
        if n is None:
            n = len(self._ids) + 1
            self._ids[ref.name] = n
        return n

    def _result(self, inst: Instruction) -> int:
        if inst.result_id is None:
            raise ModuleError(f"line {inst.line}: {inst.opcode} has no result id")
        return self._id(inst.result_id)

    def _visit(self, inst: Instruction) -> None:
        op = inst.opcode
        if op == "OpEntryPoint":
            self._entry_points.append(EntryPoint(
                name=inst.str_at(2),
                execution_model=ExecutionModel.from_name(inst.str_at(0)),
            ))
        elif op == "OpName":
            self._names[self._id(inst.id_at(0))] = inst.str_at(1)
        elif op == "OpMemberName":
            members = self._member_names.setdefault(self._id(inst.id_at(0)), {})
            members[inst.int_at(1)] = inst.str_at(2)
        elif op == "OpDecorate":
            decos = self._decorations.setdefault(self._id(inst.id_at(0)), {})
            decos[inst.str_at(1)] = tuple(inst.operands[2:])
        elif op == "OpMemberDecorate":
            members = self._member_decorations.setdefault(self._id(inst.id_at(0)), {})
            decos = members.setdefault(inst.int_at(1), {})
            decos[inst.str_at(2)] = tuple(inst.operands[3:])
        elif op == "OpConstant":
            value = inst.operands[1]
            if isinstance(value, int):
                self._constants[self._result(inst)] = value
        elif op == "OpVariable":
            self._variables.append(
                (self._result(inst), self._id(inst.id_at(0)), inst.str_at(1))
            )
        elif op.startswith("OpType"):
            self._visit_type(inst)

    def _visit_type(self, inst: Instruction) -> None:
        op = inst.opcode
        if op == "OpTypeForwardPointer":
            return
        tid = self._result(inst)
        t: Optional[TypeDescriptor] = None

        if op == "OpTypeVoid":
            t = TypeDescriptor(BaseType.VOID, self_id=tid)
        elif op == "OpTypeBool":
            # Booleans occupy a 32-bit slot in host-visible layouts
            t = TypeDescriptor(BaseType.BOOLEAN, width=32, self_id=tid)
        elif op == "OpTypeInt":
            width = inst.int_at(0)
            signed = bool(inst.int_at(1))
            t = TypeDescriptor(
                INT_BASE_TYPES.get((width, signed), BaseType.UNKNOWN),
                width=width, self_id=tid,
            )
        elif op == "OpTypeFloat":
            width = inst.int_at(0)
            t = TypeDescriptor(
                FLOAT_BASE_TYPES.get(width, BaseType.UNKNOWN),
                width=width, self_id=tid,
            )
        elif op == "OpTypeVector":
            component = self._types.get(self._id(inst.id_at(0)))
            if component is not None:
                t = dataclasses.replace(
                    component, vecsize=inst.int_at(1), columns=1, self_id=tid,
                )
        elif op == "OpTypeMatrix":
            column = self._types.get(self._id(inst.id_at(0)))
            if column is not None:
                t = dataclasses.replace(column, columns=inst.int_at(1), self_id=tid)
        elif op == "OpTypeImage":
            t = TypeDescriptor(BaseType.IMAGE, self_id=tid)
            sampled = inst.operands[5] if len(inst.operands) > 5 else 1
            self._image_sampled[tid] = sampled if isinstance(sampled, int) else 1
        elif op == "OpTypeSampler":
            t = TypeDescriptor(BaseType.SAMPLER, self_id=tid)
        elif op == "OpTypeSampledImage":
            t = TypeDescriptor(BaseType.SAMPLED_IMAGE, self_id=tid)
        elif op in ("OpTypeArray", "OpTypeRuntimeArray"):
            element = self._types.get(self._id(inst.id_at(0)))
            if element is not None:
                length = 0
                if op == "OpTypeArray":
                    length = self._constants.get(self._id(inst.id_at(1)), 0)
                # Arrays keep the element's identity
                t = dataclasses.replace(element, array=element.array + (length,))
        elif op == "OpTypeStruct":
            members = tuple(self._id(m) for m in inst.operands if isinstance(m, IdRef))
            t = TypeDescriptor(BaseType.STRUCT, self_id=tid, member_types=members)
            t = dataclasses.replace(t, type_alias=self._find_struct_alias(t))
        elif op == "OpTypePointer":
            pointee_id = self._id(inst.id_at(1))
            self._pointees[tid] = pointee_id
            pointee = self._types.get(pointee_id)
            if pointee is not None:
                t = dataclasses.replace(pointee, pointer=True)
        elif op == "OpTypeFunction":
            return
        else:
            t = TypeDescriptor(BaseType.UNKNOWN, self_id=tid)

        if t is not None:
            self._types[tid] = t

    def _find_struct_alias(self, t: TypeDescriptor) -> int:
        name = self._names.get(t.self_id, "")
        if not name:
            return 0
        for other_id in self._struct_cache:
            if self._names.get(other_id) == name and self._equivalent(t, self._types[other_id]):
                return other_id
        self._struct_cache.append(t.self_id)
        return 0

    def _equivalent(self, a: TypeDescriptor, b: TypeDescriptor) -> bool:
        if (a.basetype, a.width, a.vecsize, a.columns, a.array) != \
                (b.basetype, b.width, b.vecsize, b.columns, b.array):
            return False
        if len(a.member_types) != len(b.member_types):
            return False
        for ma, mb in zip(a.member_types, b.member_types):
            ta, tb = self._types.get(ma), self._types.get(mb)
            if ta is None or tb is None or not self._equivalent(ta, tb):
                return False
        return True

    # --- Resources ---

    def _is_builtin(self, var_id: int, pointee_id: int) -> bool:
        if "BuiltIn" in self._decorations.get(var_id, {}):
            return True
        for decos in self._member_decorations.get(pointee_id, {}).values():
            if "BuiltIn" in decos:
                return True
        return False

    def _categorize_resources(self) -> ShaderResources:
        resources = ShaderResources()
        for var_id, ptr_id, storage in self._variables:
            pointee_id = self._pointees.get(ptr_id, ptr_id)
            pointee = self._types.get(pointee_id)
            if storage == "Uniform":
                if pointee is None or not pointee.is_struct:
                    continue
                if "Block" not in self._decorations.get(pointee_id, {}):
                    continue
                name = self.name(pointee_id) or self.name(var_id) or f"_{var_id}"
                resources.uniform_buffers.append(Resource(var_id, ptr_id, pointee_id, name))
            elif storage in ("Input", "Output"):
                if self._is_builtin(var_id, pointee_id):
                    continue
                res = Resource(var_id, ptr_id, pointee_id, self.name(var_id))
                if storage == "Input":
                    resources.stage_inputs.append(res)
                else:
                    resources.stage_outputs.append(res)
            elif storage == "UniformConstant" and pointee is not None:
                res = Resource(var_id, ptr_id, pointee_id, self.name(var_id))
                if pointee.basetype is BaseType.SAMPLED_IMAGE:
                    resources.sampled_images.append(res)
                elif pointee.basetype is BaseType.IMAGE:
                    if self._image_sampled.get(pointee_id, 1) != _IMAGE_SAMPLED_STORAGE:
                        resources.separate_images.append(res)
                elif pointee.basetype is BaseType.SAMPLER:
                    resources.separate_samplers.append(res)
        return resources

    def _assign_resource_indices(self) -> None:
        """Allocate buffer, texture and sampler slots by (set, binding) order."""
        buffers, textures, samplers = itertools.count(), itertools.count(), itertools.count()
        classes = (
            [(r, "buffer") for r in self._resources.uniform_buffers]
            + [(r, "combined") for r in self._resources.sampled_images]
            + [(r, "texture") for r in self._resources.separate_images]
            + [(r, "sampler") for r in self._resources.separate_samplers]
        )
        order = {var_id: i for i, (var_id, _, _) in enumerate(self._variables)}
        classes.sort(key=lambda item: (
            self.decoration(item[0].id, Decoration.DESCRIPTOR_SET),
            self.decoration(item[0].id, Decoration.BINDING),
            order[item[0].id],
        ))

        unassigned = UNASSIGNED_RESOURCE_INDEX
        for res, kind in classes:
            if kind == "buffer":
                indices = (next(buffers), unassigned, unassigned, unassigned)
            elif kind == "combined":
                indices = (next(textures), next(samplers), unassigned, unassigned)
            elif kind == "texture":
                indices = (next(textures), unassigned, unassigned, unassigned)
            else:
                indices = (next(samplers), unassigned, unassigned, unassigned)
            self._resource_indices[res.id] = indices


def load_module(source: str) -> SpirvModule:
    """Parse SPIR-V assembly text and resolve it into a module."""
    return SpirvModule.from_source(source)
