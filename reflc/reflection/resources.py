"""Per-resource reflection: binding coordinates, platform indices and type."""

from __future__ import annotations
import logging
from typing import Optional

from reflc.ir.module import UNASSIGNED_RESOURCE_INDEX, Resource, ShaderModule
from reflc.ir.types import BaseType, Decoration
from reflc.reflection.document import ResourceBinding, ShaderTypeInfo

logger = logging.getLogger(__name__)

_SHADER_TYPE_TAGS = {
    BaseType.VOID: "ShaderType::kVoid",
    BaseType.BOOLEAN: "ShaderType::kBoolean",
    BaseType.SBYTE: "ShaderType::kSignedByte",
    BaseType.UBYTE: "ShaderType::kUnsignedByte",
    BaseType.SHORT: "ShaderType::kSignedShort",
    BaseType.USHORT: "ShaderType::kUnsignedShort",
    BaseType.INT: "ShaderType::kSignedInt",
    BaseType.UINT: "ShaderType::kUnsignedInt",
    BaseType.INT64: "ShaderType::kSignedInt64",
    BaseType.UINT64: "ShaderType::kUnsignedInt64",
    BaseType.ATOMIC_COUNTER: "ShaderType::kAtomicCounter",
    BaseType.HALF: "ShaderType::kHalfFloat",
    BaseType.FLOAT: "ShaderType::kFloat",
    BaseType.DOUBLE: "ShaderType::kDouble",
    BaseType.STRUCT: "ShaderType::kStruct",
    BaseType.IMAGE: "ShaderType::kImage",
    BaseType.SAMPLED_IMAGE: "ShaderType::kSampledImage",
    BaseType.SAMPLER: "ShaderType::kSampler",
}


def shader_type_tag(basetype: BaseType) -> str:
    return _SHADER_TYPE_TAGS.get(basetype, "ShaderType::kUnknown")


def reflect_type(module: ShaderModule, type_id: int) -> Optional[ShaderTypeInfo]:
    t = module.resolve_type(type_id)
    if t is None:
        return None
    return ShaderTypeInfo(
        type_name=shader_type_tag(t.basetype),
        bit_width=t.width,
        vec_size=t.vecsize,
        columns=t.columns,
    )


def _platform_indices(module: ShaderModule, resource_id: int) -> tuple[int, int, int, int]:
    indices = tuple(module.automatic_resource_indices(resource_id))[:4]
    return indices + (UNASSIGNED_RESOURCE_INDEX,) * (4 - len(indices))


def reflect_resource(module: ShaderModule, resource: Resource) -> Optional[ResourceBinding]:
    type_info = reflect_type(module, resource.type_id)
    if type_info is None:
        logger.error("Could not resolve the type of resource '%s'", resource.name)
        return None
    return ResourceBinding(
        name=resource.name,
        descriptor_set=module.decoration(resource.id, Decoration.DESCRIPTOR_SET),
        binding=module.decoration(resource.id, Decoration.BINDING),
        location=module.decoration(resource.id, Decoration.LOCATION),
        index=module.decoration(resource.id, Decoration.INDEX),
        msl_res=_platform_indices(module, resource.id),
        type=type_info,
    )


def reflect_resources(
    module: ShaderModule,
    resources: list[Resource],
) -> Optional[list[ResourceBinding]]:
    """Reflect a resource list; None if any single resource fails."""
    result = []
    for res in resources:
        reflected = reflect_resource(module, res)
        if reflected is None:
            return None
        result.append(reflected)
    return result
