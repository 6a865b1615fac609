"""Assemble the reflection document for a resolved shader module."""

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reflc.ir.module import ShaderModule
from reflc.ir.types import ExecutionModel
from reflc.reflection.document import EntrypointInfo, ReflectionDocument
from reflc.reflection.layout import reflect_struct_definitions
from reflc.reflection.naming import AnonymousNamer
from reflc.reflection.resources import reflect_resources
from reflc.reflection.vertex_input import reflect_per_vertex_struct_definition

logger = logging.getLogger(__name__)

# Execution model -> shader_stage string in the document
_STAGE_NAMES = {
    ExecutionModel.VERTEX: "vertex",
    ExecutionModel.FRAGMENT: "fragment",
}


class ReflectionError(Exception):
    pass


@dataclass
class ReflectorOptions:
    shader_name: str
    header_file_name: str
    template_dir: Optional[Path] = None


def execution_model_to_string(model: ExecutionModel) -> str:
    return _STAGE_NAMES.get(model, "unsupported")


def _fail(stage: str) -> ReflectionError:
    logger.error("Reflection failed: %s", stage)
    return ReflectionError(f"Could not reflect {stage}")


def generate_reflection_document(
    module: ShaderModule,
    options: ReflectorOptions,
    namer: AnonymousNamer | None = None,
) -> ReflectionDocument:
    """Reflect a module into a complete document.

    Raises ReflectionError on the first mandatory step that fails; no
    partial document is ever returned. Vertex input synthesis and single
    struct definitions are optional and are skipped when they fail.
    """
    entry_points = module.entry_points()
    if len(entry_points) != 1:
        logger.error(
            "Incorrect number of entrypoints in the shader. Found %d but expected 1.",
            len(entry_points),
        )
        raise ReflectionError(
            f"Expected exactly one entrypoint, found {len(entry_points)}"
        )
    entry_point = entry_points[0]

    entrypoint_info = EntrypointInfo(
        name=entry_point.name,
        stage=execution_model_to_string(entry_point.execution_model),
        shader_name=options.shader_name,
        header_file_name=options.header_file_name,
    )

    resources = module.resources_by_category()

    uniform_buffers = reflect_resources(module, resources.uniform_buffers)
    if uniform_buffers is None:
        raise _fail("uniform buffers")

    stage_inputs = reflect_resources(module, resources.stage_inputs)
    if stage_inputs is None:
        raise _fail("stage inputs")

    combined = reflect_resources(module, resources.sampled_images)
    images = reflect_resources(module, resources.separate_images)
    samplers = reflect_resources(module, resources.separate_samplers)
    if combined is None or images is None or samplers is None:
        raise _fail("sampled images")
    sampled_images = combined + images + samplers

    stage_outputs = reflect_resources(module, resources.stage_outputs)
    if stage_outputs is None:
        raise _fail("stage outputs")

    struct_definitions = []
    if entry_point.execution_model is ExecutionModel.VERTEX:
        per_vertex = reflect_per_vertex_struct_definition(module, resources.stage_inputs)
        if per_vertex is not None:
            struct_definitions.append(per_vertex)
    struct_definitions.extend(reflect_struct_definitions(module, namer))

    logger.info(
        "Reflected '%s' (%s): %d uniform buffers, %d inputs, %d sampled images, "
        "%d outputs, %d structs",
        entry_point.name, entrypoint_info.stage, len(uniform_buffers),
        len(stage_inputs), len(sampled_images), len(stage_outputs),
        len(struct_definitions),
    )

    return ReflectionDocument(
        entrypoint=entrypoint_info,
        uniform_buffers=tuple(uniform_buffers),
        stage_inputs=tuple(stage_inputs),
        sampled_images=tuple(sampled_images),
        stage_outputs=tuple(stage_outputs),
        struct_definitions=tuple(struct_definitions),
    )
