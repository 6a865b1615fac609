"""Reflection document: the typed description of one shader's interface.

Built once by the assembler and handed to the artifact renderer. The keyed
form produced by `to_dict()` is what templates see and what gets written
as the `.json` sidecar:

    {
      "entrypoint": "main",
      "shader_name": "solid_fill",
      "shader_stage": "vertex",
      "header_file_name": "solid_fill.vert.h",
      "uniform_buffers": [...],
      "stage_inputs": [...],
      "sampled_images": [...],
      "stage_outputs": [...],
      "struct_definitions": [...]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import numpy as np

from reflc.reflection.type_mapper import host_dtype


@dataclass(frozen=True)
class EntrypointInfo:
    name: str
    stage: str  # "vertex" | "fragment" | "unsupported"
    shader_name: str
    header_file_name: str


@dataclass(frozen=True)
class ShaderTypeInfo:
    type_name: str  # ShaderType::k* tag
    bit_width: int
    vec_size: int
    columns: int

    def to_dict(self) -> dict:
        return {
            "type_name": self.type_name,
            "bit_width": self.bit_width,
            "vec_size": self.vec_size,
            "columns": self.columns,
        }


@dataclass(frozen=True)
class ResourceBinding:
    name: str
    descriptor_set: int
    binding: int
    location: int
    index: int
    msl_res: tuple[int, int, int, int]
    type: ShaderTypeInfo

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "descriptor_set": self.descriptor_set,
            "binding": self.binding,
            "location": self.location,
            "index": self.index,
        }
        for i, value in enumerate(self.msl_res):
            result[f"msl_res_{i}"] = value
        result["type"] = self.type.to_dict()
        return result


@dataclass(frozen=True)
class StructMember:
    name: str
    type: str
    offset: int
    byte_length: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "offset": self.offset,
            "byte_length": self.byte_length,
        }


@dataclass(frozen=True)
class StructDefinition:
    name: str
    byte_length: int
    members: tuple[StructMember, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "byte_length": self.byte_length,
            "members": [m.to_dict() for m in self.members],
        }

    def to_numpy_dtype(self) -> np.dtype:
        """Structured dtype with the same field offsets and sizes."""
        names, formats, offsets = [], [], []
        end = 0
        for i, m in enumerate(self.members):
            end = max(end, m.offset + m.byte_length)
            if m.byte_length == 0:
                continue
            names.append(m.name or f"f{i}")
            formats.append(host_dtype(m.type))
            offsets.append(m.offset)
        return np.dtype({
            "names": names,
            "formats": formats,
            "offsets": offsets,
            "itemsize": max(end, self.byte_length),
        })


@dataclass(frozen=True)
class ReflectionDocument:
    entrypoint: EntrypointInfo
    uniform_buffers: tuple[ResourceBinding, ...]
    stage_inputs: tuple[ResourceBinding, ...]
    sampled_images: tuple[ResourceBinding, ...]
    stage_outputs: tuple[ResourceBinding, ...]
    struct_definitions: tuple[StructDefinition, ...]

    def to_dict(self) -> dict:
        return {
            "entrypoint": self.entrypoint.name,
            "shader_name": self.entrypoint.shader_name,
            "shader_stage": self.entrypoint.stage,
            "header_file_name": self.entrypoint.header_file_name,
            "uniform_buffers": [r.to_dict() for r in self.uniform_buffers],
            "stage_inputs": [r.to_dict() for r in self.stage_inputs],
            "sampled_images": [r.to_dict() for r in self.sampled_images],
            "stage_outputs": [r.to_dict() for r in self.stage_outputs],
            "struct_definitions": [s.to_dict() for s in self.struct_definitions],
        }

    def find_struct(self, name: str) -> StructDefinition | None:
        for s in self.struct_definitions:
            if s.name == name:
                return s
        return None


def emit_reflection_json(document: ReflectionDocument) -> str:
    """Serialize a reflection document to a JSON string."""
    return json.dumps(document.to_dict(), indent=2, sort_keys=False) + "\n"
