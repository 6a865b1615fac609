"""Render reflection documents into C++ header and implementation sources.

Templates are Jinja2 and see the document's keyed form (see
`ReflectionDocument.to_dict`) as their context. Two helpers are available
to them, both as functions and as filters:

    camel_case("frame_info")     -> "FrameInfo"
    to_shader_stage("fragment")  -> "ShaderStage::kFragment"
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from jinja2 import (
    ChoiceLoader, Environment, FileSystemLoader, StrictUndefined, TemplateError,
)

from reflc.reflection.document import ReflectionDocument

TEMPLATES_DIR = Path(__file__).parent / "templates"
HEADER_TEMPLATE = "reflection.h.j2"
CC_TEMPLATE = "reflection.cc.j2"

_SHADER_STAGES = {
    "vertex": "ShaderStage::kVertex",
    "fragment": "ShaderStage::kFragment",
}


class TemplateRenderError(Exception):
    pass


@dataclass(frozen=True)
class Artifacts:
    header: str
    cc: str


def convert_to_camel_case(name: str) -> str:
    """Uppercase the first character and each one after an underscore."""
    out = []
    next_upper = True
    for ch in name:
        if next_upper:
            out.append(ch.upper())
            next_upper = False
        elif ch == "_":
            next_upper = True
        else:
            out.append(ch)
    return "".join(out)


def string_to_shader_stage(stage: str) -> str:
    return _SHADER_STAGES.get(stage, "ShaderStage::kUnknown")


def create_environment(template_dir: Optional[Path] = None) -> Environment:
    """Jinja2 environment; templates in `template_dir` shadow the packaged ones."""
    search = [FileSystemLoader(str(TEMPLATES_DIR))]
    if template_dir is not None:
        search.insert(0, FileSystemLoader(str(template_dir)))
    env = Environment(
        loader=ChoiceLoader(search),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
        autoescape=False,
    )
    for name, fn in (("camel_case", convert_to_camel_case),
                     ("to_shader_stage", string_to_shader_stage)):
        env.globals[name] = fn
        env.filters[name] = fn
    return env


def render_template(
    document: ReflectionDocument,
    template_name: str,
    env: Optional[Environment] = None,
) -> str:
    env = env or create_environment()
    try:
        return env.get_template(template_name).render(document.to_dict())
    except TemplateError as e:
        raise TemplateRenderError(f"Failed to render '{template_name}': {e}") from e


def render_artifacts(
    document: ReflectionDocument,
    template_dir: Optional[Path] = None,
) -> Artifacts:
    """Render both artifacts; either both succeed or TemplateRenderError is raised."""
    env = create_environment(template_dir)
    header = render_template(document, HEADER_TEMPLATE, env)
    cc = render_template(document, CC_TEMPLATE, env)
    return Artifacts(header=header, cc=cc)
