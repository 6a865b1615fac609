"""Top-level reflection orchestration."""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from reflc.ir.module import load_module
from reflc.reflection.assembler import ReflectorOptions, generate_reflection_document
from reflc.reflection.document import ReflectionDocument, emit_reflection_json
from reflc.codegen.renderer import Artifacts, render_artifacts

logger = logging.getLogger(__name__)


def reflect_module_source(
    source: str,
    options: ReflectorOptions,
) -> tuple[ReflectionDocument, Artifacts]:
    """Parse, reflect and render; nothing is returned unless every step succeeds."""
    module = load_module(source)
    document = generate_reflection_document(module, options)
    artifacts = render_artifacts(document, options.template_dir)
    return document, artifacts


def reflect_source(
    source: str,
    stem: str,
    output_dir: Path,
    shader_name: Optional[str] = None,
    header_file_name: Optional[str] = None,
    template_dir: Optional[Path] = None,
    emit_json: bool = True,
    dump_document: bool = False,
) -> ReflectionDocument:
    options = ReflectorOptions(
        shader_name=shader_name or stem,
        header_file_name=header_file_name or f"{stem}.h",
        template_dir=template_dir,
    )
    document, artifacts = reflect_module_source(source, options)

    if dump_document:
        print(emit_reflection_json(document), end="")
        return document

    output_dir.mkdir(parents=True, exist_ok=True)

    header_path = output_dir / options.header_file_name
    header_path.write_text(artifacts.header, encoding="utf-8")
    print(f"Wrote {header_path}")

    cc_path = output_dir / f"{stem}.cc"
    cc_path.write_text(artifacts.cc, encoding="utf-8")
    print(f"Wrote {cc_path}")

    if emit_json:
        json_path = output_dir / f"{stem}.json"
        json_path.write_text(emit_reflection_json(document), encoding="utf-8")
        print(f"Wrote {json_path}")

    return document
