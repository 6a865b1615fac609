"""Tests for the reflc command line and the file-writing pipeline."""

import json
import shutil
from pathlib import Path

import pytest
from reflc.cli import main
from reflc.compiler import reflect_source

FIXTURES = Path(__file__).parent / "fixtures"


def _copy_fixture(tmp_path: Path, name: str) -> Path:
    dest = tmp_path / name
    shutil.copy(FIXTURES / name, dest)
    return dest


class TestReflectSource:
    def test_writes_all_outputs(self, tmp_path):
        source = (FIXTURES / "textured.frag.spvasm").read_text()
        doc = reflect_source(source, "textured.frag", tmp_path)
        assert (tmp_path / "textured.frag.h").exists()
        assert (tmp_path / "textured.frag.cc").exists()
        written = json.loads((tmp_path / "textured.frag.json").read_text())
        assert written == doc.to_dict()
        assert written["shader_name"] == "textured.frag"

    def test_custom_names(self, tmp_path):
        source = (FIXTURES / "textured.frag.spvasm").read_text()
        reflect_source(source, "textured.frag", tmp_path,
                       shader_name="textured", header_file_name="textured_shader.h")
        header = (tmp_path / "textured_shader.h").read_text()
        assert "struct TexturedFragmentShader {" in header
        assert '#include "textured_shader.h"' in (tmp_path / "textured.frag.cc").read_text()

    def test_creates_output_dir(self, tmp_path):
        source = (FIXTURES / "textured.frag.spvasm").read_text()
        out = tmp_path / "gen" / "shaders"
        reflect_source(source, "s", out, emit_json=False)
        assert sorted(p.name for p in out.iterdir()) == ["s.cc", "s.h"]


class TestCli:
    def test_reflect_file(self, tmp_path, capsys):
        src = _copy_fixture(tmp_path, "textured_quad.vert.spvasm")
        main([str(src), "--shader-name", "textured_quad"])
        assert "Wrote" in capsys.readouterr().out
        header = (tmp_path / "textured_quad.vert.h").read_text()
        assert "struct TexturedQuadVertexShader {" in header
        assert (tmp_path / "textured_quad.vert.json").exists()

    def test_output_dir_and_no_json(self, tmp_path):
        src = _copy_fixture(tmp_path, "textured.frag.spvasm")
        out = tmp_path / "out"
        main([str(src), "-o", str(out), "--no-json"])
        assert sorted(p.name for p in out.iterdir()) == ["textured.frag.cc", "textured.frag.h"]

    def test_dump_document(self, tmp_path, capsys):
        src = _copy_fixture(tmp_path, "textured.frag.spvasm")
        main([str(src), "--dump-document"])
        doc = json.loads(capsys.readouterr().out)
        assert doc["shader_stage"] == "fragment"
        assert [p.name for p in tmp_path.iterdir()] == ["textured.frag.spvasm"]

    def test_template_dir(self, tmp_path):
        src = _copy_fixture(tmp_path, "textured.frag.spvasm")
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "reflection.h.j2").write_text("// {{ entrypoint }}\n")
        main([str(src), "--template-dir", str(templates)])
        assert (tmp_path / "textured.frag.h").read_text() == "// main\n"

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path / "nope.spvasm")])
        assert exc.value.code == 1
        assert "Error: file not found" in capsys.readouterr().err

    def test_reflection_failure_writes_nothing(self, tmp_path, capsys):
        src = tmp_path / "empty.spvasm"
        src.write_text("OpCapability Shader\nOpMemoryModel Logical GLSL450\n")
        with pytest.raises(SystemExit) as exc:
            main([str(src)])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err
        assert [p.name for p in tmp_path.iterdir()] == ["empty.spvasm"]

    def test_syntax_error(self, tmp_path, capsys):
        src = tmp_path / "bad.spvasm"
        src.write_text("OpCapability Shader\n%x = = OpTypeVoid\n")
        with pytest.raises(SystemExit) as exc:
            main([str(src)])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_no_input_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "reflc" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "reflc 0.1.0" in capsys.readouterr().out
