"""Tests for struct layout and struct definition reflection."""

from pathlib import Path

import numpy as np
from reflc.ir.module import load_module
from reflc.reflection.layout import (
    read_struct_members, reflect_struct_definition, reflect_struct_definitions,
)
from reflc.reflection.naming import AnonymousNamer

FIXTURES = Path(__file__).parent / "fixtures"

_PREAMBLE = """
OpCapability Shader
OpMemoryModel Logical GLSL450
OpEntryPoint Fragment %main "main"
"""

_TYPES = """
%void = OpTypeVoid
%bool = OpTypeBool
%float = OpTypeFloat 32
%double = OpTypeFloat 64
%uint = OpTypeInt 32 0
%int = OpTypeInt 32 1
%v2float = OpTypeVector %float 2
%v3float = OpTypeVector %float 3
%v4float = OpTypeVector %float 4
%v3int = OpTypeVector %int 3
%mat4v4float = OpTypeMatrix %v4float 4
%mat2v4float = OpTypeMatrix %v4float 2
%uint_2 = OpConstant %uint 2
"""


def _struct(names: str, decl: str, name: str = "S"):
    """Build a module from name declarations plus a struct declaration."""
    m = load_module(_PREAMBLE + names + _TYPES + decl)
    return m, m._ids[name]


def _members(names: str, decl: str, namer=None):
    m, sid = _struct(names, decl)
    return read_struct_members(m, sid, namer or AnonymousNamer())


def _layout(members):
    return [(mem.name, mem.type, mem.offset, mem.byte_length) for mem in members]


class TestSpecialCasedMembers:
    def test_matrix_point_vectors(self):
        members = _members("""
        OpMemberName %S 0 "mvp"
        OpMemberName %S 1 "pos"
        OpMemberName %S 2 "normal"
        OpMemberName %S 3 "color"
        """, "%S = OpTypeStruct %mat4v4float %v2float %v3float %v4float\n")
        assert _layout(members) == [
            ("mvp", "Matrix", 0, 64),
            ("pos", "Point", 64, 8),
            ("normal", "Vector3", 72, 12),
            ("color", "Vector4", 84, 16),
        ]

    def test_composites_never_padded(self):
        members = _members("", "%S = OpTypeStruct %v3float %float\n")
        assert [m.type for m in members] == ["Vector3", "Scalar"]


class TestScalarMembers:
    def test_known_scalars(self):
        members = _members("""
        OpMemberName %S 0 "a"
        OpMemberName %S 1 "b"
        OpMemberName %S 2 "c"
        """, "%S = OpTypeStruct %float %uint %int\n")
        assert _layout(members) == [
            ("a", "Scalar", 0, 4),
            ("b", "uint32_t", 4, 4),
            ("c", "int32_t", 8, 4),
        ]

    def test_bool_gets_trailing_padding(self):
        members = _members("""
        OpMemberName %S 0 "enabled"
        """, "%S = OpTypeStruct %bool\n")
        pad = 4 - np.dtype(np.bool_).itemsize
        assert _layout(members) == [
            ("enabled", "bool", 0, 1),
            ("enabled_pad", f"Padding<{pad}>", 1, pad),
        ]

    def test_bool_padding_shifts_following_members(self):
        members = _members("""
        OpMemberName %S 0 "enabled"
        OpMemberName %S 1 "scale"
        """, "%S = OpTypeStruct %bool %float\n")
        assert members[-1].name == "scale"
        assert members[-1].offset == 4

    def test_anonymous_scalar_and_padding_names(self):
        members = _members("", "%S = OpTypeStruct %bool\n", namer=AnonymousNamer())
        assert [m.name for m in members] == ["unnamed_0", "unnamed_1_pad"]


class TestOpaqueMembers:
    def test_double(self):
        members = _members("", "%S = OpTypeStruct %double\n")
        assert _layout(members)[0][1:] == ("Padding<8>", 0, 8)

    def test_int_vector(self):
        members = _members("", "%S = OpTypeStruct %v3int\n")
        assert _layout(members)[0][1:] == ("Padding<12>", 0, 12)

    def test_non_square_matrix(self):
        members = _members("", "%S = OpTypeStruct %mat2v4float\n")
        assert _layout(members)[0][1:] == ("Padding<32>", 0, 32)

    def test_array_of_matrices(self):
        members = _members(
            "", "%arr = OpTypeArray %mat4v4float %uint_2\n%S = OpTypeStruct %arr\n",
        )
        assert _layout(members)[0][1:] == ("Padding<64>", 0, 64)


class TestLayoutInvariants:
    def test_members_are_contiguous(self):
        members = _members("", "%S = OpTypeStruct %bool %v2float %double %int %bool %v4float\n")
        for a, b in zip(members, members[1:]):
            assert a.offset + a.byte_length == b.offset

    def test_scalar_struct_total_matches_members(self):
        m, sid = _struct("", "%S = OpTypeStruct %bool %float %uint %int %bool\n")
        struc = reflect_struct_definition(m, sid, AnonymousNamer())
        assert struc.byte_length == sum(mem.byte_length for mem in struc.members)
        assert struc.byte_length == 20


class TestReflectStructDefinition:
    def test_name_and_total(self):
        m, sid = _struct("""
        OpName %S "Light"
        """, "%S = OpTypeStruct %v4float %float\n")
        struc = reflect_struct_definition(m, sid)
        assert struc.name == "Light"
        assert struc.byte_length == 20

    def test_total_uses_natural_sizes(self):
        m, sid = _struct("", "%arr = OpTypeArray %float %uint_2\n%S = OpTypeStruct %arr %float\n")
        struc = reflect_struct_definition(m, sid, AnonymousNamer())
        # Array length is not part of the natural size
        assert struc.byte_length == 8

    def test_not_a_struct(self):
        m, _ = _struct("", "%S = OpTypeStruct %float\n")
        assert reflect_struct_definition(m, m._ids["float"]) is None

    def test_reserved_identifier_skipped(self):
        m, sid = _struct("""
        OpName %S "_RESERVED_IDENTIFIER_FIXUP_gl_PerVertex"
        """, "%S = OpTypeStruct %v4float\n")
        assert reflect_struct_definition(m, sid) is None

    def test_alias_forwards_member_names(self):
        m, sid = _struct("""
        OpName %Light "Light"
        OpName %S "Light"
        OpMemberName %Light 0 "color"
        """, "%Light = OpTypeStruct %v4float\n%S = OpTypeStruct %v4float\n")
        struc = reflect_struct_definition(m, sid)
        assert struc.members[0].name == "color"

    def test_numpy_dtype_matches_layout(self):
        m, sid = _struct("""
        OpName %S "Params"
        OpMemberName %S 0 "mvp"
        OpMemberName %S 1 "enabled"
        OpMemberName %S 2 "tint"
        """, "%S = OpTypeStruct %mat4v4float %bool %v4float\n")
        struc = reflect_struct_definition(m, sid)
        dtype = struc.to_numpy_dtype()
        assert dtype.itemsize == 84
        assert dtype.fields["mvp"][1] == 0
        assert dtype.fields["enabled"][1] == 64
        assert dtype.fields["tint"][1] == 68
        buf = np.zeros(1, dtype=dtype)
        buf["tint"] = [1.0, 0.5, 0.25, 1.0]
        assert buf.tobytes()[68:72] == np.float32(1.0).tobytes()


class TestReflectStructDefinitions:
    def test_deduplicates_by_identity(self):
        m, _ = _struct("""
        OpName %S "Shared"
        OpDecorate %S Block
        """, """
        %S = OpTypeStruct %v4float
        %arr = OpTypeArray %S %uint_2
        %ptr = OpTypePointer Uniform %S
        %a = OpVariable %ptr Uniform
        %b = OpVariable %ptr Uniform
        """)
        structs = reflect_struct_definitions(m)
        assert [s.name for s in structs] == ["Shared"]

    def test_declaration_order(self):
        m, _ = _struct("""
        OpName %B "B"
        OpName %A "A"
        """, "%B = OpTypeStruct %float\n%A = OpTypeStruct %int\n", name="A")
        assert [s.name for s in reflect_struct_definitions(m)] == ["B", "A"]

    def test_vertex_fixture(self):
        m = load_module((FIXTURES / "textured_quad.vert.spvasm").read_text())
        structs = reflect_struct_definitions(m)
        assert [s.name for s in structs] == ["FrameInfo", "gl_PerVertex"]
        frame_info = structs[0]
        assert frame_info.byte_length == 80
        assert [(mem.name, mem.type) for mem in frame_info.members] == [
            ("mvp", "Matrix"), ("color", "Vector4"),
        ]
