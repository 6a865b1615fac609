"""Lark Transformer that builds an instruction list from SPIR-V assembly."""

from __future__ import annotations
import re
from pathlib import Path
from lark import Lark, Transformer, Token
from lark.exceptions import LarkError, UnexpectedInput

from reflc.parser.instructions import Instruction, IdRef, StringLit

_GRAMMAR_PATH = Path(__file__).parent.parent / "grammar" / "spvasm.lark"

_parser = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="lalr",
    propagate_positions=True,
)

_ESCAPE = re.compile(r"\\(.)")


class SpvAsmSyntaxError(Exception):
    pass


class SpvAsmTransformer(Transformer):
    def start(self, items):
        return list(items)

    def instruction(self, items):
        result_id = None
        if items and isinstance(items[0], Token) and items[0].type == "ID":
            result_id = IdRef(items[0][1:])
            items = items[1:]
        opcode = items[0]
        return Instruction(
            opcode=str(opcode),
            operands=list(items[1:]),
            result_id=result_id,
            line=getattr(opcode, "line", 0) or 0,
        )

    def id_ref(self, items):
        return IdRef(items[0][1:])

    def string(self, items):
        return StringLit(_ESCAPE.sub(r"\1", items[0][1:-1]))

    def number(self, items):
        text = str(items[0])
        if text.lower().lstrip("+-").startswith("0x"):
            # spirv-dis writes NaN, Inf and 16-bit float constants as hex floats
            if "p" in text.lower():
                return float.fromhex(text)
            return int(text, 16)
        if any(c in text for c in ".eE"):
            return float(text)
        return int(text)

    def word(self, items):
        return str(items[0])


def parse_spvasm(source: str) -> list[Instruction]:
    try:
        tree = _parser.parse(source)
    except UnexpectedInput as e:
        raise SpvAsmSyntaxError(
            f"line {e.line}, column {e.column}: unexpected input\n{e.get_context(source)}"
        ) from e
    except LarkError as e:
        raise SpvAsmSyntaxError(str(e)) from e
    return SpvAsmTransformer().transform(tree)
