"""
m4asm Operand Parser
====================

Classifies a single operand field into a typed Operand. The classification
is driven purely by textual cues and the first matching rule wins:

| Order | Cue                  | Kind                  | Tag | Example        |
|-------|----------------------|-----------------------|-----|----------------|
| 1     | leading + or -       | RELATIVE_POSITIVE/NEG | + - | +6, -4         |
| 2     | [rX:rY]              | REGISTER_PAIR         | p   | [r4:r5]        |
| 2     | [...]                | FAR_POINTER           | f   | [0x10000]      |
| 3     | (...)                | NEAR_POINTER          | n   | (loop)         |
| 4     | leading r            | REGISTER              | R   | r7             |
| 5     | leading d            | DWORD_IMMEDIATE       | D   | d0x1234        |
| 6     | 'c'                  | CHAR_LITERAL          | W   | 'A'            |
| 7     | literal <= 0xFFFF    | WORD_IMMEDIATE        | W   | 42             |
| 7     | larger literal       | DWORD_IMMEDIATE       | D   | 0x12345        |
| 7     | @label               | WORD_IMMEDIATE        | W   | @table         |
| 7     | label                | DWORD_IMMEDIATE       | D   | start          |

Relative displacements are stored biased by the two bytes of the jump
instruction: +N stores N-2 and -N stores N+2.

Labels are looked up through the AssemblyContext, so whether an unknown
name is an error depends on the current resolution stage.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import re

from m4asm.errors import LiteralError, OperandError, SourceLocation
from m4asm.assembler.lexer import MAX_DWORD, MAX_WORD, parse_int_literal
from m4asm.assembler.symbols import AssemblyContext


MAX_REGISTER = 15

_PAIR_SHAPE = re.compile(r"r(\w+):r(\w+)")


class OperandKind(Enum):
    """Operand classification."""
    REGISTER = auto()
    WORD_IMMEDIATE = auto()
    DWORD_IMMEDIATE = auto()
    NEAR_POINTER = auto()
    FAR_POINTER = auto()
    RELATIVE_POSITIVE = auto()
    RELATIVE_NEGATIVE = auto()
    REGISTER_PAIR = auto()
    CHAR_LITERAL = auto()

    @property
    def tag(self) -> str:
        """One-character type tag used in operand signatures."""
        return _TAGS[self]


_TAGS = {
    OperandKind.REGISTER: "R",
    OperandKind.WORD_IMMEDIATE: "W",
    OperandKind.DWORD_IMMEDIATE: "D",
    OperandKind.NEAR_POINTER: "n",
    OperandKind.FAR_POINTER: "f",
    OperandKind.RELATIVE_POSITIVE: "+",
    OperandKind.RELATIVE_NEGATIVE: "-",
    OperandKind.REGISTER_PAIR: "p",
    OperandKind.CHAR_LITERAL: "W",
}


@dataclass(frozen=True)
class Operand:
    """
    A parsed operand.

    Attributes:
        kind: The operand classification
        value: Unsigned value (register number, address, immediate, ...)
    """
    kind: OperandKind
    value: int

    @property
    def tag(self) -> str:
        return self.kind.tag


def signature_of(operands: list[Operand]) -> str:
    """Concatenate the type tags of operands, in order."""
    return "".join(operand.tag for operand in operands)


# =============================================================================
# Classification Rules
# =============================================================================

def _parse_relative(text: str, location: Optional[SourceLocation]) -> Operand:
    sign, digits = text[0], text[1:]
    value = parse_int_literal(digits)
    if value is None:
        raise LiteralError(
            f"invalid relative displacement '{text}'",
            location=location,
            hint="use +N or -N with a decimal, 0x hex or 0b binary literal",
        )

    if sign == "+":
        if value < 2:
            raise OperandError(
                f"forward displacement '{text}' must be at least 2",
                location=location,
            )
        if value > MAX_WORD:
            raise OperandError(
                f"forward displacement '{text}' exceeds 0xFFFF",
                location=location,
            )
        return Operand(OperandKind.RELATIVE_POSITIVE, value - 2)

    if value + 2 > MAX_WORD:
        raise OperandError(
            f"backward displacement '{text}' exceeds 0xFFFD",
            location=location,
        )
    return Operand(OperandKind.RELATIVE_NEGATIVE, value + 2)


def _parse_register_number(text: str, location: Optional[SourceLocation]) -> int:
    value = parse_int_literal(text)
    if value is None:
        raise LiteralError(
            f"invalid register 'r{text}'",
            location=location,
            hint="labels starting with 'r' must be written as (label), [label] or @label",
        )
    if value > MAX_REGISTER:
        raise OperandError(
            f"invalid register 'r{text}'",
            location=location,
            hint=f"registers are r0 to r{MAX_REGISTER}",
        )
    return value


def _parse_register_pair(
    first: str,
    second: str,
    location: Optional[SourceLocation],
) -> Operand:
    low = _parse_register_number(first, location)
    high = _parse_register_number(second, location)
    if high != low + 1:
        raise OperandError(
            f"invalid register pair 'r{first}:r{second}'",
            location=location,
            hint="a register pair names two consecutive registers, e.g. [r4:r5]",
        )
    return Operand(OperandKind.REGISTER_PAIR, low)


def _parse_enclosed(
    text: str,
    closing: str,
    ctx: AssemblyContext,
    location: Optional[SourceLocation],
) -> Operand:
    """Handle the [...] far and (...) near addressing forms."""
    far = closing == "]"
    if not text.endswith(closing) or len(text) < 2:
        raise OperandError(
            f"missing '{closing}' in operand '{text}'",
            location=location,
        )
    inner = text[1:-1]
    if not inner:
        raise OperandError(f"empty address in operand '{text}'", location=location)

    if far and (pair := _PAIR_SHAPE.fullmatch(inner)):
        return _parse_register_pair(pair.group(1), pair.group(2), location)

    limit = MAX_DWORD if far else MAX_WORD
    kind = OperandKind.FAR_POINTER if far else OperandKind.NEAR_POINTER

    value = parse_int_literal(inner)
    if value is None:
        return Operand(kind, ctx.resolve(inner, location) & limit)
    if value > limit:
        raise OperandError(
            f"address {inner} does not fit in {'32' if far else '16'} bits",
            location=location,
            hint=None if far else "use [...] for addresses above 0xFFFF",
        )
    return Operand(kind, value)


def _parse_dword(text: str, location: Optional[SourceLocation]) -> Operand:
    value = parse_int_literal(text[1:])
    if value is None:
        raise LiteralError(
            f"invalid dword immediate '{text}'",
            location=location,
            hint="d must be followed by a decimal, 0x hex or 0b binary literal",
        )
    if value > MAX_DWORD:
        raise OperandError(
            f"dword immediate '{text}' exceeds 0xFFFFFFFF",
            location=location,
        )
    return Operand(OperandKind.DWORD_IMMEDIATE, value)


def _parse_char(text: str, location: Optional[SourceLocation]) -> Operand:
    if len(text) != 3 or not text.endswith("'"):
        raise OperandError(
            f"invalid character literal {text}",
            location=location,
            hint="a character literal is one character in single quotes, e.g. 'A'",
        )
    value = ord(text[1])
    if value > 0xFF:
        raise OperandError(
            f"character literal {text} does not fit in a byte",
            location=location,
        )
    return Operand(OperandKind.CHAR_LITERAL, value)


# =============================================================================
# Public API
# =============================================================================

def parse_operand(
    token: str,
    ctx: AssemblyContext,
    location: Optional[SourceLocation] = None,
) -> Operand:
    """
    Parse one operand field.

    Args:
        token: Operand text, optionally followed by a single comma
        ctx: Assembly context used for label lookups
        location: Location of the field for error messages

    Returns:
        The classified Operand

    Raises:
        LiteralError: If a register, dword or displacement literal is malformed
        OperandError: If the operand is out of range or malformed
        UndefinedSymbolError: If a label is unknown in the strict stage
    """
    text = token[:-1] if token.endswith(",") else token
    if not text:
        raise OperandError("empty operand", location=location)

    first = text[0]

    if first in "+-":
        return _parse_relative(text, location)
    if first == "[":
        return _parse_enclosed(text, "]", ctx, location)
    if first == "(":
        return _parse_enclosed(text, ")", ctx, location)
    if first == "r":
        return Operand(OperandKind.REGISTER, _parse_register_number(text[1:], location))
    if first == "d":
        return _parse_dword(text, location)
    if first == "'":
        return _parse_char(text, location)

    value = parse_int_literal(text)
    if value is not None:
        if value <= MAX_WORD:
            return Operand(OperandKind.WORD_IMMEDIATE, value)
        if value <= MAX_DWORD:
            return Operand(OperandKind.DWORD_IMMEDIATE, value)
        raise OperandError(
            f"literal {text} does not fit in 32 bits",
            location=location,
        )

    if first == "@":
        name = text[1:]
        if not name:
            raise OperandError("missing label name after '@'", location=location)
        return Operand(OperandKind.WORD_IMMEDIATE, ctx.resolve(name, location) & MAX_WORD)

    return Operand(OperandKind.DWORD_IMMEDIATE, ctx.resolve(text, location) & MAX_DWORD)
