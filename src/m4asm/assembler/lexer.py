"""
m4asm Source Line Lexer
=======================

This module splits m4asm source text into normalised lines, classifies
each line and breaks instruction lines into whitespace-separated fields.
It also holds the integer literal parser shared by the operand parser and
the $ORG directive.

Line Grammar
------------
Lines are normalised first: leading and trailing whitespace is removed and
every run of internal whitespace collapses to a single space.

| Normalised text          | Kind        | Example          |
|--------------------------|-------------|------------------|
| (empty)                  | BLANK       |                  |
| starts with ;            | COMMENT     | ; init stack     |
| starts with $            | DIRECTIVE   | $ORG 0x100       |
| ends with :              | LABEL       | loop:            |
| one or two characters    | SHORT       | x                |
| anything else            | INSTRUCTION | mov r1, r2       |

Number Formats
--------------
| Format      | Prefix | Example | Value |
|-------------|--------|---------|-------|
| Decimal     | (none) | 123     | 123   |
| Hexadecimal | 0x     | 0x7f    | 127   |
| Binary      | 0b     | 0b1010  | 10    |

Example
-------
>>> from m4asm.assembler.lexer import read_source, tokenize_line
>>> lines = read_source("loop:\\n    mov   r1,  r2\\n")
>>> [line.kind.name for line in lines]
['LABEL', 'INSTRUCTION']
>>> tokenize_line(lines[1].text)
[Token('mov', 1), Token('r1,', 5), Token('r2', 9)]
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import re

from m4asm.errors import DirectiveError, SourceLocation


# =============================================================================
# Integer Literal Parser
# =============================================================================

_DECIMAL = re.compile(r"[0-9]+")
_HEX = re.compile(r"0x([0-9a-fA-F]+)")
_BINARY = re.compile(r"0b([01]+)")

MAX_DWORD = 0xFFFFFFFF
MAX_WORD = 0xFFFF


def parse_int_literal(text: str) -> Optional[int]:
    """
    Parse a decimal, 0x-hex or 0b-binary literal.

    The whole string must be one literal form; anything else is not a
    literal and None is returned. This is a decision signal, not an error:
    callers fall back to label interpretation on None.

    Args:
        text: Candidate literal text

    Returns:
        The unsigned value, or None if text is not an integer literal
    """
    if _DECIMAL.fullmatch(text):
        return int(text, 10)
    if match := _HEX.fullmatch(text):
        return int(match.group(1), 16)
    if match := _BINARY.fullmatch(text):
        return int(match.group(1), 2)
    return None


# =============================================================================
# Source Lines
# =============================================================================

class LineKind(Enum):
    """Classification of a normalised source line."""
    BLANK = auto()
    COMMENT = auto()
    DIRECTIVE = auto()
    LABEL = auto()
    SHORT = auto()
    INSTRUCTION = auto()


@dataclass(frozen=True)
class SourceLine:
    """
    One line of source after normalisation.

    Attributes:
        number: Line number in the source (1-indexed)
        raw: The line as read, without its line terminator
        text: The normalised line
        kind: The line classification
    """
    number: int
    raw: str
    text: str
    kind: LineKind

    def location(self, filename: str, column: int = 1) -> SourceLocation:
        """Return a SourceLocation on this line."""
        return SourceLocation(filename, self.number, column)


@dataclass(frozen=True)
class Token:
    """
    A whitespace-separated field of an instruction line.

    Attributes:
        text: The field text, including any trailing comma
        column: Column of the first character in the normalised line
    """
    text: str
    column: int

    def __repr__(self) -> str:
        return f"Token({self.text!r}, {self.column})"


_WHITESPACE = re.compile(r"\s+")


def normalize_line(line: str) -> str:
    """Strip a line and collapse internal whitespace runs to one space."""
    return _WHITESPACE.sub(" ", line.strip())


def classify_line(text: str) -> LineKind:
    """
    Classify a normalised line.

    The checks run in table order (see module docstring), so a comment
    ending in ':' is still a comment.
    """
    if not text:
        return LineKind.BLANK
    if text.startswith(";"):
        return LineKind.COMMENT
    if text.startswith("$"):
        return LineKind.DIRECTIVE
    if text.endswith(":"):
        return LineKind.LABEL
    if len(text) <= 2:
        return LineKind.SHORT
    return LineKind.INSTRUCTION


def read_source(source: str) -> list[SourceLine]:
    """
    Split source text into classified, normalised lines.

    Args:
        source: Complete source text

    Returns:
        One SourceLine per physical line, in order
    """
    lines = []
    for number, raw in enumerate(source.splitlines(), start=1):
        text = normalize_line(raw)
        lines.append(SourceLine(number, raw, text, classify_line(text)))
    return lines


def tokenize_line(text: str) -> list[Token]:
    """
    Split a normalised line into single-space separated fields.

    Args:
        text: A normalised line (see normalize_line)

    Returns:
        Tokens with their 1-indexed columns
    """
    tokens = []
    column = 1
    for field in text.split(" "):
        if field:
            tokens.append(Token(field, column))
        column += len(field) + 1
    return tokens


# =============================================================================
# Directives
# =============================================================================

def parse_origin_directive(text: str, location: Optional[SourceLocation] = None) -> int:
    """
    Parse a $ORG directive line and return the new address cursor.

    The directive name is case-insensitive; its argument must be a single
    integer literal no wider than 32 bits.

    Args:
        text: The normalised directive line
        location: Location of the line for error messages

    Raises:
        DirectiveError: If the directive is unknown or its argument invalid
    """
    name, _, argument = text.partition(" ")
    if name.lower() != "$org":
        raise DirectiveError(
            f"unknown directive '{name}'",
            location=location,
            hint="the only directive is $ORG <literal>",
            source_line=text,
        )
    if not argument:
        raise DirectiveError(
            "missing origin address",
            location=location,
            source_line=text,
        )

    value = parse_int_literal(argument)
    if value is None or value > MAX_DWORD:
        raise DirectiveError(
            f"invalid origin specified: '{argument}'",
            location=location,
            hint="use a decimal, 0x hex or 0b binary literal up to 0xFFFFFFFF",
            source_line=text,
        )
    return value
