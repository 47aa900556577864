"""
m4asm Error Hierarchy
=====================

This module defines the exception hierarchy for the m4asm assembler.
All exceptions inherit from M4AsmError, allowing callers to catch every
assembler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
M4AsmError (base)
└── AssemblerError (carries location, hint and error kind)
    ├── LiteralError - malformed integer literal where one is required
    ├── OperandError - out-of-range or malformed operand syntax
    ├── SelectionError - no catalog entry for mnemonic + operand types
    ├── UndefinedSymbolError - strict lookup of an undefined label
    ├── DuplicateSymbolError - label defined more than once
    ├── LabelError - label name that cannot be defined
    ├── DirectiveError - malformed $ORG or unknown directive
    ├── DataError - malformed or oversized ds string
    └── InternalError - catalog/encoder out of sync, label table overflow

Every error is fatal: the first one raised aborts the whole assembly run.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class M4AsmError(Exception):
    """
    Base exception for all m4asm errors.

        try:
            assembler.assemble_file("program.s")
        except M4AsmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Error Taxonomy
# =============================================================================

class ErrorKind(Enum):
    """Category of an assembly failure."""
    LEXICAL = "lexical"
    OPERAND = "operand"
    SELECTION = "selection"
    SYMBOL = "symbol"
    DIRECTIVE = "directive"
    DATA = "data"
    INTERNAL = "internal"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number in the normalised line (1-indexed)
    """
    filename: str
    line: int
    column: int = 1

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(M4AsmError):
    """
    Base exception for all assembly errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
        kind: The error category (class attribute)
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def with_context(
        self,
        location: SourceLocation,
        source_line: Optional[str] = None,
    ) -> "AssemblerError":
        """
        Fill in the location and source text of an error raised without them.

        A location or source line the error already carries is kept.
        Returns the error itself.
        """
        if self.location is None:
            self.location = location
        if self.source_line is None:
            self.source_line = source_line
        self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            blink.s:7:10: error: undefined symbol 'lop'
                jmp (lop)
                    ^
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class LiteralError(AssemblerError):
    """
    Malformed integer literal in a context that requires one.

    Examples:
        - r0x1G (register number is not a literal)
        - d12ab (dword immediate is not a literal)
    """
    kind = ErrorKind.LEXICAL


class OperandError(AssemblerError):
    """
    Invalid operand.

    Raised when an operand is out of range or its syntax is malformed:
        - r16 (register out of 0..15)
        - [r2:r4] (register pair must be consecutive)
        - (0x10000) (near address wider than 16 bits)
        - [0x20 (unclosed bracket)
    """
    kind = ErrorKind.OPERAND


class SelectionError(AssemblerError):
    """
    No instruction matches the mnemonic and operand signature.

    The hint lists the signatures the mnemonic does accept, if any.

    Example:
        mova r1   ; Error: mova only takes a word immediate (W)
    """
    kind = ErrorKind.SELECTION

    def __init__(
        self,
        mnemonic: str,
        signature: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_signatures: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.signature = signature
        self.valid_signatures = valid_signatures or []

        if self.valid_signatures:
            shown = ", ".join(f"[{s}]" for s in self.valid_signatures)
            hint = f"{mnemonic} accepts operand types: {shown}"
            message = (
                f"cannot find instruction with mnemonic '{mnemonic}' "
                f"and operand types [{signature}]"
            )
        else:
            hint = None
            message = f"unknown mnemonic '{mnemonic}'"

        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined label.

    Raised only by the final pass. The address-computing pass resolves
    unknown names to a zero placeholder instead.
    """
    kind = ErrorKind.SYMBOL

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label defined multiple times.

    Includes the original definition location when available.
    """
    kind = ErrorKind.SYMBOL

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class LabelError(AssemblerError):
    """
    Label name that cannot be defined.

    Examples:
        - a name longer than 32 characters
        - a name equal to an instruction mnemonic (push:)
        - a name that reads as a register (r3:)
    """
    kind = ErrorKind.SYMBOL


class DirectiveError(AssemblerError):
    """
    Error in an assembler directive.

    Examples:
        - $ORG with a non-literal argument
        - $ORG with no argument
        - an unknown $-directive
    """
    kind = ErrorKind.DIRECTIVE


class DataError(AssemblerError):
    """
    Error in a ds string literal.

    Raised when the string is empty, longer than 64 characters,
    unterminated, or holds a character that does not fit in a byte.
    """
    kind = ErrorKind.DATA


class InternalError(AssemblerError):
    """
    Assembler bug.

    Raised when the instruction catalog and the encoder disagree, when the
    label table overflows its counted capacity, or when a line encodes to a
    different length in the final pass than in the address pass.
    """
    kind = ErrorKind.INTERNAL
