"""
m4asm - Assembler for the m4 16-bit-word CPU
============================================

This package translates hand-written mnemonic source into the binary word
stream consumed by the m4 CPU, either as a flat big-endian binary or as a
Logisim memory image.

Main Components
---------------
- **assembler**: three-pass assembler (m4asm)
    Converts assembly source files (.s) to .bin or Logisim .hex images

- **config**: AssemblerConfig, with environment variable overrides

- **errors**: exception hierarchy with source locations and hints

Quick Start
-----------
    >>> from m4asm import Assembler
    >>> asm = Assembler()
    >>> instructions = asm.assemble_file("blink.s")
    >>> asm.write_binary("blink.bin")

Or use the command-line tool:
    $ m4asm blink.s -o blink.hex -f logisim

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from m4asm.assembler import Assembler, assemble, assemble_file
from m4asm.config import AssemblerConfig
from m4asm.errors import (
    M4AsmError,
    ErrorKind,
    SourceLocation,
    AssemblerError,
    LiteralError,
    OperandError,
    SelectionError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    LabelError,
    DirectiveError,
    DataError,
    InternalError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    "AssemblerConfig",
    # Exception hierarchy
    "M4AsmError",
    "ErrorKind",
    "SourceLocation",
    "AssemblerError",
    "LiteralError",
    "OperandError",
    "SelectionError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "LabelError",
    "DirectiveError",
    "DataError",
    "InternalError",
]
