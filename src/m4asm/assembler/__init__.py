"""
m4asm Assembler
===============

This module provides the assembler for the m4 16-bit-word CPU. It turns
mnemonic source text into the exact word stream the CPU executes.

Main Components
---------------
- **Assembler**: Runs the assembly passes and writes the output files
- **lexer**: Line normalisation, classification and integer literals
- **symbols**: Label table and the per-run AssemblyContext
- **operands**: Classifies operand fields into typed operands
- **opcodes**: Instruction catalog and cost-based instruction selection
- **encoder**: Packs opcodes and operand values into 16-bit words
- **output**: Binary, Logisim, listing and symbol file formats

Assembly Process
----------------
1. **Count**: count label lines to size the label table
2. **Address**: encode every line with permissive label lookups to learn
   its length and record label addresses
3. **Final**: encode every line again with strict label lookups

Example Usage
-------------
>>> from m4asm.assembler import Assembler
>>> asm = Assembler()
>>> instructions = asm.assemble_string('''
... loop:
...     inc r1
...     jmp (loop)
... ''')
>>> code = asm.get_code()
>>> asm.write_logisim("loop.hex")

Supported Features
------------------
- Register, word, dword, near, far, register-pair and relative operands
- Character literals ('A') and label references (label, @label, (label), [label])
- Forward and backward label references
- $ORG directive
- dw data words and ds strings
- Listing file generation
- Symbol table output
"""

from m4asm.assembler.assembler import Assembler, assemble, assemble_file
from m4asm.assembler.lexer import LineKind, SourceLine, Token, parse_int_literal
from m4asm.assembler.symbols import (
    AssemblyContext,
    Label,
    LabelTable,
    ResolutionStage,
)
from m4asm.assembler.operands import Operand, OperandKind, parse_operand
from m4asm.assembler.opcodes import (
    INSTRUCTION_CATALOG,
    MNEMONICS,
    InstructionDefinition,
    select_instruction,
)
from m4asm.assembler.encoder import (
    AssembledInstruction,
    AssembledLine,
    encode_instruction,
    encode_string,
)
from m4asm.assembler.output import to_binary, to_logisim

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "LineKind",
    "SourceLine",
    "Token",
    "parse_int_literal",
    # Labels
    "AssemblyContext",
    "Label",
    "LabelTable",
    "ResolutionStage",
    # Operands
    "Operand",
    "OperandKind",
    "parse_operand",
    # Catalog
    "INSTRUCTION_CATALOG",
    "MNEMONICS",
    "InstructionDefinition",
    "select_instruction",
    # Encoder
    "AssembledInstruction",
    "AssembledLine",
    "encode_instruction",
    "encode_string",
    # Output
    "to_binary",
    "to_logisim",
]
