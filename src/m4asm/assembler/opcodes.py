"""
m4asm Instruction Set Definition
================================

This module defines the instruction catalog of the 16-bit-word CPU: every
(mnemonic, operand signature) the assembler accepts, with its opcode,
encoded length in words and cycle cost.

Operand Signatures
------------------
Each parsed operand contributes a one-character type tag; an instruction's
signature is the concatenation of its operands' tags, in order.

| Tag | Operand                 | Syntax             |
|-----|-------------------------|--------------------|
| R   | register                | r0 .. r15          |
| W   | word immediate          | 0x1234, 'A', @lbl  |
| D   | dword immediate         | d0x12345678, label |
| n   | near pointer            | (0x1234), (label)  |
| f   | far pointer             | [0x12345678]       |
| p   | register-pair pointer   | [r4:r5]            |
| +   | forward displacement    | +6                 |
| -   | backward displacement   | -4                 |

Selection
---------
Several entries may share a mnemonic. Overloads with different signatures
are told apart by operand shape; entries with the same mnemonic and
signature are addressing-mode variants and the cheapest (lowest cycle
count) wins. Among equal costs the earlier catalog entry wins.

Instruction Word Layout
-----------------------
The opcode occupies bits 0-7 of the first word. Register operands are
placed in bits 8-11 and bits 12-15 of the same word. 16-bit values follow
as whole words and 32-bit addresses as two words, upper half first.
"""

from dataclasses import dataclass
from typing import Optional

from m4asm.errors import SelectionError, SourceLocation


# =============================================================================
# Opcodes
# =============================================================================

OPC_NOP = 0x00

# Jumps
OPC_JMP_FAR = 0x02
OPC_JMP_NEAR = 0x37
OPC_JMP_REL_FWD = 0x38
OPC_JMP_REL_BACK = 0x39
OPC_JMP_PAIR = 0x3B

# MOV
# I2R = indirect load, R2M = store, R2A = register to A,
# V2R/V2A = immediate value to register/A, D2R/R2D = far-address register
OPC_MOV_I2R_NEAR = 0x03
OPC_MOV_I2R_FAR = 0x04
OPC_MOV_R2M_FAR = 0x05
OPC_MOV_R2M_NEAR = 0x06
OPC_MOV_R2R = 0x07
OPC_MOV_R2A = 0x2F
OPC_MOV_V2R = 0x35
OPC_MOV_V2A = 0x36
OPC_MOV_D2R = 0x08
OPC_MOV_R2D = 0x0E

# Arithmetic
OPC_ADD_RR = 0x09
OPC_ADD_RI = 0x0C
OPC_ADC_RR = 0x0D
OPC_SUB_RR = 0x0F
OPC_SUB_RI = 0x12
OPC_SUC_RR = 0x13

# Shifts and rotates
OPC_SHR_RI = 0x14
OPC_SHL_RI = 0x15
OPC_ROR_RI = 0x16
OPC_ROL_RI = 0x17

# Single-register logic
OPC_NOT_R = 0x18
OPC_INC_R = 0x30

# Two-operand logic
OPC_AND_RR = 0x19
OPC_AND_RI = 0x1A
OPC_OR_RR = 0x1B
OPC_OR_RI = 0x1C
OPC_XOR_RR = 0x1D
OPC_XOR_RI = 0x1E
OPC_XNOR_RR = 0x1F
OPC_XNOR_RI = 0x20
OPC_NOR_RR = 0x21
OPC_NOR_RI = 0x22
OPC_NAND_RR = 0x23
OPC_NAND_RI = 0x24

# Stack
OPC_PUSHB_FAR = 0x25
OPC_PUSHW_FAR = 0x27
OPC_PUSHW_NEAR = 0x3A
OPC_PUSH_REG = 0x2A
OPC_SSP = 0x29
OPC_POP_REG = 0x2B
OPC_POP_FAR = 0x2C
OPC_POP_AD = 0x2E
OPC_POP_NEAR = 0x3C

# Calls and interrupts
OPC_CALL_FAR = 0x31
OPC_CALL_PAIR = 0x32
OPC_CALL_NEAR = 0xE0
OPC_RET = 0x33
OPC_SINT = 0x34
OPC_IEN = 0x3E

# Management and I/O space moves
OPC_MMOV_ST = 0x40
OPC_MMOV_LD = 0x41
OPC_IMOV_LD = 0x4A
OPC_IMOV_ST = 0x4B
OPC_IMOV_ST_IMM = 0x4C

# Conditional branches on flags or interrupt vector
OPC_BRCH_FLG_FAR = 0x42
OPC_BRCH_FLG_NEAR = 0x44
OPC_BRCH_IV_FAR = 0x46
OPC_BRCH_IV_NEAR = 0x48

# Register-specified address moves (address in rT:rT+1)
OPC_IMOV_RSA = 0x4E
OPC_MOV_RSA = 0x4F

# Assembler-only raw data word, never emitted as an opcode
OPC_DW = 0x10FF


# =============================================================================
# Instruction Definitions
# =============================================================================

@dataclass(frozen=True)
class InstructionDefinition:
    """
    One catalog entry.

    Attributes:
        mnemonic: Lower-case mnemonic
        opcode: Opcode selecting the encoder layout
        length: Encoded length in 16-bit words
        cycles: Cycle cost, used to break ties between equal signatures
        signature: Operand type tags, in operand order
    """
    mnemonic: str
    opcode: int
    length: int
    cycles: int
    signature: str

    def __repr__(self) -> str:
        return (
            f"InstructionDefinition({self.mnemonic} [{self.signature}], "
            f"opcode=0x{self.opcode:02X}, length={self.length}, cycles={self.cycles})"
        )


_I = InstructionDefinition

INSTRUCTION_CATALOG: tuple[InstructionDefinition, ...] = (
    _I("nop",   OPC_NOP,           1, 1, ""),

    _I("jmp",   OPC_JMP_FAR,       3, 4, "D"),
    _I("jmp",   OPC_JMP_FAR,       3, 4, "f"),
    _I("jmp",   OPC_JMP_NEAR,      2, 4, "W"),
    _I("jmp",   OPC_JMP_NEAR,      2, 4, "n"),
    _I("jmp",   OPC_JMP_REL_FWD,   2, 3, "+"),
    _I("jmp",   OPC_JMP_REL_BACK,  2, 3, "-"),
    _I("jmp",   OPC_JMP_PAIR,      1, 2, "p"),

    _I("mov",   OPC_MOV_I2R_NEAR,  2, 4, "Rn"),
    _I("mov",   OPC_MOV_I2R_FAR,   3, 4, "Rf"),
    _I("mov",   OPC_MOV_R2M_FAR,   3, 4, "fR"),
    _I("mov",   OPC_MOV_R2M_NEAR,  2, 4, "nR"),
    _I("mov",   OPC_MOV_R2R,       1, 1, "RR"),
    _I("mov",   OPC_MOV_R2A,       1, 1, "R"),
    _I("mov",   OPC_MOV_R2D,       1, 2, "R"),   # assembler alias of stfa; 0x2F wins on cost
    _I("mov",   OPC_MOV_V2R,       2, 2, "RW"),
    _I("mova",  OPC_MOV_V2A,       2, 1, "W"),
    _I("ldfa",  OPC_MOV_D2R,       1, 2, "R"),
    _I("stfa",  OPC_MOV_R2D,       1, 2, "R"),

    _I("add",   OPC_ADD_RR,        1, 1, "RR"),
    _I("add",   OPC_ADD_RI,        2, 2, "RW"),
    _I("adc",   OPC_ADC_RR,        1, 1, "RR"),

    _I("sub",   OPC_SUB_RR,        1, 1, "RR"),
    _I("sub",   OPC_SUB_RI,        2, 2, "RW"),
    _I("suc",   OPC_SUC_RR,        1, 1, "RR"),

    _I("shr",   OPC_SHR_RI,        1, 1, "RW"),
    _I("shl",   OPC_SHL_RI,        1, 1, "RW"),
    _I("ror",   OPC_ROR_RI,        1, 1, "RW"),
    _I("rol",   OPC_ROL_RI,        1, 1, "RW"),

    _I("not",   OPC_NOT_R,         1, 1, "R"),
    _I("inc",   OPC_INC_R,         1, 1, "R"),

    _I("and",   OPC_AND_RR,        1, 1, "RR"),
    _I("or",    OPC_OR_RR,         1, 1, "RR"),
    _I("nor",   OPC_NOR_RR,        1, 1, "RR"),
    _I("xor",   OPC_XOR_RR,        1, 1, "RR"),
    _I("nand",  OPC_NAND_RR,       1, 1, "RR"),
    _I("xnor",  OPC_XNOR_RR,       1, 1, "RR"),

    _I("and",   OPC_AND_RI,        2, 2, "RW"),
    _I("or",    OPC_OR_RI,         2, 2, "RW"),
    _I("nor",   OPC_NOR_RI,        2, 2, "RW"),
    _I("xor",   OPC_XOR_RI,        2, 2, "RW"),
    _I("nand",  OPC_NAND_RI,       2, 2, "RW"),
    _I("xnor",  OPC_XNOR_RI,       2, 2, "RW"),

    _I("pushb", OPC_PUSHB_FAR,     3, 5, "f"),
    _I("push",  OPC_PUSHW_FAR,     3, 5, "f"),
    _I("push",  OPC_PUSHW_NEAR,    2, 5, "n"),
    _I("push",  OPC_PUSH_REG,      1, 2, "R"),

    _I("ssp",   OPC_SSP,           3, 3, "D"),

    _I("pop",   OPC_POP_REG,       1, 3, "R"),
    _I("pop",   OPC_POP_FAR,       3, 6, "f"),
    _I("popad", OPC_POP_AD,        1, 1, ""),
    _I("pop",   OPC_POP_NEAR,      2, 2, "n"),

    _I("call",  OPC_CALL_FAR,      3, 5, "D"),
    _I("call",  OPC_CALL_FAR,      3, 5, "f"),
    _I("call",  OPC_CALL_NEAR,     2, 5, "W"),
    _I("call",  OPC_CALL_NEAR,     2, 5, "n"),
    _I("call",  OPC_CALL_PAIR,     1, 4, "p"),

    _I("ret",   OPC_RET,           1, 6, ""),
    _I("ien",   OPC_IEN,           1, 1, ""),
    _I("sint",  OPC_SINT,          1, 1, ""),

    _I("mmov",  OPC_MMOV_ST,       3, 4, "fR"),
    _I("mmov",  OPC_MMOV_LD,       3, 4, "Rf"),

    _I("imov",  OPC_IMOV_LD,       3, 4, "Rf"),
    _I("imov",  OPC_IMOV_ST,       3, 4, "fR"),
    _I("imov",  OPC_IMOV_ST_IMM,   4, 6, "fW"),

    _I("brchf", OPC_BRCH_FLG_FAR,  3, 5, "DW"),
    _I("brchf", OPC_BRCH_FLG_NEAR, 2, 5, "WW"),
    _I("brchi", OPC_BRCH_IV_FAR,   3, 5, "DW"),
    _I("brchi", OPC_BRCH_IV_NEAR,  2, 5, "WW"),

    _I("emov",  OPC_MOV_RSA,       1, 4, "RR"),
    _I("emov",  OPC_MOV_RSA,       1, 4, "pR"),
    _I("iemov", OPC_IMOV_RSA,      1, 4, "RR"),
    _I("iemov", OPC_IMOV_RSA,      1, 4, "pR"),

    _I("dw",    OPC_DW,            1, 1, "W"),
)

del _I


def _group_by_mnemonic(
    catalog: tuple[InstructionDefinition, ...],
) -> dict[str, tuple[InstructionDefinition, ...]]:
    groups: dict[str, list[InstructionDefinition]] = {}
    for definition in catalog:
        groups.setdefault(definition.mnemonic, []).append(definition)
    return {mnemonic: tuple(defs) for mnemonic, defs in groups.items()}


# Candidates per mnemonic, each group in catalog order
CATALOG_BY_MNEMONIC: dict[str, tuple[InstructionDefinition, ...]] = _group_by_mnemonic(
    INSTRUCTION_CATALOG
)

# Mnemonics handled outside the catalog
PSEUDO_MNEMONICS = frozenset({"ds"})

# Every reserved mnemonic (catalog plus pseudo-ops)
MNEMONICS = frozenset(CATALOG_BY_MNEMONIC) | PSEUDO_MNEMONICS


# =============================================================================
# Lookup Functions
# =============================================================================

def get_signatures(mnemonic: str) -> list[str]:
    """Return the distinct signatures a mnemonic accepts, in catalog order."""
    signatures: list[str] = []
    for definition in CATALOG_BY_MNEMONIC.get(mnemonic.lower(), ()):
        if definition.signature not in signatures:
            signatures.append(definition.signature)
    return signatures


def select_instruction(
    mnemonic: str,
    signature: str,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> InstructionDefinition:
    """
    Pick the cheapest catalog entry for a mnemonic and operand signature.

    Args:
        mnemonic: Instruction mnemonic (any case)
        signature: Concatenated operand type tags
        location: Location of the instruction for error messages
        source_line: Source text for error messages

    Returns:
        The matching entry with the lowest cycle cost

    Raises:
        SelectionError: If no entry matches both mnemonic and signature
    """
    mnemonic = mnemonic.lower()
    best: Optional[InstructionDefinition] = None

    for definition in CATALOG_BY_MNEMONIC.get(mnemonic, ()):
        if definition.signature != signature:
            continue
        if best is None or definition.cycles < best.cycles:
            best = definition

    if best is None:
        raise SelectionError(
            mnemonic,
            signature,
            location=location,
            source_line=source_line,
            valid_signatures=get_signatures(mnemonic),
        )
    return best
