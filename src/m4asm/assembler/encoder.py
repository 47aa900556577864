"""
m4asm Instruction Encoder
=========================

Turns a selected opcode and its operand values into 16-bit words. Every
opcode belongs to exactly one layout family:

```
inherent     op                                 nop, ret
far          op, hi(p0), lo(p0)                 jmp d0x10000
near         op, lo(p0)                         mova 0x1234
reg+near     op|p0<<8, lo(p1)                   mov r1, 5
reg+far      op|p0<<8, hi(p1), lo(p1)           mov r1, [0x10000]
far+reg      op|p1<<8, hi(p0), lo(p0)           mov [0x10000], r1
near+reg     op|p1<<8, lo(p0)                   mov (0x20), r1
reg,reg      op|p0<<8|p1<<12                    add r1, r2
reg          op|p0<<8                           push r3
reg to A     op|p0<<12                          mov r3
shift        op|p0<<8|(p1&0xF)<<12              shl r1, 4
pair move    op|p0<<12|p1<<8                    emov [r4:r5], r1
imm store    op, lo(p1), hi(p0), lo(p0)         imov [0x10], 7
flag branch  op|(p1&0xF)<<12, [hi(p0),] lo(p0)  brchf loop, 2
IV branch    op|(p1&0xFF)<<8, [hi(p0),] lo(p0)  brchi @isr, 0x21
data word    lo(p0)                             dw 0xBEEF
```

hi(x) is bits 16-31 of x and lo(x) bits 0-15: 32-bit values are always
written upper word first.

The ds pseudo-op does not go through the catalog; encode_string() turns a
quoted string into one word per character.
"""

from dataclasses import dataclass
from typing import Optional
import re

from m4asm.errors import DataError, InternalError, SourceLocation
from m4asm.assembler.lexer import SourceLine
from m4asm.assembler.opcodes import (
    OPC_NOP, OPC_RET, OPC_SINT, OPC_IEN, OPC_POP_AD,
    OPC_JMP_FAR, OPC_JMP_NEAR, OPC_JMP_REL_FWD, OPC_JMP_REL_BACK, OPC_JMP_PAIR,
    OPC_MOV_I2R_NEAR, OPC_MOV_I2R_FAR, OPC_MOV_R2M_FAR, OPC_MOV_R2M_NEAR,
    OPC_MOV_R2R, OPC_MOV_R2A, OPC_MOV_V2R, OPC_MOV_V2A, OPC_MOV_D2R, OPC_MOV_R2D,
    OPC_ADD_RR, OPC_ADD_RI, OPC_ADC_RR, OPC_SUB_RR, OPC_SUB_RI, OPC_SUC_RR,
    OPC_SHR_RI, OPC_SHL_RI, OPC_ROR_RI, OPC_ROL_RI,
    OPC_NOT_R, OPC_INC_R,
    OPC_AND_RR, OPC_AND_RI, OPC_OR_RR, OPC_OR_RI, OPC_XOR_RR, OPC_XOR_RI,
    OPC_XNOR_RR, OPC_XNOR_RI, OPC_NOR_RR, OPC_NOR_RI, OPC_NAND_RR, OPC_NAND_RI,
    OPC_PUSHB_FAR, OPC_PUSHW_FAR, OPC_PUSHW_NEAR, OPC_PUSH_REG, OPC_SSP,
    OPC_POP_REG, OPC_POP_FAR, OPC_POP_NEAR,
    OPC_CALL_FAR, OPC_CALL_NEAR, OPC_CALL_PAIR,
    OPC_MMOV_ST, OPC_MMOV_LD, OPC_IMOV_LD, OPC_IMOV_ST, OPC_IMOV_ST_IMM,
    OPC_BRCH_FLG_FAR, OPC_BRCH_FLG_NEAR, OPC_BRCH_IV_FAR, OPC_BRCH_IV_NEAR,
    OPC_IMOV_RSA, OPC_MOV_RSA,
    OPC_DW,
)


MAX_STRING_LENGTH = 64


@dataclass(frozen=True)
class AssembledInstruction:
    """
    The encoded form of one source line.

    Attributes:
        words: 16-bit words in output order
    """
    words: tuple[int, ...] = ()

    @property
    def length(self) -> int:
        """Number of words; 0 means the line emitted nothing."""
        return len(self.words)

    def __repr__(self) -> str:
        shown = " ".join(f"{w:04X}" for w in self.words)
        return f"AssembledInstruction([{shown}])"


@dataclass(frozen=True)
class AssembledLine:
    """
    Listing record for one emitting source line.

    Attributes:
        source: The source line
        address: Byte address of the first word (follows $ORG)
        instruction: The encoded words
    """
    source: SourceLine
    address: int
    instruction: AssembledInstruction


# =============================================================================
# Layout Families
# =============================================================================

_INHERENT = frozenset({OPC_NOP, OPC_RET, OPC_SINT, OPC_IEN, OPC_POP_AD})

_FAR = frozenset({
    OPC_JMP_FAR, OPC_PUSHB_FAR, OPC_PUSHW_FAR, OPC_SSP, OPC_POP_FAR, OPC_CALL_FAR,
})

_NEAR = frozenset({
    OPC_JMP_NEAR, OPC_JMP_REL_FWD, OPC_JMP_REL_BACK,
    OPC_PUSHW_NEAR, OPC_POP_NEAR, OPC_CALL_NEAR, OPC_MOV_V2A,
})

_REG_NEAR = frozenset({
    OPC_MOV_I2R_NEAR, OPC_MOV_V2R, OPC_ADD_RI, OPC_SUB_RI,
    OPC_AND_RI, OPC_OR_RI, OPC_XOR_RI, OPC_XNOR_RI, OPC_NOR_RI, OPC_NAND_RI,
})

_REG_FAR = frozenset({OPC_MOV_I2R_FAR, OPC_MMOV_LD, OPC_IMOV_LD})

_FAR_REG = frozenset({OPC_MOV_R2M_FAR, OPC_MMOV_ST, OPC_IMOV_ST})

_NEAR_REG = frozenset({OPC_MOV_R2M_NEAR})

_REG_REG = frozenset({
    OPC_MOV_R2R, OPC_ADD_RR, OPC_ADC_RR, OPC_SUB_RR, OPC_SUC_RR,
    OPC_AND_RR, OPC_OR_RR, OPC_XOR_RR, OPC_XNOR_RR, OPC_NOR_RR, OPC_NAND_RR,
})

_REG = frozenset({
    OPC_MOV_D2R, OPC_MOV_R2D, OPC_NOT_R, OPC_INC_R,
    OPC_PUSH_REG, OPC_POP_REG, OPC_JMP_PAIR, OPC_CALL_PAIR,
})

_SHIFT = frozenset({OPC_SHR_RI, OPC_SHL_RI, OPC_ROR_RI, OPC_ROL_RI})

_PAIR_MOVE = frozenset({OPC_MOV_RSA, OPC_IMOV_RSA})


def _hi(value: int) -> int:
    return (value >> 16) & 0xFFFF


def _lo(value: int) -> int:
    return value & 0xFFFF


def _reg(value: int) -> int:
    return value & 0xF


def _layout(opcode: int, p0: int, p1: int) -> tuple[int, ...]:
    if opcode in _INHERENT:
        return (opcode,)
    if opcode in _FAR:
        return (opcode, _hi(p0), _lo(p0))
    if opcode in _NEAR:
        return (opcode, _lo(p0))
    if opcode in _REG_NEAR:
        return (opcode | _reg(p0) << 8, _lo(p1))
    if opcode in _REG_FAR:
        return (opcode | _reg(p0) << 8, _hi(p1), _lo(p1))
    if opcode in _FAR_REG:
        return (opcode | _reg(p1) << 8, _hi(p0), _lo(p0))
    if opcode in _NEAR_REG:
        return (opcode | _reg(p1) << 8, _lo(p0))
    if opcode in _REG_REG:
        return (opcode | _reg(p0) << 8 | _reg(p1) << 12,)
    if opcode in _REG:
        return (opcode | _reg(p0) << 8,)
    if opcode == OPC_MOV_R2A:
        return (opcode | _reg(p0) << 12,)
    if opcode in _SHIFT:
        return (opcode | _reg(p0) << 8 | _reg(p1) << 12,)
    if opcode in _PAIR_MOVE:
        return (opcode | _reg(p0) << 12 | _reg(p1) << 8,)
    if opcode == OPC_IMOV_ST_IMM:
        return (opcode, _lo(p1), _hi(p0), _lo(p0))
    if opcode == OPC_BRCH_FLG_FAR:
        return (opcode | (p1 & 0xF) << 12, _hi(p0), _lo(p0))
    if opcode == OPC_BRCH_FLG_NEAR:
        return (opcode | (p1 & 0xF) << 12, _lo(p0))
    if opcode == OPC_BRCH_IV_FAR:
        return (opcode | (p1 & 0xFF) << 8, _hi(p0), _lo(p0))
    if opcode == OPC_BRCH_IV_NEAR:
        return (opcode | (p1 & 0xFF) << 8, _lo(p0))
    if opcode == OPC_DW:
        return (_lo(p0),)
    raise InternalError(f"no encoding for opcode 0x{opcode:02X}")


def encode_instruction(
    opcode: int,
    p0: int = 0,
    p1: int = 0,
    p2: int = 0,
    p3: int = 0,
) -> AssembledInstruction:
    """
    Encode a selected opcode with its operand values.

    Operand values arrive in source order. No catalog entry takes more than
    two operands, so p2 and p3 are accepted and ignored.

    Raises:
        InternalError: If the opcode has no known layout
    """
    return AssembledInstruction(_layout(opcode, p0, p1))


# =============================================================================
# ds String Pseudo-op
# =============================================================================

_STRING_DIRECTIVE = re.compile(r"ds\s", re.IGNORECASE)
_QUOTED = re.compile(r'"([^"]*)"')


def is_string_directive(text: str) -> bool:
    """True if a normalised line is a ds pseudo-op."""
    return _STRING_DIRECTIVE.match(text) is not None


def encode_string(
    line: str,
    location: Optional[SourceLocation] = None,
) -> AssembledInstruction:
    """
    Encode a ds line into one word per character.

    Args:
        line: The stripped source line, e.g. 'ds "HELLO"'
        location: Location of the line for error messages

    Raises:
        DataError: If the string is unquoted, unterminated, followed by
            other text, empty, longer than 64 characters or holds a
            character above 0xFF
    """
    argument = line[2:].strip()
    if not argument.startswith('"'):
        raise DataError(
            "ds expects a quoted string",
            location=location,
            hint='write ds "text"',
            source_line=line,
        )

    match = _QUOTED.match(argument)
    if match is None:
        raise DataError("unterminated string", location=location, source_line=line)
    rest = argument[match.end():].strip()
    if rest:
        raise DataError(
            f"unexpected text after string: '{rest}'",
            location=location,
            hint="strings cannot hold '\"' and comments go on their own line",
            source_line=line,
        )

    text = match.group(1)
    if not text:
        raise DataError("empty string", location=location, source_line=line)
    if len(text) > MAX_STRING_LENGTH:
        raise DataError(
            f"string of {len(text)} characters exceeds {MAX_STRING_LENGTH}",
            location=location,
            source_line=line,
        )

    words = []
    for char in text:
        if ord(char) > 0xFF:
            raise DataError(
                f"character {char!r} does not fit in a byte",
                location=location,
                source_line=line,
            )
        words.append(ord(char))
    return AssembledInstruction(tuple(words))
