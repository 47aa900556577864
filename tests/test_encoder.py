# =============================================================================
# test_encoder.py - Instruction Encoder Tests
# =============================================================================
# Tests for the word layout of each encoding family and for the ds string
# pseudo-op.
# =============================================================================

import pytest

from m4asm.assembler.encoder import (
    MAX_STRING_LENGTH,
    AssembledInstruction,
    encode_instruction,
    encode_string,
    is_string_directive,
)
from m4asm.assembler.opcodes import (
    OPC_NOP, OPC_RET, OPC_JMP_FAR, OPC_JMP_NEAR, OPC_JMP_REL_FWD, OPC_JMP_PAIR,
    OPC_MOV_V2A, OPC_MOV_V2R, OPC_MOV_I2R_FAR, OPC_MOV_R2M_FAR, OPC_MOV_R2M_NEAR,
    OPC_MOV_R2R, OPC_MOV_R2A, OPC_MOV_I2R_NEAR, OPC_PUSH_REG, OPC_SHL_RI,
    OPC_MOV_RSA, OPC_IMOV_ST_IMM, OPC_BRCH_FLG_FAR, OPC_BRCH_FLG_NEAR,
    OPC_BRCH_IV_FAR, OPC_BRCH_IV_NEAR, OPC_CALL_NEAR, OPC_SSP, OPC_DW,
)
from m4asm.errors import DataError, ErrorKind, InternalError


def words(opcode, *operands):
    return encode_instruction(opcode, *operands).words


# =============================================================================
# Layout Tests
# =============================================================================

class TestLayouts:
    """Test each layout family with concrete values."""

    def test_inherent(self):
        assert words(OPC_NOP) == (0x0000,)
        assert words(OPC_RET) == (0x0033,)

    def test_far_address_upper_word_first(self):
        assert words(OPC_JMP_FAR, 0x12345678) == (0x0002, 0x1234, 0x5678)
        assert words(OPC_SSP, 0x0000FFFE) == (0x0029, 0x0000, 0xFFFE)

    def test_near(self):
        assert words(OPC_MOV_V2A, 0x1234) == (0x0036, 0x1234)
        assert words(OPC_JMP_NEAR, 0x0000) == (0x0037, 0x0000)
        assert words(OPC_CALL_NEAR, 0x1234) == (0x00E0, 0x1234)
        assert words(OPC_JMP_REL_FWD, 4) == (0x0038, 0x0004)

    def test_register_and_value(self):
        assert words(OPC_MOV_V2R, 1, 5) == (0x0135, 0x0005)
        assert words(OPC_MOV_I2R_NEAR, 2, 0x20) == (0x0203, 0x0020)

    def test_register_and_far(self):
        assert words(OPC_MOV_I2R_FAR, 2, 0x12345678) == (0x0204, 0x1234, 0x5678)

    def test_far_and_register(self):
        assert words(OPC_MOV_R2M_FAR, 0x00010002, 3) == (0x0305, 0x0001, 0x0002)

    def test_near_and_register(self):
        assert words(OPC_MOV_R2M_NEAR, 0x20, 3) == (0x0306, 0x0020)

    def test_register_register(self):
        assert words(OPC_MOV_R2R, 1, 2) == (0x2107,)

    def test_single_register(self):
        assert words(OPC_PUSH_REG, 3) == (0x032A,)
        assert words(OPC_JMP_PAIR, 4) == (0x043B,)

    def test_register_to_a(self):
        assert words(OPC_MOV_R2A, 3) == (0x302F,)

    def test_shift_count_masked(self):
        assert words(OPC_SHL_RI, 1, 4) == (0x4115,)
        assert words(OPC_SHL_RI, 1, 0x13) == (0x3115,)

    def test_pair_move(self):
        assert words(OPC_MOV_RSA, 4, 1) == (0x414F,)

    def test_immediate_store(self):
        assert words(OPC_IMOV_ST_IMM, 0x12345678, 7) == (0x004C, 0x0007, 0x1234, 0x5678)

    def test_flag_branches(self):
        assert words(OPC_BRCH_FLG_FAR, 0x00010020, 2) == (0x2042, 0x0001, 0x0020)
        assert words(OPC_BRCH_FLG_NEAR, 0x0020, 0x12) == (0x2044, 0x0020)

    def test_iv_branches(self):
        assert words(OPC_BRCH_IV_FAR, 0x00010020, 0x21) == (0x2146, 0x0001, 0x0020)
        assert words(OPC_BRCH_IV_NEAR, 0x0020, 0x121) == (0x2148, 0x0020)

    def test_data_word(self):
        assert words(OPC_DW, 0xBEEF) == (0xBEEF,)

    def test_unknown_opcode(self):
        with pytest.raises(InternalError) as exc_info:
            encode_instruction(0x01)
        assert exc_info.value.kind == ErrorKind.INTERNAL

    def test_empty_instruction(self):
        assert AssembledInstruction().length == 0


# =============================================================================
# ds String Tests
# =============================================================================

class TestStrings:
    """Test the ds pseudo-op."""

    def test_recognition(self):
        assert is_string_directive('ds "x"')
        assert is_string_directive('DS "x"')
        assert not is_string_directive("dsx")
        assert not is_string_directive("dw 5")

    def test_encode(self):
        assert encode_string('ds "HI"').words == (0x0048, 0x0049)

    def test_keeps_spaces(self):
        assert encode_string('DS "A  B"').words == (0x41, 0x20, 0x20, 0x42)

    def test_max_length(self):
        text = "x" * MAX_STRING_LENGTH
        assert encode_string(f'ds "{text}"').length == MAX_STRING_LENGTH

    @pytest.mark.parametrize("line", [
        'ds "HI',
        "ds HI",
        'ds ""',
        'ds "' + "x" * (MAX_STRING_LENGTH + 1) + '"',
        'ds "€"',
    ])
    def test_invalid(self, line):
        with pytest.raises(DataError) as exc_info:
            encode_string(line)
        assert exc_info.value.kind == ErrorKind.DATA

    def test_embedded_quote(self):
        with pytest.raises(DataError) as exc_info:
            encode_string('ds "a"b"')
        assert "unexpected text" in str(exc_info.value)

    def test_trailing_comment(self):
        with pytest.raises(DataError) as exc_info:
            encode_string('ds "HI" ; note')
        assert "'; note'" in str(exc_info.value)
        assert "unterminated" not in str(exc_info.value)
