# =============================================================================
# test_operands.py - Operand Parser Tests
# =============================================================================
# Tests for operand classification, type tags, range checks and label
# resolution through the assembly context.
# =============================================================================

import pytest

from m4asm.assembler.operands import (
    Operand,
    OperandKind,
    parse_operand,
    signature_of,
)
from m4asm.assembler.symbols import AssemblyContext, LabelTable, ResolutionStage
from m4asm.errors import (
    ErrorKind,
    LiteralError,
    OperandError,
    SourceLocation,
    UndefinedSymbolError,
)


# =============================================================================
# Helper Function
# =============================================================================

def make_context(labels: dict | None = None, stage=ResolutionStage.STRICT):
    """Build a context holding the given labels."""
    labels = labels or {}
    table = LabelTable(len(labels))
    for name, address in labels.items():
        table.insert(name, address)
    return AssemblyContext(table, stage)


def parse(token: str, labels: dict | None = None, stage=ResolutionStage.STRICT):
    return parse_operand(token, make_context(labels, stage))


# =============================================================================
# Register Tests
# =============================================================================

class TestRegisters:
    """Test rN operands."""

    def test_register(self):
        assert parse("r0") == Operand(OperandKind.REGISTER, 0)
        assert parse("r15").value == 15
        assert parse("r0x0F").value == 15
        assert parse("r7").tag == "R"

    def test_trailing_comma(self):
        assert parse("r3,") == Operand(OperandKind.REGISTER, 3)

    def test_out_of_range(self):
        with pytest.raises(OperandError) as exc_info:
            parse("r16")
        assert exc_info.value.kind == ErrorKind.OPERAND

    def test_not_numeric(self):
        with pytest.raises(LiteralError) as exc_info:
            parse("rx")
        assert exc_info.value.kind == ErrorKind.LEXICAL


# =============================================================================
# Relative Displacement Tests
# =============================================================================

class TestRelative:
    """Test +N and -N displacements and their 2-byte bias."""

    def test_forward(self):
        operand = parse("+6")
        assert operand == Operand(OperandKind.RELATIVE_POSITIVE, 4)
        assert operand.tag == "+"
        assert parse("+2").value == 0

    def test_backward(self):
        operand = parse("-4")
        assert operand == Operand(OperandKind.RELATIVE_NEGATIVE, 6)
        assert operand.tag == "-"
        assert parse("-0xFFFD").value == 0xFFFF

    @pytest.mark.parametrize("token", ["+0", "+1", "+0x10000", "-0xFFFE"])
    def test_out_of_range(self, token):
        with pytest.raises(OperandError):
            parse(token)

    def test_malformed(self):
        with pytest.raises(LiteralError):
            parse("+abc")


# =============================================================================
# Far and Near Pointer Tests
# =============================================================================

class TestFarPointers:
    """Test [...] operands."""

    def test_literal(self):
        operand = parse("[0x12345678]")
        assert operand == Operand(OperandKind.FAR_POINTER, 0x12345678)
        assert operand.tag == "f"

    def test_label(self):
        assert parse("[target]", {"target": 0x10004}).value == 0x10004

    def test_register_pair(self):
        operand = parse("[r4:r5],")
        assert operand == Operand(OperandKind.REGISTER_PAIR, 4)
        assert operand.tag == "p"

    @pytest.mark.parametrize("token", [
        "[r4:r6]", "[r5:r4]", "[r15:r16]", "[0x100000000]", "[0x20", "[]",
    ])
    def test_invalid(self, token):
        with pytest.raises(OperandError):
            parse(token)


class TestNearPointers:
    """Test (...) operands."""

    def test_literal(self):
        operand = parse("(0x1234)")
        assert operand == Operand(OperandKind.NEAR_POINTER, 0x1234)
        assert operand.tag == "n"

    def test_label_masked(self):
        assert parse("(loop)", {"loop": 0x12345}).value == 0x2345

    @pytest.mark.parametrize("token", ["(0x10000)", "(", "()", "(0x10"])
    def test_invalid(self, token):
        with pytest.raises(OperandError):
            parse(token)


# =============================================================================
# Immediate Tests
# =============================================================================

class TestImmediates:
    """Test word, dword and character immediates."""

    def test_word(self):
        assert parse("42") == Operand(OperandKind.WORD_IMMEDIATE, 42)
        assert parse("0xFFFF").tag == "W"

    def test_large_literal_is_dword(self):
        assert parse("0x10000") == Operand(OperandKind.DWORD_IMMEDIATE, 0x10000)

    def test_literal_too_wide(self):
        with pytest.raises(OperandError):
            parse("0x100000000")

    def test_explicit_dword(self):
        assert parse("d5") == Operand(OperandKind.DWORD_IMMEDIATE, 5)
        assert parse("d0x12345678").value == 0x12345678

    def test_explicit_dword_errors(self):
        with pytest.raises(LiteralError):
            parse("dx")
        with pytest.raises(OperandError):
            parse("d0x100000000")

    def test_char(self):
        operand = parse("'A'")
        assert operand == Operand(OperandKind.CHAR_LITERAL, 0x41)
        assert operand.tag == "W"
        assert parse("'é'").value == 0xE9

    @pytest.mark.parametrize("token", ["'AB'", "'A", "'€'"])
    def test_bad_char(self, token):
        with pytest.raises(OperandError):
            parse(token)


# =============================================================================
# Label Reference Tests
# =============================================================================

class TestLabelReferences:
    """Test bare and @ label references."""

    def test_bare_label_is_dword(self):
        assert parse("start", {"start": 0x100}) == Operand(
            OperandKind.DWORD_IMMEDIATE, 0x100
        )

    def test_at_label_is_word(self):
        assert parse("@table", {"table": 0x12345}) == Operand(
            OperandKind.WORD_IMMEDIATE, 0x2345
        )

    def test_missing_at_name(self):
        with pytest.raises(OperandError):
            parse("@")

    def test_permissive_placeholder(self):
        assert parse("later", stage=ResolutionStage.PERMISSIVE).value == 0
        assert parse("(later)", stage=ResolutionStage.PERMISSIVE).value == 0

    def test_strict_undefined(self):
        with pytest.raises(UndefinedSymbolError):
            parse("later")

    def test_lone_comma(self):
        with pytest.raises(OperandError):
            parse(",")


class TestSignature:
    """Test signature building and error locations."""

    def test_signature(self):
        operands = [parse("r1"), parse("0x10"), parse("[0x20]")]
        assert signature_of(operands) == "RWf"
        assert signature_of([]) == ""

    def test_error_location(self):
        location = SourceLocation("t.s", 3, 6)
        with pytest.raises(OperandError) as exc_info:
            parse_operand("r16", make_context(), location)
        assert exc_info.value.location == location
        assert str(exc_info.value).startswith("t.s:3:6: error:")
