# =============================================================================
# test_symbols.py - Label Table Tests
# =============================================================================
# Tests for label name validation, the fixed-capacity label table and the
# stage-dependent lookups of the assembly context.
# =============================================================================

import pytest

from m4asm.assembler.symbols import (
    MAX_LABEL_LENGTH,
    AssemblyContext,
    LabelTable,
    ResolutionStage,
    check_label_name,
)
from m4asm.errors import (
    DuplicateSymbolError,
    ErrorKind,
    InternalError,
    LabelError,
    SourceLocation,
    UndefinedSymbolError,
)


# =============================================================================
# Label Name Tests
# =============================================================================

class TestLabelNames:
    """Test which names may be defined."""

    @pytest.mark.parametrize("name", ["loop", "_start", "table2", "r3x", "Loop", "data", "d"])
    def test_valid_names(self, name):
        check_label_name(name)

    @pytest.mark.parametrize("name", [
        "",
        "a" * (MAX_LABEL_LENGTH + 1),
        "my label",
        "push",
        "MOV",
        "ds",
        "r3",
        "r0x3",
        "r0b1",
        "d5",
        "d0x10",
        "123",
        "0x10",
        "+x",
        "(x",
        "@x",
    ])
    def test_invalid_names(self, name):
        with pytest.raises(LabelError) as exc_info:
            check_label_name(name)
        assert exc_info.value.kind == ErrorKind.SYMBOL

    def test_max_length_allowed(self):
        check_label_name("a" * MAX_LABEL_LENGTH)


# =============================================================================
# Label Table Tests
# =============================================================================

class TestLabelTable:
    """Test insertion and lookup."""

    def test_insert_and_lookup(self):
        table = LabelTable(capacity=2)
        table.insert("start", 0x0000)
        table.insert("loop", 0x0004)

        assert len(table) == 2
        assert table.index == 2
        assert "loop" in table
        assert table.lookup("loop", ResolutionStage.STRICT) == 0x0004
        assert table.as_dict() == {"start": 0, "loop": 4}

    def test_encounter_order(self):
        table = LabelTable(capacity=3)
        for name in ("zeta", "alpha", "mid"):
            table.insert(name, 0)
        assert [label.name for label in table] == ["zeta", "alpha", "mid"]

    def test_overflow(self):
        table = LabelTable(capacity=1)
        table.insert("one", 0)
        with pytest.raises(InternalError):
            table.insert("two", 2)

    def test_duplicate(self):
        table = LabelTable(capacity=2)
        table.insert("loop", 0, SourceLocation("a.s", 1))
        with pytest.raises(DuplicateSymbolError) as exc_info:
            table.insert("loop", 4, SourceLocation("a.s", 5))
        assert "a.s:1:1" in exc_info.value.hint

    def test_invalid_name_rejected(self):
        table = LabelTable(capacity=1)
        with pytest.raises(LabelError):
            table.insert("push", 0)

    def test_case_sensitive(self):
        table = LabelTable(capacity=1)
        table.insert("loop", 8)
        assert table.get("Loop") is None
        with pytest.raises(UndefinedSymbolError):
            table.lookup("Loop", ResolutionStage.STRICT)


class TestLenientNames:
    """Test strict_names=False."""

    def test_first_definition_wins(self):
        table = LabelTable(capacity=2, strict_names=False)
        table.insert("x", 0)
        table.insert("x", 8)
        assert len(table) == 2
        assert table.lookup("x", ResolutionStage.STRICT) == 0

    def test_truncates_long_names(self):
        table = LabelTable(capacity=1, strict_names=False)
        table.insert("a" * 40, 2)
        assert table.get("a" * MAX_LABEL_LENGTH).address == 2

    def test_reserved_names_allowed(self):
        table = LabelTable(capacity=1, strict_names=False)
        table.insert("push", 6)
        assert table.lookup("push", ResolutionStage.STRICT) == 6


# =============================================================================
# Resolution Stage Tests
# =============================================================================

class TestResolution:
    """Test permissive and strict lookups."""

    def test_permissive_unknown_is_zero(self):
        table = LabelTable(capacity=0)
        assert table.lookup("later", ResolutionStage.PERMISSIVE) == 0

    def test_strict_unknown_raises(self):
        table = LabelTable(capacity=0)
        with pytest.raises(UndefinedSymbolError) as exc_info:
            table.lookup("later", ResolutionStage.STRICT)
        assert exc_info.value.symbol == "later"

    def test_suggestion(self):
        table = LabelTable(capacity=1)
        table.insert("loop", 0)
        with pytest.raises(UndefinedSymbolError) as exc_info:
            table.lookup("lop", ResolutionStage.STRICT)
        assert "'loop'" in exc_info.value.hint

    def test_context_follows_stage(self):
        ctx = AssemblyContext(LabelTable(capacity=0))
        assert not ctx.is_strict
        assert ctx.resolve("missing") == 0

        ctx.stage = ResolutionStage.STRICT
        assert ctx.is_strict
        with pytest.raises(UndefinedSymbolError):
            ctx.resolve("missing")

    def test_context_index(self):
        ctx = AssemblyContext(LabelTable(capacity=2))
        assert ctx.index == 0
        ctx.labels.insert("a1", 0)
        assert ctx.index == 1
