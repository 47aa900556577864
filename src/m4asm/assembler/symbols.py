"""
m4asm Label Table and Assembly Context
======================================

Labels are the only symbols m4asm knows. A label is defined by a line
ending in ':' and takes the value of the address cursor at that point.

The label table is sized once, from a pre-count of label lines, and filled
in encounter order during the address-computing pass. Lookups behave
differently depending on the resolution stage:

| Stage      | Pass            | Unknown name            |
|------------|-----------------|-------------------------|
| PERMISSIVE | address compute | resolves to 0           |
| STRICT     | final encoding  | UndefinedSymbolError    |

The AssemblyContext bundles the table with the stage flag and is passed
explicitly to every operand parsing call; there is no module-level state.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional
import difflib

from m4asm.errors import (
    DuplicateSymbolError,
    InternalError,
    LabelError,
    SourceLocation,
    UndefinedSymbolError,
)
from m4asm.assembler.lexer import parse_int_literal
from m4asm.assembler.opcodes import MNEMONICS


MAX_LABEL_LENGTH = 32

# Leading characters the operand parser gives a meaning to
_OPERAND_PREFIXES = ("+", "-", "[", "(", "'", "@")


class ResolutionStage(IntEnum):
    """Label lookup behaviour; the values match the pass numbering."""
    PERMISSIVE = 0
    STRICT = 1


@dataclass(frozen=True)
class Label:
    """
    A resolved label.

    Attributes:
        name: Label name (without the trailing ':')
        address: Byte address of the first instruction after the label
        location: Where the label was defined
    """
    name: str
    address: int
    location: Optional[SourceLocation] = None


def check_label_name(name: str, location: Optional[SourceLocation] = None) -> None:
    """
    Reject label names that could not be told apart from other operands.

    Raises:
        LabelError: If the name is empty, too long, holds a space, equals a
            mnemonic, reads as a register or literal, or starts with an
            operand prefix character
    """
    if not name:
        raise LabelError("empty label name", location=location)
    if len(name) > MAX_LABEL_LENGTH:
        raise LabelError(
            f"label '{name}' is longer than {MAX_LABEL_LENGTH} characters",
            location=location,
        )
    if " " in name:
        raise LabelError(f"label '{name}' contains a space", location=location)
    if name.lower() in MNEMONICS:
        raise LabelError(
            f"label '{name}' collides with the '{name.lower()}' mnemonic",
            location=location,
        )
    if name[0] in "rd" and parse_int_literal(name[1:]) is not None:
        kind = "register" if name[0] == "r" else "dword immediate"
        raise LabelError(
            f"label '{name}' reads as a {kind} operand",
            location=location,
        )
    if parse_int_literal(name) is not None:
        raise LabelError(
            f"label '{name}' reads as an integer literal",
            location=location,
        )
    if name.startswith(_OPERAND_PREFIXES):
        raise LabelError(
            f"label '{name}' starts with operand prefix '{name[0]}'",
            location=location,
        )


class LabelTable:
    """
    Fixed-capacity, insertion-ordered label table.

    Usage:
        table = LabelTable(capacity=2)
        table.insert("start", 0x0000)
        table.insert("loop", 0x0004)
        table.lookup("loop", ResolutionStage.STRICT)   # 0x0004

    Attributes:
        capacity: Number of labels counted before the address pass
        strict_names: Validate names and reject duplicates on insert
    """

    def __init__(self, capacity: int, strict_names: bool = True):
        self.capacity = capacity
        self.strict_names = strict_names
        self._labels: list[Label] = []
        self._by_name: dict[str, Label] = {}

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[Label]:
        return iter(self._labels)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    @property
    def index(self) -> int:
        """Insertion index of the next label."""
        return len(self._labels)

    def insert(
        self,
        name: str,
        address: int,
        location: Optional[SourceLocation] = None,
    ) -> Label:
        """
        Record a label at the current insertion index.

        Raises:
            InternalError: If more labels are inserted than were counted
            LabelError: If strict_names is set and the name is invalid
            DuplicateSymbolError: If strict_names is set and the name repeats
        """
        if self.index >= self.capacity:
            raise InternalError(
                f"label table overflow: capacity {self.capacity} exhausted "
                f"while defining '{name}'",
                location=location,
            )

        if self.strict_names:
            check_label_name(name, location)
            if name in self._by_name:
                raise DuplicateSymbolError(
                    name,
                    location=location,
                    original_location=self._by_name[name].location,
                )
        else:
            name = name[:MAX_LABEL_LENGTH]

        label = Label(name, address & 0xFFFFFFFF, location)
        self._labels.append(label)
        # First definition wins when duplicates are tolerated
        self._by_name.setdefault(name, label)
        return label

    def get(self, name: str) -> Optional[Label]:
        """Return the label with this exact name, or None."""
        return self._by_name.get(name)

    def lookup(
        self,
        name: str,
        stage: ResolutionStage,
        location: Optional[SourceLocation] = None,
    ) -> int:
        """
        Resolve a label name to its address.

        Args:
            name: Exact, case-sensitive label name
            stage: PERMISSIVE returns 0 for unknown names, STRICT raises
            location: Location of the reference for error messages

        Raises:
            UndefinedSymbolError: In the STRICT stage when the name is unknown
        """
        label = self._by_name.get(name)
        if label is not None:
            return label.address
        if stage == ResolutionStage.STRICT:
            raise UndefinedSymbolError(
                name,
                location=location,
                similar_symbols=difflib.get_close_matches(name, list(self._by_name)),
            )
        return 0

    def as_dict(self) -> dict[str, int]:
        """Return name -> address in definition order."""
        return {name: label.address for name, label in self._by_name.items()}


@dataclass
class AssemblyContext:
    """
    State threaded through every parsing call of one assembly run.

    Attributes:
        labels: The run's label table
        stage: Current lookup behaviour
        filename: Source name used in error locations
    """
    labels: LabelTable
    stage: ResolutionStage = ResolutionStage.PERMISSIVE
    filename: str = "<input>"

    @property
    def index(self) -> int:
        """Insertion index into the label table."""
        return self.labels.index

    @property
    def is_strict(self) -> bool:
        return self.stage == ResolutionStage.STRICT

    def resolve(self, name: str, location: Optional[SourceLocation] = None) -> int:
        """Look a label up under the current stage."""
        return self.labels.lookup(name, self.stage, location)
