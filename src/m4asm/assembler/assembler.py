"""
m4asm Assembler - Main Interface
================================

This module provides the Assembler class, which runs the three assembly
passes over a source file and holds the results.

Passes
------
1. Count: count label lines to size the label table.
2. Address: walk the lines with permissive label lookups, encoding each
   instruction only to learn its length. Labels take the address cursor;
   $ORG moves it. Unknown labels resolve to 0 here.
3. Final: walk the lines again with strict label lookups and keep the
   encoded instructions. Every line must encode to the same length it had
   in pass 2.

The first error aborts the run and no results are kept.

Example Usage
-------------
>>> from m4asm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> instructions = asm.assemble_string('''
... start:
...     mova 0x1234
...     jmp (start)
... ''')
>>> [f"{w:04X}" for w in asm.get_words()]
['0036', '1234', '0037', '0000']
>>> asm.write_binary("start.bin")

Command-Line Usage
------------------
    $ m4asm blink.s -o blink.hex -f logisim -l blink.lst -s blink.sym
"""

from pathlib import Path
from typing import Optional
import logging

from m4asm.config import AssemblerConfig
from m4asm.errors import AssemblerError, InternalError
from m4asm.assembler.lexer import (
    MAX_DWORD,
    LineKind,
    SourceLine,
    parse_origin_directive,
    read_source,
    tokenize_line,
)
from m4asm.assembler.symbols import AssemblyContext, LabelTable, ResolutionStage
from m4asm.assembler.operands import parse_operand, signature_of
from m4asm.assembler.opcodes import select_instruction
from m4asm.assembler.encoder import (
    AssembledInstruction,
    AssembledLine,
    encode_instruction,
    encode_string,
    is_string_directive,
)
from m4asm.assembler.output import (
    format_listing,
    format_symbols,
    to_binary,
    to_logisim,
)


logger = logging.getLogger(__name__)


def count_labels(lines: list[SourceLine]) -> int:
    """Count the label definition lines."""
    return sum(1 for line in lines if line.kind == LineKind.LABEL)


def assemble_line(line: SourceLine, ctx: AssemblyContext) -> AssembledInstruction:
    """
    Parse, select and encode one instruction line.

    Label lookups follow ctx.stage. Errors raised without a location get
    the line's location attached.

    Raises:
        AssemblerError: On any operand, selection, symbol or data error
    """
    location = line.location(ctx.filename)
    try:
        if is_string_directive(line.text):
            return encode_string(line.raw.strip(), location)

        tokens = tokenize_line(line.text)
        mnemonic = tokens[0].text.lower()

        operands = []
        for token in tokens[1:]:
            # Stray separator from "r1 , r2"
            if token.text == ",":
                continue
            operands.append(
                parse_operand(token.text, ctx, line.location(ctx.filename, token.column))
            )

        definition = select_instruction(
            mnemonic, signature_of(operands), location, line.text
        )
        return encode_instruction(definition.opcode, *(op.value for op in operands))
    except AssemblerError as err:
        err.with_context(location, line.text)
        raise


class Assembler:
    """
    Main m4asm assembler class.

    One instance can assemble many sources; each run replaces the results
    of the previous one.

    Attributes:
        config: Output format, label name policy and verbosity
    """

    def __init__(self, config: Optional[AssemblerConfig] = None):
        self.config = config if config is not None else AssemblerConfig()
        self._instructions: list[AssembledInstruction] = []
        self._lines: list[AssembledLine] = []
        self._symbols: dict[str, int] = {}

    # =========================================================================
    # Assembly
    # =========================================================================

    def assemble_string(
        self,
        source: str,
        filename: str = "<input>",
    ) -> list[AssembledInstruction]:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The encoded instructions, in source order

        Raises:
            AssemblerError: If assembly fails
        """
        self._instructions = []
        self._lines = []
        self._symbols = {}

        lines = read_source(source)

        label_count = count_labels(lines)
        logger.debug("pass 1: %d label(s) in %s", label_count, filename)

        ctx = AssemblyContext(
            LabelTable(label_count, strict_names=self.config.strict_label_names),
            filename=filename,
        )

        logger.debug("pass 2: computing addresses")
        lengths = self._address_pass(lines, ctx)

        logger.debug("pass 3: encoding")
        ctx.stage = ResolutionStage.STRICT
        instructions, listing = self._final_pass(lines, ctx, lengths)

        self._instructions = instructions
        self._lines = listing
        self._symbols = ctx.labels.as_dict()

        logger.info(
            "assembled %s: %d instructions, %d words",
            filename,
            len(instructions),
            sum(inst.length for inst in instructions),
        )
        return list(instructions)

    def assemble_file(self, filepath: str | Path) -> list[AssembledInstruction]:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        logger.debug("reading %s", filepath)
        return self.assemble_string(filepath.read_text(), str(filepath))

    def _address_pass(
        self,
        lines: list[SourceLine],
        ctx: AssemblyContext,
    ) -> dict[int, int]:
        """Record label addresses; return line number -> word length."""
        lengths: dict[int, int] = {}
        cursor = 0

        for line in lines:
            if line.kind == LineKind.DIRECTIVE:
                cursor = parse_origin_directive(line.text, line.location(ctx.filename))
                logger.debug("line %d: origin set to $%08X", line.number, cursor)
            elif line.kind == LineKind.LABEL:
                label = ctx.labels.insert(
                    line.text[:-1], cursor, line.location(ctx.filename)
                )
                logger.debug("line %d: label %s = $%08X", line.number, label.name, cursor)
            elif line.kind == LineKind.SHORT:
                logger.debug("line %d: skipping short line %r", line.number, line.text)
            elif line.kind == LineKind.INSTRUCTION:
                length = assemble_line(line, ctx).length
                lengths[line.number] = length
                cursor = (cursor + length * 2) & MAX_DWORD

        return lengths

    def _final_pass(
        self,
        lines: list[SourceLine],
        ctx: AssemblyContext,
        lengths: dict[int, int],
    ) -> tuple[list[AssembledInstruction], list[AssembledLine]]:
        instructions: list[AssembledInstruction] = []
        listing: list[AssembledLine] = []
        cursor = 0

        for line in lines:
            if line.kind == LineKind.DIRECTIVE:
                cursor = parse_origin_directive(line.text, line.location(ctx.filename))
                continue
            if line.kind != LineKind.INSTRUCTION:
                continue

            inst = assemble_line(line, ctx)
            if inst.length != lengths.get(line.number):
                raise InternalError(
                    f"line encoded to {inst.length} words, "
                    f"expected {lengths.get(line.number)} from the address pass",
                    location=line.location(ctx.filename),
                    source_line=line.text,
                )
            if inst.length == 0:
                continue

            logger.debug("line %d: $%08X %r", line.number, cursor, inst)
            instructions.append(inst)
            listing.append(AssembledLine(line, cursor, inst))
            cursor = (cursor + inst.length * 2) & MAX_DWORD

        return instructions, listing

    # =========================================================================
    # Results
    # =========================================================================

    def get_instructions(self) -> list[AssembledInstruction]:
        """Get the encoded instructions of the last run."""
        return list(self._instructions)

    def get_words(self) -> list[int]:
        """Get every emitted 16-bit word of the last run, in order."""
        return [word for inst in self._instructions for word in inst.words]

    def get_code(self) -> bytes:
        """Get the output as big-endian binary."""
        return to_binary(self._instructions)

    def get_logisim(self) -> str:
        """Get the output as a Logisim hex image."""
        return to_logisim(self._instructions)

    def get_symbols(self) -> dict[str, int]:
        """
        Get the label table.

        Returns:
            Dictionary mapping label names to byte addresses, in
            definition order
        """
        return dict(self._symbols)

    def get_lines(self) -> list[AssembledLine]:
        """Get the per-line listing records of the last run."""
        return list(self._lines)

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            Listing with addresses, words, source lines and labels
        """
        return format_listing(self._lines, self._symbols)

    # =========================================================================
    # Output Files
    # =========================================================================

    def write_binary(self, filepath: str | Path) -> None:
        """Write the big-endian binary image."""
        code = self.get_code()
        Path(filepath).write_bytes(code)
        logger.info("wrote %d bytes to %s", len(code), filepath)

    def write_logisim(self, filepath: str | Path) -> None:
        """Write the Logisim hex image."""
        Path(filepath).write_text(self.get_logisim())
        logger.info("wrote Logisim image to %s", filepath)

    def write_output(self, filepath: str | Path) -> None:
        """Write the output file in the configured format."""
        if self.config.output_format == "logisim":
            self.write_logisim(filepath)
        else:
            self.write_binary(filepath)

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing."""
        Path(filepath).write_text(self.get_listing())
        logger.info("wrote listing to %s", filepath)

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: name $address (one per line)
        """
        Path(filepath).write_text(format_symbols(self._symbols))
        logger.info("wrote symbols to %s", filepath)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Returns:
        Big-endian binary image

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler()
    asm.assemble_string(source, filename)
    return asm.get_code()


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Returns:
        Big-endian binary image

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler()
    asm.assemble_file(filepath)
    return asm.get_code()
