"""
m4asm Output Sinks
==================

Serialisers for a finished assembly run.

| Function         | Output                                             |
|------------------|----------------------------------------------------|
| to_binary        | 16-bit big-endian words, emission order            |
| to_logisim       | Logisim "v3.0 hex words addressed" memory image    |
| format_listing   | addresses, words and source text, then the labels  |
| format_symbols   | one "name $XXXXXXXX" line per label                |

Logisim Format
--------------
```
v3.0 hex words addressed
00000000: 0036 1234
00000002: 0037 0000
```
One line per instruction. The leading number is a running word address
that starts at 0 and ignores $ORG.
"""

from typing import Iterable, Mapping
import logging
import struct

from m4asm.assembler.encoder import AssembledInstruction, AssembledLine


logger = logging.getLogger(__name__)

LOGISIM_HEADER = "v3.0 hex words addressed"


def to_binary(instructions: Iterable[AssembledInstruction]) -> bytes:
    """Pack every instruction word as a big-endian 16-bit value."""
    words = [word for inst in instructions for word in inst.words]
    logger.debug("packing %d words", len(words))
    return struct.pack(f">{len(words)}H", *words)


def to_logisim(instructions: Iterable[AssembledInstruction]) -> str:
    """Render instructions as a Logisim addressed hex image."""
    lines = [LOGISIM_HEADER]
    address = 0
    for inst in instructions:
        if inst.length == 0:
            continue
        words = " ".join(f"{word:04x}" for word in inst.words)
        lines.append(f"{address:08X}: {words}")
        address += inst.length
    return "\n".join(lines) + "\n"


def format_listing(lines: Iterable[AssembledLine], symbols: Mapping[str, int]) -> str:
    """
    Render an assembly listing.

    Args:
        lines: Listing records of the emitting lines, in order
        symbols: Label name -> address, in definition order

    Returns:
        The listing text
    """
    out = [
        "m4asm Listing",
        "=" * 72,
        "",
        "Addr      Code                 Line  Source",
        "-" * 72,
    ]
    for line in lines:
        code = " ".join(f"{word:04X}" for word in line.instruction.words)
        out.append(
            f"{line.address:08X}  {code:19s}  {line.source.number:4d}  {line.source.text}"
        )

    out.append("")
    out.append("Symbol Table")
    out.append("-" * 30)
    for name, address in symbols.items():
        out.append(f"{name:32s} = ${address:08X}")
    return "\n".join(out) + "\n"


def format_symbols(symbols: Mapping[str, int]) -> str:
    """Render the label table, one "name $XXXXXXXX" line per label."""
    out = ["# Symbol table", "# Generated by m4asm"]
    for name, address in symbols.items():
        out.append(f"{name} ${address:08X}")
    return "\n".join(out) + "\n"
