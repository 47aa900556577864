"""
m4asm - Assembler Command-Line Interface
========================================

This module implements the command-line interface for the m4 assembler.

Usage Examples
--------------
Basic assembly (writes blink.bin):
    $ m4asm blink.s

Logisim memory image (writes blink.hex):
    $ m4asm blink.s -f logisim

Generate all output files:
    $ m4asm blink.s -o blink.bin -l blink.lst -s blink.sym

Verbose mode:
    $ m4asm -v blink.s

Defaults for --format, --strict-labels and --verbose can be set with the
M4ASM_FORMAT, M4ASM_STRICT_LABELS and M4ASM_VERBOSE environment variables.
"""

from pathlib import Path
from typing import Optional
import logging

import click

from m4asm import __version__
from m4asm.assembler import Assembler
from m4asm.config import OUTPUT_FORMATS, AssemblerConfig
from m4asm.cli.errors import handle_cli_exception


_SUFFIXES = {"binary": ".bin", "logisim": ".hex"}


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: input.bin, or input.hex for logisim)",
)
@click.option(
    "-f", "--format", "output_format",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default=None,
    help="Output format. Default: binary",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--strict-labels/--no-strict-labels",
    default=None,
    help="Reject overlong, reserved and duplicate label names. Default: enabled. "
         "With --no-strict-labels names are truncated to 32 characters and "
         "the first definition of a repeated label wins.",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="m4asm")
def main(
    input_file: Path,
    output: Optional[Path],
    output_format: Optional[str],
    listing: Optional[Path],
    symbols: Optional[Path],
    strict_labels: Optional[bool],
    verbose: bool,
) -> None:
    """
    Assemble source code for the m4 CPU.

    INPUT_FILE is the assembly source file to assemble.

    \b
    Examples:
        m4asm blink.s                # Outputs blink.bin
        m4asm blink.s -f logisim     # Outputs blink.hex
        m4asm blink.s -o rom.bin     # Specify output file
    """
    config = AssemblerConfig.from_env()
    if output_format is not None:
        config.output_format = output_format.lower()
    if strict_labels is not None:
        config.strict_label_names = strict_labels
    config.verbose = config.verbose or verbose

    setup_logging(config.verbose)

    output_file = output if output is not None else input_file.with_suffix(
        _SUFFIXES[config.output_format]
    )

    try:
        asm = Assembler(config)
        asm.assemble_file(input_file)

        asm.write_output(output_file)
        if listing:
            asm.write_listing(listing)
        if symbols:
            asm.write_symbols(symbols)

        if config.verbose:
            words = asm.get_words()
            click.echo(
                f"Assembled {len(asm.get_instructions())} instructions "
                f"({len(words)} words) to {output_file}"
            )
            click.echo(f"Defined {len(asm.get_symbols())} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=config.verbose)


if __name__ == "__main__":
    main()
