"""
m4asm Configuration
===================

Assembler configuration. Values can come from:
- Default values (defined here)
- Environment variables (AssemblerConfig.from_env)
- Command-line flags (applied by the CLI on top of the environment)

Environment variables (all optional):
    M4ASM_FORMAT: Output format, "binary" or "logisim"
    M4ASM_STRICT_LABELS: "0", "false", "no" or "off" disables label name checks
    M4ASM_VERBOSE: "1", "true", "yes" or "on" enables verbose logging
"""

from dataclasses import dataclass
import os


OUTPUT_FORMATS = ("binary", "logisim")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass
class AssemblerConfig:
    """
    Configuration for one assembler instance.

    Attributes:
        output_format: Format written by write_output() ("binary" or "logisim")
        strict_label_names: Reject label names that are longer than 32
            characters, equal a mnemonic, read as a register, or repeat an
            earlier label. When False, overlong names are truncated to 32
            characters and the first definition of a repeated name wins.
        verbose: Log at DEBUG level and print a summary from the CLI
    """

    output_format: str = "binary"
    strict_label_names: bool = True
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"unknown output format '{self.output_format}'. "
                f"Valid formats: {', '.join(OUTPUT_FORMATS)}"
            )

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Invalid values are ignored and the default is kept.
        """
        config = cls()

        if output_format := os.environ.get("M4ASM_FORMAT"):
            if output_format.lower() in OUTPUT_FORMATS:
                config.output_format = output_format.lower()

        if strict := os.environ.get("M4ASM_STRICT_LABELS"):
            if strict.lower() in _FALSE_VALUES:
                config.strict_label_names = False
            elif strict.lower() in _TRUE_VALUES:
                config.strict_label_names = True

        if verbose := os.environ.get("M4ASM_VERBOSE"):
            if verbose.lower() in _TRUE_VALUES:
                config.verbose = True

        return config
