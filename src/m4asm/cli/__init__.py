"""
m4asm Command-Line Interface
============================

This package provides the m4asm command-line tool, a Click-based wrapper
around the Assembler class.
"""

__all__ = ["m4asm"]
