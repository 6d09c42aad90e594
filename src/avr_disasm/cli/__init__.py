"""
AVR Disassembler Command-Line Interface
=======================================

- **avrdisasm**: Intel HEX to AVR assembly listing

The tool is a Click-based CLI application with help and error reporting.

Copyright (c) 2026 avr-disasm Contributors
"""

__all__ = ["avrdisasm"]
