"""
Disassembler Configuration
==========================

Settings shared by the pipeline and the command-line tool. Configuration
can come from:
- Default values (defined here)
- Environment variables (`DisassemblerConfig.from_env()`)
- Command-line flags; the CLI starts from `from_env()` and flags given
  on the command line override it
"""

from dataclasses import dataclass
import os

_TRUE_VALUES = ("1", "true", "t", "yes", "y", "on")
_FALSE_VALUES = ("0", "false", "f", "no", "n", "off")


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable, falling back to ``default``."""
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of {_TRUE_VALUES + _FALSE_VALUES}, got '{value}'")


@dataclass
class DisassemblerConfig:
    """
    Disassembly settings.

    Attributes:
        overloads_enabled: Use pseudo-instruction names (lsl, clr, ser,
            sec, breq, ...) where the operands allow (default: True)
        continue_on_error: After a decode error, report it and go on with
            the next run instead of stopping (default: False)
        strict_checksum: Reject records whose checksum is wrong
            (default: False, checksums are only reported)
        decode_all_types: Decode runs of every record type, not only DATA
            records (default: False)
    """
    overloads_enabled: bool = True
    continue_on_error: bool = False
    strict_checksum: bool = False
    decode_all_types: bool = False

    @classmethod
    def from_env(cls) -> "DisassemblerConfig":
        """
        Create a DisassemblerConfig from environment variables.

        Environment variables:
            AVR_DISASM_OVERLOADS: pseudo-instruction naming
            AVR_DISASM_KEEP_GOING: continue with the next run after an error
            AVR_DISASM_STRICT_CHECKSUM: reject bad checksums

        Raises:
            ValueError: If a variable is not a recognised boolean
        """
        defaults = cls()
        return cls(
            overloads_enabled=_env_flag("AVR_DISASM_OVERLOADS", defaults.overloads_enabled),
            continue_on_error=_env_flag("AVR_DISASM_KEEP_GOING", defaults.continue_on_error),
            strict_checksum=_env_flag("AVR_DISASM_STRICT_CHECKSUM", defaults.strict_checksum),
            decode_all_types=defaults.decode_all_types,
        )
