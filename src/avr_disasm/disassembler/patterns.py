"""
Instruction Pattern Descriptors
===============================

AVR instructions are identified by 16-bit templates taken from the
instruction set manual, mixing literal bits with operand field letters:

    "0000_11rd_dddd_rrrr"   add Rd, Rr

Literal '0'/'1' characters compile into a mask/value pair; every other
letter names an operand field. A field's value is the concatenation of all
bits carrying its letter, most significant first, so the split 'r' field
above reads bit 9 followed by bits 3..0.

Field letters used by the table:
    d, r  - register numbers
    k     - immediates, addresses and branch displacements
    q     - displacement for ldd/std
    s     - status register bit
    a     - I/O address
    b     - bit number

Underscores are ignored and only improve readability.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

WORD_BITS = 16


# =============================================================================
# Match Data
# =============================================================================

@dataclass(frozen=True)
class InstructionFields:
    """
    Operand data extracted for one matched instruction.

    Attributes:
        address: Byte address of the opcode word
        word: The opcode word
        fields: Field letter -> extracted value
        extension: The extension word for two-word instructions
    """
    address: int
    word: int
    fields: Dict[str, int]
    extension: Optional[int] = None

    def __getitem__(self, letter: str) -> int:
        return self.fields[letter]


# Renderer output: (operand strings, absolute target or None)
RenderResult = Tuple[Tuple[str, ...], Optional[int]]
Renderer = Callable[[InstructionFields], RenderResult]
Condition = Callable[[Dict[str, int]], bool]


def _no_operands(match: InstructionFields) -> RenderResult:
    return (), None


# =============================================================================
# Pattern Descriptor
# =============================================================================

@dataclass(frozen=True)
class InstructionPattern:
    """
    One entry of the decode table.

    Attributes:
        mnemonic: Mnemonic emitted on a match
        template: 16-character bit template (underscores ignored)
        render: Builds the operand strings (and branch target) from the fields
        extension_words: Extra words consumed after the opcode word (0 or 1)
        condition: Optional predicate on the extracted fields
        overload: Entry is a pseudo-instruction, only tried when overloads
            are enabled

    Compiled attributes:
        mask: Bits fixed by the template
        value: Required values of the fixed bits
        field_bits: Field letter -> bit positions, most significant first
    """
    mnemonic: str
    template: str
    render: Renderer = _no_operands
    extension_words: int = 0
    condition: Optional[Condition] = None
    overload: bool = False

    mask: int = field(init=False, repr=False, compare=False)
    value: int = field(init=False, repr=False, compare=False)
    field_bits: Dict[str, Tuple[int, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        mask, value, field_bits = compile_template(self.template)
        object.__setattr__(self, "mask", mask)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "field_bits", field_bits)

    def field_width(self, letter: str) -> int:
        """Number of bits in field ``letter``."""
        return len(self.field_bits[letter])

    def extract(self, word: int) -> Dict[str, int]:
        """Extract every field value from ``word``."""
        return {
            letter: extract_field(word, positions)
            for letter, positions in self.field_bits.items()
        }

    def matches(self, word: int, overloads_enabled: bool = True) -> bool:
        """
        Check whether this entry decodes ``word``.

        Literal bits must match, overload entries require overloads to be
        enabled, and the condition (if any) must accept the fields.
        """
        if (word & self.mask) != self.value:
            return False
        if self.overload and not overloads_enabled:
            return False
        if self.condition is not None and not self.condition(self.extract(word)):
            return False
        return True

    @property
    def size_words(self) -> int:
        """Total instruction length in words."""
        return 1 + self.extension_words


# =============================================================================
# Template Compilation
# =============================================================================

def compile_template(template: str) -> Tuple[int, int, Dict[str, Tuple[int, ...]]]:
    """
    Compile a bit template into mask, value and field bit positions.

    Args:
        template: e.g. "1001_010k_kkkk_110k"

    Returns:
        (mask, value, field_bits)

    Raises:
        ValueError: If the template is not exactly 16 bits long

    Example:
        >>> mask, value, fields = compile_template("0000_11rd_dddd_rrrr")
        >>> hex(mask), hex(value)
        ('0xfc00', '0xc00')
        >>> fields["r"]
        (9, 3, 2, 1, 0)
    """
    bits = template.replace("_", "")
    if len(bits) != WORD_BITS:
        raise ValueError(f"Template '{template}' has {len(bits)} bits, expected {WORD_BITS}")

    mask = 0
    value = 0
    positions: Dict[str, list] = {}

    for index, char in enumerate(bits):
        bit = WORD_BITS - 1 - index
        if char in "01":
            mask |= 1 << bit
            if char == "1":
                value |= 1 << bit
        else:
            positions.setdefault(char, []).append(bit)

    return mask, value, {letter: tuple(bits) for letter, bits in positions.items()}


def extract_field(word: int, positions: Tuple[int, ...]) -> int:
    """Concatenate the bits of ``word`` at ``positions`` (MSB first)."""
    result = 0
    for bit in positions:
        result = (result << 1) | ((word >> bit) & 1)
    return result


# =============================================================================
# Displacement Arithmetic
# =============================================================================

def decode_displacement(raw: int, width: int) -> int:
    """
    Decode a two's-complement branch displacement.

    ``raw`` holds ``width`` magnitude bits plus the sign bit above them,
    i.e. ``width + 1`` bits in total.

    Args:
        raw: Concatenated field value
        width: Magnitude width (11 for rjmp/rcall, 6 for conditional branches)

    Returns:
        The signed displacement in words

    Example:
        >>> decode_displacement(0x7FF, 11)
        2047
        >>> decode_displacement(0xFFF, 11)
        -1
    """
    magnitude_mask = (1 << width) - 1
    if not (raw >> width) & 1:
        return raw & magnitude_mask
    return -(((~raw) & magnitude_mask) + 1)


def branch_target(address: int, displacement: int) -> int:
    """Absolute byte address of a relative branch at ``address``."""
    return address + (displacement + 1) * 2
