"""
AVR Instruction Table
=====================

The ordered decode table for the AVR 8-bit instruction set.

Each entry is an InstructionPattern (see patterns.py). The decoder tries the
entries in order and the first match wins. Apart from pseudo-instructions
the entries are mutually exclusive, so their order is irrelevant; each
pseudo-instruction entry is marked ``overload=True`` and placed directly
before the canonical entry it specialises, e.g.:

    lsl  "0000_11rd_dddd_rrrr"  (d == r, overloads only)
    add  "0000_11rd_dddd_rrrr"

With overloads disabled the pseudo entry is skipped and the canonical entry
decodes the word.

Operand conventions follow the AVR instruction set manual:
    - registers as r0..r31, register pairs as r25:r24
    - immediates and I/O addresses in hex, bit numbers in decimal
    - relative branches as .+0x../.-0x.. with the absolute target attached

Copyright (c) 2026 avr-disasm Contributors
"""

from typing import List

from avr_disasm.disassembler.formatter import (
    format_hex,
    format_register,
    format_register_pair,
    format_relative,
)
from avr_disasm.disassembler.patterns import (
    InstructionFields,
    InstructionPattern,
    RenderResult,
    branch_target,
    decode_displacement,
)

# Magnitude widths of the signed displacement fields
LONG_BRANCH_WIDTH = 11      # rjmp, rcall
SHORT_BRANCH_WIDTH = 6      # brbs, brbc and their named forms

# Register file offsets of the restricted register operands
UPPER_REGISTERS = 16        # r16..r31 (immediate instructions)
MULTIPLY_REGISTERS = 16     # r16..r23 / r16..r31 (muls, fmul, ...)
WORD_REGISTERS = 24         # r24, r26, r28, r30 (adiw, sbiw)

# Status register bits in SREG order: C, Z, N, V, S, H, T, I
FLAG_SET_MNEMONICS = ("sec", "sez", "sen", "sev", "ses", "seh", "set", "sei")
FLAG_CLEAR_MNEMONICS = ("clc", "clz", "cln", "clv", "cls", "clh", "clt", "cli")
BRANCH_SET_MNEMONICS = ("brcs", "breq", "brmi", "brvs", "brlt", "brhs", "brts", "brie")
BRANCH_CLEAR_MNEMONICS = ("brcc", "brne", "brpl", "brvc", "brge", "brhc", "brtc", "brid")


# =============================================================================
# Operand Renderers
# =============================================================================

def _rd(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"]),), None


def _rr(m: InstructionFields) -> RenderResult:
    return (format_register(m["r"]),), None


def _rd_rr(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"]), format_register(m["r"])), None


def _rd_rr_multiply(m: InstructionFields) -> RenderResult:
    return (
        format_register(m["d"] + MULTIPLY_REGISTERS),
        format_register(m["r"] + MULTIPLY_REGISTERS),
    ), None


def _movw(m: InstructionFields) -> RenderResult:
    return (
        format_register_pair(m["d"] * 2),
        format_register_pair(m["r"] * 2),
    ), None


def _upper_rd(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"] + UPPER_REGISTERS),), None


def _upper_rd_k(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"] + UPPER_REGISTERS), format_hex(m["k"])), None


def _word_rd_k(m: InstructionFields) -> RenderResult:
    return (format_register_pair(WORD_REGISTERS + m["d"] * 2), format_hex(m["k"])), None


def _rd_bit(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"]), str(m["b"])), None


def _rr_bit(m: InstructionFields) -> RenderResult:
    return (format_register(m["r"]), str(m["b"])), None


def _io_bit(m: InstructionFields) -> RenderResult:
    return (format_hex(m["a"]), str(m["b"])), None


def _in(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"]), format_hex(m["a"])), None


def _out(m: InstructionFields) -> RenderResult:
    return (format_hex(m["a"]), format_register(m["r"])), None


def _status_bit(m: InstructionFields) -> RenderResult:
    return (str(m["s"]),), None


def _load(pointer: str):
    def render(m: InstructionFields) -> RenderResult:
        return (format_register(m["d"]), pointer), None
    return render


def _store(pointer: str):
    def render(m: InstructionFields) -> RenderResult:
        return (pointer, format_register(m["r"])), None
    return render


def _load_displacement(pointer: str):
    def render(m: InstructionFields) -> RenderResult:
        return (format_register(m["d"]), f"{pointer}+{m['q']}"), None
    return render


def _store_displacement(pointer: str):
    def render(m: InstructionFields) -> RenderResult:
        return (f"{pointer}+{m['q']}", format_register(m["r"])), None
    return render


def _lds(m: InstructionFields) -> RenderResult:
    return (format_register(m["d"]), format_hex(m.extension)), None


def _sts(m: InstructionFields) -> RenderResult:
    return (format_hex(m.extension), format_register(m["r"])), None


def _absolute(m: InstructionFields) -> RenderResult:
    target = (m["k"] << 17) | (m.extension << 1)
    return (format_hex(target),), target


def _relative(width: int):
    def render(m: InstructionFields) -> RenderResult:
        displacement = decode_displacement(m["k"], width)
        target = branch_target(m.address, displacement)
        return (format_relative(target - m.address),), target
    return render


def _relative_status_bit(m: InstructionFields) -> RenderResult:
    (operand,), target = _relative(SHORT_BRANCH_WIDTH)(m)
    return (str(m["s"]), operand), target


# =============================================================================
# Field Conditions
# =============================================================================

def _same_register(fields) -> bool:
    return fields["d"] == fields["r"]


def _immediate_all_ones(fields) -> bool:
    return fields["k"] == 0xFF


def _no_displacement(fields) -> bool:
    return fields["q"] == 0


def _has_displacement(fields) -> bool:
    return fields["q"] != 0


# =============================================================================
# Table Construction
# =============================================================================

def _flag_overloads(prefix: str, mnemonics) -> List[InstructionPattern]:
    """Named forms of bset/bclr, one literal template per status bit."""
    return [
        InstructionPattern(name, f"{prefix}{s:03b}_1000", overload=True)
        for s, name in enumerate(mnemonics)
    ]


def _branch_overloads(prefix: str, mnemonics) -> List[InstructionPattern]:
    """Named forms of brbs/brbc, one template per status bit."""
    return [
        InstructionPattern(
            name,
            f"{prefix}kk_kkkk_k{s:03b}",
            render=_relative(SHORT_BRANCH_WIDTH),
            overload=True,
        )
        for s, name in enumerate(mnemonics)
    ]


def build_instruction_table() -> List[InstructionPattern]:
    """
    Build the ordered decode table.

    Returns:
        A new list of InstructionPattern entries in precedence order
    """
    P = InstructionPattern
    table = [
        # ---------------------------------------------------------------------
        # 0000 xxxx: register-register arithmetic and multiplies
        # ---------------------------------------------------------------------
        P("nop", "0000_0000_0000_0000"),
        P("movw", "0000_0001_dddd_rrrr", _movw),
        P("muls", "0000_0010_dddd_rrrr", _rd_rr_multiply),
        P("mulsu", "0000_0011_0ddd_0rrr", _rd_rr_multiply),
        P("fmul", "0000_0011_0ddd_1rrr", _rd_rr_multiply),
        P("fmuls", "0000_0011_1ddd_0rrr", _rd_rr_multiply),
        P("fmulsu", "0000_0011_1ddd_1rrr", _rd_rr_multiply),
        P("cpc", "0000_01rd_dddd_rrrr", _rd_rr),
        P("sbc", "0000_10rd_dddd_rrrr", _rd_rr),
        P("lsl", "0000_11rd_dddd_rrrr", _rd, condition=_same_register, overload=True),
        P("add", "0000_11rd_dddd_rrrr", _rd_rr),
        P("cpse", "0001_00rd_dddd_rrrr", _rd_rr),
        P("cp", "0001_01rd_dddd_rrrr", _rd_rr),
        P("sub", "0001_10rd_dddd_rrrr", _rd_rr),
        P("rol", "0001_11rd_dddd_rrrr", _rd, condition=_same_register, overload=True),
        P("adc", "0001_11rd_dddd_rrrr", _rd_rr),
        P("tst", "0010_00rd_dddd_rrrr", _rd, condition=_same_register, overload=True),
        P("and", "0010_00rd_dddd_rrrr", _rd_rr),
        P("clr", "0010_01rd_dddd_rrrr", _rd, condition=_same_register, overload=True),
        P("eor", "0010_01rd_dddd_rrrr", _rd_rr),
        P("or", "0010_10rd_dddd_rrrr", _rd_rr),
        P("mov", "0010_11rd_dddd_rrrr", _rd_rr),

        # ---------------------------------------------------------------------
        # 0011-0111: register-immediate (r16..r31)
        # ---------------------------------------------------------------------
        P("cpi", "0011_kkkk_dddd_kkkk", _upper_rd_k),
        P("sbci", "0100_kkkk_dddd_kkkk", _upper_rd_k),
        P("subi", "0101_kkkk_dddd_kkkk", _upper_rd_k),
        P("ori", "0110_kkkk_dddd_kkkk", _upper_rd_k),
        P("andi", "0111_kkkk_dddd_kkkk", _upper_rd_k),

        # ---------------------------------------------------------------------
        # 10q0: indirect load/store with displacement
        # ---------------------------------------------------------------------
        P("ld", "10q0_qq0d_dddd_0qqq", _load("Z"), condition=_no_displacement),
        P("ldd", "10q0_qq0d_dddd_0qqq", _load_displacement("Z"), condition=_has_displacement),
        P("ld", "10q0_qq0d_dddd_1qqq", _load("Y"), condition=_no_displacement),
        P("ldd", "10q0_qq0d_dddd_1qqq", _load_displacement("Y"), condition=_has_displacement),
        P("st", "10q0_qq1r_rrrr_0qqq", _store("Z"), condition=_no_displacement),
        P("std", "10q0_qq1r_rrrr_0qqq", _store_displacement("Z"), condition=_has_displacement),
        P("st", "10q0_qq1r_rrrr_1qqq", _store("Y"), condition=_no_displacement),
        P("std", "10q0_qq1r_rrrr_1qqq", _store_displacement("Y"), condition=_has_displacement),

        # ---------------------------------------------------------------------
        # 1001 000x: loads, stores, push/pop
        # ---------------------------------------------------------------------
        P("lds", "1001_000d_dddd_0000", _lds, extension_words=1),
        P("ld", "1001_000d_dddd_0001", _load("Z+")),
        P("ld", "1001_000d_dddd_0010", _load("-Z")),
        P("lpm", "1001_000d_dddd_0100", _load("Z")),
        P("lpm", "1001_000d_dddd_0101", _load("Z+")),
        P("elpm", "1001_000d_dddd_0110", _load("Z")),
        P("elpm", "1001_000d_dddd_0111", _load("Z+")),
        P("ld", "1001_000d_dddd_1001", _load("Y+")),
        P("ld", "1001_000d_dddd_1010", _load("-Y")),
        P("ld", "1001_000d_dddd_1100", _load("X")),
        P("ld", "1001_000d_dddd_1101", _load("X+")),
        P("ld", "1001_000d_dddd_1110", _load("-X")),
        P("pop", "1001_000d_dddd_1111", _rd),
        P("sts", "1001_001r_rrrr_0000", _sts, extension_words=1),
        P("st", "1001_001r_rrrr_0001", _store("Z+")),
        P("st", "1001_001r_rrrr_0010", _store("-Z")),
        P("st", "1001_001r_rrrr_1001", _store("Y+")),
        P("st", "1001_001r_rrrr_1010", _store("-Y")),
        P("st", "1001_001r_rrrr_1100", _store("X")),
        P("st", "1001_001r_rrrr_1101", _store("X+")),
        P("st", "1001_001r_rrrr_1110", _store("-X")),
        P("push", "1001_001r_rrrr_1111", _rr),

        # ---------------------------------------------------------------------
        # 1001 010x: one-operand instructions
        # ---------------------------------------------------------------------
        P("com", "1001_010d_dddd_0000", _rd),
        P("neg", "1001_010d_dddd_0001", _rd),
        P("swap", "1001_010d_dddd_0010", _rd),
        P("inc", "1001_010d_dddd_0011", _rd),
        P("asr", "1001_010d_dddd_0101", _rd),
        P("lsr", "1001_010d_dddd_0110", _rd),
        P("ror", "1001_010d_dddd_0111", _rd),
        P("dec", "1001_010d_dddd_1010", _rd),
    ]

    # Status register set/clear
    table += _flag_overloads("1001_0100_0", FLAG_SET_MNEMONICS)
    table.append(P("bset", "1001_0100_0sss_1000", _status_bit))
    table += _flag_overloads("1001_0100_1", FLAG_CLEAR_MNEMONICS)
    table.append(P("bclr", "1001_0100_1sss_1000", _status_bit))

    table += [
        # ---------------------------------------------------------------------
        # 1001 010x: no-operand control instructions
        # ---------------------------------------------------------------------
        P("ijmp", "1001_0100_0000_1001"),
        P("eijmp", "1001_0100_0001_1001"),
        P("ret", "1001_0101_0000_1000"),
        P("reti", "1001_0101_0001_1000"),
        P("sleep", "1001_0101_1000_1000"),
        P("break", "1001_0101_1001_1000"),
        P("wdr", "1001_0101_1010_1000"),
        P("lpm", "1001_0101_1100_1000"),
        P("elpm", "1001_0101_1101_1000"),
        P("spm", "1001_0101_1110_1000"),
        P("icall", "1001_0101_0000_1001"),
        P("eicall", "1001_0101_0001_1001"),

        # ---------------------------------------------------------------------
        # Absolute jump/call (22-bit address, two words)
        # ---------------------------------------------------------------------
        P("jmp", "1001_010k_kkkk_110k", _absolute, extension_words=1),
        P("call", "1001_010k_kkkk_111k", _absolute, extension_words=1),

        # ---------------------------------------------------------------------
        # 1001 011x-11xx: word arithmetic, I/O bits, multiply
        # ---------------------------------------------------------------------
        P("adiw", "1001_0110_kkdd_kkkk", _word_rd_k),
        P("sbiw", "1001_0111_kkdd_kkkk", _word_rd_k),
        P("cbi", "1001_1000_aaaa_abbb", _io_bit),
        P("sbic", "1001_1001_aaaa_abbb", _io_bit),
        P("sbi", "1001_1010_aaaa_abbb", _io_bit),
        P("sbis", "1001_1011_aaaa_abbb", _io_bit),
        P("mul", "1001_11rd_dddd_rrrr", _rd_rr),

        # ---------------------------------------------------------------------
        # 1011: I/O space
        # ---------------------------------------------------------------------
        P("in", "1011_0aad_dddd_aaaa", _in),
        P("out", "1011_1aar_rrrr_aaaa", _out),

        # ---------------------------------------------------------------------
        # 1100-1110: relative jump/call, load immediate
        # ---------------------------------------------------------------------
        P("rjmp", "1100_kkkk_kkkk_kkkk", _relative(LONG_BRANCH_WIDTH)),
        P("rcall", "1101_kkkk_kkkk_kkkk", _relative(LONG_BRANCH_WIDTH)),
        P("ser", "1110_kkkk_dddd_kkkk", _upper_rd, condition=_immediate_all_ones, overload=True),
        P("ldi", "1110_kkkk_dddd_kkkk", _upper_rd_k),
    ]

    # Conditional branches on status register bits
    table += _branch_overloads("1111_00", BRANCH_SET_MNEMONICS)
    table.append(P("brbs", "1111_00kk_kkkk_ksss", _relative_status_bit))
    table += _branch_overloads("1111_01", BRANCH_CLEAR_MNEMONICS)
    table.append(P("brbc", "1111_01kk_kkkk_ksss", _relative_status_bit))

    table += [
        # ---------------------------------------------------------------------
        # 1111 1xxx: register bit transfer and skip
        # ---------------------------------------------------------------------
        P("bld", "1111_100d_dddd_0bbb", _rd_bit),
        P("bst", "1111_101d_dddd_0bbb", _rd_bit),
        P("sbrc", "1111_110r_rrrr_0bbb", _rr_bit),
        P("sbrs", "1111_111r_rrrr_0bbb", _rr_bit),
    ]

    return table


# The shared decode table
INSTRUCTION_TABLE: List[InstructionPattern] = build_instruction_table()
