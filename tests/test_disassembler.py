"""
Unit Tests for the Disassembler Module
======================================

This module contains tests for the AVR instruction decoder and its
supporting pieces.

Test coverage includes:
- Template compilation and field extraction
- Two's-complement displacement decoding
- The word stream cursor
- Representative instructions from every table group
- Pseudo-instructions with overloads enabled and disabled
- Two-word instructions and truncation
- Unknown opcodes
- Listing line formatting
"""

import pytest

from avr_disasm.disassembler import (
    INSTRUCTION_TABLE,
    DecodedInstruction,
    InstructionDecoder,
    InstructionPattern,
    WordStream,
    branch_target,
    decode_displacement,
    format_instruction,
)
from avr_disasm.disassembler.formatter import format_register_pair, format_relative
from avr_disasm.disassembler.patterns import compile_template, extract_field
from avr_disasm.errors import DecodeError, TruncatedInstructionError, UnknownOpcodeError
from avr_disasm.hexfile.records import RecordRun, RecordType


def make_run(words, base_address=0):
    return RecordRun(base_address=base_address, record_type=RecordType.DATA, words=list(words))


# =============================================================================
# Pattern Tests
# =============================================================================

class TestPatterns:
    """Tests for template compilation and field extraction."""

    def test_compile_mask_and_value(self):
        """Test literal bits become mask/value."""
        mask, value, fields = compile_template("0000_11rd_dddd_rrrr")

        assert mask == 0xFC00
        assert value == 0x0C00
        assert set(fields) == {"d", "r"}

    def test_split_field_positions(self):
        """Test MSB-first positions of a split field."""
        _, _, fields = compile_template("0000_11rd_dddd_rrrr")

        assert fields["r"] == (9, 3, 2, 1, 0)
        assert fields["d"] == (8, 7, 6, 5, 4)

    def test_extract_split_field(self):
        """Test concatenation of non-adjacent bits."""
        # r = bit 9 : bits 3..0 = 1:0010
        assert extract_field(0x0E02, (9, 3, 2, 1, 0)) == 0x12

    def test_template_length_checked(self):
        """Test that templates must be 16 bits."""
        with pytest.raises(ValueError):
            compile_template("0000_11rd_dddd")

    def test_matches_requires_literal_bits(self):
        """Test literal bit matching."""
        pattern = InstructionPattern("add", "0000_11rd_dddd_rrrr")

        assert pattern.matches(0x0C01)
        assert not pattern.matches(0x1C01)

    def test_overload_entry_disabled(self):
        """Test that overload entries are skipped without overloads."""
        pattern = InstructionPattern("sec", "1001_0100_0000_1000", overload=True)

        assert pattern.matches(0x9408, overloads_enabled=True)
        assert not pattern.matches(0x9408, overloads_enabled=False)

    def test_condition(self):
        """Test field predicate."""
        pattern = InstructionPattern(
            "lsl", "0000_11rd_dddd_rrrr",
            condition=lambda f: f["d"] == f["r"],
        )

        assert pattern.matches(0x0C00)
        assert not pattern.matches(0x0C01)

    def test_size_words(self):
        """Test instruction length from extension words."""
        assert InstructionPattern("nop", "0000_0000_0000_0000").size_words == 1
        assert InstructionPattern("lds", "1001_000d_dddd_0000", extension_words=1).size_words == 2


class TestDisplacement:
    """Tests for two's-complement displacement decoding."""

    def test_positive(self):
        """Test sign bit clear."""
        assert decode_displacement(0x001, 11) == 1
        assert decode_displacement(0x7FF, 11) == 2047

    def test_minus_one(self):
        """Test all ones."""
        assert decode_displacement(0xFFF, 11) == -1
        assert decode_displacement(0x7F, 6) == -1

    def test_most_negative(self):
        """Test sign bit only."""
        assert decode_displacement(0x800, 11) == -2048
        assert decode_displacement(0x40, 6) == -64

    def test_short_branch_range(self):
        """Test 7-bit conditional branch field."""
        assert decode_displacement(0x3F, 6) == 63
        assert decode_displacement(0x7D, 6) == -3

    def test_branch_target(self):
        """Test target arithmetic includes the +1 word adjustment."""
        assert branch_target(0x100, -1) == 0x100
        assert branch_target(0x100, 0) == 0x102
        assert branch_target(0x100, 5) == 0x10C


# =============================================================================
# Word Stream Tests
# =============================================================================

class TestWordStream:
    """Tests for the run cursor."""

    def test_peek_does_not_consume(self):
        """Test non-consuming lookahead."""
        stream = WordStream(make_run([0x1111, 0x2222]))

        assert stream.peek_next() == 0x1111
        assert stream.peek_next() == 0x1111
        assert stream.position == 0

    def test_advance(self):
        """Test consuming words in order."""
        stream = WordStream(make_run([0x1111, 0x2222]))

        assert stream.advance() == 0x1111
        assert stream.advance() == 0x2222
        assert stream.exhausted

    def test_end_of_run(self):
        """Test None at end of run."""
        stream = WordStream(make_run([0x1111]))
        stream.advance()

        assert stream.peek_next() is None
        assert stream.advance() is None
        assert stream.position == 1

    def test_address(self):
        """Test byte address of the next word."""
        stream = WordStream(make_run([0, 0, 0], base_address=0x200))

        assert stream.address == 0x200
        stream.advance()
        assert stream.address == 0x202
        assert stream.remaining == 2

    def test_run_not_mutated(self):
        """Test that reading leaves the run intact."""
        run = make_run([1, 2, 3])
        stream = WordStream(run)
        while stream.advance() is not None:
            pass

        assert run.words == [1, 2, 3]

    def test_empty_run(self):
        """Test a run without words."""
        stream = WordStream(make_run([]))
        assert stream.exhausted


# =============================================================================
# Decoder Tests
# =============================================================================

class TestDecoder:
    """Tests for single-instruction decoding with overloads enabled."""

    def setup_method(self):
        """Create decoder instance for each test."""
        self.decoder = InstructionDecoder()

    def decode(self, *words, address=0):
        return self.decoder.decode(WordStream(make_run(words, base_address=address)))

    def text(self, *words, address=0):
        return str(self.decode(*words, address=address))

    # -------------------------------------------------------------------------
    # Register-Register
    # -------------------------------------------------------------------------

    def test_nop(self):
        """Test word 0x0000."""
        instr = self.decode(0x0000)

        assert instr.mnemonic == "nop"
        assert instr.operands == ()
        assert instr.size_words == 1
        assert instr.target is None

    def test_add(self):
        """Test add with split r field."""
        assert self.text(0x0C10) == "add r1, r0"
        assert self.text(0x0C01) == "add r0, r1"

    def test_add_high_registers(self):
        """Test the r field's high bit."""
        # add r31, r31 is lsl; use r30, r31
        assert self.text(0x0FEF) == "add r30, r31"

    def test_register_pairs(self):
        """Test movw renders both halves."""
        assert self.text(0x01FC) == "movw r31:r30, r25:r24"

    def test_multiply_registers(self):
        """Test restricted multiply operands."""
        assert self.text(0x0201) == "muls r16, r17"
        assert self.text(0x0309) == "fmul r16, r17"
        assert self.text(0x9C12) == "mul r1, r2"

    def test_compare_and_move(self):
        """Test other two-register forms."""
        assert self.text(0x0403) == "cpc r0, r3"
        assert self.text(0x1412) == "cp r1, r2"
        assert self.text(0x2C12) == "mov r1, r2"
        assert self.text(0x2412) == "eor r1, r2"

    # -------------------------------------------------------------------------
    # Immediate
    # -------------------------------------------------------------------------

    def test_immediates(self):
        """Test register-immediate forms use r16..r31."""
        assert self.text(0xE081) == "ldi r24, 0x1"
        assert self.text(0x3180) == "cpi r24, 0x10"
        assert self.text(0x5001) == "subi r16, 0x1"
        assert self.text(0x6F0F) == "ori r16, 0xff"

    def test_word_immediates(self):
        """Test adiw/sbiw register pairs."""
        assert self.text(0x9601) == "adiw r25:r24, 0x1"
        assert self.text(0x9760) == "sbiw r29:r28, 0x10"

    # -------------------------------------------------------------------------
    # Loads and Stores
    # -------------------------------------------------------------------------

    def test_indirect_loads(self):
        """Test ld/ldd forms."""
        assert self.text(0x8180) == "ld r24, Z"
        assert self.text(0x8189) == "ldd r24, Y+1"
        assert self.text(0x900D) == "ld r0, X+"
        assert self.text(0x9005) == "lpm r0, Z+"

    def test_indirect_stores(self):
        """Test st/std forms."""
        assert self.text(0x8392) == "std Z+2, r25"
        assert self.text(0x8208) == "st Y, r0"
        assert self.text(0x921E) == "st -X, r1"

    def test_stack(self):
        """Test push/pop."""
        assert self.text(0x93CF) == "push r28"
        assert self.text(0x91CF) == "pop r28"

    def test_lds(self):
        """Test two-word lds."""
        instr = self.decode(0x9180, 0x0100)

        assert str(instr) == "lds r24, 0x100"
        assert instr.size_words == 2
        assert instr.raw_words == (0x9180, 0x0100)

    def test_sts(self):
        """Test two-word sts."""
        assert self.text(0x9380, 0x0100) == "sts 0x100, r24"

    # -------------------------------------------------------------------------
    # I/O and Bits
    # -------------------------------------------------------------------------

    def test_io(self):
        """Test in/out address fields."""
        assert self.text(0xB78F) == "in r24, 0x3f"
        assert self.text(0xBE0F) == "out 0x3f, r0"

    def test_io_bits(self):
        """Test cbi/sbi family."""
        assert self.text(0x9A2D) == "sbi 0x5, 5"
        assert self.text(0x982D) == "cbi 0x5, 5"

    def test_register_bits(self):
        """Test bld/bst/sbrc/sbrs."""
        assert self.text(0xF853) == "bld r5, 3"
        assert self.text(0xFF87) == "sbrs r24, 7"

    def test_control(self):
        """Test no-operand instructions."""
        assert self.text(0x9508) == "ret"
        assert self.text(0x9518) == "reti"
        assert self.text(0x95C8) == "lpm"
        assert self.text(0x9409) == "ijmp"
        assert self.text(0x95A8) == "wdr"

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    def test_rjmp_self_loop(self):
        """Test sign bit set with all-ones magnitude targets itself."""
        instr = self.decode(0xCFFF, address=0x40)

        assert instr.mnemonic == "rjmp"
        assert instr.target == 0x40
        assert instr.operands == (".+0x0",)

    def test_rjmp_forward(self):
        """Test zero displacement skips to the next word."""
        instr = self.decode(0xC000)

        assert instr.target == 0x2
        assert instr.operands == (".+0x2",)

    def test_rjmp_backward(self):
        """Test negative displacement."""
        instr = self.decode(0xCFFE, address=0x10)

        assert instr.target == 0x0E
        assert instr.operands == (".-0x2",)

    def test_rjmp_most_negative(self):
        """Test the largest backward jump."""
        instr = self.decode(0xC800, address=0x1000)
        assert instr.target == 0x2

    def test_rcall(self):
        """Test relative call."""
        instr = self.decode(0xD001)

        assert instr.mnemonic == "rcall"
        assert instr.target == 0x4

    def test_named_branch_backward(self):
        """Test brne with a negative 7-bit displacement."""
        instr = self.decode(0xF7E9, address=0x10)

        assert instr.mnemonic == "brne"
        assert instr.operands == (".-0x4",)
        assert instr.target == 0x0C

    def test_named_branch_forward(self):
        """Test breq with a positive displacement."""
        instr = self.decode(0xF009)

        assert str(instr) == "breq .+0x4"
        assert instr.target == 0x4

    def test_jmp(self):
        """Test absolute jump target is a byte address."""
        instr = self.decode(0x940C, 0x0034)

        assert str(instr) == "jmp 0x68"
        assert instr.target == 0x68
        assert instr.size_words == 2

    def test_call(self):
        """Test absolute call."""
        instr = self.decode(0x940E, 0x0100)

        assert instr.mnemonic == "call"
        assert instr.target == 0x200

    def test_jmp_high_address_bits(self):
        """Test the k bits in the opcode word form bits 21..17."""
        instr = self.decode(0x95FD, 0xFFFF)
        assert instr.target == 0x7FFFFE

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def test_unknown_opcode(self):
        """Test word matching no pattern."""
        with pytest.raises(UnknownOpcodeError) as exc_info:
            self.decode(0x0001, address=0x20)

        assert exc_info.value.address == 0x20
        assert exc_info.value.word == 0x0001
        assert isinstance(exc_info.value, DecodeError)

    def test_unknown_opcode_ffff(self):
        """Test erased flash word."""
        with pytest.raises(UnknownOpcodeError):
            self.decode(0xFFFF)

    @pytest.mark.parametrize("word,mnemonic", [
        (0x940C, "jmp"),
        (0x940E, "call"),
        (0x9180, "lds"),
        (0x9380, "sts"),
    ])
    def test_truncated(self, word, mnemonic):
        """Test two-word instruction at end of run."""
        with pytest.raises(TruncatedInstructionError) as exc_info:
            self.decode(word)

        assert exc_info.value.mnemonic == mnemonic
        assert exc_info.value.address == 0

    def test_decode_exhausted_stream(self):
        """Test decoding with no word left."""
        with pytest.raises(ValueError):
            self.decoder.decode(WordStream(make_run([])))


class TestPseudoInstructions:
    """Tests for pseudo-instruction naming on and off."""

    def setup_method(self):
        """Create one decoder per overload setting."""
        self.with_overloads = InstructionDecoder(overloads_enabled=True)
        self.without_overloads = InstructionDecoder(overloads_enabled=False)

    def both(self, word):
        stream_on = WordStream(make_run([word]))
        stream_off = WordStream(make_run([word]))
        return (
            str(self.with_overloads.decode(stream_on)),
            str(self.without_overloads.decode(stream_off)),
        )

    @pytest.mark.parametrize("word,pseudo,canonical", [
        (0x0C00, "lsl r0", "add r0, r0"),
        (0x1C11, "rol r1", "adc r1, r1"),
        (0x2011, "tst r1", "and r1, r1"),
        (0x2411, "clr r1", "eor r1, r1"),
        (0xEF0F, "ser r16", "ldi r16, 0xff"),
        (0xEF8F, "ser r24", "ldi r24, 0xff"),
    ])
    def test_register_forms(self, word, pseudo, canonical):
        """Test d == r and all-ones immediate substitutions."""
        assert self.both(word) == (pseudo, canonical)

    def test_different_registers_not_substituted(self):
        """Test that d != r keeps the canonical name."""
        assert self.both(0x0C10) == ("add r1, r0", "add r1, r0")

    def test_ldi_not_all_ones(self):
        """Test that other immediates stay ldi."""
        assert self.both(0xEF0E) == ("ldi r16, 0xfe", "ldi r16, 0xfe")

    @pytest.mark.parametrize("s,name", list(enumerate(
        ["sec", "sez", "sen", "sev", "ses", "seh", "set", "sei"]
    )))
    def test_flag_set(self, s, name):
        """Test bset named forms."""
        word = 0x9408 | (s << 4)
        assert self.both(word) == (name, f"bset {s}")

    @pytest.mark.parametrize("s,name", list(enumerate(
        ["clc", "clz", "cln", "clv", "cls", "clh", "clt", "cli"]
    )))
    def test_flag_clear(self, s, name):
        """Test bclr named forms."""
        word = 0x9488 | (s << 4)
        assert self.both(word) == (name, f"bclr {s}")

    @pytest.mark.parametrize("s,name", list(enumerate(
        ["brcs", "breq", "brmi", "brvs", "brlt", "brhs", "brts", "brie"]
    )))
    def test_branch_set(self, s, name):
        """Test brbs named forms."""
        word = 0xF008 | s  # k = +1
        assert self.both(word) == (f"{name} .+0x4", f"brbs {s}, .+0x4")

    @pytest.mark.parametrize("s,name", list(enumerate(
        ["brcc", "brne", "brpl", "brvc", "brge", "brhc", "brtc", "brid"]
    )))
    def test_branch_clear(self, s, name):
        """Test brbc named forms."""
        word = 0xF7F8 | s  # k = -1, branch to itself
        assert self.both(word) == (f"{name} .+0x0", f"brbc {s}, .+0x0")

    def test_brbc_uses_full_displacement(self):
        """Test brbc negative displacement uses all six magnitude bits."""
        instr = self.without_overloads.decode(WordStream(make_run([0xF7E9], base_address=0x10)))
        assert instr.target == 0x0C


class TestInstructionTable:
    """Structural tests for the decode table."""

    def test_templates_are_16_bits(self):
        """Test every template compiles."""
        for pattern in INSTRUCTION_TABLE:
            assert len(pattern.template.replace("_", "")) == 16

    def test_canonical_entries_are_exclusive(self):
        """Test that no two canonical templates overlap."""
        canonical = [p for p in INSTRUCTION_TABLE if not p.overload]
        for i, first in enumerate(canonical):
            for second in canonical[i + 1:]:
                if first.template == second.template:
                    continue
                common = first.mask & second.mask
                assert (first.value ^ second.value) & common, (
                    f"{first.mnemonic} '{first.template}' overlaps "
                    f"{second.mnemonic} '{second.template}'"
                )

    def test_canonical_entries_decode_own_encoding(self):
        """Test each canonical entry decodes its base word."""
        decoder = InstructionDecoder(overloads_enabled=False)
        for pattern in INSTRUCTION_TABLE:
            if pattern.overload:
                continue
            match = decoder.find_pattern(pattern.value)
            assert match is not None
            assert match.template == pattern.template

    def test_overload_entries_precede_canonical(self):
        """Test that each overload entry wins over its canonical entry."""
        decoder = InstructionDecoder(overloads_enabled=True)
        for pattern in INSTRUCTION_TABLE:
            if pattern.overload and pattern.condition is None:
                assert decoder.find_pattern(pattern.value) is pattern


class TestIterDecode:
    """Tests for decoding whole runs."""

    def setup_method(self):
        self.decoder = InstructionDecoder()

    def test_addresses_advance_by_size(self):
        """Test two-word instructions advance the address by 4."""
        instructions = self.decoder.decode_words([0x940C, 0x0034, 0x0000], start_address=0x100)

        assert [i.address for i in instructions] == [0x100, 0x104]
        assert [i.mnemonic for i in instructions] == ["jmp", "nop"]

    def test_output_before_error_is_kept(self):
        """Test that instructions decoded before an error are yielded."""
        stream = WordStream(make_run([0x0000, 0x9508, 0xFFFF, 0x0000]))
        decoded = []

        with pytest.raises(UnknownOpcodeError):
            for instr in self.decoder.iter_decode(stream):
                decoded.append(instr.mnemonic)

        assert decoded == ["nop", "ret"]
        assert stream.position == 3


# =============================================================================
# Formatter Tests
# =============================================================================

class TestFormatter:
    """Tests for listing line formatting."""

    def test_no_operands(self):
        """Test instruction without operands."""
        instr = DecodedInstruction(address=0, mnemonic="nop")
        assert format_instruction(instr) == "0x0: nop"

    def test_operands(self):
        """Test comma-separated operands."""
        instr = DecodedInstruction(address=0x1A, mnemonic="ldi", operands=("r24", "0xff"))
        assert format_instruction(instr) == "0x1a: ldi r24, 0xff"

    def test_target_comment(self):
        """Test trailing target comment."""
        instr = DecodedInstruction(
            address=0x10, mnemonic="rjmp", operands=(".-0x2",), target=0x0E
        )
        assert format_instruction(instr) == "0x10: rjmp .-0x2 ; 0xe"

    def test_decoded_jump(self):
        """Test formatting of a decoded absolute jump."""
        instr = InstructionDecoder().decode_words([0x940C, 0x0034])[0]
        assert format_instruction(instr) == "0x0: jmp 0x68 ; 0x68"

    def test_register_pair(self):
        """Test high half first."""
        assert format_register_pair(24) == "r25:r24"

    def test_relative(self):
        """Test relative operand signs."""
        assert format_relative(0) == ".+0x0"
        assert format_relative(6) == ".+0x6"
        assert format_relative(-4) == ".-0x4"
