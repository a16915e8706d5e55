"""
Decoder tests - instruction word layout, opcode table, typed decode.
"""

import pytest

from intcode.decoder import (
    OPCODES, Instruction, Mode, Opcode, Parameter,
    decode_instruction, disassemble, peek_opcode, split_word,
)
from intcode.errors import InvalidAddress, InvalidOpcode, InvalidParameterMode, InvalidWriteTarget
from intcode.memory import Memory, parse_program


def _mem(text: str) -> Memory:
    return Memory(parse_program(text))


class TestSplitWord:
    def test_plain_opcode(self):
        assert split_word(2) == (2, (0, 0, 0))

    def test_modes_low_digit_first(self):
        """1002: opcode 02, operand 1 position, operand 2 immediate, operand 3 position."""
        assert split_word(1002) == (2, (0, 1, 0))

    def test_all_three_modes(self):
        assert split_word(21101) == (1, (1, 1, 2))

    def test_halt(self):
        assert split_word(99) == (99, (0, 0, 0))

    def test_negative_word(self):
        with pytest.raises(InvalidOpcode):
            split_word(-1)

    def test_extra_mode_digits(self):
        """1000001 has a fourth mode digit, which no instruction can use."""
        with pytest.raises(InvalidParameterMode):
            split_word(1000001)


class TestOpcodeTable:
    def test_arities(self):
        arity = {op: OPCODES[op][1] for op in Opcode}
        assert arity[Opcode.ADD] == 3
        assert arity[Opcode.MULTIPLY] == 3
        assert arity[Opcode.LESS_THAN] == 3
        assert arity[Opcode.EQUALS] == 3
        assert arity[Opcode.JUMP_IF_TRUE] == 2
        assert arity[Opcode.JUMP_IF_FALSE] == 2
        assert arity[Opcode.INPUT] == 1
        assert arity[Opcode.OUTPUT] == 1
        assert arity[Opcode.ADJUST_RELATIVE_BASE] == 1
        assert arity[Opcode.HALT] == 0

    def test_every_opcode_has_an_entry(self):
        assert set(OPCODES) == set(Opcode)


class TestDecodeInstruction:
    def test_multiply_mixed_modes(self):
        """1002,4,3,4,33 - MUL [4], #3 -> [4]"""
        instr = decode_instruction(_mem("1002,4,3,4,33"), 0)
        assert instr == Instruction(
            address=0, word=1002, opcode=Opcode.MULTIPLY,
            params=(
                Parameter(Mode.POSITION, 4, 4),
                Parameter(Mode.IMMEDIATE, 3, 3),
                Parameter(Mode.POSITION, 4, 4),
            ),
        )
        assert instr.size == 4
        assert instr.target == Parameter(Mode.POSITION, 4, 4)

    def test_relative_resolved_against_base(self):
        instr = decode_instruction(_mem("204,-34"), 0, relative_base=50)
        assert instr.opcode == Opcode.OUTPUT
        assert instr.params[0] == Parameter(Mode.RELATIVE, -34, 16)
        assert instr.target is None

    def test_decode_at_offset(self):
        instr = decode_instruction(_mem("99,1101,1,2,3"), 1)
        assert instr.address == 1
        assert instr.opcode == Opcode.ADD

    def test_halt_has_no_params(self):
        instr = decode_instruction(_mem("99"), 0)
        assert instr.opcode == Opcode.HALT
        assert instr.params == ()
        assert instr.size == 1

    def test_operands_past_end_read_zero(self):
        instr = decode_instruction(_mem("1"), 0)
        assert [p.raw for p in instr.params] == [0, 0, 0]

    def test_unknown_opcode(self):
        with pytest.raises(InvalidOpcode) as exc:
            decode_instruction(_mem("1,0,0,0,42"), 4)
        assert exc.value.address == 4

    def test_unknown_mode(self):
        with pytest.raises(InvalidParameterMode):
            decode_instruction(_mem("301,0,0,0"), 0)

    def test_extra_mode_digits_carry_address(self):
        with pytest.raises(InvalidParameterMode) as exc:
            decode_instruction(_mem("99,1000001,0,0,0"), 1)
        assert exc.value.address == 1

    def test_unknown_mode_is_opcode_class_failure(self):
        with pytest.raises(InvalidOpcode):
            decode_instruction(_mem("304,0"), 0)

    def test_immediate_write_target(self):
        with pytest.raises(InvalidWriteTarget):
            decode_instruction(_mem("11101,1,1,5,99"), 0)

    def test_immediate_input_target(self):
        with pytest.raises(InvalidWriteTarget):
            decode_instruction(_mem("103,5"), 0)

    def test_negative_position_operand(self):
        with pytest.raises(InvalidAddress):
            decode_instruction(_mem("4,-1"), 0)

    def test_listing_text(self):
        instr = decode_instruction(_mem("21101,7,-2,3"), 0, relative_base=5)
        assert str(instr) == "ADD #7, #-2, rb+3"


class TestPeekAndDisassemble:
    def test_peek_opcode(self):
        mem = _mem("1003,5,99")
        assert peek_opcode(mem, 0) == 3
        assert peek_opcode(mem, 2) == 99
        assert peek_opcode(mem, 50) == 0

    def test_peek_negative_word(self):
        assert peek_opcode(_mem("-3"), 0) == -3

    def test_disassemble(self):
        lines = disassemble(_mem("3,9,1001,9,-4,9,4,9,99,0"))
        assert [line.split(':', 1)[1].split()[0] for line in lines] == [
            'IN', 'ADD', 'OUT', 'HLT', 'DATA0',
        ]
        assert lines[0] == "     0: IN  [9]"

    def test_disassemble_marks_data(self):
        lines = disassemble(_mem("99,42,-7"))
        assert lines[1] == "     1: DATA42"
        assert lines[2] == "     2: DATA-7"

    def test_disassemble_relative_without_base(self):
        lines = disassemble(_mem("204,-1,99"))
        assert lines[0] == "     0: OUT rb-1"
