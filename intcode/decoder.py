"""
Intcode VM - Instruction Decoder

Instruction word layout (decimal digits):

      A B C D E
      │ │ │ └─┴── opcode (low two digits)
      │ │ └────── mode of operand 1
      │ └──────── mode of operand 2
      └────────── mode of operand 3

Missing mode digits default to POSITION (0). Example: 1002 decodes to
MUL with operand modes (POSITION, IMMEDIATE, POSITION).

The opcode table maps each opcode to (mnemonic, arity, writes_last).
writes_last marks instructions whose final operand is a write target;
a write target in IMMEDIATE mode is a malformed program.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from .errors import IntcodeError, InvalidOpcode, InvalidParameterMode, InvalidWriteTarget
from .memory import Memory

__all__ = [
    'Mode', 'Opcode', 'OPCODES', 'Parameter', 'Instruction',
    'split_word', 'decode_instruction', 'peek_opcode', 'disassemble',
]


class Mode(IntEnum):
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


class Opcode(IntEnum):
    ADD = 1
    MULTIPLY = 2
    INPUT = 3
    OUTPUT = 4
    JUMP_IF_TRUE = 5
    JUMP_IF_FALSE = 6
    LESS_THAN = 7
    EQUALS = 8
    ADJUST_RELATIVE_BASE = 9
    HALT = 99


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: opcode -> (mnemonic, arity, writes_last)

OPCODES: Dict[Opcode, Tuple[str, int, bool]] = {
    Opcode.ADD:                  ('ADD', 3, True),
    Opcode.MULTIPLY:             ('MUL', 3, True),
    Opcode.INPUT:                ('IN',  1, True),
    Opcode.OUTPUT:               ('OUT', 1, False),
    Opcode.JUMP_IF_TRUE:         ('JNZ', 2, False),
    Opcode.JUMP_IF_FALSE:        ('JZ',  2, False),
    Opcode.LESS_THAN:            ('LT',  3, True),
    Opcode.EQUALS:               ('EQ',  3, True),
    Opcode.ADJUST_RELATIVE_BASE: ('ARB', 1, False),
    Opcode.HALT:                 ('HLT', 0, False),
}

# Most operands any instruction takes; sizes the mode-digit split
MAX_ARITY = max(arity for _, arity, _ in OPCODES.values())


@dataclass(frozen=True)
class Parameter:
    """One decoded operand.

    resolved is the literal value for IMMEDIATE operands and the
    effective address for POSITION and RELATIVE operands.
    """
    mode: Mode
    raw: int
    resolved: int

    def __str__(self) -> str:
        if self.mode == Mode.IMMEDIATE:
            return f'#{self.raw}'
        if self.mode == Mode.RELATIVE:
            return f'rb{self.raw:+d}'
        return f'[{self.raw}]'


@dataclass(frozen=True)
class Instruction:
    """A fully decoded instruction at a given address."""
    address: int
    word: int
    opcode: Opcode
    params: Tuple[Parameter, ...]

    @property
    def mnemonic(self) -> str:
        return OPCODES[self.opcode][0]

    @property
    def arity(self) -> int:
        return OPCODES[self.opcode][1]

    @property
    def size(self) -> int:
        """Words occupied: the instruction word plus its operands."""
        return 1 + self.arity

    @property
    def target(self) -> Optional[Parameter]:
        """The write-target operand, if this instruction writes memory."""
        if OPCODES[self.opcode][2]:
            return self.params[-1]
        return None

    def __str__(self) -> str:
        operands = ', '.join(str(p) for p in self.params)
        return f'{self.mnemonic:4s}{operands}'.rstrip()


def split_word(word: int) -> Tuple[int, Tuple[int, ...]]:
    """Split an instruction word into (opcode_number, operand_modes).

    Returns MAX_ARITY modes, operand 1 first. Digits beyond the last
    mode position raise InvalidParameterMode.
    """
    if word < 0:
        raise InvalidOpcode(f"Negative instruction word {word}")
    opcode, digits = word % 100, word // 100
    modes = []
    for _ in range(MAX_ARITY):
        modes.append(digits % 10)
        digits //= 10
    if digits:
        raise InvalidParameterMode(
            f"Instruction word {word} has more than {MAX_ARITY} mode digits")
    return opcode, tuple(modes)


def peek_opcode(memory: Memory, ip: int) -> int:
    """Return the opcode number at ip without decoding its operands."""
    word = memory.read(ip)
    return word % 100 if word >= 0 else word


def decode_instruction(memory: Memory, ip: int, relative_base: int = 0,
                       resolve: bool = True) -> Instruction:
    """Decode the instruction at ip into a typed Instruction.

    With resolve=False operands are not resolved against memory
    (Parameter.resolved is the raw operand); used for static listings
    where the relative base is unknown.

    Raises:
        InvalidAddress: ip or a resolved operand address is negative
        InvalidOpcode: unknown opcode
        InvalidParameterMode: unknown mode digit on a used operand, or
            mode digits past the last operand position
        InvalidWriteTarget: write target in immediate mode
    """
    word = memory.read(ip)
    try:
        number, modes = split_word(word)
    except InvalidOpcode as exc:
        raise type(exc)(str(exc), ip) from None

    try:
        opcode = Opcode(number)
    except ValueError:
        raise InvalidOpcode(f"Unknown opcode {number} in word {word}", ip) from None

    _, arity, writes_last = OPCODES[opcode]

    params = []
    for i in range(arity):
        try:
            mode = Mode(modes[i])
        except ValueError:
            raise InvalidParameterMode(
                f"Unknown mode {modes[i]} for operand {i + 1} of word {word}", ip) from None

        if writes_last and i == arity - 1 and mode == Mode.IMMEDIATE:
            raise InvalidWriteTarget(
                f"Write target of {OPCODES[opcode][0]} is in immediate mode (word {word})", ip)

        raw = memory.read(ip + 1 + i)
        resolved = memory.resolve(raw, mode, relative_base) if resolve else raw
        params.append(Parameter(mode, raw, resolved))

    return Instruction(ip, word, opcode, tuple(params))


def disassemble(memory: Memory, start: int = 0, end: Optional[int] = None) -> List[str]:
    """Produce a static listing of memory[start:end].

    Intcode mixes code and data freely, so this is best-effort: a word
    that does not decode is listed as DATA and decoding resumes at the
    next word. Relative operands are shown symbolically (base unknown).
    """
    if end is None:
        end = len(memory)

    lines = []
    ip = start
    while ip < end:
        try:
            instr = decode_instruction(memory, ip, resolve=False)
        except IntcodeError:
            lines.append(f'{ip:6d}: {"DATA":4s}{memory.read(ip)}')
            ip += 1
            continue
        lines.append(f'{ip:6d}: {instr}')
        ip += instr.size
    return lines
