"""
Intcode Virtual Machine
=======================
A cooperative, single-threaded VM for the Intcode toy instruction set:
flat auto-growing integer memory, position / immediate / relative
addressing, and input that suspends the machine instead of blocking a
thread, so callers can drive one machine step by step or wire several
into a pipeline.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌────────────┐
    │ Program  │───>│  Memory  │───>│ Decoder  │───>│  Computer  │
    │ (text)   │    │ (arena)  │    │ (instr)  │    │ (dispatch) │
    └──────────┘    └──────────┘    └──────────┘    └────────────┘
                                                          │ in/out queues
                                                    ┌────────────┐
                                                    │  Pipeline  │
                                                    │ (drivers)  │
                                                    └────────────┘

    - memory.py:   parse_program, Memory (read / write / resolve)
    - decoder.py:  opcode table, Instruction, decode_instruction, disassemble
    - computer.py: Computer, RunState
    - pipeline.py: run_chain, run_feedback_loop
    - errors.py:   IntcodeError hierarchy
"""

__version__ = "0.1.0"

from .errors import (
    IntcodeError, InvalidAddress, InvalidOpcode, InvalidParameterMode,
    InvalidWriteTarget, ProgramFormatError, PipelineError, PipelineDeadlock,
)
from .memory import Memory, parse_program
from .decoder import Mode, Opcode, Instruction, Parameter, decode_instruction, disassemble
from .computer import Computer, RunState
from .pipeline import run_chain, run_feedback_loop


def run_program(text: str, inputs=(), max_steps=None) -> list:
    """Load program text, run it with the given inputs, return all outputs.

    Stops when the machine halts, blocks on input, or max_steps
    instructions have executed.
    """
    cpu = Computer.from_program_and_input(text, inputs)
    cpu.run(max_steps=max_steps)
    return cpu.get_outputs()
