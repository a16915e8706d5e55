"""
Intcode VM - Computer (executor + run controller)

This is the top-level class that integrates:
  - Memory map (memory.py)
  - Instruction decoder (decoder.py)
  - Opcode handlers (dispatch table below)
  - Input / output queues and the run state

Execution model (one step):
  1. If HALTED, or the next word is IN and no input is queued: do nothing
  2. Decode the word at IP, resolving operands against the relative base
  3. Dispatch to the opcode handler: update memory, IP, relative base
  4. Bump the step counter, append to the trace if enabled

Run states:
  RUNNING           - next step will execute an instruction
  BLOCKED_ON_INPUT  - next instruction is IN and the input queue is empty;
                      push_input() makes the machine RUNNING again, the IN
                      is retried on the next step()
  HALTED            - HLT executed; terminal, step() is a no-op

Nothing here runs in the background. Several machines form a pipeline
only when a caller alternates step calls between them and copies outputs
into inputs (see pipeline.py).
"""

import logging
import uuid
from collections import deque
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from .decoder import Instruction, Mode, Opcode, Parameter, decode_instruction, peek_opcode
from .memory import Memory, parse_program

__all__ = ['Computer', 'RunState']

log = logging.getLogger(__name__)


class RunState(Enum):
    RUNNING = 'RUNNING'
    BLOCKED_ON_INPUT = 'BLOCKED_ON_INPUT'
    HALTED = 'HALTED'


class Computer:
    """Intcode virtual machine.

    Usage:
        cpu = Computer.from_program_and_input("3,0,4,0,99", [42])
        cpu.run()
        cpu.get_outputs()     # [42]

    Driving a machine incrementally:
        cpu = Computer.from_program(text)
        while not cpu.is_halted():
            if cpu.is_blocked_on_input():
                cpu.push_input(next_value())
            cpu.step_until_output()
            while cpu.has_output():
                handle(cpu.get_output())
    """

    def __init__(self, program: Iterable[int], inputs: Iterable[int] = (),
                 trace: bool = False):
        self.id = uuid.uuid4().hex[:8]
        self._program = tuple(program)
        self.mem = Memory(self._program)

        self._ip = 0
        self._relative_base = 0
        self._halted = False
        self._steps = 0

        # Input FIFO, and the whole output history with a read cursor
        self._inputs = deque(inputs)
        self._outputs: List[int] = []
        self._output_index = 0

        self._trace = trace
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Construction
    # ══════════════════════════════════════════════

    @classmethod
    def from_program(cls, text: str, **kwargs) -> 'Computer':
        """Build a machine from comma-separated program text."""
        return cls(parse_program(text), **kwargs)

    @classmethod
    def from_program_and_input(cls, text: str, initial_inputs: Iterable[int],
                               **kwargs) -> 'Computer':
        """Build a machine and pre-seed its input queue."""
        return cls(parse_program(text), inputs=initial_inputs, **kwargs)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> RunState:
        """Execute one instruction, unless halted or blocked on input.

        Returns the run state after the step. The instruction is always
        decoded first, so fatal decode errors (InvalidAddress,
        InvalidOpcode, InvalidWriteTarget) propagate even from an IN that
        would block, and before the instruction changes anything.
        """
        if self._halted:
            return RunState.HALTED

        instr = decode_instruction(self.mem, self._ip, self._relative_base)
        if instr.opcode == Opcode.INPUT and not self._inputs:
            log.debug("[%s] blocked on input at %d", self.id, instr.address)
            return RunState.BLOCKED_ON_INPUT

        log.debug("[%s] %d: %s", self.id, instr.address, instr)
        if self._trace:
            self._trace_output.append(
                f"[{instr.address:5d}] {str(instr):24s} rb={self._relative_base}")

        self._dispatch[instr.opcode](instr)
        self._steps += 1
        return self.state

    def step_until_output(self) -> RunState:
        """Step until a new output is queued, the machine halts, or it blocks.

        This is the suspension point for output-driven callers: after it
        returns, check has_output() / is_halted() / is_blocked_on_input().
        """
        start = len(self._outputs)
        while len(self._outputs) == start:
            state = self.step()
            if state is not RunState.RUNNING:
                return state
        return self.state

    def run(self, max_steps: Optional[int] = None) -> RunState:
        """Step until halted or blocked on input.

        Args:
            max_steps: Stop after this many executed instructions even if
                the machine is still RUNNING. None means no bound; a
                program that loops without I/O then never returns.

        Returns:
            RunState the machine stopped in
        """
        executed = 0
        while max_steps is None or executed < max_steps:
            state = self.step()
            if state is not RunState.RUNNING:
                return state
            executed += 1
        return self.state

    # ══════════════════════════════════════════════
    # Status
    # ══════════════════════════════════════════════

    @property
    def state(self) -> RunState:
        if self._halted:
            return RunState.HALTED
        if self.is_blocked_on_input():
            return RunState.BLOCKED_ON_INPUT
        return RunState.RUNNING

    def is_halted(self) -> bool:
        return self._halted

    def is_blocked_on_input(self) -> bool:
        """True if the next instruction is IN and no input is queued."""
        if self._halted or self._inputs or self._ip < 0:
            return False
        return peek_opcode(self.mem, self._ip) == Opcode.INPUT

    def has_output(self) -> bool:
        """True if there is at least one output not yet taken by get_output()."""
        return self._output_index < len(self._outputs)

    @property
    def ip(self) -> int:
        return self._ip

    @property
    def relative_base(self) -> int:
        return self._relative_base

    @property
    def steps(self) -> int:
        """Number of instructions executed since creation or reset."""
        return self._steps

    # ══════════════════════════════════════════════
    # Data exchange
    # ══════════════════════════════════════════════

    def push_input(self, value: int):
        """Queue one input value. A blocked machine resumes on its next step()."""
        self._inputs.append(value)

    def get_output(self) -> Optional[int]:
        """Take the oldest unread output, or None if there is none."""
        if self._output_index >= len(self._outputs):
            return None
        value = self._outputs[self._output_index]
        self._output_index += 1
        return value

    def get_outputs(self) -> List[int]:
        """Return a copy of every output produced this run (read or not)."""
        return list(self._outputs)

    def pending_output_count(self) -> int:
        """Number of outputs get_output() has not returned yet."""
        return len(self._outputs) - self._output_index

    def set(self, address: int, value: int):
        """Poke memory directly, e.g. to patch a flag before running."""
        self.mem.write(address, value)

    def __getitem__(self, address):
        return self.mem[address]

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instr)
    # Every non-jump handler advances IP by instr.size itself. step() never
    # dispatches IN while the input queue is empty.

    def _build_dispatch(self) -> Dict[Opcode, Callable[[Instruction], None]]:
        return {
            Opcode.ADD:                  self._op_add,
            Opcode.MULTIPLY:             self._op_mul,
            Opcode.INPUT:                self._op_in,
            Opcode.OUTPUT:               self._op_out,
            Opcode.JUMP_IF_TRUE:         self._op_jnz,
            Opcode.JUMP_IF_FALSE:        self._op_jz,
            Opcode.LESS_THAN:            self._op_lt,
            Opcode.EQUALS:               self._op_eq,
            Opcode.ADJUST_RELATIVE_BASE: self._op_arb,
            Opcode.HALT:                 self._op_hlt,
        }

    def _value(self, param: Parameter) -> int:
        """Effective operand value: the literal, or the cell it addresses."""
        if param.mode == Mode.IMMEDIATE:
            return param.resolved
        return self.mem.read(param.resolved)

    def _store(self, instr: Instruction, value: int):
        self.mem.write(instr.target.resolved, value)
        self._ip += instr.size

    def _op_add(self, instr):
        a, b, _ = instr.params
        self._store(instr, self._value(a) + self._value(b))

    def _op_mul(self, instr):
        a, b, _ = instr.params
        self._store(instr, self._value(a) * self._value(b))

    def _op_in(self, instr):
        self._store(instr, self._inputs.popleft())

    def _op_out(self, instr):
        value = self._value(instr.params[0])
        self._outputs.append(value)
        self._ip += instr.size
        log.debug("[%s] output %d", self.id, value)

    def _op_jnz(self, instr):
        cond, target = instr.params
        if self._value(cond) != 0:
            self._ip = self._value(target)
        else:
            self._ip += instr.size

    def _op_jz(self, instr):
        cond, target = instr.params
        if self._value(cond) == 0:
            self._ip = self._value(target)
        else:
            self._ip += instr.size

    def _op_lt(self, instr):
        a, b, _ = instr.params
        self._store(instr, 1 if self._value(a) < self._value(b) else 0)

    def _op_eq(self, instr):
        a, b, _ = instr.params
        self._store(instr, 1 if self._value(a) == self._value(b) else 0)

    def _op_arb(self, instr):
        self._relative_base += self._value(instr.params[0])
        self._ip += instr.size

    def _op_hlt(self, instr):
        self._halted = True
        log.debug("[%s] halted at %d after %d steps", self.id, instr.address, self._steps + 1)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record every executed instruction (see get_trace())."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def display(self) -> str:
        """One-line machine status for debugging."""
        return (f"[{self.id}] IP={self._ip} RB={self._relative_base} "
                f"STATE={self.state.value} STEPS={self._steps} "
                f"IN={len(self._inputs)} OUT={len(self._outputs)}"
                f"/{self.pending_output_count()} pending")

    def __repr__(self) -> str:
        return f"Computer(id={self.id!r}, ip={self._ip}, state={self.state.value})"

    def reset(self):
        """Reload the original program and clear all run state."""
        self.mem.load(self._program)
        self._ip = 0
        self._relative_base = 0
        self._halted = False
        self._steps = 0
        self._inputs.clear()
        self._outputs.clear()
        self._output_index = 0
        self._trace_output.clear()
        log.info("[%s] reset (%d words)", self.id, len(self._program))
