"""
Intcode VM - Multi-machine pipelines (amplifier chain / feedback loop)

Both drivers only use the public Computer interface: they own the
schedule and move values between machines; the machines never share
state.

Chain:
    signal ──> [M0] ──> [M1] ──> ... ──> [Mn] ──> result
  each machine gets (phase, previous signal) as its two inputs and is run
  until it produces one output.

Feedback loop:
    signal ──> [M0] ──> [M1] ──> ... ──> [Mn] ──┐
                ^                               │
                └───────────────────────────────┘
  machines are stepped round-robin, one instruction each per round; any
  new output is forwarded at once to the next machine in the ring. The
  loop ends when every machine has halted; the result is the last
  machine's final output.
"""

import logging
from typing import List, Optional, Sequence

from .computer import Computer, RunState
from .errors import PipelineDeadlock, PipelineError
from .memory import parse_program

__all__ = ['build_machines', 'run_chain', 'run_feedback_loop']

log = logging.getLogger(__name__)


def build_machines(program: str, phases: Sequence[int], signal: Optional[int] = 0) -> List[Computer]:
    """Create one machine per phase, each seeded with its phase setting.

    The first machine also receives signal, unless signal is None.
    """
    code = parse_program(program)
    machines = []
    for i, phase in enumerate(phases):
        inputs = [phase]
        if i == 0 and signal is not None:
            inputs.append(signal)
        machines.append(Computer(code, inputs=inputs))
    return machines


def run_chain(program: str, phases: Sequence[int], signal: int = 0) -> int:
    """Run one fresh machine per phase in series, threading the signal through.

    Raises:
        PipelineError: no phases, or a machine stopped without output
    """
    if not phases:
        raise PipelineError("Chain needs at least one phase setting")

    code = parse_program(program)
    for position, phase in enumerate(phases):
        cpu = Computer(code, inputs=[phase, signal])
        state = cpu.step_until_output()
        if not cpu.has_output():
            raise PipelineError(
                f"Stage {position} (phase {phase}) stopped in {state.value} without output")
        signal = cpu.get_outputs()[-1]
        log.debug("stage %d [%s] phase=%d -> %d", position, cpu.id, phase, signal)

    log.info("chain %s -> %d", list(phases), signal)
    return signal


def run_feedback_loop(program: str, phases: Sequence[int], signal: int = 0,
                      max_rounds: Optional[int] = None) -> int:
    """Run machines in a ring until all halt; return the last machine's final output.

    Args:
        program: Intcode program text shared by every machine
        phases: one phase setting per machine, in ring order
        signal: initial input for the first machine
        max_rounds: optional bound on scheduler rounds

    Raises:
        PipelineDeadlock: every machine still running waits on input
        PipelineError: max_rounds exceeded, or the last machine never output
    """
    if not phases:
        raise PipelineError("Feedback loop needs at least one phase setting")

    machines = build_machines(program, phases, signal)
    count = len(machines)
    rounds = 0

    while not all(cpu.is_halted() for cpu in machines):
        live = [cpu for cpu in machines if not cpu.is_halted()]
        if all(cpu.is_blocked_on_input() for cpu in live):
            log.warning("deadlock after %d rounds: %s", rounds,
                        ', '.join(cpu.display() for cpu in live))
            raise PipelineDeadlock(
                f"All {len(live)} running machines are blocked on input")

        if max_rounds is not None and rounds >= max_rounds:
            raise PipelineError(f"Feedback loop did not finish in {max_rounds} rounds")
        rounds += 1

        for index, cpu in enumerate(machines):
            if cpu.state is not RunState.RUNNING:
                continue
            cpu.step()

            value = cpu.get_output()
            if value is not None:
                nxt = machines[(index + 1) % count]
                nxt.push_input(value)
                log.debug("[%s] -> [%s] %d", cpu.id, nxt.id, value)

    outputs = machines[-1].get_outputs()
    if not outputs:
        raise PipelineError("Last machine halted without producing output")

    log.info("feedback loop %s -> %d after %d rounds", list(phases), outputs[-1], rounds)
    return outputs[-1]
