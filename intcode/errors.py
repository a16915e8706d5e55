"""
Intcode VM - Error taxonomy

Every failure the machine can raise derives from IntcodeError so callers
can catch the whole family in one place. Malformed-program errors are
fatal for the machine instance that raised them; the machine is left
untouched and will raise the same error again if stepped.

Absence of output is NOT an error (get_output() returns None), and an
empty input queue is the BLOCKED_ON_INPUT run state, not an exception.
"""

from typing import Optional

__all__ = [
    'IntcodeError', 'InvalidAddress', 'InvalidOpcode', 'InvalidParameterMode',
    'InvalidWriteTarget', 'ProgramFormatError', 'PipelineError',
    'PipelineDeadlock',
]


class IntcodeError(Exception):
    """Base class for all Intcode VM errors."""
    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        super().__init__(f"[{address}] {message}" if address is not None else message)


class InvalidAddress(IntcodeError):
    """A negative address was read, written or resolved."""


class InvalidOpcode(IntcodeError):
    """The low two digits of an instruction word are not a known opcode."""


class InvalidParameterMode(InvalidOpcode):
    """A parameter-mode digit is not 0 (position), 1 (immediate) or 2 (relative)."""


class InvalidWriteTarget(IntcodeError):
    """A write-target operand was encoded in immediate mode."""


class ProgramFormatError(IntcodeError, ValueError):
    """Program text is not a comma-separated list of integers."""


class PipelineError(IntcodeError):
    """A multi-machine pipeline could not produce a result."""


class PipelineDeadlock(PipelineError):
    """Every machine still running in a pipeline is waiting on input."""
