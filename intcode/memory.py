"""
Intcode VM - Auto-growing Memory + Operand Addressing

Memory model:
  - Cells hold Python ints (signed, unbounded).
  - Any non-negative address is valid. Addresses past the loaded program
    read as 0 without being allocated; writes past the end grow the
    backing list and zero-fill the gap.
  - Negative addresses raise InvalidAddress.

The backing store is a flat list (arena) indexed by address.

Operand resolution:
  POSITION   (0)  operand is the address
  IMMEDIATE  (1)  operand is the literal value
  RELATIVE   (2)  relative_base + operand is the address
"""

import re
from typing import Dict, Iterable, List, Tuple

from .errors import InvalidAddress, InvalidParameterMode, ProgramFormatError

__all__ = ['Memory', 'parse_program', 'POSITION', 'IMMEDIATE', 'RELATIVE']

# Parameter mode digits (mirrored as decoder.Mode)
POSITION = 0
IMMEDIATE = 1
RELATIVE = 2

_INT_FIELD = re.compile(r"-?[0-9]+")


def parse_program(text: str) -> List[int]:
    """Parse comma-separated Intcode program text into a list of ints.

    Leading/trailing whitespace (including the trailing newline of a
    puzzle input file) is trimmed, and whitespace around each value is
    tolerated. Each value is an optional minus sign followed by ASCII
    digits; anything else raises ProgramFormatError.
    """
    text = text.strip()
    if not text:
        raise ProgramFormatError("Program text is empty")

    values = []
    for index, field in enumerate(text.split(',')):
        field = field.strip()
        if not field:
            raise ProgramFormatError(f"Empty value at field {index}")
        if not _INT_FIELD.fullmatch(field):
            raise ProgramFormatError(f"Field {index} is not an integer: {field!r}")
        values.append(int(field))
    return values


class Memory:
    """Flat, auto-growing integer memory.

    Usage:
        mem = Memory([1, 0, 0, 0, 99])
        mem.write(1000, 7)      # grows to 1001 cells
        mem.read(5000)          # 0, nothing allocated
    """

    def __init__(self, values: Iterable[int] = ()):
        self._cells: List[int] = list(values)

    # --- Core read/write ---

    def read(self, address: int) -> int:
        """Read one cell. Unallocated cells read as 0."""
        if address < 0:
            raise InvalidAddress(f"Cannot read negative address {address}")
        if address >= len(self._cells):
            return 0
        return self._cells[address]

    def write(self, address: int, value: int):
        """Write one cell, growing the backing store if needed."""
        if address < 0:
            raise InvalidAddress(f"Cannot write negative address {address}")
        if address >= len(self._cells):
            self._cells.extend([0] * (address + 1 - len(self._cells)))
        self._cells[address] = value

    def resolve(self, parameter: int, mode: int, relative_base: int = 0) -> int:
        """Resolve a raw operand to a literal (immediate) or an address.

        Resolved addresses are checked here; a negative one fails at
        decode time, before the instruction has any side effect.
        """
        if mode == IMMEDIATE:
            return parameter
        if mode == POSITION:
            address = parameter
        elif mode == RELATIVE:
            address = relative_base + parameter
        else:
            raise InvalidParameterMode(f"Unknown parameter mode {mode}")

        if address < 0:
            raise InvalidAddress(
                f"Operand {parameter} (mode {mode}, base {relative_base}) "
                f"resolves to negative address {address}")
        return address

    # --- Bulk load ---

    def load(self, values: Iterable[int]):
        """Replace the whole memory with a program image."""
        self._cells = list(values)

    # --- Container protocol ---

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, key):
        if isinstance(key, slice):
            start, stop, step = key.start or 0, key.stop, key.step or 1
            if stop is None:
                stop = len(self._cells)
            return [self.read(a) for a in range(start, stop, step)]
        return self.read(key)

    def __setitem__(self, address: int, value: int):
        self.write(address, value)

    def __iter__(self):
        return iter(self._cells)

    def __repr__(self) -> str:
        return f"Memory({len(self._cells)} cells)"

    # --- Snapshots (diff state across steps) ---

    def snapshot(self) -> Tuple[int, ...]:
        """Capture the allocated cells as an immutable tuple."""
        return tuple(self._cells)

    @staticmethod
    def diff_snapshots(snap_a: Tuple[int, ...],
                       snap_b: Tuple[int, ...]) -> Dict[int, Tuple[int, int]]:
        """Compare two snapshots, return {addr: (old, new)} for changed cells.

        Cells present in only one snapshot compare against 0, matching
        how unallocated memory reads.
        """
        changes = {}
        for addr in range(max(len(snap_a), len(snap_b))):
            old = snap_a[addr] if addr < len(snap_a) else 0
            new = snap_b[addr] if addr < len(snap_b) else 0
            if old != new:
                changes[addr] = (old, new)
        return changes

    # --- Dump ---

    def dump(self, start: int = 0, length: int = None, width: int = 8) -> str:
        """Produce an address-prefixed dump of memory for debugging."""
        if length is None:
            length = max(len(self._cells) - start, 0)
        lines = []
        for offset in range(0, length, width):
            addr = start + offset
            count = min(width, length - offset)
            cells = ' '.join(f'{self.read(addr + i):>6d}' for i in range(count))
            lines.append(f'{addr:6d}: {cells}')
        return '\n'.join(lines)
