#!/usr/bin/env python3
"""
intcoderun - run an Intcode program from the command line

Usage:
    intcoderun <program.txt> [-i VALUE ...] [--set ADDR=VALUE ...]
               [--max-steps N] [--trace] [--disassemble] [--verbose]
               [--log-dir DIR]

Outputs are printed comma-separated on one line.

Exit codes:
    0  program halted
    1  program file unreadable or not valid Intcode text
    2  machine error (bad opcode, negative address, immediate write target)
    3  stopped before halting (blocked on input, or --max-steps reached)

Examples:
    intcoderun day5.txt -i 1
    intcoderun day2.txt --set 1=12 --set 2=2 --max-steps 100000
    intcoderun day9.txt --disassemble
    echo "3,0,4,0,99" | intcoderun - -i 42
"""

import argparse
import logging
import sys

from intcode import __version__
from intcode.computer import Computer, RunState
from intcode.decoder import disassemble
from intcode.errors import IntcodeError, ProgramFormatError
from intcode.log_setup import setup_logging

log = logging.getLogger('intcode.cli')


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...) or decimal, signed."""
    value = value.strip()
    sign = 1
    if value.startswith('-'):
        sign, value = -1, value[1:]
    if value.startswith("0x") or value.startswith("0X"):
        return sign * int(value, 16)
    return sign * int(value)


def parse_poke(value: str):
    """Parse an ADDR=VALUE pair for --set."""
    addr, sep, val = value.partition('=')
    if not sep:
        raise argparse.ArgumentTypeError(f"expected ADDR=VALUE, got {value!r}")
    try:
        return parse_int_arg(addr), parse_int_arg(val)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ADDR=VALUE: {value!r}") from None


def _int_arg(value: str) -> int:
    try:
        return parse_int_arg(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intcoderun",
        description="Run an Intcode program and print its outputs",
    )
    parser.add_argument("program", help="Program file (comma-separated integers), or - for stdin")
    parser.add_argument("-i", "--input", dest="inputs", action="append", default=[],
                        type=_int_arg, metavar="VALUE",
                        help="Queue an input value (repeatable, in order)")
    parser.add_argument("--set", dest="pokes", action="append", default=[],
                        type=parse_poke, metavar="ADDR=VALUE",
                        help="Write memory before running (repeatable)")
    parser.add_argument("--max-steps", type=_int_arg, default=None,
                        help="Stop after this many instructions")
    parser.add_argument("--trace", action="store_true",
                        help="Print the instruction trace to stderr after the run")
    parser.add_argument("--disassemble", action="store_true",
                        help="Print a static listing of the program and exit")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log machine activity to the console")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a DEBUG log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"intcoderun {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Per-instruction DEBUG records are only worth creating if something keeps them
    console_level = logging.DEBUG if args.verbose else logging.WARNING
    setup_logging(
        "intcode",
        level=logging.DEBUG if (args.verbose or args.log_dir) else console_level,
        console_level=console_level,
        log_dir=args.log_dir,
    )

    # Read program
    try:
        if args.program == '-':
            text = sys.stdin.read()
        else:
            with open(args.program, "r", encoding="utf-8") as f:
                text = f.read()
    except OSError as e:
        log.error("Cannot read %s: %s", args.program, e)
        return 1

    try:
        cpu = Computer.from_program_and_input(text, args.inputs, trace=args.trace)
    except ProgramFormatError as e:
        log.error("Malformed program %s: %s", args.program, e)
        return 1

    if args.disassemble:
        print('\n'.join(disassemble(cpu.mem)))
        return 0

    try:
        for addr, value in args.pokes:
            cpu.set(addr, value)
        state = cpu.run(max_steps=args.max_steps)
    except IntcodeError as e:
        log.error("Machine error: %s", e)
        log.debug(cpu.display())
        if args.trace:
            print(cpu.get_trace(), file=sys.stderr)
        return 2

    print(','.join(str(v) for v in cpu.get_outputs()))

    if args.trace:
        print(cpu.get_trace(), file=sys.stderr)
    log.debug(cpu.display())

    if state is not RunState.HALTED:
        log.warning("Stopped in %s after %d steps", state.value, cpu.steps)
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
