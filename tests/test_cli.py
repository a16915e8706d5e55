"""
Command-line runner and logging setup tests.
"""

import io
import logging

import pytest

import intcoderun
from intcode.log_setup import setup_logging


def _write(tmp_path, text, name="prog.txt"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestIntcodeRun:
    def test_echo_program(self, tmp_path, capsys):
        prog = _write(tmp_path, "3,0,4,0,99\n")
        assert intcoderun.main([prog, "-i", "42"]) == 0
        assert capsys.readouterr().out.strip() == "42"

    def test_multiple_inputs_and_outputs(self, tmp_path, capsys):
        prog = _write(tmp_path, "3,9,3,10,4,10,4,9,99")
        assert intcoderun.main([prog, "-i", "1", "-i", "-2"]) == 0
        assert capsys.readouterr().out.strip() == "-2,1"

    def test_set_pokes_memory(self, tmp_path, capsys):
        prog = _write(tmp_path, "1,0,0,0,4,0,99")
        assert intcoderun.main([prog, "--set", "1=4", "--set", "2=0x4"]) == 0
        assert capsys.readouterr().out.strip() == "8"

    def test_stdin_program(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("104,7,99\n"))
        assert intcoderun.main(["-"]) == 0
        assert capsys.readouterr().out.strip() == "7"

    def test_blocked_exit_code(self, tmp_path, capsys):
        prog = _write(tmp_path, "104,1,3,0,99")
        assert intcoderun.main([prog]) == 3
        assert capsys.readouterr().out.strip() == "1"

    def test_max_steps_exit_code(self, tmp_path, capsys):
        prog = _write(tmp_path, "1105,1,0")
        assert intcoderun.main([prog, "--max-steps", "50"]) == 3

    def test_machine_error_exit_code(self, tmp_path):
        prog = _write(tmp_path, "1,0,0,0,42")
        assert intcoderun.main([prog]) == 2

    def test_bad_input_target_exit_code(self, tmp_path):
        prog = _write(tmp_path, "103,0,99")
        assert intcoderun.main([prog]) == 2

    def test_malformed_program(self, tmp_path):
        prog = _write(tmp_path, "1,two,3")
        assert intcoderun.main([prog]) == 1

    def test_missing_file(self, tmp_path):
        assert intcoderun.main([str(tmp_path / "nope.txt")]) == 1

    def test_disassemble(self, tmp_path, capsys):
        prog = _write(tmp_path, "3,0,4,0,99")
        assert intcoderun.main([prog, "--disassemble"]) == 0
        out = capsys.readouterr().out.split('\n')
        assert out[0] == "     0: IN  [0]"
        assert out[2] == "     4: HLT"

    def test_trace_goes_to_stderr(self, tmp_path, capsys):
        prog = _write(tmp_path, "104,3,99")
        assert intcoderun.main([prog, "--trace"]) == 0
        captured = capsys.readouterr()
        assert captured.out.strip() == "3"
        assert "OUT #3" in captured.err

    def test_bad_poke_argument(self, tmp_path):
        prog = _write(tmp_path, "99")
        with pytest.raises(SystemExit):
            intcoderun.main([prog, "--set", "12"])


class TestParseIntArg:
    @pytest.mark.parametrize("text,value", [("12", 12), ("-3", -3), ("0x10", 16), ("-0X1f", -31)])
    def test_values(self, text, value):
        assert intcoderun.parse_int_arg(text) == value

    def test_poke(self):
        assert intcoderun.parse_poke("0x10=-1") == (16, -1)


class TestSetupLogging:
    def test_file_handler_and_idempotence(self, tmp_path):
        logger = setup_logging("intcode.test_setup", log_dir=tmp_path, rich_console=False)
        try:
            assert len(logger.handlers) == 2
            assert list(tmp_path.glob("intcode.test_setup_*.log"))
            again = setup_logging("intcode.test_setup", log_dir=tmp_path)
            assert again is logger
            assert len(again.handlers) == 2
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_rich_console_handler(self):
        from rich.logging import RichHandler

        logger = setup_logging("intcode.test_rich", console_level=logging.INFO)
        try:
            assert len(logger.handlers) == 1
            assert isinstance(logger.handlers[0], RichHandler)
            assert logger.handlers[0].level == logging.INFO
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
