"""Driver tests: argument handling, exit codes and the prompt."""

import io
import logging
import sys

import pytest

from lox.cli import USAGE, main


@pytest.fixture(autouse=True)
def restore_recursion_limit():
    limit = sys.getrecursionlimit()
    yield
    sys.setrecursionlimit(limit)


def write_script(tmp_path, source: str) -> str:
    path = tmp_path / "script.lox"
    path.write_text(source)
    return str(path)


def test_help(capsys):
    assert main(["--help"]) == 0
    assert capsys.readouterr().out == USAGE


def test_too_many_arguments(capsys):
    assert main(["a.lox", "b.lox"]) == 64
    assert capsys.readouterr().err == "Usage: lox [script]\n"


def test_unknown_flag(capsys):
    assert main(["--nope"]) == 64
    assert "unknown flag" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    missing = str(tmp_path / "missing.lox")
    assert main([missing]) == 64
    assert "No such file or directory" in capsys.readouterr().err


def test_run_file_success(tmp_path, capsys):
    script = write_script(tmp_path, 'print "hello";\n')
    assert main([script]) == 0
    assert capsys.readouterr().out == "hello\n"


def test_run_file_static_error(tmp_path, capsys):
    script = write_script(tmp_path, "var;\n")
    assert main([script]) == 65
    assert capsys.readouterr().err == "[line 1] Error at ';': Expect variable name.\n"


def test_run_file_runtime_error(tmp_path, capsys):
    script = write_script(tmp_path, "print 1;\nprint x;\n")
    assert main([script]) == 70
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert captured.err == "Undefined variable 'x'.\n[line 2]\n"


def test_prompt_keeps_state_and_survives_errors(monkeypatch, capsys):
    monkeypatch.setattr(
        "sys.stdin", io.StringIO("var a = 1;\nprint a;\nprint;\nprint a + 1;\n")
    )
    assert main([]) == 0
    captured = capsys.readouterr()
    assert captured.out == "> > 1\n> > 2\n> \n"
    assert captured.err == "[line 1] Error at ';': Expect expression.\n"


def test_verbose_flag_logs_stages(tmp_path, capsys):
    script = write_script(tmp_path, "print 1;\n")
    logger = logging.getLogger("lox")
    handlers = list(logger.handlers)
    try:
        assert main(["-vv", script]) == 0
    finally:
        logger.handlers = handlers
        logger.setLevel(logging.NOTSET)
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "lox.tokens" in captured.err
