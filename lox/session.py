"""Lox pipeline entry points: compile source, run it in a persistent session."""

from __future__ import annotations

import io
import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, Iterable, TextIO

from .ast import Stmt
from .interpreter import Interpreter
from .parse import parse_tokens
from .report import Reporter
from .resolve import resolve
from .tokens import tokenize

logger = logging.getLogger(__name__)

# Process exit statuses used by the driver (sysexits.h values).
EX_OK = 0
EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70

PROMPT = "> "


@dataclass
class Program:
    """Statements that passed every static stage, with their scope table."""

    statements: list[Stmt]
    locals: dict[int, int] = field(default_factory=dict)


def compile_source(
    source: str, reporter: Reporter, globals: Iterable[str] = ()
) -> Program | None:
    """Scan, parse and resolve source.

    Every diagnostic goes to reporter. Returns None if any stage failed; a
    failing stage still runs to completion, but later stages do not run.
    """
    tokens, scan_errors = tokenize(source)
    for s_err in scan_errors:
        reporter.error(s_err.line, "", s_err.msg)
    if scan_errors:
        return None

    statements, parse_errors = parse_tokens(tokens)
    for p_err in parse_errors:
        reporter.token_error(p_err.token, p_err.msg)
    if parse_errors:
        return None

    locals_, resolve_errors = resolve(statements, globals)
    for r_err in resolve_errors:
        reporter.token_error(r_err.token, r_err.msg)
    if resolve_errors:
        return None

    return Program(statements, locals_)


class Lox:
    """A session: one interpreter whose globals survive between runs."""

    def __init__(
        self,
        out: Callable[[str], None] | None = None,
        err: TextIO | None = None,
    ):
        self.reporter = Reporter(err)
        self.interpreter = Interpreter(out, self.reporter)

    def run(self, source: str) -> int:
        """Run source to completion; returns an exit status."""
        program = compile_source(
            source, self.reporter, self.interpreter.globals.values.keys()
        )
        if program is None:
            logger.debug("static errors, not interpreting")
            return EX_DATAERR
        self.interpreter.resolve(program.locals)
        if not self.interpreter.interpret(program.statements):
            return EX_SOFTWARE
        return EX_OK

    def run_file(self, path: str) -> int:
        with open(path, encoding="utf-8") as f:
            source = f.read()
        logger.info("running %s", path)
        return self.run(source)

    def run_prompt(
        self, stdin: TextIO | None = None, stdout: TextIO | None = None
    ) -> int:
        """Read-eval-print loop until end of input.

        Each line runs against the same globals. Errors are reported and the
        loop carries on with the next line.
        """
        stdin = stdin if stdin is not None else sys.stdin
        stdout = stdout if stdout is not None else sys.stdout
        while True:
            stdout.write(PROMPT)
            stdout.flush()
            line = stdin.readline()
            if not line:
                stdout.write("\n")
                return EX_OK
            self.run(line)
            self.reporter.reset()


@dataclass
class RunResult:
    exit_code: int
    stdout: str
    stderr: str


def run(source: str) -> RunResult:
    """Run source in a fresh session, capturing output and diagnostics."""
    out: list[str] = []
    err = io.StringIO()
    session = Lox(out=out.append, err=err)
    code = session.run(source)
    stdout = "".join(line + "\n" for line in out)
    return RunResult(code, stdout, err.getvalue())
