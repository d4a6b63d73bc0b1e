"""Lox scanner, parser, resolver and interpreter: public API."""

from __future__ import annotations

from .ast import Stmt
from .interpreter import Interpreter as Interpreter
from .parse import ParseError as ParseError, parse_tokens
from .report import Reporter as Reporter
from .resolve import ResolveError as ResolveError, resolve as resolve
from .runtime import LoxRuntimeError as LoxRuntimeError
from .session import (
    Lox as Lox,
    Program as Program,
    RunResult as RunResult,
    compile_source as compile_source,
    run as run,
)
from .tokens import ScanError as ScanError, Token as Token, tokenize as tokenize


def parse(source: str) -> list[Stmt]:
    """Scan and parse Lox source. Raises the first scan or parse error."""
    tokens, scan_errors = tokenize(source)
    if scan_errors:
        raise scan_errors[0]
    statements, parse_errors = parse_tokens(tokens)
    if parse_errors:
        raise parse_errors[0]
    return statements
