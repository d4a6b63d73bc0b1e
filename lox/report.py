"""Diagnostic sink shared by every pipeline stage.

Static diagnostics render as ``[line N] Error<where>: message``; runtime
diagnostics render as ``message\\n[line N]``. The reporter only records and
writes. Deciding what an error means for the process (exit codes) is left to
the driver.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from .tokens import TK_EOF, Token

if TYPE_CHECKING:
    from .runtime import LoxRuntimeError


def where(token: Token) -> str:
    """Location description for a diagnostic anchored at token."""
    if token.type == TK_EOF:
        return " at end"
    return f" at '{token.lexeme}'"


def format_error(line: int, location: str, message: str) -> str:
    return f"[line {line}] Error{location}: {message}"


class Reporter:
    """Collects diagnostics and writes them to a text stream."""

    def __init__(self, stream: TextIO | None = None):
        self.stream: TextIO | None = stream
        self.messages: list[str] = []
        self.had_error: bool = False
        self.had_runtime_error: bool = False

    def _write(self, text: str) -> None:
        self.messages.append(text)
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(text + "\n")
        stream.flush()

    def error(self, line: int, location: str, message: str) -> None:
        """Report a scan, parse or resolve error."""
        self.had_error = True
        self._write(format_error(line, location, message))

    def token_error(self, token: Token, message: str) -> None:
        self.error(token.line, where(token), message)

    def runtime_error(self, err: LoxRuntimeError) -> None:
        self.had_runtime_error = True
        self._write(str(err))

    def reset(self) -> None:
        """Clear error flags between REPL inputs."""
        self.had_error = False
        self.had_runtime_error = False
