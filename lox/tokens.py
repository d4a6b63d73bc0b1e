"""Lox tokenizer: lexes source into a flat token list.

Scanning never stops at the first problem. Unexpected characters and
unterminated strings are recorded as ``ScanError`` entries and the scan
resumes with the next character, so one pass reports every lexical error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# Token type constants
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

# Keywords are tokenized with their own text as the type.
KEYWORDS: set[str] = {
    "and",
    "class",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "nil",
    "or",
    "print",
    "return",
    "super",
    "this",
    "true",
    "var",
    "while",
}

# Operators that may absorb a following '='
TWO_CHAR_OPS: set[str] = {"!=", "==", "<=", ">="}

SINGLE_OPS: set[str] = {
    "(",
    ")",
    "{",
    "}",
    ",",
    ".",
    "-",
    "+",
    ";",
    "*",
    "/",
    "!",
    "=",
    "<",
    ">",
}


class ScanError(Exception):
    """Lexical error: unexpected character or unterminated string."""

    def __init__(self, msg: str, line: int):
        self.msg: str = msg
        self.line: int = line
        super().__init__(f"[line {line}] Error: {msg}")


@dataclass(frozen=True)
class Token:
    """A token with type, source lexeme, literal value and line."""

    type: str
    lexeme: str
    literal: float | str | None
    line: int

    def is_op(self, value: str) -> bool:
        return self.type == TK_OP and self.lexeme == value


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Scanner:
    """Single-pass scanner with one- and two-character lookahead."""

    def __init__(self, source: str):
        self.source: str = source
        self.tokens: list[Token] = []
        self.errors: list[ScanError] = []
        self.start: int = 0
        self.pos: int = 0
        self.line: int = 1

    # ── Helpers ──────────────────────────────────────────────

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def advance(self) -> str:
        c = self.source[self.pos]
        self.pos += 1
        return c

    def peek(self) -> str:
        if self.at_end():
            return "\0"
        return self.source[self.pos]

    def peek_next(self) -> str:
        if self.pos + 1 >= len(self.source):
            return "\0"
        return self.source[self.pos + 1]

    def match(self, expected: str) -> bool:
        if self.at_end() or self.source[self.pos] != expected:
            return False
        self.pos += 1
        return True

    def add(self, type_: str, literal: float | str | None = None) -> None:
        text = self.source[self.start : self.pos]
        self.tokens.append(Token(type_, text, literal, self.line))

    def error(self, msg: str) -> None:
        self.errors.append(ScanError(msg, self.line))

    # ── Scanning ─────────────────────────────────────────────

    def scan(self) -> list[Token]:
        while not self.at_end():
            self.start = self.pos
            self.scan_token()
        self.tokens.append(Token(TK_EOF, "", None, self.line))
        logger.debug(
            "scanned %d tokens, %d errors", len(self.tokens), len(self.errors)
        )
        return self.tokens

    def scan_token(self) -> None:
        c = self.advance()

        if c == "\n":
            self.line += 1
            return
        if c == " " or c == "\t" or c == "\r":
            return

        if c == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.at_end():
                    self.advance()
                return
            if self.match("*"):
                self.block_comment()
                return
            self.add(TK_OP)
            return

        if c in ("!", "=", "<", ">"):
            if c + self.peek() in TWO_CHAR_OPS:
                self.advance()
            self.add(TK_OP)
            return

        if c in SINGLE_OPS:
            self.add(TK_OP)
            return

        if c == '"':
            self.string()
            return
        if _is_digit(c):
            self.number()
            return
        if _is_alpha(c):
            self.identifier()
            return

        self.error("Unexpected character.")

    def block_comment(self) -> None:
        # Not nested: the first '*/' closes the comment.
        while not self.at_end():
            if self.peek() == "*" and self.peek_next() == "/":
                self.pos += 2
                return
            if self.advance() == "\n":
                self.line += 1

    def string(self) -> None:
        while self.peek() != '"' and not self.at_end():
            if self.peek() == "\n":
                self.line += 1
            self.advance()
        if self.at_end():
            self.error("Unterminated string.")
            return
        self.advance()  # closing quote
        self.add(TK_STRING, self.source[self.start + 1 : self.pos - 1])

    def number(self) -> None:
        while _is_digit(self.peek()):
            self.advance()
        if self.peek() == "." and _is_digit(self.peek_next()):
            self.advance()
            while _is_digit(self.peek()):
                self.advance()
        self.add(TK_NUMBER, float(self.source[self.start : self.pos]))

    def identifier(self) -> None:
        while _is_alnum(self.peek()):
            self.advance()
        word = self.source[self.start : self.pos]
        if word in KEYWORDS:
            self.add(word)
        else:
            self.add(TK_IDENT)


def tokenize(source: str) -> tuple[list[Token], list[ScanError]]:
    """Tokenize Lox source into a token list ending with TK_EOF, plus errors."""
    scanner = Scanner(source)
    tokens = scanner.scan()
    return tokens, scanner.errors
