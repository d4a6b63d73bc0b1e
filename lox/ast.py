"""Lox AST: parse-time node definitions.

Nodes are frozen dataclasses. Each one draws a ``node_id`` from a
process-wide counter when it is built; the resolver keys its scope-distance
table on that id, so two structurally equal nodes at different source
positions stay distinct.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

from .tokens import Token

_node_ids = itertools.count(1)


def _next_id() -> int:
    return next(_node_ids)


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(frozen=True)
class Expr:
    """Base for all expressions."""

    node_id: int = field(
        default_factory=_next_id, kw_only=True, compare=False, repr=False
    )


@dataclass(frozen=True)
class Assign(Expr):
    """name = value."""

    name: Token
    value: Expr


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    """Short-circuit 'and' / 'or'."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Grouping(Expr):
    """Parenthesized expression."""

    expression: Expr


@dataclass(frozen=True)
class Literal(Expr):
    """nil, true/false, number or string constant."""

    value: bool | float | str | None


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Call(Expr):
    """callee(args). paren is the closing ')' used for error lines."""

    callee: Expr
    paren: Token
    args: tuple[Expr, ...]


@dataclass(frozen=True)
class Get(Expr):
    """object.name."""

    object: Expr
    name: Token


@dataclass(frozen=True)
class Set(Expr):
    """object.name = value."""

    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True)
class This(Expr):
    keyword: Token


@dataclass(frozen=True)
class Super(Expr):
    """super.method."""

    keyword: Token
    method: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(frozen=True)
class Stmt:
    """Base for all statements."""

    node_id: int = field(
        default_factory=_next_id, kw_only=True, compare=False, repr=False
    )


@dataclass(frozen=True)
class Expression(Stmt):
    """Bare expression as statement."""

    expression: Expr


@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Var(Stmt):
    """var name (= initializer)?;"""

    name: Token
    initializer: Expr | None


@dataclass(frozen=True)
class Block(Stmt):
    statements: tuple[Stmt, ...]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True)
class While(Stmt):
    """while (condition) body. Also the target of 'for' desugaring."""

    condition: Expr
    body: Stmt


@dataclass(frozen=True)
class Function(Stmt):
    """fun name(params) { body }, or a method inside a class body."""

    name: Token
    params: tuple[Token, ...]
    body: tuple[Stmt, ...]


@dataclass(frozen=True)
class Return(Stmt):
    keyword: Token
    value: Expr | None


@dataclass(frozen=True)
class Class(Stmt):
    """class name (< superclass)? { methods }."""

    name: Token
    superclass: Variable | None
    methods: tuple[Function, ...]


@dataclass(frozen=True)
class ErrorStmt(Stmt):
    """Placeholder for a declaration that failed to parse.

    token is where the parse error was raised. Later passes skip it.
    """

    token: Token
