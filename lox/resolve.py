"""Lox resolver: static scope analysis run between parsing and evaluation.

Walks the tree once without evaluating anything. For every variable,
assignment, ``this`` and ``super`` expression that names a local binding it
records how many frames out the binding lives, keyed by the expression's
``node_id``. References that match no local scope are globals and are looked
up by name at runtime. Semantic errors are collected, not raised, so one
pass reports all of them.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Iterable

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    ErrorStmt,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .report import format_error, where
from .runtime import INIT, NATIVES, SUPER, THIS
from .tokens import Token

logger = logging.getLogger(__name__)


class FunctionKind(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassKind(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class ResolveError(Exception):
    """Static semantic error anchored at a token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        super().__init__(format_error(token.line, where(token), msg))


class Resolver:
    """Computes scope distances and reports static semantic errors.

    ``globals`` names bindings already known to live in the global frame,
    such as earlier REPL inputs; natives are always known. Top-level
    declarations of the program being resolved are added before the walk.
    """

    def __init__(self, globals: Iterable[str] = ()):
        self.scopes: list[dict[str, bool]] = []
        self.locals: dict[int, int] = {}
        self.errors: list[ResolveError] = []
        self.globals: set[str] = {native.name for native in NATIVES}
        self.globals.update(globals)
        self.current_function: FunctionKind = FunctionKind.NONE
        self.current_class: ClassKind = ClassKind.NONE

    def error(self, token: Token, msg: str) -> None:
        self.errors.append(ResolveError(msg, token))

    # ── Entry ────────────────────────────────────────────────

    def resolve(self, statements: Iterable[Stmt]) -> dict[int, int]:
        statements = list(statements)
        for st in statements:
            if isinstance(st, (Var, Function, Class)):
                self.globals.add(st.name.lexeme)
        self.resolve_block(statements)
        logger.debug(
            "resolved %d locals, %d errors", len(self.locals), len(self.errors)
        )
        return self.locals

    def resolve_block(self, statements: Iterable[Stmt]) -> None:
        for st in statements:
            self.resolve_stmt(st)

    # ── Scopes ───────────────────────────────────────────────

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: str, skip: int = 0) -> bool:
        """Record the hop count to the nearest scope binding name.

        skip ignores that many innermost scopes. Returns False when the name
        is not bound in any local scope (a global reference).
        """
        innermost = len(self.scopes) - 1
        for i in range(innermost - skip, -1, -1):
            if name in self.scopes[i]:
                self.locals[expr.node_id] = innermost - i
                return True
        return False

    def resolve_function(self, fn: Function, kind: FunctionKind) -> None:
        enclosing = self.current_function
        self.current_function = kind
        self.begin_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve_block(fn.body)
        self.end_scope()
        self.current_function = enclosing

    # ── Statements ───────────────────────────────────────────

    def resolve_stmt(self, st: Stmt) -> None:
        match st:
            case Block(statements=statements):
                self.begin_scope()
                self.resolve_block(statements)
                self.end_scope()
            case Var(name=name, initializer=initializer):
                self.declare(name)
                if initializer is not None:
                    self.resolve_expr(initializer)
                self.define(name)
            case Function():
                self.declare(st.name)
                self.define(st.name)
                self.resolve_function(st, FunctionKind.FUNCTION)
            case Class():
                self.resolve_class(st)
            case Expression(expression=expr) | Print(expression=expr):
                self.resolve_expr(expr)
            case If(condition=cond, then_branch=then_branch, else_branch=else_branch):
                self.resolve_expr(cond)
                self.resolve_stmt(then_branch)
                if else_branch is not None:
                    self.resolve_stmt(else_branch)
            case While(condition=cond, body=body):
                self.resolve_expr(cond)
                self.resolve_stmt(body)
            case Return(keyword=keyword, value=value):
                if self.current_function == FunctionKind.NONE:
                    self.error(keyword, "Can't return from top-level code.")
                if value is not None:
                    if self.current_function == FunctionKind.INITIALIZER:
                        self.error(keyword, "Can't return a value from an initializer.")
                    self.resolve_expr(value)
            case ErrorStmt():
                pass
            case _:
                raise TypeError(f"unknown statement node {type(st).__name__}")

    def resolve_class(self, st: Class) -> None:
        enclosing = self.current_class
        self.current_class = ClassKind.CLASS
        self.declare(st.name)
        self.define(st.name)

        if st.superclass is not None:
            if st.superclass.name.lexeme == st.name.lexeme:
                self.error(st.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassKind.SUBCLASS
            self.resolve_expr(st.superclass)
            self.begin_scope()
            self.scopes[-1][SUPER] = True

        self.begin_scope()
        self.scopes[-1][THIS] = True
        for method in st.methods:
            kind = FunctionKind.METHOD
            if method.name.lexeme == INIT:
                kind = FunctionKind.INITIALIZER
            self.resolve_function(method, kind)
        self.end_scope()

        if st.superclass is not None:
            self.end_scope()
        self.current_class = enclosing

    # ── Expressions ──────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        match expr:
            case Variable(name=name):
                self.resolve_variable(expr, name)
            case Assign(name=name, value=value):
                self.resolve_expr(value)
                self.resolve_local(expr, name.lexeme)
            case Binary(left=left, right=right) | Logical(left=left, right=right):
                self.resolve_expr(left)
                self.resolve_expr(right)
            case Unary(right=right):
                self.resolve_expr(right)
            case Grouping(expression=inner):
                self.resolve_expr(inner)
            case Literal():
                pass
            case Call(callee=callee, args=args):
                self.resolve_expr(callee)
                for arg in args:
                    self.resolve_expr(arg)
            case Get(object=obj):
                self.resolve_expr(obj)
            case Set(object=obj, value=value):
                self.resolve_expr(value)
                self.resolve_expr(obj)
            case This(keyword=keyword):
                if self.current_class == ClassKind.NONE:
                    self.error(keyword, "Can't use 'this' outside of a class.")
                    return
                self.resolve_local(expr, THIS)
            case Super(keyword=keyword):
                if self.current_class == ClassKind.NONE:
                    self.error(keyword, "Can't use 'super' outside of a class.")
                elif self.current_class != ClassKind.SUBCLASS:
                    self.error(
                        keyword, "Can't use 'super' in a class with no superclass."
                    )
                self.resolve_local(expr, SUPER)
            case _:
                raise TypeError(f"unknown expression node {type(expr).__name__}")

    def resolve_variable(self, expr: Variable, name: Token) -> None:
        if self.scopes and self.scopes[-1].get(name.lexeme) is False:
            # Read inside its own initializer: the declaration being built is
            # not visible yet, so the read falls through to an outer binding.
            if self.resolve_local(expr, name.lexeme, skip=1):
                return
            if name.lexeme in self.globals:
                return
            self.error(name, "Can't read local variable in its own initializer.")
            return
        self.resolve_local(expr, name.lexeme)


def resolve(
    statements: Iterable[Stmt], globals: Iterable[str] = ()
) -> tuple[dict[int, int], list[ResolveError]]:
    """Resolve statements; returns (node_id -> distance, errors)."""
    resolver = Resolver(globals)
    locals_ = resolver.resolve(statements)
    return locals_, resolver.errors
