"""Lox parser: recursive descent, one method per grammar production.

Syntax errors raise ``ParseError`` internally. ``declaration`` catches it,
records it, skips to the next statement boundary and leaves an ``ErrorStmt``
in place of the broken declaration, so a single parse reports every
independent syntax error.
"""

from __future__ import annotations

import logging

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
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_OP, TK_STRING, Token

logger = logging.getLogger(__name__)

MAX_ARGS = 255

EQUALITY_OPS: tuple[str, ...] = ("!=", "==")
COMPARISON_OPS: tuple[str, ...] = (">", ">=", "<", "<=")
TERM_OPS: tuple[str, ...] = ("-", "+")
FACTOR_OPS: tuple[str, ...] = ("/", "*")
UNARY_OPS: tuple[str, ...] = ("!", "-")

# Tokens that begin a declaration or statement; recovery stops before them.
SYNC_KEYWORDS: set[str] = {
    "class",
    "fun",
    "var",
    "for",
    "if",
    "while",
    "print",
    "return",
}


class ParseError(Exception):
    """Syntax error anchored at a token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        super().__init__(format_error(token.line, where(token), msg))


class Parser:
    """Recursive descent parser for Lox."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current().type == TK_EOF

    def advance(self) -> Token:
        if not self.at_end():
            self.pos += 1
        return self.previous()

    def at(self, value: str) -> bool:
        """True if the current token is the operator or keyword value."""
        tok = self.current()
        if tok.type == TK_OP:
            return tok.lexeme == value
        return tok.type == value

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def match(self, *values: str) -> bool:
        for value in values:
            if self.at(value):
                self.advance()
                return True
        return False

    def expect(self, value: str, msg: str) -> Token:
        if self.at(value):
            return self.advance()
        raise self.error(self.current(), msg)

    def expect_ident(self, msg: str) -> Token:
        if self.at_type(TK_IDENT):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, token: Token, msg: str) -> ParseError:
        err = ParseError(msg, token)
        self.errors.append(err)
        return err

    def synchronize(self, start: int) -> None:
        """Skip to the next statement boundary after an error.

        A token that itself starts a statement is kept, so a missing ';'
        costs only the statement it belongs to.
        """
        if self.pos == start:
            self.advance()
        while not self.at_end():
            if self.previous().is_op(";"):
                return
            if self.current().type in SYNC_KEYWORDS:
                return
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        statements: list[Stmt] = []
        while not self.at_end():
            try:
                statements.append(self.declaration())
            except RecursionError:
                # No reliable boundary to resume from inside the nesting.
                self.error(self.current(), "Too much nesting.")
                break
        logger.debug(
            "parsed %d statements, %d errors", len(statements), len(self.errors)
        )
        return statements

    def declaration(self) -> Stmt:
        start = self.pos
        try:
            if self.match("class"):
                return self.class_declaration()
            if self.match("fun"):
                return self.function("function")
            if self.match("var"):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize(start)
            return ErrorStmt(self.tokens[start])

    def class_declaration(self) -> Class:
        name = self.expect_ident("Expect class name.")
        superclass: Variable | None = None
        if self.match("<"):
            self.expect_ident("Expect superclass name.")
            superclass = Variable(self.previous())
        self.expect("{", "Expect '{' before class body.")
        methods: list[Function] = []
        while not self.at("}") and not self.at_end():
            methods.append(self.function("method"))
        self.expect("}", "Expect '}' after class body.")
        return Class(name, superclass, tuple(methods))

    def function(self, kind: str) -> Function:
        name = self.expect_ident(f"Expect {kind} name.")
        self.expect("(", f"Expect '(' after {kind} name.")
        params: list[Token] = []
        if not self.at(")"):
            while True:
                if len(params) >= MAX_ARGS:
                    self.error(self.current(), "Can't have more than 255 parameters.")
                params.append(self.expect_ident("Expect parameter name."))
                if not self.match(","):
                    break
        self.expect(")", "Expect ')' after parameters.")
        self.expect("{", f"Expect '{{' before {kind} body.")
        body = self.block()
        return Function(name, tuple(params), tuple(body))

    def var_declaration(self) -> Var:
        name = self.expect_ident("Expect variable name.")
        initializer: Expr | None = None
        if self.match("="):
            initializer = self.expression()
        self.expect(";", "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def statement(self) -> Stmt:
        if self.match("for"):
            return self.for_statement()
        if self.match("if"):
            return self.if_statement()
        if self.match("print"):
            return self.print_statement()
        if self.match("return"):
            return self.return_statement()
        if self.match("while"):
            return self.while_statement()
        if self.match("{"):
            return Block(tuple(self.block()))
        return self.expression_statement()

    def for_statement(self) -> Stmt:
        """Desugar 'for (init; cond; incr) body' into a while loop."""
        self.expect("(", "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(";"):
            initializer = None
        elif self.match("var"):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition: Expr | None = None
        if not self.at(";"):
            condition = self.expression()
        self.expect(";", "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.at(")"):
            increment = self.expression()
        self.expect(")", "Expect ')' after for clauses.")

        body = self.statement()
        if increment is not None:
            body = Block((body, Expression(increment)))
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block((initializer, body))
        return body

    def if_statement(self) -> If:
        self.expect("(", "Expect '(' after 'if'.")
        condition = self.expression()
        self.expect(")", "Expect ')' after if condition.")
        then_branch = self.statement()
        else_branch: Stmt | None = None
        if self.match("else"):
            else_branch = self.statement()
        return If(condition, then_branch, else_branch)

    def print_statement(self) -> Print:
        value = self.expression()
        self.expect(";", "Expect ';' after value.")
        return Print(value)

    def return_statement(self) -> Return:
        keyword = self.previous()
        value: Expr | None = None
        if not self.at(";"):
            value = self.expression()
        self.expect(";", "Expect ';' after return value.")
        return Return(keyword, value)

    def while_statement(self) -> While:
        self.expect("(", "Expect '(' after 'while'.")
        condition = self.expression()
        self.expect(")", "Expect ')' after condition.")
        body = self.statement()
        return While(condition, body)

    def block(self) -> list[Stmt]:
        statements: list[Stmt] = []
        while not self.at("}") and not self.at_end():
            statements.append(self.declaration())
        self.expect("}", "Expect '}' after block.")
        return statements

    def expression_statement(self) -> Expression:
        expr = self.expression()
        self.expect(";", "Expect ';' after expression.")
        return Expression(expr)

    # ── Expressions ──────────────────────────────────────────

    def expression(self) -> Expr:
        return self.assignment()

    def assignment(self) -> Expr:
        """Assignment = ( Call '.' )? IDENT '=' Assignment | Or"""
        expr = self.logic_or()
        if self.match("="):
            equals = self.previous()
            value = self.assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)
            # Reported but not raised: the parser is not confused here.
            self.error(equals, "Invalid assignment target.")
        return expr

    def logic_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.logic_and()
        while self.match("or"):
            operator = self.previous()
            right = self.logic_and()
            left = Logical(left, operator, right)
        return left

    def logic_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.equality()
        while self.match("and"):
            operator = self.previous()
            right = self.equality()
            left = Logical(left, operator, right)
        return left

    def _binary(self, operand, ops: tuple[str, ...]) -> Expr:
        """Left-associative fold: operand ( op operand )*"""
        left = operand()
        while self.match(*ops):
            operator = self.previous()
            right = operand()
            left = Binary(left, operator, right)
        return left

    def equality(self) -> Expr:
        return self._binary(self.comparison, EQUALITY_OPS)

    def comparison(self) -> Expr:
        return self._binary(self.term, COMPARISON_OPS)

    def term(self) -> Expr:
        return self._binary(self.factor, TERM_OPS)

    def factor(self) -> Expr:
        return self._binary(self.unary, FACTOR_OPS)

    def unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.match(*UNARY_OPS):
            operator = self.previous()
            right = self.unary()
            return Unary(operator, right)
        return self.call()

    def call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.primary()
        while True:
            if self.match("("):
                expr = self.finish_call(expr)
            elif self.match("."):
                name = self.expect_ident("Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        args: list[Expr] = []
        if not self.at(")"):
            while True:
                if len(args) >= MAX_ARGS:
                    self.error(self.current(), "Can't have more than 255 arguments.")
                args.append(self.expression())
                if not self.match(","):
                    break
        paren = self.expect(")", "Expect ')' after arguments.")
        return Call(callee, paren, tuple(args))

    def primary(self) -> Expr:
        """Parse a primary expression."""
        if self.match("false"):
            return Literal(False)
        if self.match("true"):
            return Literal(True)
        if self.match("nil"):
            return Literal(None)

        if self.at_type(TK_NUMBER) or self.at_type(TK_STRING):
            return Literal(self.advance().literal)

        if self.match("super"):
            keyword = self.previous()
            self.expect(".", "Expect '.' after 'super'.")
            method = self.expect_ident("Expect superclass method name.")
            return Super(keyword, method)

        if self.match("this"):
            return This(self.previous())

        if self.at_type(TK_IDENT):
            return Variable(self.advance())

        if self.match("("):
            expr = self.expression()
            self.expect(")", "Expect ')' after expression.")
            return Grouping(expr)

        raise self.error(self.current(), "Expect expression.")


def parse_tokens(tokens: list[Token]) -> tuple[list[Stmt], list[ParseError]]:
    """Parse a token list into statements plus the syntax errors met."""
    parser = Parser(tokens)
    statements = parser.parse_program()
    return statements, parser.errors
