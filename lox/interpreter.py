"""Lox interpreter: tree-walking evaluation of resolved statements.

Statements run for effect and report how they completed: ``None`` for
normal completion, ``ReturnValue`` when a ``return`` is unwinding to the
enclosing call. Failures travel separately as ``LoxRuntimeError``, which
``interpret`` catches, reports once and uses to end the run.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Iterable, Sequence

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
from .report import Reporter
from .runtime import (
    INIT,
    NATIVES,
    SUPER,
    THIS,
    Completion,
    Environment,
    LoxCallable,
    LoxClass,
    LoxFunction,
    LoxInstance,
    LoxRuntimeError,
    ReturnValue,
    is_equal,
    is_truthy,
    stringify,
)
from .tokens import Token

logger = logging.getLogger(__name__)


def _write_stdout(text: str) -> None:
    sys.stdout.write(text + "\n")


class Interpreter:
    """Executes statements against a persistent global environment."""

    def __init__(
        self,
        out: Callable[[str], None] | None = None,
        reporter: Reporter | None = None,
    ):
        self.out: Callable[[str], None] = out if out is not None else _write_stdout
        self.reporter: Reporter = reporter if reporter is not None else Reporter()
        self.globals = Environment()
        self.environment = self.globals
        self.locals: dict[int, int] = {}
        for native in NATIVES:
            self.globals.define(native.name, native)

    # ---- Entry points --------------------------------------------------------

    def resolve(self, locals_: dict[int, int]) -> None:
        """Merge a resolver distance table into the interpreter's."""
        self.locals.update(locals_)

    def interpret(self, statements: Iterable[Stmt]) -> bool:
        """Run statements; returns False if a runtime error ended the run."""
        try:
            for st in statements:
                self.execute(st)
        except LoxRuntimeError as err:
            logger.debug("run aborted at line %d: %s", err.line, err.msg)
            self.environment = self.globals
            self.reporter.runtime_error(err)
            return False
        return True

    # ---- Statements ----------------------------------------------------------

    def execute(self, st: Stmt) -> Completion:
        match st:
            case Expression(expression=expr):
                self.evaluate(expr)
            case Print(expression=expr):
                self.out(stringify(self.evaluate(expr)))
            case Var(name=name, initializer=initializer):
                value = None
                if initializer is not None:
                    value = self.evaluate(initializer)
                self.environment.define(name.lexeme, value)
            case Block(statements=statements):
                return self.execute_block(statements, Environment(self.environment))
            case If(condition=cond, then_branch=then_branch, else_branch=else_branch):
                if is_truthy(self.evaluate(cond)):
                    return self.execute(then_branch)
                if else_branch is not None:
                    return self.execute(else_branch)
            case While(condition=cond, body=body):
                while is_truthy(self.evaluate(cond)):
                    completion = self.execute(body)
                    if completion is not None:
                        return completion
            case Function(name=name):
                fn = LoxFunction(st, self.environment, False)
                self.environment.define(name.lexeme, fn)
            case Return(value=value):
                result = None
                if value is not None:
                    result = self.evaluate(value)
                return ReturnValue(result)
            case Class():
                self.execute_class(st)
            case ErrorStmt():
                pass
            case _:
                raise TypeError(f"unknown statement node {type(st).__name__}")
        return None

    def execute_block(
        self, statements: Sequence[Stmt], environment: Environment
    ) -> Completion:
        previous = self.environment
        try:
            self.environment = environment
            for st in statements:
                completion = self.execute(st)
                if completion is not None:
                    return completion
        finally:
            self.environment = previous
        return None

    def execute_class(self, st: Class) -> None:
        superclass: LoxClass | None = None
        if st.superclass is not None:
            value = self.evaluate(st.superclass)
            if not isinstance(value, LoxClass):
                raise LoxRuntimeError(
                    st.superclass.name, "Superclass must be a class."
                )
            superclass = value

        self.environment.define(st.name.lexeme, None)
        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define(SUPER, superclass)

        methods: dict[str, LoxFunction] = {}
        for method in st.methods:
            methods[method.name.lexeme] = LoxFunction(
                method, self.environment, method.name.lexeme == INIT
            )
        klass = LoxClass(st.name.lexeme, superclass, methods)

        if superclass is not None:
            assert self.environment.enclosing is not None
            self.environment = self.environment.enclosing
        self.environment.assign(st.name, klass)

    # ---- Expressions ---------------------------------------------------------

    def evaluate(self, expr: Expr) -> object:
        match expr:
            case Literal(value=value):
                return value
            case Grouping(expression=inner):
                return self.evaluate(inner)
            case Variable(name=name):
                return self.look_up_variable(name, expr)
            case Assign(name=name, value=value_expr):
                value = self.evaluate(value_expr)
                distance = self.locals.get(expr.node_id)
                if distance is not None:
                    self.environment.assign_at(distance, name, value)
                else:
                    self.globals.assign(name, value)
                return value
            case Logical(left=left_expr, operator=operator, right=right_expr):
                left = self.evaluate(left_expr)
                if operator.type == "or":
                    if is_truthy(left):
                        return left
                elif not is_truthy(left):
                    return left
                return self.evaluate(right_expr)
            case Unary(operator=operator, right=right_expr):
                return self.eval_unary(operator, self.evaluate(right_expr))
            case Binary(left=left_expr, operator=operator, right=right_expr):
                left = self.evaluate(left_expr)
                right = self.evaluate(right_expr)
                return self.eval_binary(operator, left, right)
            case Call():
                return self.eval_call(expr)
            case Get(object=obj_expr, name=name):
                obj = self.evaluate(obj_expr)
                if isinstance(obj, LoxInstance):
                    return obj.get(name)
                raise LoxRuntimeError(name, "Only instances have properties.")
            case Set(object=obj_expr, name=name, value=value_expr):
                obj = self.evaluate(obj_expr)
                if not isinstance(obj, LoxInstance):
                    raise LoxRuntimeError(name, "Only instances have fields.")
                obj.set(name, self.evaluate(value_expr))
                return None
            case This(keyword=keyword):
                return self.look_up_variable(keyword, expr)
            case Super():
                return self.eval_super(expr)
            case _:
                raise TypeError(f"unknown expression node {type(expr).__name__}")

    def look_up_variable(self, name: Token, expr: Expr) -> object:
        distance = self.locals.get(expr.node_id)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def eval_unary(self, operator: Token, right: object) -> object:
        if operator.lexeme == "-":
            _check_number_operand(operator, right)
            return -right  # type: ignore[operator]
        if operator.lexeme == "!":
            return not is_truthy(right)
        raise TypeError(f"unknown unary operator {operator.lexeme!r}")

    def eval_binary(self, operator: Token, left: object, right: object) -> object:
        op = operator.lexeme
        if op == "==":
            return is_equal(left, right)
        if op == "!=":
            return not is_equal(left, right)

        if op == "+":
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, (str, float)):
                return left + stringify(right)
            if isinstance(left, float) and isinstance(right, str):
                return stringify(left) + right
            raise LoxRuntimeError(
                operator, "Operands must be two numbers or two strings."
            )

        _check_number_operands(operator, left, right)
        assert isinstance(left, float) and isinstance(right, float)
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            if left == 0 or right == 0:
                raise LoxRuntimeError(operator, "Can't divide by zero.")
            return left / right
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        raise TypeError(f"unknown binary operator {op!r}")

    def eval_call(self, expr: Call) -> object:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(arg) for arg in expr.args]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                expr.paren,
                f"Expected {callee.arity()} arguments but got {len(arguments)}.",
            )
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None

    def eval_super(self, expr: Super) -> object:
        distance = self.locals[expr.node_id]
        superclass = self.environment.get_at(distance, SUPER)
        instance = self.environment.get_at(distance - 1, THIS)
        assert isinstance(superclass, LoxClass)
        assert isinstance(instance, LoxInstance)
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(
                expr.method, f"Undefined property '{expr.method.lexeme}'."
            )
        return method.bind(instance)


def _check_number_operand(operator: Token, operand: object) -> None:
    if isinstance(operand, float):
        return
    raise LoxRuntimeError(operator, "Operand must be a number.")


def _check_number_operands(operator: Token, left: object, right: object) -> None:
    if isinstance(left, float) and isinstance(right, float):
        return
    raise LoxRuntimeError(operator, "Operands must be numbers.")
