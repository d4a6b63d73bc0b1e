"""Lox runtime object model: environments, callables, classes, instances.

Values are plain Python objects: ``None`` is nil, ``bool`` and ``float``
and ``str`` stand for themselves, and everything callable derives from
``LoxCallable``.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence

from .ast import Function
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter

THIS = "this"
SUPER = "super"
INIT = "init"


# ============================================================
# Diagnostics
# ============================================================


class LoxRuntimeError(Exception):
    """Runtime fault raised while evaluating; reported once at top level."""

    def __init__(self, token: Token, msg: str):
        self.token: Token = token
        self.msg: str = msg
        self.line: int = token.line
        super().__init__(f"{msg}\n[line {token.line}]")


# ============================================================
# Control flow
# ============================================================


@dataclass
class ReturnValue:
    """Completion of a statement that executed 'return'.

    Statement execution yields ``None`` on normal completion and a
    ``ReturnValue`` when unwinding to the nearest call.
    """

    value: object


Completion = ReturnValue | None


# ============================================================
# Environments
# ============================================================


class Environment:
    """One scope frame: a name table plus the enclosing frame."""

    def __init__(self, enclosing: Environment | None = None):
        self.enclosing: Environment | None = enclosing
        self.values: dict[str, object] = {}

    def define(self, name: str, value: object) -> None:
        self.values[name] = value

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            assert env.enclosing is not None, "resolver distance past global frame"
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> object:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: object) -> None:
        self.ancestor(distance).values[name.lexeme] = value

    def get(self, name: Token) -> object:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: object) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")


# ============================================================
# Callables
# ============================================================


class LoxCallable:
    """Anything that can appear before '(' in a call."""

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        raise NotImplementedError


class NativeFunction(LoxCallable):
    """A host function exposed in the global frame."""

    def __init__(self, name: str, arity: int, fn: Callable[..., object]):
        self.name = name
        self._arity = arity
        self.fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        return self.fn(*arguments)

    def __str__(self) -> str:
        return "<native fn>"


class LoxFunction(LoxCallable):
    """A user function or method closed over its defining frame."""

    def __init__(
        self, declaration: Function, closure: Environment, is_initializer: bool
    ):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def bind(self, instance: LoxInstance) -> LoxFunction:
        env = Environment(self.closure)
        env.define(THIS, instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        completion = interpreter.execute_block(self.declaration.body, env)
        if self.is_initializer:
            return self.closure.get_at(0, THIS)
        if completion is not None:
            return completion.value
        return None

    def __str__(self) -> str:
        return f"<fn {self.declaration.name.lexeme}>"


class LoxClass(LoxCallable):
    """A class value. Calling it constructs an instance."""

    def __init__(
        self,
        name: str,
        superclass: LoxClass | None,
        methods: dict[str, LoxFunction],
    ):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> LoxFunction | None:
        klass: LoxClass | None = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method(INIT)
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        instance = LoxInstance(self)
        initializer = self.find_method(INIT)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name


class LoxInstance:
    """An object: its class plus a mutable field table."""

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: dict[str, object] = {}

    def get(self, name: Token) -> object:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: object) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"


# ============================================================
# Values
# ============================================================


def is_truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: object, b: object) -> bool:
    """Lox equality: no cross-type coercion, nil equals only nil."""
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, float) and isinstance(b, float):
        # Bitwise double equality: NaN equals NaN, 0 and -0 differ.
        if math.isnan(a) or math.isnan(b):
            return math.isnan(a) and math.isnan(b)
        return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def stringify(value: object) -> str:
    """Render a value the way 'print' shows it."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            if value == 0 and math.copysign(1.0, value) < 0:
                return "-0"
            return str(int(value))
        return repr(value)
    return str(value)


def clock() -> float:
    """Wall-clock seconds since the epoch."""
    return time.time()


NATIVES: tuple[NativeFunction, ...] = (NativeFunction("clock", 0, clock),)
