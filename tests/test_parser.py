"""Parser unit tests: tree shape, desugaring and error recovery."""

from lox import parse, tokenize
from lox.ast import (
    Assign,
    Binary,
    Block,
    Call,
    ErrorStmt,
    Expression,
    Get,
    Literal,
    Logical,
    Print,
    Set,
    Unary,
    Var,
    While,
)
from lox.parse import parse_tokens


def parse_with_errors(source: str):
    tokens, scan_errors = tokenize(source)
    assert scan_errors == []
    return parse_tokens(tokens)


def expr_of(source: str):
    (stmt,) = parse(source)
    assert isinstance(stmt, Expression)
    return stmt.expression


def test_binary_is_left_associative():
    expr = expr_of("1 - 2 - 3;")
    assert isinstance(expr, Binary)
    assert isinstance(expr.left, Binary)
    assert expr.right == Literal(3.0)


def test_factor_binds_tighter_than_term():
    expr = expr_of("1 + 2 * 3;")
    assert expr.operator.lexeme == "+"
    assert isinstance(expr.right, Binary)
    assert expr.right.operator.lexeme == "*"


def test_and_binds_tighter_than_or():
    expr = expr_of("a or b and c;")
    assert isinstance(expr, Logical)
    assert expr.operator.lexeme == "or"
    assert isinstance(expr.right, Logical)
    assert expr.right.operator.lexeme == "and"


def test_unary_nests():
    expr = expr_of("!!x;")
    assert isinstance(expr, Unary)
    assert isinstance(expr.right, Unary)


def test_assignment_is_right_associative():
    expr = expr_of("a = b = 1;")
    assert isinstance(expr, Assign)
    assert isinstance(expr.value, Assign)


def test_property_assignment_becomes_set():
    expr = expr_of("a.b.c = 1;")
    assert isinstance(expr, Set)
    assert expr.name.lexeme == "c"
    assert isinstance(expr.object, Get)


def test_call_records_closing_paren():
    expr = expr_of("f(1,\n2);")
    assert isinstance(expr, Call)
    assert len(expr.args) == 2
    assert expr.paren.lexeme == ")"
    assert expr.paren.line == 2


def test_for_desugars_to_while_in_block():
    (stmt,) = parse("for (var i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(stmt, Block)
    init, loop = stmt.statements
    assert isinstance(init, Var)
    assert isinstance(loop, While)
    assert isinstance(loop.body, Block)
    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert isinstance(increment, Expression)


def test_for_without_condition_loops_on_true():
    (stmt,) = parse("for (;;) print 1;")
    assert isinstance(stmt, While)
    assert stmt.condition == Literal(True)
    assert isinstance(stmt.body, Print)


def test_recovery_reports_independent_errors():
    statements, errors = parse_with_errors("print 1\nprint 2\nprint 3;")
    assert [str(e) for e in errors] == [
        "[line 2] Error at 'print': Expect ';' after value.",
        "[line 3] Error at 'print': Expect ';' after value.",
    ]
    assert isinstance(statements[0], ErrorStmt)
    assert isinstance(statements[1], ErrorStmt)
    assert isinstance(statements[2], Print)


def test_recovery_skips_to_semicolon():
    statements, errors = parse_with_errors("var = 1 + 2; print 3;")
    assert len(errors) == 1
    assert errors[0].msg == "Expect variable name."
    assert isinstance(statements[-1], Print)


def test_invalid_assignment_target_does_not_desync():
    statements, errors = parse_with_errors("1 = 2; print 3;")
    assert [e.msg for e in errors] == ["Invalid assignment target."]
    assert isinstance(statements[0], Expression)
    assert isinstance(statements[1], Print)


def test_error_at_end_of_input():
    _, errors = parse_with_errors("print 1")
    assert str(errors[0]) == "[line 1] Error at end: Expect ';' after value."


def test_too_many_arguments_is_reported():
    args = ", ".join(["1"] * 256)
    statements, errors = parse_with_errors(f"f({args});")
    assert [e.msg for e in errors] == ["Can't have more than 255 arguments."]
    assert isinstance(statements[0], Expression)


def test_too_many_parameters_is_reported():
    params = ", ".join(f"p{i}" for i in range(256))
    _, errors = parse_with_errors(f"fun f({params}) {{}}")
    assert [e.msg for e in errors] == ["Can't have more than 255 parameters."]


def test_excessive_nesting_is_reported():
    depth = 3000
    source = "print " + "(" * depth + "1" + ")" * depth + ";\nprint 2;"
    statements, errors = parse_with_errors(source)
    assert [e.msg for e in errors] == ["Too much nesting."]
    assert errors[0].line == 1
