"""Data-driven test runner for the Lox pipeline.

Each ``.tests`` file holds cases of the form::

    === name
    <lox source>
    ---
    <expected>
    ---

Expected is ``ok``, ``error: <message fragment>``, or (interpreter cases
only) the exact lines the program prints.
"""

import io
import signal
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from lox import Reporter, compile_source, parse, run, tokenize

PHASE_TIMEOUT = 5
TESTS_DIR = Path(__file__).parent

TESTS = {
    "lox_scan": {"dir": "scanner"},
    "lox_parse": {"dir": "parser"},
    "lox_resolve": {"dir": "resolver"},
    "lox_interpret": {"dir": "interpreter"},
}


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------


def _timeout_handler(signum, frame):
    raise TimeoutError("phase timed out")


signal.signal(signal.SIGALRM, _timeout_handler)


# ---------------------------------------------------------------------------
# Case file parsing
# ---------------------------------------------------------------------------


def parse_case_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_cases(test_dir: Path) -> list[tuple[str, str, str]]:
    """Glob *.tests in test_dir, return (test_id, input, expected) tuples."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_case_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


# ---------------------------------------------------------------------------
# Phase result + assertion checker
# ---------------------------------------------------------------------------


@dataclass
class PhaseResult:
    errors: list[str] = field(default_factory=list)
    output: list[str] = field(default_factory=list)


def check_expected(expected: str, result: PhaseResult, phase: str) -> None:
    if expected == "ok":
        if result.errors:
            pytest.fail(f"Expected ok, got error: {result.errors[0]}")
        return
    if expected.startswith("error:"):
        expected_msg = expected[6:].strip()
        if not result.errors:
            pytest.fail(f"Expected error containing '{expected_msg}', got ok")
        found = any(expected_msg in e for e in result.errors)
        if not found:
            pytest.fail(
                f"Expected error containing '{expected_msg}', got: {result.errors}"
            )
        return
    # Program output, line for line
    if result.errors:
        pytest.fail(f"{phase} failed: {result.errors[0]}")
    expected_lines = [line.strip() for line in expected.split("\n")]
    if result.output != expected_lines:
        pytest.fail(
            f"Output mismatch\n"
            f"  expected: {expected_lines!r}\n"
            f"  actual:   {result.output!r}"
        )


# ---------------------------------------------------------------------------
# Phase runners
# ---------------------------------------------------------------------------


def run_lox_scan(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        _, errors = tokenize(source)
        return PhaseResult(errors=[str(e) for e in errors])
    finally:
        signal.alarm(0)


def run_lox_parse(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        parse(source)
        return PhaseResult()
    except Exception as e:
        return PhaseResult(errors=[str(e)])
    finally:
        signal.alarm(0)


def run_lox_resolve(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        reporter = Reporter(io.StringIO())
        compile_source(source, reporter)
        return PhaseResult(errors=list(reporter.messages))
    finally:
        signal.alarm(0)


def run_lox_interpret(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        result = run(source)
        errors = [line for line in result.stderr.split("\n") if line]
        output = result.stdout.split("\n")[:-1] if result.stdout else []
        return PhaseResult(errors=errors, output=output)
    finally:
        signal.alarm(0)


# ---------------------------------------------------------------------------
# Parametrization
# ---------------------------------------------------------------------------


def pytest_generate_tests(metafunc):
    for name, cfg in TESTS.items():
        fixture = f"{name}_input"
        if fixture in metafunc.fixturenames:
            cases = discover_cases(TESTS_DIR / cfg["dir"])
            params = [pytest.param(inp, exp, id=tid) for tid, inp, exp in cases]
            metafunc.parametrize(f"{fixture},{name}_expected", params)


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------


def test_lox_scan(lox_scan_input, lox_scan_expected):
    check_expected(lox_scan_expected, run_lox_scan(lox_scan_input), "lox_scan")


def test_lox_parse(lox_parse_input, lox_parse_expected):
    check_expected(lox_parse_expected, run_lox_parse(lox_parse_input), "lox_parse")


def test_lox_resolve(lox_resolve_input, lox_resolve_expected):
    check_expected(
        lox_resolve_expected, run_lox_resolve(lox_resolve_input), "lox_resolve"
    )


def test_lox_interpret(lox_interpret_input, lox_interpret_expected):
    check_expected(
        lox_interpret_expected,
        run_lox_interpret(lox_interpret_input),
        "lox_interpret",
    )
