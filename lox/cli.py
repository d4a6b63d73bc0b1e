"""Lox CLI: run a script, or start a prompt when no script is given."""

from __future__ import annotations

import logging
import sys

from .session import EX_OK, EX_USAGE, Lox

# Deeply recursive Lox programs map onto Python recursion.
RECURSION_LIMIT = 10000

USAGE: str = """\
lox [OPTIONS] [SCRIPT]

Run a Lox script, or start an interactive prompt.

Options:
  -v, --verbose      Log pipeline stages to stderr (repeat for debug)
  -h, --help         Show this help message
"""


def _configure_logging(verbosity: int) -> None:
    """Attach a stderr handler to the ``lox`` logger: 0 warning, 1 info, 2+ debug."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("lox")
    root.setLevel(level)
    root.addHandler(handler)


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    script: str = ""
    verbosity = 0
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EX_OK
        elif arg == "-v" or arg == "--verbose":
            verbosity += 1
            i += 1
        elif arg == "-vv":
            verbosity += 2
            i += 1
        elif arg.startswith("-"):
            print("lox: unknown flag '" + arg + "'", file=sys.stderr)
            return EX_USAGE
        elif script == "":
            script = arg
            i += 1
        else:
            print("Usage: lox [script]", file=sys.stderr)
            return EX_USAGE

    if verbosity:
        _configure_logging(verbosity)
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)

    session = Lox()
    if script == "":
        return session.run_prompt()
    try:
        return session.run_file(script)
    except FileNotFoundError:
        print("lox: " + script + ": No such file or directory", file=sys.stderr)
        return EX_USAGE
    except OSError as e:
        print("lox: " + script + ": " + str(e), file=sys.stderr)
        return EX_USAGE
    except ValueError:
        print("lox: " + script + ": invalid utf-8", file=sys.stderr)
        return EX_USAGE


if __name__ == "__main__":
    sys.exit(main())
