"""
NScript CLI Entrypoint.

This module provides the command-line interface for running NScript.

Features:
    - Run a `.ns` script file or inline source, one statement per line.
    - Map NScript's `/` onto a host directory (`--root`, or `NSCRIPT_ROOT`).
    - Launch the interactive REPL, optionally verbose.

Example usage:
    nscript
    nscript -s "x = 2"
    nscript build.ns --root ./sdcard --cwd /games
    nscript --repl --verbose

Functions:
    run_nscript(source, is_string=False, root=None, cwd="/") -> int:
        Evaluates every line in one session and returns the exit status.

    main() -> None:
        Parses CLI arguments and dispatches to the REPL or `run_nscript`.
"""

import argparse
import os
import sys

from nscript.nscript_ast import render_value
from nscript.nscript_errors import NScriptError
from nscript.nscript_evaluator import Evaluator
from nscript.nscript_platform import LocalFilesystem
from nscript.nscript_repl import format_error

ROOT_ENV_VAR = "NSCRIPT_ROOT"


def default_root() -> str:
    return os.getenv(ROOT_ENV_VAR) or "/"


def make_evaluator(root: str | None = None, cwd: str = "/") -> Evaluator:
    """Builds an evaluator whose filesystem is rooted at `root` (default: `NSCRIPT_ROOT` or `/`)."""
    filesystem = LocalFilesystem(root if root is not None else default_root())
    return Evaluator(filesystem=filesystem, cwd=cwd)


def run_nscript(
    source: str,
    is_string: bool = False,
    root: str | None = None,
    cwd: str = "/",
    evaluator: Evaluator | None = None,
) -> int:
    """
    Run NScript source line by line in a single session.

    Args:
        source (str): The NScript source or path to a `.ns` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        root (str | None): Host directory mapped to `/`.
        cwd (str): Initial working directory inside the root.
        evaluator (Evaluator | None): Session to run in; built from `root`/`cwd` when omitted.

    Returns:
        int: 0 when every line evaluated, 1 after the first error.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.ns'.
    """
    if not is_string and not source.endswith(".ns"):
        raise ValueError("Only .ns files are supported.")
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    if evaluator is None:
        evaluator = make_evaluator(root, cwd)

    for line in source.splitlines():
        if not line.strip() or line.strip().startswith("#"):
            continue
        result = evaluator.evaluate_line(line)
        if isinstance(result, NScriptError):
            print(format_error(line, result), file=sys.stderr)
            return 1
        rendered = render_value(result)
        if rendered is not None:
            print(rendered)
        if getattr(evaluator.console, "powered_off", False):
            break
    return 0


def main() -> None:
    """
    Entry point for the NScript CLI.

    Launches the REPL if no arguments are passed or `--repl` is specified,
    otherwise runs the given file or `-s` source and exits with its status.

    Supported flags:
        - `-s`, `--string`: Interpret source as raw code instead of a file path.
        - `--root`: Host directory mapped to `/` (default: `NSCRIPT_ROOT` or `/`).
        - `--cwd`: Initial working directory (default `/`).
        - `--repl`: Launch the interactive REPL.
        - `--verbose`: Print each parsed tree in the REPL.
    """
    if len(sys.argv) == 1:
        from nscript.nscript_repl import start_repl

        start_repl(make_evaluator())
        return
    parser = argparse.ArgumentParser(prog="nscript")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "--root",
        metavar="DIR",
        default=None,
        help=f"Host directory mapped to / (default: ${ROOT_ENV_VAR} or /)",
    )
    parser.add_argument(
        "--cwd", default="/", help="Initial working directory (default: /)"
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of running a script",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Verbose REPL mode (if --repl)"
    )

    args = parser.parse_args()
    evaluator = make_evaluator(args.root, args.cwd)

    if args.repl or args.source is None:
        from nscript.nscript_repl import start_repl

        start_repl(evaluator, verbose=args.verbose)
    else:
        sys.exit(run_nscript(args.source, is_string=args.string, evaluator=evaluator))


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
