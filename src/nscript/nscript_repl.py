"""
Interactive read-evaluate-print loop for NScript.

The prompt shows the evaluator's working directory (`/ $ `). Each line is
evaluated in the same session; non-`none` results are printed in their
rendered form and errors are underlined beneath the typed input.

REPL commands:
    exit / quit     Leave the REPL.
    verbose-mode    Toggle printing the parsed tree before evaluation.
    # ...           Comment line, ignored.
"""

from nscript.nscript_ast import Node, render_value
from nscript.nscript_errors import NScriptError
from nscript.nscript_evaluator import Evaluator


def underline(error: NScriptError, indent: int = 0) -> str:
    """Caret line marking the error's position (at least one caret)."""
    pos = error.position
    return " " * (indent + pos.start) + "^" * max(1, pos.length)


def format_error(
    source: str, error: NScriptError, echo: bool = True, indent: int = 0
) -> str:
    lines = [source] if echo else []
    lines.append(underline(error, indent))
    lines.append(f"[error] >>> {error.text}")
    return "\n".join(lines)


def print_ast(tree: Node) -> None:
    print(f"[ast] >>> {tree.to_source()}")


def prompt_for(evaluator: Evaluator) -> str:
    return f"{evaluator.cwd} $ "


def start_repl(evaluator: Evaluator | None = None, verbose: bool = False) -> None:
    evaluator = evaluator if evaluator is not None else Evaluator()
    print("NScript REPL. Type 'exit' or 'quit' to leave.")

    while True:
        try:
            prompt = prompt_for(evaluator)
            line = input(prompt)
            command = line.strip()
            if command in ("exit", "quit"):
                print("Exiting NScript REPL.")
                return
            if not command or command.startswith("#"):
                continue
            if command.lower() == "verbose-mode":
                verbose = not verbose
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue

            result = evaluator.evaluate_line(
                line, on_parsed=print_ast if verbose else None
            )
            if isinstance(result, NScriptError):
                print(format_error(line, result, echo=False, indent=len(prompt)))
                continue

            rendered = render_value(result)
            if rendered is not None:
                print(rendered)

            if getattr(evaluator.console, "powered_off", False):
                print("Shutting down NScript.")
                return

        except (KeyboardInterrupt, EOFError):
            print("\nExiting NScript REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
