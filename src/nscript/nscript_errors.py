"""
Error types raised by the NScript lexer, parser and evaluator.

Classes:
    NScriptError: The single user-facing error. Carries message fragments and the
        `Position` of the offending source range, so the REPL can underline it.
    InternalInvariantError: Raised for states valid input can never reach
        (e.g. evaluating a `<bad>` node). Never caught by the core.
"""

from nscript.nscript_ast import Position


class NScriptError(Exception):
    """A positioned NScript error.

    Attributes:
        message (list[str]): Message fragments, joined for display.
        position (Position): Source range the error refers to.

    Example:
        raise NScriptError(["unknown variable `", "x", "`"], Position(0, 1))
    """

    def __init__(self, message: list[str], position: Position):
        self.message = list(message)
        self.position = position
        super().__init__(self.text)

    @property
    def text(self) -> str:
        return "".join(self.message)

    def __repr__(self) -> str:
        return f"NScriptError({self.text!r}, {self.position!r})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, NScriptError)
            and self.message == other.message
            and self.position == other.position
        )

    __hash__ = Exception.__hash__


class InternalInvariantError(RuntimeError):
    """Raised when the interpreter reaches a state no valid input produces."""
