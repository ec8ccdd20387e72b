"""
Tree-walking evaluator for NScript.

Classes:
    Environment: Insertion-ordered variable table shared by every line of a session.
    Evaluator: Reduces AST nodes to `num`, `str` or `none` values and dispatches
        builtin functions and external program calls.

Evaluation rules:
    - Literals evaluate to fresh copies of themselves.
    - Identifiers read the environment (`unknown variable` when unbound).
    - Binary operators need operands of the same kind: numbers support
      `+ - * /`, strings only support `+`.
    - Unary `+`/`-` only apply to numbers.
    - Assignment stores the value and evaluates to `none`.
    - `name(args)` calls a builtin, `'program'(args)` runs an external program.

The evaluator never mutates the tree it is given. Every step returns a new value
node positioned at the node that produced it, so later errors point at the
right source range.

Usage:
    >>> evaluator = Evaluator()
    >>> evaluator.evaluate_line("2 + 3 * 4")
    NumNode(14.0, Position(0, 9))

Raises:
    NScriptError: For every user-facing failure; `evaluate_line` returns it instead.
    InternalInvariantError: When asked to evaluate a node no parser output contains.
"""

import math
from typing import Callable, Iterator

from nscript.nscript_ast import (
    AssignNode,
    BinNode,
    CallNode,
    IdentifierNode,
    Node,
    NoneNode,
    NumNode,
    Position,
    StringNode,
    UnaNode,
    describe_kind,
    display_text,
)
from nscript.nscript_constants import kind_to_string, operator_symbols
from nscript.nscript_errors import InternalInvariantError, NScriptError
from nscript.nscript_parser import parse_line
from nscript.nscript_platform import (
    Console,
    Filesystem,
    LocalFilesystem,
    LocalProcessRunner,
    ProcessRunner,
    StdConsole,
    as_dir_path,
    resolve_path,
)

BuiltinHandler = Callable[[CallNode, list[Node]], Node]


class Environment:
    """Ordered variable table. Reassignment overwrites in place and keeps the original slot."""

    def __init__(self) -> None:
        self._bindings: dict[str, Node] = {}

    def lookup(self, name: str) -> Node | None:
        return self._bindings.get(name)

    def assign(self, name: str, value: Node) -> None:
        self._bindings[name] = value

    def items(self) -> list[tuple[str, Node]]:
        return list(self._bindings.items())

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)


class Evaluator:
    """Evaluates NScript lines against one persistent session state.

    Attributes:
        filesystem (Filesystem): Backing store for the file builtins.
        processes (ProcessRunner): Runs external programs for string-callee calls.
        console (Console): Output sink, screen and power control.
        environment (Environment): Variables assigned so far in this session.
        builtins (dict[str, tuple[int | None, BuiltinHandler]]): Builtin name →
            (expected argument count, or None when variadic; handler).
    """

    def __init__(
        self,
        filesystem: Filesystem | None = None,
        processes: ProcessRunner | None = None,
        console: Console | None = None,
        cwd: str = "/",
    ) -> None:
        self.filesystem: Filesystem = (
            filesystem if filesystem is not None else LocalFilesystem()
        )
        if processes is None:
            local_fs = (
                self.filesystem if isinstance(self.filesystem, LocalFilesystem) else None
            )
            processes = LocalProcessRunner(local_fs)
        self.processes: ProcessRunner = processes
        self.console: Console = console if console is not None else StdConsole()
        self.environment = Environment()
        self._cwd = as_dir_path(resolve_path("/", cwd))

        self.builtins: dict[str, tuple[int | None, BuiltinHandler]] = {
            "print": (None, self.builtin_print),
            "floor": (1, self.builtin_floor),
            "cd": (1, self.builtin_cd),
            "clear": (0, self.builtin_clear),
            "shutdown": (0, self.builtin_shutdown),
            "ls": (0, self.builtin_ls),
            "mkdir": (1, self.builtin_mkdir),
            "rmdir": (1, self.builtin_rmdir),
            "rmfile": (1, self.builtin_rmfile),
            "write": (2, self.builtin_write),
            "read": (1, self.builtin_read),
        }

    @property
    def cwd(self) -> str:
        """Current working directory, always absolute with a trailing slash."""
        return self._cwd

    def evaluate_line(
        self, source: str, on_parsed: Callable[[Node], None] | None = None
    ) -> Node | NScriptError:
        """Parse and evaluate one line.

        Args:
            source: The input line.
            on_parsed: Optional hook receiving the AST before evaluation.

        Returns:
            The resulting value node, or the `NScriptError` that stopped the line.
            A line nested deeper than the interpreter stack allows is reported as
            an error spanning the whole line.
        """
        try:
            tree = parse_line(source)
            if on_parsed is not None:
                on_parsed(tree)
            return self.evaluate(tree)
        except NScriptError as e:
            return e
        except RecursionError:
            # long operator chains nest without parentheses
            return NScriptError(
                ["expression is nested too deeply"], Position(0, len(source))
            )

    def evaluate(self, node: Node) -> Node:
        method = getattr(self, f"eval_{node.kind.lower()}", None)
        if method is None:
            raise InternalInvariantError(
                f"Cannot evaluate node kind '{node.kind}' at {node.pos!r}"
            )
        result: Node = method(node)
        return result

    def eval_num(self, node: NumNode) -> Node:
        return NumNode(node.value, node.pos)

    def eval_string(self, node: StringNode) -> Node:
        return StringNode(node.value, node.pos)

    def eval_none(self, node: NoneNode) -> Node:
        return NoneNode(node.pos)

    def eval_ident(self, node: IdentifierNode) -> Node:
        value = self.environment.lookup(node.name)
        if value is None:
            raise NScriptError(["unknown variable `", node.name, "`"], node.pos)
        return value.relocate(node.pos)

    def eval_bin(self, node: BinNode) -> Node:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        op = node.op.kind
        symbol = operator_symbols[op]

        if left.kind != right.kind:
            raise NScriptError(
                [
                    "incompatible types `",
                    describe_kind(left),
                    "` and `",
                    describe_kind(right),
                    "` for bin `",
                    symbol,
                    "`",
                ],
                node.pos,
            )

        if isinstance(left, NumNode) and isinstance(right, NumNode):
            return NumNode(
                self.evaluate_operation_num(op, left.value, right.value, right), node.pos
            )

        if isinstance(left, StringNode) and isinstance(right, StringNode):
            if op != "PLUS":
                raise NScriptError(["string does not support bin `", symbol, "`"], node.pos)
            return StringNode(left.value + right.value, node.pos)

        raise NScriptError(
            ["type `", describe_kind(left), "` does not support bin"], node.pos
        )

    def evaluate_operation_num(self, op: str, left: float, right: float, rhs: Node) -> float:
        if op == "PLUS":
            return left + right
        if op == "MINUS":
            return left - right
        if op == "STAR":
            return left * right
        if op == "SLASH":
            if right == 0:
                raise NScriptError(["dividing by 0"], rhs.pos)
            return left / right
        raise InternalInvariantError(f"Unknown binary operator '{op}'")

    def eval_una(self, node: UnaNode) -> Node:
        term = self.evaluate(node.term)
        op = node.op.kind
        if not isinstance(term, NumNode):
            raise NScriptError(
                [
                    "type `",
                    describe_kind(term),
                    "` does not support unary `",
                    operator_symbols[op],
                    "`",
                ],
                node.pos,
            )
        value = -term.value if op == "MINUS" else term.value
        return NumNode(value, node.pos)

    def eval_assign(self, node: AssignNode) -> Node:
        value = self.evaluate(node.expr)
        self.environment.assign(node.target.name, value)
        return NoneNode(node.pos)

    def eval_call(self, node: CallNode) -> Node:
        if isinstance(node.callee, StringNode):
            return self.evaluate_process_call(node, node.callee)
        if isinstance(node.callee, IdentifierNode):
            return self.evaluate_builtin_call(node, node.callee)
        raise InternalInvariantError(
            f"Call with a '{node.callee.kind}' callee at {node.pos!r}"
        )

    def evaluate_builtin_call(self, node: CallNode, callee: IdentifierNode) -> Node:
        if callee.name not in self.builtins:
            raise NScriptError(["unknown builtin function `", callee.name, "`"], callee.pos)

        arity, handler = self.builtins[callee.name]
        if arity is not None and len(node.args) != arity:
            raise NScriptError(
                [
                    "builtin `",
                    callee.name,
                    "` expects ",
                    str(arity),
                    " args (found ",
                    str(len(node.args)),
                    ")",
                ],
                callee.pos,
            )

        args = [self.evaluate(arg) for arg in node.args]
        return handler(node, args)

    def evaluate_process_call(self, node: CallNode, callee: StringNode) -> Node:
        if not callee.value:
            raise NScriptError(["expected a non-empty program name"], callee.pos)
        if "\0" in callee.value:
            raise NScriptError(["program name cannot contain a null char"], callee.pos)
        args = [self.evaluate(arg) for arg in node.args]
        argv = [display_text(a) for a in args]
        for arg, text in zip(args, argv):
            if "\0" in text:
                raise NScriptError(["program argument cannot contain a null char"], arg.pos)
        path = resolve_path(self._cwd, callee.value)
        try:
            code = self.processes.spawn_and_wait(path, argv)
        except OSError as e:
            raise NScriptError(
                ["unable to run `", callee.value, "` (", e.strerror or str(e), ")"],
                callee.pos,
            ) from e
        return NumNode(code, node.pos)

    def expect_type(self, value: Node, kind: str) -> Node:
        if value.kind != kind:
            raise NScriptError(
                ["expected `", kind_to_string(kind), "` (found `", describe_kind(value), "`)"],
                value.pos,
            )
        return value

    def expect_path(self, value: Node) -> str:
        """Checks a path argument and resolves it against the working directory."""
        text: str = self.expect_type(value, "STRING").value  # type: ignore[attr-defined]
        if not text:
            raise NScriptError(["expected a non-empty path"], value.pos)
        if "\0" in text:
            raise NScriptError(["path cannot contain a null char"], value.pos)
        return resolve_path(self._cwd, text)

    def builtin_print(self, node: CallNode, args: list[Node]) -> Node:
        self.console.write("".join(display_text(arg) for arg in args) + "\n")
        return NoneNode(node.pos)

    def builtin_floor(self, node: CallNode, args: list[Node]) -> Node:
        value: float = self.expect_type(args[0], "NUM").value  # type: ignore[attr-defined]
        if math.isfinite(value):
            value = float(math.trunc(value))
        return NumNode(value, node.pos)

    def builtin_cd(self, node: CallNode, args: list[Node]) -> Node:
        target = self.expect_path(args[0])
        if not self.filesystem.is_dir(target):
            raise NScriptError(["unknown dir `", args[0].value, "`"], args[0].pos)  # type: ignore[attr-defined]
        self._cwd = as_dir_path(target)
        return NoneNode(node.pos)

    def builtin_clear(self, node: CallNode, args: list[Node]) -> Node:
        self.console.clear_screen()
        return NoneNode(node.pos)

    def builtin_shutdown(self, node: CallNode, args: list[Node]) -> Node:
        self.console.shutdown()
        return NoneNode(node.pos)

    def builtin_ls(self, node: CallNode, args: list[Node]) -> Node:
        try:
            entries = self.filesystem.list_entries(self._cwd)
        except OSError as e:
            raise NScriptError(["unable to list dir `", self._cwd, "`"], node.pos) from e
        for name, kind in entries:
            self.console.write(f"{kind:>6} {name}\n")
        return NoneNode(node.pos)

    def builtin_mkdir(self, node: CallNode, args: list[Node]) -> Node:
        target = self.expect_path(args[0])
        try:
            self.filesystem.make_dir(target)
        except OSError as e:
            raise NScriptError(["unable to create dir `", target, "`"], args[0].pos) from e
        return NoneNode(node.pos)

    def builtin_rmdir(self, node: CallNode, args: list[Node]) -> Node:
        target = self.expect_path(args[0])
        try:
            self.filesystem.remove_dir_recursive(target)
        except OSError as e:
            raise NScriptError(["unable to remove dir `", target, "`"], args[0].pos) from e
        return NoneNode(node.pos)

    def builtin_rmfile(self, node: CallNode, args: list[Node]) -> Node:
        target = self.expect_path(args[0])
        try:
            self.filesystem.remove_file(target)
        except OSError as e:
            raise NScriptError(["unable to remove file `", target, "`"], args[0].pos) from e
        return NoneNode(node.pos)

    def builtin_write(self, node: CallNode, args: list[Node]) -> Node:
        target = self.expect_path(args[0])
        content: str = self.expect_type(args[1], "STRING").value  # type: ignore[attr-defined]
        try:
            self.filesystem.write_all(target, content)
        except OSError as e:
            raise NScriptError(
                ["unable to open file `", target, "` for writing"], args[0].pos
            ) from e
        return NoneNode(node.pos)

    def builtin_read(self, node: CallNode, args: list[Node]) -> Node:
        target = self.expect_path(args[0])
        try:
            content = self.filesystem.read_all(target)
        except (OSError, UnicodeError) as e:
            raise NScriptError(["unable to open file `", target, "`"], args[0].pos) from e
        return StringNode(content, node.pos)


__all__ = ["BuiltinHandler", "Environment", "Evaluator"]
