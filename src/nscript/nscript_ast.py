"""
Defines the position model and the node types shared by the NScript lexer,
parser and evaluator.

Classes:
    Position: Half-open `[start, end)` character range inside one input line.
    Node: Base class of every tagged value. `kind` is the discriminator.
    Token: A lexical token (punctuation, `<bad>`, `<eof>` and raw literals).
    NumNode, StringNode, IdentifierNode, NoneNode: Literal/value nodes.
    BinNode, UnaNode, CallNode, AssignNode: Operator, call and assignment nodes.

Each node class only carries the fields of its own kind, so reading a payload
that does not belong to the active kind is an `AttributeError`, never a stale
value. Nodes are never mutated after construction: the evaluator builds new
value nodes (see `Node.relocate`) instead of rewriting the tree it was given.

Functions:
    render_num(value): Decimal rendering with trailing zeros stripped.
    escape_string(text): Re-applies the six NScript escape sequences.
    render_value(node): REPL rendering of an evaluation result (`None` → nothing).
    display_text(node): Text emitted by `print` and passed as process arguments.
"""

from typing import Any

from nscript.nscript_constants import QUOTE, UNESCAPES, kind_to_string


class Position:
    """A half-open character range `[start, end)` in the source line.

    Attributes:
        start (int): Offset of the first character.
        end (int): Offset one past the last character.
    """

    def __init__(self, start: int = 0, end: int = 0):
        if start > end:
            raise ValueError(f"Position start {start} is past end {end}")
        self.start = start
        self.end = end

    @property
    def length(self) -> int:
        return self.end - self.start

    def merge(self, other: "Position") -> "Position":
        """Returns the range spanning from this position to `other`."""
        return Position(min(self.start, other.start), max(self.end, other.end))

    def __repr__(self) -> str:
        return f"Position({self.start}, {self.end})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Position)
            and self.start == other.start
            and self.end == other.end
        )

    def __hash__(self) -> int:
        return hash((self.start, self.end))


def render_num(value: float) -> str:
    """Renders a number with six fractional digits, then strips trailing zeros and a bare dot."""
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def escape_string(text: str) -> str:
    return "".join(UNESCAPES.get(ch, ch) for ch in text)


class Node:
    """Base class for every NScript node.

    Attributes:
        kind (str): Discriminator tag (e.g. "NUM", "BIN", "EOF").
        pos (Position): Source range covered by the node.
    """

    kind: str = ""

    def __init__(self, pos: Position | None = None):
        self.pos = pos if pos is not None else Position()

    def payload(self) -> tuple[Any, ...]:
        return ()

    def relocate(self, pos: Position) -> "Node":
        """Returns a copy of this node positioned at `pos`."""
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone.pos = pos
        return clone

    def to_source(self) -> str:
        raise NotImplementedError(f"No source form for node kind '{self.kind}'")

    def __str__(self) -> str:
        return self.to_source()

    def __repr__(self) -> str:
        fields = ", ".join(repr(p) for p in self.payload())
        name = type(self).__name__
        return f"{name}({fields}{', ' if fields else ''}{self.pos!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Node)
            and self.kind == other.kind
            and self.payload() == other.payload()
            and self.pos == other.pos
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.pos))


class Token(Node):
    """A lexical token.

    Literal tokens keep their decoded value (`float` for "NUM", the unescaped
    text for "STRING", the name for "IDENT"). Punctuation, `<bad>` and `<eof>`
    tokens keep the character they were lexed from.

    Attributes:
        kind (str): Token type, e.g. "PLUS", "IDENT", "EOF".
        value (Any): Decoded value or raw character.
        pos (Position): Source range of the token.
    """

    def __init__(self, kind: str, value: Any = None, pos: Position | None = None):
        super().__init__(pos)
        self.kind = kind
        self.value = value

    def payload(self) -> tuple[Any, ...]:
        return (self.kind, self.value)

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r})"

    def to_source(self) -> str:
        if self.kind == "EOF":
            return "<eof>"
        if self.kind == "NUM":
            return render_num(self.value)
        if self.kind == "STRING":
            return QUOTE + escape_string(self.value) + QUOTE
        if self.kind == "NONE":
            return "none"
        return str(self.value)


class NumNode(Node):
    kind = "NUM"

    def __init__(self, value: float, pos: Position | None = None):
        super().__init__(pos)
        self.value = float(value)

    def payload(self) -> tuple[Any, ...]:
        return (self.value,)

    def to_source(self) -> str:
        return render_num(self.value)


class StringNode(Node):
    kind = "STRING"

    def __init__(self, value: str, pos: Position | None = None):
        super().__init__(pos)
        self.value = str(value)

    def payload(self) -> tuple[Any, ...]:
        return (self.value,)

    def to_source(self) -> str:
        return QUOTE + escape_string(self.value) + QUOTE


class IdentifierNode(Node):
    kind = "IDENT"

    def __init__(self, name: str, pos: Position | None = None):
        super().__init__(pos)
        self.name = name

    def payload(self) -> tuple[Any, ...]:
        return (self.name,)

    def to_source(self) -> str:
        return self.name


class NoneNode(Node):
    kind = "NONE"

    def to_source(self) -> str:
        return "none"


class BinNode(Node):
    """Binary operation. `op` is the operator `Token` ("PLUS", "MINUS", "STAR", "SLASH")."""

    kind = "BIN"

    def __init__(self, left: Node, right: Node, op: Token, pos: Position | None = None):
        super().__init__(pos if pos is not None else left.pos.merge(right.pos))
        self.left = left
        self.right = right
        self.op = op

    def payload(self) -> tuple[Any, ...]:
        return (self.left, self.right, self.op)

    def to_source(self) -> str:
        return f"({self.left.to_source()} {self.op.to_source()} {self.right.to_source()})"


class UnaNode(Node):
    kind = "UNA"

    def __init__(self, term: Node, op: Token, pos: Position | None = None):
        super().__init__(pos if pos is not None else op.pos.merge(term.pos))
        self.term = term
        self.op = op

    def payload(self) -> tuple[Any, ...]:
        return (self.term, self.op)

    def to_source(self) -> str:
        return self.op.to_source() + self.term.to_source()


class CallNode(Node):
    """Call of a builtin (identifier callee) or of an external program (string callee)."""

    kind = "CALL"

    def __init__(self, callee: Node, args: list[Node], pos: Position | None = None):
        super().__init__(pos if pos is not None else callee.pos)
        self.callee = callee
        self.args: tuple[Node, ...] = tuple(args)

    def payload(self) -> tuple[Any, ...]:
        return (self.callee, self.args)

    def to_source(self) -> str:
        args = ", ".join(arg.to_source() for arg in self.args)
        return f"{self.callee.to_source()}({args})"


class AssignNode(Node):
    kind = "ASSIGN"

    def __init__(self, target: IdentifierNode, expr: Node, pos: Position | None = None):
        super().__init__(pos if pos is not None else target.pos.merge(expr.pos))
        self.target = target
        self.expr = expr

    def payload(self) -> tuple[Any, ...]:
        return (self.target, self.expr)

    def to_source(self) -> str:
        return f"{self.target.to_source()} = {self.expr.to_source()}"


def describe_kind(node: Node) -> str:
    """Short kind name used in messages, e.g. `num`, `str`, `none`."""
    return kind_to_string(node.kind)


def render_value(node: Node) -> str | None:
    """Renders an evaluation result for the REPL. `none` produces no output."""
    if node.kind == "NONE":
        return None
    return node.to_source()


def display_text(node: Node) -> str:
    """Plain text form of a value: strings unquoted, numbers rendered, `none` empty."""
    if node.kind == "STRING":
        return node.value  # type: ignore[attr-defined, no-any-return]
    if node.kind == "NONE":
        return ""
    return node.to_source()


__all__ = [
    "AssignNode",
    "BinNode",
    "CallNode",
    "IdentifierNode",
    "Node",
    "NoneNode",
    "NumNode",
    "Position",
    "StringNode",
    "Token",
    "UnaNode",
    "describe_kind",
    "display_text",
    "escape_string",
    "render_num",
    "render_value",
]
