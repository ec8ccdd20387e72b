"""
NScript Parser

Parses one NScript input line into an abstract syntax tree.

The parser pulls tokens from a `Lexer` on demand, so lexical errors surface in
source order while parsing. Each line holds exactly one expression/statement.

Grammar
-------
    expression   := addsub
    addsub       := muldiv (('+'|'-') muldiv)*
    muldiv       := unary  (('*'|'/') unary)*
    unary        := ('+'|'-') unary | postfix
    postfix      := primary [ call | assign ]
    primary      := IDENT | NUM | STRING | NONE | '(' expression ')'
    call         := '(' ( expression (',' expression)* )? ')'
    assign       := '=' expression

Binary operators are left-associative. Unary `+`/`-` is right-recursive and
binds tighter than any binary operator. A call is only legal after an
identifier (builtin) or a string (external program). An assignment is only
legal after an identifier.

Entry Points
------------
- `Parser.parse()`: Parse the whole line, requiring `<eof>` after the expression.
- `parse_line(source)`: Convenience wrapper building the lexer and parser.

Raises
------
NScriptError
    Raised with the offending `Position` on malformed input.
"""

from __future__ import annotations

from nscript.nscript_ast import (
    AssignNode,
    BinNode,
    CallNode,
    IdentifierNode,
    Node,
    NoneNode,
    NumNode,
    StringNode,
    Token,
    UnaNode,
)
from nscript.nscript_constants import kind_to_string
from nscript.nscript_errors import NScriptError
from nscript.nscript_lexer import CharacterStream, Lexer


class Parser:
    """
    NScript Parser Class

    Transforms the token stream of one line into a single AST node.

    Attributes
    ----------
    lexer : Lexer
        Token source, pulled one token at a time.
    cur : Token | None
        Token under the cursor (None before `parse()` fetches the first one).
    prev : Token | None
        Last consumed token, used to close error ranges.
    depth : int
        Number of expressions currently open; parsing fails past `max_depth`.
    """

    additive_ops: tuple[str, ...] = ("PLUS", "MINUS")
    multiplicative_ops: tuple[str, ...] = ("STAR", "SLASH")
    unary_ops: tuple[str, ...] = ("PLUS", "MINUS")
    max_depth: int = 64

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.cur: Token | None = None
        self.prev: Token | None = None
        self.depth = 0

    def current(self) -> Token:
        if self.cur is None:
            self.cur = self.lexer.next_token()
        return self.cur

    def advance(self) -> Token:
        """Consumes the current token and returns it."""
        tok = self.current()
        self.prev = tok
        self.cur = self.lexer.next_token()
        return tok

    def match(self, kind: str) -> Token:
        tok = self.current()
        if tok.kind != kind:
            raise NScriptError(
                ["expected `", kind_to_string(kind), "` (found `", tok.to_source(), "`)"],
                tok.pos,
            )
        return self.advance()

    def parse(self) -> Node:
        """Parse the whole line and return its AST."""
        expr = self.parse_expression()
        self.match("EOF")
        return expr

    def parse_expression(self) -> Node:
        """Parse one expression, counting parenthesis, argument and assignment nesting."""
        if self.depth >= self.max_depth:
            raise NScriptError(["expression is nested too deeply"], self.current().pos)
        self.depth += 1
        try:
            return self.parse_addsub()
        finally:
            self.depth -= 1

    def parse_addsub(self) -> Node:
        left = self.parse_muldiv()
        while self.current().kind in self.additive_ops:
            op = self.advance()
            right = self.parse_muldiv()
            left = BinNode(left, right, op)
        return left

    def parse_muldiv(self) -> Node:
        left = self.parse_unary()
        while self.current().kind in self.multiplicative_ops:
            op = self.advance()
            right = self.parse_unary()
            left = BinNode(left, right, op)
        return left

    def parse_unary(self) -> Node:
        if self.current().kind in self.unary_ops:
            op = self.advance()
            return UnaNode(self.parse_unary(), op)
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        term = self.parse_primary()

        if self.current().kind == "LPAR":
            if term.kind not in ("IDENT", "STRING"):
                raise NScriptError(["expected string or identifier call name"], term.pos)
            return self.parse_call(term)

        if self.current().kind == "EQ":
            if not isinstance(term, IdentifierNode):
                raise NScriptError(["expected an identifier when assigning"], term.pos)
            return self.parse_assign(term)

        return term

    def parse_primary(self) -> Node:
        tok = self.current()

        if tok.kind == "NUM":
            self.advance()
            return NumNode(tok.value, tok.pos)
        if tok.kind == "STRING":
            self.advance()
            return StringNode(tok.value, tok.pos)
        if tok.kind == "IDENT":
            self.advance()
            return IdentifierNode(tok.value, tok.pos)
        if tok.kind == "NONE":
            self.advance()
            return NoneNode(tok.pos)
        if tok.kind == "LPAR":
            self.advance()
            expr = self.parse_expression()
            self.match("RPAR")
            return expr

        raise NScriptError(["unexpected token (found `", tok.to_source(), "`)"], tok.pos)

    def parse_call(self, callee: Node) -> CallNode:
        """Parse `(arg, ...)` after a callee. A dangling comma or missing `)` is an unclosed list."""
        open_tok = self.match("LPAR")
        args: list[Node] = []

        if self.current().kind == "RPAR":
            close_tok = self.advance()
            return CallNode(callee, args, callee.pos.merge(close_tok.pos))

        while True:
            if self.current().kind in ("EOF", "RPAR"):
                break
            args.append(self.parse_expression())
            if self.current().kind == "COMMA":
                self.advance()
                continue
            if self.current().kind == "RPAR":
                close_tok = self.advance()
                return CallNode(callee, args, callee.pos.merge(close_tok.pos))
            break

        assert self.prev is not None
        raise NScriptError(
            ["unclosed call parameters list"], open_tok.pos.merge(self.prev.pos)
        )

    def parse_assign(self, target: IdentifierNode) -> AssignNode:
        self.match("EQ")
        expr = self.parse_expression()
        return AssignNode(target, expr)


def parse_line(source: str) -> Node:
    """Lex and parse one line of NScript source."""
    return Parser(Lexer(CharacterStream(source))).parse()


__all__ = ["Parser", "parse_line"]
