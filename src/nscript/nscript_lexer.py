"""
Lexical analyzer for the NScript console language.

This module turns one input line into tokens, one token per call:

Classes:
    CharacterStream: Reads characters from the line while tracking the offset.
    Lexer: Pull-based tokenizer producing `Token` nodes.

Features:
    - Skips spaces, tabs and newlines
    - Recognizes:
        * Identifiers (`none` is reserved and lexed as "NONE")
        * Numbers (digits with at most one dot, stored as float)
        * Strings in single quotes with `\\\\ \\' \\v \\n \\t \\0` escapes
        * Single-character punctuation `+ - * / ( ) , =`
    - Any other character becomes a "BAD" token; the parser decides whether
      that is an error
    - End of input yields "EOF", again on every later call

Raises:
    NScriptError: For malformed numbers, unknown escapes and unclosed strings.

Example:
    >>> lexer = Lexer(CharacterStream("x = 42"))
    >>> lexer.next_token()
    Token(IDENT, 'x')

Exports:
    - CharacterStream
    - Lexer
    - tokenize
"""

from typing import Callable

from nscript.nscript_ast import Position, Token
from nscript.nscript_constants import (
    ESCAPES,
    QUOTE,
    WHITESPACE,
    keyword_hashmap,
    token_hashmap,
)
from nscript.nscript_errors import NScriptError


def is_alpha(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def is_identifier_char(ch: str) -> bool:
    return is_alpha(ch) or is_digit(ch) or ch == "_"


class CharacterStream:
    """
    Reads characters from one source line while tracking the current offset.

    Attributes:
        source (str): The input line.
        position (int): Offset of the next unread character.
    """

    def __init__(self, source: str, position: int = 0):
        self.source = source
        self.position = position

    def next(self) -> str:
        """
        Consumes and returns the next character.

        Raises:
            Exception: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise Exception(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>"
            )
        char = self.source[self.position]
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` ahead without consuming it, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Lexer:
    """Pull-based tokenizer for NScript.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        while not self.stream.end_of_file() and self.peek() in WHITESPACE:
            self.advance()

    def collect_while(self, accept: Callable[[str], bool]) -> str:
        text = ""
        while not self.stream.end_of_file() and accept(self.peek()):
            text += self.advance()
        return text

    def lex_identifier(self, start: int) -> Token:
        ident = self.collect_while(is_identifier_char)
        pos = Position(start, self.stream.position)
        if ident in keyword_hashmap:
            return Token(keyword_hashmap[ident], ident, pos)
        return Token("IDENT", ident, pos)

    def lex_number(self, start: int) -> Token:
        num = self.collect_while(lambda ch: is_digit(ch) or ch == ".")
        pos = Position(start, self.stream.position)

        if num.count(".") > 1:
            raise NScriptError(["number cannot include more than one dot"], pos)
        if num.endswith("."):
            raise NScriptError(["number cannot end with a dot"], pos)
        if is_identifier_char(self.peek()):
            self.collect_while(is_identifier_char)
            raise NScriptError(
                ["number cannot include part of identifier"],
                Position(start, self.stream.position),
            )

        return Token("NUM", float(num), pos)

    def lex_string(self, start: int) -> Token:
        self.advance()  # opening quote
        val = ""
        while not self.stream.end_of_file():
            ch = self.advance()
            if ch == QUOTE:
                return Token("STRING", val, Position(start, self.stream.position))
            if ch != "\\":
                val += ch
                continue
            if self.stream.end_of_file():
                break
            escape_start = self.stream.position - 1
            letter = self.advance()
            if letter not in ESCAPES:
                raise NScriptError(
                    ["unknown escaped char `\\", letter, "`"],
                    Position(escape_start, self.stream.position),
                )
            val += ESCAPES[letter]

        raise NScriptError(["unclosed string"], Position(start, self.stream.position))

    def next_token(self) -> Token:
        """Consumes and returns the next Token.

        Raises:
            NScriptError: If a malformed number or string is encountered.
        """
        self.skip_whitespace()

        start = self.stream.position
        if self.stream.end_of_file():
            return Token("EOF", "<eof>", Position(start, start + 1))

        ch = self.peek()

        if is_alpha(ch):
            return self.lex_identifier(start)

        if is_digit(ch):
            return self.lex_number(start)

        if ch == QUOTE:
            return self.lex_string(start)

        self.advance()
        pos = Position(start, self.stream.position)
        if ch in token_hashmap:
            return Token(token_hashmap[ch], ch, pos)

        return Token("BAD", ch, pos)


def tokenize(source: str) -> list[Token]:
    """Lexes a whole line, returning every token including the trailing EOF."""
    lexer = Lexer(CharacterStream(source))
    tokens = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.kind == "EOF":
            return tokens


__all__ = ["CharacterStream", "Lexer", "tokenize"]
