"""
Shared lexical tables for the NScript language.

Exports:
    token_hashmap: single-character punctuation → token type.
    keyword_hashmap: reserved spellings that are not identifiers.
    kind_names: token/node type → short display name used in error messages.
    ESCAPES / UNESCAPES: string escape tables used by the lexer and the renderer.
"""

token_hashmap: dict[str, str] = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "(": "LPAR",
    ")": "RPAR",
    ",": "COMMA",
    "=": "EQ",
}

operator_symbols: dict[str, str] = {v: k for k, v in token_hashmap.items()}

keyword_hashmap: dict[str, str] = {
    "none": "NONE",
}

kind_names: dict[str, str] = {
    "NUM": "num",
    "STRING": "str",
    "IDENT": "id",
    "NONE": "none",
    "BIN": "bin",
    "UNA": "una",
    "CALL": "call",
    "ASSIGN": "assign",
    "BAD": "<bad>",
    "EOF": "<eof>",
    **operator_symbols,
}

# escape letter (after the backslash) → character it stands for
ESCAPES: dict[str, str] = {
    "\\": "\\",
    "'": "'",
    "v": "\v",
    "n": "\n",
    "t": "\t",
    "0": "\0",
}

# character → escape sequence written back when rendering
UNESCAPES: dict[str, str] = {char: "\\" + letter for letter, char in ESCAPES.items()}

WHITESPACE = " \t\n"
QUOTE = "'"


def kind_to_string(kind: str) -> str:
    """Returns the short display name for a token or node type."""
    return kind_names.get(kind, kind.lower())
