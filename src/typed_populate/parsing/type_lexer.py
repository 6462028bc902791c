"""Tokens of the schema DSL.

Whitespace, newlines and ``#`` comments separate tokens and are dropped;
newlines still advance the line number used in error messages.
"""

from __future__ import annotations

import ply.lex as lex


class TypeLexer:
    """ply lexer for schema definitions."""

    reserved = {
        "define": "DEFINE",
        "as": "AS",
        "embedded": "EMBEDDED",
    }

    tokens = [
        "IDENTIFIER",
        "COLON",
        "COMMA",
        "LBRACE",
        "RBRACE",
        "LBRACKET",
        "RBRACKET",
    ] + list(reserved.values())

    t_COLON = r":"
    t_COMMA = r","
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"

    t_ignore = " \t\r"
    t_ignore_COMMENT = r"\#[^\n]*"

    def __init__(self) -> None:
        self.lexer: lex.Lexer | None = None

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[A-Za-z_]\w*"
        # keywords are matched as identifiers first
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_newline(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += t.value.count("\n")

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lexer.lineno}")

    def build(self, **kwargs: object) -> None:
        """Create the underlying ply lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Return every token of ``data``, starting at line 1."""
        if self.lexer is None:
            self.build()
        self.lexer.lineno = 1
        self.lexer.input(data)
        return list(self.lexer)
