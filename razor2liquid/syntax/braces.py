"""
Brace accounting for code fragments using the Pygments C# lexer.

Razor splits a C# block across several code spans whenever markup appears
inside it, so a single fragment can close blocks it never opened and open
blocks it never closes. The lexer pass counts both, ignoring braces inside
strings, characters and comments.
"""

from __future__ import annotations

from dataclasses import dataclass

from pygments.lexers import get_lexer_by_name
from pygments.token import Comment, String, Token


@dataclass(frozen=True)
class BraceBalance:
    """Unmatched braces of one fragment."""

    unmatched_closes: int = 0
    """'}' with no '{' before it in the fragment"""

    unmatched_opens: int = 0
    """'{' still open at the end of the fragment"""


class BraceScanner:
    """Count unmatched braces in C# source."""

    def __init__(self):
        self.lexer = get_lexer_by_name("csharp")

    def scan(self, text: str) -> BraceBalance:
        depth = 0
        closes = 0
        for _, ttype, value in self.lexer.get_tokens_unprocessed(text):
            if ttype in String or ttype in Comment:
                continue
            if ttype is Token.Error:
                continue
            for ch in value:
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    if depth == 0:
                        closes += 1
                    else:
                        depth -= 1
        return BraceBalance(unmatched_closes=closes, unmatched_opens=depth)
