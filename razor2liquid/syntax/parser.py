"""
Code fragment parser - C# text of a code span to a CodeFragment.

Pipeline:
1. BraceScanner counts unmatched braces with the Pygments C# lexer
2. one OPEN_BLOCK_END sentinel is appended per unmatched '{'
3. the Earley grammar parses the prepared text
4. CodeTreeBuilder lowers the tree to syntax nodes
5. a fragment that is a single unterminated name path becomes an
   IncompleteMember
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from lark import Lark
from lark.exceptions import LarkError, UnexpectedCharacters, UnexpectedEOF, UnexpectedToken

from ..core.logging import get_logger
from .braces import BraceBalance, BraceScanner
from .builder import CodeTreeBuilder
from .grammar import OPEN_BLOCK_END, get_code_grammar
from .nodes import (
    CodeFragment,
    ElementAccessExpression,
    ExpressionStatement,
    IncompleteMember,
    is_name_path,
)

logger = get_logger(__name__)


class CodeSyntaxError(Exception):
    """Raised when a code fragment cannot be parsed."""

    def __init__(self, message: str, line: int, column: int, offset: int,
                 balance: BraceBalance):
        self.message = message
        self.line = line
        """Zero-based line within the fragment"""
        self.column = column
        """Zero-based column within the line"""
        self.offset = offset
        """Zero-based offset within the fragment"""
        self.balance = balance
        super().__init__(message)


@lru_cache(maxsize=1)
def get_lark_parser() -> Lark:
    """Build the Earley parser once per process."""
    return Lark(
        get_code_grammar(),
        start="start",
        parser="earley",
        maybe_placeholders=True,
        propagate_positions=True,
    )


def _describe(exc: LarkError) -> str:
    if isinstance(exc, UnexpectedCharacters):
        found = exc.char
    elif isinstance(exc, UnexpectedToken):
        found = str(exc.token)
    elif isinstance(exc, UnexpectedEOF):
        return "Unexpected end of code fragment"
    else:
        return str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
    if not found or found == OPEN_BLOCK_END:
        return "Unexpected end of code fragment"
    return f"Unexpected {found!r} in code fragment"


class CodeParser:
    """
    Parse the C# of one code span.

    Example:
        >>> fragment = CodeParser().parse("var a = true")
        >>> fragment.members[0].kind
        'LocalDeclarationStatement'
    """

    def __init__(self, lark_parser: Optional[Lark] = None):
        self.lark = lark_parser or get_lark_parser()
        self.braces = BraceScanner()

    def parse(self, text: str) -> CodeFragment:
        """
        Parse a fragment.

        Args:
            text: content of a code span

        Returns:
            The parsed fragment (no members for blank text)

        Raises:
            CodeSyntaxError: if the text is not understood
        """
        if not text.strip():
            return CodeFragment(source=text)

        balance = self.braces.scan(text)
        prepared = text + OPEN_BLOCK_END * balance.unmatched_opens
        try:
            tree = self.lark.parse(prepared)
        except LarkError as exc:
            raise self._syntax_error(exc, text, balance) from exc

        fragment = CodeTreeBuilder(prepared).transform(tree)
        return self._promote_incomplete_member(fragment)

    def _syntax_error(self, exc: LarkError, text: str, balance: BraceBalance) -> CodeSyntaxError:
        offset = getattr(exc, "pos_in_stream", None)
        if offset is None or offset < 0:
            offset = len(text)
        offset = min(offset, len(text))
        line = text.count("\n", 0, offset)
        column = offset - (text.rfind("\n", 0, offset) + 1)
        message = _describe(exc)
        logger.debug("Code fragment rejected: %s in %r", message, text)
        return CodeSyntaxError(message, line, column, offset, balance)

    @staticmethod
    def _promote_incomplete_member(fragment: CodeFragment) -> CodeFragment:
        if len(fragment.members) != 1:
            return fragment
        member = fragment.members[0]
        if not isinstance(member, ExpressionStatement) or member.terminated:
            return fragment

        expression = member.expression
        target = expression
        while isinstance(target, ElementAccessExpression):
            target = target.target
        if not is_name_path(target):
            return fragment
        return CodeFragment(
            members=(IncompleteMember(expression=expression, source=member.source),),
            source=fragment.source,
        )


def parse_code(text: str) -> CodeFragment:
    """Parse a fragment with a default parser."""
    return CodeParser().parse(text)
