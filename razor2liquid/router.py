"""
Span router - feeds classified spans into the emission context.

Markup is copied through, code is parsed and handed to the statement
transformer. Two patterns are handled before generic dispatch:

- ``Layout = "Name.cshtml"`` records the layout and puts
  ``{% layout 'Name' %}`` at the start of the output
- ``@helper`` declarations are skipped; the helper extractor converts them
  separately
"""

from __future__ import annotations

from typing import Optional

from .core.errors import IncompleteMemberError
from .core.logging import get_context_logger
from .models import ParseError
from .razor.spans import Span, SpanKind
from .syntax.nodes import (
    AssignmentExpression,
    BlockClose,
    CodeFragment,
    ExpressionStatement,
    IdentifierName,
    IncompleteMember,
    LiteralExpression,
    Node,
)
from .syntax.parser import CodeParser, CodeSyntaxError
from .transform.context import SILENT_BLOCK, EmissionContext, format_diagnostic
from .transform.expressions import ExpressionTransformer
from .transform.statements import StatementTransformer
from .transform.symbols import HELPER_MARKER, LAYOUT_PROPERTY, MODEL_KEYWORD, RAZOR_EXTENSIONS

logger = get_context_logger(__name__, component="router")


def layout_name(statement: Node) -> Optional[str]:
    """Layout named by ``Layout = "..."``, or None for any other statement."""
    if not isinstance(statement, ExpressionStatement):
        return None
    assignment = statement.expression
    if not (
        isinstance(assignment, AssignmentExpression)
        and assignment.operator == "="
        and isinstance(assignment.left, IdentifierName)
        and assignment.left.name == LAYOUT_PROPERTY
        and isinstance(assignment.right, LiteralExpression)
        and assignment.right.is_string
    ):
        return None
    name = assignment.right.unquoted()
    for extension in RAZOR_EXTENSIONS:
        if name.endswith(extension):
            name = name[: -len(extension)]
    return name


def drop_first_line(text: str) -> str:
    """Remove everything up to and including the first line break."""
    newline = text.find("\n")
    return "" if newline < 0 else text[newline + 1:]


class SpanRouter:
    """Route spans of one template into an EmissionContext."""

    def __init__(self, context: EmissionContext, parser: Optional[CodeParser] = None):
        self.context = context
        self.parser = parser or CodeParser()
        self.expressions = ExpressionTransformer(context)
        self.statements = StatementTransformer(context, self.expressions)
        self._in_helper = False
        self._helper_depth = 0

    def route(self, span: Span) -> None:
        if span.kind is SpanKind.META_CODE:
            if HELPER_MARKER in span.content:
                self._in_helper = True
                self._helper_depth = 0
            return
        if span.kind is SpanKind.MARKUP:
            if not self._in_helper:
                self._write_markup(span)
            return
        if span.kind is SpanKind.CODE:
            if self._in_helper:
                self._skip_helper_code(span)
            else:
                self._route_code(span)

    def route_error(self, error: ParseError) -> None:
        logger.warning(
            "Template problem: %s", error.message,
            extra_data={"line": error.location.line_index + 1},
        )
        self.context.add_error(error)

    def finish(self) -> None:
        """Close whatever blocks are still open."""
        if self.context.block_stack:
            logger.debug(
                "Closing %d open blocks at end of template", len(self.context.block_stack)
            )
        self.context.drain_blocks()
        self.context.check_balanced()

    # ------------------------------------------------------------------

    def _write_markup(self, span: Span) -> None:
        content = span.content
        if self.context.suppress_markup_prefix:
            self.context.suppress_markup_prefix = False
            content = drop_first_line(content)
        self.context.write(content)

    def _skip_helper_code(self, span: Span) -> None:
        self._helper_depth += span.content.count("{") - span.content.count("}")
        if self._helper_depth <= 0 and "}" in span.content:
            self._in_helper = False
            self._helper_depth = 0

    def _route_code(self, span: Span) -> None:
        try:
            fragment = self.parser.parse(span.content)
        except CodeSyntaxError as exc:
            self._route_unparsed(span, exc)
            return

        members = fragment.members
        if len(members) == 1 and isinstance(members[0], IncompleteMember):
            self._route_incomplete_member(members[0])
            return

        for member in members:
            self._route_statement(member, span)
            self.context.check_balanced()

    def _route_incomplete_member(self, member: IncompleteMember) -> None:
        if member.expression is None:
            raise IncompleteMemberError(member.source)
        if member.identifier == MODEL_KEYWORD:
            self.context.suppress_markup_prefix = True
            return
        self.expressions.write(member.expression)
        self.context.check_balanced()

    def _route_statement(self, member: Node, span: Span) -> None:
        layout = layout_name(member)
        if layout is not None:
            self.context.layout = layout
            self.context.prepend(f"{{% layout '{layout}' %}}")
            return
        if isinstance(member, BlockClose) and not self.context.block_stack:
            self.route_error(ParseError(
                location=span.location,
                message='Unexpected "}" with no open block',
            ))
            return
        self.statements.transform(member)

    def _route_unparsed(self, span: Span, exc: CodeSyntaxError) -> None:
        """Quote a fragment the parser rejected and keep its braces balanced."""
        self.route_error(ParseError(
            location=span.location.advance(exc.line, exc.column, exc.offset),
            message=exc.message,
        ))
        fragment = CodeFragment(source=span.content.strip())
        self.context.write_indent()
        self.context.write(format_diagnostic(fragment.kind, "route_code", fragment.source))
        self.context.write("\n")

        for _ in range(exc.balance.unmatched_closes):
            if self.context.block_stack:
                self.context.close_block()
        for _ in range(exc.balance.unmatched_opens):
            self.context.push_block(SILENT_BLOCK)
