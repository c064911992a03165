"""
Emission context - the mutable state of one template conversion.

Holds the output buffer and the three nesting concerns:

- interpolation groups ``{{ ... }}`` (``interpolation_depth``)
- tag groups ``{% ... %}`` (``tag_depth``)
- structural blocks such as if/for (``block_stack``)

Delimiters are only written on the 0 -> 1 and 1 -> 0 transitions of a
counter, so nested writers can open groups freely. All counter changes go
through the open/close methods, which raise InvariantViolationError instead
of letting a counter go negative.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ..core.errors import CultureAlreadyBoundError, InvariantViolationError
from ..core.logging import get_logger
from ..models import LiquidModel, ParseError
from ..syntax.nodes import Node
from .symbols import PLACEHOLDER

logger = get_logger(__name__)

INDENT = "  "

# Block frame for constructs without a Liquid block; closing it writes nothing
SILENT_BLOCK = ""


def format_diagnostic(kind: str, origin: str, source: str) -> str:
    """Comment block quoting an untranslated construct."""
    return (
        "{% comment %}\n"
        f"---Expression: {kind} ---- From: {origin}\n"
        f"{source}\n"
        "{% endcomment %}"
    )


@dataclass(frozen=True)
class PendingComment:
    """Diagnostic waiting for the current group to close."""
    kind: str
    origin: str
    source: str

    def render(self) -> str:
        return format_diagnostic(self.kind, self.origin, self.source)


class EmissionContext:
    """State threaded through the span router and the transformers."""

    def __init__(self):
        self.output: list[str] = []
        self.interpolation_depth = 0
        self.tag_depth = 0
        self.block_stack: list[str] = []
        self.pending_comment: Optional[PendingComment] = None
        self.active_culture: Optional[str] = None
        self.suppress_markup_prefix = False
        self.expression_mode = False
        self.pending_operator: Optional[str] = None
        self.layout: Optional[str] = None
        self.errors: list[ParseError] = []

    # ------------------------------------------------------------------
    # Output buffer
    # ------------------------------------------------------------------

    def write(self, text: str) -> None:
        if text:
            self.output.append(text)

    def prepend(self, text: str) -> None:
        self.output.insert(0, text)

    @property
    def liquid(self) -> str:
        return "".join(self.output)

    def at_line_start(self) -> bool:
        for chunk in reversed(self.output):
            if chunk:
                return chunk.endswith("\n")
        return True

    def indentation(self, depth: Optional[int] = None) -> str:
        if depth is None:
            depth = len(self.block_stack)
        return INDENT * max(depth, 0)

    def write_indent(self, depth: Optional[int] = None) -> None:
        """Indent by block depth when the cursor is at the start of a line."""
        if self.at_line_start():
            self.write(self.indentation(depth))

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    @property
    def in_group(self) -> bool:
        return self.interpolation_depth > 0 or self.tag_depth > 0 or self.expression_mode

    def open_interpolation(self) -> None:
        if self.interpolation_depth == 0 and self.tag_depth == 0:
            self.write("{{ ")
        self.interpolation_depth += 1

    def close_interpolation(self) -> None:
        if self.interpolation_depth == 0:
            raise InvariantViolationError(
                "Interpolation closed more often than opened",
                output_tail=self.liquid[-80:],
            )
        self.interpolation_depth -= 1
        if self.interpolation_depth == 0 and self.tag_depth == 0:
            self.write(" }}")
            self.flush_pending_comment()

    def open_tag(self) -> None:
        if self.tag_depth == 0:
            self.write("{% ")
        self.tag_depth += 1

    def close_tag(self) -> None:
        if self.tag_depth == 0:
            raise InvariantViolationError(
                "Tag closed more often than opened",
                output_tail=self.liquid[-80:],
            )
        self.tag_depth -= 1
        if self.tag_depth == 0:
            self.write(" %}")
            self.flush_pending_comment()

    @contextmanager
    def interpolation(self) -> Iterator[None]:
        """Interpolation group; a no-op in expression mode."""
        if self.expression_mode:
            yield
            return
        self.open_interpolation()
        try:
            yield
        finally:
            self.close_interpolation()

    @contextmanager
    def tag(self) -> Iterator[None]:
        self.open_tag()
        try:
            yield
        finally:
            self.close_tag()

    @contextmanager
    def tag_line(self, depth: Optional[int] = None) -> Iterator[None]:
        """
        A tag on its own line, indented by block depth.

        Delimiters are written unconditionally; the tag counter is raised
        so nested expression writes do not add their own.
        """
        self.write_indent(depth)
        self.write("{% ")
        self.tag_depth += 1
        try:
            yield
        finally:
            if self.tag_depth == 0:
                raise InvariantViolationError("Tag line closed twice")
            self.tag_depth -= 1
            self.write(" %}")
            self.flush_pending_comment()
            self.write("\n")

    @contextmanager
    def expression(self) -> Iterator[None]:
        """Bare expression context: the caller supplies the delimiters."""
        previous = self.expression_mode
        self.expression_mode = True
        try:
            yield
        finally:
            self.expression_mode = previous

    def check_balanced(self) -> None:
        """Both group counters must be back at zero between statements."""
        if self.interpolation_depth or self.tag_depth or self.expression_mode:
            raise InvariantViolationError(
                "Groups left open after a statement",
                interpolation_depth=self.interpolation_depth,
                tag_depth=self.tag_depth,
                expression_mode=self.expression_mode,
            )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def defer_comment(self, node: Node, origin: str) -> None:
        if self.pending_comment is not None:
            logger.warning(
                "Dropping diagnostic for %s from %s; %s is already pending",
                node.kind, origin, self.pending_comment.kind,
            )
            return
        self.pending_comment = PendingComment(node.kind, origin, getattr(node, "source", ""))

    def flush_pending_comment(self) -> None:
        if self.pending_comment is None:
            return
        comment = self.pending_comment
        self.pending_comment = None
        self.write("\n" + comment.render())

    def write_diagnostic(self, node: Node, origin: str) -> None:
        """
        Quote an untranslated construct.

        Inside an open group the placeholder is written and the comment is
        deferred until the group closes.
        """
        logger.debug("No Liquid translation for %s (%s)", node.kind, origin)
        if self.in_group:
            self.write(PLACEHOLDER)
            self.defer_comment(node, origin)
        else:
            self.write(format_diagnostic(node.kind, origin, getattr(node, "source", "")))

    def take_pending_operator(self) -> Optional[str]:
        operator = self.pending_operator
        self.pending_operator = None
        return operator

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def push_block(self, keyword: str) -> None:
        self.block_stack.append(keyword)

    def close_block(self) -> None:
        """Pop the innermost block and write its end tag on its own line."""
        if not self.block_stack:
            raise InvariantViolationError("Block closed with an empty block stack")
        keyword = self.block_stack.pop()
        if keyword == SILENT_BLOCK:
            return
        self.write_indent()
        self.write(f"{{% end{keyword} %}}\n")

    def drain_blocks(self) -> None:
        while self.block_stack:
            self.close_block()

    # ------------------------------------------------------------------
    # Ambient state
    # ------------------------------------------------------------------

    def bind_culture(self, variable: str) -> None:
        if self.active_culture is not None:
            raise CultureAlreadyBoundError(self.active_culture, variable)
        self.active_culture = variable

    def add_error(self, error: ParseError) -> None:
        self.errors.append(error)

    def to_model(self) -> LiquidModel:
        return LiquidModel(liquid=self.liquid, layout=self.layout, errors=list(self.errors))
