"""
Helper extraction for ``@helper`` declarations.

A helper such as::

    @helper ShowBoleto(Payment payment) {
        <hr />
    }

is carved out of the span stream as a named sub-template (``Boleto``) so it
can be converted on its own and written as a partial. The extractor only
counts braces; it never parses the code it captures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .core.logging import get_logger
from .razor.spans import Span, SpanKind
from .transform.symbols import HELPER_MARKER, HELPER_NAME_PREFIX

logger = get_logger(__name__)


@dataclass
class HelperExtractionState:
    """Scanner state of one extraction pass."""

    depth: int = 0
    """Net count of '{' minus '}' seen since the helper marker"""

    name: Optional[str] = None
    """Partial name of the helper being captured"""

    lines: List[str] = field(default_factory=list)
    """Captured span contents"""

    in_helper: bool = False
    """Whether a helper marker has been seen and its body is not closed"""

    prefix: str = ""
    """Transition text waiting to be prepended to the next captured span"""

    def reset(self) -> None:
        self.depth = 0
        self.name = None
        self.lines.clear()
        self.in_helper = False
        self.prefix = ""


def helper_name(content: str) -> Optional[str]:
    """
    Partial name declared by a helper header.

    Example:
        >>> helper_name("ShowBoleto(Payment payment) {")
        'Boleto'
    """
    header = content.lstrip()
    if not header.startswith(HELPER_NAME_PREFIX):
        return None
    end = header.find("(")
    if end < 0:
        end = len(header.split()[0])
    return header[len(HELPER_NAME_PREFIX):end].strip() or None


class HelperExtractor:
    """
    Collect the bodies of ``@helper`` declarations.

    Each call to ``extract`` runs a fresh pass; the extractor holds no state
    between templates.
    """

    # Span kinds whose braces count towards the helper's nesting
    COUNTED_KINDS = (SpanKind.CODE, SpanKind.MARKUP)

    def extract(self, spans: Iterable[Span]) -> Dict[str, str]:
        """
        Extract helper bodies from a span stream.

        Args:
            spans: spans of one template in source order

        Returns:
            Mapping of helper name to its body text (closing brace line
            removed)
        """
        state = HelperExtractionState()
        helpers: Dict[str, str] = {}

        for span in spans:
            if span.kind is SpanKind.TRANSITION:
                state.prefix = span.content
                continue

            if span.kind is SpanKind.META_CODE and HELPER_MARKER in span.content \
                    and not state.in_helper:
                state.reset()
                state.in_helper = True
                continue

            if not state.in_helper:
                state.prefix = ""
                continue

            if state.depth > 0:
                state.lines.append(state.prefix + span.content)
                state.prefix = ""
            elif span.kind is SpanKind.CODE and state.name is None:
                state.name = helper_name(span.content)

            if span.kind in self.COUNTED_KINDS:
                self._count_braces(span, state, helpers)

        if state.in_helper:
            logger.warning("Helper %r is never closed", state.name)
        return helpers

    def _count_braces(self, span: Span, state: HelperExtractionState,
                      helpers: Dict[str, str]) -> None:
        state.depth += span.content.count("{") - span.content.count("}")
        if state.depth > 0 or "}" not in span.content:
            return

        # The span that closed the helper holds its closing brace
        if state.lines:
            state.lines.pop()
        if state.name:
            helpers[state.name] = "".join(state.lines)
            logger.debug("Extracted helper %s", state.name)
        else:
            logger.warning("Discarding helper without a Show* name")
        state.reset()


def extract_helpers(spans: Iterable[Span]) -> Dict[str, str]:
    """Extract helper bodies with a default extractor."""
    return HelperExtractor().extract(spans)
