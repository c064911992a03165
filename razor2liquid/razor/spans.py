"""
Span types produced by the Razor classifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..models import SourceLocation


class SpanKind(Enum):
    """Kinds of template text"""
    MARKUP = "Markup"
    CODE = "Code"
    COMMENT = "Comment"
    TRANSITION = "Transition"
    META_CODE = "MetaCode"


@dataclass(frozen=True)
class Span:
    """A contiguous run of template text with its classification."""
    kind: SpanKind
    content: str
    location: SourceLocation = field(default_factory=SourceLocation)

    def __repr__(self) -> str:
        return f"Span({self.kind.value}, {self.content!r}, {self.location})"
