"""
Razor reading: span classification and the debug dump.
"""

from .classifier import ClassificationResult, RazorClassifier, classify
from .dumper import dump_template
from .spans import Span, SpanKind

__all__ = [
    "ClassificationResult",
    "RazorClassifier",
    "classify",
    "dump_template",
    "Span",
    "SpanKind",
]
