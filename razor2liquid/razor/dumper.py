"""
Debug listing of how a template is read.

Every span is listed as ``<Kind>:<content>``; each code span is followed by
its syntax tree, one node per line, deeper nodes prefixed with more dashes::

    Code:var a = true
    +CompilationUnit:var a = true
    +--LocalDeclarationStatement:var a = true
    +----VariableDeclaration:var a = true
"""

from __future__ import annotations

from typing import List, Optional

from ..syntax.nodes import Node, iter_child_nodes
from ..syntax.parser import CodeParser, CodeSyntaxError
from .classifier import classify
from .spans import SpanKind


def _write_node(node: Node, prefix: str, lines: List[str]) -> None:
    lines.append(f"{prefix}{node.kind}:{getattr(node, 'source', '')}")
    for child in iter_child_nodes(node):
        _write_node(child, prefix + "--", lines)


def dump_template(text: str, parser: Optional[CodeParser] = None) -> str:
    """Return the span and syntax tree listing of a template."""
    parser = parser or CodeParser()
    result = classify(text)
    lines: List[str] = []

    for span in result.spans:
        lines.append(f"{span.kind.value}:{span.content}")
        if span.kind is not SpanKind.CODE or not span.content.strip():
            continue
        try:
            fragment = parser.parse(span.content)
        except CodeSyntaxError as exc:
            lines.append(f"+Error:{exc.message} at {exc.line + 1}:{exc.column + 1}")
            continue
        _write_node(fragment, "+", lines)

    for error in result.errors:
        lines.append(f"Error:{error}")
    return "\n".join(lines) + "\n"
