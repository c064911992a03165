"""
Syntax tree to Liquid: emission context and the statement/expression
transformers.
"""

from .context import EmissionContext
from .expressions import ExpressionTransformer
from .statements import StatementTransformer

__all__ = [
    "EmissionContext",
    "ExpressionTransformer",
    "StatementTransformer",
]
