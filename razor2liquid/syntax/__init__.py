"""
C# code fragment parsing (Lark grammar + Pygments brace accounting).
"""

from .nodes import CodeFragment, Node
from .parser import CodeParser, CodeSyntaxError, parse_code

__all__ = [
    "CodeFragment",
    "Node",
    "CodeParser",
    "CodeSyntaxError",
    "parse_code",
]
