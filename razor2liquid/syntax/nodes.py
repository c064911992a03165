"""
Syntax tree for C# code fragments.

Every node is a frozen dataclass carrying the original ``source`` text of
the construct, so unsupported constructs can be echoed verbatim inside a
diagnostic comment. ``kind`` is the construct name reported in those
comments.

The transformers dispatch on the concrete node type; ``EXPRESSION_TYPES``
and ``STATEMENT_TYPES`` enumerate the variants so dispatch tables can be
checked for coverage.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterator, Optional, Union


@dataclass(frozen=True)
class Node:
    """Base class for syntax nodes."""

    @property
    def kind(self) -> str:
        return type(self).__name__


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class LiteralExpression(Node):
    value: str
    source: str = ""

    @property
    def is_string(self) -> bool:
        return self.value.endswith('"')

    @property
    def is_integer(self) -> bool:
        return self.value.isdigit()

    def unquoted(self) -> str:
        """String contents without the quotes (other literals unchanged)."""
        if not self.is_string:
            return self.value
        return self.value.lstrip("$@")[1:-1]


@dataclass(frozen=True)
class IdentifierName(Node):
    name: str
    source: str = ""


@dataclass(frozen=True)
class MemberAccessExpression(Node):
    target: "Expression"
    name: str
    conditional: bool = False
    source: str = ""

    @property
    def path(self) -> Optional[str]:
        """Dotted name path, or None when the target is not a plain name."""
        if isinstance(self.target, IdentifierName):
            prefix: Optional[str] = self.target.name
        elif isinstance(self.target, MemberAccessExpression):
            prefix = self.target.path
        else:
            prefix = None
        return None if prefix is None else f"{prefix}.{self.name}"


@dataclass(frozen=True)
class BracketedArgumentList(Node):
    arguments: tuple["Expression", ...]
    source: str = ""


@dataclass(frozen=True)
class ElementAccessExpression(Node):
    target: "Expression"
    argument_list: BracketedArgumentList
    source: str = ""


@dataclass(frozen=True)
class InvocationExpression(Node):
    target: "Expression"
    arguments: tuple["Expression", ...] = ()
    source: str = ""

    @property
    def method_name(self) -> Optional[str]:
        """Bare name of the invoked method."""
        if isinstance(self.target, IdentifierName):
            return self.target.name
        if isinstance(self.target, MemberAccessExpression):
            return self.target.name
        return None


@dataclass(frozen=True)
class BinaryExpression(Node):
    left: "Expression"
    operator: str
    right: "Expression"
    source: str = ""


@dataclass(frozen=True)
class PrefixUnaryExpression(Node):
    operator: str
    operand: "Expression"
    source: str = ""


@dataclass(frozen=True)
class PostfixUnaryExpression(Node):
    operand: "Expression"
    operator: str
    source: str = ""


@dataclass(frozen=True)
class CastExpression(Node):
    type_name: str
    operand: "Expression"
    source: str = ""


@dataclass(frozen=True)
class ConditionalExpression(Node):
    condition: "Expression"
    when_true: "Expression"
    when_false: "Expression"
    source: str = ""


@dataclass(frozen=True)
class AssignmentExpression(Node):
    left: "Expression"
    operator: str
    right: "Expression"
    source: str = ""


@dataclass(frozen=True)
class ParenthesizedExpression(Node):
    expression: "Expression"
    source: str = ""


@dataclass(frozen=True)
class ObjectCreationExpression(Node):
    type_name: str
    arguments: tuple["Expression", ...] = ()
    source: str = ""


@dataclass(frozen=True)
class TypeTestExpression(Node):
    """``x is T`` and ``x as T``"""
    operand: "Expression"
    operator: str
    type_name: str
    source: str = ""


@dataclass(frozen=True)
class NamedArgument(Node):
    name: str
    expression: "Expression"
    source: str = ""


Expression = Union[
    LiteralExpression,
    IdentifierName,
    MemberAccessExpression,
    ElementAccessExpression,
    InvocationExpression,
    BinaryExpression,
    PrefixUnaryExpression,
    PostfixUnaryExpression,
    CastExpression,
    ConditionalExpression,
    AssignmentExpression,
    ParenthesizedExpression,
    ObjectCreationExpression,
    TypeTestExpression,
    NamedArgument,
]

EXPRESSION_TYPES = Expression.__args__


# ============================================================================
# Statements
# ============================================================================

@dataclass(frozen=True)
class EqualsValueClause(Node):
    value: Expression
    source: str = ""


@dataclass(frozen=True)
class VariableDeclarator(Node):
    name: str
    initializer: Optional[EqualsValueClause] = None
    source: str = ""


@dataclass(frozen=True)
class VariableDeclaration(Node):
    type_name: str
    variables: tuple[VariableDeclarator, ...]
    source: str = ""


@dataclass(frozen=True)
class LocalDeclarationStatement(Node):
    declaration: VariableDeclaration
    terminated: bool = True
    source: str = ""


@dataclass(frozen=True)
class ExpressionStatement(Node):
    expression: Expression
    terminated: bool = True
    source: str = ""


@dataclass(frozen=True)
class Block(Node):
    statements: tuple["Statement", ...] = ()
    closed: bool = True
    """False when the closing brace lies outside the fragment"""
    source: str = ""


@dataclass(frozen=True)
class ElseClause(Node):
    statement: Optional["Statement"] = None
    source: str = ""


@dataclass(frozen=True)
class IfStatement(Node):
    condition: Expression
    statement: Optional["Statement"] = None
    """None for a header whose body starts in a later fragment"""
    else_clause: Optional[ElseClause] = None
    source: str = ""


@dataclass(frozen=True)
class ForEachStatement(Node):
    type_name: str
    identifier: str
    expression: Expression
    statement: Optional["Statement"] = None
    source: str = ""


@dataclass(frozen=True)
class EmptyStatement(Node):
    source: str = ";"


@dataclass(frozen=True)
class BlockClose(Node):
    """A '}' closing a block opened by an earlier fragment."""
    source: str = "}"


@dataclass(frozen=True)
class UnsupportedStatement(Node):
    """while, for, switch, using and lock blocks."""
    keyword: str
    header: str
    statement: Optional["Statement"] = None
    source: str = ""

    @property
    def kind(self) -> str:
        return f"{self.keyword.capitalize()}Statement"


@dataclass(frozen=True)
class IncompleteMember(Node):
    """A bare name path with nothing else in the fragment (``@Model.Name``)."""
    expression: Optional[Expression] = None
    source: str = ""

    @property
    def identifier(self) -> Optional[str]:
        if isinstance(self.expression, IdentifierName):
            return self.expression.name
        return None


Statement = Union[
    LocalDeclarationStatement,
    ExpressionStatement,
    Block,
    ElseClause,
    IfStatement,
    ForEachStatement,
    EmptyStatement,
    BlockClose,
    UnsupportedStatement,
    IncompleteMember,
    VariableDeclaration,
]

STATEMENT_TYPES = Statement.__args__


@dataclass(frozen=True)
class CodeFragment(Node):
    """Parsed text of one code span."""
    members: tuple[Statement, ...] = ()
    source: str = ""

    @property
    def kind(self) -> str:
        return "CompilationUnit"


# ============================================================================
# Helpers
# ============================================================================

def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct child nodes of ``node`` in field order."""
    for item in dataclasses.fields(node):
        value = getattr(node, item.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for element in value:
                if isinstance(element, Node):
                    yield element


def is_name_path(expression: Optional[Node]) -> bool:
    """Identifier or member access over identifiers only."""
    if isinstance(expression, IdentifierName):
        return True
    return isinstance(expression, MemberAccessExpression) and expression.path is not None


def is_open(statement: Optional[Node]) -> bool:
    """True when the statement's body continues past the fragment."""
    if statement is None:
        return True
    if isinstance(statement, Block):
        return not statement.closed
    if isinstance(statement, IfStatement):
        if statement.else_clause is not None:
            return is_open(statement.else_clause)
        return is_open(statement.statement)
    if isinstance(statement, (ElseClause, ForEachStatement, UnsupportedStatement)):
        return is_open(statement.statement)
    return False
