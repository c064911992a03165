"""
Statement transformer - C# statements to Liquid tags.

Supported statements:
- variable declarations -> ``{% assign x = ... %}`` / ``{% culture '...' %}``
- assignments -> ``{% assign x = ... %}`` on their own line
- if / else if / else -> ``if`` / ``unless``, ``elsif``, ``else``, ``endif``
- foreach -> ``for x in ...`` / ``endfor``
- blocks, empty statements, and ``}`` closing a block from an earlier span

Block statements push their keyword on the context's block stack; the end tag
is written when the block's closing brace is seen, which may be in a later
code span than the opening one. Any other statement is quoted in a
diagnostic comment.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..core.errors import IncompleteMemberError
from ..core.logging import get_logger
from ..syntax.nodes import (
    AssignmentExpression,
    Block,
    BlockClose,
    ElementAccessExpression,
    ElseClause,
    EmptyStatement,
    ExpressionStatement,
    ForEachStatement,
    IdentifierName,
    IfStatement,
    IncompleteMember,
    InvocationExpression,
    LiteralExpression,
    LocalDeclarationStatement,
    MemberAccessExpression,
    Node,
    ObjectCreationExpression,
    ParenthesizedExpression,
    PostfixUnaryExpression,
    PrefixUnaryExpression,
    UnsupportedStatement,
    VariableDeclaration,
    VariableDeclarator,
    is_open,
)
from .context import SILENT_BLOCK, EmissionContext
from .expressions import ExpressionTransformer
from .symbols import CULTURE_FACTORIES, CULTURE_TYPES, PLACEHOLDER

logger = get_logger(__name__)


def culture_name(value: Node) -> Optional[str]:
    """
    Culture created by an initializer, or None if it creates none.

    Recognizes ``CultureInfo.GetCultureInfo("x")``,
    ``CultureInfo.CreateSpecificCulture("x")`` and ``new CultureInfo("x")``.
    """
    if isinstance(value, InvocationExpression):
        target = value.target
        if not (
            isinstance(target, MemberAccessExpression)
            and target.name in CULTURE_FACTORIES
            and target.target.source.endswith(CULTURE_TYPES[0])
        ):
            return None
    elif isinstance(value, ObjectCreationExpression):
        if value.type_name not in CULTURE_TYPES:
            return None
    else:
        return None

    if not value.arguments:
        return None
    argument = value.arguments[0]
    if isinstance(argument, LiteralExpression):
        return argument.unquoted()
    return argument.source.replace('"', "")


class StatementTransformer:
    """Write statements into an EmissionContext."""

    def __init__(self, context: EmissionContext, expressions: ExpressionTransformer):
        self.context = context
        self.expressions = expressions
        self._handlers: dict[type, Callable] = {
            LocalDeclarationStatement: self._write_local_declaration,
            VariableDeclaration: self._write_variable_declaration,
            ExpressionStatement: self._write_expression_statement,
            IfStatement: self._write_if,
            ElseClause: self._write_else_continuation,
            ForEachStatement: self._write_foreach,
            Block: self._write_block,
            EmptyStatement: self._write_empty,
            BlockClose: self._write_block_close,
            IncompleteMember: self._write_incomplete_member,
            UnsupportedStatement: self._write_unsupported_block,
        }

    @property
    def supported_types(self) -> tuple[type, ...]:
        return tuple(self._handlers)

    def transform(self, node: Node) -> None:
        handler = self._handlers.get(type(node))
        if handler is None:
            self.write_unsupported(node, "transform_statement")
            return
        handler(node)

    def write_unsupported(self, node: Node, origin: str) -> None:
        """Statement-level diagnostic comment on its own line."""
        self.context.write_indent()
        self.context.write_diagnostic(node, origin)
        self.context.write("\n")

    # ------------------------------------------------------------------
    # Declarations and assignments
    # ------------------------------------------------------------------

    def _write_local_declaration(self, node: LocalDeclarationStatement) -> None:
        self._write_variable_declaration(node.declaration)

    def _write_variable_declaration(self, node: VariableDeclaration) -> None:
        for variable in node.variables:
            self.context.write_indent()
            with self.context.tag():
                self._write_declarator(variable)

    def _write_declarator(self, variable: VariableDeclarator) -> None:
        initializer = variable.initializer
        if initializer is not None:
            culture = culture_name(initializer.value)
            if culture is not None:
                self.context.bind_culture(variable.name)
                self.context.write(f"culture '{culture}'")
                return

        self.context.write(f"assign {variable.name} = ")
        if initializer is None:
            self.context.write('""')
        elif self.expressions.supports(initializer.value):
            with self.context.expression():
                self.expressions.write(initializer.value)
        else:
            self.context.write(PLACEHOLDER)
            self.context.defer_comment(initializer.value, "write_variable_declaration")

    def _write_expression_statement(self, node: ExpressionStatement) -> None:
        expression = node.expression
        if isinstance(expression, AssignmentExpression):
            self._write_assignment(node, expression)
        elif isinstance(expression, (PostfixUnaryExpression, ElementAccessExpression)) or (
            isinstance(expression, PrefixUnaryExpression) and expression.operator in ("++", "--")
        ):
            self.write_unsupported(node, "write_expression_statement")
        else:
            self.expressions.write(expression)

    def _write_assignment(self, node: ExpressionStatement, assignment: AssignmentExpression) -> None:
        if assignment.operator != "=" or not self.expressions.supports(assignment.left):
            self.write_unsupported(node, "write_assignment")
            return

        with self.context.tag_line():
            self.context.write("assign ")
            with self.context.expression():
                self.expressions.write(assignment.left)
                self.context.write(" = ")
                if self.expressions.supports(assignment.right):
                    self.expressions.write(assignment.right)
                else:
                    self.context.write(PLACEHOLDER)
                    self.context.defer_comment(assignment.right, "write_assignment")

    # ------------------------------------------------------------------
    # Conditionals
    # ------------------------------------------------------------------

    def _write_if(self, node: IfStatement) -> None:
        keyword, condition = self._opening_keyword(node.condition)
        self._write_condition_line(keyword, condition, depth=None)
        self.context.push_block(keyword)
        self._write_branches(node)
        # One end tag for the whole chain, and only once its last body is closed
        if not is_open(node):
            self.context.close_block()

    @staticmethod
    def _opening_keyword(condition: Node) -> tuple[str, Node]:
        """
        ``if !x`` becomes ``unless`` only when the operand cannot carry an
        inline ``== false`` (parenthesized or compound conditions).
        """
        if isinstance(condition, PrefixUnaryExpression) and condition.operator == "!":
            operand = condition.operand
            if isinstance(operand, (IdentifierName, MemberAccessExpression, InvocationExpression)):
                return "if", condition
            while isinstance(operand, ParenthesizedExpression):
                operand = operand.expression
            return "unless", operand
        return "if", condition

    def _write_condition_line(self, keyword: str, condition: Node, depth: Optional[int]) -> None:
        with self.context.tag_line(depth):
            self.context.write(f"{keyword} ")
            with self.context.expression():
                if self.expressions.supports(condition):
                    self.expressions.write(condition)
                else:
                    self.context.write(PLACEHOLDER)
                    self.context.defer_comment(condition, "write_condition")

    def _write_branches(self, node: IfStatement) -> None:
        self._write_body(node.statement)
        if node.else_clause is not None:
            self._write_else(node.else_clause)

    def _write_else(self, clause: ElseClause) -> None:
        # else and elsif sit at the depth of the if they continue
        depth = len(self.context.block_stack) - 1
        statement = clause.statement
        if isinstance(statement, IfStatement):
            self._write_condition_line("elsif", statement.condition, depth)
            self._write_branches(statement)
            return
        with self.context.tag_line(depth):
            self.context.write("else")
        self._write_body(statement)

    def _write_else_continuation(self, clause: ElseClause) -> None:
        """``} else {`` arriving in its own code span."""
        if not self.context.block_stack or self.context.block_stack[-1] not in ("if", "unless"):
            logger.warning("else without an open if: %r", clause.source)
            self.write_unsupported(clause, "write_else")
            if is_open(clause):
                self.context.push_block(SILENT_BLOCK)
            return
        self._write_else(clause)
        if not is_open(clause):
            self.context.close_block()

    def _write_body(self, statement: Optional[Node]) -> None:
        if statement is None:
            return
        if isinstance(statement, Block):
            for child in statement.statements:
                self.transform(child)
            return
        self.transform(statement)

    # ------------------------------------------------------------------
    # Loops and blocks
    # ------------------------------------------------------------------

    def _write_foreach(self, node: ForEachStatement) -> None:
        with self.context.tag_line():
            self.context.write(f"for {node.identifier} in ")
            with self.context.expression():
                if self.expressions.supports(node.expression):
                    self.expressions.write(node.expression)
                else:
                    self.context.write(PLACEHOLDER)
                    self.context.defer_comment(node.expression, "write_foreach")
        self.context.push_block("for")
        self._write_body(node.statement)
        if not is_open(node):
            self.context.close_block()

    def _write_block(self, node: Block) -> None:
        for child in node.statements:
            self.transform(child)
        if not node.closed:
            self.context.push_block(SILENT_BLOCK)

    def _write_empty(self, node: EmptyStatement) -> None:
        pass

    def _write_block_close(self, node: BlockClose) -> None:
        if not self.context.block_stack:
            logger.warning("Ignoring '}' with no open block")
            return
        self.context.close_block()

    def _write_incomplete_member(self, node: IncompleteMember) -> None:
        if node.expression is None:
            raise IncompleteMemberError(node.source)
        self.expressions.write(node.expression)

    def _write_unsupported_block(self, node: UnsupportedStatement) -> None:
        if not is_open(node):
            self.write_unsupported(node, "write_block_statement")
            return
        # Quote the header only; the body keeps converting
        header = UnsupportedStatement(keyword=node.keyword, header=node.header, source=node.header)
        self.write_unsupported(header, "write_block_statement")
        self.context.push_block(SILENT_BLOCK)
        self._write_body(node.statement)
