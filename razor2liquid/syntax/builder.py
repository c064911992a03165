"""
Transformer from the Lark parse tree to syntax nodes.

Each rule callback receives the rule's ``meta`` so the node can keep the
exact source text it was parsed from.
"""

from __future__ import annotations

from lark import Token, Transformer, v_args

from .grammar import OPEN_BLOCK_END
from .nodes import (
    AssignmentExpression,
    BinaryExpression,
    Block,
    BlockClose,
    BracketedArgumentList,
    CastExpression,
    CodeFragment,
    ConditionalExpression,
    ElementAccessExpression,
    ElseClause,
    EmptyStatement,
    EqualsValueClause,
    ExpressionStatement,
    ForEachStatement,
    IdentifierName,
    IfStatement,
    InvocationExpression,
    LiteralExpression,
    LocalDeclarationStatement,
    MemberAccessExpression,
    NamedArgument,
    ObjectCreationExpression,
    ParenthesizedExpression,
    PostfixUnaryExpression,
    PrefixUnaryExpression,
    TypeTestExpression,
    UnsupportedStatement,
    VariableDeclaration,
    VariableDeclarator,
)


@v_args(inline=True, meta=True)
class CodeTreeBuilder(Transformer):
    """Lower the parse tree of one fragment into syntax nodes."""

    def __init__(self, text: str):
        super().__init__()
        self._text = text

    def _source(self, meta) -> str:
        if getattr(meta, "empty", True):
            return ""
        return self._text[meta.start_pos:meta.end_pos].replace(OPEN_BLOCK_END, "").strip()

    # ---------------------------------------------------------------- fragment

    def fragment(self, meta, *members):
        return CodeFragment(members=tuple(members), source=self._text.replace(OPEN_BLOCK_END, ""))

    def block_close(self, meta):
        return BlockClose()

    def else_continuation(self, meta, statement):
        return ElseClause(statement=statement, source=self._source(meta))

    def dangling_if(self, meta, condition):
        return IfStatement(condition=condition, source=self._source(meta))

    def dangling_foreach(self, meta, type_name, identifier, expression):
        return ForEachStatement(
            type_name=type_name,
            identifier=str(identifier),
            expression=expression,
            source=self._source(meta),
        )

    # ---------------------------------------------------------------- statements

    def block(self, meta, *statements):
        return Block(statements=statements, closed=True, source=self._source(meta))

    def open_block(self, meta, *statements):
        return Block(statements=statements, closed=False, source=self._source(meta))

    def empty_statement(self, meta):
        return EmptyStatement()

    def local_declaration(self, meta, declaration):
        return LocalDeclarationStatement(declaration=declaration, source=self._source(meta))

    def unterminated_declaration(self, meta, declaration):
        return LocalDeclarationStatement(
            declaration=declaration, terminated=False, source=self._source(meta)
        )

    def variable_declaration(self, meta, type_name, *variables):
        return VariableDeclaration(
            type_name=type_name, variables=variables, source=self._source(meta)
        )

    def variable_declarator(self, meta, name, initializer):
        return VariableDeclarator(
            name=str(name), initializer=initializer, source=self._source(meta)
        )

    def equals_value_clause(self, meta, value):
        return EqualsValueClause(value=value, source=self._source(meta))

    def expression_statement(self, meta, expression):
        return ExpressionStatement(expression=expression, source=self._source(meta))

    def unterminated_expression(self, meta, expression):
        return ExpressionStatement(
            expression=expression, terminated=False, source=self._source(meta)
        )

    def if_statement(self, meta, condition, statement, else_clause):
        return IfStatement(
            condition=condition,
            statement=statement,
            else_clause=else_clause,
            source=self._source(meta),
        )

    def else_clause(self, meta, statement):
        return ElseClause(statement=statement, source=self._source(meta))

    def foreach_statement(self, meta, type_name, identifier, expression, statement):
        return ForEachStatement(
            type_name=type_name,
            identifier=str(identifier),
            expression=expression,
            statement=statement,
            source=self._source(meta),
        )

    def other_block_statement(self, meta, keyword, header, statement):
        return UnsupportedStatement(
            keyword=str(keyword),
            header=f"{keyword} {header}",
            statement=statement,
            source=self._source(meta),
        )

    def paren_group(self, meta, *_):
        return self._source(meta)

    # ---------------------------------------------------------------- types

    def var_type(self, meta):
        return "var"

    def type_ref(self, meta, *_):
        return self._source(meta)

    # ---------------------------------------------------------------- expressions

    def assignment(self, meta, left, operator, right):
        return AssignmentExpression(
            left=left, operator=str(operator), right=right, source=self._source(meta)
        )

    def conditional(self, meta, condition, when_true, when_false):
        return ConditionalExpression(
            condition=condition,
            when_true=when_true,
            when_false=when_false,
            source=self._source(meta),
        )

    def binary(self, meta, left, operator, right):
        return BinaryExpression(
            left=left, operator=str(operator), right=right, source=self._source(meta)
        )

    def type_test(self, meta, operand, operator, type_name):
        return TypeTestExpression(
            operand=operand,
            operator=str(operator),
            type_name=type_name,
            source=self._source(meta),
        )

    def prefix_unary(self, meta, operator, operand):
        return PrefixUnaryExpression(
            operator=str(operator), operand=operand, source=self._source(meta)
        )

    def postfix_unary(self, meta, operand, operator):
        return PostfixUnaryExpression(
            operand=operand, operator=str(operator), source=self._source(meta)
        )

    def cast(self, meta, type_name, operand):
        return CastExpression(type_name=type_name, operand=operand, source=self._source(meta))

    def member_access(self, meta, target, operator, name):
        return MemberAccessExpression(
            target=target,
            name=str(name),
            conditional=str(operator) == "?.",
            source=self._source(meta),
        )

    def invocation(self, meta, target, arguments):
        return InvocationExpression(
            target=target, arguments=arguments or (), source=self._source(meta)
        )

    def element_access(self, meta, target, arguments):
        bracketed = BracketedArgumentList(
            arguments=arguments,
            source="[" + ", ".join(argument.source for argument in arguments) + "]",
        )
        return ElementAccessExpression(
            target=target, argument_list=bracketed, source=self._source(meta)
        )

    def identifier(self, meta, name: Token):
        return IdentifierName(name=str(name), source=str(name))

    def parenthesized(self, meta, expression):
        return ParenthesizedExpression(expression=expression, source=self._source(meta))

    def object_creation(self, meta, type_name, arguments):
        return ObjectCreationExpression(
            type_name=type_name, arguments=arguments or (), source=self._source(meta)
        )

    def arguments(self, meta, *arguments):
        return tuple(arguments)

    def named_argument(self, meta, name, expression):
        return NamedArgument(name=str(name), expression=expression, source=self._source(meta))

    def literal(self, meta, token: Token):
        return LiteralExpression(value=str(token), source=str(token))
