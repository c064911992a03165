"""
Expression transformer - C# expressions to Liquid.

Names, member paths, binary operators and a fixed table of helper calls are
rewritten; everything else becomes a diagnostic comment. Values are wrapped
in an interpolation group unless the context is in expression mode, where
the enclosing tag supplies the delimiters.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..core.errors import UnsupportedIndexError
from ..syntax.nodes import (
    AssignmentExpression,
    BinaryExpression,
    CastExpression,
    ConditionalExpression,
    ElementAccessExpression,
    Expression,
    IdentifierName,
    InvocationExpression,
    LiteralExpression,
    MemberAccessExpression,
    NamedArgument,
    Node,
    ObjectCreationExpression,
    ParenthesizedExpression,
    PostfixUnaryExpression,
    PrefixUnaryExpression,
    TypeTestExpression,
    is_name_path,
)
from .context import EmissionContext
from .symbols import (
    BINARY_OPERATORS,
    EQUALS_CALL,
    FORMAT_CALLS,
    IS_NULL_OR_EMPTY_CALL,
    NEGATED_CALLS,
    PARTIAL_CALLS,
    RAW_CALL,
    RENDER_BODY_CALL,
    STRING_TYPES,
    TO_STRING_CALL,
    TRANSLATE_CALLS,
)

CallWriter = Callable[[InvocationExpression, Optional[str]], None]


def is_simple_operand(expression: Node) -> bool:
    """Operands that can carry an inline ``== false``."""
    if is_name_path(expression):
        return True
    return isinstance(expression, InvocationExpression) and not expression.arguments


class ExpressionTransformer:
    """Write expressions into an EmissionContext."""

    # Kinds that always fall back to a diagnostic comment
    UNSUPPORTED_TYPES = (
        PostfixUnaryExpression,
        AssignmentExpression,
        ObjectCreationExpression,
        TypeTestExpression,
        NamedArgument,
    )

    def __init__(self, context: EmissionContext):
        self.context = context
        self._writers: dict[type, Callable] = {
            LiteralExpression: self._write_literal,
            IdentifierName: self._write_identifier,
            MemberAccessExpression: self._write_member_access,
            BinaryExpression: self._write_binary,
            ElementAccessExpression: self._write_element_access,
            PrefixUnaryExpression: self._write_prefix_unary,
            CastExpression: self._write_cast,
            ParenthesizedExpression: self._write_parenthesized,
            ConditionalExpression: self._write_conditional,
            InvocationExpression: self._write_invocation,
        }

    @property
    def supported_types(self) -> tuple[type, ...]:
        return tuple(self._writers)

    def write(self, node: Expression, origin: str = "write_expression") -> None:
        """Write ``node``; unknown kinds become a diagnostic comment."""
        writer = self._writers.get(type(node))
        if writer is None:
            self.context.write_diagnostic(node, origin)
            return
        writer(node)

    def write_arguments(self, arguments) -> None:
        for index, argument in enumerate(arguments):
            if index:
                self.context.write(", ")
            self.write(argument)

    # ------------------------------------------------------------------
    # Support check
    # ------------------------------------------------------------------

    def supports(self, node: Node) -> bool:
        """
        True when ``node`` renders without any diagnostic comment as a bare
        value in expression mode (a condition, loop source or assigned value).
        """
        if isinstance(node, (LiteralExpression, IdentifierName)):
            return True
        if isinstance(node, MemberAccessExpression):
            return node.path is not None
        if isinstance(node, CastExpression):
            return self.supports(node.operand)
        if isinstance(node, ParenthesizedExpression):
            return self.supports(node.expression)
        if isinstance(node, BinaryExpression):
            return self.supports(node.left) and self.supports(node.right)
        if isinstance(node, ElementAccessExpression):
            return self._integer_index(node) is not None and self.supports(node.target)
        if isinstance(node, PrefixUnaryExpression):
            if node.operator == "-":
                return isinstance(node.operand, LiteralExpression)
            if node.operator not in ("!", "+"):
                return False
            if self._negated_call(node.operand):
                return self.supports(node.operand)
            return is_simple_operand(node.operand) and self.supports(node.operand)
        if isinstance(node, ConditionalExpression):
            return (
                isinstance(node.condition, IdentifierName)
                and self.supports(node.when_true)
                and self.supports(node.when_false)
            )
        if isinstance(node, InvocationExpression):
            # Tag rewrites cannot be nested in a value
            if node.method_name in PARTIAL_CALLS or node.method_name == RENDER_BODY_CALL:
                return False
            if self._call_writer(node) is None:
                return False
            return all(self.supports(operand) for operand in self._call_operands(node))
        return False

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def _write_literal(self, node: LiteralExpression) -> None:
        self.context.write(node.value)

    def _write_identifier(self, node: IdentifierName) -> None:
        with self.context.interpolation():
            self.context.write(node.name)

    def _write_member_access(self, node: MemberAccessExpression) -> None:
        path = node.path
        if path is None:
            self.context.write_diagnostic(node, "write_member_access")
            return
        with self.context.interpolation():
            self.context.write(path)

    def _write_binary(self, node: BinaryExpression) -> None:
        with self.context.interpolation():
            self.write(node.left)
            self.context.write(BINARY_OPERATORS.get(node.operator, f" {node.operator} "))
            self.write(node.right)

    @staticmethod
    def _integer_index(node: ElementAccessExpression) -> Optional[LiteralExpression]:
        arguments = node.argument_list.arguments
        if len(arguments) != 1:
            return None
        index = arguments[0]
        if isinstance(index, LiteralExpression) and index.is_integer:
            return index
        return None

    def _write_element_access(self, node: ElementAccessExpression) -> None:
        index = self._integer_index(node)
        if index is None:
            self.context.write_diagnostic(node, "write_element_access")
            return
        if int(index.value) != 0:
            raise UnsupportedIndexError(node.source, index.value)
        with self.context.interpolation():
            self.write(node.target)
            self.context.write(" | first")

    def _write_prefix_unary(self, node: PrefixUnaryExpression) -> None:
        operand = node.operand
        if node.operator == "-" and isinstance(operand, LiteralExpression):
            self.context.write(f"-{operand.value}")
            return
        if node.operator not in ("!", "+"):
            self.context.write_diagnostic(node, "write_prefix_unary")
            return

        if self._negated_call(operand):
            previous = self.context.pending_operator
            self.context.pending_operator = node.operator
            try:
                self.write(operand)
            finally:
                self.context.pending_operator = previous
            return

        comparable = self.context.expression_mode and is_simple_operand(operand)
        if node.operator == "!" and not comparable:
            # A printed value has no negation filter
            self.context.write_diagnostic(node, "write_prefix_unary")
            return
        self.write(operand)
        if comparable:
            self.context.write(" == false" if node.operator == "!" else " == true")

    def _negated_call(self, operand: Node) -> bool:
        """A call whose rewrite renders the pending operator itself."""
        return (
            isinstance(operand, InvocationExpression)
            and operand.method_name in NEGATED_CALLS
            and self._call_writer(operand) is not None
        )

    def _write_cast(self, node: CastExpression) -> None:
        self.write(node.operand)

    def _write_parenthesized(self, node: ParenthesizedExpression) -> None:
        self.write(node.expression)

    def _write_conditional(self, node: ConditionalExpression) -> None:
        if not isinstance(node.condition, IdentifierName):
            self.context.write_diagnostic(node, "write_conditional")
            return
        with self.context.interpolation():
            self.write(node.condition)
            self.context.write(" | tenary: ")
            self.write(node.when_true)
            self.context.write(", ")
            self.write(node.when_false)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _call_writer(self, node: InvocationExpression) -> Optional[CallWriter]:
        name = node.method_name
        arguments = node.arguments
        target = node.target
        instance = target.target if isinstance(target, MemberAccessExpression) else None

        if name in TRANSLATE_CALLS and arguments:
            return self._write_translate
        if name == RAW_CALL and len(arguments) == 1:
            return self._write_raw
        if name in FORMAT_CALLS and arguments:
            return self._write_format
        if name == RENDER_BODY_CALL and not arguments:
            return self._write_render_body
        if name in PARTIAL_CALLS:
            return self._write_partial
        if name == EQUALS_CALL and instance is not None and len(arguments) == 1:
            return self._write_equals
        if name == TO_STRING_CALL and instance is not None and not arguments:
            return self._write_to_string
        if (
            name == IS_NULL_OR_EMPTY_CALL
            and instance is not None
            and instance.source in STRING_TYPES
            and len(arguments) == 1
        ):
            return self._write_is_null_or_empty
        return None

    def _call_operands(self, node: InvocationExpression) -> tuple[Node, ...]:
        """Sub-expressions a call rewrite renders through ``write``."""
        name = node.method_name
        if name in TRANSLATE_CALLS:
            return node.arguments[1:]
        if name in (EQUALS_CALL, TO_STRING_CALL):
            return (node.target.target,) + node.arguments
        return node.arguments

    def _write_invocation(self, node: InvocationExpression) -> None:
        operator = self.context.take_pending_operator()
        writer = self._call_writer(node)
        if writer is None:
            self.context.write_diagnostic(node, "write_invocation")
            return
        writer(node, operator)

    def _write_translate(self, node: InvocationExpression, operator: Optional[str]) -> None:
        key, *rest = node.arguments
        if isinstance(key, LiteralExpression) and key.is_string:
            key_text = key.unquoted()
        else:
            key_text = key.source
        # The culture argument is implied by the {% culture %} tag
        rest = [argument for argument in rest if argument.source != self.context.active_culture]

        with self.context.interpolation():
            self.context.write(f'"{key_text}" | translate')
            if rest:
                self.context.write(": ")
                self.write_arguments(rest)
            self.context.write(TRANSLATE_CALLS[node.method_name])

    def _write_raw(self, node: InvocationExpression, operator: Optional[str]) -> None:
        argument = node.arguments[0]
        if isinstance(argument, LiteralExpression):
            self.context.write(argument.unquoted())
            return
        with self.context.interpolation():
            self.write(argument)
            self.context.write(" | raw")

    def _write_format(self, node: InvocationExpression, operator: Optional[str]) -> None:
        first, *rest = node.arguments
        with self.context.interpolation():
            self.write(first)
            self.context.write(f" | {FORMAT_CALLS[node.method_name]}")
            if rest:
                self.context.write(": ")
                self.write_arguments(rest)

    def _write_render_body(self, node: InvocationExpression, operator: Optional[str]) -> None:
        if self.context.in_group:
            self.context.write_diagnostic(node, "write_render_body")
            return
        with self.context.tag():
            self.context.write("renderbody")

    def _write_partial(self, node: InvocationExpression, operator: Optional[str]) -> None:
        if self.context.in_group:
            self.context.write_diagnostic(node, "write_partial")
            return
        with self.context.tag():
            self.context.write(f"partial '{PARTIAL_CALLS[node.method_name]}'")
            for argument in node.arguments:
                self.context.write(", ")
                self.write(argument)

    def _write_equals(self, node: InvocationExpression, operator: Optional[str]) -> None:
        with self.context.interpolation():
            self.write(node.target.target)
            self.context.write(" != " if operator == "!" else " == ")
            self.write(node.arguments[0])

    def _write_to_string(self, node: InvocationExpression, operator: Optional[str]) -> None:
        self.write(node.target.target)

    def _write_is_null_or_empty(self, node: InvocationExpression, operator: Optional[str]) -> None:
        with self.context.interpolation():
            self.write(node.arguments[0])
            self.context.write(" | is_null_or_empty")
            if operator == "!":
                self.context.write(" == false")
