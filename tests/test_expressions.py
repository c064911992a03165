"""Tests for the expression transformer."""

import pytest

from razor2liquid.core.errors import UnsupportedIndexError
from razor2liquid.syntax.parser import parse_code
from razor2liquid.transform.context import EmissionContext
from razor2liquid.transform.expressions import ExpressionTransformer


class TestNames:
    """Identifiers and member paths."""

    def test_identifier(self, render_expression):
        """Test that a name is interpolated."""
        assert render_expression("a") == "{{ a }}"

    def test_member_path(self, render_expression):
        """Test that a dotted path is interpolated as is."""
        assert render_expression("Model.Urls.ImagesBaseUrl") == "{{ Model.Urls.ImagesBaseUrl }}"

    def test_conditional_access(self, render_expression):
        """Test that ?. renders as a plain dot."""
        assert render_expression("Model?.Name") == "{{ Model.Name }}"

    def test_expression_mode(self, render_expression):
        """Test that expression mode drops the interpolation braces."""
        assert render_expression("Model.Name", expression_mode=True) == "Model.Name"

    def test_member_of_call_is_diagnostic(self, render_expression):
        """Test that a member access on a call result is not translated."""
        liquid = render_expression("Foo().Bar")
        assert "---Expression: MemberAccessExpression ---- From: write_member_access" in liquid


class TestOperators:
    """Binary, unary, casts and the ternary operator."""

    def test_append(self, render_expression):
        """Test that + becomes the append filter."""
        assert render_expression('Model.Url + "blank.gif"') == '{{ Model.Url | append: "blank.gif" }}'

    def test_logical_operators(self, render_expression):
        """Test that || and && become or and and."""
        assert render_expression("a || b && c", expression_mode=True) == "a or b and c"

    def test_comparison(self, render_expression):
        """Test that other operators are kept."""
        assert render_expression("a >= 3", expression_mode=True) == "a >= 3"

    def test_negated_name(self, render_expression):
        """Test that !name compares with false in expression mode."""
        assert render_expression("!course.IsBundleItem", expression_mode=True) == (
            "course.IsBundleItem == false"
        )

    def test_negative_literal(self, render_expression):
        """Test that a negative number is written as is."""
        assert render_expression("-1", expression_mode=True) == "-1"

    def test_cast_is_transparent(self, render_expression):
        """Test that casts are dropped."""
        assert render_expression("(Cws.Shop.BankPayment)Model.Payment") == "{{ Model.Payment }}"

    def test_parentheses_are_transparent(self, render_expression):
        """Test that parentheses are dropped."""
        assert render_expression("(Model.Name)") == "{{ Model.Name }}"

    def test_ternary(self, render_expression):
        """Test the ternary with a name condition."""
        assert render_expression('flag ? "a" : "b"') == '{{ flag | tenary: "a", "b" }}'

    def test_ternary_with_compound_condition(self, render_expression):
        """Test that only name conditions are translated."""
        liquid = render_expression('a != null ? "a" : "b"')
        assert liquid.startswith("{% comment %}\n---Expression: ConditionalExpression")


class TestElementAccess:
    """Indexing."""

    def test_first(self, render_expression):
        """Test that [0] becomes the first filter."""
        assert render_expression("Model.Array[0]") == "{{ Model.Array | first }}"

    def test_other_index_raises(self, render_expression):
        """Test that any other literal index is fatal."""
        with pytest.raises(UnsupportedIndexError):
            render_expression("Model.Array[1]")

    def test_variable_index_is_diagnostic(self, render_expression):
        """Test that a computed index is not translated."""
        assert "ElementAccessExpression" in render_expression("Model.Array[i]")


class TestCalls:
    """Known helper calls."""

    def test_translate(self, render_expression):
        """Test a translation key without arguments."""
        assert render_expression("Translate(Local.Ding)") == '{{ "Local.Ding" | translate }}'

    def test_translate_string_key(self, render_expression):
        """Test that a string key is not quoted twice."""
        assert render_expression('Translate("Key")') == '{{ "Key" | translate }}'

    def test_translate_format(self, render_expression):
        """Test that format arguments follow the filter."""
        liquid = render_expression('TranslateFormat(Keys.Pattern, Model.CustomerName, "Ding")')
        assert liquid == '{{ "Keys.Pattern" | translate: Model.CustomerName, "Ding" }}'

    def test_translate_format_drops_culture(self, render_expression):
        """Test that the bound culture variable is not passed on."""
        liquid = render_expression(
            "TranslateFormat(Keys.Pattern, chineseCulture, Model.CustomerName)",
            culture="chineseCulture",
        )
        assert liquid == '{{ "Keys.Pattern" | translate: Model.CustomerName }}'

    def test_translate_raw(self, render_expression):
        """Test that TranslateRaw adds the raw filter."""
        assert render_expression("TranslateRaw(Keys.Footer)") == '{{ "Keys.Footer" | translate | raw }}'

    def test_raw_value(self, render_expression):
        """Test Raw around a value."""
        assert render_expression("Raw(payment.ChequeAddress)") == "{{ payment.ChequeAddress | raw }}"

    def test_html_raw_literal(self, render_expression):
        """Test that a literal passed to Html.Raw is written unescaped."""
        assert render_expression('Html.Raw("<br/>")') == "<br/>"

    def test_raw_with_format_price(self, render_expression):
        """Test nested calls sharing one interpolation."""
        liquid = render_expression(
            "Raw(GetFormattedPrice(course.TotalPrice, course.TotalDiscountedPrice, "
            "Model.CurrentCart.Currency, course.HideStrikethrough))"
        )
        assert liquid == (
            "{{ course.TotalPrice | format_price: course.TotalDiscountedPrice, "
            "Model.CurrentCart.Currency, course.HideStrikethrough | raw }}"
        )

    def test_format_currency(self, render_expression):
        """Test the currency filter."""
        assert render_expression("FormatCurrency(Model.Total)") == "{{ Model.Total | currency }}"

    def test_render_body(self, render_expression):
        """Test that RenderBody becomes a tag."""
        assert render_expression("RenderBody()") == "{% renderbody %}"

    def test_partial(self, render_expression):
        """Test that a known helper call becomes a partial."""
        assert render_expression("ShowWireTransfer(ding.Dong, blub)") == (
            "{% partial 'WireTransfer', ding.Dong, blub %}"
        )

    def test_equals(self, render_expression):
        """Test that Equals becomes ==."""
        assert render_expression('Model.Kind.Equals("x")', expression_mode=True) == 'Model.Kind == "x"'

    def test_negated_equals(self, render_expression):
        """Test that a negated Equals becomes !=."""
        assert render_expression('!Model.Kind.Equals("x")', expression_mode=True) == 'Model.Kind != "x"'

    def test_to_string(self, render_expression):
        """Test that ToString is dropped."""
        assert render_expression("Model.Count.ToString()") == "{{ Model.Count }}"

    def test_is_null_or_empty(self, render_expression):
        """Test the is_null_or_empty filter and its negation."""
        assert render_expression("string.IsNullOrEmpty(a.B)", expression_mode=True) == (
            "a.B | is_null_or_empty"
        )
        assert render_expression("!string.IsNullOrEmpty(a.B)", expression_mode=True) == (
            "a.B | is_null_or_empty == false"
        )

    def test_unknown_call(self, render_expression):
        """Test that an unknown call is quoted in a comment."""
        assert render_expression("Foo(x)") == (
            "{% comment %}\n"
            "---Expression: InvocationExpression ---- From: write_invocation\n"
            "Foo(x)\n"
            "{% endcomment %}"
        )

    def test_unknown_call_inside_interpolation(self, render_expression):
        """Test that a diagnostic inside a value follows the closing braces."""
        assert render_expression("a + Foo(x)") == (
            "{{ a | append: TODO_COMMENT }}\n"
            "{% comment %}\n"
            "---Expression: InvocationExpression ---- From: write_invocation\n"
            "Foo(x)\n"
            "{% endcomment %}"
        )


class TestUnsupported:
    """Kinds without translation."""

    def test_object_creation(self, render_expression):
        """Test that new T() is quoted."""
        assert "---Expression: ObjectCreationExpression" in render_expression("new Foo()")

    def test_type_test(self, render_expression):
        """Test that is/as are quoted."""
        assert "---Expression: TypeTestExpression" in render_expression("x as Foo")


class TestNesting:
    """Rewrites that cannot sit inside another group."""

    def test_partial_inside_value(self, render_expression):
        """Test that a partial inside an interpolation is deferred as a comment."""
        assert render_expression("a + ShowBoleto(x)") == (
            "{{ a | append: TODO_COMMENT }}\n"
            "{% comment %}\n"
            "---Expression: InvocationExpression ---- From: write_partial\n"
            "ShowBoleto(x)\n"
            "{% endcomment %}"
        )

    def test_render_body_in_expression_mode(self, render_expression):
        """Test that RenderBody as a bare value leaves the placeholder."""
        assert render_expression("RenderBody()", expression_mode=True) == "TODO_COMMENT"

    def test_tag_calls_are_not_values(self):
        """Test that the support check rejects the tag rewrites."""
        transformer = ExpressionTransformer(EmissionContext())
        assert not transformer.supports(parse_code("ShowBoleto(x)").members[0].expression)
        assert not transformer.supports(parse_code("RenderBody()").members[0].expression)

    def test_printed_negation_is_diagnostic(self, render_expression):
        """Test that !value outside a condition is quoted instead of dropped."""
        assert render_expression("!a") == (
            "{% comment %}\n"
            "---Expression: PrefixUnaryExpression ---- From: write_prefix_unary\n"
            "!a\n"
            "{% endcomment %}"
        )

    def test_negated_call_without_rewrite(self, render_expression):
        """Test that a negated call with arguments needs a negating rewrite."""
        assert render_expression("!Translate(Keys.A)", expression_mode=True) == "TODO_COMMENT"


class TestFatalErrors:
    """Context state after an aborted write."""

    def test_interpolation_is_closed(self):
        """Test that the group counter is back at zero."""
        context = EmissionContext()
        expression = parse_code("a + Model.Array[1]").members[0].expression
        with pytest.raises(UnsupportedIndexError):
            ExpressionTransformer(context).write(expression)
        assert context.interpolation_depth == 0

    def test_expression_mode_and_operator_are_restored(self):
        """Test that expression mode and the pending operator are reset."""
        context = EmissionContext()
        expression = parse_code("!Model.Kind.Equals(Model.Array[1])").members[0].expression
        with pytest.raises(UnsupportedIndexError):
            with context.expression():
                ExpressionTransformer(context).write(expression)
        assert context.expression_mode is False
        assert context.pending_operator is None
