"""
End-to-end tests for RazorConverter.

Templates are converted whole: classifier, router and transformers
together. File tests write into pytest's tmp_path.
"""

import pytest

from razor2liquid.converter import FileConversion, convert_template
from razor2liquid.core.errors import CultureAlreadyBoundError, UnsupportedIndexError

PAGE = "\n<html>\n  <body>\n  </body>\n</html>\n"


class TestMarkup:
    """Markup and directives."""

    def test_simple(self, convert):
        """Test that plain markup passes through."""
        assert convert("<themarkup></themarkup>") == "<themarkup></themarkup>"

    def test_multiline(self, convert):
        """Test that multiline markup is unchanged."""
        assert convert(PAGE) == PAGE

    def test_ignores_using(self, convert):
        """Test that @using lines are dropped."""
        assert convert("\n@using FooBar.Ding\n@using BarFoo.Ding" + PAGE) == PAGE

    def test_ignores_model_last(self, convert):
        """Test that a @model line after @using is dropped."""
        assert convert("\n@using FooBar.Ding\n@model BarFoo.Ding" + PAGE) == PAGE

    def test_ignores_model_first(self, convert):
        """Test that a @model line before @using is dropped."""
        assert convert("\n@model BarFoo.Ding\n@using FooBar.Ding" + PAGE) == PAGE

    def test_layout(self, converter):
        """Test that the layout is found and written first."""
        source = (
            "\n@model BarFoo.Ding\n@using FooBar.Ding\n"
            "@{\n    Layout = \"MailLayout.Htm.cshtml\"; \n}"
            + PAGE
        )
        model = converter.convert(source)
        assert model.liquid == "{% layout 'MailLayout.Htm' %}\n" + PAGE
        assert model.layout == "MailLayout.Htm"


class TestPrinting:
    """Values printed from markup."""

    def test_img_src_with_add(self, convert):
        """Test string concatenation in an attribute."""
        source = '<img src="@(Model.Urls.ImagesBaseUrl + "blank.gif")" />'
        assert convert(source) == '<img src="{{ Model.Urls.ImagesBaseUrl | append: "blank.gif" }}" />'

    def test_img_src_with_parentheses(self, convert):
        """Test an explicit expression in an attribute."""
        source = '<img src="@(Model.Urls.ImagesBaseUrl)" />'
        assert convert(source) == '<img src="{{ Model.Urls.ImagesBaseUrl }}" />'

    def test_img_src(self, convert):
        """Test an implicit expression in an attribute."""
        source = '<img src="@Model.Urls.ImagesBaseUrl" />'
        assert convert(source) == '<img src="{{ Model.Urls.ImagesBaseUrl }}" />'

    def test_translate(self, convert):
        """Test a translation key."""
        source = "\n<html>\n  <body>@Translate(LocalizationKeys.Mail.Headline_Text)\n  </body>\n</html>\n"
        assert convert(source) == (
            '\n<html>\n  <body>{{ "LocalizationKeys.Mail.Headline_Text" | translate }}\n'
            "  </body>\n</html>\n"
        )

    def test_translate_format(self, convert):
        """Test a translation pattern with arguments."""
        source = '<body>@TranslateFormat(Keys.FormofAddress, Model.CustomerName, "Ding")\n</body>'
        assert convert(source) == (
            '<body>{{ "Keys.FormofAddress" | translate: Model.CustomerName, "Ding" }}\n</body>'
        )

    def test_translate_format_with_culture(self, convert):
        """Test that the culture variable becomes a culture tag and leaves the arguments."""
        source = (
            "\n<html>\n"
            "@{\n"
            '    var chineseCulture = System.Globalization.CultureInfo.GetCultureInfo("zh-Hans");\n'
            "      }\n"
            '  <body>@TranslateFormat(Keys.X, chineseCulture, Model.CustomerName, "Ding")\n'
            "  </body>\n</html>\n"
        )
        assert convert(source) == (
            "\n<html>\n"
            "{% culture 'zh-Hans' %}\n"
            '  <body>{{ "Keys.X" | translate: Model.CustomerName, "Ding" }}\n'
            "  </body>\n</html>\n"
        )

    def test_culture_assignment(self, convert):
        """Test a culture declaration without any translation."""
        source = (
            "\n<html>\n  <body>\n"
            "@{\n"
            '    var chineseCulture = System.Globalization.CultureInfo.GetCultureInfo("zh-Hans");\n'
            "      }\n"
            "  </body>\n</html>\n"
        )
        assert convert(source) == (
            "\n<html>\n  <body>\n{% culture 'zh-Hans' %}\n  </body>\n</html>\n"
        )

    def test_raw_media_query(self, convert):
        """Test that a raw string literal is written without quotes."""
        source = (
            "<style>\n"
            '\t\t@Raw("@media only screen and (min-device-width: 768px) {")\n'
            '\t\t\ta[href^="tel"] {\n'
            "\t\t\t\tcolor: blue;\n"
            "\t\t\t}\n"
            "</style>\n"
        )
        assert convert(source) == (
            "<style>\n"
            "\t\t@media only screen and (min-device-width: 768px) {\n"
            '\t\t\ta[href^="tel"] {\n'
            "\t\t\t\tcolor: blue;\n"
            "\t\t\t}\n"
            "</style>\n"
        )

    def test_first_element(self, convert):
        """Test that [0] becomes the first filter."""
        assert convert("@Model.Array[0]") == "{{ Model.Array | first }}"

    def test_raw(self, convert):
        """Test Raw around a member path."""
        assert convert("<p>@Raw(payment.ChequeAddress)</p>") == "<p>{{ payment.ChequeAddress | raw }}</p>"

    def test_raw_with_function(self, convert):
        """Test Raw around GetFormattedPrice."""
        source = (
            "<b>@Raw(GetFormattedPrice(course.TotalPrice, course.TotalDiscountedPrice, "
            "Model.CurrentCart.Currency, course.HideStrikethrough))</b>"
        )
        assert convert(source) == (
            "<b>{{ course.TotalPrice | format_price: course.TotalDiscountedPrice, "
            "Model.CurrentCart.Currency, course.HideStrikethrough | raw }}</b>"
        )

    def test_partial_inside_value(self, convert):
        """Test that a partial used as a value becomes a comment after the value."""
        assert convert("@(a + ShowBoleto(x))") == (
            "{{ a | append: TODO_COMMENT }}\n"
            "{% comment %}\n"
            "---Expression: InvocationExpression ---- From: write_partial\n"
            "ShowBoleto(x)\n"
            "{% endcomment %}"
        )

    def test_partials(self, convert):
        """Test that Show* helper calls become partials."""
        assert convert("<b>@ShowBoleto(ding.Dong)</b>") == "<b>{% partial 'Boleto', ding.Dong %}</b>"
        assert convert("<b>@ShowWireTransfer(ding.Dong, blub)</b>") == (
            "<b>{% partial 'WireTransfer', ding.Dong, blub %}</b>"
        )


class TestControlFlow:
    """Blocks opened in one code span and closed in another."""

    def test_if(self, convert):
        """Test an if around markup."""
        source = "\n@{ var a = true }\n@if (a) {\n  <hello>@a</hello>\n}\n"
        assert convert(source) == (
            "\n{% assign a = true %}\n{% if a %}\n  <hello>{{ a }}</hello>\n{% endif %}\n"
        )

    def test_if_without_body(self, converter):
        """Test that a dangling if is closed and reported."""
        model = converter.convert("@if (course.IsBundleItem)")
        assert model.liquid == "{% if course.IsBundleItem %}\n{% endif %}\n"
        assert model.has_errors

    def test_if_assign(self, convert):
        """Test an assignment inside an if body."""
        source = (
            "\n@{ var priceWidthInPercent = 40; }\n"
            "@if (course.IsBundleItem) {\n"
            "  priceWidthInPercent = 30;\n"
            "  <ding>@priceWidthInPercent</ding>\n"
            "}"
        )
        assert convert(source) == (
            "\n{% assign priceWidthInPercent = 40 %}\n"
            "{% if course.IsBundleItem %}\n"
            "  {% assign priceWidthInPercent = 30 %}\n"
            "  <ding>{{ priceWidthInPercent }}</ding>\n"
            "{% endif %}\n"
        )


class TestAssignments:
    """Variable declarations in code blocks."""

    def test_simple(self, convert):
        """Test a literal initializer."""
        assert convert("@{ var priceWidthInPercent = 40; }") == "{% assign priceWidthInPercent = 40 %}"

    def test_no_value(self, convert):
        """Test a declaration without initializer."""
        assert convert("@{ var priceWidthInPercent;}") == '{% assign priceWidthInPercent = "" %}'

    def test_cast(self, convert):
        """Test that a cast initializer is unwrapped."""
        source = "@{ var payment = (Cws.Shop.Model.Order.BankPayment)Model.CurrentCart.Payment; }"
        assert convert(source) == "{% assign payment = Model.CurrentCart.Payment %}"

    def test_complex_is_comment(self, convert):
        """Test that a ternary with a compound condition is quoted."""
        value = (
            "Model.Items.FirstOrDefault() != null ? "
            "!string.IsNullOrEmpty(Model.Items.FirstOrDefault().Number) : false"
        )
        source = "@{\n    var isVoucher = " + value + ";\n}"
        assert convert(source) == (
            "{% assign isVoucher = TODO_COMMENT %}\n"
            "{% comment %}\n"
            "---Expression: ConditionalExpression ---- From: write_variable_declaration\n"
            + value + "\n"
            "{% endcomment %}"
        )


class TestHelpers:
    """@helper declarations."""

    def test_helper_removal(self, convert):
        """Test that a helper declaration is removed and its call becomes a partial."""
        source = (
            "\n<body>\n"
            "    @ShowBoleto(payment)\n"
            "    <br/>\n"
            " @helper ShowBoleto(Payment payment) {\n"
            "     <hr />\n"
            " }\n"
            "</body>\n"
        )
        assert convert(source) == (
            "\n<body>\n    {% partial 'Boleto', payment %}\n    <br/>\n</body>\n"
        )


class TestErrors:
    """Fatal and collected errors."""

    def test_two_cultures(self, converter):
        """Test that binding a second culture aborts the conversion."""
        source = (
            '@{ var a = new CultureInfo("de-DE"); }\n'
            '@{ var b = new CultureInfo("fr-FR"); }\n'
        )
        with pytest.raises(CultureAlreadyBoundError):
            converter.convert(source)

    def test_unsupported_index(self, converter):
        """Test that an index other than 0 aborts the conversion."""
        with pytest.raises(UnsupportedIndexError):
            converter.convert("@Model.Array[1]")

    def test_syntax_error_is_collected(self, converter):
        """Test that a rejected code block is quoted and reported."""
        model = converter.convert("<p>\n@{ var = ; }\n</p>")
        assert "---Expression: CompilationUnit ---- From: route_code" in model.liquid
        assert len(model.errors) == 1
        assert model.errors[0].location.line_index == 1

    def test_unclosed_comment_is_collected(self, converter):
        """Test that classifier errors reach the model."""
        model = converter.convert("<p>@* never closed</p>")
        assert model.has_errors


class TestConvert:
    """Conversion entry points."""

    def test_is_repeatable(self, converter):
        """Test that converting twice gives the same output."""
        source = "\n@{ var a = true }\n@if (a) {\n  <hello>@a</hello>\n}\n"
        assert converter.convert(source) == converter.convert(source)

    def test_convert_template(self):
        """Test the module level shortcut."""
        assert convert_template("<p>@Model.Name</p>").liquid == "<p>{{ Model.Name }}</p>"


class TestFiles:
    """Reading and writing template files."""

    def test_convert_file(self, converter, tmp_path):
        """Test that the Liquid file is written next to the template."""
        source = tmp_path / "Mail.cshtml"
        source.write_text("<p>@Model.Name</p>", encoding="utf-8")

        result = converter.convert_file(source)

        assert result.ok
        assert result.output == tmp_path / "Mail.liquid"
        assert result.output.read_text(encoding="utf-8") == "<p>{{ Model.Name }}</p>"

    def test_explicit_output(self, converter, tmp_path):
        """Test writing to a chosen path in a new folder."""
        source = tmp_path / "Mail.cshtml"
        source.write_text("<p></p>", encoding="utf-8")
        output = tmp_path / "out" / "mail.liquid"

        result = converter.convert_file(source, output_path=output)

        assert result.output == output
        assert output.read_text(encoding="utf-8") == "<p></p>"

    def test_missing_source(self, converter, tmp_path):
        """Test that a missing template raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            converter.convert_file(tmp_path / "Missing.cshtml")

    def test_refuses_to_overwrite(self, converter, tmp_path):
        """Test that an existing output is kept unless overwrite is set."""
        source = tmp_path / "Mail.cshtml"
        source.write_text("<p>new</p>", encoding="utf-8")
        output = tmp_path / "Mail.liquid"
        output.write_text("old", encoding="utf-8")

        with pytest.raises(FileExistsError):
            converter.convert_file(source)
        assert output.read_text(encoding="utf-8") == "old"

        converter.convert_file(source, overwrite=True)
        assert output.read_text(encoding="utf-8") == "<p>new</p>"

    def test_helpers_are_written(self, converter, tmp_path):
        """Test that each helper becomes a partial beside the output."""
        source = tmp_path / "Mail.cshtml"
        source.write_text(
            "<body>\n @helper ShowBoleto(Payment payment) {\n     <hr />\n }\n</body>\n",
            encoding="utf-8",
        )

        result = converter.convert_file(source)

        assert result.helpers == [tmp_path / "Boleto.liquid"]
        assert (tmp_path / "Boleto.liquid").read_text(encoding="utf-8") == "     <hr />\n"

    def test_helpers_can_be_skipped(self, converter, tmp_path):
        """Test that write_helpers=False writes only the template."""
        source = tmp_path / "Mail.cshtml"
        source.write_text(
            "<body>\n @helper ShowBoleto(Payment payment) {\n     <hr />\n }\n</body>\n",
            encoding="utf-8",
        )

        result = converter.convert_file(source, write_helpers=False)

        assert result.helpers == []
        assert not (tmp_path / "Boleto.liquid").exists()

    def test_convert_folder(self, converter, tmp_path):
        """Test that a failing template does not stop the walk."""
        (tmp_path / "nested").mkdir()
        (tmp_path / "A.cshtml").write_text("<p>@Model.Array[1]</p>", encoding="utf-8")
        (tmp_path / "nested" / "B.cshtml").write_text("<p>@Model.Name</p>", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("@Model", encoding="utf-8")

        results = converter.convert_folder(tmp_path)

        assert [result.source.name for result in results] == ["A.cshtml", "B.cshtml"]
        failed, converted = results
        assert isinstance(failed, FileConversion)
        assert not failed.ok
        assert failed.output is None
        assert converted.ok
        assert (tmp_path / "nested" / "B.liquid").read_text(encoding="utf-8") == "<p>{{ Model.Name }}</p>"

    def test_convert_folder_requires_folder(self, converter, tmp_path):
        """Test that a file is rejected as folder."""
        source = tmp_path / "Mail.cshtml"
        source.write_text("", encoding="utf-8")
        with pytest.raises(NotADirectoryError):
            converter.convert_folder(source)
