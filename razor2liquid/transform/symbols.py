"""
Known names of the Razor templates being converted.

The call tables map bare method names (``Translate``, ``Model.Helper.Raw``
and ``Raw`` all match ``Raw``) to the Liquid they become.
"""

# Razor keyword declaring the model type; has no Liquid counterpart
MODEL_KEYWORD = "model"

# Property whose string assignment names the layout template
LAYOUT_PROPERTY = "Layout"

# Extensions stripped from layout names
RAZOR_EXTENSIONS = (".cshtml", ".vbhtml")

# Meta-code marker introducing a helper declaration
HELPER_MARKER = "helper"

# Helper names start with this prefix; the rest names the partial
HELPER_NAME_PREFIX = "Show"

# Written where an expression has no translation; the comment follows the tag
PLACEHOLDER = "TODO_COMMENT"

# name -> filter appended after the translate filter
TRANSLATE_CALLS = {
    "Translate": "",
    "TranslateFormat": "",
    "TranslateRaw": " | raw",
}

RAW_CALL = "Raw"

# name -> Liquid filter applied to the first argument
FORMAT_CALLS = {
    "GetFormattedPrice": "format_price",
    "FormatPrice": "format_price",
    "FormatCurrency": "currency",
}

RENDER_BODY_CALL = "RenderBody"

# helper call -> partial template name
PARTIAL_CALLS = {
    "ShowBoleto": "Boleto",
    "ShowWireTransfer": "WireTransfer",
}

EQUALS_CALL = "Equals"
TO_STRING_CALL = "ToString"
IS_NULL_OR_EMPTY_CALL = "IsNullOrEmpty"

# Call rewrites that render a leading "!" themselves
NEGATED_CALLS = (EQUALS_CALL, IS_NULL_OR_EMPTY_CALL)

STRING_TYPES = ("string", "String", "System.String")

# Calls and constructors producing a CultureInfo
CULTURE_FACTORIES = ("GetCultureInfo", "CreateSpecificCulture")
CULTURE_TYPES = ("CultureInfo", "System.Globalization.CultureInfo")

# C# operator -> Liquid operator
BINARY_OPERATORS = {
    "+": " | append: ",
    "||": " or ",
    "&&": " and ",
}
