"""
razor2liquid - Razor template to Liquid template converter

Reads .cshtml templates, classifies them into markup and code spans, parses
the C# of each code span and re-expresses the supported subset (assignments,
conditionals, loops, member access, known helper calls) as Liquid tags and
interpolations. Anything without a safe translation is kept inside a
``{% comment %}`` block.
"""

from .converter import FileConversion, RazorConverter, convert_template
from .helpers import HelperExtractor, extract_helpers
from .models import LiquidModel, ParseError, SourceLocation

__version__ = "0.1.0"

__all__ = [
    "RazorConverter",
    "FileConversion",
    "convert_template",
    "HelperExtractor",
    "extract_helpers",
    "LiquidModel",
    "ParseError",
    "SourceLocation",
]
