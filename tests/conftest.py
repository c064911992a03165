"""
Shared pytest fixtures for the razor2liquid tests.

This module provides:
- A converter built from default settings (no .env lookups leaking in)
- Shortcuts returning the Liquid text of a template
- A factory rendering a single C# expression with the ExpressionTransformer
"""

import pytest

from razor2liquid.converter import RazorConverter
from razor2liquid.core.config import Settings
from razor2liquid.syntax.parser import parse_code
from razor2liquid.transform.context import EmissionContext
from razor2liquid.transform.expressions import ExpressionTransformer


@pytest.fixture
def settings():
    """Settings with their defaults, ignoring the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def converter(settings):
    """A converter using default settings."""
    return RazorConverter(settings=settings)


@pytest.fixture
def convert(converter):
    """Convert a template and return the Liquid text."""
    def _convert(template: str) -> str:
        return converter.convert(template).liquid
    return _convert


@pytest.fixture
def context():
    """A fresh emission context."""
    return EmissionContext()


@pytest.fixture
def render_expression():
    """
    Render one C# expression.

    Returns a function ``(source, expression_mode=False, culture=None) -> str``.
    """
    def _render(source: str, expression_mode: bool = False, culture: str | None = None) -> str:
        context = EmissionContext()
        context.active_culture = culture
        transformer = ExpressionTransformer(context)
        expression = parse_code(source).members[0].expression
        if expression_mode:
            with context.expression():
                transformer.write(expression)
        else:
            transformer.write(expression)
        return context.liquid
    return _render
