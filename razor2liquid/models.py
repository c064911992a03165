"""
Result models shared by the classifier, the router and the converter.

Locations use zero-based line and character indices, the way Razor reports
them; ``ParseError.__str__`` renders them one-based for humans.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceLocation(BaseModel):
    """Position of a span or error in the template source."""

    model_config = ConfigDict(frozen=True)

    absolute_index: int = Field(0, ge=0)
    line_index: int = Field(0, ge=0)
    character_index: int = Field(0, ge=0)

    def advance(self, line: int, column: int, offset: int) -> SourceLocation:
        """
        Translate a position inside a span's content into template coordinates.

        Args:
            line: zero-based line within the content
            column: zero-based column within that line
            offset: zero-based absolute offset within the content

        Returns:
            The location relative to the whole template
        """
        character = column if line else self.character_index + column
        return SourceLocation(
            absolute_index=self.absolute_index + offset,
            line_index=self.line_index + line,
            character_index=character,
        )

    def __str__(self) -> str:
        return f"({self.line_index + 1}:{self.character_index + 1})"


class ParseError(BaseModel):
    """A recoverable problem found while reading the template."""

    model_config = ConfigDict(frozen=True)

    location: SourceLocation
    message: str

    def __str__(self) -> str:
        return f"{self.location} {self.message}"


class LiquidModel(BaseModel):
    """Outcome of converting one template."""

    liquid: str = ""
    layout: Optional[str] = None
    errors: list[ParseError] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
