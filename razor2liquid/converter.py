"""
Razor to Liquid conversion entry points.

``RazorConverter.convert`` runs one template through the pipeline::

    text -> classifier -> spans -> SpanRouter -> EmissionContext -> LiquidModel

and the file helpers wrap it with the reading, writing and folder walking
the command line needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .core.config import Settings, get_settings
from .core.errors import ConversionError
from .core.logging import get_context_logger
from .helpers import HelperExtractor
from .models import LiquidModel
from .razor.classifier import classify
from .router import SpanRouter
from .syntax.parser import CodeParser
from .transform.context import EmissionContext

logger = get_context_logger(__name__, component="converter")


@dataclass
class FileConversion:
    """Outcome of converting one template file."""

    source: Path
    """Template that was read"""

    output: Optional[Path] = None
    """Liquid file written, None when the conversion failed"""

    model: Optional[LiquidModel] = None
    """Conversion result"""

    helpers: List[Path] = field(default_factory=list)
    """Partials written for the template's helpers"""

    error: Optional[str] = None
    """Why the conversion failed"""

    @property
    def ok(self) -> bool:
        return self.error is None


class RazorConverter:
    """
    Convert Razor templates to Liquid.

    Example:
        >>> RazorConverter().convert("<p>@Model.Name</p>").liquid
        '<p>{{ Model.Name }}</p>'
    """

    def __init__(self, settings: Optional[Settings] = None, parser: Optional[CodeParser] = None):
        self.settings = settings or get_settings()
        self.parser = parser or CodeParser()

    def convert(self, text: str) -> LiquidModel:
        """
        Convert one template.

        Raises:
            ConversionError: if the template drives the converter into an
                unsupported state (second culture, index other than 0, ...)
        """
        classified = classify(text)
        context = EmissionContext()
        router = SpanRouter(context, self.parser)

        for error in classified.errors:
            router.route_error(error)
        for span in classified.spans:
            logger.debug("%s: %r", span.kind.value, span.content)
            router.route(span)
        router.finish()

        return context.to_model()

    def extract_helpers(self, text: str) -> Dict[str, str]:
        """Bodies of the template's ``@helper`` declarations, by name."""
        return HelperExtractor().extract(classify(text).spans)

    def convert_helpers(self, text: str) -> Dict[str, LiquidModel]:
        """Convert every helper body as a template of its own."""
        return {
            name: self.convert(body)
            for name, body in self.extract_helpers(text).items()
        }

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def convert_file(
        self,
        source_path: str | Path,
        *,
        output_path: str | Path | None = None,
        overwrite: bool = False,
        encoding: Optional[str] = None,
        write_helpers: Optional[bool] = None,
    ) -> FileConversion:
        """
        Convert a template file and write the Liquid next to it.

        Args:
            source_path: the Razor template
            output_path: destination (defaults to the source with the
                target extension)
            overwrite: replace existing output files
            encoding: file encoding (defaults to the configured one)
            write_helpers: write each helper as ``<Name>.liquid`` beside the
                output (defaults to the configured setting)

        Raises:
            FileNotFoundError: if the source does not exist
            FileExistsError: if an output exists and ``overwrite`` is off
            ConversionError: if the template cannot be converted
        """
        source = Path(source_path)
        if not source.exists():
            raise FileNotFoundError(f"Razor template not found: {source}")
        encoding = encoding or self.settings.ENCODING
        if write_helpers is None:
            write_helpers = self.settings.WRITE_HELPERS

        output = Path(output_path) if output_path else source.with_suffix(
            self.settings.TARGET_EXTENSION)
        if output.exists() and not overwrite:
            raise FileExistsError(f"Refusing to overwrite existing file: {output}")

        text = source.read_text(encoding=encoding)
        model = self.convert(text)
        helpers = self.convert_helpers(text) if write_helpers else {}

        helper_paths = []
        for name in helpers:
            helper_path = output.parent / f"{name}{self.settings.TARGET_EXTENSION}"
            if helper_path.exists() and not overwrite:
                raise FileExistsError(f"Refusing to overwrite existing file: {helper_path}")
            helper_paths.append(helper_path)

        file_logger = logger.bind(template=source.name)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(model.liquid, encoding=encoding)
        file_logger.info("Wrote %s", output, extra_data={"errors": len(model.errors)})
        for helper_path, helper in zip(helper_paths, helpers.values()):
            helper_path.write_text(helper.liquid, encoding=encoding)
            file_logger.info("Wrote helper %s", helper_path)

        for error in model.errors:
            file_logger.warning("%s", error)
        return FileConversion(source=source, output=output, model=model, helpers=helper_paths)

    def convert_folder(
        self,
        folder: str | Path,
        *,
        overwrite: bool = False,
        encoding: Optional[str] = None,
        write_helpers: Optional[bool] = None,
    ) -> List[FileConversion]:
        """
        Convert every template below ``folder``.

        A file that fails is reported in its FileConversion and the walk
        continues with the next one.
        """
        root = Path(folder)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a folder: {root}")

        results = []
        for source in sorted(root.rglob(f"*{self.settings.SOURCE_EXTENSION}")):
            try:
                result = self.convert_file(
                    source,
                    overwrite=overwrite,
                    encoding=encoding,
                    write_helpers=write_helpers,
                )
            except ConversionError as exc:
                logger.error("Failed to convert %s: %s", source, exc.message,
                             extra_data=exc.to_dict())
                result = FileConversion(source=source, error=exc.message)
            except (FileExistsError, UnicodeDecodeError) as exc:
                logger.error("Failed to convert %s: %s", source, exc)
                result = FileConversion(source=source, error=str(exc))
            results.append(result)

        failed = sum(1 for result in results if not result.ok)
        logger.info("Converted %d of %d templates in %s", len(results) - failed, len(results), root)
        return results


def convert_template(text: str) -> LiquidModel:
    """Convert one template with the default settings."""
    return RazorConverter().convert(text)
