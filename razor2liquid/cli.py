"""Command line interface for razor2liquid."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .converter import RazorConverter
from .core.config import get_settings
from .core.errors import ConversionError
from .core.logging import get_logger, setup_logging
from .razor.dumper import dump_template

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="razor2liquid",
        description="Convert Razor (.cshtml) templates into Liquid templates."
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Razor template, or a folder converted recursively.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Destination for the .liquid file (single template only; defaults to alongside the source).",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Allow overwriting existing output files.",
    )
    parser.add_argument(
        "--no-helpers",
        dest="write_helpers",
        action="store_false",
        default=None,
        help="Do not write @helper declarations as partials.",
    )
    parser.add_argument(
        "--encoding",
        default=None,
        help="Encoding to use when reading and writing files (default: utf-8).",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the spans and code syntax trees of the template instead of converting it.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from RAZOR2LIQUID_LOG_LEVEL or INFO).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress informational output.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"LOG_LEVEL": args.log_level})
    elif args.quiet:
        settings = settings.model_copy(update={"LOG_LEVEL": "WARNING"})
    setup_logging(settings)

    encoding = args.encoding or settings.ENCODING

    if args.dump:
        if not args.source.is_file():
            print(f"Error: not a file: {args.source}", file=sys.stderr)
            return 1
        print(dump_template(args.source.read_text(encoding=encoding)), end="")
        return 0

    converter = RazorConverter(settings=settings)

    if args.source.is_dir():
        if args.output:
            parser.error("--output cannot be used when converting a folder")
        results = converter.convert_folder(
            args.source,
            overwrite=args.overwrite,
            encoding=encoding,
            write_helpers=args.write_helpers,
        )
        failed = [result for result in results if not result.ok]
        if not args.quiet:
            for result in results:
                if result.ok:
                    print(f"Wrote {result.output}")
        for result in failed:
            print(f"Error: {result.source}: {result.error}", file=sys.stderr)
        return 1 if failed else 0

    try:
        result = converter.convert_file(
            args.source,
            output_path=args.output,
            overwrite=args.overwrite,
            encoding=encoding,
            write_helpers=args.write_helpers,
        )
    except (FileNotFoundError, FileExistsError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ConversionError as exc:
        logger.debug("Conversion failed", exc_info=True)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"Wrote {result.output}")
        for helper in result.helpers:
            print(f"Wrote {helper}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
