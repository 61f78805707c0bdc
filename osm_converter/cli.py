"""Command-line interface for the OSM Converter.

WHY: Users need a simple way to turn an OSM XML dump into loadable
tables from the terminal. The CLI wires the whole pipeline
(reading, assembly, formatting and optional Hive DDL) behind a single
command.

HOW: Uses argparse to accept an input dump, output format selection,
output directory, malformed-line policy, and DDL options. Elements are
streamed straight from the reader through the exporter, so memory use
does not grow with the dump. Status messages go to stderr; output files
are saved next to the dump (or to --output-dir).

RULES:
- Positional argument: input dump path (.osm/.xml, optionally .gz/.bz2)
- --formats: comma-separated formatter keys (default: OSM_DEFAULT_FORMATS)
- --on-malformed: abort (default, exit 1 on the first bad line) or skip
- --ddl: also write {stem}-tables.hql for the hive_text tables
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-nodes-2.hive)
- Status output goes to stderr (not stdout)
- Exit codes: 0 success, 1 error, 130 interrupted
- A failed run keeps the rows already written and lists those files
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from osm_converter.config import (
    DEFAULT_ENCODING,
    DEFAULT_LOG_LEVEL,
    MALFORMED_POLICIES,
    default_format_keys,
    load_malformed_policy,
)
from osm_converter.core.assembler import ParseStats, iter_elements
from osm_converter.core.errors import OSMParseError
from osm_converter.core.source import dump_stem, is_supported_dump, iter_lines
from osm_converter.export import ElementExporter, resolve_output_path
from osm_converter.formatters import FORMATTERS
from osm_converter.formatters.hive_text import build_ddl

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr.

    Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _report_partial(paths: List[Path]) -> None:
    """List output files left incomplete by an aborted run."""
    if not paths:
        return
    _status("Partial output was kept:")
    for path in paths:
        _status("  {}".format(path.name))


def _select_formats(formats: Optional[str]) -> List[str]:
    """Resolve and validate the formatter keys to run."""
    if formats:
        keys = [f.strip() for f in formats.split(",") if f.strip()]
    else:
        keys = default_format_keys()
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    if not keys:
        _fail("No output formats selected")
    return keys


def _run_pipeline(args: argparse.Namespace) -> None:
    """Execute the full conversion pipeline.

    HOW: Validates the input and options, then streams
    iter_lines → iter_elements → ElementExporter. Writes the DDL file
    last so a failed run does not leave a schema without data.
    """
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    if not is_supported_dump(input_path):
        _fail("Unsupported file type '{}'. Expected .osm or .xml, "
              "optionally compressed with .gz or .bz2".format(input_path.name))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _select_formats(args.formats)

    try:
        on_malformed = args.on_malformed or load_malformed_policy()
    except ValueError as e:
        _fail(str(e))

    stem = dump_stem(input_path)
    stats = ParseStats()
    formatters = [FORMATTERS[key]() for key in format_keys]

    _status("Reading {}...".format(input_path.name))
    for formatter in formatters:
        _status("  Format: {}".format(formatter.name))

    exporter = ElementExporter(formatters, stem, output_dir)
    try:
        with exporter:
            lines = iter_lines(input_path, encoding=args.encoding)
            exporter.write_all(iter_elements(lines, on_malformed=on_malformed, stats=stats))
        saved_files = exporter.paths

        if args.ddl:
            ddl_path = resolve_output_path(stem, "-tables.hql", output_dir)
            ddl_path.write_text(
                build_ddl(prefix=args.table_prefix, location=args.hive_location),
                encoding="utf-8",
            )
            saved_files.append(ddl_path)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except OSMParseError as e:
        _report_partial(exporter.paths)
        _fail("{} (use --on-malformed skip to drop bad lines)".format(e))
    except Exception as e:
        logger.debug("Conversion failed", exc_info=True)
        _report_partial(exporter.paths)
        _fail(str(e))

    logger.info(
        "Read %d lines: %d nodes, %d ways, %d relations, %d skipped lines, %d discarded elements",
        stats.lines,
        stats.elements["node"],
        stats.elements["way"],
        stats.elements["relation"],
        stats.skipped_lines,
        stats.discarded,
    )

    _status("")
    _status("Done! {} element(s), saved {} file(s) to {}".format(
        stats.total_elements, len(saved_files), output_dir,
    ))
    for path in saved_files:
        rows = exporter.row_counts.get(path)
        if rows is None:
            _status("  {}".format(path.name))
        else:
            _status("  {} ({} rows)".format(path.name, rows))
    if stats.skipped_lines:
        _status("Skipped {} malformed line(s)".format(stats.skipped_lines))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect the parser without running
    the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="osm_converter",
        description="Convert an OSM XML dump, one element per line, into "
                    "table files for Hive (delimited text, JSON Lines).",
    )

    parser.add_argument(
        "input_file",
        help="Path to the .osm/.xml dump (optionally .gz or .bz2 compressed).",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: from OSM_DEFAULT_FORMATS.".format(
                 ", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--on-malformed",
        choices=MALFORMED_POLICIES,
        default=None,
        help="What to do with a line that cannot be parsed "
             "(default: from OSM_ON_MALFORMED, else abort).",
    )

    parser.add_argument(
        "--encoding",
        default=DEFAULT_ENCODING,
        help="Text encoding of the dump (default: %(default)s).",
    )

    parser.add_argument(
        "--ddl",
        action="store_true",
        help="Also write {stem}-tables.hql with CREATE TABLE statements "
             "for the hive_text output.",
    )

    parser.add_argument(
        "--table-prefix",
        default="osm",
        help="Prefix for table names in the DDL (default: %(default)s).",
    )

    parser.add_argument(
        "--hive-location",
        default=None,
        help="Base LOCATION for the external tables in the DDL.",
    )

    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default: %(default)s).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    _run_pipeline(args)


if __name__ == "__main__":
    main()
