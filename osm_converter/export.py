"""Streaming export of assembled elements to per-table output files.

WHY: A planet dump holds billions of elements, so formatter output can
never be collected in memory and saved at the end. Rows must go to disk
as soon as each element is assembled, into one file per destination
table and format.

HOW: ElementExporter owns the open file handles. For every element it
runs each selected formatter, opens the file for the row's suffix on
first use (conflict-free name in the output directory), and appends the
row. close() flushes everything and reports the written paths.

RULES:
- Output naming: {stem}{suffix}, numeric suffix for conflicts
  (-nodes-2.hive); names are resolved once, when a file is first opened
- Files are only created for tables that receive at least one row
- Rows are written as UTF-8 text
- Use as a context manager so handles are closed on error
"""

from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import IO, Dict, Iterable, List, Optional

from osm_converter.core.ir import Element
from osm_converter.formatters.base import BaseFormatter

logger = logging.getLogger(__name__)


def resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Pick a file name for one table that does not clobber earlier runs.

    Tables from a second conversion of the same dump land next to the
    first ones as ``monaco-nodes-2.hive``, ``monaco-nodes-3.hive`` and so
    on. A suffix without an extension (``-nodes``) gets the counter at
    the end (``-nodes-2``). The tables of one run are numbered
    independently of each other.
    """
    table, dot, extension = suffix.rpartition(".")
    if not table:
        table, extension = suffix, ""
    else:
        extension = dot + extension

    names = itertools.chain(
        ["{}{}".format(stem, suffix)],
        ("{}{}-{}{}".format(stem, table, n, extension) for n in itertools.count(2)),
    )
    return next(output_dir / name for name in names if not (output_dir / name).exists())


class ElementExporter:
    """Write elements through a set of formatters into per-table files.

    Args:
        formatters: Formatter instances to run for every element.
        stem: Dump stem used to name output files.
        output_dir: Existing directory to write into.
    """

    def __init__(
        self,
        formatters: Iterable[BaseFormatter],
        stem: str,
        output_dir: Path,
    ) -> None:
        self.formatters = list(formatters)
        self.stem = stem
        self.output_dir = Path(output_dir)
        self.row_counts: Dict[Path, int] = {}
        self._handles: Dict[str, IO[str]] = {}
        self._paths: Dict[str, Path] = {}

    def __enter__(self) -> ElementExporter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle_for(self, suffix: str) -> IO[str]:
        handle = self._handles.get(suffix)
        if handle is None:
            path = resolve_output_path(self.stem, suffix, self.output_dir)
            handle = open(path, "w", encoding="utf-8", newline="")
            self._handles[suffix] = handle
            self._paths[suffix] = path
            self.row_counts[path] = 0
            logger.debug("Opened %s", path)
        return handle

    def write(self, element: Element) -> None:
        """Format one element with every formatter and append the rows."""
        for formatter in self.formatters:
            output = formatter.format(element)
            self._handle_for(output.suffix).write(output.content)
            self.row_counts[self._paths[output.suffix]] += 1

    def write_all(self, elements: Iterable[Element]) -> int:
        """Write every element; returns how many were written."""
        count = 0
        for element in elements:
            self.write(element)
            count += 1
        return count

    @property
    def paths(self) -> List[Path]:
        """Output files opened so far, in the order they were created."""
        return list(self._paths.values())

    def close(self) -> List[Path]:
        """Close all open files and return their paths."""
        first_error: Optional[BaseException] = None
        for suffix, handle in self._handles.items():
            try:
                handle.close()
            except OSError as exc:
                logger.error("Failed to close %s: %s", self._paths[suffix], exc)
                if first_error is None:
                    first_error = exc
        self._handles = {}
        if first_error is not None:
            raise first_error
        return self.paths
