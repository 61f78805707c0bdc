"""Abstract base formatter and output row container.

WHY: Every output format consumes the same element IR but produces
different rows. This base class enforces a consistent interface so the
exporter and CLI can work with any formatter generically, and so each
formatter stays a pure function that is easy to test.

HOW: BaseFormatter is an ABC with two requirements — a ``name`` property
and a ``format()`` method that turns one element into one row.
FormatterOutput bundles that row with the file suffix of the table it
belongs to and its MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- One element → one FormatterOutput (elements are streamed, never
  collected into a whole-file string)
- ``suffix`` starts with a hyphen, e.g. ``"-nodes.hive"``; one distinct
  suffix per destination table
- ``content`` is a complete, newline-terminated row
- The exporter is responsible for prepending the dump stem and writing
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from osm_converter.core.ir import Element


@dataclass
class FormatterOutput:
    """One output row produced by a formatter.

    Attributes:
        suffix: File suffix appended to the dump stem,
                e.g. ``"-ways.jsonl"`` → ``"monaco-ways.jsonl"``.
        content: The row, terminated by a newline.
        media_type: MIME type of the file the row belongs to.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Hive text tables'."""

    @abstractmethod
    def format(self, element: Element) -> FormatterOutput:
        """Convert one assembled element into a table row.

        Args:
            element: A ready Node, Way or Relation.

        Returns:
            The row, with the suffix of the table it belongs to.
        """
