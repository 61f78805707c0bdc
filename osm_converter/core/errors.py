"""Exceptions raised while tokenizing and assembling OSM dump lines.

WHY: Callers need typed exceptions to tell a broken line apart from an
I/O failure, and to decide per stream whether to abort or skip. All
parse errors share one base so a single ``except`` clause covers them.

HOW: Every error subclasses OSMParseError, which itself subclasses
ValueError (bad input, not a programming error). The streaming layer
fills in ``line_number`` when it knows where the line came from.

RULES:
- Errors are raised before any parser state is mutated
- line_number is None until the streaming layer attaches it
- Messages always include the offending value
"""

from __future__ import annotations

from typing import Optional


class OSMParseError(ValueError):
    """Base class for every error raised by the core parsing pipeline."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.message = message
        self.line_number = line_number
        super().__init__(message)

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return "line {}: {}".format(self.line_number, self.message)


class MalformedMarkupError(OSMParseError):
    """Raised when a line does not follow the single-line markup grammar.

    WHY: The tokenizer is strict on purpose; a deviation must fail the
    line deterministically instead of producing a half-parsed token.

    HOW: Raised by parse_markup with the stripped line and a short reason.

    RULES:
    - line: the offending text, surrounding whitespace removed
    - reason: human-readable description of the grammar violation
    """

    def __init__(self, line: str, reason: str, line_number: Optional[int] = None) -> None:
        self.line = line
        self.reason = reason
        super().__init__("Malformed markup ({}): {!r}".format(reason, line), line_number)


class UnknownReferenceKindError(OSMParseError):
    """Raised when a member reference names a kind other than node, way or relation."""

    def __init__(self, kind: Optional[str], line_number: Optional[int] = None) -> None:
        self.kind = kind
        super().__init__("Unknown element type: {!r}".format(kind), line_number)


class InvalidAttributeError(OSMParseError):
    """Raised when a required attribute is missing or a numeric one is not a number.

    WHY: Element ids and coordinates are required fields; an element that
    cannot carry them would corrupt the export.

    HOW: Raised by the assembler while reading attributes, before the
    element is created or the current element is touched.

    RULES:
    - name: the markup name (node, way, nd, member, tag, ...)
    - attribute: the attribute key that failed
    - value: the raw attribute value, or None when it was absent
    """

    def __init__(
        self,
        name: str,
        attribute: str,
        value: Optional[str],
        line_number: Optional[int] = None,
    ) -> None:
        self.name = name
        self.attribute = attribute
        self.value = value
        if value is None:
            message = "<{}> is missing required attribute {!r}".format(name, attribute)
        else:
            message = "<{}> has invalid {}={!r}".format(name, attribute, value)
        super().__init__(message, line_number)
