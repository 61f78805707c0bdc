"""Streaming assembly of OSM elements from tokenized dump lines.

WHY: A way's node references and a relation's members arrive on their
own lines, after the line that opens the element. Exporting one element
at a time means reconstructing them from a flat token stream, without a
parse tree and without holding more than one element in memory.

HOW: OSMParser keeps a single "current element" slot and a readiness
flag. Opening tokens for node/way/relation replace the slot; child
tokens (nd, member, tag) mutate it; the element's closing token promotes
it to ready if it has the minimum shape for its kind. iter_elements()
drives one parser over a sequence of lines and yields each ready element
once, applying the stream's abort/skip policy to broken lines.

RULES:
- START → open, then ready = False
- END → close
- EMPTY / COMPLETE → open, then close
- DECLARATION → ignored
- Node is ready at its close; Way needs >= 2 nodes; Relation >= 1 member
- Closing any other name sets ready = False but keeps the element
- A new node/way/relation silently replaces an unpromoted element
  (counted in discarded_count)
- nd outside a way, member outside a relation, tag with no element: no-op
- Unknown markup names are ignored
- Errors are raised before the parser state changes
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from osm_converter.config import MALFORMED_POLICIES
from osm_converter.core.errors import (
    InvalidAttributeError,
    OSMParseError,
    UnknownReferenceKindError,
)
from osm_converter.core.ir import KIND_PREFIXES, Element, Node, Relation, Way
from osm_converter.core.markup import Markup, MarkupKind, parse_markup

logger = logging.getLogger(__name__)

# Canonical decimal id: no sign other than "-", no spaces or underscores.
_REF_RE = re.compile(r"-?[0-9]+")

_BOM = "\ufeff"


def get_id(kind: Optional[str], ref: str) -> str:
    """Namespace a raw element reference with its kind letter.

    ``get_id("node", "5") == "N5"``, ``"way"`` gives ``"W5"`` and
    ``"relation"`` gives ``"R5"``. Any other kind raises
    UnknownReferenceKindError.
    """
    prefix = KIND_PREFIXES.get(kind) if kind is not None else None
    if prefix is None:
        raise UnknownReferenceKindError(kind)
    return prefix + ref


# ---------------------------------------------------------------------------
# Attribute readers
# ---------------------------------------------------------------------------


def _required(markup: Markup, attribute: str) -> str:
    value = markup.get(attribute)
    if value is None:
        raise InvalidAttributeError(markup.name, attribute, None)
    return value


def _to_int(markup: Markup, attribute: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidAttributeError(markup.name, attribute, value) from None


def _to_float(markup: Markup, attribute: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise InvalidAttributeError(markup.name, attribute, value) from None


def _optional_int(markup: Markup, attribute: str) -> Optional[int]:
    value = markup.get(attribute)
    if value is None:
        return None
    return _to_int(markup, attribute, value)


def _reference(markup: Markup) -> str:
    """Return the ``ref`` attribute, which must be a plain decimal id."""
    ref = _required(markup, "ref")
    if not _REF_RE.fullmatch(ref):
        raise InvalidAttributeError(markup.name, "ref", ref)
    return ref


def parse_visible(value: Optional[str]) -> bool:
    """Only ``"true"`` (any case) is visible; absent or anything else is not."""
    return value is not None and value.lower() == "true"


def _metadata(markup: Markup) -> dict:
    """Read the attributes every element kind shares."""
    return {
        "id": _to_int(markup, "id", _required(markup, "id")),
        "user": markup.get("user"),
        "uid": _optional_int(markup, "uid"),
        "visible": parse_visible(markup.get("visible")),
        "version": _optional_int(markup, "version"),
        "changeset": _optional_int(markup, "changeset"),
        "timestamp": markup.get("timestamp"),
    }


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class OSMParser:
    """Line-by-line state machine that assembles OSM elements.

    WHY: The dump is consumed strictly in order, one line at a time; the
    parser is the only component that remembers anything between lines.

    HOW: Call parse() for every line, then take_element() (or check
    is_element_ready()) before feeding the next line. A later opening
    token replaces an element that was never taken.

    RULES:
    - Instances are independent; use one per line stream
    - current_element / take_element return None unless an element is ready
    - take_element hands the element over and empties the slot
    """

    def __init__(self) -> None:
        self._current: Optional[Element] = None
        self._ready = False
        self._promoted = False
        self.discarded_count = 0

    # -- accessors ---------------------------------------------------------

    def is_element_ready(self) -> bool:
        return self._ready

    @property
    def current_element(self) -> Optional[Element]:
        """The current element if it is ready, else None. Does not consume it."""
        return self._current if self._ready else None

    def take_element(self) -> Optional[Element]:
        """Hand over the ready element and clear the slot.

        Returns None when no element is ready.
        """
        if not self._ready:
            return None
        element = self._current
        self._current = None
        self._ready = False
        self._promoted = False
        return element

    def unfinished_element(self) -> Optional[Element]:
        """The open element that has not (yet) been promoted, if any."""
        if self._current is None or self._promoted:
            return None
        return self._current

    # -- input -------------------------------------------------------------

    def parse(self, line: str) -> None:
        """Tokenize one line and apply it.

        Raises:
            MalformedMarkupError: The line is not valid markup.
            UnknownReferenceKindError: A relation member has an unknown type.
            InvalidAttributeError: A required or numeric attribute is bad.
        """
        self.feed(parse_markup(line))

    def feed(self, markup: Markup) -> None:
        """Apply an already tokenized line."""
        if markup.kind is MarkupKind.START:
            self._open(markup)
            self._ready = False
        elif markup.kind is MarkupKind.END:
            self._close(markup)
        elif markup.kind in (MarkupKind.EMPTY, MarkupKind.COMPLETE):
            self._open(markup)
            self._close(markup)
        # DECLARATION: nothing to do

    # -- handlers ----------------------------------------------------------

    def _replace(self, element: Element) -> None:
        previous = self.unfinished_element()
        if previous is not None:
            self.discarded_count += 1
            logger.debug(
                "Discarding unfinished %s %s, replaced by %s %s",
                previous.kind, previous.id, element.kind, element.id,
            )
        self._current = element
        self._promoted = False

    def _open(self, markup: Markup) -> None:
        name = markup.name
        current = self._current

        if name == "node":
            lat = _to_float(markup, "lat", _required(markup, "lat"))
            lon = _to_float(markup, "lon", _required(markup, "lon"))
            self._replace(Node(lat=lat, lon=lon, **_metadata(markup)))

        elif name == "way":
            self._replace(Way(**_metadata(markup)))

        elif name == "relation":
            self._replace(Relation(**_metadata(markup)))

        elif name == "nd":
            if isinstance(current, Way):
                current.add_node(get_id("node", _reference(markup)))
            else:
                logger.debug("Ignoring <nd> outside of a way")

        elif name == "member":
            if isinstance(current, Relation):
                ref = get_id(markup.get("type"), _reference(markup))
                current.add_member(markup.get("role", ""), ref)
            else:
                logger.debug("Ignoring <member> outside of a relation")

        elif name == "tag":
            if current is not None:
                current.add_tag(_required(markup, "k"), markup.get("v", ""))
            else:
                logger.debug("Ignoring <tag> with no open element")

    def _close(self, markup: Markup) -> None:
        name = markup.name
        current = self._current

        if name == "node":
            complete = isinstance(current, Node)
        elif name == "way":
            complete = isinstance(current, Way) and len(current.nodes) >= 2
        elif name == "relation":
            complete = isinstance(current, Relation) and len(current.members) >= 1
        else:
            # A child's closing tag must never look like the parent's
            self._ready = False
            return

        if complete:
            self._ready = True
            self._promoted = True
        elif current is not None:
            logger.debug("%s %s not ready at </%s>", current.kind, current.id, name)


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


@dataclass
class ParseStats:
    """Counters collected while streaming a dump.

    RULES:
    - lines: non-blank lines read
    - elements: exported elements per kind
    - skipped_lines: lines dropped under the "skip" policy
    - discarded: elements never exported (too few members, replaced,
      or still open at the end of the stream)
    """

    lines: int = 0
    elements: Counter = field(default_factory=Counter)
    skipped_lines: int = 0
    discarded: int = 0

    @property
    def total_elements(self) -> int:
        return sum(self.elements.values())


def iter_elements(
    lines: Iterable[str],
    on_malformed: str = "abort",
    stats: Optional[ParseStats] = None,
) -> Iterator[Element]:
    """Assemble a stream of dump lines into ready elements.

    WHY: This is the glue between the line supply (a file, a compressed
    file, a test list) and the writers. It owns the stream-level error
    policy that the parser itself deliberately does not have.

    HOW: Feeds each non-blank line to one OSMParser and takes the ready
    element after every line, so no element is ever overwritten before
    it is yielded.

    RULES:
    - Line numbers are 1-based and count blank lines
    - A byte order mark before the first line is dropped
    - on_malformed="abort": the first OSMParseError propagates, with
      line_number set
    - on_malformed="skip": the line is logged at WARNING and counted
    - An element still open at the end of the stream is logged and counted
      as discarded

    Args:
        lines: Lines of an OSM XML dump, newlines included or not.
        on_malformed: "abort" or "skip".
        stats: Optional ParseStats updated in place.

    Yields:
        Completed Node, Way and Relation elements in input order.
    """
    if on_malformed not in MALFORMED_POLICIES:
        raise ValueError(
            "Unknown malformed-line policy {!r}, expected one of: {}".format(
                on_malformed, ", ".join(MALFORMED_POLICIES)
            )
        )
    if stats is None:
        stats = ParseStats()

    parser = OSMParser()
    for line_number, line in enumerate(lines, start=1):
        if line_number == 1:
            line = line.lstrip(_BOM)
        if not line.strip():
            continue
        stats.lines += 1

        try:
            parser.parse(line)
        except OSMParseError as exc:
            exc.line_number = line_number
            if on_malformed == "abort":
                raise
            stats.skipped_lines += 1
            logger.warning("Skipping %s", exc)
            continue

        element = parser.take_element()
        if element is not None:
            stats.elements[element.kind] += 1
            yield element

    stats.discarded += parser.discarded_count
    leftover = parser.unfinished_element()
    if leftover is not None:
        stats.discarded += 1
        logger.warning("Input ended with unexported %s %s", leftover.kind, leftover.id)
