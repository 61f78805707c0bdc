"""Single-line markup tokenizer for OSM XML dumps.

WHY: OSM dumps are written one element per line, so a full XML parser is
not needed to stream them. What is needed is a strict, stateless reader
that turns one line into a typed token, and fails loudly on anything it
does not understand instead of guessing.

HOW: parse_markup() strips the line, then tries the five recognised
shapes in priority order: declaration, end tag, then an opening tag that
is classified as empty (``/>``), start (``>`` and nothing after) or
complete (``>TEXT</name>``). Attributes are scanned left to right with a
compiled regex, so a ``>`` inside a quoted value never ends the tag.

RULES:
- Names and attribute keys match [A-Za-z_][A-Za-z0-9_\\-:]*
- Attributes are preceded by exactly one space, no spaces around "="
- Values are quoted with " or ', and must not contain either quote char
  (the opposite quote inside a value is rejected, not unescaped)
- At most one space before the closing ">", "/>" or "?>"
- Duplicate attribute keys: last occurrence wins
- End tags are exactly </name>, no inner whitespace
- Complete tags must close with the same name they opened with
- No entity unescaping, comments, CDATA or multi-line markup
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from osm_converter.core.errors import MalformedMarkupError

_NAME_PATTERN = r"[A-Za-z_][A-Za-z0-9_\-:]*"

_NAME_RE = re.compile(_NAME_PATTERN)

# One attribute, including its leading separator space. Either quote
# character may delimit the value; neither may appear inside it.
_ATTRIBUTE_RE = re.compile(
    r" ({name})=(?:\"([^\"']*)\"|'([^\"']*)')".format(name=_NAME_PATTERN)
)

_END_RE = re.compile(r"</({name})>".format(name=_NAME_PATTERN))


class MarkupKind(str, enum.Enum):
    """The five markup shapes the tokenizer recognises.

    Inherits from str so kinds compare and serialize as plain strings.
    """

    START = "start"
    END = "end"
    EMPTY = "empty"
    COMPLETE = "complete"
    DECLARATION = "declaration"


@dataclass(frozen=True)
class Markup:
    """One tokenized line.

    WHY: The assembler must not care about quoting or spacing rules; it
    only needs to know what kind of tag it is looking at, its name and
    its attributes.

    HOW: Built exclusively by parse_markup(). Frozen, so tokenizing the
    same line twice yields equal values.

    RULES:
    - kind: one of MarkupKind
    - name: element name, never empty
    - attributes: insertion-ordered, keys unique (last duplicate wins)
    - text: inner text, only set for COMPLETE (may be "")
    """

    kind: MarkupKind
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return an attribute value, or ``default`` when it is absent."""
        return self.attributes.get(key, default)

    def has_attribute(self, key: str) -> bool:
        return key in self.attributes


def _scan_tag(line: str, start: int) -> Tuple[str, Dict[str, str], int]:
    """Scan ``name attr="v" ...`` beginning at ``start``.

    Consumes at most one space after the last attribute. Returns the
    name, the attributes and the index of the first unconsumed character,
    which the caller checks against the terminator it expects.
    """
    match = _NAME_RE.match(line, start)
    if match is None:
        raise MalformedMarkupError(line, "invalid element name")

    attributes: Dict[str, str] = {}
    pos = match.end()
    while True:
        attr = _ATTRIBUTE_RE.match(line, pos)
        if attr is None:
            break
        value = attr.group(2) if attr.group(2) is not None else attr.group(3)
        attributes[attr.group(1)] = value
        pos = attr.end()

    if line.startswith(" ", pos):
        pos += 1
    return match.group(0), attributes, pos


def _parse_declaration(line: str) -> Markup:
    name, attributes, pos = _scan_tag(line, 2)
    if line[pos:] != "?>":
        raise MalformedMarkupError(line, "declaration must end with '?>'")
    return Markup(MarkupKind.DECLARATION, name, attributes)


def _parse_end(line: str) -> Markup:
    match = _END_RE.fullmatch(line)
    if match is None:
        raise MalformedMarkupError(line, "invalid end tag")
    return Markup(MarkupKind.END, match.group(1))


def _parse_opening(line: str) -> Markup:
    name, attributes, pos = _scan_tag(line, 1)
    rest = line[pos:]

    if rest == "/>":
        return Markup(MarkupKind.EMPTY, name, attributes)
    if not rest.startswith(">"):
        raise MalformedMarkupError(line, "unexpected characters in tag")

    content = rest[1:]
    if not content:
        return Markup(MarkupKind.START, name, attributes)

    # Complete markup: the line must end with the matching end tag
    close_at = content.rfind("</")
    if close_at == -1 or not content.endswith(">"):
        raise MalformedMarkupError(line, "content after start tag without a closing tag")
    closing_name = content[close_at + 2:-1]
    if not _NAME_RE.fullmatch(closing_name):
        raise MalformedMarkupError(line, "invalid closing tag")
    if closing_name != name:
        raise MalformedMarkupError(
            line, "closing tag </{}> does not match <{}>".format(closing_name, name)
        )
    return Markup(MarkupKind.COMPLETE, name, attributes, content[:close_at])


def parse_markup(line: str) -> Markup:
    """Tokenize one line of markup.

    WHY: This is the only entry point into the grammar; the assembler
    and tests never build Markup objects from raw text any other way.

    HOW: Strips surrounding whitespace, then dispatches on the leading
    characters: ``<?`` declaration, ``</`` end tag, ``<`` anything else.

    RULES:
    - Raises MalformedMarkupError for every grammar violation
    - Stateless: the result depends only on ``line``

    Args:
        line: One line of text from the dump (newline included or not).

    Returns:
        The parsed Markup token.
    """
    stripped = line.strip()

    if stripped.startswith("<?"):
        return _parse_declaration(stripped)
    if stripped.startswith("</"):
        return _parse_end(stripped)
    if stripped.startswith("<"):
        return _parse_opening(stripped)

    if not stripped:
        raise MalformedMarkupError(stripped, "empty line")
    raise MalformedMarkupError(stripped, "line does not start with '<'")
