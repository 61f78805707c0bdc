"""JSON Lines formatter, one file per element kind, schema-validated.

WHY: JSON Lines is the lowest-friction way to load nested rows into
Hive (JsonSerDe), Spark or a quick pandas session, and it keeps tags,
way node lists and relation members as real JSON objects and arrays.

HOW: Each element is converted to a plain dict, validated with
jsonschema against the bundled element_schema.json (the definition
matching its kind), and dumped on a single line.

RULES:
- One JSON object per line, UTF-8, non-ASCII kept as-is
- Keys: id, user, uid, visible, version, changeset, timestamp, tags,
  then lat/lon (node), nodes (way) or members (relation)
- Suffixes: -nodes.jsonl, -ways.jsonl, -relations.jsonl
- Validate every row before returning; raise on failure
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from osm_converter.core.ir import Element, Node, Relation, Way
from osm_converter.formatters.base import BaseFormatter, FormatterOutput

SCHEMA_PATH = Path(__file__).resolve().parent / "element_schema.json"

_TABLE_SUFFIXES = {
    "node": "-nodes.jsonl",
    "way": "-ways.jsonl",
    "relation": "-relations.jsonl",
}


def load_schema() -> Dict[str, Any]:
    """Load the element row schema from disk."""
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


_CACHED_VALIDATORS: Optional[Dict[str, jsonschema.Draft7Validator]] = None


def _get_validators() -> Dict[str, jsonschema.Draft7Validator]:
    """One validator per kind, built once; rows are validated by the million."""
    global _CACHED_VALIDATORS
    if _CACHED_VALIDATORS is None:
        schema = load_schema()
        jsonschema.Draft7Validator.check_schema(schema)
        _CACHED_VALIDATORS = {
            kind: jsonschema.Draft7Validator(
                dict(schema, **{"$ref": "#/definitions/{}".format(kind)})
            )
            for kind in _TABLE_SUFFIXES
        }
    return _CACHED_VALIDATORS


def element_to_dict(element: Element) -> Dict[str, Any]:
    """Convert an element into the JSON row layout."""
    row: Dict[str, Any] = {
        "id": element.id,
        "user": element.user,
        "uid": element.uid,
        "visible": element.visible,
        "version": element.version,
        "changeset": element.changeset,
        "timestamp": element.timestamp,
        "tags": dict(element.tags),
    }
    if isinstance(element, Node):
        row["lat"] = element.lat
        row["lon"] = element.lon
    elif isinstance(element, Way):
        row["nodes"] = list(element.nodes)
    elif isinstance(element, Relation):
        row["members"] = [{"role": m.role, "ref": m.ref} for m in element.members]
    else:
        raise TypeError("Unsupported element type: {}".format(type(element).__name__))
    return row


class JSONLinesFormatter(BaseFormatter):
    """Formatter that writes validated JSON Lines rows.

    Args:
        validate: Set to False to skip schema validation (e.g. when the
                  rows are validated downstream anyway).
    """

    def __init__(self, validate: bool = True) -> None:
        self.validate = validate

    @property
    def name(self) -> str:
        return "JSON Lines tables"

    def format(self, element: Element) -> FormatterOutput:
        """Convert one element into a JSON line.

        Raises:
            jsonschema.ValidationError: If the row does not match the
                schema for its kind.
        """
        row = element_to_dict(element)
        if self.validate:
            _get_validators()[element.kind].validate(row)
        return FormatterOutput(
            suffix=_TABLE_SUFFIXES[element.kind],
            content=json.dumps(row, ensure_ascii=False) + "\n",
            media_type="application/x-ndjson",
        )
