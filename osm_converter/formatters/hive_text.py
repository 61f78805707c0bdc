"""Hive default text SerDe formatter, one table per element kind.

WHY: The export target is Hive. Its default LazySimpleSerDe reads
delimited text files directly, so rows written in that layout can be
loaded with nothing more than a CREATE EXTERNAL TABLE over the output
directory, including map and array columns for tags and members.

HOW: Each element becomes one line of control-character delimited
fields. Tags are written as a map, way node refs as an array of strings
and relation members as an array of (role, ref) structs. build_ddl()
emits the matching table definitions from the same column lists, so the
rows and the schema cannot drift apart.

RULES:
- Field delimiter \\x01, collection items \\x02, map keys and struct
  fields \\x03, NULL written as \\N
- Backslash, the three delimiters, \\n and \\r inside values are escaped
  with a backslash (ESCAPED BY '\\\\', serialization.escape.crlf)
- Booleans are "true" / "false"
- Tables: nodes, ways, relations → suffixes -nodes.hive, -ways.hive,
  -relations.hive
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from osm_converter.core.ir import Element, Node, Relation, Way
from osm_converter.formatters.base import BaseFormatter, FormatterOutput

FIELD_DELIMITER = "\x01"
COLLECTION_DELIMITER = "\x02"
MAP_KEY_DELIMITER = "\x03"
NULL_VALUE = "\\N"

_ESCAPES = {
    "\\": "\\\\",
    FIELD_DELIMITER: "\\" + FIELD_DELIMITER,
    COLLECTION_DELIMITER: "\\" + COLLECTION_DELIMITER,
    MAP_KEY_DELIMITER: "\\" + MAP_KEY_DELIMITER,
    "\n": "\\n",
    "\r": "\\r",
}
_ESCAPE_TABLE = str.maketrans(_ESCAPES)

_COMMON_COLUMNS: List[Tuple[str, str]] = [
    ("id", "BIGINT"),
    ("user", "STRING"),
    ("uid", "BIGINT"),
    ("visible", "BOOLEAN"),
    ("version", "INT"),
    ("changeset", "BIGINT"),
    ("timestamp", "STRING"),
    ("tags", "MAP<STRING,STRING>"),
]

# kind → (table name, columns)
TABLES: Dict[str, Tuple[str, List[Tuple[str, str]]]] = {
    "node": ("nodes", _COMMON_COLUMNS + [("lat", "DOUBLE"), ("lon", "DOUBLE")]),
    "way": ("ways", _COMMON_COLUMNS + [("nodes", "ARRAY<STRING>")]),
    "relation": (
        "relations",
        _COMMON_COLUMNS + [("members", "ARRAY<STRUCT<role:STRING,ref:STRING>>")],
    ),
}


def escape_value(value: str) -> str:
    """Escape characters that would break the delimited layout."""
    return value.translate(_ESCAPE_TABLE)


def _scalar(value: object) -> str:
    if value is None:
        return NULL_VALUE
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return escape_value(str(value))


def _map(tags: Dict[str, str]) -> str:
    return COLLECTION_DELIMITER.join(
        escape_value(k) + MAP_KEY_DELIMITER + escape_value(v)
        for k, v in tags.items()
    )


def _array(items: Iterable[str]) -> str:
    return COLLECTION_DELIMITER.join(escape_value(item) for item in items)


def element_fields(element: Element) -> List[str]:
    """Serialize an element's columns in table order."""
    fields = [
        _scalar(element.id),
        _scalar(element.user),
        _scalar(element.uid),
        _scalar(element.visible),
        _scalar(element.version),
        _scalar(element.changeset),
        _scalar(element.timestamp),
        _map(element.tags),
    ]
    if isinstance(element, Node):
        fields.extend([_scalar(element.lat), _scalar(element.lon)])
    elif isinstance(element, Way):
        fields.append(_array(element.nodes))
    elif isinstance(element, Relation):
        fields.append(COLLECTION_DELIMITER.join(
            escape_value(m.role) + MAP_KEY_DELIMITER + escape_value(m.ref)
            for m in element.members
        ))
    else:
        raise TypeError("Unsupported element type: {}".format(type(element).__name__))
    return fields


def build_ddl(prefix: str = "osm", location: Optional[str] = None) -> str:
    """Build CREATE EXTERNAL TABLE statements matching the row layout.

    Args:
        prefix: Prepended to each table name, e.g. ``osm_nodes``.
        location: Optional HDFS/S3 directory; each table gets a
                  subdirectory named after it.

    Returns:
        HiveQL text with one statement per table.
    """
    statements = []
    for table, columns in TABLES.values():
        full_name = "{}_{}".format(prefix, table) if prefix else table
        column_lines = ",\n".join(
            "  `{}` {}".format(name, hive_type) for name, hive_type in columns
        )
        lines = [
            "CREATE EXTERNAL TABLE IF NOT EXISTS {} (".format(full_name),
            column_lines,
            ")",
            "ROW FORMAT DELIMITED",
            "  FIELDS TERMINATED BY '\\001'",
            "  ESCAPED BY '\\\\'",
            "  COLLECTION ITEMS TERMINATED BY '\\002'",
            "  MAP KEYS TERMINATED BY '\\003'",
            "  LINES TERMINATED BY '\\n'",
            "STORED AS TEXTFILE",
        ]
        if location:
            lines.append("LOCATION '{}/{}'".format(location.rstrip("/"), full_name))
        lines.append("TBLPROPERTIES ('serialization.null.format'='\\\\N', "
                     "'serialization.escape.crlf'='true');")
        statements.append("\n".join(lines))
    return "\n\n".join(statements) + "\n"


class HiveTextFormatter(BaseFormatter):
    """Formatter that writes Hive delimited-text rows."""

    @property
    def name(self) -> str:
        return "Hive text tables"

    def format(self, element: Element) -> FormatterOutput:
        table, _ = TABLES[element.kind]
        return FormatterOutput(
            suffix="-{}.hive".format(table),
            content=FIELD_DELIMITER.join(element_fields(element)) + "\n",
            media_type="text/plain",
        )
