"""Unit tests for all formatter modules.

WHY: Each formatter transforms the IR into rows a destination store
must load without complaint. A missing NULL marker or an unescaped
delimiter shifts every following column in Hive; an invalid JSON row
breaks the whole load.

HOW: Tests run each formatter against the sample elements from
conftest.py:
  - Hive text: field order, NULL marker, map/array/struct layout,
    escaping, table suffixes, DDL consistency
  - JSON Lines: schema validation, row layout, suffixes
  - Registry: every registered formatter produces rows for every kind

RULES:
- JSON schema validation uses the bundled element_schema.json
"""

import json

import jsonschema
import pytest

from osm_converter.core.ir import Element, Node, Relation, RelationMember, Way
from osm_converter.formatters import FORMATTERS
from osm_converter.formatters.base import BaseFormatter, FormatterOutput
from osm_converter.formatters.hive_text import (
    COLLECTION_DELIMITER,
    FIELD_DELIMITER,
    MAP_KEY_DELIMITER,
    NULL_VALUE,
    TABLES,
    HiveTextFormatter,
    build_ddl,
    escape_value,
)
from osm_converter.formatters.json_lines import (
    JSONLinesFormatter,
    element_to_dict,
    load_schema,
)


def _fields(output):
    assert output.content.endswith("\n")
    return output.content[:-1].split(FIELD_DELIMITER)


# =========================================================================
# Hive text formatter
# =========================================================================

class TestHiveTextFormatter:
    """Hive delimited text rows."""

    def test_node_row(self):
        node = Node(
            id=1, lat=43.7384, lon=7.4246, user="alice", uid=11, visible=True,
            version=2, changeset=100, timestamp="2020-01-01T00:00:00Z",
        )
        output = HiveTextFormatter().format(node)
        assert output.suffix == "-nodes.hive"
        assert output.media_type == "text/plain"
        assert _fields(output) == [
            "1", "alice", "11", "true", "2", "100", "2020-01-01T00:00:00Z", "",
            "43.7384", "7.4246",
        ]

    def test_missing_values_are_null(self):
        output = HiveTextFormatter().format(Node(id=3, lat=0.5, lon=-1.25))
        fields = _fields(output)
        assert fields[1:7] == [NULL_VALUE, NULL_VALUE, "false", NULL_VALUE, NULL_VALUE, NULL_VALUE]

    def test_tags_map(self):
        node = Node(id=2, lat=0.0, lon=0.0, tags={"amenity": "cafe", "name": "Riviera"})
        tags = _fields(HiveTextFormatter().format(node))[7]
        entries = tags.split(COLLECTION_DELIMITER)
        assert entries == [
            "amenity" + MAP_KEY_DELIMITER + "cafe",
            "name" + MAP_KEY_DELIMITER + "Riviera",
        ]

    def test_way_nodes_array(self):
        way = Way(id=10, nodes=["N1", "N2", "N1"])
        output = HiveTextFormatter().format(way)
        assert output.suffix == "-ways.hive"
        fields = _fields(output)
        assert len(fields) == len(TABLES["way"][1])
        assert fields[-1].split(COLLECTION_DELIMITER) == ["N1", "N2", "N1"]

    def test_relation_members_structs(self):
        relation = Relation(
            id=30,
            members=[RelationMember(role="outer", ref="W10"), RelationMember(role="", ref="N3")],
        )
        output = HiveTextFormatter().format(relation)
        assert output.suffix == "-relations.hive"
        members = _fields(output)[-1].split(COLLECTION_DELIMITER)
        assert members == ["outer" + MAP_KEY_DELIMITER + "W10", MAP_KEY_DELIMITER + "N3"]

    def test_values_are_escaped(self):
        node = Node(id=1, lat=0.0, lon=0.0, user="a\\b", tags={"note": "line1\nline2"})
        output = HiveTextFormatter().format(node)
        assert output.content.count("\n") == 1
        fields = _fields(output)
        assert fields[1] == "a\\\\b"
        assert fields[7] == "note" + MAP_KEY_DELIMITER + "line1\\nline2"

    def test_embedded_delimiter_is_escaped(self):
        node = Node(id=1, lat=0.0, lon=0.0, tags={"k": "x" + FIELD_DELIMITER + "y"})
        output = HiveTextFormatter().format(node)
        assert "x\\" + FIELD_DELIMITER + "y" in output.content

    def test_escape_value(self):
        assert escape_value("plain") == "plain"
        assert escape_value("a\rb") == "a\\rb"
        assert escape_value(COLLECTION_DELIMITER) == "\\" + COLLECTION_DELIMITER

    def test_column_count_matches_tables(self, expected_elements):
        formatter = HiveTextFormatter()
        for element in expected_elements:
            assert len(_fields(formatter.format(element))) == len(TABLES[element.kind][1])

    def test_plain_element_is_rejected(self):
        with pytest.raises(KeyError):
            HiveTextFormatter().format(Element(id=1))


class TestHiveDDL:
    """CREATE TABLE statements for the Hive text rows."""

    def test_one_statement_per_table(self):
        ddl = build_ddl()
        assert ddl.count("CREATE EXTERNAL TABLE") == 3
        for table in ("osm_nodes", "osm_ways", "osm_relations"):
            assert "IF NOT EXISTS {} (".format(table) in ddl

    def test_column_types(self):
        ddl = build_ddl()
        assert "`tags` MAP<STRING,STRING>" in ddl
        assert "`nodes` ARRAY<STRING>" in ddl
        assert "`members` ARRAY<STRUCT<role:STRING,ref:STRING>>" in ddl
        assert "`lat` DOUBLE" in ddl
        assert "`user` STRING" in ddl

    def test_delimiters(self):
        ddl = build_ddl()
        assert "FIELDS TERMINATED BY '\\001'" in ddl
        assert "COLLECTION ITEMS TERMINATED BY '\\002'" in ddl
        assert "MAP KEYS TERMINATED BY '\\003'" in ddl

    def test_prefix_and_location(self):
        ddl = build_ddl(prefix="planet", location="hdfs:///data/osm/")
        assert "planet_ways" in ddl
        assert "LOCATION 'hdfs:///data/osm/planet_ways'" in ddl

    def test_no_location_by_default(self):
        assert "LOCATION" not in build_ddl()


# =========================================================================
# JSON Lines formatter
# =========================================================================

class TestJSONLinesFormatter:
    """Schema-validated JSON Lines rows."""

    def test_rows_validate_against_schema(self, expected_elements):
        schema = load_schema()
        formatter = JSONLinesFormatter()
        for element in expected_elements:
            output = formatter.format(element)
            row = json.loads(output.content)
            wrapped = dict(schema, **{"$ref": "#/definitions/{}".format(element.kind)})
            jsonschema.validate(instance=row, schema=wrapped)

    def test_node_row(self):
        node = Node(id=2, lat=43.739, lon=7.425, tags={"name": "Café"})
        output = JSONLinesFormatter().format(node)
        assert output.suffix == "-nodes.jsonl"
        assert output.media_type == "application/x-ndjson"
        assert output.content.endswith("\n")
        assert "Café" in output.content
        assert json.loads(output.content) == {
            "id": 2, "user": None, "uid": None, "visible": False, "version": None,
            "changeset": None, "timestamp": None, "tags": {"name": "Café"},
            "lat": 43.739, "lon": 7.425,
        }

    def test_way_and_relation_rows(self):
        way_row = element_to_dict(Way(id=10, nodes=["N1", "N2"]))
        assert way_row["nodes"] == ["N1", "N2"]
        relation_row = element_to_dict(
            Relation(id=30, members=[RelationMember(role="outer", ref="W10")])
        )
        assert relation_row["members"] == [{"role": "outer", "ref": "W10"}]

    def test_suffixes(self):
        formatter = JSONLinesFormatter()
        assert formatter.format(Way(id=1, nodes=["N1", "N2"])).suffix == "-ways.jsonl"
        relation = Relation(id=1, members=[RelationMember(role="", ref="N1")])
        assert formatter.format(relation).suffix == "-relations.jsonl"

    def test_invalid_row_is_rejected(self):
        # A way with a single node is never produced by the assembler
        with pytest.raises(jsonschema.ValidationError):
            JSONLinesFormatter().format(Way(id=1, nodes=["N1"]))

    def test_validation_can_be_disabled(self):
        output = JSONLinesFormatter(validate=False).format(Way(id=1, nodes=["N1"]))
        assert json.loads(output.content)["nodes"] == ["N1"]


# =========================================================================
# Registry
# =========================================================================

class TestRegistry:

    def test_registered_formatters(self):
        assert set(FORMATTERS) == {"hive_text", "json_lines"}
        for cls in FORMATTERS.values():
            assert issubclass(cls, BaseFormatter)

    def test_every_formatter_handles_every_kind(self, expected_elements):
        for cls in FORMATTERS.values():
            formatter = cls()
            assert formatter.name
            suffixes = set()
            for element in expected_elements:
                output = formatter.format(element)
                assert isinstance(output, FormatterOutput)
                suffixes.add(output.suffix)
            assert len(suffixes) == 3
