"""Shared test fixtures for the osm_converter test suite.

WHY: Multiple test modules need the same small OSM dump and the elements
it assembles to. Centralizing them here avoids duplication and keeps
the tokenizer, assembler, formatter and CLI tests in agreement.

HOW: SAMPLE_LINES is a miniature one-element-per-line dump with a
declaration, a root element, tagged nodes, a way, a too-short way and a
relation. Fixtures return fresh copies and the expected IR objects.

RULES:
- The too-short way (id 20) must never be exported
- Expected elements are listed in dump order
"""

from typing import List

import pytest

from osm_converter.core.ir import Node, Relation, RelationMember, Way


SAMPLE_LINES: List[str] = [
    '<?xml version="1.0" encoding="UTF-8"?>',
    '<osm version="0.6" generator="test">',
    ' <bounds minlat="43.72" minlon="7.40" maxlat="43.75" maxlon="7.44"/>',
    ' <node id="1" lat="43.7384" lon="7.4246" user="alice" uid="11" visible="true" '
    'version="2" changeset="100" timestamp="2020-01-01T00:00:00Z"/>',
    ' <node id="2" lat="43.7390" lon="7.4250" visible="false" version="1">',
    '  <tag k="amenity" v="cafe"/>',
    "  <tag k='name' v='Café Riviera'/>",
    ' </node>',
    ' <node id="3" lat="43.7401" lon="7.4262"/>',
    ' <way id="10" user="bob" uid="12" visible="true" version="1">',
    '  <nd ref="1"/>',
    '  <nd ref="2"/>',
    '  <nd ref="3"/>',
    '  <tag k="highway" v="residential"/>',
    ' </way>',
    ' <way id="20">',
    '  <nd ref="1"/>',
    ' </way>',
    ' <relation id="30" visible="true">',
    '  <member type="way" ref="10" role="outer"/>',
    '  <member type="node" ref="3" role=""/>',
    '  <tag k="type" v="multipolygon"/>',
    ' </relation>',
    '</osm>',
]


@pytest.fixture
def sample_lines():
    """The sample dump as a list of lines."""
    return list(SAMPLE_LINES)


@pytest.fixture
def sample_dump(tmp_path):
    """The sample dump written to monaco.osm in a temporary directory."""
    path = tmp_path / "monaco.osm"
    path.write_text("\n".join(SAMPLE_LINES) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def expected_elements():
    """The elements assembled from SAMPLE_LINES, in dump order."""
    return [
        Node(
            id=1, lat=43.7384, lon=7.4246, user="alice", uid=11, visible=True,
            version=2, changeset=100, timestamp="2020-01-01T00:00:00Z",
        ),
        Node(
            id=2, lat=43.7390, lon=7.4250, visible=False, version=1,
            tags={"amenity": "cafe", "name": "Café Riviera"},
        ),
        Node(id=3, lat=43.7401, lon=7.4262),
        Way(
            id=10, user="bob", uid=12, visible=True, version=1,
            nodes=["N1", "N2", "N3"], tags={"highway": "residential"},
        ),
        Relation(
            id=30, visible=True,
            members=[
                RelationMember(role="outer", ref="W10"),
                RelationMember(role="", ref="N3"),
            ],
            tags={"type": "multipolygon"},
        ),
    ]
