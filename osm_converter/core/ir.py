"""Intermediate representation dataclasses for assembled OSM elements.

WHY: The markup tokens of an OSM dump are flat; a way's node list and a
relation's member list are spread over many lines. Writers for the
destination store need whole, typed elements instead. The IR is the
single contract between assembly and formatting.

HOW: One base dataclass carries the metadata every OSM element shares,
and three subclasses add their kind-specific payload:
  Node     — coordinates
  Way      — ordered list of namespaced node references
  Relation — ordered list of RelationMember (role, namespaced ref)

RULES:
- id is the plain numeric OSM id; cross references are namespaced
  strings ("N1", "W9", "R3") so they are unique across kinds
- visible defaults to False
- timestamp is kept as the raw string from the dump
- tags: last write wins
- Duplicate and self references in Way.nodes are allowed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional

# Prefix used to namespace references to each kind of element.
KIND_PREFIXES: Dict[str, str] = {
    "node": "N",
    "way": "W",
    "relation": "R",
}


@dataclass
class Element:
    """Metadata shared by nodes, ways and relations.

    RULES:
    - user / uid: author name and numeric author id, None when absent
    - version / changeset: None when absent
    """

    kind: ClassVar[str] = ""

    id: int
    user: Optional[str] = None
    uid: Optional[int] = None
    visible: bool = False
    version: Optional[int] = None
    changeset: Optional[int] = None
    timestamp: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def namespaced_id(self) -> str:
        """The id prefixed with the kind letter, e.g. ``"W9"``."""
        return KIND_PREFIXES[self.kind] + str(self.id)

    def add_tag(self, key: str, value: str) -> None:
        self.tags[key] = value


@dataclass
class Node(Element):
    """A single geolocated point."""

    kind: ClassVar[str] = "node"

    lat: float = 0.0
    lon: float = 0.0


@dataclass
class Way(Element):
    """An ordered sequence of node references (a line or area outline).

    A way is only exported when it references at least two nodes.
    """

    kind: ClassVar[str] = "way"

    nodes: List[str] = field(default_factory=list)

    def add_node(self, ref: str) -> None:
        self.nodes.append(ref)


@dataclass
class RelationMember:
    """One (role, reference) entry of a relation.

    ref is namespaced, because a member may be a node, a way or another
    relation. role may be the empty string.
    """

    role: str
    ref: str


@dataclass
class Relation(Element):
    """An ordered group of nodes, ways and relations.

    A relation is only exported when it has at least one member.
    """

    kind: ClassVar[str] = "relation"

    members: List[RelationMember] = field(default_factory=list)

    def add_member(self, role: str, ref: str) -> None:
        self.members.append(RelationMember(role=role, ref=ref))
