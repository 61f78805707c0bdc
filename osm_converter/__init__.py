"""OSM Converter — line-oriented OSM XML to columnar export.

WHY: OSM XML dumps are far too large to load as a DOM, and columnar
stores such as Hive want one typed row per node, way and relation. This
package streams a dump line by line, reassembles each element, and
writes it out in table-shaped formats.

HOW: Three-stage pipeline — tokenize (one line → one markup token),
assemble (tokens → Node/Way/Relation IR), format (pluggable writers).
Each stage is independently testable.

RULES:
- All formatters consume the same element IR
- Adding a new output format = one new formatter module, no core changes
- The IR is the stable contract between assembly and formatting
"""

__version__ = "0.1.0"
