"""Configuration constants, supported input types, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Supported file suffixes, the malformed-line
policy and default output formats are plain data, not buried in logic,
so they can be changed without touching the parser.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level tuples and strings read from the environment with
defaults. load_malformed_policy() gives a clear error for a bad value.

RULES:
- OSM_ENCODING: text encoding of input dumps (default utf-8-sig, which
  reads UTF-8 with or without a byte order mark)
- OSM_ON_MALFORMED: "abort" (default) or "skip"
- OSM_DEFAULT_FORMATS: comma-separated formatter keys (default hive_text)
- OSM_LOG_LEVEL: logging level name for the CLI (default INFO)
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Input files
# ---------------------------------------------------------------------------

SUPPORTED_INPUT_SUFFIXES = (".osm", ".xml")
"""Uncompressed dump suffixes (lowercase, with dot)."""

COMPRESSION_SUFFIXES = (".gz", ".bz2")
"""Compression suffixes that may follow a dump suffix."""

DEFAULT_ENCODING = os.getenv("OSM_ENCODING", "utf-8-sig")

# ---------------------------------------------------------------------------
# Parsing and output defaults
# ---------------------------------------------------------------------------

MALFORMED_POLICIES = ("abort", "skip")

DEFAULT_ON_MALFORMED = os.getenv("OSM_ON_MALFORMED", "abort").strip().lower()
DEFAULT_FORMATS = os.getenv("OSM_DEFAULT_FORMATS", "hive_text")
DEFAULT_LOG_LEVEL = os.getenv("OSM_LOG_LEVEL", "INFO").strip().upper()


def load_malformed_policy() -> str:
    """Return the configured malformed-line policy.

    WHY: A typo in .env should fail at startup, not silently abort
    (or skip) halfway through a multi-gigabyte dump.

    RULES:
    - Raises ValueError unless the value is "abort" or "skip"
    """
    if DEFAULT_ON_MALFORMED not in MALFORMED_POLICIES:
        raise ValueError(
            "Invalid OSM_ON_MALFORMED value {!r}. Expected one of: {}".format(
                DEFAULT_ON_MALFORMED, ", ".join(MALFORMED_POLICIES)
            )
        )
    return DEFAULT_ON_MALFORMED


def default_format_keys() -> List[str]:
    """Formatter keys from OSM_DEFAULT_FORMATS, blanks removed."""
    return [key.strip() for key in DEFAULT_FORMATS.split(",") if key.strip()]
