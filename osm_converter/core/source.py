"""Line supply for OSM XML dumps, plain or compressed.

WHY: Dumps are distributed as .osm files, usually gzip or bzip2
compressed. The assembler only wants text lines, so opening the right
decompressor belongs in one small place.

HOW: The last suffix decides the opener (gzip.open, bz2.open or open),
always in text mode with the configured encoding. dump_stem() strips
the compression and dump suffixes to name output files.

RULES:
- .gz → gzip, .bz2 → bz2, anything else → plain text
- Files are read lazily, line by line
- dump_stem("planet.osm.bz2") == "planet"
"""

from __future__ import annotations

import bz2
import gzip
from pathlib import Path
from typing import IO, Iterator, Union

from osm_converter.config import COMPRESSION_SUFFIXES, DEFAULT_ENCODING, SUPPORTED_INPUT_SUFFIXES


def open_dump(path: Union[str, Path], encoding: str = DEFAULT_ENCODING) -> IO[str]:
    """Open a dump for reading as text, decompressing when needed."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".gz":
        return gzip.open(path, "rt", encoding=encoding)
    if suffix == ".bz2":
        return bz2.open(path, "rt", encoding=encoding)
    return open(path, "r", encoding=encoding)


def dump_stem(path: Union[str, Path]) -> str:
    """Strip compression and dump suffixes from a file name."""
    name = Path(path).name
    lowered = name.lower()
    for suffix in COMPRESSION_SUFFIXES:
        if lowered.endswith(suffix):
            name = name[:-len(suffix)]
            lowered = lowered[:-len(suffix)]
            break
    for suffix in SUPPORTED_INPUT_SUFFIXES:
        if lowered.endswith(suffix):
            name = name[:-len(suffix)]
            break
    return name


def is_supported_dump(path: Union[str, Path]) -> bool:
    """True for .osm/.xml files, optionally compressed with gzip or bzip2."""
    suffixes = [s.lower() for s in Path(path).suffixes]
    if suffixes and suffixes[-1] in COMPRESSION_SUFFIXES:
        suffixes = suffixes[:-1]
    return bool(suffixes) and suffixes[-1] in SUPPORTED_INPUT_SUFFIXES


def iter_lines(path: Union[str, Path], encoding: str = DEFAULT_ENCODING) -> Iterator[str]:
    """Yield the lines of a dump, closing the file when exhausted."""
    with open_dump(path, encoding=encoding) as handle:
        for line in handle:
            yield line
