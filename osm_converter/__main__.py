"""Package entry point for ``python -m osm_converter``.

WHY: Users run the converter as ``python -m osm_converter planet.osm.bz2``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from osm_converter.cli import main

if __name__ == "__main__":
    main()
