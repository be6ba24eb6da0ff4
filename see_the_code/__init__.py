"""see-the-code: map rendered UI elements back to the source lines that produced them.

The static half extracts selectors from JSX/TSX components into a code map;
the runtime half matches document elements against that map and annotates
them with markers pointing at the source.
"""

__version__ = "1.0.0"
