"""metashelf — Book and audiobook metadata from many sources behind one search API."""

__version__ = "0.1.0"
