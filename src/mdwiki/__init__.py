"""MdWiki: a file-backed markdown wiki."""

__version__ = "1.0.0"
