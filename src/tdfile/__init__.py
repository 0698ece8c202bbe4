"""td-file: hierarchical todo lists kept inside ``:td`` blocks of a text file."""

from tdfile.config import VERSION as __version__

__all__ = ["__version__"]
