"""Calendar-style commit activity graphs for a set of git repositories."""

__version__ = "0.3.0"
