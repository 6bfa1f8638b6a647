"""rerunner - rerun a command pipeline whenever watched files change."""

__version__ = "0.1.0"
