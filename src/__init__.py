# src/__init__.py — v1
"""fscache: key-addressed artifact cache for build pipelines."""

from fscache.version import __version__

__all__ = ["__version__"]
