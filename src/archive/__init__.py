# src/archive/__init__.py — v1
"""Archive codecs used to package cached paths."""
