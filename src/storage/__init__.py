# src/storage/__init__.py — v1
"""Cache backends and store layout."""
