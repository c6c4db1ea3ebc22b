# src/logging/__init__.py — v1
"""Logging setup: formatters, context, handlers."""
