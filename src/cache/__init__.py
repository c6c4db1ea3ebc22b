# src/cache/__init__.py — v1
"""Cache key derivation, lookup and save/restore orchestration."""
