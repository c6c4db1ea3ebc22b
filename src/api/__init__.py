# src/api/__init__.py — v1
"""Public API: save_cache, restore_cache, is_feature_available."""
