"""
Core utilities shared across the storefront backend.

This package hosts:
- configuration helpers (env vars, paths, storage backends)
- cross-cutting services such as logging and per-collection locks

Repositories and services depend on these primitives instead of reading
os.environ or configuring loggers themselves.
"""
