"""
Persistence adapters.

These modules encapsulate how data is stored/retrieved: JSON array files for
records, a local directory or S3 for uploaded images. Services depend on
these classes rather than touching files or buckets directly.
"""
