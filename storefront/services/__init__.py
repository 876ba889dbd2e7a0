"""
High-level use cases for the storefront backend.

Each service orchestrates repositories (collection files, blob stores) to
implement the business rules: record CRUD with image lifecycle, upload
checks, and the orphaned-image sweep. Routers call these services instead of
touching files or buckets directly.
"""
