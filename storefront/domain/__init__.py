"""Pure rules (ids, required fields, derived fields) with no I/O."""
