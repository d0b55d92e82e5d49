"""Infrastructure layer package.

Implements the RawStore ports with concrete adapters (dict, Redis, SQLite).
Callers go through shoebox.main / shoebox.store instead of importing
adapters directly.
"""
