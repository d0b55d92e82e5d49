"""SQLAlchemy Core table definition for the SQLite backend.

One table holds every namespace:

    namespace  TEXT     NOT NULL  -- part of primary key
    key        TEXT     NOT NULL  -- part of primary key
    value      TEXT               -- codec-encoded value
    expires_at INTEGER  NULL      -- absolute expiry, ms since epoch

The composite primary key makes clear() a plain
``DELETE ... WHERE namespace = ?`` with no extra bookkeeping.
"""

from __future__ import annotations

import sqlalchemy as sa

DEFAULT_TABLE = "shoebox"


def build_records_table(name: str = DEFAULT_TABLE, metadata: sa.MetaData | None = None) -> sa.Table:
    """Build the records table under a configurable name."""
    return sa.Table(
        name,
        metadata if metadata is not None else sa.MetaData(),
        sa.Column("namespace", sa.Text(), primary_key=True, nullable=False),
        sa.Column("key", sa.Text(), primary_key=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.Integer(), nullable=True),
    )
