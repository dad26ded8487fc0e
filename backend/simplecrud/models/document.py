"""
simple-crud — Collection Table Definition
==========================================

What:  SQLAlchemy Core table backing one document collection.
How:   One row per stored document: the request path that keys it and the
       full JSON document (JSONB on PostgreSQL, JSON elsewhere).
Who:   Built by DocumentStore for the configured collection; read by Alembic.

Table layout:
    id        INTEGER   surrogate primary key, never exposed
    path      TEXT      request path, UNIQUE (at most one document per path)
    document  JSON(B)   stored document, always containing `path`

The table name is the configured collection name, so the table is built at
runtime instead of being declared as a fixed ORM class.
"""

from typing import Optional

from sqlalchemy import JSON, Column, Integer, MetaData, Table, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, generic JSON (TEXT-encoded) on SQLite
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


def documents_table(collection: str, metadata: Optional[MetaData] = None) -> Table:
    """
    Build the table for `collection`, registered on `metadata`.

    Each call with a fresh MetaData returns an independent Table object, so
    several stores (e.g. in tests) can coexist in one process.
    """
    metadata = metadata if metadata is not None else MetaData()
    return Table(
        collection,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("path", Text, nullable=False),
        Column("document", DocumentJSON, nullable=False),
        UniqueConstraint("path", name=f"uq_{collection}_path"),
    )
