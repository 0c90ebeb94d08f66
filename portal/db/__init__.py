"""Database bootstrap utilities for the recruitment portal.

This module exposes convenience imports for engine construction and schema
creation. The DB layer is intentionally minimal and does not leak ORM models
into route handlers.
"""

from portal.db.base import dispose_engine, get_engine
from portal.db.schema import init_schema

__all__ = [
    "get_engine",
    "dispose_engine",
    "init_schema",
]
