"""Dialect adapters and the registry that selects them.

Usage:
    >>> from structure_sql.adapters import AdapterRegistry, SchemaAdapter
"""

from structure_sql.adapters.base import (
    SchemaAdapter,
    compare_versions,
    major_version,
    minor_version,
    parse_version,
    version_at_least,
)
from structure_sql.adapters.mysql import MysqlAdapter
from structure_sql.adapters.postgresql import PostgresqlAdapter
from structure_sql.adapters.registry import AdapterRegistry, detect_dialect
from structure_sql.adapters.sqlite import SqliteAdapter

__all__ = [
    "SchemaAdapter",
    "PostgresqlAdapter",
    "MysqlAdapter",
    "SqliteAdapter",
    "AdapterRegistry",
    "detect_dialect",
    "parse_version",
    "major_version",
    "minor_version",
    "compare_versions",
    "version_at_least",
]
