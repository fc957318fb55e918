"""Adapter selection and caching per live connection.

Usage:
    registry = AdapterRegistry()
    adapter = registry.adapter_for(connection)             # auto-detect
    adapter = registry.adapter_for(connection, "sqlite")   # explicit override
    registry.clear_cache()
"""

import logging
import threading
import weakref

from structure_sql.adapters.base import SchemaAdapter
from structure_sql.adapters.mysql import MysqlAdapter
from structure_sql.adapters.postgresql import PostgresqlAdapter
from structure_sql.adapters.sqlite import SqliteAdapter
from structure_sql.connection import DatabaseConnection
from structure_sql.errors import AdapterError

logger = logging.getLogger(__name__)

# Driver names reported by connections, mapped to adapter dialects
ADAPTER_ALIASES = {
    "postgresql": "postgresql",
    "postgis": "postgresql",
    "mysql": "mysql",
    "mysql2": "mysql",
    "trilogy": "mysql",
    "mariadb": "mysql",
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
}

VALID_OVERRIDES = ("auto", "postgresql", "mysql", "sqlite")


def detect_dialect(adapter_name: str) -> str:
    """Map a connection's reported driver name to an adapter dialect.

    Raises:
        AdapterError: If the driver name is not recognized
    """
    dialect = ADAPTER_ALIASES.get(adapter_name.lower())
    if dialect is None:
        raise AdapterError(
            f"Unsupported database adapter: {adapter_name}. "
            f"Supported: postgresql, mysql, sqlite"
        )
    return dialect


class AdapterRegistry:
    """Cache of schema adapters keyed by connection identity and override.

    The cache is the only shared mutable state in a dump, so inserts are
    guarded by a lock. Adapters are held weakly: an entry, and the
    connection its adapter wraps, goes away once no caller holds the adapter.

    Args:
        schemas: PostgreSQL schemas handed to new PostgreSQL adapters
    """

    def __init__(self, schemas: list[str] | tuple[str, ...] = ("public",)):
        self.schemas = tuple(schemas)
        self._cache: weakref.WeakValueDictionary[tuple[int, str], SchemaAdapter] = weakref.WeakValueDictionary()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Number of live cached adapters."""
        return len(self._cache)

    def adapter_for(self, connection: DatabaseConnection, adapter_override: str = "auto") -> SchemaAdapter:
        """Return the cached adapter for a connection, creating it on first use.

        Args:
            connection: Live connection
            adapter_override: ``auto`` to detect from the connection, or an
                explicit ``postgresql``/``mysql``/``sqlite``

        Returns:
            SchemaAdapter for the resolved dialect

        Raises:
            AdapterError: If the override is invalid or the driver is unknown
        """
        if adapter_override not in VALID_OVERRIDES:
            raise AdapterError(
                f"Invalid adapter override: {adapter_override}. "
                f"Valid options: {', '.join(VALID_OVERRIDES)}"
            )

        key = (id(connection), adapter_override)
        with self._lock:
            adapter = self._cache.get(key)
            # id() values are recycled once a connection is collected
            if adapter is not None and adapter.connection is connection:
                return adapter

            adapter = self._build(connection, adapter_override)
            self._cache[key] = adapter
            return adapter

    def clear_cache(self) -> None:
        """Drop every cached adapter."""
        with self._lock:
            self._cache.clear()

    def _build(self, connection: DatabaseConnection, adapter_override: str) -> SchemaAdapter:
        if adapter_override == "auto":
            dialect = detect_dialect(connection.adapter_name)
        else:
            dialect = adapter_override

        logger.debug(f"Creating {dialect} adapter (override: {adapter_override})")
        if dialect == "postgresql":
            return PostgresqlAdapter(connection, schemas=self.schemas)
        if dialect == "mysql":
            return MysqlAdapter(connection)
        return SqliteAdapter(connection)
