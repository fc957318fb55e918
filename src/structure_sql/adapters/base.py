"""Schema adapter protocol and helpers shared by the dialect adapters.

Every dialect adapter implements ``SchemaAdapter``: a set of read-only
``fetch_*`` methods returning schema model lists, capability checks, and
memoized version detection. The rest of the package only talks to adapters
through this protocol.

Catalog rows are decoded into ``CatalogRow`` subclasses at the query
boundary (``CatalogAdapter._select``), so adapter code never indexes raw
driver rows.
"""

import logging
import re
from functools import cached_property
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from structure_sql.connection import DatabaseConnection
from structure_sql.errors import IntrospectionError
from structure_sql.schema.models import (
    Comment,
    CustomType,
    Extension,
    ForeignKey,
    Function,
    Index,
    MaterializedView,
    Pragma,
    ReferentialAction,
    Sequence,
    Table,
    Trigger,
    View,
)

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"

REFERENTIAL_ACTIONS: tuple[ReferentialAction, ...] = (
    "CASCADE",
    "SET NULL",
    "SET DEFAULT",
    "RESTRICT",
    "NO ACTION",
)


# ============================================================================
# Version Helpers
# ============================================================================


def parse_version(raw: str | None, pattern: str) -> str:
    """Extract a ``MAJOR.MINOR[.PATCH]`` string from a server banner.

    Args:
        raw: Raw version string reported by the server
        pattern: Regex whose first group captures the dotted version

    Returns:
        Normalized version, or ``"unknown"`` when nothing matches

    Example:
        >>> parse_version("8.0.35-log", r"(\\d+\\.\\d+\\.\\d+)")
        '8.0.35'
    """
    if not raw:
        return UNKNOWN_VERSION
    match = re.search(pattern, str(raw))
    return match.group(1) if match else UNKNOWN_VERSION


def _components(version: str) -> list[int]:
    return [int(part) for part in version.split(".")]


def major_version(version: str) -> int:
    """Leading version component (``"15.4"`` -> 15)."""
    return _components(version)[0]


def minor_version(version: str) -> int:
    """Second version component, 0 when absent."""
    parts = _components(version)
    return parts[1] if len(parts) > 1 else 0


def compare_versions(left: str, right: str) -> int:
    """Compare dotted versions component-wise.

    Missing trailing components count as 0, so ``"8.0"`` equals ``"8.0.0"``.
    Neither side may be ``"unknown"``.

    Returns:
        -1, 0 or 1
    """
    left_parts = _components(left)
    right_parts = _components(right)
    width = max(len(left_parts), len(right_parts))
    left_parts += [0] * (width - len(left_parts))
    right_parts += [0] * (width - len(right_parts))
    return (left_parts > right_parts) - (left_parts < right_parts)


def version_at_least(version: str, required: str) -> bool:
    """Return True when ``version`` >= ``required``."""
    return compare_versions(version, required) >= 0


def normalize_action(rule: str | None) -> ReferentialAction:
    """Map a catalog referential rule to a canonical action name.

    Unrecognized or missing rules resolve to ``NO ACTION``.
    """
    action = (rule or "").strip().upper()
    return action if action in REFERENTIAL_ACTIONS else "NO ACTION"


# ============================================================================
# Adapter Protocol
# ============================================================================


@runtime_checkable
class SchemaAdapter(Protocol):
    """Read-only catalog access for one database dialect.

    ``fetch_*`` methods never modify the database. A fetch for an object kind
    the dialect does not have returns an empty list; callers check the
    matching ``supports_*`` check first to tell "unsupported" apart from
    "none exist".
    """

    dialect: str
    connection: DatabaseConnection

    def fetch_extensions(self) -> list[Extension]: ...

    def fetch_pragmas(self) -> list[Pragma]: ...

    def fetch_custom_types(self) -> list[CustomType]:
        """Return enum, composite and domain types ordered by name."""
        ...

    def fetch_tables(self) -> list[Table]:
        """Return base tables with columns, primary keys and constraints.

        Columns, primary keys and constraints are each fetched with one
        query for all tables and grouped client-side.
        """
        ...

    def fetch_indexes(self) -> list[Index]: ...

    def fetch_foreign_keys(self) -> list[ForeignKey]: ...

    def fetch_views(self) -> list[View]: ...

    def fetch_materialized_views(self) -> list[MaterializedView]: ...

    def fetch_functions(self) -> list[Function]: ...

    def fetch_sequences(self) -> list[Sequence]: ...

    def fetch_triggers(self) -> list[Trigger]: ...

    def fetch_comments(self) -> list[Comment]: ...

    def table_exists(self, table_name: str) -> bool: ...

    def fetch_migration_versions(self, table_name: str) -> list[str]:
        """Return applied migration versions stored in ``table_name``, sorted."""
        ...

    def supports_extensions(self) -> bool: ...

    def supports_pragmas(self) -> bool: ...

    def supports_materialized_views(self) -> bool: ...

    def supports_custom_types(self) -> bool: ...

    def supports_domains(self) -> bool: ...

    def supports_functions(self) -> bool: ...

    def supports_triggers(self) -> bool: ...

    def supports_sequences(self) -> bool: ...

    def supports_check_constraints(self) -> bool: ...

    def supports_comments(self) -> bool: ...

    @property
    def database_version(self) -> str:
        """Normalized server version, memoized per adapter instance."""
        ...

    def parse_version(self, raw: str | None) -> str: ...


# ============================================================================
# Shared Implementation
# ============================================================================


class CatalogRow(BaseModel):
    """Base for typed catalog query rows. Unknown columns are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)


RowT = TypeVar("RowT", bound=CatalogRow)


class MigrationRow(CatalogRow):
    version: str


class CatalogAdapter:
    """Query plumbing and version handling shared by the dialect adapters.

    Subclasses set ``dialect``, ``version_query`` and ``version_pattern``.

    Args:
        connection: Live connection to introspect
    """

    dialect: str = ""
    version_query: str = ""
    version_pattern: str = ""
    table_exists_query: str = ""

    def __init__(self, connection: DatabaseConnection):
        self.connection = connection

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dialect={self.dialect!r})"

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    @cached_property
    def version_banner(self) -> str:
        """Raw server version string, memoized per adapter instance."""
        raw = self.connection.select_value(self.version_query)
        return "" if raw is None else str(raw)

    @cached_property
    def database_version(self) -> str:
        version = self.parse_version(self.version_banner or None)
        logger.debug(f"{self.dialect} server version: {version}")
        return version

    def parse_version(self, raw: str | None) -> str:
        return parse_version(raw, self.version_pattern)

    def major_version(self) -> int:
        return major_version(self.database_version)

    def minor_version(self) -> int:
        return minor_version(self.database_version)

    def version_at_least(self, required: str) -> bool:
        """Return False rather than comparing when the version is unknown."""
        if self.database_version == UNKNOWN_VERSION:
            return False
        return version_at_least(self.database_version, required)

    # ------------------------------------------------------------------
    # Query boundary
    # ------------------------------------------------------------------

    def _select(
        self,
        kind: str,
        sql: str,
        row_type: type[RowT],
        params: dict[str, Any] | None = None,
    ) -> list[RowT]:
        """Run a catalog query and decode each row into ``row_type``.

        Raises:
            IntrospectionError: If the query fails or a row has an unexpected shape
        """
        try:
            rows = self.connection.select_all(sql, params)
        except SQLAlchemyError as e:
            raise IntrospectionError(f"Failed to fetch {kind} from {self.dialect}: {e}") from e
        return self._decode(kind, rows, row_type)

    def _decode(self, kind: str, rows: list[dict[str, Any]], row_type: type[RowT]) -> list[RowT]:
        """Decode raw rows into ``row_type``.

        Raises:
            IntrospectionError: If a row has an unexpected shape
        """
        try:
            decoded = [row_type.model_validate(row) for row in rows]
        except ValidationError as e:
            raise IntrospectionError(
                f"Unexpected {kind} row shape from {self.dialect}: {e}"
            ) from e

        logger.debug(f"Fetched {len(decoded)} {kind} rows from {self.dialect}")
        return decoded

    def _unsupported(self, feature: str) -> list:
        logger.warning(
            f"{self.dialect} has no {feature}; call supports_* before fetching"
        )
        return []

    def table_exists(self, table_name: str) -> bool:
        """Return True when a base table named ``table_name`` is visible."""
        return bool(self.connection.select_value(self.table_exists_query, {"name": table_name}))

    def fetch_migration_versions(self, table_name: str) -> list[str]:
        if not self.table_exists(table_name):
            logger.debug(f"No {table_name} table; skipping migration versions")
            return []
        sql = f"SELECT version FROM {self.connection.quote_identifier(table_name)} ORDER BY version"
        return [row.version for row in self._select("migration versions", sql, MigrationRow)]
