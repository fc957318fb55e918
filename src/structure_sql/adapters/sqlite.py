"""SQLite schema introspection via sqlite_master and PRAGMA functions.

Per-table details are read through the table-valued PRAGMA functions
(``pragma_table_info``, ``pragma_index_list``, ``pragma_foreign_key_list``)
joined against sqlite_master, so each object kind costs one query
regardless of table count.

SQLite keeps no parsed catalog for CHECK constraints, views or triggers;
those are recovered from the stored CREATE statements.
"""

import logging
import re
from collections import defaultdict

from sqlalchemy.exc import SQLAlchemyError

from structure_sql.adapters.base import CatalogAdapter, CatalogRow, normalize_action
from structure_sql.generators.base import quote_identifier
from structure_sql.schema.models import (
    Column,
    Comment,
    Constraint,
    CustomType,
    Extension,
    ForeignKey,
    Function,
    Index,
    MaterializedView,
    Pragma,
    Sequence,
    Table,
    Trigger,
    View,
)

logger = logging.getLogger(__name__)

# Settings preserved in the dump, in output order
PRAGMA_NAMES = (
    "foreign_keys",
    "recursive_triggers",
    "defer_foreign_keys",
    "journal_mode",
    "synchronous",
    "temp_store",
    "locking_mode",
    "auto_vacuum",
    "cache_size",
)
_QUOTED_PRAGMAS = {"journal_mode", "locking_mode", "temp_store", "synchronous"}

_USER_TABLES = "m.type = 'table' AND m.name NOT LIKE 'sqlite_%'"

_CHECK_PATTERN = re.compile(
    r"(?:\bCONSTRAINT\s+[\"`\[]?(\w+)[\"`\]]?\s+)?\bCHECK\s*\(", re.IGNORECASE
)
_VIEW_PATTERN = re.compile(
    r"CREATE\s+(?:TEMP(?:ORARY)?\s+)?VIEW\s+(?:IF\s+NOT\s+EXISTS\s+)?\S+\s+AS\s+(.*)",
    re.IGNORECASE | re.DOTALL,
)
_TIMING_PATTERN = re.compile(r"\b(BEFORE|AFTER|INSTEAD\s+OF)\b", re.IGNORECASE)
_EVENT_PATTERN = re.compile(r"\b(INSERT|UPDATE|DELETE)\b", re.IGNORECASE)
_AUTOINCREMENT_PATTERN = re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE)


# ============================================================================
# Catalog Rows
# ============================================================================


class SqliteTableRow(CatalogRow):
    name: str
    sql: str | None = None


class SqliteColumnRow(CatalogRow):
    """One row of pragma_table_info joined to its table."""

    table_name: str = ""
    column_name: str
    declared_type: str = ""
    not_null: bool = False
    default_value: str | None = None
    pk_position: int = 0


class SqliteIndexRow(CatalogRow):
    table_name: str
    index_name: str
    definition: str
    is_unique: bool
    column_name: str | None = None


class SqliteUniqueRow(CatalogRow):
    table_name: str
    index_name: str
    column_name: str


class SqliteForeignKeyRow(CatalogRow):
    table_name: str
    fk_id: int
    foreign_table: str
    from_column: str
    to_column: str | None = None
    on_update: str | None = None
    on_delete: str | None = None


class SqliteViewRow(CatalogRow):
    name: str
    sql: str


class SqliteTriggerRow(CatalogRow):
    name: str
    table_name: str
    sql: str


# ============================================================================
# Normalization
# ============================================================================


def resolve_column_type(declared_type: str) -> str:
    """Reduce a declared SQLite column type to its affinity name.

    ``decimal``/``numeric`` declarations are kept verbatim so precision
    survives a round trip.

    Example:
        >>> resolve_column_type("VARCHAR(255)")
        'text'
    """
    lowered = declared_type.strip().lower()

    if lowered.startswith("int"):
        return "integer"
    if lowered.startswith(("varchar", "char", "text", "character", "nvarchar", "nchar", "clob")):
        return "text"
    if lowered.startswith(("real", "float", "double")):
        return "real"
    if lowered.startswith(("decimal", "numeric")):
        return declared_type
    if lowered.startswith("bool"):
        return "boolean"
    return declared_type


def format_pragma_value(name: str, value: str) -> str:
    """Quote textual PRAGMA values; numeric values stay bare."""
    if name in _QUOTED_PRAGMAS and not value.isdigit():
        return f"'{value}'"
    return value


def extract_check_constraints(table_name: str, sql: str | None) -> list[Constraint]:
    """Recover CHECK constraints from a CREATE TABLE statement.

    Parentheses are balanced, so nested expressions survive. Unnamed checks
    are named ``<table>_check_<n>``.

    Example:
        >>> [c.definition for c in extract_check_constraints(
        ...     "products", "CREATE TABLE products (price REAL CHECK (price > (0)))"
        ... )]
        ['CHECK (price > (0))']
    """
    if not sql:
        return []

    constraints = []
    unnamed = 0
    for match in _CHECK_PATTERN.finditer(sql):
        start = match.end() - 1
        depth = 0
        end = None
        for position in range(start, len(sql)):
            if sql[position] == "(":
                depth += 1
            elif sql[position] == ")":
                depth -= 1
                if depth == 0:
                    end = position
                    break
        if end is None:
            logger.debug(f"Unbalanced CHECK expression in {table_name}; skipping")
            continue

        name = match.group(1)
        if not name:
            unnamed += 1
            name = f"{table_name}_check_{unnamed}"
        constraints.append(
            Constraint(name=name, kind="check", definition=f"CHECK {sql[start:end + 1]}")
        )
    return constraints


# ============================================================================
# Adapter
# ============================================================================


class SqliteAdapter(CatalogAdapter):
    """Introspects a SQLite database file.

    Args:
        connection: Live connection to a SQLite database
    """

    dialect = "sqlite"
    version_query = "SELECT sqlite_version()"
    version_pattern = r"(\d+\.\d+\.\d+)"
    table_exists_query = "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = :name"

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def supports_extensions(self) -> bool:
        return False

    def supports_pragmas(self) -> bool:
        return True

    def supports_materialized_views(self) -> bool:
        return False

    def supports_custom_types(self) -> bool:
        return False

    def supports_domains(self) -> bool:
        return False

    def supports_functions(self) -> bool:
        return False

    def supports_triggers(self) -> bool:
        return True

    def supports_sequences(self) -> bool:
        return False

    def supports_check_constraints(self) -> bool:
        return True

    def supports_comments(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # Unsupported object kinds
    # ------------------------------------------------------------------

    def fetch_extensions(self) -> list[Extension]:
        return self._unsupported("extensions")

    def fetch_custom_types(self) -> list[CustomType]:
        return self._unsupported("custom types")

    def fetch_materialized_views(self) -> list[MaterializedView]:
        return self._unsupported("materialized views")

    def fetch_functions(self) -> list[Function]:
        return self._unsupported("stored functions")

    def fetch_sequences(self) -> list[Sequence]:
        return self._unsupported("sequences")

    def fetch_comments(self) -> list[Comment]:
        return self._unsupported("object comments")

    # ------------------------------------------------------------------
    # PRAGMA settings
    # ------------------------------------------------------------------

    def fetch_pragmas(self) -> list[Pragma]:
        pragmas = []
        for name in PRAGMA_NAMES:
            try:
                value = self.connection.select_value(f"PRAGMA {name}")
            except SQLAlchemyError as e:
                logger.debug(f"Skipping PRAGMA {name}: {e}")
                continue

            if value is None or str(value) == "":
                continue
            value = str(value)
            if name == "foreign_keys" and value == "0":
                continue

            pragmas.append(
                Pragma(name=name, value=value, sql=f"PRAGMA {name} = {format_pragma_value(name, value)};")
            )
        return pragmas

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def fetch_tables(self) -> list[Table]:
        query = f"""
            SELECT m.name, m.sql
            FROM sqlite_master m
            WHERE {_USER_TABLES}
            ORDER BY m.name
        """
        table_rows = self._select("tables", query, SqliteTableRow)
        if not table_rows:
            return []

        columns = self._fetch_all_columns()
        unique_constraints = self._fetch_all_unique_constraints()

        tables = []
        for row in table_rows:
            table_columns = columns.get(row.name, [])
            primary_key = [
                column.column_name
                for column in sorted(
                    (c for c in table_columns if c.pk_position > 0), key=lambda c: c.pk_position
                )
            ]
            autoincrement = (
                len(primary_key) == 1
                and row.sql is not None
                and _AUTOINCREMENT_PATTERN.search(row.sql) is not None
            )
            tables.append(
                Table(
                    name=row.name,
                    schema_name="main",
                    columns=[
                        Column(
                            name=c.column_name,
                            type=resolve_column_type(c.declared_type),
                            nullable=not c.not_null,
                            default=c.default_value,
                            auto_increment=autoincrement and c.column_name == primary_key[0],
                        )
                        for c in table_columns
                    ],
                    primary_key=primary_key,
                    constraints=[
                        *extract_check_constraints(row.name, row.sql),
                        *unique_constraints.get(row.name, []),
                    ],
                )
            )
        return tables

    def _fetch_all_columns(self) -> dict[str, list[SqliteColumnRow]]:
        query = f"""
            SELECT
                m.name AS table_name,
                p.name AS column_name,
                p.type AS declared_type,
                p."notnull" AS not_null,
                p.dflt_value AS default_value,
                p.pk AS pk_position
            FROM sqlite_master m
            JOIN pragma_table_info(m.name) p
            WHERE {_USER_TABLES}
            ORDER BY m.name, p.cid
        """
        grouped: dict[str, list[SqliteColumnRow]] = defaultdict(list)
        for row in self._select("columns", query, SqliteColumnRow):
            grouped[row.table_name].append(row)
        return grouped

    def _fetch_all_unique_constraints(self) -> dict[str, list[Constraint]]:
        query = f"""
            SELECT m.name AS table_name, il.name AS index_name, ii.name AS column_name
            FROM sqlite_master m
            JOIN pragma_index_list(m.name) il
            JOIN pragma_index_info(il.name) ii
            WHERE {_USER_TABLES}
              AND il.origin = 'u'
            ORDER BY m.name, il.name, ii.seqno
        """
        columns: dict[tuple[str, str], list[str]] = defaultdict(list)
        for row in self._select("unique constraints", query, SqliteUniqueRow):
            columns[(row.table_name, row.index_name)].append(row.column_name)

        grouped: dict[str, list[Constraint]] = defaultdict(list)
        for (table_name, _), names in columns.items():
            grouped[table_name].append(
                Constraint(
                    name=f"{table_name}_{'_'.join(names)}_key",
                    kind="unique",
                    definition=f"UNIQUE ({', '.join(quote_identifier(name, 'sqlite') for name in names)})",
                )
            )
        return grouped

    # ------------------------------------------------------------------
    # Indexes and foreign keys
    # ------------------------------------------------------------------

    def fetch_indexes(self) -> list[Index]:
        # Auto-indexes (sql IS NULL) belong to PRIMARY KEY/UNIQUE constraints
        query = """
            SELECT
                m.tbl_name AS table_name,
                m.name AS index_name,
                m.sql AS definition,
                il."unique" AS is_unique,
                ii.name AS column_name
            FROM sqlite_master m
            JOIN pragma_index_list(m.tbl_name) il ON il.name = m.name
            LEFT JOIN pragma_index_info(m.name) ii
            WHERE m.type = 'index'
              AND m.sql IS NOT NULL
            ORDER BY m.tbl_name, m.name, ii.seqno
        """
        grouped: dict[tuple[str, str], list[SqliteIndexRow]] = defaultdict(list)
        for row in self._select("indexes", query, SqliteIndexRow):
            grouped[(row.table_name, row.index_name)].append(row)

        return [
            Index(
                name=index_name,
                table=table_name,
                schema_name="main",
                columns=[row.column_name for row in rows if row.column_name],
                unique=rows[0].is_unique,
                definition=rows[0].definition,
            )
            for (table_name, index_name), rows in grouped.items()
        ]

    def fetch_foreign_keys(self) -> list[ForeignKey]:
        query = f"""
            SELECT
                m.name AS table_name,
                fk.id AS fk_id,
                fk."table" AS foreign_table,
                fk."from" AS from_column,
                fk."to" AS to_column,
                fk.on_update,
                fk.on_delete
            FROM sqlite_master m
            JOIN pragma_foreign_key_list(m.name) fk
            WHERE {_USER_TABLES}
            ORDER BY m.name, fk.id, fk.seq
        """
        grouped: dict[tuple[str, int], list[SqliteForeignKeyRow]] = defaultdict(list)
        for row in self._select("foreign keys", query, SqliteForeignKeyRow):
            grouped[(row.table_name, row.fk_id)].append(row)

        foreign_keys = []
        for (table_name, _), rows in grouped.items():
            first = rows[0]
            from_columns = [row.from_column for row in rows]
            foreign_keys.append(
                ForeignKey(
                    name=f"fk_{table_name}_{first.foreign_table}_{'_'.join(from_columns)}",
                    table=table_name,
                    column=", ".join(from_columns),
                    foreign_table=first.foreign_table,
                    # "to" is NULL when the parent's primary key is implied
                    foreign_column=", ".join(row.to_column for row in rows if row.to_column),
                    on_update=normalize_action(first.on_update),
                    on_delete=normalize_action(first.on_delete),
                    schema_name="main",
                    foreign_schema_name="main",
                )
            )
        return foreign_keys

    # ------------------------------------------------------------------
    # Views and triggers
    # ------------------------------------------------------------------

    def fetch_views(self) -> list[View]:
        query = """
            SELECT name, sql
            FROM sqlite_master
            WHERE type = 'view'
            ORDER BY name
        """
        views = []
        for row in self._select("views", query, SqliteViewRow):
            match = _VIEW_PATTERN.search(row.sql)
            definition = match.group(1).strip() if match else row.sql
            views.append(View(name=row.name, schema_name="main", definition=definition))
        return views

    def fetch_triggers(self) -> list[Trigger]:
        query = """
            SELECT name, tbl_name AS table_name, sql
            FROM sqlite_master
            WHERE type = 'trigger'
            ORDER BY name
        """
        triggers = []
        for row in self._select("triggers", query, SqliteTriggerRow):
            timing = _TIMING_PATTERN.search(row.sql)
            event = _EVENT_PATTERN.search(row.sql)
            triggers.append(
                Trigger(
                    name=row.name,
                    schema_name="main",
                    table_name=row.table_name,
                    timing=" ".join(timing.group(1).upper().split()) if timing else "AFTER",
                    event=event.group(1).upper() if event else "INSERT",
                    definition=row.sql,
                )
            )
        return triggers
