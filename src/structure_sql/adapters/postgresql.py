"""PostgreSQL schema introspection via information_schema and pg_catalog.

This module queries the live database to extract:
- Extensions, enum/composite/domain types, sequences
- Tables, columns, primary keys, CHECK/UNIQUE constraints
- Indexes (excluding constraint-backed and ``_pkey`` indexes), foreign keys
- Views, materialized views (with their indexes)
- Functions/procedures, triggers, comments

Every per-table detail is fetched with one query for all configured schemas
and grouped client-side.
"""

import logging
from collections import defaultdict

from pydantic import Field

from structure_sql.adapters.base import CatalogAdapter, CatalogRow, normalize_action
from structure_sql.connection import DatabaseConnection
from structure_sql.schema.models import (
    Column,
    Comment,
    CompositeAttribute,
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

# pg_constraint.confupdtype / confdeltype codes
_ACTION_CODES = {
    "a": "NO ACTION",
    "r": "RESTRICT",
    "c": "CASCADE",
    "n": "SET NULL",
    "d": "SET DEFAULT",
}

_VOLATILITY = {"i": "IMMUTABLE", "s": "STABLE", "v": "VOLATILE"}

# pg_trigger.tgtype bits
_TRIGGER_BEFORE = 1 << 1
_TRIGGER_INSERT = 1 << 2
_TRIGGER_DELETE = 1 << 3
_TRIGGER_UPDATE = 1 << 4
_TRIGGER_TRUNCATE = 1 << 5
_TRIGGER_INSTEAD = 1 << 6


# ============================================================================
# Catalog Rows
# ============================================================================


class PgExtensionRow(CatalogRow):
    name: str
    version: str | None = None
    schema_name: str


class PgTableRow(CatalogRow):
    schema_name: str
    table_name: str


class PgColumnRow(CatalogRow):
    """One row of information_schema.columns."""

    schema_name: str = "public"
    table_name: str = ""
    column_name: str
    data_type: str
    udt_name: str | None = None
    character_maximum_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    is_nullable: str = "YES"
    column_default: str | None = None
    is_identity: str | None = None
    identity_generation: str | None = None
    is_generated: str | None = None
    generation_expression: str | None = None


class PgKeyColumnRow(CatalogRow):
    schema_name: str
    table_name: str
    column_name: str


class PgConstraintRow(CatalogRow):
    schema_name: str
    table_name: str
    name: str
    type_code: str
    definition: str


class PgIndexRow(CatalogRow):
    schema_name: str
    table_name: str
    index_name: str
    definition: str
    is_unique: bool
    index_type: str | None = None
    columns: list[str] = Field(default_factory=list)


class PgForeignKeyRow(CatalogRow):
    schema_name: str
    name: str
    table_name: str
    column_name: str
    foreign_table_name: str
    foreign_column_name: str
    update_code: str
    delete_code: str
    foreign_schema_name: str = "public"


class PgViewRow(CatalogRow):
    schema_name: str
    name: str
    definition: str


class PgMatviewIndexRow(CatalogRow):
    schema_name: str
    matview_name: str
    definition: str


class PgFunctionRow(CatalogRow):
    schema_name: str
    name: str
    arguments: str = ""
    return_type: str | None = None
    language: str | None = None
    volatility_code: str | None = None
    strict: bool = False
    security_definer: bool = False
    definition: str


class PgSequenceRow(CatalogRow):
    schema_name: str
    name: str
    start_value: int | None = None
    increment_by: int = 1
    min_value: int | None = None
    max_value: int | None = None
    cache_size: int = 1
    cycle: bool = False


class PgTriggerRow(CatalogRow):
    schema_name: str
    name: str
    table_name: str
    definition: str
    function_name: str | None = None
    type_bits: int


class PgEnumRow(CatalogRow):
    schema_name: str
    name: str
    label: str


class PgCompositeRow(CatalogRow):
    schema_name: str
    name: str
    attribute_name: str
    attribute_type: str


class PgDomainRow(CatalogRow):
    schema_name: str
    name: str
    base_type: str
    constraint_definition: str | None = None


class PgCommentRow(CatalogRow):
    object_type: str
    object_name: str
    comment: str
    schema_name: str = "public"


# ============================================================================
# Normalization
# ============================================================================


def resolve_column_type(row: PgColumnRow) -> str:
    """Normalize an information_schema column type.

    Example:
        >>> resolve_column_type(PgColumnRow(
        ...     column_name="email", data_type="character varying",
        ...     character_maximum_length=255,
        ... ))
        'varchar(255)'
    """
    data_type = row.data_type

    if data_type == "ARRAY":
        return f"{(row.udt_name or '').removeprefix('_')}[]"
    if data_type == "character varying":
        length = row.character_maximum_length
        return f"varchar({length})" if length else "varchar"
    if data_type == "character":
        length = row.character_maximum_length
        return f"char({length})" if length else "char"
    if data_type == "numeric":
        if row.numeric_precision is not None and row.numeric_scale is not None:
            return f"numeric({row.numeric_precision},{row.numeric_scale})"
        return "numeric"
    if data_type == "timestamp without time zone":
        return "timestamp"
    if data_type == "timestamp with time zone":
        return "timestamptz"
    if data_type == "time without time zone":
        return "time"
    if data_type == "USER-DEFINED":
        return row.udt_name or data_type
    return data_type


def constraint_kind(type_code: str) -> str:
    """Map a pg_constraint.contype code to a constraint kind."""
    return {"c": "check", "u": "unique"}.get(type_code, "unknown")


def trigger_timing(type_bits: int) -> str:
    if type_bits & _TRIGGER_INSTEAD:
        return "INSTEAD OF"
    return "BEFORE" if type_bits & _TRIGGER_BEFORE else "AFTER"


def trigger_event(type_bits: int) -> str:
    events = [
        name
        for bit, name in (
            (_TRIGGER_INSERT, "INSERT"),
            (_TRIGGER_UPDATE, "UPDATE"),
            (_TRIGGER_DELETE, "DELETE"),
            (_TRIGGER_TRUNCATE, "TRUNCATE"),
        )
        if type_bits & bit
    ]
    return " OR ".join(events)


# ============================================================================
# Adapter
# ============================================================================


class PostgresqlAdapter(CatalogAdapter):
    """Introspects PostgreSQL catalogs.

    Args:
        connection: Live connection to a PostgreSQL database
        schemas: Schemas to introspect (default: public)

    Usage:
        adapter = PostgresqlAdapter(connection, schemas=["public", "billing"])
        tables = adapter.fetch_tables()
    """

    dialect = "postgresql"
    version_query = "SELECT version()"
    version_pattern = r"PostgreSQL (\d+\.\d+)"
    table_exists_query = (
        "SELECT COUNT(*) FROM information_schema.tables "
        "WHERE table_name = :name AND table_schema::name = ANY(current_schemas(false))"
    )

    def __init__(self, connection: DatabaseConnection, schemas: list[str] | tuple[str, ...] = ("public",)):
        super().__init__(connection)
        self.schemas = list(schemas)

    @property
    def _schema_params(self) -> dict[str, list[str]]:
        return {"schemas": self.schemas}

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def supports_extensions(self) -> bool:
        return True

    def supports_pragmas(self) -> bool:
        return False

    def supports_materialized_views(self) -> bool:
        return True

    def supports_custom_types(self) -> bool:
        return True

    def supports_domains(self) -> bool:
        return True

    def supports_functions(self) -> bool:
        return True

    def supports_triggers(self) -> bool:
        return True

    def supports_sequences(self) -> bool:
        return True

    def supports_check_constraints(self) -> bool:
        return True

    def supports_comments(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Extensions and types
    # ------------------------------------------------------------------

    def fetch_extensions(self) -> list[Extension]:
        query = """
            SELECT e.extname AS name, e.extversion AS version, n.nspname AS schema_name
            FROM pg_extension e
            JOIN pg_namespace n ON n.oid = e.extnamespace
            WHERE n.nspname NOT IN ('pg_catalog', 'information_schema')
            ORDER BY e.extname
        """
        rows = self._select("extensions", query, PgExtensionRow)
        return [
            Extension(name=row.name, version=row.version, schema_name=row.schema_name)
            for row in rows
        ]

    def fetch_pragmas(self) -> list[Pragma]:
        return self._unsupported("PRAGMA settings")

    def fetch_custom_types(self) -> list[CustomType]:
        enum_query = """
            SELECT n.nspname AS schema_name, t.typname AS name, e.enumlabel AS label
            FROM pg_type t
            JOIN pg_enum e ON e.enumtypid = t.oid
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE n.nspname::text = ANY(:schemas)
              AND NOT EXISTS (
                  SELECT 1 FROM pg_depend d WHERE d.objid = t.oid AND d.deptype = 'e'
              )
            ORDER BY n.nspname, t.typname, e.enumsortorder
        """
        composite_query = """
            SELECT n.nspname AS schema_name, t.typname AS name,
                   a.attname AS attribute_name,
                   format_type(a.atttypid, a.atttypmod) AS attribute_type
            FROM pg_type t
            JOIN pg_class c ON c.oid = t.typrelid
            JOIN pg_namespace n ON n.oid = t.typnamespace
            JOIN pg_attribute a ON a.attrelid = c.oid AND a.attnum > 0 AND NOT a.attisdropped
            WHERE t.typtype = 'c'
              AND c.relkind = 'c'
              AND n.nspname::text = ANY(:schemas)
              AND NOT EXISTS (
                  SELECT 1 FROM pg_depend d WHERE d.objid = t.oid AND d.deptype = 'e'
              )
            ORDER BY n.nspname, t.typname, a.attnum
        """
        domain_query = """
            SELECT n.nspname AS schema_name, t.typname AS name,
                   format_type(t.typbasetype, t.typtypmod) AS base_type,
                   (
                       SELECT string_agg(pg_get_constraintdef(c.oid), ' ' ORDER BY c.conname)
                       FROM pg_constraint c
                       WHERE c.contypid = t.oid
                   ) AS constraint_definition
            FROM pg_type t
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE t.typtype = 'd'
              AND n.nspname::text = ANY(:schemas)
              AND NOT EXISTS (
                  SELECT 1 FROM pg_depend d WHERE d.objid = t.oid AND d.deptype = 'e'
              )
            ORDER BY n.nspname, t.typname
        """
        types: list[CustomType] = []

        enum_values: dict[tuple[str, str], list[str]] = defaultdict(list)
        for row in self._select("enum types", enum_query, PgEnumRow, self._schema_params):
            enum_values[(row.schema_name, row.name)].append(row.label)
        for (schema_name, name), values in enum_values.items():
            types.append(CustomType(name=name, schema_name=schema_name, kind="enum", values=values))

        attributes: dict[tuple[str, str], list[CompositeAttribute]] = defaultdict(list)
        for row in self._select("composite types", composite_query, PgCompositeRow, self._schema_params):
            attributes[(row.schema_name, row.name)].append(
                CompositeAttribute(name=row.attribute_name, type=row.attribute_type)
            )
        for (schema_name, name), attrs in attributes.items():
            types.append(
                CustomType(name=name, schema_name=schema_name, kind="composite", attributes=attrs)
            )

        for row in self._select("domains", domain_query, PgDomainRow, self._schema_params):
            types.append(
                CustomType(
                    name=row.name,
                    schema_name=row.schema_name,
                    kind="domain",
                    base_type=row.base_type,
                    constraint=row.constraint_definition,
                )
            )

        return sorted(types, key=lambda t: (t.schema_name, t.name))

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def fetch_tables(self) -> list[Table]:
        tables_query = """
            SELECT table_schema AS schema_name, table_name
            FROM information_schema.tables
            WHERE table_schema::text = ANY(:schemas)
              AND table_type = 'BASE TABLE'
            ORDER BY table_schema, table_name
        """
        table_rows = self._select("tables", tables_query, PgTableRow, self._schema_params)
        if not table_rows:
            return []

        logger.debug(f"Introspecting {len(table_rows)} tables in schemas: {', '.join(self.schemas)}")

        columns = self._fetch_all_columns()
        primary_keys = self._fetch_all_primary_keys()
        constraints = self._fetch_all_constraints()

        tables = []
        for row in table_rows:
            key = (row.schema_name, row.table_name)
            tables.append(
                Table(
                    name=row.table_name,
                    schema_name=row.schema_name,
                    columns=columns.get(key, []),
                    primary_key=primary_keys.get(key, []),
                    constraints=constraints.get(key, []),
                )
            )
        return tables

    def _fetch_all_columns(self) -> dict[tuple[str, str], list[Column]]:
        query = """
            SELECT
                table_schema AS schema_name,
                table_name,
                column_name,
                data_type,
                udt_name,
                character_maximum_length,
                numeric_precision,
                numeric_scale,
                is_nullable,
                column_default,
                is_identity,
                identity_generation,
                is_generated,
                generation_expression
            FROM information_schema.columns
            WHERE table_schema::text = ANY(:schemas)
            ORDER BY table_schema, table_name, ordinal_position
        """
        grouped: dict[tuple[str, str], list[Column]] = defaultdict(list)
        for row in self._select("columns", query, PgColumnRow, self._schema_params):
            generated = row.generation_expression if row.is_generated == "ALWAYS" else None
            identity = row.identity_generation if row.is_identity == "YES" else None
            grouped[(row.schema_name, row.table_name)].append(
                Column(
                    name=row.column_name,
                    type=resolve_column_type(row),
                    nullable=row.is_nullable == "YES",
                    default=row.column_default,
                    length=row.character_maximum_length,
                    precision=row.numeric_precision,
                    scale=row.numeric_scale,
                    identity=identity,
                    generated=generated,
                    generated_kind="STORED" if generated else None,
                )
            )
        return grouped

    def _fetch_all_primary_keys(self) -> dict[tuple[str, str], list[str]]:
        query = """
            SELECT n.nspname AS schema_name, t.relname AS table_name, a.attname AS column_name
            FROM pg_index ix
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS x(attnum, ordinality) ON TRUE
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = x.attnum
            WHERE ix.indisprimary
              AND n.nspname::text = ANY(:schemas)
            ORDER BY n.nspname, t.relname, x.ordinality
        """
        grouped: dict[tuple[str, str], list[str]] = defaultdict(list)
        for row in self._select("primary keys", query, PgKeyColumnRow, self._schema_params):
            grouped[(row.schema_name, row.table_name)].append(row.column_name)
        return grouped

    def _fetch_all_constraints(self) -> dict[tuple[str, str], list[Constraint]]:
        query = """
            SELECT n.nspname AS schema_name, t.relname AS table_name,
                   con.conname AS name, con.contype::text AS type_code,
                   pg_get_constraintdef(con.oid) AS definition
            FROM pg_constraint con
            JOIN pg_class t ON t.oid = con.conrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE con.contype IN ('c', 'u')
              AND n.nspname::text = ANY(:schemas)
            ORDER BY n.nspname, t.relname, con.conname
        """
        grouped: dict[tuple[str, str], list[Constraint]] = defaultdict(list)
        for row in self._select("constraints", query, PgConstraintRow, self._schema_params):
            grouped[(row.schema_name, row.table_name)].append(
                Constraint(name=row.name, kind=constraint_kind(row.type_code), definition=row.definition)
            )
        return grouped

    # ------------------------------------------------------------------
    # Indexes and foreign keys
    # ------------------------------------------------------------------

    def fetch_indexes(self) -> list[Index]:
        # Constraint-backed indexes are recreated by their constraints
        query = """
            SELECT
                n.nspname AS schema_name,
                t.relname AS table_name,
                i.relname AS index_name,
                pg_get_indexdef(i.oid) AS definition,
                ix.indisunique AS is_unique,
                am.amname AS index_type,
                ARRAY(
                    SELECT a.attname::text
                    FROM unnest(ix.indkey) WITH ORDINALITY AS x(attnum, ordinality)
                    JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = x.attnum
                    ORDER BY x.ordinality
                ) AS columns
            FROM pg_index ix
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_am am ON am.oid = i.relam
            WHERE t.relkind IN ('r', 'p')
              AND NOT ix.indisprimary
              AND n.nspname::text = ANY(:schemas)
              AND NOT EXISTS (
                  SELECT 1 FROM pg_constraint con WHERE con.conindid = ix.indexrelid
              )
            ORDER BY t.relname, i.relname
        """
        rows = self._select("indexes", query, PgIndexRow, self._schema_params)
        return [
            Index(
                name=row.index_name,
                table=row.table_name,
                schema_name=row.schema_name,
                columns=row.columns,
                unique=row.is_unique,
                index_type=row.index_type,
                definition=row.definition,
            )
            for row in rows
            if not row.index_name.endswith("_pkey")
        ]

    def fetch_foreign_keys(self) -> list[ForeignKey]:
        query = """
            SELECT
                n.nspname AS schema_name,
                con.conname AS name,
                t.relname AS table_name,
                ft.relname AS foreign_table_name,
                fn.nspname AS foreign_schema_name,
                (
                    SELECT string_agg(a.attname::text, ', ' ORDER BY x.ordinality)
                    FROM unnest(con.conkey) WITH ORDINALITY AS x(attnum, ordinality)
                    JOIN pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = x.attnum
                ) AS column_name,
                (
                    SELECT string_agg(a.attname::text, ', ' ORDER BY x.ordinality)
                    FROM unnest(con.confkey) WITH ORDINALITY AS x(attnum, ordinality)
                    JOIN pg_attribute a ON a.attrelid = con.confrelid AND a.attnum = x.attnum
                ) AS foreign_column_name,
                con.confupdtype::text AS update_code,
                con.confdeltype::text AS delete_code
            FROM pg_constraint con
            JOIN pg_class t ON t.oid = con.conrelid
            JOIN pg_class ft ON ft.oid = con.confrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_namespace fn ON fn.oid = ft.relnamespace
            WHERE con.contype = 'f'
              AND n.nspname::text = ANY(:schemas)
            ORDER BY t.relname, con.conname
        """
        rows = self._select("foreign keys", query, PgForeignKeyRow, self._schema_params)
        return [
            ForeignKey(
                name=row.name,
                table=row.table_name,
                column=row.column_name,
                foreign_table=row.foreign_table_name,
                foreign_schema_name=row.foreign_schema_name,
                foreign_column=row.foreign_column_name,
                on_update=normalize_action(_ACTION_CODES.get(row.update_code)),
                on_delete=normalize_action(_ACTION_CODES.get(row.delete_code)),
                schema_name=row.schema_name,
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def fetch_views(self) -> list[View]:
        query = """
            SELECT schemaname AS schema_name, viewname AS name, definition
            FROM pg_views
            WHERE schemaname::text = ANY(:schemas)
            ORDER BY schemaname, viewname
        """
        rows = self._select("views", query, PgViewRow, self._schema_params)
        return [
            View(name=row.name, schema_name=row.schema_name, definition=row.definition)
            for row in rows
        ]

    def fetch_materialized_views(self) -> list[MaterializedView]:
        query = """
            SELECT schemaname AS schema_name, matviewname AS name, definition
            FROM pg_matviews
            WHERE schemaname::text = ANY(:schemas)
            ORDER BY schemaname, matviewname
        """
        index_query = """
            SELECT i.schemaname AS schema_name, i.tablename AS matview_name, i.indexdef AS definition
            FROM pg_indexes i
            JOIN pg_matviews m ON m.schemaname = i.schemaname AND m.matviewname = i.tablename
            WHERE i.schemaname::text = ANY(:schemas)
            ORDER BY i.indexname
        """
        rows = self._select("materialized views", query, PgViewRow, self._schema_params)
        if not rows:
            return []

        indexes: dict[tuple[str, str], list[str]] = defaultdict(list)
        for index_row in self._select(
            "materialized view indexes", index_query, PgMatviewIndexRow, self._schema_params
        ):
            indexes[(index_row.schema_name, index_row.matview_name)].append(index_row.definition)

        return [
            MaterializedView(
                name=row.name,
                schema_name=row.schema_name,
                definition=row.definition,
                indexes=indexes.get((row.schema_name, row.name), []),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Routines, sequences, triggers
    # ------------------------------------------------------------------

    def fetch_functions(self) -> list[Function]:
        # Extension-owned functions are recreated by CREATE EXTENSION
        query = """
            SELECT
                n.nspname AS schema_name,
                p.proname AS name,
                pg_get_function_identity_arguments(p.oid) AS arguments,
                pg_get_function_result(p.oid) AS return_type,
                l.lanname AS language,
                p.provolatile::text AS volatility_code,
                p.proisstrict AS strict,
                p.prosecdef AS security_definer,
                pg_get_functiondef(p.oid) AS definition
            FROM pg_proc p
            JOIN pg_namespace n ON n.oid = p.pronamespace
            JOIN pg_language l ON l.oid = p.prolang
            WHERE n.nspname::text = ANY(:schemas)
              AND p.prokind IN ('f', 'p')
              AND NOT EXISTS (
                  SELECT 1 FROM pg_depend d WHERE d.objid = p.oid AND d.deptype = 'e'
              )
            ORDER BY n.nspname, p.proname, arguments
        """
        rows = self._select("functions", query, PgFunctionRow, self._schema_params)
        return [
            Function(
                name=row.name,
                schema_name=row.schema_name,
                definition=row.definition,
                arguments=row.arguments,
                return_type=row.return_type,
                language=row.language,
                volatility=_VOLATILITY.get(row.volatility_code or ""),
                strict=row.strict,
                security_definer=row.security_definer,
            )
            for row in rows
        ]

    def fetch_sequences(self) -> list[Sequence]:
        # Identity sequences are recreated by their columns
        query = """
            SELECT
                s.schemaname AS schema_name,
                s.sequencename AS name,
                s.start_value,
                s.increment_by,
                s.min_value,
                s.max_value,
                s.cache_size,
                s.cycle
            FROM pg_sequences s
            JOIN pg_namespace n ON n.nspname = s.schemaname
            JOIN pg_class c ON c.relname = s.sequencename AND c.relnamespace = n.oid
            WHERE s.schemaname::text = ANY(:schemas)
              AND NOT EXISTS (
                  SELECT 1 FROM pg_depend d WHERE d.objid = c.oid AND d.deptype = 'i'
              )
            ORDER BY s.schemaname, s.sequencename
        """
        rows = self._select("sequences", query, PgSequenceRow, self._schema_params)
        return [
            Sequence(
                name=row.name,
                schema_name=row.schema_name,
                start_value=row.start_value,
                increment=row.increment_by,
                min_value=row.min_value,
                max_value=row.max_value,
                cache_size=row.cache_size,
                cycle=row.cycle,
            )
            for row in rows
        ]

    def fetch_triggers(self) -> list[Trigger]:
        query = """
            SELECT
                n.nspname AS schema_name,
                t.tgname AS name,
                c.relname AS table_name,
                pg_get_triggerdef(t.oid) AS definition,
                p.proname AS function_name,
                t.tgtype::int AS type_bits
            FROM pg_trigger t
            JOIN pg_class c ON c.oid = t.tgrelid
            JOIN pg_namespace n ON n.oid = c.relnamespace
            JOIN pg_proc p ON p.oid = t.tgfoid
            WHERE NOT t.tgisinternal
              AND n.nspname::text = ANY(:schemas)
            ORDER BY c.relname, t.tgname
        """
        rows = self._select("triggers", query, PgTriggerRow, self._schema_params)
        return [
            Trigger(
                name=row.name,
                schema_name=row.schema_name,
                table_name=row.table_name,
                timing=trigger_timing(row.type_bits),
                event=trigger_event(row.type_bits),
                definition=row.definition,
                function_name=row.function_name,
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def fetch_comments(self) -> list[Comment]:
        query = """
            SELECT
                CASE
                    WHEN d.objsubid > 0 THEN 'column'
                    WHEN c.relkind IN ('r', 'p') THEN 'table'
                    WHEN c.relkind = 'i' THEN 'index'
                    ELSE 'view'
                END AS object_type,
                CASE
                    WHEN d.objsubid > 0 THEN c.relname || '.' || a.attname
                    ELSE c.relname::text
                END AS object_name,
                n.nspname AS schema_name,
                d.description AS comment
            FROM pg_description d
            JOIN pg_class c ON c.oid = d.objoid AND d.classoid = 'pg_class'::regclass
            JOIN pg_namespace n ON n.oid = c.relnamespace
            LEFT JOIN pg_attribute a ON a.attrelid = c.oid AND a.attnum = d.objsubid
            WHERE c.relkind IN ('r', 'p', 'i', 'v')
              AND n.nspname::text = ANY(:schemas)
            UNION ALL
            SELECT
                'function' AS object_type,
                p.proname || '(' || pg_get_function_identity_arguments(p.oid) || ')' AS object_name,
                n.nspname AS schema_name,
                d.description AS comment
            FROM pg_description d
            JOIN pg_proc p ON p.oid = d.objoid AND d.classoid = 'pg_proc'::regclass
            JOIN pg_namespace n ON n.oid = p.pronamespace
            WHERE n.nspname::text = ANY(:schemas)
            ORDER BY object_type, schema_name, object_name
        """
        rows = self._select("comments", query, PgCommentRow, self._schema_params)
        return [
            Comment(
                object_type=row.object_type,
                object_name=row.object_name,
                comment=row.comment,
                schema_name=row.schema_name,
            )
            for row in rows
        ]
