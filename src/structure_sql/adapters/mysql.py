"""MySQL schema introspection via information_schema and SHOW CREATE.

MySQL has no extensions, custom types, sequences or materialized views;
those fetches return empty lists. Enum and set columns carry their value
list in the column type itself. CHECK constraints are only read from
servers that enforce them (8.0.16+).
"""

import logging
from collections import defaultdict

from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError

from structure_sql.adapters.base import CatalogAdapter, CatalogRow, normalize_action
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

CHECK_CONSTRAINTS_SINCE = "8.0.16"
FUNCTIONAL_INDEXES_SINCE = "8.0.13"

_INTEGER_TYPES = {"tinyint", "smallint", "mediumint", "int", "integer", "bigint"}


# ============================================================================
# Catalog Rows
# ============================================================================


class MysqlTableRow(CatalogRow):
    table_name: str


class MysqlColumnRow(CatalogRow):
    """One row of information_schema.COLUMNS."""

    table_name: str = ""
    column_name: str
    data_type: str
    column_type: str
    character_maximum_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    is_nullable: str = "YES"
    column_default: str | None = None
    extra: str = ""
    generation_expression: str | None = None


class MysqlKeyColumnRow(CatalogRow):
    table_name: str
    column_name: str


class MysqlCheckRow(CatalogRow):
    table_name: str
    name: str
    check_clause: str


class MysqlIndexRow(CatalogRow):
    table_name: str
    index_name: str
    column_name: str | None = None
    expression: str | None = None
    non_unique: int
    index_type: str | None = None


class MysqlForeignKeyRow(CatalogRow):
    name: str
    table_name: str
    column_name: str
    foreign_table_name: str
    foreign_column_name: str
    update_rule: str | None = None
    delete_rule: str | None = None


class MysqlViewRow(CatalogRow):
    name: str
    definition: str


class MysqlRoutineRow(CatalogRow):
    name: str
    routine_type: str
    return_type: str | None = None
    security_type: str | None = None


class MysqlShowCreateRow(CatalogRow):
    """Result of SHOW CREATE FUNCTION / PROCEDURE / TRIGGER."""

    create_function: str | None = Field(default=None, alias="Create Function")
    create_procedure: str | None = Field(default=None, alias="Create Procedure")
    original_statement: str | None = Field(default=None, alias="SQL Original Statement")

    @property
    def statement(self) -> str | None:
        return self.create_function or self.create_procedure or self.original_statement


class MysqlTriggerRow(CatalogRow):
    name: str
    table_name: str
    timing: str
    event: str
    action_statement: str


class MysqlCommentRow(CatalogRow):
    object_name: str
    comment: str


# ============================================================================
# Normalization
# ============================================================================


def resolve_column_type(row: MysqlColumnRow) -> str:
    """Normalize an information_schema.COLUMNS type.

    Example:
        >>> resolve_column_type(MysqlColumnRow(
        ...     column_name="active", data_type="tinyint", column_type="tinyint(1)",
        ... ))
        'boolean'
    """
    data_type = row.data_type.lower()
    column_type = row.column_type.lower()

    if data_type in ("varchar", "char"):
        length = row.character_maximum_length
        return f"{data_type}({length})" if length else data_type
    if data_type in ("decimal", "numeric"):
        if row.numeric_precision is not None and row.numeric_scale is not None:
            return f"{data_type}({row.numeric_precision},{row.numeric_scale})"
        return data_type
    if data_type in ("enum", "set"):
        return row.column_type
    if data_type == "tinyint" and column_type.startswith("tinyint(1)"):
        return "boolean"

    resolved = "int" if data_type == "integer" else data_type
    if data_type in _INTEGER_TYPES and "unsigned" in column_type:
        return f"{resolved} unsigned"
    return resolved


def _generated_kind(extra: str) -> str | None:
    extra = extra.upper()
    if "VIRTUAL GENERATED" in extra:
        return "VIRTUAL"
    if "STORED GENERATED" in extra:
        return "STORED"
    return None


# ============================================================================
# Adapter
# ============================================================================


class MysqlAdapter(CatalogAdapter):
    """Introspects the current MySQL database (``DATABASE()``).

    Args:
        connection: Live connection to a MySQL or MariaDB database
    """

    dialect = "mysql"
    version_query = "SELECT VERSION()"
    version_pattern = r"(\d+\.\d+\.\d+)"
    table_exists_query = (
        "SELECT COUNT(*) FROM information_schema.TABLES "
        "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :name"
    )

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def supports_extensions(self) -> bool:
        return False

    def supports_pragmas(self) -> bool:
        return False

    def supports_materialized_views(self) -> bool:
        return False

    def supports_custom_types(self) -> bool:
        return False

    def supports_domains(self) -> bool:
        return False

    def supports_functions(self) -> bool:
        return True

    def supports_triggers(self) -> bool:
        return True

    def supports_sequences(self) -> bool:
        return False

    def supports_check_constraints(self) -> bool:
        return self.version_at_least(CHECK_CONSTRAINTS_SINCE)

    def supports_functional_indexes(self) -> bool:
        """STATISTICS.EXPRESSION exists on MySQL 8.0.13+ but never on MariaDB."""
        if "mariadb" in self.version_banner.lower():
            return False
        return self.version_at_least(FUNCTIONAL_INDEXES_SINCE)

    def supports_comments(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Unsupported object kinds
    # ------------------------------------------------------------------

    def fetch_extensions(self) -> list[Extension]:
        return self._unsupported("extensions")

    def fetch_pragmas(self) -> list[Pragma]:
        return self._unsupported("PRAGMA settings")

    def fetch_custom_types(self) -> list[CustomType]:
        return self._unsupported("custom types")

    def fetch_materialized_views(self) -> list[MaterializedView]:
        return self._unsupported("materialized views")

    def fetch_sequences(self) -> list[Sequence]:
        return self._unsupported("sequences")

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def fetch_tables(self) -> list[Table]:
        query = """
            SELECT TABLE_NAME AS table_name
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = DATABASE()
              AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
        """
        table_rows = self._select("tables", query, MysqlTableRow)
        if not table_rows:
            return []

        columns = self._fetch_all_columns()
        primary_keys = self._fetch_all_primary_keys()
        constraints = self._fetch_all_check_constraints()

        return [
            Table(
                name=row.table_name,
                columns=columns.get(row.table_name, []),
                primary_key=primary_keys.get(row.table_name, []),
                constraints=constraints.get(row.table_name, []),
            )
            for row in table_rows
        ]

    def _fetch_all_columns(self) -> dict[str, list[Column]]:
        query = """
            SELECT
                TABLE_NAME AS table_name,
                COLUMN_NAME AS column_name,
                DATA_TYPE AS data_type,
                COLUMN_TYPE AS column_type,
                CHARACTER_MAXIMUM_LENGTH AS character_maximum_length,
                NUMERIC_PRECISION AS numeric_precision,
                NUMERIC_SCALE AS numeric_scale,
                IS_NULLABLE AS is_nullable,
                COLUMN_DEFAULT AS column_default,
                EXTRA AS extra,
                GENERATION_EXPRESSION AS generation_expression
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = DATABASE()
            ORDER BY TABLE_NAME, ORDINAL_POSITION
        """
        grouped: dict[str, list[Column]] = defaultdict(list)
        for row in self._select("columns", query, MysqlColumnRow):
            generated_kind = _generated_kind(row.extra)
            grouped[row.table_name].append(
                Column(
                    name=row.column_name,
                    type=resolve_column_type(row),
                    nullable=row.is_nullable == "YES",
                    default=None if generated_kind else row.column_default,
                    length=row.character_maximum_length,
                    precision=row.numeric_precision,
                    scale=row.numeric_scale,
                    auto_increment="auto_increment" in row.extra.lower(),
                    generated=row.generation_expression if generated_kind else None,
                    generated_kind=generated_kind,
                )
            )
        return grouped

    def _fetch_all_primary_keys(self) -> dict[str, list[str]]:
        query = """
            SELECT TABLE_NAME AS table_name, COLUMN_NAME AS column_name
            FROM information_schema.KEY_COLUMN_USAGE
            WHERE TABLE_SCHEMA = DATABASE()
              AND CONSTRAINT_NAME = 'PRIMARY'
            ORDER BY TABLE_NAME, ORDINAL_POSITION
        """
        grouped: dict[str, list[str]] = defaultdict(list)
        for row in self._select("primary keys", query, MysqlKeyColumnRow):
            grouped[row.table_name].append(row.column_name)
        return grouped

    def _fetch_all_check_constraints(self) -> dict[str, list[Constraint]]:
        if not self.supports_check_constraints():
            return {}

        query = """
            SELECT tc.TABLE_NAME AS table_name, cc.CONSTRAINT_NAME AS name, cc.CHECK_CLAUSE AS check_clause
            FROM information_schema.CHECK_CONSTRAINTS cc
            JOIN information_schema.TABLE_CONSTRAINTS tc
              ON tc.CONSTRAINT_SCHEMA = cc.CONSTRAINT_SCHEMA
             AND tc.CONSTRAINT_NAME = cc.CONSTRAINT_NAME
            WHERE cc.CONSTRAINT_SCHEMA = DATABASE()
              AND tc.CONSTRAINT_TYPE = 'CHECK'
            ORDER BY tc.TABLE_NAME, cc.CONSTRAINT_NAME
        """
        try:
            rows = self.connection.select_all(query)
        except SQLAlchemyError as e:
            logger.debug(f"Skipping CHECK constraints: {e}")
            return {}

        grouped: dict[str, list[Constraint]] = defaultdict(list)
        for row in self._decode("check constraints", rows, MysqlCheckRow):
            grouped[row.table_name].append(
                Constraint(name=row.name, kind="check", definition=f"CHECK ({row.check_clause})")
            )
        return grouped

    # ------------------------------------------------------------------
    # Indexes and foreign keys
    # ------------------------------------------------------------------

    def fetch_indexes(self) -> list[Index]:
        # Functional key parts have a NULL COLUMN_NAME and carry EXPRESSION instead
        expression = "EXPRESSION" if self.supports_functional_indexes() else "NULL"
        query = f"""
            SELECT
                TABLE_NAME AS table_name,
                INDEX_NAME AS index_name,
                COLUMN_NAME AS column_name,
                {expression} AS expression,
                NON_UNIQUE AS non_unique,
                INDEX_TYPE AS index_type
            FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA = DATABASE()
              AND INDEX_NAME != 'PRIMARY'
            ORDER BY TABLE_NAME, INDEX_NAME, SEQ_IN_INDEX
        """
        grouped: dict[tuple[str, str], list[MysqlIndexRow]] = defaultdict(list)
        for row in self._select("indexes", query, MysqlIndexRow):
            grouped[(row.table_name, row.index_name)].append(row)

        indexes = []
        for (table_name, index_name), rows in grouped.items():
            first = rows[0]
            indexes.append(
                Index(
                    name=index_name,
                    table=table_name,
                    columns=[
                        row.column_name or f"({row.expression})"
                        for row in rows
                        if row.column_name or row.expression
                    ],
                    unique=first.non_unique == 0,
                    index_type=first.index_type,
                )
            )
        return indexes

    def fetch_foreign_keys(self) -> list[ForeignKey]:
        query = """
            SELECT
                kcu.CONSTRAINT_NAME AS name,
                kcu.TABLE_NAME AS table_name,
                kcu.COLUMN_NAME AS column_name,
                kcu.REFERENCED_TABLE_NAME AS foreign_table_name,
                kcu.REFERENCED_COLUMN_NAME AS foreign_column_name,
                rc.UPDATE_RULE AS update_rule,
                rc.DELETE_RULE AS delete_rule
            FROM information_schema.KEY_COLUMN_USAGE kcu
            JOIN information_schema.REFERENTIAL_CONSTRAINTS rc
              ON rc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
             AND rc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
            WHERE kcu.TABLE_SCHEMA = DATABASE()
              AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
            ORDER BY kcu.TABLE_NAME, kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
        """
        # Composite keys span one row per column
        grouped: dict[tuple[str, str], list[MysqlForeignKeyRow]] = defaultdict(list)
        for row in self._select("foreign keys", query, MysqlForeignKeyRow):
            grouped[(row.table_name, row.name)].append(row)

        foreign_keys = []
        for (table_name, name), rows in grouped.items():
            first = rows[0]
            foreign_keys.append(
                ForeignKey(
                    name=name,
                    table=table_name,
                    column=", ".join(row.column_name for row in rows),
                    foreign_table=first.foreign_table_name,
                    foreign_column=", ".join(row.foreign_column_name for row in rows),
                    on_update=normalize_action(first.update_rule),
                    on_delete=normalize_action(first.delete_rule),
                )
            )
        return foreign_keys

    # ------------------------------------------------------------------
    # Views and routines
    # ------------------------------------------------------------------

    def fetch_views(self) -> list[View]:
        query = """
            SELECT TABLE_NAME AS name, VIEW_DEFINITION AS definition
            FROM information_schema.VIEWS
            WHERE TABLE_SCHEMA = DATABASE()
            ORDER BY TABLE_NAME
        """
        return [
            View(name=row.name, definition=row.definition)
            for row in self._select("views", query, MysqlViewRow)
        ]

    def fetch_functions(self) -> list[Function]:
        query = """
            SELECT
                ROUTINE_NAME AS name,
                ROUTINE_TYPE AS routine_type,
                DTD_IDENTIFIER AS return_type,
                SECURITY_TYPE AS security_type
            FROM information_schema.ROUTINES
            WHERE ROUTINE_SCHEMA = DATABASE()
            ORDER BY ROUTINE_NAME, ROUTINE_TYPE
        """
        functions = []
        for row in self._select("routines", query, MysqlRoutineRow):
            kind = "PROCEDURE" if row.routine_type.upper() == "PROCEDURE" else "FUNCTION"
            statement = self._show_create(kind, row.name)
            if statement is None:
                logger.warning(f"No definition visible for {kind.lower()} {row.name}; skipping")
                continue
            functions.append(
                Function(
                    name=row.name,
                    definition=statement,
                    return_type=row.return_type,
                    language="SQL",
                    security_definer=row.security_type == "DEFINER",
                )
            )
        return functions

    def fetch_triggers(self) -> list[Trigger]:
        query = """
            SELECT
                TRIGGER_NAME AS name,
                EVENT_OBJECT_TABLE AS table_name,
                ACTION_TIMING AS timing,
                EVENT_MANIPULATION AS event,
                ACTION_STATEMENT AS action_statement
            FROM information_schema.TRIGGERS
            WHERE TRIGGER_SCHEMA = DATABASE()
            ORDER BY EVENT_OBJECT_TABLE, TRIGGER_NAME
        """
        triggers = []
        for row in self._select("triggers", query, MysqlTriggerRow):
            statement = self._show_create("TRIGGER", row.name)
            if statement is None:
                statement = (
                    f"CREATE TRIGGER {row.name} {row.timing} {row.event} "
                    f"ON {row.table_name} FOR EACH ROW {row.action_statement}"
                )
            triggers.append(
                Trigger(
                    name=row.name,
                    table_name=row.table_name,
                    timing=row.timing,
                    event=row.event,
                    definition=statement,
                )
            )
        return triggers

    def _show_create(self, kind: str, name: str) -> str | None:
        sql = f"SHOW CREATE {kind} {self.connection.quote_identifier(name)}"
        rows = self._select(f"{kind.lower()} definition", sql, MysqlShowCreateRow)
        return rows[0].statement if rows else None

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def fetch_comments(self) -> list[Comment]:
        table_query = """
            SELECT TABLE_NAME AS object_name, TABLE_COMMENT AS comment
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = DATABASE()
              AND TABLE_TYPE = 'BASE TABLE'
              AND TABLE_COMMENT != ''
            ORDER BY TABLE_NAME
        """
        column_query = """
            SELECT CONCAT(TABLE_NAME, '.', COLUMN_NAME) AS object_name, COLUMN_COMMENT AS comment
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = DATABASE()
              AND COLUMN_COMMENT != ''
            ORDER BY TABLE_NAME, ORDINAL_POSITION
        """
        comments = [
            Comment(object_type="column", object_name=row.object_name, comment=row.comment)
            for row in self._select("column comments", column_query, MysqlCommentRow)
        ]
        comments += [
            Comment(object_type="table", object_name=row.object_name, comment=row.comment)
            for row in self._select("table comments", table_query, MysqlCommentRow)
        ]
        return comments
