"""Tests for the dialect adapters, version helpers and the registry.

Catalog queries run against a MagicMock connection whose ``select_all``
returns canned rows in query order.
"""

import gc
import logging
import threading
import weakref
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from structure_sql.adapters import (
    AdapterRegistry,
    MysqlAdapter,
    PostgresqlAdapter,
    SqliteAdapter,
    compare_versions,
    detect_dialect,
    major_version,
    minor_version,
    parse_version,
    version_at_least,
)
from structure_sql.adapters import mysql as mysql_module
from structure_sql.adapters import postgresql as pg_module
from structure_sql.adapters import sqlite as sqlite_module
from structure_sql.adapters.base import SchemaAdapter
from structure_sql.errors import AdapterError, IntrospectionError


def _connection(adapter_name: str = "postgresql", version: str | None = None) -> MagicMock:
    connection = MagicMock()
    connection.adapter_name = adapter_name
    connection.select_value.return_value = version
    connection.quote_identifier.side_effect = lambda name: f'"{name}"'
    return connection


# ------------------------------------------------------------------
# Version helpers
# ------------------------------------------------------------------


class TestVersionHelpers:
    """Version parsing and comparison."""

    def test_mysql_banner_suffix_is_dropped(self) -> None:
        """'8.0.35-log' parses to '8.0.35'."""
        assert MysqlAdapter(_connection("mysql")).parse_version("8.0.35-log") == "8.0.35"

    def test_unparsable_is_unknown(self) -> None:
        """Garbage and empty values parse to 'unknown'."""
        adapter = MysqlAdapter(_connection("mysql"))
        assert adapter.parse_version("invalid") == "unknown"
        assert adapter.parse_version(None) == "unknown"

    def test_postgresql_banner(self) -> None:
        """The PostgreSQL version() banner yields MAJOR.MINOR."""
        banner = "PostgreSQL 15.4 (Debian 15.4-1.pgdg120+1) on x86_64-pc-linux-gnu"
        assert PostgresqlAdapter(_connection()).parse_version(banner) == "15.4"

    def test_sqlite_version(self) -> None:
        """sqlite_version() is already dotted."""
        assert SqliteAdapter(_connection("sqlite")).parse_version("3.45.1") == "3.45.1"

    def test_generic_parse(self) -> None:
        """parse_version accepts any capturing pattern."""
        assert parse_version("v10.11.2-MariaDB", r"(\d+\.\d+\.\d+)") == "10.11.2"

    def test_components(self) -> None:
        """Major and minor components are integers; minor defaults to 0."""
        assert major_version("15.4") == 15
        assert minor_version("15.4") == 4
        assert minor_version("16") == 0

    @pytest.mark.parametrize(
        "left,right,expected",
        [("8.0", "8.0.0", 0), ("8.0.16", "8.0.9", 1), ("5.7.44", "8.0", -1), ("10", "9.6", 1)],
    )
    def test_compare_versions(self, left: str, right: str, expected: int) -> None:
        """Components compare numerically, missing ones as zero."""
        assert compare_versions(left, right) == expected

    def test_version_at_least(self) -> None:
        """Equal counts as at least."""
        assert version_at_least("8.0.16", "8.0.16")
        assert not version_at_least("8.0.15", "8.0.16")

    def test_database_version_is_memoized(self) -> None:
        """The version query runs once per adapter."""
        connection = _connection("mysql", version="8.0.35")
        adapter = MysqlAdapter(connection)

        assert adapter.database_version == "8.0.35"
        assert adapter.database_version == "8.0.35"
        connection.select_value.assert_called_once_with("SELECT VERSION()")

    def test_unknown_version_never_satisfies(self) -> None:
        """version_at_least is False when the version is unknown."""
        adapter = MysqlAdapter(_connection("mysql", version="garbage"))
        assert not adapter.version_at_least("5.0")

    @pytest.mark.parametrize("version,expected", [("8.0.15", False), ("8.0.16", True), ("8.4.0", True)])
    def test_mysql_check_constraint_support(self, version: str, expected: bool) -> None:
        """CHECK constraints are enforced from 8.0.16."""
        assert MysqlAdapter(_connection("mysql", version=version)).supports_check_constraints() is expected


# ------------------------------------------------------------------
# Column type normalization
# ------------------------------------------------------------------


class TestPostgresqlColumnTypes:
    """information_schema type normalization."""

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"data_type": "ARRAY", "udt_name": "_text"}, "text[]"),
            ({"data_type": "character varying", "character_maximum_length": 255}, "varchar(255)"),
            ({"data_type": "character varying"}, "varchar"),
            ({"data_type": "character", "character_maximum_length": 2}, "char(2)"),
            ({"data_type": "numeric", "numeric_precision": 10, "numeric_scale": 2}, "numeric(10,2)"),
            ({"data_type": "numeric", "numeric_precision": 10}, "numeric"),
            ({"data_type": "timestamp without time zone"}, "timestamp"),
            ({"data_type": "timestamp with time zone"}, "timestamptz"),
            ({"data_type": "time without time zone"}, "time"),
            ({"data_type": "USER-DEFINED", "udt_name": "mood"}, "mood"),
            ({"data_type": "bigint"}, "bigint"),
        ],
    )
    def test_resolve_column_type(self, fields: dict, expected: str) -> None:
        """Each catalog type maps to its canonical spelling."""
        row = pg_module.PgColumnRow(column_name="c", **fields)
        assert pg_module.resolve_column_type(row) == expected

    def test_resolve_is_pure(self) -> None:
        """The same row always resolves to the same type."""
        row = pg_module.PgColumnRow(column_name="c", data_type="character varying", character_maximum_length=40)
        assert pg_module.resolve_column_type(row) == pg_module.resolve_column_type(row) == "varchar(40)"

    def test_constraint_kind(self) -> None:
        """Unknown contype codes are kept as 'unknown'."""
        assert pg_module.constraint_kind("c") == "check"
        assert pg_module.constraint_kind("u") == "unique"
        assert pg_module.constraint_kind("x") == "unknown"

    def test_trigger_bits(self) -> None:
        """tgtype bits decode to timing and events."""
        assert pg_module.trigger_timing(2 | 4 | 16) == "BEFORE"
        assert pg_module.trigger_event(2 | 4 | 16) == "INSERT OR UPDATE"
        assert pg_module.trigger_timing(64 | 4) == "INSTEAD OF"
        assert pg_module.trigger_timing(8) == "AFTER"


class TestMysqlColumnTypes:
    """information_schema.COLUMNS type normalization."""

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"data_type": "varchar", "column_type": "varchar(100)", "character_maximum_length": 100}, "varchar(100)"),
            ({"data_type": "decimal", "column_type": "decimal(8,2)", "numeric_precision": 8, "numeric_scale": 2}, "decimal(8,2)"),
            ({"data_type": "enum", "column_type": "enum('a','b')"}, "enum('a','b')"),
            ({"data_type": "set", "column_type": "set('x','y')"}, "set('x','y')"),
            ({"data_type": "tinyint", "column_type": "tinyint(1)"}, "boolean"),
            ({"data_type": "tinyint", "column_type": "tinyint(4)"}, "tinyint"),
            ({"data_type": "int", "column_type": "int"}, "int"),
            ({"data_type": "integer", "column_type": "int(11)"}, "int"),
            ({"data_type": "bigint", "column_type": "bigint unsigned"}, "bigint unsigned"),
            ({"data_type": "json", "column_type": "json"}, "json"),
        ],
    )
    def test_resolve_column_type(self, fields: dict, expected: str) -> None:
        """Each MySQL type maps to its canonical spelling."""
        row = mysql_module.MysqlColumnRow(column_name="c", **fields)
        assert mysql_module.resolve_column_type(row) == expected


class TestSqliteHelpers:
    """Affinity mapping and CHECK extraction."""

    @pytest.mark.parametrize(
        "declared,expected",
        [
            ("INTEGER", "integer"),
            ("int", "integer"),
            ("VARCHAR(255)", "text"),
            ("TEXT", "text"),
            ("REAL", "real"),
            ("DOUBLE PRECISION", "real"),
            ("DECIMAL(10,2)", "DECIMAL(10,2)"),
            ("BOOLEAN", "boolean"),
            ("BLOB", "BLOB"),
            ("", ""),
        ],
    )
    def test_resolve_column_type(self, declared: str, expected: str) -> None:
        """Declared types reduce to affinities."""
        assert sqlite_module.resolve_column_type(declared) == expected

    def test_nested_check(self) -> None:
        """Nested parentheses stay inside one constraint."""
        sql = "CREATE TABLE products (price REAL CHECK (price > (0)), qty INTEGER)"
        constraints = sqlite_module.extract_check_constraints("products", sql)

        assert [(c.name, c.definition) for c in constraints] == [("products_check_1", "CHECK (price > (0))")]

    def test_named_and_unnamed_checks(self) -> None:
        """Named checks keep their name; unnamed ones are numbered."""
        sql = (
            "CREATE TABLE t (a INTEGER CHECK (a > 0), b INTEGER, "
            "CONSTRAINT b_positive CHECK (b >= 0), CHECK (a <> b))"
        )
        names = [c.name for c in sqlite_module.extract_check_constraints("t", sql)]
        assert names == ["t_check_1", "b_positive", "t_check_2"]

    def test_no_sql(self) -> None:
        """Tables without stored SQL have no checks."""
        assert sqlite_module.extract_check_constraints("t", None) == []


# ------------------------------------------------------------------
# PostgreSQL catalog queries
# ------------------------------------------------------------------


class TestPostgresqlAdapter:
    """Batch queries and client-side grouping."""

    def test_satisfies_protocol(self) -> None:
        """Adapters implement SchemaAdapter structurally."""
        assert isinstance(PostgresqlAdapter(_connection()), SchemaAdapter)

    def test_fetch_tables_groups_batches(self) -> None:
        """Columns, keys and constraints come from one query each."""
        connection = _connection()
        connection.select_all.side_effect = [
            [{"schema_name": "public", "table_name": "users"}],
            [
                {"schema_name": "public", "table_name": "users", "column_name": "id", "data_type": "bigint", "is_nullable": "NO"},
                {
                    "schema_name": "public",
                    "table_name": "users",
                    "column_name": "email",
                    "data_type": "character varying",
                    "character_maximum_length": 255,
                    "is_nullable": "NO",
                },
            ],
            [{"schema_name": "public", "table_name": "users", "column_name": "id"}],
            [
                {
                    "schema_name": "public",
                    "table_name": "users",
                    "name": "users_email_key",
                    "type_code": "u",
                    "definition": "UNIQUE (email)",
                }
            ],
        ]
        adapter = PostgresqlAdapter(connection, schemas=["public", "billing"])

        [table] = adapter.fetch_tables()

        assert table.column_names == ["id", "email"]
        assert table.columns[1].type == "varchar(255)"
        assert table.primary_key == ["id"]
        assert table.constraints[0].kind == "unique"
        assert connection.select_all.call_count == 4
        assert connection.select_all.call_args_list[0].args[1] == {"schemas": ["public", "billing"]}

    def test_fetch_tables_empty_schema(self) -> None:
        """No tables means no follow-up queries."""
        connection = _connection()
        connection.select_all.return_value = []

        assert PostgresqlAdapter(connection).fetch_tables() == []
        assert connection.select_all.call_count == 1

    def test_fetch_indexes_skips_pkey(self) -> None:
        """Indexes named *_pkey are never dumped."""
        connection = _connection()
        connection.select_all.return_value = [
            {
                "schema_name": "public",
                "table_name": "users",
                "index_name": "users_pkey",
                "definition": "CREATE UNIQUE INDEX users_pkey ON public.users USING btree (id)",
                "is_unique": True,
            },
            {
                "schema_name": "public",
                "table_name": "users",
                "index_name": "index_users_on_email",
                "definition": "CREATE INDEX index_users_on_email ON public.users USING btree (email)",
                "is_unique": False,
                "index_type": "btree",
                "columns": ["email"],
            },
        ]

        indexes = PostgresqlAdapter(connection).fetch_indexes()
        assert [index.name for index in indexes] == ["index_users_on_email"]
        assert indexes[0].columns == ["email"]

    def test_fetch_foreign_keys_decodes_actions(self) -> None:
        """confdeltype/confupdtype codes map to action names."""
        connection = _connection()
        connection.select_all.return_value = [
            {
                "schema_name": "public",
                "name": "fk_posts_user",
                "table_name": "posts",
                "column_name": "user_id",
                "foreign_table_name": "users",
                "foreign_column_name": "id",
                "update_code": "a",
                "delete_code": "c",
            }
        ]

        [fk] = PostgresqlAdapter(connection).fetch_foreign_keys()
        assert fk.on_delete == "CASCADE"
        assert fk.on_update == "NO ACTION"

    def test_cross_schema_targets_keep_their_schema(self) -> None:
        """Referenced tables and commented objects carry their own schema."""
        connection = _connection()
        connection.select_all.side_effect = [
            [
                {
                    "schema_name": "public",
                    "name": "fk_invoices_account",
                    "table_name": "invoices",
                    "column_name": "account_id",
                    "foreign_schema_name": "billing",
                    "foreign_table_name": "accounts",
                    "foreign_column_name": "id",
                    "update_code": "a",
                    "delete_code": "a",
                }
            ],
            [{"object_type": "table", "object_name": "events", "schema_name": "audit", "comment": "Log"}],
        ]
        adapter = PostgresqlAdapter(connection, schemas=["public", "audit"])

        [fk] = adapter.fetch_foreign_keys()
        [comment] = adapter.fetch_comments()

        assert (fk.schema_name, fk.foreign_schema_name) == ("public", "billing")
        assert comment.schema_name == "audit"

    def test_fetch_custom_types(self) -> None:
        """Enum labels, composite attributes and domains are assembled."""
        connection = _connection()
        connection.select_all.side_effect = [
            [
                {"schema_name": "public", "name": "mood", "label": "sad"},
                {"schema_name": "public", "name": "mood", "label": "happy"},
            ],
            [{"schema_name": "public", "name": "address", "attribute_name": "street", "attribute_type": "text"}],
            [{"schema_name": "public", "name": "email", "base_type": "text", "constraint_definition": "CHECK ((VALUE ~ '@'::text))"}],
        ]

        types = PostgresqlAdapter(connection).fetch_custom_types()

        assert [(t.name, t.kind) for t in types] == [("address", "composite"), ("email", "domain"), ("mood", "enum")]
        assert types[2].values == ["sad", "happy"]

    def test_unsupported_pragmas_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        """Fetching an unsupported kind returns [] and logs a warning."""
        with caplog.at_level(logging.WARNING):
            assert PostgresqlAdapter(_connection()).fetch_pragmas() == []
        assert "PRAGMA" in caplog.text

    def test_driver_error_becomes_introspection_error(self) -> None:
        """SQLAlchemy failures are wrapped with the query kind."""
        connection = _connection()
        connection.select_all.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

        with pytest.raises(IntrospectionError, match="Failed to fetch views from postgresql"):
            PostgresqlAdapter(connection).fetch_views()

    def test_bad_row_shape_becomes_introspection_error(self) -> None:
        """Rows missing required columns are reported, not passed on."""
        connection = _connection()
        connection.select_all.return_value = [{"unexpected": 1}]

        with pytest.raises(IntrospectionError, match="Unexpected views row shape"):
            PostgresqlAdapter(connection).fetch_views()


# ------------------------------------------------------------------
# MySQL catalog queries
# ------------------------------------------------------------------


class TestMysqlAdapter:
    """MySQL specifics."""

    def test_capabilities(self) -> None:
        """MySQL has functions, triggers and comments but no types or sequences."""
        adapter = MysqlAdapter(_connection("mysql"))
        assert adapter.supports_functions()
        assert adapter.supports_triggers()
        assert not adapter.supports_extensions()
        assert not adapter.supports_materialized_views()
        assert not adapter.supports_sequences()

    def test_materialized_views_are_empty(self) -> None:
        """MySQL has no materialized views."""
        assert MysqlAdapter(_connection("mysql")).fetch_materialized_views() == []

    def test_fetch_tables_with_checks_and_extras(self) -> None:
        """Auto-increment, generated columns and CHECKs are captured."""
        connection = _connection("mysql", version="8.0.35")
        connection.select_all.side_effect = [
            [{"table_name": "orders"}],
            [
                {
                    "table_name": "orders",
                    "column_name": "id",
                    "data_type": "int",
                    "column_type": "int",
                    "is_nullable": "NO",
                    "extra": "auto_increment",
                },
                {
                    "table_name": "orders",
                    "column_name": "total",
                    "data_type": "decimal",
                    "column_type": "decimal(10,2)",
                    "numeric_precision": 10,
                    "numeric_scale": 2,
                    "extra": "STORED GENERATED",
                    "generation_expression": "(`price` * `qty`)",
                },
            ],
            [{"table_name": "orders", "column_name": "id"}],
            [{"table_name": "orders", "name": "orders_chk_1", "check_clause": "(`total` >= 0)"}],
        ]

        [table] = MysqlAdapter(connection).fetch_tables()

        assert table.columns[0].auto_increment
        assert table.columns[1].generated == "(`price` * `qty`)"
        assert table.columns[1].generated_kind == "STORED"
        assert table.constraints[0].definition == "CHECK ((`total` >= 0))"

    def test_check_constraints_skipped_on_old_servers(self) -> None:
        """5.7 servers do not get the CHECK query at all."""
        connection = _connection("mysql", version="5.7.44")
        connection.select_all.side_effect = [
            [{"table_name": "t"}],
            [{"table_name": "t", "column_name": "id", "data_type": "int", "column_type": "int"}],
            [],
        ]

        [table] = MysqlAdapter(connection).fetch_tables()

        assert table.constraints == []
        assert connection.select_all.call_count == 3

    def test_check_query_failure_is_tolerated(self) -> None:
        """A failing optional CHECK query yields no constraints."""
        connection = _connection("mysql", version="8.0.35")
        connection.select_all.side_effect = [
            [{"table_name": "t"}],
            [{"table_name": "t", "column_name": "id", "data_type": "int", "column_type": "int"}],
            [],
            OperationalError("SELECT", {}, Exception("denied")),
        ]

        [table] = MysqlAdapter(connection).fetch_tables()
        assert table.constraints == []

    def test_malformed_check_row_becomes_introspection_error(self) -> None:
        """CHECK rows are decoded with the same row-shape guard as other queries."""
        connection = _connection("mysql", version="8.0.35")
        connection.select_all.side_effect = [
            [{"table_name": "t"}],
            [{"table_name": "t", "column_name": "id", "data_type": "int", "column_type": "int"}],
            [],
            [{"table_name": "t", "name": "t_chk_1"}],
        ]

        with pytest.raises(IntrospectionError, match="Unexpected check constraints row shape from mysql"):
            MysqlAdapter(connection).fetch_tables()

    def test_functional_index_key_parts(self) -> None:
        """Expression key parts are read from EXPRESSION and kept parenthesized."""
        connection = _connection("mysql", version="8.0.35")
        base = {"table_name": "users", "index_name": "idx_tenant_lower_email", "non_unique": 1, "index_type": "BTREE"}
        connection.select_all.return_value = [
            {**base, "column_name": "tenant_id", "expression": None},
            {**base, "column_name": None, "expression": "lower(`email`)"},
        ]

        [index] = MysqlAdapter(connection).fetch_indexes()

        assert index.columns == ["tenant_id", "(lower(`email`))"]
        assert "EXPRESSION AS expression" in connection.select_all.call_args.args[0]

    @pytest.mark.parametrize("version", ["5.7.44", "8.0.12", "10.11.2-MariaDB"])
    def test_expression_column_not_selected_without_support(self, version: str) -> None:
        """Servers without STATISTICS.EXPRESSION select NULL in its place."""
        connection = _connection("mysql", version=version)
        connection.select_all.return_value = []

        adapter = MysqlAdapter(connection)

        assert adapter.fetch_indexes() == []
        assert not adapter.supports_functional_indexes()
        query = connection.select_all.call_args.args[0]
        assert "NULL AS expression" in query
        assert "EXPRESSION AS" not in query

    def test_composite_foreign_key(self) -> None:
        """Multi-column keys are grouped into one foreign key."""
        connection = _connection("mysql")
        base = {
            "name": "fk_line_order",
            "table_name": "lines",
            "foreign_table_name": "orders",
            "update_rule": "NO ACTION",
            "delete_rule": "CASCADE",
        }
        connection.select_all.return_value = [
            {**base, "column_name": "tenant_id", "foreign_column_name": "tenant_id"},
            {**base, "column_name": "order_id", "foreign_column_name": "id"},
        ]

        [fk] = MysqlAdapter(connection).fetch_foreign_keys()

        assert fk.column == "tenant_id, order_id"
        assert fk.foreign_column == "tenant_id, id"
        assert fk.on_delete == "CASCADE"
        assert fk.schema_name == "public"

    def test_fetch_functions_uses_show_create(self) -> None:
        """Routine bodies come from SHOW CREATE; invisible ones are skipped."""
        connection = _connection("mysql")
        connection.select_all.side_effect = [
            [
                {"name": "add_one", "routine_type": "FUNCTION", "return_type": "int", "security_type": "DEFINER"},
                {"name": "hidden", "routine_type": "PROCEDURE"},
            ],
            [{"Function": "add_one", "Create Function": "CREATE FUNCTION `add_one`(x INT) RETURNS int RETURN x + 1"}],
            [],
        ]

        functions = MysqlAdapter(connection).fetch_functions()

        assert [f.name for f in functions] == ["add_one"]
        assert functions[0].security_definer
        assert connection.select_all.call_args_list[2].args[0] == 'SHOW CREATE PROCEDURE "hidden"'


# ------------------------------------------------------------------
# SQLite catalog queries
# ------------------------------------------------------------------


class TestSqliteAdapter:
    """SQLite specifics against canned rows."""

    def test_fetch_pragmas(self) -> None:
        """Disabled foreign_keys and empty values are left out."""
        connection = _connection("sqlite")
        values = {"PRAGMA foreign_keys": 0, "PRAGMA journal_mode": "wal", "PRAGMA cache_size": -2000}
        connection.select_value.side_effect = lambda sql: values.get(sql)

        pragmas = SqliteAdapter(connection).fetch_pragmas()

        assert [p.sql for p in pragmas] == ["PRAGMA journal_mode = 'wal';", "PRAGMA cache_size = -2000;"]

    def test_fetch_foreign_keys(self) -> None:
        """Keys are named from table, parent and columns."""
        connection = _connection("sqlite")
        connection.select_all.return_value = [
            {
                "table_name": "posts",
                "fk_id": 0,
                "foreign_table": "users",
                "from_column": "user_id",
                "to_column": "id",
                "on_update": "NO ACTION",
                "on_delete": "CASCADE",
            }
        ]

        [fk] = SqliteAdapter(connection).fetch_foreign_keys()

        assert fk.name == "fk_posts_users_user_id"
        assert fk.on_delete == "CASCADE"
        assert fk.schema_name == "main"

    def test_fetch_views_strips_create(self) -> None:
        """Only the SELECT part of the stored view is kept."""
        connection = _connection("sqlite")
        connection.select_all.return_value = [
            {"name": "recent", "sql": "CREATE VIEW recent AS SELECT * FROM posts ORDER BY id DESC"}
        ]

        [view] = SqliteAdapter(connection).fetch_views()
        assert view.definition == "SELECT * FROM posts ORDER BY id DESC"

    def test_fetch_triggers_parses_timing(self) -> None:
        """Timing and event are read from the trigger text."""
        connection = _connection("sqlite")
        connection.select_all.return_value = [
            {
                "name": "touch",
                "table_name": "posts",
                "sql": "CREATE TRIGGER touch BEFORE UPDATE ON posts BEGIN SELECT 1; END",
            }
        ]

        [trigger] = SqliteAdapter(connection).fetch_triggers()
        assert (trigger.timing, trigger.event) == ("BEFORE", "UPDATE")

    def test_missing_migrations_table(self) -> None:
        """Without the migrations table no versions are read."""
        connection = _connection("sqlite")
        connection.select_value.return_value = 0

        assert SqliteAdapter(connection).fetch_migration_versions("schema_migrations") == []
        connection.select_all.assert_not_called()

    def test_migration_versions(self) -> None:
        """Versions are read from the quoted table."""
        connection = _connection("sqlite")
        connection.select_value.return_value = 1
        connection.select_all.return_value = [{"version": "20240101000000"}, {"version": 20240201000000}]

        versions = SqliteAdapter(connection).fetch_migration_versions("schema_migrations")

        assert versions == ["20240101000000", "20240201000000"]
        assert connection.select_all.call_args.args[0] == 'SELECT version FROM "schema_migrations" ORDER BY version'


# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------


class TestRegistry:
    """Adapter selection and caching."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("postgresql", "postgresql"),
            ("postgis", "postgresql"),
            ("mysql2", "mysql"),
            ("trilogy", "mysql"),
            ("mariadb", "mysql"),
            ("sqlite3", "sqlite"),
            ("SQLite", "sqlite"),
        ],
    )
    def test_detect_dialect(self, name: str, expected: str) -> None:
        """Driver names map to dialects."""
        assert detect_dialect(name) == expected

    def test_unknown_driver_raises(self) -> None:
        """Unsupported drivers fail immediately."""
        with pytest.raises(AdapterError, match="Unsupported database adapter: oracle"):
            AdapterRegistry().adapter_for(_connection("oracle"))

    def test_invalid_override_raises(self) -> None:
        """Overrides outside the valid set fail."""
        with pytest.raises(AdapterError, match="Invalid adapter override: mssql"):
            AdapterRegistry().adapter_for(_connection(), "mssql")

    def test_auto_detection(self) -> None:
        """auto picks the adapter from the connection."""
        registry = AdapterRegistry()
        assert isinstance(registry.adapter_for(_connection("postgresql")), PostgresqlAdapter)
        assert isinstance(registry.adapter_for(_connection("mysql2")), MysqlAdapter)
        assert isinstance(registry.adapter_for(_connection("sqlite3")), SqliteAdapter)

    def test_override_wins(self) -> None:
        """An explicit override ignores the reported name."""
        adapter = AdapterRegistry().adapter_for(_connection("postgis"), "sqlite")
        assert isinstance(adapter, SqliteAdapter)

    def test_schemas_reach_postgresql(self) -> None:
        """Registry schemas configure new PostgreSQL adapters."""
        adapter = AdapterRegistry(schemas=["app", "audit"]).adapter_for(_connection())
        assert adapter.schemas == ["app", "audit"]

    def test_cache_per_connection_and_override(self) -> None:
        """Same connection and override returns the same adapter."""
        registry = AdapterRegistry()
        connection = _connection()

        first = registry.adapter_for(connection)
        assert registry.adapter_for(connection) is first
        assert registry.adapter_for(connection, "postgresql") is not first
        assert registry.adapter_for(_connection()) is not first

    def test_clear_cache(self) -> None:
        """clear_cache forces a new adapter."""
        registry = AdapterRegistry()
        connection = _connection()
        first = registry.adapter_for(connection)

        registry.clear_cache()
        assert registry.adapter_for(connection) is not first

    def test_released_adapters_leave_the_cache(self) -> None:
        """The cache does not keep adapters, or their connections, alive."""
        registry = AdapterRegistry()
        connection = _connection()
        connection_ref = weakref.ref(connection)

        adapter = registry.adapter_for(connection)
        assert len(registry) == 1

        del adapter, connection
        gc.collect()

        assert len(registry) == 0
        assert connection_ref() is None

    def test_concurrent_lookups_share_one_adapter(self) -> None:
        """Threads racing on one connection get one adapter."""
        registry = AdapterRegistry()
        connection = _connection()
        results = []

        def lookup() -> None:
            results.append(registry.adapter_for(connection))

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(adapter) for adapter in results}) == 1
