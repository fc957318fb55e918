"""Schema dump orchestration.

The dumper asks the adapter for every object kind the configuration and the
dialect allow, renders each object with its generator, and writes the result
either as one formatted file or as a chunked directory tree.

Usage:
    from structure_sql import DumpConfig, Dumper
    from structure_sql.connection import connect

    with connect("postgresql://localhost/app") as connection:
        content = Dumper(connection, DumpConfig(output_path="db/structure.sql")).dump()
"""

import logging
import re
from pathlib import Path

from structure_sql.adapters.base import SchemaAdapter
from structure_sql.adapters.registry import AdapterRegistry
from structure_sql.config.models import DumpConfig
from structure_sql.connection import DatabaseConnection
from structure_sql.dependency_resolver import DependencyResolver
from structure_sql.errors import FileError
from structure_sql.file_writer import MANIFEST_FILENAME, FileWriter
from structure_sql.formatter import Formatter
from structure_sql.generators import (
    CommentGenerator,
    ExtensionGenerator,
    ForeignKeyGenerator,
    FunctionGenerator,
    IndexGenerator,
    MaterializedViewGenerator,
    PragmaGenerator,
    SequenceGenerator,
    TableGenerator,
    TriggerGenerator,
    TypeGenerator,
    ViewGenerator,
)
from structure_sql.generators.base import quote_literal
from structure_sql.manifest import ManifestGenerator
from structure_sql.schema.models import MaterializedView, Table, View
from structure_sql.storage import StoreResult, VersionStore, content_hash

logger = logging.getLogger(__name__)

# Section key -> banner comment, in dump order
SECTION_TITLES = {
    "extensions": "Extensions",
    "types": "Custom Types",
    "domains": "Domains",
    "functions": "Functions",
    "sequences": "Sequences",
    "tables": "Tables",
    "indexes": "Indexes",
    "foreign_keys": "Foreign Keys",
    "views": "Views",
    "materialized_views": "Materialized Views",
    "triggers": "Triggers",
    "comments": "Comments",
    "migrations": "Schema Migrations",
}

# Sections whose statements are one-liners and are not blank-line separated
COMPACT_SECTIONS = frozenset(
    {"extensions", "types", "domains", "sequences", "indexes", "foreign_keys", "comments"}
)

POSTGRESQL_TABLES_PREAMBLE = (
    "SET default_tablespace = '';",
    "SET default_table_access_method = heap;",
)


class Dumper:
    """Introspects a database and writes its schema as SQL.

    Args:
        connection: Live connection to dump
        config: Dump configuration (default: ``DumpConfig()``)
        registry: Adapter registry; a new one scoped to ``config.schemas``
            when omitted
        version_store: Optional sink for stored schema versions

    Raises:
        AdapterError: If no adapter matches the connection
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        config: DumpConfig | None = None,
        registry: AdapterRegistry | None = None,
        version_store: VersionStore | None = None,
    ):
        self.connection = connection
        self.config = config or DumpConfig()
        self.registry = registry if registry is not None else AdapterRegistry(schemas=self.config.schemas)
        self.adapter: SchemaAdapter = self.registry.adapter_for(connection, self.config.adapter)
        self.dialect = self.adapter.dialect
        self.version_store = version_store
        self.last_store_result: StoreResult | None = None

    def __repr__(self) -> str:
        return f"Dumper(dialect={self.dialect!r}, output_path={self.config.output_path!r})"

    # ========================================================================
    # Entry points
    # ========================================================================

    def dump(self, store_version: bool | None = None) -> str | dict[str, str]:
        """Dump the schema to ``config.output_path``.

        Args:
            store_version: Hand the dump to the version store. None defers to
                ``config.enable_schema_versions``.

        Returns:
            The formatted dump in single-file mode, or the relative path ->
            content map of written files in multi-file mode

        Raises:
            IntrospectionError: If a required catalog query fails
            FileError: If output cannot be written
        """
        writer = FileWriter(self.config)
        mode = writer.detect_output_mode(self.config.output_path)
        logger.debug(f"Dumping {self.dialect} schema ({mode}) to {self.config.output_path}")

        if mode == "multi_file":
            return self._dump_multi_file(writer, store_version)
        return self._dump_single_file(writer, store_version)

    def generate(self) -> str:
        """Introspect and render the single-file dump without writing it."""
        return self.render(self.collect_sections())

    # ========================================================================
    # Output modes
    # ========================================================================

    def _dump_single_file(self, writer: FileWriter, store_version: bool | None) -> str:
        content = self.generate()
        writer.write_single_file(self.config.output_path, content)

        if self._should_store(store_version):
            self.store(content)
        return content

    def _dump_multi_file(self, writer: FileWriter, store_version: bool | None) -> dict[str, str]:
        sections = self.collect_sections(multi_file=True)
        file_map = writer.write_multi_file(self.config.output_path, sections, self.multi_file_header())

        if self.config.generate_manifest:
            manifest_path = Path(self.config.output_path) / MANIFEST_FILENAME
            try:
                manifest_path.write_text(ManifestGenerator(self.config).generate(file_map), encoding="utf-8")
            except OSError as e:
                raise FileError(f"Failed to write {manifest_path}: {e}") from e

        if self._should_store(store_version):
            self.store(self.render(sections))
        return file_map

    # ========================================================================
    # Rendering
    # ========================================================================

    def render(self, sections: dict[str, list[str]]) -> str:
        """Join collected sections into one formatted single-file dump."""
        parts = ["\n".join(self.header_statements())]

        for key, statements in sections.items():
            if key == "tables":
                if self.dialect == "postgresql":
                    parts.append("\n\n".join(POSTGRESQL_TABLES_PREAMBLE))
            elif not statements:
                continue

            separator = "\n" if key in COMPACT_SECTIONS else "\n\n"
            parts.append("\n".join([f"-- {self._section_title(key)}", separator.join(statements)]).rstrip())

        parts.extend(self.footer_statements())
        return Formatter(self.config).format("\n\n".join(part for part in parts if part))

    def header_statements(self) -> list[str]:
        """Session settings that open every dump."""
        if self.dialect == "postgresql":
            return ["SET client_encoding = 'UTF8';", "SET standard_conforming_strings = on;"]
        if self.dialect == "mysql":
            return [f"SET NAMES {self.config.mysql.charset};"]
        if self.config.sqlite.foreign_keys:
            return ["PRAGMA foreign_keys = ON;", "PRAGMA defer_foreign_keys = ON;"]
        return []

    def footer_statements(self) -> list[str]:
        if self.dialect == "postgresql":
            return [f"SET search_path TO {self.config.search_path};"]
        return []

    def multi_file_header(self) -> str:
        """Content of ``_header.sql``: everything loaded before the numbered directories."""
        statements = self.header_statements()
        if self.dialect == "postgresql":
            statements = statements + list(POSTGRESQL_TABLES_PREAMBLE) + self.footer_statements()
        return "\n".join(statements)

    def _section_title(self, key: str) -> str:
        if key == "extensions" and self.dialect == "sqlite":
            return "PRAGMAs"
        return SECTION_TITLES[key]

    # ========================================================================
    # Sections
    # ========================================================================

    def collect_sections(self, multi_file: bool = False) -> dict[str, list[str]]:
        """Introspect and render every enabled section, in dump order.

        Empty sections are omitted, except ``tables`` which is always
        present.

        Args:
            multi_file: Batch migration versions to fit chunked files

        Returns:
            Section key -> rendered statements
        """
        config = self.config
        adapter = self.adapter
        sections: dict[str, list[str]] = {}

        if config.include_extensions:
            sections["extensions"] = self._extensions_section()

        if (config.include_custom_types and adapter.supports_custom_types()) or (
            config.include_domains and adapter.supports_domains()
        ):
            types = adapter.fetch_custom_types()
            generator = TypeGenerator(config, self.dialect)
            if config.include_custom_types and adapter.supports_custom_types():
                rendered = [generator.generate(t) for t in types if t.kind != "domain"]
                sections["types"] = [sql for sql in rendered if sql is not None]
            if config.include_domains and adapter.supports_domains():
                sections["domains"] = [generator.generate(t) for t in types if t.kind == "domain"]

        if config.include_functions and adapter.supports_functions():
            generator = FunctionGenerator(config, self.dialect)
            sections["functions"] = [generator.generate(f) for f in adapter.fetch_functions()]

        if config.include_sequences and adapter.supports_sequences():
            generator = SequenceGenerator(config, self.dialect)
            sections["sequences"] = [generator.generate(s) for s in adapter.fetch_sequences()]

        generator = TableGenerator(config, self.dialect)
        sections["tables"] = [generator.generate(t) for t in self._tables()]

        generator = IndexGenerator(config, self.dialect)
        sections["indexes"] = [generator.generate(i) for i in adapter.fetch_indexes()]

        if self.dialect != "sqlite":
            generator = ForeignKeyGenerator(config, self.dialect)
            sections["foreign_keys"] = [generator.generate(fk) for fk in adapter.fetch_foreign_keys()]

        if config.include_views:
            generator = ViewGenerator(config, self.dialect)
            views = order_by_dependencies(adapter.fetch_views(), "view")
            sections["views"] = [generator.generate(v) for v in views]

        if config.include_materialized_views and adapter.supports_materialized_views():
            generator = MaterializedViewGenerator(config, self.dialect)
            matviews = order_by_dependencies(adapter.fetch_materialized_views(), "materialized_view")
            sections["materialized_views"] = [generator.generate(mv) for mv in matviews]

        if config.include_triggers and adapter.supports_triggers():
            generator = TriggerGenerator(config, self.dialect)
            sections["triggers"] = [generator.generate(t) for t in adapter.fetch_triggers()]

        if config.include_comments and adapter.supports_comments():
            generator = CommentGenerator(config, self.dialect)
            sections["comments"] = [generator.generate(c) for c in adapter.fetch_comments()]

        sections["migrations"] = self._migrations_section(multi_file)

        for key, statements in sections.items():
            logger.debug(f"Section {key}: {len(statements)} statements")
        return {key: statements for key, statements in sections.items() if statements or key == "tables"}

    def _extensions_section(self) -> list[str]:
        if self.adapter.supports_extensions():
            generator = ExtensionGenerator(self.config, self.dialect)
            return [generator.generate(e) for e in self.adapter.fetch_extensions()]

        if self.adapter.supports_pragmas():
            generator = PragmaGenerator(self.config, self.dialect)
            # Already set by the header
            skipped = {"foreign_keys", "defer_foreign_keys"} if self.header_statements() else set()
            return [generator.generate(p) for p in self.adapter.fetch_pragmas() if p.name not in skipped]

        return []

    def _tables(self) -> list[Table]:
        tables = self.adapter.fetch_tables()
        if self.config.sort_tables:
            tables = sorted(tables, key=lambda table: table.name)

        if self.dialect == "sqlite":
            # SQLite cannot ALTER TABLE ... ADD CONSTRAINT, so keys go inline
            by_table: dict[str, list] = {}
            for fk in self.adapter.fetch_foreign_keys():
                by_table.setdefault(fk.table, []).append(fk)
            tables = [
                table.model_copy(update={"foreign_keys": by_table.get(table.name, [])})
                for table in tables
            ]
        return tables

    def _migrations_section(self, multi_file: bool) -> list[str]:
        versions = self.adapter.fetch_migration_versions(self.config.migrations_table)
        if not versions:
            return []
        if not multi_file:
            return [self.migration_insert(versions)]

        # Leaves room for the INSERT and conflict lines within one file
        batch_size = max(self.config.max_lines_per_file - 3, 1)
        return [
            self.migration_insert(versions[start:start + batch_size])
            for start in range(0, len(versions), batch_size)
        ]

    def migration_insert(self, versions: list[str]) -> str:
        """Render an idempotent INSERT of migration versions.

        Example:
            >>> dumper.migration_insert(["20240101000000"])  # PostgreSQL
            'INSERT INTO "schema_migrations" (version) VALUES\\n(\\'20240101000000\\')\\nON CONFLICT DO NOTHING;'
        """
        quote = "`" if self.dialect == "mysql" else '"'
        table = f"{quote}{self.config.migrations_table}{quote}"
        values = ",\n".join(f"({quote_literal(version)})" for version in versions)

        if self.dialect == "postgresql":
            return f"INSERT INTO {table} (version) VALUES\n{values}\nON CONFLICT DO NOTHING;"
        if self.dialect == "mysql":
            return f"INSERT IGNORE INTO {table} (version) VALUES\n{values};"
        return f"INSERT OR IGNORE INTO {table} (version) VALUES\n{values};"

    # ========================================================================
    # Version storage
    # ========================================================================

    def _should_store(self, store_version: bool | None) -> bool:
        if store_version is None:
            return self.config.enable_schema_versions
        return store_version

    def store(self, content: str) -> StoreResult | None:
        """Hand a finished dump to the version store.

        Store failures are logged and never fail the dump.

        Returns:
            StoreResult, or None when there is no store or storing failed
        """
        self.last_store_result = None
        if self.version_store is None:
            logger.warning("Schema version storage requested but no version store is configured")
            return None

        digest = content_hash(content)
        try:
            version_id = self.version_store.store(content, "sql", self.adapter.database_version)
            count = getattr(self.version_store, "count", None)
            total_count = count() if callable(count) else None
        except Exception as e:
            logger.warning(f"Failed to store schema version: {e}")
            return None

        self.last_store_result = StoreResult(
            skipped=version_id is None,
            version_id=version_id,
            hash=digest,
            total_count=total_count,
        )
        if version_id is None:
            logger.info(f"Schema version {digest[:12]} not stored (unchanged)")
        else:
            logger.info(f"Stored schema version {version_id} ({digest[:12]})")
        return self.last_store_result


def order_by_dependencies(
    objects: list[View] | list[MaterializedView], object_type: str
) -> list[View] | list[MaterializedView]:
    """Order views so each comes after the views it selects from.

    A view depends on every other object in ``objects`` whose name appears
    as a whole word in its definition. Independent views stay in
    alphabetical order.
    """
    ordered = sorted(objects, key=lambda obj: (obj.schema_name, obj.name))
    by_key = {f"{obj.schema_name}.{obj.name}": obj for obj in ordered}
    patterns = {key: re.compile(rf"\b{re.escape(obj.name)}\b") for key, obj in by_key.items()}

    resolver = DependencyResolver()
    for key, obj in by_key.items():
        depends_on = [
            other for other, pattern in patterns.items() if other != key and pattern.search(obj.definition)
        ]
        resolver.add_object(key, object_type, depends_on)

    return [by_key[key] for key in resolver.resolve()]
