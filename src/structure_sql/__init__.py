"""structure-sql: deterministic SQL schema dumps for PostgreSQL, MySQL and SQLite.

Introspects a live database through a dialect adapter, renders every schema
object as canonical DDL, and writes it as one clean file or as a chunked
directory tree suited to version control.

Usage:
    from structure_sql import Dumper, DumpConfig, load_dump_config
    from structure_sql import AdapterRegistry, DependencyResolver
    from structure_sql.connection import connect
"""

__version__ = "0.1.0"

# Adapters
from structure_sql.adapters.base import SchemaAdapter
from structure_sql.adapters.registry import AdapterRegistry

# Config
from structure_sql.config.loader import load_dump_config
from structure_sql.config.models import DumpConfig, build_config

# Connections
from structure_sql.connection import DatabaseConnection, SqlAlchemyConnection, connect

# Pipeline
from structure_sql.dependency_resolver import DependencyResolver
from structure_sql.dumper import Dumper
from structure_sql.file_writer import FileWriter
from structure_sql.formatter import Formatter
from structure_sql.manifest import ManifestGenerator
from structure_sql.storage import StoreResult, VersionStore

# Errors
from structure_sql.errors import (
    AdapterError,
    ConfigurationError,
    DependencyCycleError,
    FileError,
    GenerationError,
    IntrospectionError,
    SchemaVersionError,
    StructureSqlError,
)

__all__ = [
    # Adapters
    "SchemaAdapter",
    "AdapterRegistry",
    # Config
    "load_dump_config",
    "build_config",
    "DumpConfig",
    # Connections
    "DatabaseConnection",
    "SqlAlchemyConnection",
    "connect",
    # Pipeline
    "Dumper",
    "DependencyResolver",
    "Formatter",
    "FileWriter",
    "ManifestGenerator",
    "VersionStore",
    "StoreResult",
    # Errors
    "StructureSqlError",
    "AdapterError",
    "IntrospectionError",
    "GenerationError",
    "ConfigurationError",
    "FileError",
    "SchemaVersionError",
    "DependencyCycleError",
]
