"""CREATE EXTENSION and SQLite PRAGMA generation."""

from structure_sql.generators.base import Generator, quote_identifier, terminate
from structure_sql.schema.models import Extension, Pragma


class ExtensionGenerator(Generator):
    """Renders a PostgreSQL extension, keeping its schema when not public."""

    def generate(self, extension: Extension) -> str:
        sql = f"CREATE EXTENSION IF NOT EXISTS {quote_identifier(extension.name)}"
        if extension.schema_name and extension.schema_name != "public":
            sql += f" WITH SCHEMA {quote_identifier(extension.schema_name)}"
        return sql + ";"


class PragmaGenerator(Generator):
    def generate(self, pragma: Pragma) -> str:
        return terminate(pragma.sql)
