"""Shared rendering helpers for the DDL generators.

Identifiers are quoted only when they need it: anything that is not a
lowercase bare word, or that collides with a reserved word. MySQL quotes with
backticks, PostgreSQL and SQLite with double quotes.
"""

import re

from structure_sql.config.models import DumpConfig

# Schemas that are left implicit in generated names
DEFAULT_SCHEMAS = ("public", "main")

RESERVED_WORDS = frozenset(
    {
        "all", "alter", "and", "any", "as", "asc", "between", "by", "case", "cast",
        "check", "column", "constraint", "create", "cross", "current_date",
        "current_time", "current_timestamp", "current_user", "default", "delete",
        "desc", "distinct", "drop", "else", "end", "except", "exists", "false",
        "fetch", "for", "foreign", "from", "full", "grant", "group", "having", "in",
        "index", "inner", "insert", "intersect", "into", "is", "join", "key", "left",
        "like", "limit", "natural", "not", "null", "offset", "on", "or", "order",
        "outer", "primary", "references", "right", "select", "session_user", "set",
        "table", "then", "to", "trigger", "true", "union", "unique", "update", "user",
        "using", "values", "view", "when", "where", "window", "with",
    }
)

_BARE_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_$]*$")


def quote_identifier(name: str, dialect: str = "postgresql") -> str:
    """Quote an identifier when it is not a plain lowercase word.

    Example:
        >>> quote_identifier("users")
        'users'
        >>> quote_identifier("order", "mysql")
        '`order`'
    """
    if _BARE_IDENTIFIER.match(name) and name not in RESERVED_WORDS:
        return name
    quote = "`" if dialect == "mysql" else '"'
    return f"{quote}{name.replace(quote, quote * 2)}{quote}"


def quote_literal(value: str) -> str:
    """Render a string as a single-quoted SQL literal."""
    return "'" + value.replace("'", "''") + "'"


def terminate(statement: str) -> str:
    """Strip a statement and end it with exactly one semicolon."""
    return statement.strip().rstrip(";").rstrip() + ";"


class Generator:
    """Base for generators: holds the config and target dialect.

    Args:
        config: Dump configuration (indentation, spacing)
        dialect: Target dialect: postgresql, mysql or sqlite
    """

    def __init__(self, config: DumpConfig | None = None, dialect: str = "postgresql"):
        self.config = config or DumpConfig()
        self.dialect = dialect

    def indent(self, text: str, level: int = 1) -> str:
        return " " * (self.config.indent_size * level) + text

    def quote(self, name: str) -> str:
        return quote_identifier(name, self.dialect)

    def quote_list(self, names: str | list[str]) -> str:
        """Quote a column list given as a list or a comma-separated string."""
        if isinstance(names, str):
            names = [name.strip() for name in names.split(",") if name.strip()]
        return ", ".join(self.quote(name) for name in names)

    def qualified(self, name: str, schema_name: str | None = None) -> str:
        """Quote a name, prefixing its schema unless it is a default one."""
        if schema_name and schema_name not in DEFAULT_SCHEMAS:
            return f"{self.quote(schema_name)}.{self.quote(name)}"
        return self.quote(name)
