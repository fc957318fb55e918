"""CREATE TABLE generation."""

import re

from structure_sql.errors import GenerationError
from structure_sql.generators.base import Generator, quote_literal
from structure_sql.generators.foreign_key import render_actions
from structure_sql.schema.models import Column, Constraint, ForeignKey, Table

_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")


def format_default(value: str) -> str:
    """Render a column default.

    Sequence calls, NULL, booleans, numbers, function calls and
    ``CURRENT_*`` keywords pass through; anything else is a string literal
    and is quoted unless it already is.

    Example:
        >>> format_default("pending")
        "'pending'"
        >>> format_default("CURRENT_TIMESTAMP")
        'CURRENT_TIMESTAMP'
    """
    if value.startswith("nextval("):
        return value
    if value.upper() == "NULL":
        return "NULL"
    if value.lower() in ("true", "false"):
        return value
    if _NUMERIC.match(value):
        return value
    if "(" in value or value.upper().startswith("CURRENT_"):
        return value
    return value if value.startswith("'") else quote_literal(value)


class TableGenerator(Generator):
    """Renders a table with its columns, primary key and constraints.

    SQLite tables also carry their foreign keys inline, since SQLite cannot
    add them afterwards.

    Example:
        >>> TableGenerator().generate(table)
        'CREATE TABLE users (\\n  id bigint NOT NULL,\\n  PRIMARY KEY (id)\\n);'
    """

    def generate(self, table: Table) -> str:
        if not table.columns:
            raise GenerationError(f"Table {table.name} has no columns")

        definitions = [self._column(column) for column in table.columns]

        inline_key = any(column.auto_increment for column in table.columns) and self.dialect == "sqlite"
        if table.primary_key and not inline_key:
            definitions.append(f"PRIMARY KEY ({self.quote_list(table.primary_key)})")

        definitions.extend(self._constraint(constraint) for constraint in table.constraints)

        if self.dialect == "sqlite":
            definitions.extend(self._foreign_key(fk) for fk in table.foreign_keys)

        body = ",\n".join(self.indent(definition) for definition in definitions)
        return f"CREATE TABLE {self.qualified(table.name, table.schema_name)} (\n{body}\n);"

    def _column(self, column: Column) -> str:
        parts = [self.quote(column.name)]
        if column.type:
            parts.append(column.type)

        if column.generated:
            parts.append(f"GENERATED ALWAYS AS ({column.generated}) {column.generated_kind or 'STORED'}")

        if column.auto_increment and self.dialect == "sqlite":
            parts.append("PRIMARY KEY AUTOINCREMENT")

        if not column.nullable:
            parts.append("NOT NULL")

        if column.default is not None:
            parts.append(f"DEFAULT {format_default(column.default)}")

        if column.identity:
            parts.append(f"GENERATED {column.identity} AS IDENTITY")

        if column.auto_increment and self.dialect == "mysql":
            parts.append("AUTO_INCREMENT")

        return " ".join(parts)

    def _constraint(self, constraint: Constraint) -> str:
        return f"CONSTRAINT {self.quote(constraint.name)} {constraint.definition}"

    def _foreign_key(self, fk: ForeignKey) -> str:
        references = self.qualified(fk.foreign_table, fk.foreign_schema_name)
        if fk.foreign_column:
            references += f" ({self.quote_list(fk.foreign_column)})"
        return f"FOREIGN KEY ({self.quote_list(fk.column)}) REFERENCES {references}{render_actions(fk)}"
