"""ALTER TABLE ... ADD CONSTRAINT ... FOREIGN KEY generation."""

from structure_sql.generators.base import Generator
from structure_sql.schema.models import ForeignKey

VALID_ACTIONS = ("CASCADE", "SET NULL", "SET DEFAULT", "RESTRICT", "NO ACTION")


def format_action(action: str | None) -> str:
    """Normalize a referential action; unknown values become NO ACTION."""
    normalized = (action or "").upper()
    return normalized if normalized in VALID_ACTIONS else "NO ACTION"


def render_actions(fk: ForeignKey) -> str:
    """ON DELETE / ON UPDATE clauses, omitting the NO ACTION default."""
    clauses = ""
    on_delete = format_action(fk.on_delete)
    if on_delete != "NO ACTION":
        clauses += f" ON DELETE {on_delete}"
    on_update = format_action(fk.on_update)
    if on_update != "NO ACTION":
        clauses += f" ON UPDATE {on_update}"
    return clauses


class ForeignKeyGenerator(Generator):
    """Renders a foreign key as a standalone ALTER TABLE statement."""

    def generate(self, fk: ForeignKey) -> str:
        references = self.qualified(fk.foreign_table, fk.foreign_schema_name)
        if fk.foreign_column:
            references += f" ({self.quote_list(fk.foreign_column)})"
        return (
            f"ALTER TABLE {self.qualified(fk.table, fk.schema_name)} "
            f"ADD CONSTRAINT {self.quote(fk.name)} "
            f"FOREIGN KEY ({self.quote_list(fk.column)}) "
            f"REFERENCES {references}{render_actions(fk)};"
        )
