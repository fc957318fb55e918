"""CREATE VIEW generation."""

from structure_sql.generators.base import Generator, terminate
from structure_sql.schema.models import View


class ViewGenerator(Generator):
    """Wraps a view's SELECT definition in a CREATE statement.

    SQLite has no CREATE OR REPLACE VIEW, so it gets IF NOT EXISTS instead.
    """

    def generate(self, view: View) -> str:
        keyword = "CREATE VIEW IF NOT EXISTS" if self.dialect == "sqlite" else "CREATE OR REPLACE VIEW"
        return f"{keyword} {self.qualified(view.name, view.schema_name)} AS\n{terminate(view.definition)}"
