"""CREATE MATERIALIZED VIEW generation."""

from structure_sql.generators.base import Generator, terminate
from structure_sql.schema.models import MaterializedView


class MaterializedViewGenerator(Generator):
    """Renders a materialized view followed by its indexes."""

    def generate(self, matview: MaterializedView) -> str:
        sql = (
            f"CREATE MATERIALIZED VIEW {self.qualified(matview.name, matview.schema_name)} AS\n"
            f"{terminate(matview.definition)}"
        )
        if matview.indexes:
            sql += "\n\n" + "\n".join(terminate(index) for index in matview.indexes)
        return sql
