"""CREATE INDEX generation."""

from structure_sql.errors import GenerationError
from structure_sql.generators.base import Generator, terminate
from structure_sql.schema.models import Index

# MySQL index types that change the CREATE keyword
_INDEX_KINDS = {"FULLTEXT", "SPATIAL"}


class IndexGenerator(Generator):
    """Renders an index from its catalog definition, or from its parts."""

    def generate(self, index: Index) -> str:
        if index.definition:
            return terminate(index.definition)

        index_type = (index.index_type or "").upper()
        if index_type in _INDEX_KINDS:
            keyword = f"{index_type} INDEX"
        elif index.unique:
            keyword = "UNIQUE INDEX"
        else:
            keyword = "INDEX"

        if not index.columns:
            raise GenerationError(f"Index {index.name} has no key parts")

        key_parts = ", ".join(
            part if part.startswith("(") else self.quote(part) for part in index.columns
        )
        return (
            f"CREATE {keyword} {self.quote(index.name)} "
            f"ON {self.qualified(index.table, index.schema_name)} ({key_parts});"
        )
