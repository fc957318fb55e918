"""COMMENT ON generation.

PostgreSQL supports comments on every object kind. MySQL only stores table
and column comments, and column comments can only be set by restating the
full column definition; every other case renders a SQL comment explaining
why nothing is emitted.
"""

from structure_sql.errors import GenerationError
from structure_sql.generators.base import DEFAULT_SCHEMAS, Generator, quote_literal
from structure_sql.schema.models import Comment

_PG_TARGETS = {
    "table": "TABLE",
    "column": "COLUMN",
    "index": "INDEX",
    "view": "VIEW",
    "function": "FUNCTION",
}


class CommentGenerator(Generator):
    def generate(self, comment: Comment) -> str:
        if comment.object_type not in _PG_TARGETS:
            raise GenerationError(f"Unknown comment target: {comment.object_type}")

        if self.dialect == "mysql":
            return self._mysql(comment)
        return self._postgresql(comment)

    def _postgresql(self, comment: Comment) -> str:
        target = _PG_TARGETS[comment.object_type]
        if comment.object_type == "function":
            # name(args) signatures are already valid SQL
            name = comment.object_name
        else:
            name = ".".join(self.quote(part) for part in comment.object_name.split("."))
        if comment.schema_name not in DEFAULT_SCHEMAS:
            name = f"{self.quote(comment.schema_name)}.{name}"
        return f"COMMENT ON {target} {name} IS {quote_literal(comment.comment)};"

    def _mysql(self, comment: Comment) -> str:
        if comment.object_type == "table":
            return f"ALTER TABLE {self.quote(comment.object_name)} COMMENT {quote_literal(comment.comment)};"
        if comment.object_type == "column":
            text = " ".join(comment.comment.split())
            return (
                f"-- Column comment on {comment.object_name}: {text}\n"
                f"-- MySQL requires MODIFY COLUMN with the full column definition to set it"
            )
        return f"-- MySQL does not support {comment.object_type} comments"
