"""Pydantic models for introspected schema objects.

Every model is a frozen snapshot: adapters build them once per dump run and
nothing downstream mutates them. Dialect-specific details are normalized
before construction (column types, action names, schema names).
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ReferentialAction = Literal["CASCADE", "SET NULL", "SET DEFAULT", "RESTRICT", "NO ACTION"]
CommentTarget = Literal["table", "column", "index", "view", "function"]


class SchemaObject(BaseModel):
    """Base for read-only schema snapshots."""

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Tables
# ============================================================================


class Column(SchemaObject):
    """A table column with its dialect-normalized type.

    Example:
        >>> col = Column(name="email", type="varchar(255)", nullable=False)
        >>> col.default is None
        True
    """

    name: str
    type: str
    nullable: bool = True
    default: str | None = None
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    auto_increment: bool = False
    identity: str | None = None  # ALWAYS or BY DEFAULT
    generated: str | None = None  # generation expression
    generated_kind: Literal["STORED", "VIRTUAL"] | None = None


class Constraint(SchemaObject):
    """A CHECK or UNIQUE table constraint.

    ``definition`` is the raw constraint body, e.g. ``CHECK ((price > 0))``.
    """

    name: str
    kind: Literal["check", "unique", "unknown"]
    definition: str


class ForeignKey(SchemaObject):
    """A foreign key. Composite keys list their columns comma-separated."""

    name: str
    table: str
    column: str
    foreign_table: str
    foreign_column: str
    on_update: ReferentialAction = "NO ACTION"
    on_delete: ReferentialAction = "NO ACTION"
    schema_name: str = "public"
    foreign_schema_name: str = "public"


class Table(SchemaObject):
    """A base table with ordered columns.

    Example:
        >>> table = Table(
        ...     name="users",
        ...     columns=[Column(name="id", type="bigint", nullable=False)],
        ...     primary_key=["id"],
        ... )
        >>> table.column_names
        ['id']
    """

    name: str
    schema_name: str = "public"
    columns: list[Column] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    # Only populated for dialects that declare foreign keys inline (SQLite)
    foreign_keys: list[ForeignKey] = Field(default_factory=list)

    @model_validator(mode="after")
    def _primary_key_columns_exist(self) -> "Table":
        missing = [name for name in self.primary_key if name not in self.column_names]
        if missing:
            raise ValueError(
                f"Primary key of {self.name} references unknown columns: {', '.join(missing)}"
            )
        return self

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]


class Index(SchemaObject):
    """A secondary index.

    ``definition`` holds the catalog's own CREATE INDEX text when the dialect
    provides one; otherwise the generator derives it from the other fields.
    Expression key parts are stored parenthesized, e.g. ``(lower(email))``.
    """

    name: str
    table: str
    schema_name: str = "public"
    columns: list[str] = Field(default_factory=list)
    unique: bool = False
    index_type: str | None = None
    definition: str | None = None


# ============================================================================
# Views and Routines
# ============================================================================


class View(SchemaObject):
    """A view. ``definition`` is the bare SELECT."""

    name: str
    schema_name: str = "public"
    definition: str


class MaterializedView(SchemaObject):
    """A materialized view with the CREATE INDEX statements built on it."""

    name: str
    schema_name: str = "public"
    definition: str
    indexes: list[str] = Field(default_factory=list)


class Function(SchemaObject):
    """A stored function or procedure. ``definition`` is the full statement."""

    name: str
    schema_name: str = "public"
    definition: str
    arguments: str = ""
    return_type: str | None = None
    language: str | None = None
    volatility: Literal["IMMUTABLE", "STABLE", "VOLATILE"] | None = None
    strict: bool = False
    security_definer: bool = False


class Trigger(SchemaObject):
    """A trigger. ``definition`` is the full CREATE TRIGGER statement when known."""

    name: str
    schema_name: str = "public"
    table_name: str
    timing: str
    event: str
    definition: str | None = None
    function_name: str | None = None


# ============================================================================
# Types, Sequences, Extensions
# ============================================================================


class Sequence(SchemaObject):
    """A standalone sequence."""

    name: str
    schema_name: str = "public"
    start_value: int | None = None
    increment: int = 1
    min_value: int | None = None
    max_value: int | None = None
    cache_size: int = 1
    cycle: bool = False


class CompositeAttribute(SchemaObject):
    """One field of a composite type."""

    name: str
    type: str


class CustomType(SchemaObject):
    """An enum, composite or domain type.

    Only the payload matching ``kind`` is meaningful:
    enum -> values, composite -> attributes, domain -> base_type + constraint.
    """

    name: str
    schema_name: str = "public"
    kind: str
    values: list[str] = Field(default_factory=list)
    attributes: list[CompositeAttribute] = Field(default_factory=list)
    base_type: str | None = None
    constraint: str | None = None


class Extension(SchemaObject):
    """An installed PostgreSQL extension."""

    name: str
    version: str | None = None
    schema_name: str = "public"


class Pragma(SchemaObject):
    """A non-default SQLite PRAGMA setting with its SET statement."""

    name: str
    value: str
    sql: str


class Comment(SchemaObject):
    """A comment attached to a schema object.

    Column comments use ``table.column`` as ``object_name``.
    """

    object_type: CommentTarget
    object_name: str
    comment: str
    schema_name: str = "public"
