"""Dialect-neutral schema models produced by the adapters.

Usage:
    from structure_sql.schema import Table, Column, Index, ForeignKey
"""

from structure_sql.schema.models import (
    Column,
    Comment,
    CompositeAttribute,
    Constraint,
    CustomType,
    Extension,
    ForeignKey,
    Function,
    Index,
    MaterializedView,
    Pragma,
    Sequence,
    Table,
    Trigger,
    View,
)

__all__ = [
    "Table",
    "Column",
    "Constraint",
    "ForeignKey",
    "Index",
    "View",
    "MaterializedView",
    "Function",
    "Trigger",
    "Sequence",
    "CustomType",
    "CompositeAttribute",
    "Extension",
    "Pragma",
    "Comment",
]
