"""DDL generators, one per schema object kind.

Each generator turns one schema model into a SQL statement and never
touches the database.

Usage:
    >>> from structure_sql.generators import TableGenerator
    >>> sql = TableGenerator(config, dialect="postgresql").generate(table)
"""

from structure_sql.generators.base import Generator, quote_identifier, terminate
from structure_sql.generators.comment import CommentGenerator
from structure_sql.generators.extension import ExtensionGenerator, PragmaGenerator
from structure_sql.generators.foreign_key import ForeignKeyGenerator
from structure_sql.generators.function import FunctionGenerator
from structure_sql.generators.index import IndexGenerator
from structure_sql.generators.materialized_view import MaterializedViewGenerator
from structure_sql.generators.sequence import SequenceGenerator
from structure_sql.generators.table import TableGenerator, format_default
from structure_sql.generators.trigger import TriggerGenerator
from structure_sql.generators.types import TypeGenerator
from structure_sql.generators.view import ViewGenerator

__all__ = [
    "Generator",
    "quote_identifier",
    "terminate",
    "format_default",
    "TableGenerator",
    "IndexGenerator",
    "ForeignKeyGenerator",
    "ViewGenerator",
    "MaterializedViewGenerator",
    "FunctionGenerator",
    "TriggerGenerator",
    "SequenceGenerator",
    "TypeGenerator",
    "ExtensionGenerator",
    "PragmaGenerator",
    "CommentGenerator",
]
