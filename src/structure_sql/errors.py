"""Exception hierarchy for structure_sql.

All errors raised by the library derive from ``StructureSqlError`` so callers
can catch a single base class:

- AdapterError: dialect selection or dialect-specific failures
- IntrospectionError: a catalog query failed or returned an unusable shape
- GenerationError: a generator received a malformed entity
- ConfigurationError: an invalid configuration value
- FileError: an output target could not be written
"""


class StructureSqlError(Exception):
    """Base class for all structure_sql errors."""

    pass


class AdapterError(StructureSqlError):
    """Raised when no adapter can serve a connection or override."""

    pass


class IntrospectionError(StructureSqlError):
    """Raised when a required catalog query fails."""

    pass


class GenerationError(StructureSqlError):
    """Raised when an entity cannot be rendered as DDL."""

    pass


class ConfigurationError(StructureSqlError):
    """Raised when a configuration value is invalid."""

    pass


class FileError(StructureSqlError):
    """Raised when dump output cannot be written."""

    pass


class SchemaVersionError(StructureSqlError):
    """Raised by version stores when a dump cannot be persisted."""

    pass


class DependencyCycleError(GenerationError):
    """Raised by strict dependency resolution when a cycle is found."""

    def __init__(self, cycles: list[list[str]]):
        self.cycles = cycles
        rendered = "; ".join(" -> ".join(cycle) for cycle in cycles)
        super().__init__(f"Dependency cycle detected: {rendered}")
