"""Pydantic models for dump configuration."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from structure_sql.errors import ConfigurationError

AdapterName = Literal["auto", "postgresql", "mysql", "sqlite"]


# ============================================================================
# Validation
# ============================================================================


def configuration_error(error: ValidationError) -> ConfigurationError:
    """Summarize a pydantic ValidationError as a ConfigurationError."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )
    return ConfigurationError(f"Invalid configuration: {problems}")


class SettingsModel(BaseModel):
    """Base for configuration models.

    Invalid values raise ConfigurationError on construction and on
    assignment.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise configuration_error(e) from e

    def __setattr__(self, name: str, value: Any) -> None:
        try:
            super().__setattr__(name, value)
        except ValidationError as e:
            raise configuration_error(e) from e


# ============================================================================
# Dialect Settings
# ============================================================================


class MysqlSettings(SettingsModel):
    """MySQL-specific output settings."""

    charset: str = "utf8mb4"


class SqliteSettings(SettingsModel):
    """SQLite-specific output settings."""

    foreign_keys: bool = True


# ============================================================================
# Dump Configuration
# ============================================================================


class DumpConfig(SettingsModel):
    """Options consumed by the dumper, generators and file writer.

    Values are validated on construction and on assignment; an invalid
    option raises ConfigurationError before any database work starts.

    Example:
        >>> config = DumpConfig(output_path="db/schema", max_lines_per_file=200)
        >>> config.overflow_threshold
        1.1
    """

    output_path: str = "db/structure.sql"
    search_path: str = '"$user", public'

    # Section toggles
    include_extensions: bool = True
    include_functions: bool = True
    include_triggers: bool = True
    include_views: bool = True
    include_materialized_views: bool = True
    include_domains: bool = True
    include_sequences: bool = True
    include_custom_types: bool = True
    include_comments: bool = False

    # Version storage
    enable_schema_versions: bool = False
    schema_versions_limit: int = 10

    schemas: list[str] = Field(default_factory=lambda: ["public"])
    migrations_table: str = "schema_migrations"

    # Formatting
    indent_size: int = 2
    add_section_spacing: bool = True
    sort_tables: bool = True

    # Multi-file output
    max_lines_per_file: int = 500
    overflow_threshold: float = 1.1
    generate_manifest: bool = True

    adapter: AdapterName = "auto"

    mysql: MysqlSettings = Field(default_factory=MysqlSettings)
    sqlite: SqliteSettings = Field(default_factory=SqliteSettings)

    @field_validator("output_path", "migrations_table")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("schema_versions_limit")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be a non-negative integer (0 = unlimited)")
        return value

    @field_validator("indent_size", "max_lines_per_file")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("overflow_threshold")
    @classmethod
    def _threshold(cls, value: float) -> float:
        if value < 1.0:
            raise ValueError("must be at least 1.0")
        return value

    @field_validator("schemas")
    @classmethod
    def _schemas_present(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("must list at least one schema")
        return value

    @property
    def overflow_limit(self) -> int:
        """Hard line cap for a chunk before a new file is started."""
        return int(self.max_lines_per_file * self.overflow_threshold)


def build_config(**options: object) -> DumpConfig:
    """Build a DumpConfig from keyword options.

    Args:
        **options: DumpConfig field values

    Returns:
        Validated DumpConfig

    Raises:
        ConfigurationError: If any option is unknown or invalid
    """
    return DumpConfig(**options)
