"""TOML loader for dump configuration."""

import logging
import tomllib
from pathlib import Path

from structure_sql.config.models import DumpConfig, build_config
from structure_sql.errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_dump_config(config_path: Path | str | None = None) -> DumpConfig:
    """Load dump configuration from the ``[dump]`` table of a TOML file.

    Args:
        config_path: Path to the TOML file (default: structure_sql.toml in the
            current working directory)

    Returns:
        Validated DumpConfig

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigurationError: If the file is not valid TOML or holds invalid values

    Example:
        >>> config = load_dump_config("structure_sql.toml")
    """
    if config_path is None:
        config_path = Path.cwd() / "structure_sql.toml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Dump config not found: {config_path}\n"
            f"Create it with a [dump] table, for example:\n"
            f'  [dump]\n  output_path = "db/structure.sql"'
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

    options = data.get("dump", {})
    logger.debug(f"Loaded {len(options)} dump options from {config_path}")
    return build_config(**options)
