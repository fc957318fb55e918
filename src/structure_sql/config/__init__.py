"""Configuration: dump options and TOML loading.

Usage:
    >>> from structure_sql.config import DumpConfig, load_dump_config
"""

from structure_sql.config.loader import load_dump_config
from structure_sql.config.models import DumpConfig, MysqlSettings, SqliteSettings, build_config

__all__ = ["load_dump_config", "build_config", "DumpConfig", "MysqlSettings", "SqliteSettings"]
