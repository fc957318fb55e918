"""Whitespace normalization for generated SQL.

The formatter is applied to the whole dump, and again to anything already
formatted, so ``format(format(s)) == format(s)`` must always hold.
"""

import re

from structure_sql.config.models import DumpConfig

# Section banners written by the dumper
SECTION_TITLES = (
    "Extensions",
    "PRAGMAs",
    "Custom Types",
    "Domains",
    "Functions",
    "Sequences",
    "Tables",
    "Indexes",
    "Foreign Keys",
    "Views",
    "Materialized Views",
    "Triggers",
    "Comments",
    "Schema Migrations",
)

_SECTION_BOUNDARY = re.compile(
    r"^(?=-- (?:" + "|".join(re.escape(title) for title in SECTION_TITLES) + r")$)",
    re.MULTILINE,
)
_BLANK_RUNS = re.compile(r"\n{3,}")


class Formatter:
    """Normalizes line endings, trailing whitespace and blank lines.

    Args:
        config: Dump configuration; ``add_section_spacing`` controls whether
            sections are separated by a blank line
    """

    def __init__(self, config: DumpConfig | None = None):
        self.config = config or DumpConfig()

    def format(self, content: str) -> str:
        """Format a complete dump.

        Example:
            >>> Formatter().format("-- Tables\\nCREATE TABLE a (id int);   \\n\\n\\n\\n-- Views\\n")
            '-- Tables\\nCREATE TABLE a (id int);\\n\\n-- Views\\n'
        """
        if not content.strip():
            return ""

        # Trim first so banner lines with trailing spaces still split
        trimmed = "\n".join(line.rstrip() for line in content.replace("\r\n", "\n").split("\n"))
        sections = [self.format_section(section) for section in _SECTION_BOUNDARY.split(trimmed)]
        separator = "\n\n" if self.config.add_section_spacing else "\n"
        joined = separator.join(section for section in sections if section)
        return _BLANK_RUNS.sub("\n\n", joined) + "\n"

    def format_section(self, section: str) -> str:
        """Right-trim lines, collapse blank runs and drop edge blank lines."""
        lines = [line.rstrip() for line in section.split("\n")]
        text = "\n".join(lines).strip("\n")
        return _BLANK_RUNS.sub("\n\n", text)
