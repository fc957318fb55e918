"""Single-file and chunked multi-file output.

A dump goes to one file when the output path has an extension
(``db/structure.sql``), and to a directory tree otherwise (``db/schema`` or
``db/schema/``). The tree looks like::

    db/schema/
        _header.sql
        _manifest.json
        01_extensions/000001.sql
        05_tables/000001.sql
        05_tables/000002.sql
        ...

Directory numbers encode load order. Objects are packed greedily into
chunks of about ``max_lines_per_file`` lines and are never split.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Literal

from structure_sql.config.models import DumpConfig
from structure_sql.errors import FileError

logger = logging.getLogger(__name__)

OutputMode = Literal["single_file", "multi_file"]

# Section key -> numbered output directory
SECTION_DIRECTORIES = {
    "extensions": "01_extensions",
    "types": "02_types",
    "domains": "02_types",
    "functions": "03_functions",
    "sequences": "04_sequences",
    "tables": "05_tables",
    "indexes": "06_indexes",
    "foreign_keys": "07_foreign_keys",
    "views": "08_views",
    "materialized_views": "08_views",
    "triggers": "09_triggers",
    "comments": "10_comments",
    "migrations": "11_migrations",
}

HEADER_FILENAME = "_header.sql"
MANIFEST_FILENAME = "_manifest.json"

_SECTION_DIRECTORY = re.compile(r"^\d{2}_[a-z_]+$")


def count_lines(text: str) -> int:
    """Number of lines in ``text``; a trailing newline does not add one."""
    return len(text.splitlines())


def format_filename(index: int) -> str:
    """Zero-padded chunk filename (1 -> ``000001.sql``)."""
    return f"{index:06d}.sql"


class FileWriter:
    """Writes dump output as one file or a numbered directory tree.

    Args:
        config: Dump configuration (chunk sizes)
    """

    def __init__(self, config: DumpConfig | None = None):
        self.config = config or DumpConfig()

    # ------------------------------------------------------------------
    # Mode detection
    # ------------------------------------------------------------------

    def detect_output_mode(self, output_path: str | Path) -> OutputMode:
        """Pick single or multi-file output from the path's shape.

        Example:
            >>> FileWriter().detect_output_mode("db/structure.sql")
            'single_file'
            >>> FileWriter().detect_output_mode("db/schema/")
            'multi_file'
        """
        raw = str(output_path)
        if raw.endswith("/") or not Path(raw).suffix:
            return "multi_file"
        return "single_file"

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    def write_single_file(self, output_path: str | Path, content: str) -> Path:
        """Write the full dump to one file, creating parent directories.

        Raises:
            FileError: If the file cannot be written
        """
        path = Path(output_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileError(f"Failed to write {path}: {e}") from e

        logger.info(f"Wrote schema dump to {path} ({count_lines(content)} lines)")
        return path

    # ------------------------------------------------------------------
    # Multi file
    # ------------------------------------------------------------------

    def write_multi_file(
        self,
        base_path: str | Path,
        sections: dict[str, list[str]],
        header: str,
    ) -> dict[str, str]:
        """Write sections as chunked files under numbered directories.

        Numbered directories and the header from a previous dump are removed
        first, so the tree always reflects exactly one dump.

        Args:
            base_path: Output directory
            sections: Section key (see ``SECTION_DIRECTORIES``) -> ordered
                SQL statements
            header: Content of ``_header.sql``

        Returns:
            Relative path (``05_tables/000001.sql``) -> file content, in
            load order. The header is not included.

        Raises:
            FileError: If the tree cannot be written
        """
        base = Path(base_path)
        file_map = self.build_file_map(sections)

        try:
            base.mkdir(parents=True, exist_ok=True)
            self._clear_previous_output(base)
            (base / HEADER_FILENAME).write_text(header.rstrip("\n") + "\n", encoding="utf-8")

            for relative_path, content in file_map.items():
                path = base / relative_path
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileError(f"Failed to write schema files under {base}: {e}") from e

        logger.info(f"Wrote {len(file_map)} schema files under {base}")
        return file_map

    def build_file_map(self, sections: dict[str, list[str]]) -> dict[str, str]:
        """Chunk every section and name the resulting files.

        Sections sharing a directory (types and domains, views and
        materialized views) are packed together in the order given.
        """
        grouped: dict[str, list[str]] = {}
        for key, objects in sections.items():
            directory = SECTION_DIRECTORIES.get(key)
            if directory is None:
                raise FileError(f"Unknown dump section: {key}")
            if objects:
                grouped.setdefault(directory, []).extend(objects)

        file_map: dict[str, str] = {}
        for directory in sorted(grouped):
            for index, chunk in enumerate(self.chunk_objects(grouped[directory]), start=1):
                file_map[f"{directory}/{format_filename(index)}"] = "\n\n".join(chunk) + "\n"
        return file_map

    def chunk_objects(self, objects: list[str]) -> list[list[str]]:
        """Greedily pack SQL objects into chunks.

        A chunk is closed once it reaches ``max_lines_per_file``, or when the
        next object would push it past ``max_lines_per_file *
        overflow_threshold``. An object longer than ``max_lines_per_file``
        gets a chunk of its own.

        Example:
            >>> writer = FileWriter(DumpConfig(max_lines_per_file=500))
            >>> [len(c) for c in writer.chunk_objects(["x\\n" * 400, "y\\n" * 200])]
            [1, 1]
        """
        max_lines = self.config.max_lines_per_file
        overflow_limit = self.config.overflow_limit

        chunks: list[list[str]] = []
        current: list[str] = []
        current_lines = 0

        for obj in objects:
            lines = count_lines(obj)

            if lines > max_lines:
                if current:
                    chunks.append(current)
                chunks.append([obj])
                current, current_lines = [], 0
            elif current_lines >= max_lines or (current_lines > 0 and current_lines + lines > overflow_limit):
                chunks.append(current)
                current, current_lines = [obj], lines
            else:
                current.append(obj)
                current_lines += lines

        if current:
            chunks.append(current)
        return chunks

    def _clear_previous_output(self, base: Path) -> None:
        for child in base.iterdir():
            if child.is_dir() and _SECTION_DIRECTORY.match(child.name):
                shutil.rmtree(child)
            elif child.name in (HEADER_FILENAME, MANIFEST_FILENAME):
                child.unlink()
