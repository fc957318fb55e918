"""Manifest describing a multi-file dump.

The manifest is derived from the file map and is written next to the
numbered directories as ``_manifest.json``::

    {
      "version": "1.0",
      "total_files": 3,
      "total_lines": 812,
      "max_lines_per_file": 500,
      "directories": {
        "05_tables": {"files": 2, "lines": 790},
        "06_indexes": {"files": 1, "lines": 22}
      }
    }
"""

import json
from typing import Any

from structure_sql.config.models import DumpConfig
from structure_sql.file_writer import count_lines

MANIFEST_VERSION = "1.0"


class ManifestGenerator:
    """Builds and reads ``_manifest.json`` content.

    Args:
        config: Dump configuration (records ``max_lines_per_file``)
    """

    def __init__(self, config: DumpConfig | None = None):
        self.config = config or DumpConfig()

    def generate(self, file_map: dict[str, str]) -> str:
        """Render the manifest for a file map as pretty-printed JSON.

        Args:
            file_map: Relative path -> file content, as returned by
                ``FileWriter.write_multi_file``

        Returns:
            JSON text with directories sorted by name
        """
        manifest = {
            "version": MANIFEST_VERSION,
            "total_files": len(file_map),
            "total_lines": sum(count_lines(content) for content in file_map.values()),
            "max_lines_per_file": self.config.max_lines_per_file,
            "directories": self._directory_stats(file_map),
        }
        return json.dumps(manifest, indent=2) + "\n"

    def parse(self, content: str) -> dict[str, Any]:
        """Read manifest JSON back into a dict."""
        return json.loads(content)

    def _directory_stats(self, file_map: dict[str, str]) -> dict[str, dict[str, int]]:
        stats: dict[str, dict[str, int]] = {}
        for path, content in file_map.items():
            directory = path.split("/", 1)[0]
            entry = stats.setdefault(directory, {"files": 0, "lines": 0})
            entry["files"] += 1
            entry["lines"] += count_lines(content)
        return dict(sorted(stats.items()))
