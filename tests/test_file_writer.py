"""Tests for single/multi-file output, chunking and the manifest."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from structure_sql.config.models import DumpConfig
from structure_sql.errors import FileError
from structure_sql.file_writer import FileWriter, count_lines, format_filename
from structure_sql.manifest import ManifestGenerator


def _obj(lines: int, tag: str = "x") -> str:
    """A SQL object spanning ``lines`` lines."""
    return "\n".join(f"-- {tag} {i}" for i in range(lines))


# ------------------------------------------------------------------
# Mode detection and naming
# ------------------------------------------------------------------


class TestOutputMode:
    """Single vs multi-file detection."""

    @pytest.mark.parametrize("path", ["db/structure.sql", "structure.sql", "out/schema.txt"])
    def test_extension_means_single_file(self, path: str) -> None:
        """Paths with a suffix are files."""
        assert FileWriter().detect_output_mode(path) == "single_file"

    @pytest.mark.parametrize("path", ["db/schema", "db/schema/", "db/structure.sql/"])
    def test_directory_means_multi_file(self, path: str) -> None:
        """Paths without a suffix, or ending in a slash, are directories."""
        assert FileWriter().detect_output_mode(path) == "multi_file"

    def test_filenames_are_zero_padded(self) -> None:
        """Chunk files sort lexically."""
        assert format_filename(1) == "000001.sql"
        assert format_filename(123) == "000123.sql"

    def test_count_lines(self) -> None:
        """A trailing newline does not count as an extra line."""
        assert count_lines("a\nb") == 2
        assert count_lines("a\nb\n") == 2
        assert count_lines("") == 0


# ------------------------------------------------------------------
# Chunking
# ------------------------------------------------------------------


class TestChunking:
    """Greedy chunk packing."""

    def test_overflow_starts_new_chunk(self) -> None:
        """400 + 200 lines exceed 550, so two chunks."""
        writer = FileWriter(DumpConfig(max_lines_per_file=500, overflow_threshold=1.1))
        first, second = _obj(400, "a"), _obj(200, "b")

        assert writer.chunk_objects([first, second]) == [[first], [second]]

    def test_within_overflow_shares_chunk(self) -> None:
        """400 + 140 lines fit under the 550 line cap."""
        writer = FileWriter(DumpConfig(max_lines_per_file=500, overflow_threshold=1.1))
        first, second = _obj(400, "a"), _obj(140, "b")

        assert writer.chunk_objects([first, second]) == [[first, second]]

    def test_full_chunk_is_closed(self) -> None:
        """A chunk at the target size takes nothing more."""
        writer = FileWriter(DumpConfig(max_lines_per_file=10, overflow_threshold=2.0))
        objects = [_obj(5, "a"), _obj(5, "b"), _obj(1, "c")]

        assert writer.chunk_objects(objects) == [objects[:2], objects[2:]]

    def test_oversize_object_gets_own_chunk(self) -> None:
        """Objects larger than the target are isolated, never split."""
        writer = FileWriter(DumpConfig(max_lines_per_file=10))
        small, huge, tail = _obj(3, "a"), _obj(50, "b"), _obj(3, "c")

        assert writer.chunk_objects([small, huge, tail]) == [[small], [huge], [tail]]

    def test_concatenation_reproduces_input_and_respects_cap(self) -> None:
        """Chunks preserve order and stay within the overflow cap."""
        config = DumpConfig(max_lines_per_file=20, overflow_threshold=1.25)
        writer = FileWriter(config)
        objects = [_obj(size, str(i)) for i, size in enumerate([1, 7, 19, 3, 30, 2, 12, 12, 5, 21, 4])]

        chunks = writer.chunk_objects(objects)

        assert [obj for chunk in chunks for obj in chunk] == objects
        for chunk in chunks:
            lines = sum(count_lines(obj) for obj in chunk)
            assert lines <= config.overflow_limit or len(chunk) == 1

    def test_empty_input(self) -> None:
        """No objects, no chunks."""
        assert FileWriter().chunk_objects([]) == []


# ------------------------------------------------------------------
# Writing
# ------------------------------------------------------------------


class TestWriteSingleFile:
    """Single-file output."""

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Missing parent directories are created."""
        target = tmp_path / "db" / "nested" / "structure.sql"
        FileWriter().write_single_file(target, "SELECT 1;\n")

        assert target.read_text() == "SELECT 1;\n"

    def test_os_error_becomes_file_error(self, tmp_path: Path) -> None:
        """Write failures raise FileError."""
        with patch.object(Path, "write_text", side_effect=PermissionError("denied")):
            with pytest.raises(FileError, match="denied"):
                FileWriter().write_single_file(tmp_path / "structure.sql", "x")


class TestWriteMultiFile:
    """Directory tree output."""

    def _sections(self) -> dict[str, list[str]]:
        return {
            "extensions": ["CREATE EXTENSION IF NOT EXISTS pgcrypto;"],
            "types": ["CREATE TYPE mood AS ENUM ('sad');"],
            "domains": ["CREATE DOMAIN email AS text;"],
            "tables": ["CREATE TABLE a (\n  id int\n);", "CREATE TABLE b (\n  id int\n);"],
            "views": ["CREATE OR REPLACE VIEW v AS\nSELECT 1;"],
            "materialized_views": ["CREATE MATERIALIZED VIEW m AS\nSELECT 1;"],
            "migrations": [],
        }

    def test_layout(self, tmp_path: Path) -> None:
        """Sections land in numbered directories with chunk files."""
        base = tmp_path / "schema"
        file_map = FileWriter().write_multi_file(base, self._sections(), "SET client_encoding = 'UTF8';")

        assert list(file_map) == [
            "01_extensions/000001.sql",
            "02_types/000001.sql",
            "05_tables/000001.sql",
            "08_views/000001.sql",
        ]
        assert (base / "_header.sql").read_text() == "SET client_encoding = 'UTF8';\n"
        assert (base / "05_tables" / "000001.sql").read_text() == (
            "CREATE TABLE a (\n  id int\n);\n\nCREATE TABLE b (\n  id int\n);\n"
        )
        assert not (base / "11_migrations").exists()

    def test_shared_directories_keep_section_order(self, tmp_path: Path) -> None:
        """Types precede domains, views precede materialized views."""
        file_map = FileWriter().write_multi_file(tmp_path / "schema", self._sections(), "")

        assert file_map["02_types/000001.sql"].index("CREATE TYPE") < file_map["02_types/000001.sql"].index("CREATE DOMAIN")
        views = file_map["08_views/000001.sql"]
        assert views.index("CREATE OR REPLACE VIEW") < views.index("CREATE MATERIALIZED VIEW")

    def test_chunks_across_files(self, tmp_path: Path) -> None:
        """Large sections are split over several numbered files."""
        writer = FileWriter(DumpConfig(max_lines_per_file=5, overflow_threshold=1.0))
        tables = [_obj(4, str(i)) for i in range(3)]
        file_map = writer.write_multi_file(tmp_path / "schema", {"tables": tables}, "")

        assert list(file_map) == ["05_tables/000001.sql", "05_tables/000002.sql", "05_tables/000003.sql"]
        assert (tmp_path / "schema" / "05_tables" / "000003.sql").exists()

    def test_previous_output_is_replaced(self, tmp_path: Path) -> None:
        """Stale numbered directories are removed; other files survive."""
        base = tmp_path / "schema"
        stale = base / "03_functions"
        stale.mkdir(parents=True)
        (stale / "000001.sql").write_text("old")
        (base / "README.md").write_text("keep me")

        FileWriter().write_multi_file(base, {"tables": ["CREATE TABLE a (id int);"]}, "")

        assert not stale.exists()
        assert (base / "README.md").read_text() == "keep me"

    def test_unknown_section_raises(self, tmp_path: Path) -> None:
        """Only known section keys map to directories."""
        with pytest.raises(FileError, match="Unknown dump section"):
            FileWriter().write_multi_file(tmp_path, {"policies": ["x"]}, "")


# ------------------------------------------------------------------
# Manifest
# ------------------------------------------------------------------


class TestManifest:
    """_manifest.json generation."""

    def test_generate(self) -> None:
        """Totals and per-directory stats are derived from the file map."""
        file_map = {
            "05_tables/000001.sql": "a\nb\nc\n",
            "05_tables/000002.sql": "d\n",
            "01_extensions/000001.sql": "e\nf\n",
        }
        manifest = json.loads(ManifestGenerator(DumpConfig(max_lines_per_file=100)).generate(file_map))

        assert manifest == {
            "version": "1.0",
            "total_files": 3,
            "total_lines": 6,
            "max_lines_per_file": 100,
            "directories": {
                "01_extensions": {"files": 1, "lines": 2},
                "05_tables": {"files": 2, "lines": 4},
            },
        }

    def test_directories_are_sorted(self) -> None:
        """Directory keys appear in load order."""
        content = ManifestGenerator().generate({"08_views/000001.sql": "x\n", "02_types/000001.sql": "y\n"})
        assert content.index("02_types") < content.index("08_views")

    def test_parse_round_trip(self) -> None:
        """parse reads generated JSON back."""
        generator = ManifestGenerator()
        parsed = generator.parse(generator.generate({"05_tables/000001.sql": "x\n"}))

        assert parsed["total_files"] == 1
        assert parsed["directories"]["05_tables"]["lines"] == 1
