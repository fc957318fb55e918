"""Hand-off of finished dumps to a version store.

Persisting dumps (tables, retention, deduplication) lives outside this
package. The dumper only needs something that accepts the content and
reports an identifier; that contract is ``VersionStore``.
"""

import hashlib
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


@runtime_checkable
class VersionStore(Protocol):
    """Sink for stored schema versions."""

    def store(self, content: str, format_type: str, db_version: str) -> int | str | None:
        """Persist one dump.

        Args:
            content: Formatted dump text
            format_type: Output format, always ``"sql"`` here
            db_version: Server version reported by the adapter

        Returns:
            Identifier of the stored version, or None when the store skipped
            it (for example because it duplicates the latest version)

        Raises:
            SchemaVersionError: If the version cannot be persisted
        """
        ...


class StoreResult(BaseModel):
    """Outcome of handing a dump to a version store.

    Attributes:
        skipped: True when the store declined to keep the content
        version_id: Identifier returned by the store
        hash: SHA-256 hex digest of the content
        total_count: Number of stored versions, when the store can count them
    """

    model_config = ConfigDict(frozen=True)

    skipped: bool
    version_id: int | str | None = None
    hash: str
    total_count: int | None = None


def content_hash(content: str) -> str:
    """SHA-256 hex digest of dump content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
