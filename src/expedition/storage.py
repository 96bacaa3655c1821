"""Whole-collection persistence for expedition data.

A collection is a list of JSON records stored under a key. Callers always
read the entire collection, mutate it in memory and write it back; there is
no partial update and no cross-process locking.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from expedition.errors import PersistenceError
from expedition.models.schema import (
    SchemaError,
    atomic_write_lines,
    is_header,
    migrate_if_needed,
    write_schema_fields,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class CollectionStorage(Protocol):
    """Read/write access to whole collections by key."""

    def read_collection(self, key: str) -> list[Record]:
        """Return all records for ``key`` (empty when absent)."""
        ...

    def write_collection(self, key: str, records: list[Record]) -> None:
        """Atomically replace the collection for ``key``."""
        ...


class JsonlStorage:
    """Stores each collection as ``<root>/<key>.jsonl`` with a schema header."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, key: str) -> Path:
        """Get the JSONL file path for a collection key."""
        return self.root / f"{key}.jsonl"

    def read_collection(self, key: str) -> list[Record]:
        path = self.path_for(key)
        if not path.exists():
            return []

        try:
            migrate_if_needed(path, key)
            records: list[Record] = []
            with open(path, encoding="utf-8") as f:
                for line_num, line in enumerate(f):
                    line = line.strip()
                    if not line:
                        continue
                    data = json.loads(line)
                    if line_num == 0 and is_header(data):
                        continue
                    if not isinstance(data, dict):
                        raise PersistenceError(
                            f"Unexpected record on line {line_num + 1} of {path}"
                        )
                    records.append(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, SchemaError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

        logger.debug("Read %d %s record(s) from %s", len(records), key, path)
        return records

    def write_collection(self, key: str, records: list[Record]) -> None:
        path = self.path_for(key)
        header = {
            **write_schema_fields(key),
            "updated_at": datetime.now(UTC).isoformat(),
        }
        try:
            lines = [json.dumps(header) + "\n"]
            lines.extend(json.dumps(record) + "\n" for record in records)
            atomic_write_lines(path, lines)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
        logger.debug("Wrote %d %s record(s) to %s", len(records), key, path)


class MemoryStorage:
    """In-process storage for tests and embedding callers."""

    def __init__(self) -> None:
        self._collections: dict[str, list[Record]] = {}

    def read_collection(self, key: str) -> list[Record]:
        return copy.deepcopy(self._collections.get(key, []))

    def write_collection(self, key: str, records: list[Record]) -> None:
        self._collections[key] = copy.deepcopy(records)
