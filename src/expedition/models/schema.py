"""Schema versioning for JSONL collection files.

Every collection file starts with a header line naming its schema and
version. Header-less files (including the older single-array JSON layout)
are treated as version 0.0 and migrated in place on first read.

Schema Types:
- route: waypoints of one expedition
- branches: registered branch metadata
- notes: notes of one expedition
- conditions: summit conditions of one expedition
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Current schema versions
CURRENT_VERSIONS: dict[str, str] = {
    "route": "1.0",
    "branches": "1.0",
    "notes": "1.0",
    "conditions": "1.0",
}


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class MigrationNotFoundError(SchemaError):
    """Raised when no migration path exists."""

    def __init__(self, schema_type: str, from_version: str, to_version: str) -> None:
        self.schema_type = schema_type
        self.from_version = from_version
        self.to_version = to_version
        super().__init__(
            f"No migration for {schema_type} from {from_version} to {to_version}"
        )


class InvalidSchemaError(SchemaError):
    """Raised when schema validation fails."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Invalid schema in {path}: {message}")


@dataclass
class SchemaHeader:
    """Parsed schema header from JSONL file."""

    schema_type: str
    schema_version: str

    @property
    def is_legacy(self) -> bool:
        """Check if this is a legacy file (version 0.0)."""
        return self.schema_version == "0.0"

    @property
    def is_current(self) -> bool:
        """Check if this file is at the current version."""
        current = CURRENT_VERSIONS.get(self.schema_type)
        return self.schema_version == current


def is_header(data: Any) -> bool:
    """Check whether a parsed line is a schema header."""
    return isinstance(data, dict) and "_schema" in data and "_version" in data


def read_schema_header(path: Path, expected_type: str) -> SchemaHeader:
    """Read and validate schema header from JSONL file.

    Args:
        path: Path to the JSONL file.
        expected_type: The expected schema type (e.g., "route").

    Returns:
        SchemaHeader with version "0.0" for legacy files without schema fields.

    Raises:
        InvalidSchemaError: If the file is corrupt or has wrong schema type.
    """
    if not path.exists():
        raise InvalidSchemaError(path, "File does not exist")

    try:
        with open(path, encoding="utf-8") as f:
            first_line = f.readline().strip()
            if not first_line:
                return SchemaHeader(schema_type=expected_type, schema_version="0.0")

            data = json.loads(first_line)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidSchemaError(path, f"Invalid JSON in header: {e}") from e

    if not is_header(data):
        logger.debug("Legacy file detected (no schema fields): %s", path)
        return SchemaHeader(schema_type=expected_type, schema_version="0.0")

    schema_type = data["_schema"]
    if schema_type != expected_type:
        raise InvalidSchemaError(
            path, f"Expected schema '{expected_type}', got '{schema_type}'"
        )

    return SchemaHeader(schema_type=schema_type, schema_version=data["_version"])


def write_schema_fields(schema_type: str) -> dict[str, str]:
    """Get schema fields to include in header.

    Raises:
        ValueError: If schema_type is unknown.
    """
    if schema_type not in CURRENT_VERSIONS:
        raise ValueError(f"Unknown schema type: {schema_type}")

    return {
        "_schema": schema_type,
        "_version": CURRENT_VERSIONS[schema_type],
    }


# Migration registry
Migrator = Callable[[Path], None]
MIGRATORS: dict[tuple[str, str, str], Migrator] = {}


def register_migrator(
    schema_type: str, from_version: str, to_version: str
) -> Callable[[Migrator], Migrator]:
    """Decorator to register a migration function.

    Example:
        @register_migrator("route", "1.0", "2.0")
        def migrate_route_1_to_2(path: Path) -> None:
            ...
    """

    def decorator(fn: Migrator) -> Migrator:
        key = (schema_type, from_version, to_version)
        MIGRATORS[key] = fn
        logger.debug(
            "Registered migrator: %s %s -> %s", schema_type, from_version, to_version
        )
        return fn

    return decorator


def migrate_if_needed(path: Path, schema_type: str) -> bool:
    """Migrate file to current version if needed.

    Returns:
        True if migration was performed, False if already current.

    Raises:
        MigrationNotFoundError: If no migration path exists.
        InvalidSchemaError: If the file is corrupt.
    """
    if not path.exists():
        return False

    header = read_schema_header(path, schema_type)

    if header.is_current:
        return False

    current_version = CURRENT_VERSIONS[schema_type]
    migrator_key = (schema_type, header.schema_version, current_version)

    migrator = MIGRATORS.get(migrator_key)
    if migrator is None:
        raise MigrationNotFoundError(
            schema_type, header.schema_version, current_version
        )

    logger.info(
        "Migrating %s from %s to %s: %s",
        schema_type,
        header.schema_version,
        current_version,
        path,
    )
    migrator(path)
    return True


def atomic_write_lines(path: Path, lines: list[str]) -> None:
    """Write lines to a temp file beside ``path`` and rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    temp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.writelines(lines)
        temp_path.replace(path)
    except Exception:
        # Clean up temp file on error
        if temp_path.exists():
            temp_path.unlink()
        raise


def _atomic_rewrite(path: Path, transform: Callable[[list[str]], list[str]]) -> None:
    """Atomically rewrite a file by transforming its lines."""
    with open(path, encoding="utf-8") as f:
        lines = f.readlines()

    atomic_write_lines(path, transform(lines))


def _legacy_records(lines: list[str]) -> list[Any]:
    """Extract records from a header-less file.

    Handles both one-record-per-line files and the older layout where the
    whole collection was a single JSON array (or an empty ``{}`` stub).
    """
    content = [line for line in lines if line.strip()]
    if len(content) == 1:
        data = json.loads(content[0])
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and not data:
            return []
        return [data]
    return [json.loads(line) for line in content]


def _add_header(schema_type: str) -> Callable[[list[str]], list[str]]:
    def transform(lines: list[str]) -> list[str]:
        header = {
            **write_schema_fields(schema_type),
            "updated_at": datetime.now(UTC).isoformat(),
        }
        records = _legacy_records(lines)
        return [json.dumps(header) + "\n"] + [
            json.dumps(record) + "\n" for record in records
        ]

    return transform


# =============================================================================
# Legacy Migrations (0.0 -> 1.0)
# =============================================================================


@register_migrator("route", "0.0", "1.0")
def _migrate_route_legacy(path: Path) -> None:
    """Add schema header to a legacy route file."""
    _atomic_rewrite(path, _add_header("route"))


@register_migrator("branches", "0.0", "1.0")
def _migrate_branches_legacy(path: Path) -> None:
    """Add schema header to a legacy branches file."""
    _atomic_rewrite(path, _add_header("branches"))


@register_migrator("notes", "0.0", "1.0")
def _migrate_notes_legacy(path: Path) -> None:
    """Add schema header to a legacy notes file."""
    _atomic_rewrite(path, _add_header("notes"))


@register_migrator("conditions", "0.0", "1.0")
def _migrate_conditions_legacy(path: Path) -> None:
    """Add schema header to a legacy conditions file."""
    _atomic_rewrite(path, _add_header("conditions"))
