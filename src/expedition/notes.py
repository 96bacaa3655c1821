"""Minimal note store backing the route's note links.

Notes live in the ``notes`` collection of an expedition. Anchoring and drift
detection are not handled here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any

from expedition.errors import InvalidInputError, PersistenceError
from expedition.events import EventEmitter
from expedition.models.ids import new_id, utc_now
from expedition.models.note import Note
from expedition.route.store import unique_id
from expedition.storage import CollectionStorage

logger = logging.getLogger(__name__)

NOTES_KEY = "notes"

# Fields callers may replace through update()
_UPDATABLE = frozenset({"body", "tags", "meta"})


class NoteStore:
    """CRUD over the notes collection of one expedition."""

    def __init__(
        self,
        storage: CollectionStorage,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
        events: EventEmitter | None = None,
    ) -> None:
        self.storage = storage
        self._now = clock
        self._new_id = id_factory
        self.events = events

    def list(self) -> list[Note]:
        """All notes in storage order."""
        records = self.storage.read_collection(NOTES_KEY)
        try:
            return [Note.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed note record: {e}") from e

    def get(self, note_id: str) -> Note | None:
        """Get a note by ID."""
        return next((n for n in self.list() if n.id == note_id), None)

    def create(
        self,
        body: str,
        tags: Sequence[str] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> Note:
        """Create a note.

        Raises:
            InvalidInputError: If the body is blank.
        """
        body = (body or "").strip()
        if not body:
            raise InvalidInputError("Note body is required")

        notes = self.list()
        now = self._now()
        note = Note(
            id=unique_id(self._new_id, {n.id for n in notes}),
            body=body,
            tags=[t.strip() for t in tags or [] if t.strip()],
            meta=dict(meta or {}),
            created_at=now,
            updated_at=now,
        )
        self._save([*notes, note])

        logger.info("Created note %s", note.id)
        self._emit("note.created", note)
        return note

    def update(self, note_id: str, fields: Mapping[str, Any]) -> Note | None:
        """Replace ``body``, ``tags`` and/or ``meta`` of a note.

        Returns:
            The updated note, or None if it does not exist.

        Raises:
            InvalidInputError: If ``fields`` names anything else.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise InvalidInputError(
                f"Unknown note field(s): {', '.join(sorted(unknown))}"
            )

        notes = self.list()
        for note in notes:
            if note.id != note_id:
                continue
            if "body" in fields:
                note.body = str(fields["body"])
            if "tags" in fields:
                note.tags = [str(t) for t in fields["tags"] or []]
            if "meta" in fields:
                note.meta = dict(fields["meta"] or {})
            note.updated_at = self._now()
            self._save(notes)
            self._emit("note.updated", note)
            return note
        return None

    def delete(self, note_id: str) -> bool:
        """Delete a note. Returns False if it did not exist."""
        notes = self.list()
        remaining = [n for n in notes if n.id != note_id]
        if len(remaining) == len(notes):
            return False
        self._save(remaining)
        logger.info("Deleted note %s", note_id)
        if self.events is not None:
            self.events.emit(
                "note.deleted", {"note_id": note_id}, {"note_id": note_id}
            )
        return True

    def _save(self, notes: Sequence[Note]) -> None:
        self.storage.write_collection(NOTES_KEY, [n.to_dict() for n in notes])

    def _emit(self, event: str, note: Note) -> None:
        if self.events is not None:
            self.events.emit(event, {"note": note}, {"note_id": note.id})
