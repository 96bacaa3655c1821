"""Summit conditions: the success criteria of an expedition.

Conditions live in the ``conditions`` collection beside the route. They are
independent of waypoints; progress is simply how many are met.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any

from expedition.errors import InvalidInputError, NotFoundError, PersistenceError
from expedition.events import EventEmitter
from expedition.models.condition import ConditionStatus, SummitCondition
from expedition.models.ids import new_id, utc_now
from expedition.route.store import unique_id
from expedition.storage import CollectionStorage

logger = logging.getLogger(__name__)

CONDITIONS_KEY = "conditions"


def parse_condition_status(value: ConditionStatus | str) -> ConditionStatus:
    """Resolve a status name, raising InvalidInputError for unknown values."""
    if isinstance(value, ConditionStatus):
        return value
    try:
        return ConditionStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Invalid condition status: {value}") from None


class ConditionStore:
    """CRUD and status changes over the conditions of one expedition."""

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

    def list(self) -> list[SummitCondition]:
        """All conditions in storage order."""
        records = self.storage.read_collection(CONDITIONS_KEY)
        try:
            return [SummitCondition.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed condition record: {e}") from e

    def get(self, condition_id: str) -> SummitCondition | None:
        """Get a condition by ID."""
        return next((c for c in self.list() if c.id == condition_id), None)

    def progress(self) -> tuple[int, int]:
        """Return ``(met, total)`` over all conditions."""
        conditions = self.list()
        met = sum(1 for c in conditions if c.status is ConditionStatus.MET)
        return met, len(conditions)

    def create(self, text: str) -> SummitCondition:
        """Add an open condition.

        Raises:
            InvalidInputError: If the text is blank.
        """
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Condition text is required")

        conditions = self.list()
        now = self._now()
        condition = SummitCondition(
            id=unique_id(self._new_id, {c.id for c in conditions}),
            text=text,
            created_at=now,
            updated_at=now,
        )
        self._save([*conditions, condition])

        logger.info("Created summit condition %s", condition.id)
        self._emit(
            "condition.created",
            {"condition": condition},
            {"condition_id": condition.id, "text": text},
        )
        return condition

    def update(self, condition_id: str, fields: Mapping[str, Any]) -> SummitCondition:
        """Replace the text and/or status of a condition.

        Raises:
            InvalidInputError: Unknown fields, blank text or unknown status.
            NotFoundError: The condition does not exist.
        """
        unknown = set(fields) - {"text", "status"}
        if unknown:
            raise InvalidInputError(
                f"Unknown condition field(s): {', '.join(sorted(unknown))}"
            )
        changes: dict[str, Any] = {}
        if "text" in fields:
            text = str(fields["text"] or "").strip()
            if not text:
                raise InvalidInputError("Condition text is required")
            changes["text"] = text
        if "status" in fields:
            changes["status"] = parse_condition_status(fields["status"]).value

        conditions = self.list()
        condition = self._find(conditions, condition_id)
        if "text" in changes:
            condition.text = changes["text"]
        if "status" in changes:
            condition.status = ConditionStatus(changes["status"])
        condition.updated_at = self._now()
        self._save(conditions)

        logger.info("Updated summit condition %s: %s", condition_id, sorted(changes))
        self._emit(
            "condition.updated",
            {"condition": condition, "changes": changes},
            {"condition_id": condition_id, "changes": changes},
        )
        return condition

    def set_status(
        self, condition_id: str, status: ConditionStatus | str
    ) -> SummitCondition:
        """Mark a condition open, met or abandoned.

        Raises:
            InvalidInputError: The status is not a condition status.
            NotFoundError: The condition does not exist.
        """
        new_status = parse_condition_status(status)
        conditions = self.list()
        condition = self._find(conditions, condition_id)

        old_status = condition.status
        condition.status = new_status
        condition.updated_at = self._now()
        self._save(conditions)

        logger.info(
            "Summit condition %s %s -> %s",
            condition_id,
            old_status.value,
            new_status.value,
        )
        data = {
            "condition_id": condition_id,
            "from": old_status.value,
            "to": new_status.value,
        }
        self._emit("condition.status_changed", {**data, "condition": condition}, data)
        return condition

    def delete(self, condition_id: str) -> bool:
        """Delete a condition. Returns False if it did not exist."""
        conditions = self.list()
        remaining = [c for c in conditions if c.id != condition_id]
        if len(remaining) == len(conditions):
            return False
        self._save(remaining)
        logger.info("Deleted summit condition %s", condition_id)
        data = {"condition_id": condition_id}
        self._emit("condition.deleted", dict(data), data)
        return True

    def _find(
        self, conditions: Sequence[SummitCondition], condition_id: str
    ) -> SummitCondition:
        for condition in conditions:
            if condition.id == condition_id:
                return condition
        raise NotFoundError("Condition", condition_id)

    def _save(self, conditions: Sequence[SummitCondition]) -> None:
        self.storage.write_collection(
            CONDITIONS_KEY, [c.to_dict() for c in conditions]
        )

    def _emit(
        self, event: str, payload: dict[str, Any], log_data: dict[str, Any]
    ) -> None:
        if self.events is not None:
            self.events.emit(event, payload, log_data)
