"""Loads and saves the route and branch collections of one expedition."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Sequence

from expedition.errors import PersistenceError
from expedition.models.branch import Branch
from expedition.models.waypoint import Waypoint
from expedition.route.status import compute_statuses
from expedition.storage import CollectionStorage

logger = logging.getLogger(__name__)

ROUTE_KEY = "route"
BRANCHES_KEY = "branches"

# Give up rather than spin forever on a broken id factory
_MAX_ID_ATTEMPTS = 100


def unique_id(factory: Callable[[], str], taken: Collection[str]) -> str:
    """Draw ids from ``factory`` until one is not in ``taken``."""
    for _ in range(_MAX_ID_ATTEMPTS):
        candidate = factory()
        if candidate not in taken:
            return candidate
    raise RuntimeError("Id factory keeps returning ids that are already in use")


class RouteStore:
    """Whole-collection read-modify-write access to route data."""

    def __init__(self, storage: CollectionStorage) -> None:
        self.storage = storage

    def load_waypoints(self) -> list[Waypoint]:
        """Read every waypoint in storage order (statuses as stored)."""
        records = self.storage.read_collection(ROUTE_KEY)
        try:
            return [Waypoint.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed waypoint record: {e}") from e

    def commit(self, waypoints: Sequence[Waypoint]) -> list[Waypoint]:
        """Recompute derived statuses over the whole set and persist it.

        Returns:
            The waypoints as written, with fresh statuses.
        """
        computed = compute_statuses(waypoints)
        self.storage.write_collection(ROUTE_KEY, [wp.to_dict() for wp in computed])
        return computed

    def load_branches(self) -> list[Branch]:
        """Read registered branch metadata."""
        records = self.storage.read_collection(BRANCHES_KEY)
        try:
            return [Branch.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed branch record: {e}") from e

    def save_branches(self, branches: Sequence[Branch]) -> None:
        self.storage.write_collection(BRANCHES_KEY, [b.to_dict() for b in branches])
