"""Waypoint route engine: graph algorithms, statuses, branches and CRUD."""

from .branches import BranchManager
from .graph import dependents_of, index_by_id, topo_sort, would_cycle
from .service import RouteService, RouteSummary
from .status import (
    VALID_TRANSITIONS,
    can_transition,
    compute_statuses,
    validate_transition,
)
from .store import RouteStore

__all__ = [
    "BranchManager",
    "RouteService",
    "RouteStore",
    "RouteSummary",
    "VALID_TRANSITIONS",
    "can_transition",
    "compute_statuses",
    "dependents_of",
    "index_by_id",
    "topo_sort",
    "validate_transition",
    "would_cycle",
]
