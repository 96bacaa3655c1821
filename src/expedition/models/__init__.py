"""Data models for Expedition."""

from .branch import Branch
from .condition import ConditionStatus, SummitCondition
from .expedition import Expedition, ExpeditionStatus
from .ids import new_id, utc_now
from .note import WAYPOINT_BACKREF, Note
from .waypoint import (
    DEFAULT_BRANCH,
    DERIVED_STATUSES,
    EXPLICIT_STATUSES,
    Waypoint,
    WaypointPatch,
    WaypointStatus,
)

__all__ = [
    "Branch",
    "ConditionStatus",
    "DEFAULT_BRANCH",
    "DERIVED_STATUSES",
    "EXPLICIT_STATUSES",
    "Expedition",
    "ExpeditionStatus",
    "Note",
    "SummitCondition",
    "WAYPOINT_BACKREF",
    "Waypoint",
    "WaypointPatch",
    "WaypointStatus",
    "new_id",
    "utc_now",
]
