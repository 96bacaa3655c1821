"""Session context passed to route operations.

Holds the active expedition and the active branch for one caller. Nothing
here is persisted by the route engine; a new session starts on the default
branch.
"""

from __future__ import annotations

from dataclasses import dataclass

from expedition.errors import NoActiveContextError
from expedition.models.expedition import Expedition
from expedition.models.waypoint import DEFAULT_BRANCH


@dataclass
class RouteSession:
    """The explicit context value for one caller."""

    expedition: Expedition | None = None
    branch: str | None = None
    default_branch: str = DEFAULT_BRANCH

    @property
    def active_branch(self) -> str:
        """The selected branch, or the default branch if none was selected."""
        return self.branch or self.default_branch

    def require_expedition(self) -> Expedition:
        """Return the active expedition or raise NoActiveContextError."""
        if self.expedition is None:
            raise NoActiveContextError()
        return self.expedition
