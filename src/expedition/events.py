"""Fan-out of route events to the activity log and hook listeners."""

from __future__ import annotations

import logging
from typing import Any

from expedition.activity_log import ActivityLog
from expedition.hooks import HookRegistry
from expedition.session import RouteSession

logger = logging.getLogger(__name__)


class EventEmitter:
    """Emits an event once its mutation has been persisted.

    Both sinks are fire-and-forget: neither a failed log write nor a failing
    hook is reported back to the operation that emitted the event.
    """

    def __init__(
        self,
        session: RouteSession,
        hooks: HookRegistry | None = None,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self.session = session
        self.hooks = hooks
        self.activity_log = activity_log

    def emit(
        self,
        event: str,
        payload: dict[str, Any],
        log_data: dict[str, Any] | None = None,
    ) -> None:
        """Record ``event`` in the activity log and dispatch it to hooks.

        Args:
            event: Event name, e.g. "waypoint.created".
            payload: Data handed to hook listeners (may hold model objects).
            log_data: JSON-friendly summary for the activity log.
        """
        logger.debug("Event %s", event)
        expedition = self.session.expedition
        if self.activity_log is not None and expedition is not None:
            self.activity_log.append(event, expedition.id, log_data or {})
        if self.hooks is not None:
            self.hooks.dispatch(event, payload)
