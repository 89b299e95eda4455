"""Driver-behaviour event status transitions.

The normalizer only emits "pending"; later moves are made by whoever works
the event queue.
"""

from dataclasses import replace
from typing import Optional

from src.config.constants import EVENT_STATUSES, EVENT_TRANSITIONS
from src.events.normalizer import NormalizedEvent


class InvalidTransitionError(ValueError):
    """Requested status change is not allowed from the event's current status."""


def can_transition(current: str, target: str) -> bool:
    return target in EVENT_TRANSITIONS.get(current, ())


def transition(
    event: NormalizedEvent,
    status: str,
    action_taken: Optional[str] = None,
) -> NormalizedEvent:
    """Return a copy of the event moved to a new status.

    Raises:
        InvalidTransitionError: for an unknown status or a disallowed move
            (anything out of "resolved", or into the current status).
    """
    if status not in EVENT_STATUSES:
        raise InvalidTransitionError(f"Unknown event status {status!r}")
    if not can_transition(event.status, status):
        raise InvalidTransitionError(
            f"Cannot move event from {event.status!r} to {status!r}"
        )

    changes = {"status": status, "resolved": status == "resolved"}
    if action_taken is not None:
        changes["action_taken"] = action_taken
    return replace(event, **changes)
