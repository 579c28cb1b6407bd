"""Appointment status transitions

Statuses: PENDING → CONFIRMED → IN_PROGRESS → COMPLETED, with CANCELLED
reachable while the appointment is still PENDING or CONFIRMED.
COMPLETED and CANCELLED are terminal.
"""

import enum
from typing import Optional

from ...models import AppointmentStatus
from ...shared.errors import StateError

TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})
ACTIVE_STATUSES = frozenset(set(AppointmentStatus) - TERMINAL_STATUSES)


class AppointmentEvent(str, enum.Enum):
    UPDATE = "update"
    ASSIGN = "assign"
    ALLOCATE = "allocate"
    PROGRESS = "progress"
    CANCEL = "cancel"
    CHANGE_STATUS = "change status of"


# Statuses each event may start from
ALLOWED_SOURCES = {
    AppointmentEvent.UPDATE: ACTIVE_STATUSES,
    AppointmentEvent.ASSIGN: ACTIVE_STATUSES,
    AppointmentEvent.ALLOCATE: frozenset({AppointmentStatus.CONFIRMED}),
    AppointmentEvent.PROGRESS: ACTIVE_STATUSES,
    AppointmentEvent.CANCEL: frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}),
    AppointmentEvent.CHANGE_STATUS: ACTIVE_STATUSES,
}

# Fixed targets; events missing here keep the status or take an explicit one
EVENT_TARGETS = {
    AppointmentEvent.ASSIGN: AppointmentStatus.CONFIRMED,
    AppointmentEvent.ALLOCATE: AppointmentStatus.IN_PROGRESS,
    AppointmentEvent.CANCEL: AppointmentStatus.CANCELLED,
}


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_apply(status: AppointmentStatus, event: AppointmentEvent) -> bool:
    return status in ALLOWED_SOURCES[event]


def ensure_can_apply(status: AppointmentStatus, event: AppointmentEvent) -> None:
    """Raise StateError naming the current status if the event is not allowed"""
    if can_apply(status, event):
        return
    if event == AppointmentEvent.ALLOCATE:
        raise StateError(
            f"Only CONFIRMED appointments can be allocated (current status: {status.value})"
        )
    raise StateError(f"Cannot {event.value} an appointment with status {status.value}")


def next_status(
    status: AppointmentStatus,
    event: AppointmentEvent,
    requested: Optional[AppointmentStatus] = None,
) -> AppointmentStatus:
    """
    Resolve the status an event leads to.

    CHANGE_STATUS takes the requested status as-is; UPDATE and PROGRESS keep
    the current one (completion through progress is handled by
    ``status_for_progress``).
    """
    ensure_can_apply(status, event)
    if event == AppointmentEvent.CHANGE_STATUS:
        if requested is None:
            raise StateError("A target status is required")
        return requested
    return EVENT_TARGETS.get(event, status)


def status_for_progress(status: AppointmentStatus, progress: int) -> AppointmentStatus:
    ensure_can_apply(status, AppointmentEvent.PROGRESS)
    if progress >= 100:
        return AppointmentStatus.COMPLETED
    return status
