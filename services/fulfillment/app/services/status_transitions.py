"""Status state machines for pickup bookings and deliveries.

Bookings:   pending -> confirmed -> in_progress -> completed
Deliveries: pending -> confirmed -> completed

Both may be cancelled from ``pending`` or ``confirmed``. ``completed`` and
``cancelled`` are terminal.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Mapping

from app.core.errors import InvalidTransitionError, ValidationError
from app.models.booking import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_COMPLETED,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_IN_PROGRESS,
    BOOKING_STATUS_PENDING,
    BOOKING_STATUSES,
)
from app.models.delivery import (
    DELIVERY_STATUS_CANCELLED,
    DELIVERY_STATUS_COMPLETED,
    DELIVERY_STATUS_CONFIRMED,
    DELIVERY_STATUS_PENDING,
    DELIVERY_STATUSES,
)

BOOKING_TRANSITIONS: Mapping[str, FrozenSet[str]] = {
    BOOKING_STATUS_PENDING: frozenset({BOOKING_STATUS_CONFIRMED, BOOKING_STATUS_CANCELLED}),
    BOOKING_STATUS_CONFIRMED: frozenset({BOOKING_STATUS_IN_PROGRESS, BOOKING_STATUS_CANCELLED}),
    BOOKING_STATUS_IN_PROGRESS: frozenset({BOOKING_STATUS_COMPLETED}),
    BOOKING_STATUS_COMPLETED: frozenset(),
    BOOKING_STATUS_CANCELLED: frozenset(),
}

DELIVERY_TRANSITIONS: Mapping[str, FrozenSet[str]] = {
    DELIVERY_STATUS_PENDING: frozenset({DELIVERY_STATUS_CONFIRMED, DELIVERY_STATUS_CANCELLED}),
    DELIVERY_STATUS_CONFIRMED: frozenset({DELIVERY_STATUS_COMPLETED, DELIVERY_STATUS_CANCELLED}),
    DELIVERY_STATUS_COMPLETED: frozenset(),
    DELIVERY_STATUS_CANCELLED: frozenset(),
}


def normalize_status(value: str, allowed: Iterable[str]) -> str:
    normalized = (value or "").strip().lower()
    if normalized not in allowed:
        raise ValidationError(f"Invalid status '{value}'")
    return normalized


def ensure_transition(
    current: str,
    target: str,
    transitions: Mapping[str, FrozenSet[str]],
) -> None:
    current_value = (current or "").strip().lower()
    allowed = transitions.get(current_value, frozenset())
    if target not in allowed:
        options = ", ".join(sorted(allowed)) or "none, status is final"
        raise InvalidTransitionError(
            f"Cannot move from '{current_value}' to '{target}' (allowed: {options})"
        )


def booking_status(value: str) -> str:
    return normalize_status(value, BOOKING_STATUSES)


def delivery_status(value: str) -> str:
    return normalize_status(value, DELIVERY_STATUSES)

