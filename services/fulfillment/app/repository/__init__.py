"""Repository helpers for the fulfillment service."""

from . import (
    assignment_repository,
    booking_repository,
    delivery_repository,
    schedule_repository,
)

__all__ = [
    "assignment_repository",
    "booking_repository",
    "delivery_repository",
    "schedule_repository",
]
