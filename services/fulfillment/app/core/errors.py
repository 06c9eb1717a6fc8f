"""Domain errors raised by the fulfillment services.

Every error is terminal for the request that raised it. Each class maps to a
distinct ``code`` so clients can tell, for example, "no available slots" apart
from "delivery not yet completed". Only capacity and duplicate conflicts are
flagged as ``retryable``: the caller may pick another slot and try again.
"""

from __future__ import annotations

from fastapi import status


class FulfillmentError(RuntimeError):
    """Base class for errors surfaced verbatim to API clients."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "fulfillment_error"
    retryable: bool = False
    default_message: str = "Fulfillment request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FulfillmentError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_message = "Invalid request"


class NotFoundError(FulfillmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class AuthorizationError(FulfillmentError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "You are not allowed to perform this action"


class AssignmentMismatchError(AuthorizationError):
    """The order assignment and the delivery record name different admins."""

    code = "assignment_mismatch"
    default_message = "Order assignment does not match the delivery admin"


class AssignmentError(FulfillmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "unassigned"
    default_message = "No admin assigned"


class PreconditionError(FulfillmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "precondition_failed"
    default_message = "A previous fulfillment step is not complete"


class TemporalOrderError(FulfillmentError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "temporal_order"
    default_message = "Schedule date must be after the delivery completion date"


class InvalidStateError(FulfillmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state"
    default_message = "Resource is not in a state that allows this action"


class ScheduleConflictError(FulfillmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "schedule_conflict"
    default_message = "You already have a schedule that overlaps with this time slot"


class CapacityExceededError(FulfillmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "capacity_exceeded"
    retryable = True
    default_message = "No available slots for this schedule"


class DuplicateBookingError(FulfillmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_booking"
    retryable = True
    default_message = "Booking already exists"


class InvalidTransitionError(FulfillmentError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_transition"
    default_message = "Status transition is not allowed"


__all__ = [
    "FulfillmentError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "AssignmentMismatchError",
    "AssignmentError",
    "PreconditionError",
    "TemporalOrderError",
    "InvalidStateError",
    "ScheduleConflictError",
    "CapacityExceededError",
    "DuplicateBookingError",
    "InvalidTransitionError",
]
