# reservation/exceptions.py

from rest_framework import status

# Registry errors are raised by the scheduler too
from restaurant.exceptions import (  # noqa: F401
    DuplicateId,
    ServiceError,
    StoreUnavailable,
    TableNotFound,
)


class ReservationError(ServiceError):
    """
    Base class for booking failures owned by the scheduler.
    """

    default_message = "Reservation request failed"


class InvalidInterval(ReservationError):
    default_message = "Slot start time must be before slot end time"
    status_code = status.HTTP_400_BAD_REQUEST


class SlotConflict(ReservationError):
    default_message = "Reservation overlaps with an existing one"
    status_code = status.HTTP_409_CONFLICT


class ConditionFailed(Exception):
    """
    Raised by a store when the no-overlap condition of a conditional
    write no longer holds at write time. Never leaves the scheduler.
    """
