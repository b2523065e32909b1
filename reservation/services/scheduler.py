# reservation/services/scheduler.py

import logging
import random
import time as time_module
import uuid
from datetime import date, time
from typing import Callable, Iterable

from django.conf import settings

from reservation.exceptions import (
    ConditionFailed,
    InvalidInterval,
    SlotConflict,
    StoreUnavailable,
    TableNotFound,
)
from reservation.services.store import (
    DjangoReservationStore,
    ReservationRecord,
    ReservationStore,
)

logger = logging.getLogger(__name__)


class ReservationScheduler:
    """
    Validates reservation requests and commits them with a no-overlap guarantee.

    Booking is optimistic: the overlap scan runs first, then the insert is
    issued as a conditional write that the store re-evaluates atomically.
    A lost race or a transient store failure retries the whole sequence a
    bounded number of times with jittered exponential backoff.
    """

    def __init__(
        self,
        store: ReservationStore,
        max_attempts: int = 3,
        backoff_base: float = 0.05,
        backoff_max: float = 1.0,
        sleep: Callable[[float], None] = time_module.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._sleep = sleep

    def _backoff(self, attempt: int):
        """Full jitter: sleep a random time up to base * 2^(attempt-1), capped."""
        ceiling = min(self.backoff_max, self.backoff_base * (2 ** (attempt - 1)))
        self._sleep(random.uniform(0, ceiling))

    def _attempt(
        self,
        table_number: int,
        client_name: str,
        phone_number: str,
        date: date,
        slot_time_start: time,
        slot_time_end: time,
    ) -> str:
        """
        One validate-and-commit pass. Validation order: table, interval, overlap.
        """
        if not self.store.table_exists(table_number):
            raise TableNotFound()

        if not slot_time_start < slot_time_end:
            raise InvalidInterval()

        if self.store.find_overlapping(table_number, date, slot_time_start, slot_time_end):
            raise SlotConflict()

        record = ReservationRecord(
            id=str(uuid.uuid4()),
            table_number=table_number,
            client_name=client_name,
            phone_number=phone_number,
            date=date,
            slot_time_start=slot_time_start,
            slot_time_end=slot_time_end,
        )
        self.store.insert_if_no_overlap(record)
        return record.id

    def book(
        self,
        table_number: int,
        client_name: str,
        phone_number: str,
        date: date,
        slot_time_start: time,
        slot_time_end: time,
    ) -> str:
        """
        Book a slot and return the new reservation id.

        Raises TableNotFound, InvalidInterval or SlotConflict for rejected
        requests, and StoreUnavailable when the store keeps failing.
        """
        slot = f"table {table_number} on {date} {slot_time_start}-{slot_time_end}"
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                reservation_id = self._attempt(
                    table_number,
                    client_name,
                    phone_number,
                    date,
                    slot_time_start,
                    slot_time_end,
                )
            except (TableNotFound, InvalidInterval, SlotConflict) as exc:
                logger.info(f"Rejected reservation for {slot}: {exc.message}")
                raise
            except ConditionFailed as exc:
                last_error = exc
                logger.warning(
                    f"Conditional write lost for {slot} "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
            except StoreUnavailable as exc:
                last_error = exc
                logger.warning(
                    f"Store unavailable while booking {slot} "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
            else:
                logger.info(f"Reservation {reservation_id} committed for {slot}")
                return reservation_id

            if attempt < self.max_attempts:
                self._backoff(attempt)

        if isinstance(last_error, StoreUnavailable):
            logger.error(f"Giving up on {slot} after {self.max_attempts} attempts: store unavailable")
            raise last_error

        logger.error(f"Giving up on {slot} after {self.max_attempts} attempts: slot contended")
        raise SlotConflict() from last_error

    def list_all(self) -> Iterable:
        """All committed reservations, unordered."""
        return self.store.list_reservations()


def get_scheduler(store: ReservationStore = None) -> ReservationScheduler:
    """
    Build a scheduler from settings.RESERVATION_SCHEDULER.
    Uses the Django ORM store unless one is given.
    """
    config = getattr(settings, "RESERVATION_SCHEDULER", {})
    return ReservationScheduler(
        store=store or DjangoReservationStore(),
        max_attempts=config.get("MAX_ATTEMPTS", 3),
        backoff_base=config.get("BACKOFF_BASE", 0.05),
        backoff_max=config.get("BACKOFF_MAX", 1.0),
    )
