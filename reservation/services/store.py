# reservation/services/store.py

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, Iterable, List, Sequence, Tuple

from django.db import DatabaseError, transaction
from django.db.models import Q, QuerySet

from reservation.exceptions import ConditionFailed, StoreUnavailable, TableNotFound
from reservation.models import Reservation, SlotLock
from reservation.services.overlap import find_overlapping
from restaurant.services.registry import TableRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationRecord:
    """
    A reservation about to be committed. Also the row type of the in-memory store.
    """

    id: str
    table_number: int
    client_name: str
    phone_number: str
    date: date
    slot_time_start: time
    slot_time_end: time


class ReservationStore(ABC):
    """
    Persistence seam for the scheduler. Implementations must evaluate the
    no-overlap condition of `insert_if_no_overlap` atomically with the insert.
    """

    @abstractmethod
    def table_exists(self, table_number: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def find_overlapping(
        self, table_number: int, on_date: date, start: time, end: time
    ) -> Sequence:
        raise NotImplementedError

    @abstractmethod
    def insert_if_no_overlap(self, record: ReservationRecord):
        """
        Insert `record` only if no reservation for its (table_number, date)
        overlaps it at write time. Raises ConditionFailed otherwise.
        """
        raise NotImplementedError

    @abstractmethod
    def list_reservations(self) -> Iterable:
        raise NotImplementedError


class DjangoReservationStore(ReservationStore):
    """
    Store backed by the Django ORM.
    The conditional write locks the SlotLock row of the key for the
    duration of the transaction, so only bookings for the same
    (table_number, date) wait on each other.
    """

    @contextmanager
    def _store_errors(self, action: str):
        try:
            yield
        except DatabaseError as exc:
            logger.error(f"Reservation store failed to {action}: {exc}")
            raise StoreUnavailable() from exc

    @staticmethod
    def _overlap_query(table_number: int, on_date: date, start: time, end: time) -> QuerySet:
        """
        Reservations on the same table and date whose slot overlaps [start, end].
        Touching endpoints count as overlapping.
        """
        return Reservation.objects.filter(
            table_number=table_number,
            date=on_date,
        ).filter(
            Q(slot_time_start__lte=end)
            & Q(slot_time_end__gte=start)
        )

    def table_exists(self, table_number: int) -> bool:
        return TableRegistry.exists(table_number)

    def find_overlapping(self, table_number, on_date, start, end) -> List[Reservation]:
        with self._store_errors("scan reservations"):
            return list(self._overlap_query(table_number, on_date, start, end))

    def insert_if_no_overlap(self, record: ReservationRecord) -> Reservation:
        with self._store_errors("commit reservation"):
            with transaction.atomic():
                # Key-scoped lock; re-checks below see every committed booking for the key
                SlotLock.objects.select_for_update().get_or_create(
                    table_number=record.table_number,
                    date=record.date,
                )

                if not TableRegistry.exists(record.table_number):
                    raise TableNotFound()

                if self._overlap_query(
                    record.table_number,
                    record.date,
                    record.slot_time_start,
                    record.slot_time_end,
                ).exists():
                    raise ConditionFailed()

                return Reservation.objects.create(
                    id=record.id,
                    table_number=record.table_number,
                    client_name=record.client_name,
                    phone_number=record.phone_number,
                    date=record.date,
                    slot_time_start=record.slot_time_start,
                    slot_time_end=record.slot_time_end,
                )

    def list_reservations(self) -> QuerySet:
        return Reservation.objects.all()


class InMemoryReservationStore(ReservationStore):
    """
    Thread-safe store kept in process memory.
    Check-and-insert runs under a mutex keyed by (table_number, date);
    the registry lock only guards creation of those mutexes.
    """

    def __init__(self, table_numbers: Iterable[int] = ()):
        self._tables = set(table_numbers)
        self._rows: List[ReservationRecord] = []
        self._key_locks: Dict[Tuple[int, date], threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def add_table(self, table_number: int):
        with self._registry_lock:
            self._tables.add(table_number)

    def _lock_for(self, table_number: int, on_date: date) -> threading.Lock:
        with self._registry_lock:
            return self._key_locks.setdefault((table_number, on_date), threading.Lock())

    def _rows_for(self, table_number: int, on_date: date) -> List[ReservationRecord]:
        with self._registry_lock:
            return [
                row for row in self._rows
                if row.table_number == table_number and row.date == on_date
            ]

    def table_exists(self, table_number: int) -> bool:
        with self._registry_lock:
            return table_number in self._tables

    def find_overlapping(self, table_number, on_date, start, end) -> List[ReservationRecord]:
        return find_overlapping(self._rows_for(table_number, on_date), start, end)

    def insert_if_no_overlap(self, record: ReservationRecord) -> ReservationRecord:
        with self._lock_for(record.table_number, record.date):
            if not self.table_exists(record.table_number):
                raise TableNotFound()

            existing = self._rows_for(record.table_number, record.date)
            if find_overlapping(existing, record.slot_time_start, record.slot_time_end):
                raise ConditionFailed()

            with self._registry_lock:
                self._rows.append(record)
        return record

    def list_reservations(self) -> List[ReservationRecord]:
        with self._registry_lock:
            return list(self._rows)
