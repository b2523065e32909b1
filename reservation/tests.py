import threading
from datetime import date, time
from unittest import mock

from django.db import DatabaseError, connection
from django.test import SimpleTestCase, TestCase, TransactionTestCase

from reservation.exceptions import (
    ConditionFailed,
    InvalidInterval,
    ServiceError,
    SlotConflict,
    StoreUnavailable,
    TableNotFound,
)
from reservation.models import Reservation, SlotLock
from reservation.services.overlap import find_overlapping, slots_overlap
from reservation.services.scheduler import ReservationScheduler, get_scheduler
from reservation.services.store import (
    DjangoReservationStore,
    InMemoryReservationStore,
    ReservationRecord,
)


def make_scheduler(store, max_attempts=3):
    """Scheduler that never actually sleeps between retries."""
    return ReservationScheduler(
        store=store,
        max_attempts=max_attempts,
        backoff_base=0,
        backoff_max=0,
        sleep=lambda seconds: None,
    )


class SlotOverlapTest(SimpleTestCase):
    """Unit tests for the overlap predicate"""

    def test_partial_overlap(self):
        self.assertTrue(slots_overlap(time(12, 0), time(14, 0), time(13, 0), time(15, 0)))
        self.assertTrue(slots_overlap(time(13, 0), time(15, 0), time(12, 0), time(14, 0)))

    def test_containment(self):
        self.assertTrue(slots_overlap(time(12, 0), time(18, 0), time(13, 0), time(14, 0)))
        self.assertTrue(slots_overlap(time(13, 0), time(14, 0), time(12, 0), time(18, 0)))

    def test_touching_endpoints_overlap(self):
        """A slot ending at 10:00 conflicts with one starting at 10:00"""
        self.assertTrue(slots_overlap(time(9, 0), time(10, 0), time(10, 0), time(11, 0)))
        self.assertTrue(slots_overlap(time(10, 0), time(11, 0), time(9, 0), time(10, 0)))

    def test_disjoint(self):
        self.assertFalse(slots_overlap(time(9, 0), time(10, 0), time(10, 1), time(11, 0)))
        self.assertFalse(slots_overlap(time(15, 0), time(17, 0), time(12, 0), time(14, 0)))

    def test_find_overlapping_filters_rows(self):
        rows = [
            ReservationRecord("a", 5, "Ann", "", date(2024, 1, 1), time(9, 0), time(10, 0)),
            ReservationRecord("b", 5, "Bob", "", date(2024, 1, 1), time(12, 0), time(13, 0)),
        ]

        found = find_overlapping(rows, time(10, 0), time(11, 0))

        self.assertEqual([row.id for row in found], ["a"])


class ReservationSchedulerTest(SimpleTestCase):
    """Unit tests for ReservationScheduler against the in-memory store"""

    def setUp(self):
        self.store = InMemoryReservationStore(table_numbers=[5])
        self.scheduler = make_scheduler(self.store)
        self.test_date = date(2024, 1, 1)

    def book(self, start, end, table_number=5, on_date=None):
        return self.scheduler.book(
            table_number=table_number,
            client_name="Jane Doe",
            phone_number="+15550100",
            date=on_date or self.test_date,
            slot_time_start=start,
            slot_time_end=end,
        )

    def test_book_success(self):
        """Test successful booking returns a fresh id"""
        reservation_id = self.book(time(18, 0), time(19, 0))

        self.assertTrue(reservation_id)
        reservations = list(self.scheduler.list_all())
        self.assertEqual(len(reservations), 1)
        self.assertEqual(reservations[0].id, reservation_id)

    def test_ids_are_unique(self):
        first = self.book(time(9, 0), time(10, 0))
        second = self.book(time(11, 0), time(12, 0))

        self.assertNotEqual(first, second)

    def test_unknown_table(self):
        """Booking a missing table never creates a reservation"""
        with self.assertRaises(TableNotFound):
            self.book(time(18, 0), time(19, 0), table_number=99)

        self.assertEqual(list(self.scheduler.list_all()), [])

    def test_unknown_table_checked_before_interval(self):
        """Table existence is validated first"""
        with self.assertRaises(TableNotFound):
            self.book(time(19, 0), time(18, 0), table_number=99)

    def test_invalid_interval(self):
        with self.assertRaises(InvalidInterval):
            self.book(time(19, 0), time(18, 0))
        with self.assertRaises(InvalidInterval):
            self.book(time(18, 0), time(18, 0))

        self.assertEqual(list(self.scheduler.list_all()), [])

    def test_overlap_rejected(self):
        self.book(time(12, 0), time(14, 0))

        with self.assertRaises(SlotConflict):
            self.book(time(13, 0), time(15, 0))

    def test_touching_slot_rejected(self):
        """[09:00,10:00] followed by [10:00,11:00] is a conflict"""
        self.book(time(9, 0), time(10, 0))

        with self.assertRaises(SlotConflict) as ctx:
            self.book(time(10, 0), time(11, 0))

        self.assertEqual(ctx.exception.message, "Reservation overlaps with an existing one")

    def test_same_slot_other_date_or_table(self):
        self.store.add_table(6)
        self.book(time(18, 0), time(19, 0))

        self.book(time(18, 0), time(19, 0), on_date=date(2024, 1, 2))
        self.book(time(18, 0), time(19, 0), table_number=6)

        self.assertEqual(len(list(self.scheduler.list_all())), 3)

    def test_scenario(self):
        """
        Table number 5, book 18:00-19:00, repeat it, then book the
        adjacent 19:00-20:00 slot.
        """
        reservation_id = self.book(time(18, 0), time(19, 0))
        self.assertIsNotNone(reservation_id)

        with self.assertRaises(SlotConflict):
            self.book(time(18, 0), time(19, 0))

        # Adjacent slot shares the 19:00 endpoint
        with self.assertRaises(SlotConflict):
            self.book(time(19, 0), time(20, 0))

        self.assertEqual(len(list(self.scheduler.list_all())), 1)

    def test_no_overlapping_pairs_committed(self):
        """Every committed pair on the same key is disjoint"""
        slots = [
            (time(9, 0), time(10, 0)),
            (time(9, 30), time(11, 0)),
            (time(10, 0), time(10, 30)),
            (time(10, 30), time(12, 0)),
            (time(12, 1), time(13, 0)),
            (time(13, 0), time(13, 30)),
        ]
        for start, end in slots:
            try:
                self.book(start, end)
            except SlotConflict:
                pass

        committed = list(self.scheduler.list_all())
        for i, first in enumerate(committed):
            for second in committed[i + 1:]:
                self.assertFalse(
                    slots_overlap(
                        first.slot_time_start, first.slot_time_end,
                        second.slot_time_start, second.slot_time_end,
                    )
                )

    def test_rejects_zero_attempts(self):
        with self.assertRaises(ValueError):
            ReservationScheduler(store=self.store, max_attempts=0)


class SchedulerRetryTest(SimpleTestCase):
    """Retry behaviour on lost conditional writes and store failures"""

    def setUp(self):
        self.store = InMemoryReservationStore(table_numbers=[5])
        self.sleep = mock.Mock()
        self.scheduler = ReservationScheduler(
            store=self.store,
            max_attempts=3,
            backoff_base=0.01,
            backoff_max=0.02,
            sleep=self.sleep,
        )
        self.kwargs = {
            "table_number": 5,
            "client_name": "Jane Doe",
            "phone_number": "",
            "date": date(2024, 1, 1),
            "slot_time_start": time(18, 0),
            "slot_time_end": time(19, 0),
        }

    def test_retries_after_lost_conditional_write(self):
        with mock.patch.object(
            self.store, "insert_if_no_overlap", side_effect=[ConditionFailed(), None]
        ) as insert:
            reservation_id = self.scheduler.book(**self.kwargs)

        self.assertTrue(reservation_id)
        self.assertEqual(insert.call_count, 2)
        self.assertEqual(self.sleep.call_count, 1)

    def test_lost_writes_exhausted_surface_conflict(self):
        with mock.patch.object(
            self.store, "insert_if_no_overlap", side_effect=ConditionFailed()
        ) as insert:
            with self.assertRaises(SlotConflict):
                self.scheduler.book(**self.kwargs)

        self.assertEqual(insert.call_count, 3)
        self.assertEqual(self.sleep.call_count, 2)

    def test_store_failure_retried_then_surfaced(self):
        """Infrastructure failure is not reported as a booking conflict"""
        with mock.patch.object(
            self.store, "table_exists", side_effect=StoreUnavailable()
        ) as table_exists:
            with self.assertRaises(StoreUnavailable):
                self.scheduler.book(**self.kwargs)

        self.assertEqual(table_exists.call_count, 3)
        self.assertEqual(self.sleep.call_count, 2)

    def test_store_failure_recovers(self):
        with mock.patch.object(
            self.store, "find_overlapping", side_effect=[StoreUnavailable(), []]
        ):
            reservation_id = self.scheduler.book(**self.kwargs)

        self.assertTrue(reservation_id)

    def test_validation_errors_not_retried(self):
        self.kwargs["table_number"] = 99
        with self.assertRaises(TableNotFound):
            self.scheduler.book(**self.kwargs)

        self.sleep.assert_not_called()

    def test_backoff_is_bounded(self):
        with mock.patch.object(
            self.store, "insert_if_no_overlap", side_effect=ConditionFailed()
        ):
            with self.assertRaises(SlotConflict):
                self.scheduler.book(**self.kwargs)

        for call in self.sleep.call_args_list:
            self.assertGreaterEqual(call.args[0], 0)
            self.assertLessEqual(call.args[0], 0.02)


class RacingStore(InMemoryReservationStore):
    """
    In-memory store whose first overlap scan in each thread waits until
    every thread has scanned, so all of them race into the conditional write.
    """

    def __init__(self, parties, **kwargs):
        super().__init__(**kwargs)
        self._barrier = threading.Barrier(parties)
        self._local = threading.local()

    def find_overlapping(self, table_number, on_date, start, end):
        result = super().find_overlapping(table_number, on_date, start, end)
        if not getattr(self._local, "scanned", False):
            self._local.scanned = True
            self._barrier.wait(timeout=10)
        return result


class ConcurrentBookingTest(SimpleTestCase):
    """Concurrency tests: conflicting bookings serialize, others do not"""

    workers = 8

    def run_concurrently(self, scheduler, requests):
        start = threading.Barrier(len(requests))
        results = [None] * len(requests)

        def worker(index, kwargs):
            start.wait(timeout=10)
            try:
                results[index] = scheduler.book(**kwargs)
            except ServiceError as exc:
                results[index] = exc

        threads = [
            threading.Thread(target=worker, args=(index, kwargs))
            for index, kwargs in enumerate(requests)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return results

    def overlapping_requests(self):
        # Every pair of these slots overlaps at 18:30
        return [
            {
                "table_number": 5,
                "client_name": f"Client {index}",
                "phone_number": "",
                "date": date(2024, 1, 1),
                "slot_time_start": time(18, index),
                "slot_time_end": time(19, index),
            }
            for index in range(self.workers)
        ]

    def assert_single_winner(self, results):
        successes = [result for result in results if isinstance(result, str)]
        conflicts = [result for result in results if isinstance(result, SlotConflict)]

        self.assertEqual(len(successes), 1)
        self.assertEqual(len(conflicts), self.workers - 1)

    def test_overlapping_bookings_single_winner(self):
        for _ in range(20):
            store = InMemoryReservationStore(table_numbers=[5])
            results = self.run_concurrently(make_scheduler(store), self.overlapping_requests())

            self.assert_single_winner(results)
            self.assertEqual(len(store.list_reservations()), 1)

    def test_racing_conditional_writes_single_winner(self):
        """All threads pass the scan; the conditional write admits only one"""
        store = RacingStore(parties=self.workers, table_numbers=[5])
        results = self.run_concurrently(make_scheduler(store), self.overlapping_requests())

        self.assert_single_winner(results)
        self.assertEqual(len(store.list_reservations()), 1)

    def test_disjoint_keys_all_succeed(self):
        store = InMemoryReservationStore(table_numbers=range(1, self.workers + 1))
        requests = [
            {
                "table_number": index + 1,
                "client_name": f"Client {index}",
                "phone_number": "",
                "date": date(2024, 1, 1 + index),
                "slot_time_start": time(18, 0),
                "slot_time_end": time(19, 0),
            }
            for index in range(self.workers)
        ]

        results = self.run_concurrently(make_scheduler(store), requests)

        self.assertTrue(all(isinstance(result, str) for result in results))
        self.assertEqual(len(store.list_reservations()), self.workers)

    def test_locks_scoped_to_key(self):
        store = InMemoryReservationStore(table_numbers=[5, 6])
        lock = store._lock_for(5, date(2024, 1, 1))

        self.assertIs(lock, store._lock_for(5, date(2024, 1, 1)))
        self.assertIsNot(lock, store._lock_for(6, date(2024, 1, 1)))
        self.assertIsNot(lock, store._lock_for(5, date(2024, 1, 2)))

    def test_other_key_not_blocked_by_held_lock(self):
        """A booking on another key commits while a key lock is held"""
        store = InMemoryReservationStore(table_numbers=[5, 6])
        scheduler = make_scheduler(store)

        with store._lock_for(5, date(2024, 1, 1)):
            reservation_id = scheduler.book(
                table_number=6,
                client_name="Jane Doe",
                phone_number="",
                date=date(2024, 1, 1),
                slot_time_start=time(18, 0),
                slot_time_end=time(19, 0),
            )

        self.assertTrue(reservation_id)


class DjangoReservationStoreTest(TestCase):
    """Tests for the ORM-backed store"""

    fixtures = ['tables.json']

    def setUp(self):
        self.store = DjangoReservationStore()
        self.scheduler = make_scheduler(self.store)
        self.test_date = date(2024, 1, 1)

    def record(self, start, end, table_number=5, reservation_id="5b3e4c1e-1c7e-4f5e-9d55-0c3f8a2d9b10"):
        return ReservationRecord(
            id=reservation_id,
            table_number=table_number,
            client_name="Jane Doe",
            phone_number="+15550100",
            date=self.test_date,
            slot_time_start=start,
            slot_time_end=end,
        )

    def test_table_exists_by_number(self):
        """Fixture table id=1 has number=5"""
        self.assertTrue(self.store.table_exists(5))
        self.assertFalse(self.store.table_exists(1))

    def test_conditional_insert(self):
        reservation = self.store.insert_if_no_overlap(self.record(time(18, 0), time(19, 0)))

        self.assertIsNotNone(reservation.pk)
        self.assertEqual(Reservation.objects.count(), 1)
        self.assertTrue(SlotLock.objects.filter(table_number=5, date=self.test_date).exists())

    def test_conditional_insert_rejects_overlap(self):
        self.store.insert_if_no_overlap(self.record(time(18, 0), time(19, 0)))

        with self.assertRaises(ConditionFailed):
            self.store.insert_if_no_overlap(
                self.record(
                    time(19, 0),
                    time(20, 0),
                    reservation_id="0d8f4a56-4e8b-4c55-8f0e-2a4b9f7c6e21",
                )
            )

        self.assertEqual(Reservation.objects.count(), 1)

    def test_conditional_insert_rejects_unknown_table(self):
        with self.assertRaises(TableNotFound):
            self.store.insert_if_no_overlap(self.record(time(18, 0), time(19, 0), table_number=99))

        self.assertEqual(Reservation.objects.count(), 0)

    def test_find_overlapping(self):
        self.store.insert_if_no_overlap(self.record(time(12, 0), time(14, 0)))

        self.assertEqual(len(self.store.find_overlapping(5, self.test_date, time(14, 0), time(15, 0))), 1)
        self.assertEqual(len(self.store.find_overlapping(5, self.test_date, time(14, 1), time(15, 0))), 0)
        self.assertEqual(len(self.store.find_overlapping(7, self.test_date, time(12, 0), time(14, 0))), 0)

    def test_stale_scan_is_caught_by_conditional_write(self):
        """
        The scan misses a committed booking; the write itself still refuses
        to create an overlapping reservation.
        """
        self.scheduler.book(
            table_number=5,
            client_name="First",
            phone_number="",
            date=self.test_date,
            slot_time_start=time(18, 0),
            slot_time_end=time(19, 0),
        )

        with mock.patch.object(self.store, "find_overlapping", return_value=[]):
            with self.assertRaises(SlotConflict):
                self.scheduler.book(
                    table_number=5,
                    client_name="Second",
                    phone_number="",
                    date=self.test_date,
                    slot_time_start=time(18, 30),
                    slot_time_end=time(19, 30),
                )

        self.assertEqual(Reservation.objects.count(), 1)

    def test_database_error_is_store_unavailable(self):
        """A failed write leaves nothing committed"""
        with mock.patch.object(
            Reservation.objects, "create", side_effect=DatabaseError("connection lost")
        ):
            with self.assertRaises(StoreUnavailable):
                self.store.insert_if_no_overlap(self.record(time(18, 0), time(19, 0)))

        self.assertEqual(Reservation.objects.count(), 0)
        self.assertFalse(SlotLock.objects.exists())

    def test_get_scheduler_uses_settings(self):
        with self.settings(RESERVATION_SCHEDULER={"MAX_ATTEMPTS": 5, "BACKOFF_BASE": 0.1, "BACKOFF_MAX": 2.0}):
            scheduler = get_scheduler()

        self.assertIsInstance(scheduler.store, DjangoReservationStore)
        self.assertEqual(scheduler.max_attempts, 5)
        self.assertEqual(scheduler.backoff_base, 0.1)
        self.assertEqual(scheduler.backoff_max, 2.0)

    def test_list_all(self):
        reservation_id = self.scheduler.book(
            table_number=7,
            client_name="Jane Doe",
            phone_number="",
            date=self.test_date,
            slot_time_start=time(20, 0),
            slot_time_end=time(21, 0),
        )

        reservations = list(self.scheduler.list_all())

        self.assertEqual(len(reservations), 1)
        self.assertEqual(str(reservations[0].id), reservation_id)


class ConcurrentDatabaseBookingTest(TransactionTestCase):
    """
    Threaded bookings through get_scheduler() against the real database.
    Each thread opens its own connection, so the test database must be a
    file (DATABASES['default']['TEST']['NAME']) rather than in-memory.
    """

    fixtures = ['tables.json']
    workers = 8

    def run_concurrently(self, requests):
        with self.settings(RESERVATION_SCHEDULER={"MAX_ATTEMPTS": 3, "BACKOFF_BASE": 0.01, "BACKOFF_MAX": 0.05}):
            scheduler = get_scheduler()
        start = threading.Barrier(len(requests))
        results = [None] * len(requests)

        def worker(index, kwargs):
            try:
                start.wait(timeout=10)
                results[index] = scheduler.book(**kwargs)
            except ServiceError as exc:
                results[index] = exc
            finally:
                connection.close()

        threads = [
            threading.Thread(target=worker, args=(index, kwargs))
            for index, kwargs in enumerate(requests)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)
        return results

    def test_overlapping_bookings_single_winner(self):
        requests = [
            {
                "table_number": 5,
                "client_name": f"Client {index}",
                "phone_number": "",
                "date": date(2024, 1, 1),
                "slot_time_start": time(18, index),
                "slot_time_end": time(19, index),
            }
            for index in range(self.workers)
        ]

        results = self.run_concurrently(requests)

        successes = [result for result in results if isinstance(result, str)]
        conflicts = [result for result in results if isinstance(result, SlotConflict)]
        self.assertEqual(len(successes), 1, results)
        self.assertEqual(len(conflicts), self.workers - 1, results)
        self.assertEqual(Reservation.objects.count(), 1)
        self.assertEqual(str(Reservation.objects.get().id), successes[0])

    def test_disjoint_keys_all_succeed(self):
        requests = [
            {
                "table_number": 5 if index % 2 == 0 else 7,
                "client_name": f"Client {index}",
                "phone_number": "",
                "date": date(2024, 1, 1 + index),
                "slot_time_start": time(18, 0),
                "slot_time_end": time(19, 0),
            }
            for index in range(self.workers)
        ]

        results = self.run_concurrently(requests)

        self.assertTrue(all(isinstance(result, str) for result in results), results)
        self.assertEqual(Reservation.objects.count(), self.workers)
        self.assertEqual(SlotLock.objects.count(), self.workers)
