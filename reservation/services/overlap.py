from datetime import time
from typing import Iterable


def slots_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """
    Two slots [start_a, end_a] and [start_b, end_b] overlap when
    start_a <= end_b and end_a >= start_b.
    Comparison is inclusive: 09:00-10:00 and 10:00-11:00 overlap.
    """
    return start_a <= end_b and end_a >= start_b


def find_overlapping(reservations: Iterable, start: time, end: time) -> list:
    """Return the reservations whose slot overlaps [start, end]."""
    return [
        reservation
        for reservation in reservations
        if slots_overlap(
            reservation.slot_time_start, reservation.slot_time_end, start, end
        )
    ]
