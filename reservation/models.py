# reservation/models.py

import uuid

from django.db import models


class Reservation(models.Model):
    """
    Core reservation model.
    Created only through ReservationScheduler.book and never mutated afterwards.
    Tables are referenced by their `number`, not by primary key.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    table_number = models.IntegerField()

    # Client details
    client_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=50, blank=True)

    # Reservation details - date and slot
    date = models.DateField()
    slot_time_start = models.TimeField(help_text="Slot start time")
    slot_time_end = models.TimeField(help_text="Slot end time")

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["table_number", "date"], name="reservation_table_date_idx"),
        ]

    def __str__(self):
        return f"{self.client_name} - table {self.table_number} - {self.date} ({self.slot_time_start}-{self.slot_time_end})"


class SlotLock(models.Model):
    """
    One row per (table_number, date). Locked with SELECT ... FOR UPDATE
    to serialize conditional writes for that key only.
    """

    table_number = models.IntegerField()
    date = models.DateField()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["table_number", "date"], name="unique_slot_lock_key"),
        ]

    def __str__(self):
        return f"Lock table {self.table_number} - {self.date}"
