from rest_framework import serializers

from reservation.models import Reservation
from restaurant.models import INT_MAX, INT_MIN


class ReservationSerializer(serializers.ModelSerializer):
    """
    Wire format for reservations.
    Interval and overlap checks are handled by ReservationScheduler, so this
    serializer only validates shapes and types.
    """

    id = serializers.UUIDField(read_only=True)
    tableNumber = serializers.IntegerField(
        source="table_number", min_value=INT_MIN, max_value=INT_MAX
    )
    clientName = serializers.CharField(source="client_name", max_length=255)
    phoneNumber = serializers.CharField(
        source="phone_number", max_length=50, allow_blank=True
    )
    date = serializers.DateField()
    # Slots are minute-granular: seconds are rejected rather than dropped
    slotTimeStart = serializers.TimeField(
        source="slot_time_start", format="%H:%M", input_formats=["%H:%M"]
    )
    slotTimeEnd = serializers.TimeField(
        source="slot_time_end", format="%H:%M", input_formats=["%H:%M"]
    )

    class Meta:
        model = Reservation
        fields = [
            "id",
            "tableNumber",
            "clientName",
            "phoneNumber",
            "date",
            "slotTimeStart",
            "slotTimeEnd",
        ]
