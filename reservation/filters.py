import django_filters

from reservation.models import Reservation


class ReservationFilter(django_filters.FilterSet):
    """
    Optional ?tableNumber=&date= filters for the reservation list.
    """

    tableNumber = django_filters.NumberFilter(field_name="table_number")
    date = django_filters.DateFilter(field_name="date")

    class Meta:
        model = Reservation
        fields = ["tableNumber", "date"]
