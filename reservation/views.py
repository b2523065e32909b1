from rest_framework import generics, serializers, status
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, inline_serializer
from django_filters.rest_framework import DjangoFilterBackend

from reservation.filters import ReservationFilter
from reservation.serializers import ReservationSerializer
from reservation.services.scheduler import get_scheduler


class ReservationListCreateView(generics.ListCreateAPIView):
    """
    API view for booking reservations and listing them.
    Uses ReservationScheduler for both.
    """

    serializer_class = ReservationSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReservationFilter

    def get_queryset(self):
        return get_scheduler().list_all()

    @extend_schema(
        summary="List reservations",
        responses={
            200: inline_serializer(
                "ReservationList", {"reservations": ReservationSerializer(many=True)}
            )
        },
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = self.get_serializer(queryset, many=True)
        return Response({"reservations": serializer.data})

    @extend_schema(
        summary="Book a reservation",
        description="Books a slot on a table. Touching slots "
        "(one ending when the other starts) count as overlapping.",
        responses={
            200: inline_serializer(
                "ReservationCreated", {"reservationId": serializers.UUIDField()}
            ),
            400: {"description": "Table does not exist or invalid slot"},
            409: {"description": "Reservation overlaps with an existing one"},
            503: {"description": "Reservation store unavailable"},
        },
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        """
        Validate the payload shape, then hand the booking to the scheduler.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated_data = serializer.validated_data

        reservation_id = get_scheduler().book(
            table_number=validated_data["table_number"],
            client_name=validated_data["client_name"],
            phone_number=validated_data["phone_number"],
            date=validated_data["date"],
            slot_time_start=validated_data["slot_time_start"],
            slot_time_end=validated_data["slot_time_end"],
        )

        return Response({"reservationId": reservation_id}, status=status.HTTP_200_OK)
