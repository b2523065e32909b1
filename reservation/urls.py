from django.urls import path

from reservation import views


urlpatterns = [
    path(
        "reservations",
        views.ReservationListCreateView.as_view(),
        name="reservation-list",
    ),
]
