# urls.py
from django.urls import path

from .views import TableListCreateView, TableDetailView

urlpatterns = [
    path("tables", TableListCreateView.as_view(), name="table-list"),
    path("tables/<str:table_id>", TableDetailView.as_view(), name="table-detail"),
]
