from rest_framework import generics, status
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers

from .exceptions import TableNotFound
from .models import INT_MAX, INT_MIN, Table
from .serializers import TableSerializer
from .services.registry import TableRegistry


class TableListCreateView(generics.ListCreateAPIView):
    """
    POST /tables registers a table, GET /tables lists all of them.
    """

    serializer_class = TableSerializer

    def get_queryset(self):
        return TableRegistry.list()

    @extend_schema(
        responses={
            200: inline_serializer("TableList", {"tables": TableSerializer(many=True)})
        },
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({"tables": serializer.data})

    @extend_schema(
        summary="Register a table",
        responses={
            200: inline_serializer("TableCreated", {"id": serializers.IntegerField()}),
            400: {"description": "Invalid table data"},
            409: {"description": "Table id already registered"},
        },
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        table = TableRegistry.create(**serializer.validated_data)

        return Response({"id": table.id}, status=status.HTTP_200_OK)


class TableDetailView(generics.RetrieveAPIView):
    """
    GET /tables/{id}. Lookup is by primary key.
    """

    serializer_class = TableSerializer
    queryset = Table.objects.all()

    @extend_schema(
        responses={
            200: TableSerializer,
            404: {"description": "Table not found"},
        },
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_object(self):
        try:
            table_id = int(self.kwargs["table_id"])
        except ValueError:
            raise TableNotFound("Table not found", status_code=status.HTTP_404_NOT_FOUND)
        if not INT_MIN <= table_id <= INT_MAX:
            raise TableNotFound("Table not found", status_code=status.HTTP_404_NOT_FOUND)
        return TableRegistry.get(table_id)
