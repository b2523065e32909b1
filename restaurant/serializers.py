from decimal import Decimal

from rest_framework import serializers
from .models import INT_MAX, INT_MIN, Table


class TableSerializer(serializers.ModelSerializer):
    """
    Wire format for tables: {id, number, places, isVip, minOrder}.
    `id` is declared explicitly so duplicate ids reach the registry
    instead of failing model uniqueness validation here.
    """

    id = serializers.IntegerField(min_value=INT_MIN, max_value=INT_MAX)
    number = serializers.IntegerField(min_value=INT_MIN, max_value=INT_MAX)
    places = serializers.IntegerField(min_value=1, max_value=INT_MAX)
    isVip = serializers.BooleanField(source="is_vip")
    minOrder = serializers.DecimalField(
        source="min_order",
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0"),
        allow_null=True,
        default=None,
        coerce_to_string=False,
    )

    class Meta:
        model = Table
        fields = ["id", "number", "places", "isVip", "minOrder"]
