from django.core.validators import MinValueValidator
from django.db import models

# Range of the integer columns on every supported backend
INT_MIN = -2147483648
INT_MAX = 2147483647


class Table(models.Model):
    """
    A physical table that reservations are booked against.
    The primary key is supplied by the caller; reservations reference
    the table by its `number`, which is a separate attribute.
    """

    id = models.IntegerField(primary_key=True)
    number = models.IntegerField(db_index=True)
    places = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    is_vip = models.BooleanField(default=False)

    # Minimum order amount, null when the table has none
    min_order = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )

    def __str__(self):
        return f"Table {self.number} (id={self.id})"
