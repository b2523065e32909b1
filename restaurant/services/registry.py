# restaurant/services/registry.py

import logging
from decimal import Decimal
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction

from restaurant.models import Table
from restaurant.exceptions import DuplicateId, StoreUnavailable, TableNotFound

logger = logging.getLogger(__name__)


class TableRegistry:
    """
    Service class for table registration and lookup.
    """

    @staticmethod
    def create(
        id: int,
        number: int,
        places: int,
        is_vip: bool,
        min_order: Optional[Decimal] = None,
    ) -> Table:
        """
        Register a new table. Fails with DuplicateId if the id is taken.
        """
        try:
            if Table.objects.filter(pk=id).exists():
                raise DuplicateId(f"Table with id {id} already exists")

            # A concurrent insert of the same id still fails on the primary key
            with transaction.atomic():
                table = Table.objects.create(
                    id=id,
                    number=number,
                    places=places,
                    is_vip=is_vip,
                    min_order=min_order,
                )
        except IntegrityError as exc:
            raise DuplicateId(f"Table with id {id} already exists") from exc
        except DatabaseError as exc:
            logger.error(f"Failed to create table {id}: {exc}")
            raise StoreUnavailable() from exc

        logger.info(f"Registered table {table.id} with number {table.number}")
        return table

    @staticmethod
    def exists(table_number: int) -> bool:
        """
        Check whether any table carries the given number.
        Lookup is by `number`, not by primary key.
        """
        try:
            return Table.objects.filter(number=table_number).exists()
        except DatabaseError as exc:
            logger.error(f"Failed to look up table number {table_number}: {exc}")
            raise StoreUnavailable() from exc

    @staticmethod
    def get(id: int) -> Table:
        try:
            return Table.objects.get(pk=id)
        except Table.DoesNotExist:
            raise TableNotFound("Table not found", status_code=404)
        except DatabaseError as exc:
            logger.error(f"Failed to fetch table {id}: {exc}")
            raise StoreUnavailable() from exc

    @staticmethod
    def list() -> List[Table]:
        """All registered tables, unordered."""
        try:
            return list(Table.objects.all())
        except DatabaseError as exc:
            logger.error(f"Failed to list tables: {exc}")
            raise StoreUnavailable() from exc
