
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from restaurant.exceptions import DuplicateId, StoreUnavailable, TableNotFound
from restaurant.models import Table
from restaurant.services.registry import TableRegistry


class TableRegistryTest(TestCase):
    """Unit tests for TableRegistry"""

    fixtures = ['tables.json']

    def test_create_table(self):
        """Test basic table registration"""
        table = TableRegistry.create(id=10, number=12, places=2, is_vip=False)

        self.assertEqual(table.id, 10)
        self.assertEqual(table.number, 12)
        self.assertIsNone(table.min_order)
        self.assertTrue(Table.objects.filter(pk=10).exists())

    def test_create_with_min_order(self):
        table = TableRegistry.create(
            id=11, number=14, places=8, is_vip=True, min_order=Decimal('200.00')
        )

        table.refresh_from_db()
        self.assertEqual(table.min_order, Decimal('200.00'))
        self.assertTrue(table.is_vip)

    def test_create_duplicate_id(self):
        """Fixture already registers id 1"""
        with self.assertRaises(DuplicateId):
            TableRegistry.create(id=1, number=99, places=2, is_vip=False)

        self.assertEqual(Table.objects.get(pk=1).number, 5)

    def test_exists_uses_number_not_id(self):
        """Table id=1 has number=5"""
        self.assertTrue(TableRegistry.exists(5))
        self.assertTrue(TableRegistry.exists(7))
        self.assertFalse(TableRegistry.exists(1))

    def test_get(self):
        table = TableRegistry.get(2)

        self.assertEqual(table.number, 7)
        self.assertEqual(table.min_order, Decimal('150.00'))

    def test_get_missing(self):
        with self.assertRaises(TableNotFound) as ctx:
            TableRegistry.get(999)

        self.assertEqual(ctx.exception.message, 'Table not found')
        self.assertEqual(ctx.exception.status_code, 404)

    def test_list(self):
        tables = TableRegistry.list()

        self.assertEqual({table.id for table in tables}, {1, 2})

    def test_database_error(self):
        with mock.patch.object(
            Table.objects, 'filter', side_effect=DatabaseError('connection lost')
        ):
            with self.assertRaises(StoreUnavailable):
                TableRegistry.exists(5)
