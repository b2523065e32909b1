
from django.urls import reverse
from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from restaurant.models import Table


class TableAPITest(APITestCase):
    """API tests for the table registry endpoints"""

    fixtures = ['tables.json']

    def setUp(self):
        """Set up test client and data"""
        self.client = APIClient()
        self.url = reverse('table-list')

    def test_create_table(self):
        """Test scenario table registration"""
        data = {'id': 3, 'number': 9, 'places': 4, 'isVip': False}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'id': 3})
        table = Table.objects.get(pk=3)
        self.assertEqual(table.number, 9)
        self.assertIsNone(table.min_order)

    def test_create_table_with_min_order(self):
        data = {'id': 4, 'number': 10, 'places': 6, 'isVip': True, 'minOrder': 99.5}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(str(Table.objects.get(pk=4).min_order), '99.50')

    def test_create_duplicate_id(self):
        data = {'id': 1, 'number': 11, 'places': 4, 'isVip': False}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('message', response.data)

    def test_create_invalid_places(self):
        data = {'id': 5, 'number': 11, 'places': 0, 'isVip': False}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('places'))
        self.assertFalse(Table.objects.filter(pk=5).exists())

    def test_create_negative_min_order(self):
        data = {'id': 5, 'number': 11, 'places': 2, 'isVip': False, 'minOrder': -1}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_tables(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/json')
        self.assertEqual(len(response.data['tables']), 2)

    def test_get_table(self):
        response = self.client.get(reverse('table-detail', kwargs={'table_id': 1}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {
            'id': 1,
            'number': 5,
            'places': 4,
            'isVip': False,
            'minOrder': None,
        })

    def test_get_table_not_found(self):
        response = self.client.get(reverse('table-detail', kwargs={'table_id': 999}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'message': 'Table not found'})

    def test_get_table_non_numeric_id(self):
        response = self.client.get(reverse('table-detail', kwargs={'table_id': 'abc'}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'message': 'Table not found'})

    def test_create_table_id_out_of_range(self):
        """Ids beyond the integer column range are rejected as invalid input"""
        data = {'id': 2 ** 70, 'number': 11, 'places': 4, 'isVip': False}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('id'))
        self.assertEqual(Table.objects.count(), 2)

    def test_create_table_number_out_of_range(self):
        data = {'id': 6, 'number': -(2 ** 40), 'places': 4, 'isVip': False}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('number'))

    def test_create_table_without_is_vip(self):
        """isVip has no default and must be sent"""
        data = {'id': 6, 'number': 11, 'places': 4}

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('isVip'))
        self.assertFalse(Table.objects.filter(pk=6).exists())

    def test_get_table_id_out_of_range(self):
        response = self.client.get(
            reverse('table-detail', kwargs={'table_id': str(2 ** 70)})
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'message': 'Table not found'})
