
from django.urls import reverse
from rest_framework.test import APITestCase, APIClient
from rest_framework import status
from unittest import mock

from django.db import DatabaseError

from reservation.exceptions import StoreUnavailable
from reservation.models import Reservation


class CreateReservationAPITest(APITestCase):
    """API tests for reservation booking endpoint"""

    fixtures = ['tables.json']

    def setUp(self):
        """Set up test client and data"""
        self.client = APIClient()
        self.url = reverse('reservation-list')
        self.data = {
            'tableNumber': 5,
            'clientName': 'Jane Doe',
            'phoneNumber': '+15550100',
            'date': '2024-01-01',
            'slotTimeStart': '18:00',
            'slotTimeEnd': '19:00',
        }

    def test_create_reservation_success(self):
        """Test successful reservation creation"""
        response = self.client.post(self.url, self.data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/json')
        self.assertIn('reservationId', response.data)

        reservation = Reservation.objects.get()
        self.assertEqual(str(reservation.id), response.data['reservationId'])
        self.assertEqual(reservation.table_number, 5)
        self.assertEqual(reservation.client_name, 'Jane Doe')

    def test_scenario_repeat_and_adjacent(self):
        """Identical and adjacent requests both conflict with 18:00-19:00"""
        first = self.client.post(self.url, self.data, format='json')
        self.assertEqual(first.status_code, status.HTTP_200_OK)

        repeat = self.client.post(self.url, self.data, format='json')
        self.assertEqual(repeat.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(repeat.data, {'message': 'Reservation overlaps with an existing one'})

        adjacent = dict(self.data, slotTimeStart='19:00', slotTimeEnd='20:00')
        response = self.client.post(self.url, adjacent, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        self.assertEqual(Reservation.objects.count(), 1)

    def test_disjoint_slot_succeeds(self):
        self.client.post(self.url, self.data, format='json')

        later = dict(self.data, slotTimeStart='19:01', slotTimeEnd='20:00')
        response = self.client.post(self.url, later, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Reservation.objects.count(), 2)

    def test_table_does_not_exist(self):
        """Table lookup uses the number, so table id 1 is not a valid number"""
        data = dict(self.data, tableNumber=1)

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'message': 'Table does not exist'})
        self.assertFalse(Reservation.objects.exists())

    def test_table_checked_before_interval(self):
        data = dict(self.data, tableNumber=99, slotTimeStart='20:00', slotTimeEnd='19:00')

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.data, {'message': 'Table does not exist'})

    def test_invalid_interval(self):
        data = dict(self.data, slotTimeStart='19:00', slotTimeEnd='18:00')

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data,
            {'message': 'Slot start time must be before slot end time'},
        )

    def test_missing_client_name(self):
        data = dict(self.data)
        del data['clientName']

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('clientName'))

    def test_blank_client_name(self):
        data = dict(self.data, clientName='   ')

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_date(self):
        data = dict(self.data, date='invalid-date')

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('date'))

    def test_store_unavailable(self):
        """Store failures are reported as 503, not as a conflict"""
        with mock.patch(
            'reservation.services.store.DjangoReservationStore.table_exists',
            side_effect=StoreUnavailable(),
        ), self.settings(RESERVATION_SCHEDULER={'MAX_ATTEMPTS': 2, 'BACKOFF_BASE': 0, 'BACKOFF_MAX': 0}):
            response = self.client.post(self.url, self.data, format='json')

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn('message', response.data)

    def test_slot_time_with_seconds(self):
        """Slot times are HH:MM only, seconds are not silently dropped"""
        data = dict(self.data, slotTimeStart='18:00:30')

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('slotTimeStart'))
        self.assertFalse(Reservation.objects.exists())

    def test_table_number_out_of_range(self):
        data = dict(self.data, tableNumber=2 ** 70)

        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['message'].startswith('tableNumber'))


class ListReservationsAPITest(APITestCase):
    """API tests for reservation listing endpoint"""

    fixtures = ['tables.json']

    def setUp(self):
        self.client = APIClient()
        self.url = reverse('reservation-list')
        for table_number, slot_date, start, end in [
            (5, '2024-01-01', '12:00', '13:00'),
            (5, '2024-01-02', '12:00', '13:00'),
            (7, '2024-01-01', '18:00', '20:00'),
        ]:
            self.client.post(self.url, {
                'tableNumber': table_number,
                'clientName': 'Jane Doe',
                'phoneNumber': '',
                'date': slot_date,
                'slotTimeStart': start,
                'slotTimeEnd': end,
            }, format='json')

    def test_list_reservations(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['reservations']), 3)

        reservation = next(
            item for item in response.data['reservations'] if item['tableNumber'] == 7
        )
        self.assertEqual(
            set(reservation),
            {'id', 'tableNumber', 'clientName', 'phoneNumber', 'date', 'slotTimeStart', 'slotTimeEnd'},
        )
        self.assertEqual(reservation['date'], '2024-01-01')
        self.assertEqual(reservation['slotTimeStart'], '18:00')
        self.assertEqual(reservation['slotTimeEnd'], '20:00')

    def test_filter_by_table_and_date(self):
        response = self.client.get(self.url, {'tableNumber': 5, 'date': '2024-01-01'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['reservations']), 1)

    def test_filter_invalid_date(self):
        response = self.client.get(self.url, {'date': 'not-a-date'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)

    def test_unknown_route(self):
        response = self.client.get('/nowhere')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {'message': 'Invalid route'})

    def test_store_failure_while_listing(self):
        """A database error raised while the listing is evaluated is a 503"""
        with mock.patch(
            'django.db.models.query.QuerySet._fetch_all',
            side_effect=DatabaseError('connection lost'),
        ):
            response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(
            response.data,
            {'message': 'Reservation store is temporarily unavailable'},
        )
