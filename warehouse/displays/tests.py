"""
Test suite for the Displays module
Tests: display CRUD, pairing, heartbeat
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.displays.models import FloorDisplay, default_display_state


class FloorDisplayTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)

    def _create_display(self, location=None, **kwargs):
        location = location or self.location
        return FloorDisplay.objects.create(company=location.company, location=location, **kwargs)

    def test_create_assigns_code_and_default_state(self):
        response = self.client.post('/api/v1/displays/', {'name': 'Dock screen'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertRegex(response.data['pairing_code'], r'^\d{6}$')
        self.assertFalse(response.data['paired'])
        self.assertEqual(response.data['state_json'], default_display_state())
        self.assertEqual(len(response.data['state_json']['layout']['widgets']), 4)

    def test_codes_are_unique(self):
        codes = {self._create_display().pairing_code for _ in range(5)}
        self.assertEqual(len(codes), 5)

    def test_list_only_active_location(self):
        self._create_display(name='Mine')
        self._create_display(location=TestDataFactory.create_location(company=self.company), name='Other')
        response = self.client.get('/api/v1/displays/')
        self.assertEqual([d['name'] for d in response.data], ['Mine'])
        self.assertNotIn('state_json', response.data[0])

    def test_update_state(self):
        display = self._create_display()
        state = {'theme': 'light', 'refreshInterval': 10000, 'layout': {'columns': 1, 'rows': 1, 'widgets': []}}
        response = self.client.patch(f'/api/v1/displays/{display.id}/', {'state_json': state}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        display.refresh_from_db()
        self.assertEqual(display.state_json['theme'], 'light')

    def test_state_must_be_object(self):
        display = self._create_display()
        response = self.client.patch(f'/api/v1/displays/{display.id}/', {'state_json': [1, 2]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pairing_code_is_read_only(self):
        display = self._create_display()
        code = display.pairing_code
        self.client.patch(f'/api/v1/displays/{display.id}/', {'pairing_code': '000000'}, format='json')
        display.refresh_from_db()
        self.assertEqual(display.pairing_code, code)

    def test_delete(self):
        display = self._create_display()
        response = self.client.delete(f'/api/v1/displays/{display.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(FloorDisplay.objects.filter(pk=display.id).exists())

    def test_other_location_404(self):
        display = self._create_display(location=TestDataFactory.create_location(company=self.company))
        response = self.client.get(f'/api/v1/displays/{display.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class DisplayPairingTests(TestCase):
    """Pairing and heartbeat are called by the screen itself, without a login"""

    def setUp(self):
        location = TestDataFactory.create_location()
        self.display = FloorDisplay.objects.create(company=location.company, location=location, name='Wall')
        self.client = APIClient()

    def test_pair(self):
        response = self.client.post('/api/v1/displays/pair/', {'pairing_code': self.display.pairing_code}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.display.id)
        self.display.refresh_from_db()
        self.assertTrue(self.display.paired)
        self.assertIsNotNone(self.display.last_heartbeat)

    def test_pair_already_paired_display(self):
        self.display.paired = True
        self.display.save()
        response = self.client.post('/api/v1/displays/pair/', {'pairing_code': self.display.pairing_code}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertNotIn('state_json', response.data)
        self.display.refresh_from_db()
        self.assertIsNone(self.display.last_heartbeat)

    def test_code_can_only_be_claimed_once(self):
        first = self.client.post('/api/v1/displays/pair/', {'pairing_code': self.display.pairing_code}, format='json')
        second = self.client.post('/api/v1/displays/pair/', {'pairing_code': self.display.pairing_code}, format='json')
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_404_NOT_FOUND)

    def test_pair_unknown_code(self):
        code = '100000' if self.display.pairing_code != '100000' else '100001'
        response = self.client.post('/api/v1/displays/pair/', {'pairing_code': code}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_pair_missing_code(self):
        response = self.client.post('/api/v1/displays/pair/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_heartbeat(self):
        response = self.client.post(f'/api/v1/displays/{self.display.id}/heartbeat/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Wall')
        self.assertEqual(response.data['state_json']['theme'], 'dark')
        self.display.refresh_from_db()
        self.assertIsNotNone(self.display.last_heartbeat)

    def test_heartbeat_unknown_display(self):
        response = self.client.post('/api/v1/displays/999999/heartbeat/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
