"""
Test suite for the GE sync module
Tests: GE client, export parsing, sync preparation and execution, command, API
"""
from io import StringIO
from unittest import mock
import requests
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.core.models import ActivityLog, LocationSettings
from warehouse.inventory.models import InventoryItem, LoadMetadata
from warehouse.gesync.client import GEClient, GESyncError
from warehouse.gesync.sync import (
    fetch_ge_data, fetch_load_items, calculate_ge_sync_stats, prepare_ge_sync, execute_ge_sync, default_client
)


GE_EXPORTS = {
    'ASIS.json': [
        {'Serial #': 'S1', 'Model #': 'M1', 'Inv Qty': '1', 'Availability Status': 'Available'},
        {'Serial #': 'S2', 'Model #': 'M2', 'Inv Qty': '2'},
        {'Serial #': 'S3', 'Model #': 'M1'},
        {'Serial #': '', 'Model #': 'M9'},
    ],
    'ASISReportHistoryData.json': [
        {'Load Number': '9001', 'Status': 'FOR SALE', 'CSO Status': 'Open', 'Units': '2', 'CSO': 'C1'},
        {'Load Number': '9002', 'Status': 'SOLD', 'CSO Status': 'Picked', 'Units': '1'},
        {'Load Number': '9003', 'Status': 'SOLD', 'CSO Status': 'Delivered', 'Units': '5'},
        {'Load Number': '', 'Status': 'FOR SALE'},
    ],
    'ASISLoadData.json': [
        {'Load Number': '9001', 'Notes': 'Front dock'},
    ],
    'ASISReportHistoryData/9001.json': [{'SERIALS': 'S1'}],
    # 9002 only has the ASISLoadData copy
    'ASISLoadData/9002.json': [{'SERIALS': 'S2'}],
}


class FakeGEClient:
    """Serves canned exports; unknown paths fail like a 404"""

    def __init__(self, exports=None):
        self.exports = GE_EXPORTS if exports is None else exports
        self.requested = []

    def fetch_json(self, path):
        self.requested.append(path)
        if path not in self.exports:
            raise GESyncError(f"Failed to fetch {path}: 404")
        return self.exports[path]


class GEClientTests(TestCase):

    def _response(self, status_code=200, payload=None, json_error=None):
        response = mock.Mock(status_code=status_code)
        if json_error:
            response.json.side_effect = json_error
        else:
            response.json.return_value = payload
        return response

    def test_fetch_json(self):
        session = mock.Mock()
        session.get.return_value = self._response(payload=[{'a': 1}])
        client = GEClient(base_url='http://ge.test/ASIS/', timeout=5, session=session)
        self.assertEqual(client.fetch_json('/ASIS.json'), [{'a': 1}])
        session.get.assert_called_once_with('http://ge.test/ASIS/ASIS.json', timeout=5)

    def test_connection_error(self):
        session = mock.Mock()
        session.get.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaises(GESyncError):
            GEClient(base_url='http://ge.test', session=session).fetch_json('ASIS.json')

    def test_http_error_status(self):
        session = mock.Mock()
        session.get.return_value = self._response(status_code=500)
        with self.assertRaisesMessage(GESyncError, '500'):
            GEClient(base_url='http://ge.test', session=session).fetch_json('ASIS.json')

    def test_invalid_json(self):
        session = mock.Mock()
        session.get.return_value = self._response(json_error=ValueError('bad'))
        with self.assertRaises(GESyncError):
            GEClient(base_url='http://ge.test', session=session).fetch_json('ASIS.json')

    def test_cookie_list_and_dict(self):
        client = GEClient(base_url='http://ge.test', cookies=[{'name': 'SMSESSION', 'value': 'abc'}, {'bad': 1}])
        self.assertEqual(client.session.cookies.get('SMSESSION'), 'abc')
        client = GEClient(base_url='http://ge.test', cookies={'JSESSIONID': 'xyz'})
        self.assertEqual(client.session.cookies.get('JSESSIONID'), 'xyz')

    def test_default_client_uses_stored_cookies(self):
        location = TestDataFactory.create_location()
        settings_row = LocationSettings.for_location(location)
        settings_row.ge_cookies = {'SMSESSION': 'stored'}
        settings_row.save()
        client = default_client(location, base_url='http://ge.test')
        self.assertEqual(client.session.cookies.get('SMSESSION'), 'stored')


class GEExportTests(TestCase):

    def test_load_items_fallback(self):
        client = FakeGEClient()
        self.assertEqual(fetch_load_items(client, '9002'), [{'SERIALS': 'S2'}])
        self.assertEqual(client.requested, ['ASISReportHistoryData/9002.json', 'ASISLoadData/9002.json'])
        self.assertEqual(fetch_load_items(client, '7777'), [])

    def test_fetch_ge_data(self):
        client = FakeGEClient()
        inventory, serial_to_load, load_info = fetch_ge_data(client)
        self.assertEqual(len(inventory), 4)
        self.assertEqual(serial_to_load, {'S1': '9001', 'S2': '9002'})
        self.assertEqual([load['load_number'] for load in load_info], ['9001', '9002', '9003'])
        self.assertEqual(load_info[0]['notes'], 'Front dock')
        self.assertEqual(load_info[0]['units'], 2)
        # Delivered loads are not on the floor
        self.assertNotIn('ASISReportHistoryData/9003.json', client.requested)

    def test_non_list_export_rejected(self):
        exports = dict(GE_EXPORTS, **{'ASIS.json': {'error': 'login required'}})
        with self.assertRaises(GESyncError):
            fetch_ge_data(FakeGEClient(exports))

    def test_stats(self):
        stats = calculate_ge_sync_stats(FakeGEClient())
        self.assertEqual(stats['total_items'], 4)
        self.assertEqual(stats['items_in_loads'], 2)
        self.assertEqual(stats['unassigned_items'], 2)
        self.assertEqual(stats['for_sale_loads'], 1)
        self.assertEqual(stats['picked_loads'], 1)


class GESyncTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company], role='admin')
        self.product = TestDataFactory.create_product(model='M1', product_type='Washer')
        self.existing = TestDataFactory.create_item(self.location, serial='S1', model='M1', is_scanned=True)
        self.orphan = TestDataFactory.create_item(self.location, serial='OLD', model='M5')
        self.fg_item = TestDataFactory.create_item(self.location, inventory_type='FG', serial='S3')


class GESyncTests(GESyncTestCase):

    def test_prepare(self):
        result = prepare_ge_sync(self.location, FakeGEClient())
        self.assertEqual(result.stats, {
            'total_ge_items': 4,
            'items_in_loads': 2,
            'unassigned_items': 2,
            'new_items': 2,
            'updated_items': 1,
            'orphaned_items': 1,
            'for_sale_loads': 1,
            'picked_loads': 1,
        })
        self.assertEqual(result.orphan_ids, [self.orphan.id])
        rows = {row['serial']: row for row in result.items_to_upsert}
        self.assertEqual(rows['S1']['id'], self.existing.id)
        self.assertEqual(rows['S2']['product_type'], 'UNKNOWN')
        self.assertEqual(rows['S2']['qty'], 2)
        self.assertEqual(rows['S3']['product_id'], self.product.id)
        self.assertEqual(rows['S3']['qty'], 1)
        self.assertIsNone(rows['S3']['sub_inventory'])
        # Nothing written yet
        self.assertEqual(InventoryItem.objects.filter(location=self.location).count(), 3)

    def test_prepare_reads_quantities_with_suffix(self):
        exports = dict(GE_EXPORTS, **{
            'ASIS.json': [{'Serial #': 'S2', 'Model #': 'M2', 'Inv Qty': '3 units'}],
            'ASISReportHistoryData.json': [
                {'Load Number': '9001', 'Status': 'FOR SALE', 'CSO Status': 'Open', 'Units': '7 pcs'},
            ],
        })
        result = prepare_ge_sync(self.location, FakeGEClient(exports))
        row = result.items_to_upsert[0]
        self.assertEqual(row['qty'], 3)
        self.assertEqual(row['ge_inv_qty'], 3)
        self.assertEqual(result.load_info[0]['units'], 7)

    def test_execute(self):
        result = prepare_ge_sync(self.location, FakeGEClient())
        summary = execute_ge_sync(self.location, result, batch_size=1, mark_orphans=True, user=self.user)
        self.assertEqual(summary, {'inserted': 2, 'updated': 1, 'orphans_marked': 1, 'loads': 3})

        self.existing.refresh_from_db()
        self.assertEqual(self.existing.sub_inventory, '9001')
        self.assertFalse(self.existing.is_scanned)
        self.assertEqual(self.existing.ge_availability_status, 'Available')

        self.orphan.refresh_from_db()
        self.assertTrue(self.orphan.ge_orphaned)
        self.assertEqual(self.orphan.status, 'NOT_IN_GE')

        # The FG row with the same serial is untouched
        self.fg_item.refresh_from_db()
        self.assertEqual(self.fg_item.inventory_type, 'FG')

        new_item = InventoryItem.objects.get(location=self.location, inventory_type='ASIS', serial='S2')
        self.assertEqual(new_item.sub_inventory, '9002')
        self.assertEqual(new_item.company, self.company)

        load = LoadMetadata.objects.get(location=self.location, sub_inventory_name='9001')
        self.assertEqual(load.ge_source_status, 'FOR SALE')
        self.assertEqual(load.ge_notes, 'Front dock')
        self.assertEqual(load.ge_cso, 'C1')
        self.assertEqual(load.items_total_count, 1)

        self.assertIsNotNone(LocationSettings.objects.get(location=self.location).last_sync_asis_at)
        entry = ActivityLog.objects.get(action='asis_sync')
        self.assertEqual(entry.details['inserted'], 2)

    def test_execute_keeps_orphans_unless_asked(self):
        result = prepare_ge_sync(self.location, FakeGEClient())
        summary = execute_ge_sync(self.location, result)
        self.assertEqual(summary['orphans_marked'], 0)
        self.orphan.refresh_from_db()
        self.assertFalse(self.orphan.ge_orphaned)
        self.assertFalse(ActivityLog.objects.filter(action='asis_sync').exists())

    def test_resync_updates_existing_loads(self):
        TestDataFactory.create_load(self.location, '9001', friendly_name='Dock A')
        execute_ge_sync(self.location, prepare_ge_sync(self.location, FakeGEClient()))
        result = prepare_ge_sync(self.location, FakeGEClient())
        self.assertEqual(result.stats['new_items'], 0)
        self.assertEqual(result.stats['updated_items'], 3)
        load = LoadMetadata.objects.get(location=self.location, sub_inventory_name='9001')
        self.assertEqual(load.friendly_name, 'Dock A')
        self.assertEqual(LoadMetadata.objects.filter(location=self.location).count(), 3)


class SyncCommandTests(GESyncTestCase):

    @mock.patch('warehouse.gesync.management.commands.sync_ge_asis.default_client')
    def test_dry_run(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        out = StringIO()
        call_command('sync_ge_asis', '--location', str(self.location.id), '--dry-run', stdout=out)
        self.assertIn('new_items: 2', out.getvalue())
        self.assertIn('Dry run', out.getvalue())
        self.assertFalse(InventoryItem.objects.filter(serial='S2').exists())

    @mock.patch('warehouse.gesync.management.commands.sync_ge_asis.default_client')
    def test_run(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        out = StringIO()
        call_command('sync_ge_asis', '--location', str(self.location.id), '--mark-orphans',
                     '--user', self.user.username, stdout=out)
        self.assertIn('Completed: 2 inserted, 1 updated, 1 orphans marked, 3 loads', out.getvalue())
        self.assertTrue(ActivityLog.objects.filter(action='asis_sync').exists())

    @mock.patch('warehouse.gesync.management.commands.sync_ge_asis.default_client')
    def test_fetch_failure(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient(exports={})
        with self.assertRaises(CommandError):
            call_command('sync_ge_asis', '--location', str(self.location.id), stdout=StringIO())

    def test_unknown_location(self):
        with self.assertRaises(CommandError):
            call_command('sync_ge_asis', '--location', '999999', stdout=StringIO())


class SyncAPITests(GESyncTestCase):

    def setUp(self):
        super().setUp()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)

    @mock.patch('warehouse.gesync.views.default_client')
    def test_preview(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        response = self.client.get('/api/v1/ge-sync/asis/preview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 4)
        self.assertEqual(len(response.data['load_info']), 3)

    @mock.patch('warehouse.gesync.views.default_client')
    def test_preview_gateway_error(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient(exports={})
        response = self.client.get('/api/v1/ge-sync/asis/preview/')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    @mock.patch('warehouse.gesync.views.default_client')
    def test_run(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        response = self.client.post('/api/v1/ge-sync/asis/run/', {'mark_orphans': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inserted'], 2)
        self.assertEqual(response.data['stats']['orphaned_items'], 1)
        self.orphan.refresh_from_db()
        self.assertTrue(self.orphan.ge_orphaned)

    @mock.patch('warehouse.gesync.views.default_client')
    def test_run_form_false_leaves_orphans(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        response = self.client.post('/api/v1/ge-sync/asis/run/', {'mark_orphans': 'false'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orphans_marked'], 0)
        self.orphan.refresh_from_db()
        self.assertFalse(self.orphan.ge_orphaned)

    @mock.patch('warehouse.gesync.views.default_client')
    def test_run_custom_orphan_status(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        self.client.post('/api/v1/ge-sync/asis/run/',
                         {'mark_orphans': 'true', 'orphan_status': 'GONE', 'batch_size': '1'}, format='multipart')
        self.orphan.refresh_from_db()
        self.assertEqual(self.orphan.status, 'GONE')

    @mock.patch('warehouse.gesync.views.default_client')
    def test_run_rejects_bad_options(self, default_client_mock):
        default_client_mock.return_value = FakeGEClient()
        response = self.client.post('/api/v1/ge-sync/asis/run/', {'batch_size': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('batch_size', response.data)
        response = self.client.post('/api/v1/ge-sync/asis/run/', {'mark_orphans': 'maybe'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(default_client_mock.call_count, 0)

    def test_run_requires_admin(self):
        member = TestDataFactory.create_user(companies=[self.company])
        client = AuthenticatedAPIClient().authenticate_user(member).use_location(self.location)
        response = client.post('/api/v1/ge-sync/asis/run/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
