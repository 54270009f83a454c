"""
Test suite for the Scanning module
Tests: load scanning progress, recalculation command, sessions, scan positions
"""
from io import StringIO
from unittest import mock
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.core.models import ActivityLog
from warehouse.inventory.models import LoadMetadata
from warehouse.scanning.models import ScanningSession, ProductLocation
from warehouse.scanning.progress import (
    update_load_scanning_progress, update_loads_scanning_progress, recalculate_all_load_scanning_progress
)


class ScanningTestCase(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)


class LoadProgressTests(ScanningTestCase):

    def setUp(self):
        super().setUp()
        self.load = TestDataFactory.create_load(self.location, 'P1')
        self.items = [TestDataFactory.create_item(self.location, sub_inventory='P1') for _ in range(3)]

    def test_partial_progress(self):
        TestDataFactory.create_position(self.location, item=self.items[0])
        TestDataFactory.create_position(self.location, item=self.items[0])
        progress = update_load_scanning_progress(self.location, 'P1')
        self.assertEqual(progress, {'items_scanned_count': 1, 'items_total_count': 3, 'scanning_complete': False})
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_scanned_count, 1)
        self.assertEqual(self.load.items_total_count, 3)

    def test_complete_when_every_item_scanned(self):
        for item in self.items:
            TestDataFactory.create_position(self.location, item=item)
        update_load_scanning_progress(self.location, 'P1')
        self.load.refresh_from_db()
        self.assertTrue(self.load.scanning_complete)

    def test_empty_load_never_complete(self):
        empty = TestDataFactory.create_load(self.location, 'EMPTY')
        update_load_scanning_progress(self.location, 'EMPTY')
        empty.refresh_from_db()
        self.assertEqual(empty.items_total_count, 0)
        self.assertFalse(empty.scanning_complete)

    def test_blank_name_is_noop(self):
        self.assertIsNone(update_load_scanning_progress(self.location, ''))
        self.assertIsNone(update_load_scanning_progress(self.location, None))
        self.assertIsNone(update_load_scanning_progress(None, 'P1'))

    def test_positions_at_other_locations_ignored(self):
        other = TestDataFactory.create_location(company=self.company)
        TestDataFactory.create_position(other, item=self.items[0])
        progress = update_load_scanning_progress(self.location, 'P1')
        self.assertEqual(progress['items_scanned_count'], 0)

    def test_update_many_skips_blank_names(self):
        TestDataFactory.create_position(self.location, item=self.items[1])
        update_loads_scanning_progress(self.location, ['P1', None, '', '  '])
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_scanned_count, 1)

    def test_recalculate_all(self):
        TestDataFactory.create_load(self.location, 'P2')
        TestDataFactory.create_item(self.location, sub_inventory='P2')
        self.assertEqual(recalculate_all_load_scanning_progress(self.location), 2)
        self.assertEqual(
            LoadMetadata.objects.get(location=self.location, sub_inventory_name='P2').items_total_count, 1
        )


class RecalculateCommandTests(ScanningTestCase):

    def setUp(self):
        super().setUp()
        self.load = TestDataFactory.create_load(self.location, 'CMD1')
        items = [TestDataFactory.create_item(self.location, sub_inventory='CMD1') for _ in range(2)]
        TestDataFactory.create_position(self.location, item=items[0])
        # Stale counters
        LoadMetadata.objects.filter(pk=self.load.pk).update(items_scanned_count=0, items_total_count=0)

    def test_command_updates_counters(self):
        out = StringIO()
        call_command('recalculate_scanning_progress', '--location', str(self.location.id), stdout=out)
        output = out.getvalue()
        self.assertIn('Found 1 loads to recalculate', output)
        self.assertIn('✓ CMD1: 1/2 items scanned', output)
        self.assertIn('Completed: 1 loads updated, 0 errors', output)
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_scanned_count, 1)
        self.assertEqual(self.load.items_total_count, 2)
        self.assertFalse(self.load.scanning_complete)

    def test_dry_run_saves_nothing(self):
        out = StringIO()
        call_command('recalculate_scanning_progress', '--dry-run', stdout=out)
        self.assertIn('Dry run', out.getvalue())
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_total_count, 0)

    def test_other_location_filtered_out(self):
        other = TestDataFactory.create_location(company=self.company)
        out = StringIO()
        call_command('recalculate_scanning_progress', '--location', str(other.id), stdout=out)
        self.assertIn('Found 0 loads to recalculate', out.getvalue())

    def test_exits_when_loads_cannot_be_fetched(self):
        with mock.patch.object(LoadMetadata.objects, 'all', side_effect=DatabaseError('connection lost')):
            with self.assertRaisesMessage(CommandError, 'Failed to fetch loads'):
                call_command('recalculate_scanning_progress', stdout=StringIO())
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_scanned_count, 0)


class SessionTests(ScanningTestCase):

    def setUp(self):
        super().setUp()
        self.load_items = [TestDataFactory.create_item(self.location, sub_inventory='S1') for _ in range(2)]
        self.loose_item = TestDataFactory.create_item(self.location, sub_inventory=None)

    def test_create_snapshots_items(self):
        response = self.client.post('/api/v1/sessions/', {
            'name': 'Morning count', 'inventory_type': 'ASIS', 'sub_inventory': 'S1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['item_count'], 2)
        self.assertEqual({item['id'] for item in response.data['items']}, {i.id for i in self.load_items})
        self.assertEqual(response.data['created_by'], self.user.username)
        self.assertTrue(ActivityLog.objects.filter(action='session_started').exists())

    def test_create_all_sub_inventories(self):
        response = self.client.post('/api/v1/sessions/', {
            'name': 'Everything', 'inventory_type': 'ASIS', 'sub_inventory': 'all'
        }, format='json')
        self.assertEqual(response.data['item_count'], 3)
        self.assertIsNone(response.data['sub_inventory'])

    def test_create_with_no_items(self):
        response = self.client.post('/api/v1/sessions/', {
            'name': 'Nothing', 'inventory_type': 'FG'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No items found for this inventory type')

    def test_list_summaries_filtered_by_status(self):
        TestDataFactory.create_session(self.location, self.load_items, status='active')
        TestDataFactory.create_session(self.location, self.load_items, status='closed')
        response = self.client.get('/api/v1/sessions/?status=active')
        self.assertEqual(len(response.data), 1)
        self.assertNotIn('items', response.data[0])
        self.assertEqual(response.data[0]['item_count'], 2)

    def test_close_and_reopen(self):
        session = TestDataFactory.create_session(self.location, self.load_items)
        response = self.client.post(f'/api/v1/sessions/{session.id}/status/', {'status': 'closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'closed')
        self.assertEqual(response.data['closed_by'], self.user.username)
        self.assertTrue(ActivityLog.objects.filter(action='session_completed').exists())

        response = self.client.post(f'/api/v1/sessions/{session.id}/status/', {'status': 'active'}, format='json')
        self.assertIsNone(response.data['closed_at'])

    def test_invalid_status(self):
        session = TestDataFactory.create_session(self.location, self.load_items)
        response = self.client.post(f'/api/v1/sessions/{session.id}/status/', {'status': 'paused'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_scanned_items_deduplicated(self):
        session = TestDataFactory.create_session(self.location, self.load_items)
        item_id = self.load_items[0].id
        response = self.client.post(f'/api/v1/sessions/{session.id}/scanned-items/', {
            'scanned_item_ids': [item_id, item_id]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['scanned_item_ids'], [item_id])

    def test_scanned_items_must_be_in_snapshot(self):
        session = TestDataFactory.create_session(self.location, self.load_items)
        response = self.client.post(f'/api/v1/sessions/{session.id}/scanned-items/', {
            'scanned_item_ids': [self.loose_item.id]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_closed_session_rejects_scans(self):
        session = TestDataFactory.create_session(self.location, self.load_items, status='closed')
        response = self.client.post(f'/api/v1/sessions/{session.id}/scanned-items/', {
            'scanned_item_ids': []
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_location_session_404(self):
        other = TestDataFactory.create_location(company=self.company)
        session = TestDataFactory.create_session(other, [TestDataFactory.create_item(other)])
        response = self.client.get(f'/api/v1/sessions/{session.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete(self):
        session = TestDataFactory.create_session(self.location, self.load_items)
        response = self.client.delete(f'/api/v1/sessions/{session.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ScanningSession.objects.filter(pk=session.id).exists())

    def test_sub_inventories_and_preview_count(self):
        response = self.client.get('/api/v1/sessions/sub-inventories/?inventory_type=ASIS')
        self.assertEqual(response.data, ['S1'])
        response = self.client.get('/api/v1/sessions/preview-count/?inventory_type=ASIS&sub_inventory=S1')
        self.assertEqual(response.data, {'count': 2})
        response = self.client.get('/api/v1/sessions/preview-count/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_creator_avatars(self):
        TestDataFactory.create_user(username='with_avatar', image='https://img.test/x.png')
        TestDataFactory.create_user(username='no_avatar')
        response = self.client.get('/api/v1/sessions/creator-avatars/?names=with_avatar,no_avatar')
        self.assertEqual(response.data, {
            'with_avatar': 'https://img.test/x.png',
            'with_avatar@test.com': 'https://img.test/x.png',
        })


class ProductLocationTests(ScanningTestCase):

    def setUp(self):
        super().setUp()
        self.load = TestDataFactory.create_load(self.location, 'POS1')
        self.item = TestDataFactory.create_item(self.location, sub_inventory='POS1')

    def test_record_scan_marks_item_and_session(self):
        session = TestDataFactory.create_session(self.location, [self.item])
        response = self.client.post('/api/v1/product-locations/', {
            'inventory_item': self.item.id, 'scanning_session': session.id,
            'position_x': 12.5, 'position_y': 40.0, 'accuracy': 3.0
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sub_inventory'], 'POS1')

        self.item.refresh_from_db()
        self.assertTrue(self.item.is_scanned)
        self.assertEqual(self.item.scanned_by, self.user.username)
        session.refresh_from_db()
        self.assertEqual(session.scanned_item_ids, [self.item.id])
        self.load.refresh_from_db()
        self.assertTrue(self.load.scanning_complete)
        self.assertTrue(ActivityLog.objects.filter(action='item_scanned').exists())

    def test_record_product_only_scan(self):
        product = TestDataFactory.create_product()
        response = self.client.post('/api/v1/product-locations/', {
            'product': product.id, 'position_x': 1, 'position_y': 2
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['inventory_item'])

    def test_item_or_product_required(self):
        response = self.client.post('/api/v1/product-locations/', {'position_x': 1, 'position_y': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_item_from_other_location_rejected(self):
        other_item = TestDataFactory.create_item(TestDataFactory.create_location(company=self.company))
        response = self.client.post('/api/v1/product-locations/', {
            'inventory_item': other_item.id, 'position_x': 1, 'position_y': 2
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_position_updates_progress(self):
        position = TestDataFactory.create_position(self.location, item=self.item)
        update_load_scanning_progress(self.location, 'POS1')
        response = self.client.delete(f'/api/v1/product-locations/{position.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_scanned_count, 0)

    def test_bulk_delete(self):
        positions = [TestDataFactory.create_position(self.location, item=self.item) for _ in range(3)]
        response = self.client.post('/api/v1/product-locations/bulk-delete/', {
            'ids': [positions[0].id, positions[1].id]
        }, format='json')
        self.assertEqual(response.data, {'deleted': 2})
        self.assertEqual(ProductLocation.objects.filter(location=self.location).count(), 1)

    def test_clear_all(self):
        TestDataFactory.create_position(self.location, item=self.item)
        other = TestDataFactory.create_location(company=self.company)
        TestDataFactory.create_position(other, item=TestDataFactory.create_item(other))
        response = self.client.delete('/api/v1/product-locations/clear/')
        self.assertEqual(response.data, {'deleted': 1})
        self.assertEqual(ProductLocation.objects.count(), 1)
        self.load.refresh_from_db()
        self.assertEqual(self.load.items_scanned_count, 0)

    def test_list_recent_positions(self):
        TestDataFactory.create_position(self.location, item=self.item)
        response = self.client.get('/api/v1/product-locations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
