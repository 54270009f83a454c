"""
Test suite for the Parts module
Tests: tracked parts, thresholds, reorder flags, part counts, reorder alerts, history, snapshots
"""
from datetime import timedelta
from decimal import Decimal
from django.core.cache import cache
from django.utils import timezone
from django.test import TestCase
from rest_framework import status
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.inventory.models import InventoryItem
from warehouse.parts.models import InventoryCount
from warehouse.parts.queries import (
    get_reorder_alerts, get_parts_stock_map, get_available_parts_to_track, snapshot_tracked_parts
)


class PartsTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)
        self.part = TestDataFactory.create_product(model='WR55X10942', product_type='Part', is_part=True)


class TrackedPartTests(PartsTestCase):

    def test_track_part_with_stock(self):
        stock = TestDataFactory.create_item(self.location, inventory_type='Parts', product=self.part, qty=7)
        response = self.client.post('/api/v1/parts/tracked/', {
            'product_id': self.part.id, 'reorder_threshold': 3
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['current_qty'], 7)
        self.assertEqual(response.data['inventory_item_id'], stock.id)
        self.assertEqual(response.data['created_by'], self.user.username)

    def test_track_part_without_stock(self):
        response = self.client.post('/api/v1/parts/tracked/', {'product_id': self.part.id}, format='json')
        self.assertEqual(response.data['current_qty'], 0)
        self.assertIsNone(response.data['inventory_item_id'])
        self.assertEqual(response.data['reorder_threshold'], 5)

    def test_duplicate_tracking_rejected(self):
        TestDataFactory.create_tracked_part(self.location, product=self.part)
        response = self.client.post('/api/v1/parts/tracked/', {'product_id': self.part.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_only_active(self):
        TestDataFactory.create_tracked_part(self.location, product=self.part)
        TestDataFactory.create_tracked_part(self.location, is_active=False)
        response = self.client.get('/api/v1/parts/tracked/')
        self.assertEqual([p['product']['model'] for p in response.data], ['WR55X10942'])

    def test_remove_is_soft_delete(self):
        tracked = TestDataFactory.create_tracked_part(self.location, product=self.part)
        response = self.client.delete(f'/api/v1/parts/tracked/{tracked.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        tracked.refresh_from_db()
        self.assertFalse(tracked.is_active)

    def test_update_threshold(self):
        tracked = TestDataFactory.create_tracked_part(self.location, product=self.part)
        response = self.client.patch(f'/api/v1/parts/tracked/{tracked.id}/threshold/',
                                     {'reorder_threshold': 10}, format='json')
        self.assertEqual(response.data['reorder_threshold'], 10)
        response = self.client.patch(f'/api/v1/parts/tracked/{tracked.id}/threshold/',
                                     {'reorder_threshold': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_and_clear_reordered(self):
        tracked = TestDataFactory.create_tracked_part(self.location, product=self.part)
        response = self.client.post(f'/api/v1/parts/tracked/{tracked.id}/reordered/')
        self.assertIsNotNone(response.data['reordered_at'])
        response = self.client.delete(f'/api/v1/parts/tracked/{tracked.id}/reordered/')
        self.assertIsNone(response.data['reordered_at'])

    def test_other_location_part_404(self):
        other = TestDataFactory.create_location(company=self.company)
        tracked = TestDataFactory.create_tracked_part(other, product=self.part)
        response = self.client.delete(f'/api/v1/parts/tracked/{tracked.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class PartCountTests(PartsTestCase):

    def test_first_count_creates_parts_item(self):
        response = self.client.post('/api/v1/parts/count/', {
            'product_id': self.part.id, 'qty': 4, 'reason': 'restock'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['previous_qty'], 0)
        self.assertEqual(response.data['delta'], 4)

        item = InventoryItem.objects.get(location=self.location, inventory_type='Parts')
        self.assertEqual(item.cso, 'PART-WR55X10942')
        self.assertEqual(item.qty, 4)
        count = InventoryCount.objects.get(pk=response.data['count_id'])
        self.assertEqual(count.delta, 4)
        self.assertEqual(count.counted_by, self.user.username)

    def test_recount_updates_existing_item(self):
        tracked = TestDataFactory.create_tracked_part(self.location, product=self.part)
        TestDataFactory.create_item(self.location, inventory_type='Parts', product=self.part, qty=6)
        response = self.client.post('/api/v1/parts/count/', {
            'product_id': self.part.id, 'qty': 2, 'reason': 'usage', 'counted_by': 'Tech 1'
        }, format='json')
        self.assertEqual(response.data['previous_qty'], 6)
        self.assertEqual(response.data['delta'], -4)
        self.assertEqual(InventoryItem.objects.filter(inventory_type='Parts').count(), 1)
        count = InventoryCount.objects.get(pk=response.data['count_id'])
        self.assertEqual(count.tracked_part, tracked)
        self.assertEqual(count.counted_by, 'Tech 1')

    def test_restock_above_threshold_clears_reorder(self):
        tracked = TestDataFactory.create_tracked_part(self.location, product=self.part, reorder_threshold=5)
        tracked.reordered_at = tracked.created_at
        tracked.save()
        self.client.post('/api/v1/parts/count/', {'product_id': self.part.id, 'qty': 20}, format='json')
        tracked.refresh_from_db()
        self.assertIsNone(tracked.reordered_at)

    def test_negative_qty_rejected(self):
        response = self.client.post('/api/v1/parts/count/', {'product_id': self.part.id, 'qty': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_product(self):
        response = self.client.post('/api/v1/parts/count/', {'product_id': 999999, 'qty': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_history_newest_first(self):
        for qty in (3, 5, 1):
            self.client.post('/api/v1/parts/count/', {'product_id': self.part.id, 'qty': qty}, format='json')
        response = self.client.get(f'/api/v1/parts/history/{self.part.id}/')
        self.assertEqual([row['qty'] for row in response.data], [1, 5, 3])
        self.assertEqual(response.data[0]['delta'], -4)
        response = self.client.get(f'/api/v1/parts/history/{self.part.id}/?limit=1')
        self.assertEqual(len(response.data), 1)


class ReorderAlertTests(PartsTestCase):

    def setUp(self):
        super().setUp()
        self.low = TestDataFactory.create_tracked_part(self.location, product=self.part, reorder_threshold=5)
        TestDataFactory.create_item(self.location, inventory_type='Parts', product=self.part, qty=3)

        empty_product = TestDataFactory.create_product(product_type='Part', is_part=True)
        self.empty = TestDataFactory.create_tracked_part(self.location, product=empty_product)

        stocked_product = TestDataFactory.create_product(product_type='Part', is_part=True)
        TestDataFactory.create_tracked_part(self.location, product=stocked_product, reorder_threshold=2)
        TestDataFactory.create_item(self.location, inventory_type='Parts', product=stocked_product, qty=9)

    def test_alerts_sorted_by_quantity(self):
        alerts = get_reorder_alerts(self.location)
        self.assertEqual([a['tracked_part_id'] for a in alerts], [self.empty.id, self.low.id])
        self.assertTrue(alerts[0]['is_critical'])
        self.assertIsNone(alerts[0]['inventory_item_id'])
        self.assertEqual(alerts[1]['current_qty'], 3)
        self.assertEqual(alerts[1]['product']['model'], 'WR55X10942')

    def test_reordered_parts_sort_last(self):
        self.empty.reordered_at = self.empty.created_at
        self.empty.save()
        alerts = get_reorder_alerts(self.location)
        self.assertEqual([a['tracked_part_id'] for a in alerts], [self.low.id, self.empty.id])
        self.assertTrue(alerts[1]['reordered'])

    def test_stock_map_first_row_wins(self):
        first = InventoryItem.objects.get(product=self.part)
        TestDataFactory.create_item(self.location, inventory_type='Parts', product=self.part, qty=50)
        self.assertEqual(get_parts_stock_map(self.location, [self.part.id])[self.part.id], {'id': first.id, 'qty': 3})

    def test_endpoint(self):
        response = self.client.get('/api/v1/parts/reorder-alerts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)


class CountHistoryTests(PartsTestCase):

    def _count(self, product, qty, previous_qty=0, location=None):
        location = location or self.location
        return InventoryCount.objects.create(company=location.company, location=location, product=product,
                                             qty=qty, previous_qty=previous_qty)

    def test_history_with_pricing_oldest_first(self):
        self.part.price = Decimal('12.50')
        self.part.msrp = Decimal('19.99')
        self.part.save()
        first = self._count(self.part, 4)
        second = self._count(self.part, 2, previous_qty=4)

        response = self.client.get('/api/v1/parts/count-history/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [first.id, second.id])
        self.assertEqual(response.data[0]['model'], 'WR55X10942')
        self.assertEqual(response.data[0]['price'], '12.50')
        self.assertEqual(response.data[0]['msrp'], '19.99')
        self.assertEqual(response.data[1]['delta'], -2)

    def test_days_window_and_product_filter(self):
        old = self._count(self.part, 1)
        InventoryCount.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=120))
        recent = self._count(TestDataFactory.create_product(product_type='Part', is_part=True), 3)
        self._count(self.part, 2, location=TestDataFactory.create_location(company=self.company))

        response = self.client.get('/api/v1/parts/count-history/')
        self.assertEqual([row['id'] for row in response.data], [recent.id])
        self.assertIsNone(response.data[0]['price'])
        response = self.client.get('/api/v1/parts/count-history/?days=365')
        self.assertEqual(len(response.data), 2)
        response = self.client.get(f'/api/v1/parts/count-history/?days=365&product_id={self.part.id}')
        self.assertEqual([row['id'] for row in response.data], [old.id])

    def test_invalid_days(self):
        response = self.client.get('/api/v1/parts/count-history/?days=soon')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AvailablePartsTests(PartsTestCase):

    def setUp(self):
        super().setUp()
        TestDataFactory.create_product(model='WR17X11653', product_type='Part', is_part=True,
                                       description='Water filter')
        TestDataFactory.create_product(model='WB44T10011', product_type='Part', product_category='part')
        TestDataFactory.create_product(model='GTW485ASWWB', description='Top load washer')
        TestDataFactory.create_tracked_part(self.location, product=self.part)

    def test_default_lists_untracked_parts(self):
        response = self.client.get('/api/v1/parts/available/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['model'] for p in response.data['parts']], ['WB44T10011', 'WR17X11653'])
        self.assertEqual(response.data['tracked_matches'], [])

    def test_search_matches_any_product(self):
        response = self.client.get('/api/v1/parts/available/?search=washer')
        self.assertEqual([p['model'] for p in response.data['parts']], ['GTW485ASWWB'])

    def test_search_reports_tracked_matches(self):
        response = self.client.get('/api/v1/parts/available/?search=wr')
        self.assertEqual([p['model'] for p in response.data['parts']], ['WR17X11653'])
        self.assertEqual([p['model'] for p in response.data['tracked_matches']], ['WR55X10942'])

    def test_tracked_at_other_location_still_available(self):
        other = TestDataFactory.create_location(company=self.company)
        parts, _ = get_available_parts_to_track(other)
        self.assertIn('WR55X10942', [p.model for p in parts])

    def test_limit(self):
        response = self.client.get('/api/v1/parts/available/?limit=1')
        self.assertEqual(len(response.data['parts']), 1)


class SnapshotTests(PartsTestCase):

    def setUp(self):
        super().setUp()
        self.tracked = TestDataFactory.create_tracked_part(self.location, product=self.part)
        TestDataFactory.create_item(self.location, inventory_type='Parts', product=self.part, qty=6)
        self.empty = TestDataFactory.create_tracked_part(self.location)
        TestDataFactory.create_tracked_part(self.location, is_active=False)

    def test_snapshot_all_active_parts(self):
        response = self.client.post('/api/v1/parts/snapshot/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['inserted'], 2)

        counts = {count.tracked_part_id: count for count in InventoryCount.objects.all()}
        self.assertEqual(set(counts), {self.tracked.id, self.empty.id})
        self.assertEqual(counts[self.tracked.id].qty, 6)
        self.assertEqual(counts[self.tracked.id].previous_qty, 6)
        self.assertEqual(counts[self.tracked.id].delta, 0)
        self.assertEqual(counts[self.tracked.id].notes, 'snapshot: manual')
        self.assertEqual(counts[self.tracked.id].counted_by, self.user.username)
        self.assertEqual(counts[self.empty.id].qty, 0)

    def test_snapshot_selected_parts(self):
        response = self.client.post('/api/v1/parts/snapshot/', {
            'tracked_part_ids': [self.tracked.id], 'notes': 'snapshot: weekly'
        }, format='json')
        self.assertEqual(response.data['inserted'], 1)
        self.assertEqual(InventoryCount.objects.get().notes, 'snapshot: weekly')

    def test_nothing_to_snapshot(self):
        other = TestDataFactory.create_location(company=self.company)
        self.assertEqual(snapshot_tracked_parts(other), 0)
        self.assertEqual(InventoryCount.objects.count(), 0)
