"""
Test suite for the Reports module
Tests: fog of war, ASIS overview, item count, scan counts, data quality
"""
from datetime import timedelta
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.core.models import LocationSettings
from warehouse.scanning.models import ProductLocation
from warehouse.reports.stats import (
    get_fog_of_war, get_asis_overview, get_inventory_item_count,
    get_inventory_scan_counts, get_data_quality, deduplicate_items
)


class ReportsTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)


class FogOfWarTests(ReportsTestCase):

    def test_coverage_excludes_parts(self):
        items = [TestDataFactory.create_item(self.location) for _ in range(4)]
        TestDataFactory.create_item(self.location, inventory_type='Parts')
        TestDataFactory.create_position(self.location, item=items[0])
        TestDataFactory.create_position(self.location, item=items[0])

        stats = get_fog_of_war(self.location)
        self.assertEqual(stats['total_items'], 4)
        self.assertEqual(stats['mapped_items'], 1)
        self.assertEqual(stats['coverage_percent'], 25)
        self.assertEqual(len(stats['recent_scans']), 2)

    def test_empty_location(self):
        stats = get_fog_of_war(self.location)
        self.assertEqual(stats['coverage_percent'], 0)

    def test_new_scan_refreshes_cached_value(self):
        item = TestDataFactory.create_item(self.location)
        self.assertEqual(get_fog_of_war(self.location)['mapped_items'], 0)
        TestDataFactory.create_position(self.location, item=item)
        self.assertEqual(get_fog_of_war(self.location)['mapped_items'], 1)

    def test_endpoint(self):
        response = self.client.get('/api/v1/reports/fog-of-war/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 0)


class AsisOverviewTests(ReportsTestCase):

    def setUp(self):
        super().setUp()
        TestDataFactory.create_load(self.location, 'SALE1', ge_source_status='For Sale')
        TestDataFactory.create_load(self.location, 'PICK1', ge_source_status='Sold', ge_cso_status='Picked')
        TestDataFactory.create_load(self.location, 'SOLD1', ge_source_status='Sold', ge_cso_status='Shipped')
        TestDataFactory.create_load(self.location, 'DONE1', ge_source_status='Sold', ge_cso_status='Delivered')
        TestDataFactory.create_item(self.location, sub_inventory='SALE1')
        TestDataFactory.create_item(self.location, sub_inventory='PICK1')
        TestDataFactory.create_item(self.location, sub_inventory='DONE1')
        TestDataFactory.create_item(self.location, sub_inventory=None)
        TestDataFactory.create_item(self.location, inventory_type='FG')

    def test_overview(self):
        self.assertEqual(get_asis_overview(self.location), {
            'total_items': 3,
            'unassigned_items': 1,
            'on_floor_loads': 2,
            'for_sale_loads': 1,
            'picked_loads': 1,
        })

    def test_no_location(self):
        self.assertIsNone(get_asis_overview(None))

    @override_settings(WAREHOUSE_DEFAULT_LOCATION_ID=None)
    def test_endpoint_without_location_returns_null(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/reports/asis-overview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data)

    def test_endpoint(self):
        response = self.client.get('/api/v1/reports/asis-overview/')
        self.assertEqual(response.data['for_sale_loads'], 1)

    def test_item_count_skips_delivered_loads(self):
        self.assertEqual(get_inventory_item_count(self.location), 4)
        response = self.client.get('/api/v1/reports/item-count/')
        self.assertEqual(response.data, {'count': 4})


class ScanCountTests(ReportsTestCase):

    def test_counts_by_type_and_load(self):
        scanned = TestDataFactory.create_item(self.location, sub_inventory='L1')
        TestDataFactory.create_item(self.location, sub_inventory='L1')
        TestDataFactory.create_item(self.location, sub_inventory=None)
        TestDataFactory.create_item(self.location, inventory_type='FG', sub_inventory='F1')
        TestDataFactory.create_item(self.location, inventory_type='Parts')
        TestDataFactory.create_position(self.location, item=scanned)

        counts = get_inventory_scan_counts(self.location)
        self.assertEqual(counts['total_by_key'], {'ASIS': 3, 'ASIS:L1': 2, 'FG': 1, 'FG:F1': 1})
        self.assertEqual(counts['scanned_by_key'], {'ASIS': 1, 'ASIS:L1': 1})

    def test_endpoint(self):
        response = self.client.get('/api/v1/reports/scan-counts/')
        self.assertEqual(response.data, {'total_by_key': {}, 'scanned_by_key': {}})


class DeduplicateItemsTests(TestCase):

    def test_asis_sta_pair_keeps_sta(self):
        rows = [
            {'id': 1, 'serial': 'X', 'inventory_type': 'ASIS'},
            {'id': 2, 'serial': 'X', 'inventory_type': 'STA'},
        ]
        kept, asis_sta, duplicates = deduplicate_items(rows)
        self.assertEqual([row['id'] for row in kept], [2])
        self.assertEqual((asis_sta, duplicates), (1, 0))

    def test_other_duplicates_keep_first(self):
        rows = [
            {'id': 1, 'serial': 'Y', 'inventory_type': 'FG'},
            {'id': 2, 'serial': 'Y', 'inventory_type': 'FG'},
            {'id': 3, 'serial': 'Y', 'inventory_type': 'FG'},
            {'id': 4, 'serial': None, 'inventory_type': 'FG'},
            {'id': 5, 'serial': '', 'inventory_type': 'FG'},
        ]
        kept, asis_sta, duplicates = deduplicate_items(rows)
        self.assertEqual(sorted(row['id'] for row in kept), [1, 4, 5])
        self.assertEqual((asis_sta, duplicates), (0, 1))


class DataQualityTests(ReportsTestCase):

    def test_metrics(self):
        product = TestDataFactory.create_product(model='KNOWN1')
        TestDataFactory.create_load(self.location, 'L1')
        asis = TestDataFactory.create_item(self.location, serial='DUP', product=product, sub_inventory='L1')
        TestDataFactory.create_item(self.location, serial='DUP', inventory_type='STA', model='KNOWN1')
        scanned = TestDataFactory.create_item(self.location, serial='ONE', model='UNKNOWN', sub_inventory='GHOST')
        TestDataFactory.create_item(self.location, serial='', model='UNKNOWN', ge_orphaned=True)

        TestDataFactory.create_position(self.location, item=scanned)
        old = TestDataFactory.create_position(self.location, item=asis)
        ProductLocation.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=45))
        cache.clear()

        settings_row = LocationSettings.for_location(self.location)
        settings_row.last_sync_asis_at = timezone.now()
        settings_row.save()

        report = get_data_quality(self.location)
        self.assertEqual(report['inventory_integrity'], {
            'total_items': 3,
            'asis_sta_duplicates': 1,
            'duplicate_serials': 0,
            'orphaned_items': 1,
        })
        # The STA row survives, its model has no linked product
        self.assertEqual(report['product_catalog']['total_models'], 2)
        self.assertEqual(report['product_catalog']['models_with_product'], 0)
        self.assertEqual(report['load_assignments']['total_loads'], 1)
        self.assertEqual(report['load_assignments']['items_with_loads'], 1)
        self.assertEqual(report['load_assignments']['orphaned_load_assignments'], 1)
        self.assertEqual(report['scan_coverage']['items_with_scans'], 1)
        self.assertEqual(report['scan_coverage']['scanned_last_30_days'], 1)
        self.assertIsNotNone(report['sync_health']['last_sync_asis_at'])
        self.assertIsNone(report['sync_health']['last_sync_sta_at'])

    def test_endpoint(self):
        response = self.client.get('/api/v1/reports/data-quality/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('scan_coverage', response.data)
