"""
Test suite for the Inventory module
Tests: inventory page query, item CRUD, CSV export, nuke, move, FG/STA import, loads, sanity checks, conflicts
"""
import os
import tempfile
from io import StringIO
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.core.models import ActivityLog, LocationSettings
from warehouse.inventory.models import InventoryItem, LoadMetadata, InventoryConversion, LoadConflict
from warehouse.inventory.importer import (
    ImportFileError, import_inventory_snapshot, read_import_rows, rows_from_sheet
)


class InventoryTestCase(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)


class InventoryPageTests(InventoryTestCase):

    def setUp(self):
        super().setUp()
        self.washer = TestDataFactory.create_product(model='WASH1', brand='GE', product_type='Washer')
        self.item_a = TestDataFactory.create_item(self.location, sub_inventory='L100', serial='SA1', product=self.washer)
        self.item_b = TestDataFactory.create_item(self.location, sub_inventory='L100', serial='SB2', model='DRY2')
        self.item_c = TestDataFactory.create_item(self.location, sub_inventory=None, serial='SC3', model='RNG3')
        self.item_d = TestDataFactory.create_item(self.location, sub_inventory='', serial='SD4', model='RNG4')
        self.fg_item = TestDataFactory.create_item(self.location, inventory_type='FG', serial='FG5', model='FG5')
        # Other location, never visible
        TestDataFactory.create_item(TestDataFactory.create_location(company=self.company), serial='OTHER')

    def test_all_items_default_sort(self):
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 5)
        self.assertEqual(response.data['items'][0]['id'], self.fg_item.id)
        self.assertIsNone(response.data['next_page'])

    def test_type_filter_all_means_no_filter(self):
        response = self.client.get('/api/v1/inventory/?inventory_type=all')
        self.assertEqual(response.data['count'], 5)
        response = self.client.get('/api/v1/inventory/?inventory_type=ASIS')
        self.assertEqual(response.data['count'], 4)

    def test_unassigned_matches_null_and_empty(self):
        response = self.client.get('/api/v1/inventory/?inventory_type=ASIS&sub_inventory=unassigned')
        ids = {item['id'] for item in response.data['items']}
        self.assertEqual(ids, {self.item_c.id, self.item_d.id})

    def test_search_and_brand(self):
        response = self.client.get('/api/v1/inventory/?search=dry2')
        self.assertEqual([item['id'] for item in response.data['items']], [self.item_b.id])
        response = self.client.get('/api/v1/inventory/?brand=ge')
        self.assertEqual([item['id'] for item in response.data['items']], [self.item_a.id])

    def test_sort_by_serial(self):
        response = self.client.get('/api/v1/inventory/?sort=serial&inventory_type=ASIS')
        self.assertEqual([item['serial'] for item in response.data['items']], ['SA1', 'SB2', 'SC3', 'SD4'])
        response = self.client.get('/api/v1/inventory/?sort=-serial&inventory_type=ASIS')
        self.assertEqual(response.data['items'][0]['serial'], 'SD4')

    def test_invalid_sort(self):
        response = self.client.get('/api/v1/inventory/?sort=qty')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_paging(self):
        response = self.client.get('/api/v1/inventory/?page_size=2')
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['next_page'], 1)
        response = self.client.get('/api/v1/inventory/?page_size=2&page=2')
        self.assertEqual(len(response.data['items']), 1)
        self.assertIsNone(response.data['next_page'])

    def test_page_size_capped(self):
        response = self.client.get('/api/v1/inventory/?page_size=10000')
        self.assertEqual(response.data['page_size'], 500)

    def test_sub_inventory_options(self):
        TestDataFactory.create_load(self.location, 'L100', friendly_name='Blue load', primary_color='#00f')
        TestDataFactory.create_load(self.location, 'L200')
        response = self.client.get('/api/v1/inventory/sub-inventories/?inventory_type=ASIS')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([option['name'] for option in response.data], ['L100', 'L200'])
        self.assertEqual(response.data[0]['count'], 2)
        self.assertEqual(response.data[0]['friendly_name'], 'Blue load')
        self.assertEqual(response.data[1]['count'], 0)


class InventoryItemTests(InventoryTestCase):

    def test_create_links_product_by_model(self):
        product = TestDataFactory.create_product(model='LINKME')
        response = self.client.post('/api/v1/inventory/', {
            'cso': '1234', 'serial': 'NEW1', 'model': 'LINKME', 'product_type': 'Washer',
            'inventory_type': 'FG', 'qty': 1
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product']['id'], product.id)
        item = InventoryItem.objects.get(serial='NEW1')
        self.assertEqual(item.location, self.location)
        self.assertEqual(item.company, self.company)

    def test_detail_other_location_404(self):
        other = TestDataFactory.create_item(TestDataFactory.create_location(company=self.company))
        response = self.client.get(f'/api/v1/inventory/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_load_updates_progress(self):
        load = TestDataFactory.create_load(self.location, 'L300')
        item = TestDataFactory.create_item(self.location)
        response = self.client.patch(f'/api/v1/inventory/{item.id}/', {'sub_inventory': 'L300'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        load.refresh_from_db()
        self.assertEqual(load.items_total_count, 1)

    def test_negative_qty_rejected(self):
        item = TestDataFactory.create_item(self.location)
        response = self.client.patch(f'/api/v1/inventory/{item.id}/', {'qty': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class InventoryExportTests(InventoryTestCase):

    def setUp(self):
        super().setUp()
        TestDataFactory.create_item(self.location, serial='E1', model='M1', sub_inventory='L1')
        TestDataFactory.create_item(self.location, serial='E2', model='M2', sub_inventory='L1')
        TestDataFactory.create_item(self.location, serial='E3', model='M3', inventory_type='FG')

    def _csv(self, response):
        return b''.join(response.streaming_content).decode().strip().splitlines()

    def test_export_selected_columns_with_row_numbers(self):
        response = self.client.get('/api/v1/inventory/export/?columns=serial,model&sort=serial&row_numbers=1&batch_size=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = self._csv(response)
        self.assertEqual(lines[0], '#,serial,model')
        self.assertEqual(lines[1:], ['1,E1,M1', '2,E2,M2', '3,E3,M3'])

    def test_export_applies_filters(self):
        response = self.client.get('/api/v1/inventory/export/?columns=serial&inventory_type=FG')
        self.assertEqual(self._csv(response), ['serial', 'E3'])

    def test_unknown_column(self):
        response = self.client.get('/api/v1/inventory/export/?columns=serial,password')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class InventoryNukeTests(InventoryTestCase):

    def setUp(self):
        super().setUp()
        TestDataFactory.create_item(self.location, inventory_type='ASIS')
        TestDataFactory.create_item(self.location, inventory_type='ASIS')
        TestDataFactory.create_item(self.location, inventory_type='FG')

    def test_member_forbidden(self):
        response = self.client.post('/api/v1/inventory/nuke/', {'inventory_types': ['ASIS']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_empty_list_rejected(self):
        self.user.role = 'admin'
        self.user.save()
        response = self.client.post('/api/v1/inventory/nuke/', {'inventory_types': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_deletes_types(self):
        self.user.role = 'admin'
        self.user.save()
        response = self.client.post('/api/v1/inventory/nuke/', {'inventory_types': ['ASIS']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(InventoryItem.objects.filter(location=self.location).count(), 1)
        self.assertTrue(ActivityLog.objects.filter(action='asis_wipe').exists())


class MoveItemsTests(InventoryTestCase):

    def test_move_records_conversions_and_progress(self):
        source = TestDataFactory.create_load(self.location, 'SRC')
        target = TestDataFactory.create_load(self.location, 'DST', inventory_type='STA')
        item1 = TestDataFactory.create_item(self.location, sub_inventory='SRC')
        item2 = TestDataFactory.create_item(self.location, sub_inventory='SRC')
        LoadMetadata.objects.filter(pk=source.pk).update(items_total_count=2)

        response = self.client.post('/api/v1/inventory/move/', {
            'item_ids': [item1.id, item2.id], 'sub_inventory': 'DST', 'inventory_type': 'STA'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['moved'], 2)

        item1.refresh_from_db()
        self.assertEqual(item1.sub_inventory, 'DST')
        self.assertEqual(item1.inventory_type, 'STA')
        conversion = InventoryConversion.objects.get(inventory_item=item1)
        self.assertEqual(conversion.from_sub_inventory, 'SRC')
        self.assertEqual(conversion.to_inventory_type, 'STA')

        source.refresh_from_db()
        target.refresh_from_db()
        self.assertEqual(source.items_total_count, 0)
        self.assertEqual(target.items_total_count, 2)

    def test_move_unknown_item(self):
        response = self.client.post('/api/v1/inventory/move/', {
            'item_ids': [999999], 'sub_inventory': 'DST'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_move_to_unassigned(self):
        item = TestDataFactory.create_item(self.location, sub_inventory='SRC')
        response = self.client.post('/api/v1/inventory/move/', {
            'item_ids': [item.id], 'sub_inventory': ''
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertIsNone(item.sub_inventory)


class LoadTests(InventoryTestCase):

    def test_create_and_list(self):
        response = self.client.post('/api/v1/loads/', {
            'inventory_type': 'ASIS', 'sub_inventory_name': 'L900', 'friendly_name': 'Friday'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created_by'], self.user.username)

        response = self.client.get('/api/v1/loads/?inventory_type=ASIS')
        self.assertEqual(len(response.data), 1)

    def test_create_duplicate(self):
        TestDataFactory.create_load(self.location, 'L900')
        response = self.client.post('/api/v1/loads/', {
            'inventory_type': 'ASIS', 'sub_inventory_name': 'L900'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rename_cascades_to_items(self):
        load = TestDataFactory.create_load(self.location, 'OLD')
        item = TestDataFactory.create_item(self.location, sub_inventory='OLD')
        response = self.client.patch(f'/api/v1/loads/{load.id}/', {'sub_inventory_name': 'NEW'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.sub_inventory, 'NEW')
        self.assertEqual(response.data['items_total_count'], 1)
        entry = ActivityLog.objects.get(action='load_update')
        self.assertEqual(entry.details['previous_name'], 'OLD')

    def test_rename_and_retype_moves_items(self):
        load = TestDataFactory.create_load(self.location, 'OLD')
        item = TestDataFactory.create_item(self.location, sub_inventory='OLD')
        response = self.client.patch(f'/api/v1/loads/{load.id}/', {
            'sub_inventory_name': 'NEW', 'inventory_type': 'FG'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.sub_inventory, 'NEW')
        self.assertEqual(item.inventory_type, 'FG')
        self.assertEqual(response.data['items_total_count'], 1)
        entry = ActivityLog.objects.get(action='load_update')
        self.assertEqual(entry.details['previous_type'], 'ASIS')
        self.assertEqual(entry.details['renamed_items'], 1)

        # The recount matches items by location, type and name
        out = StringIO()
        call_command('recalculate_scanning_progress', '--location', str(self.location.id), stdout=out)
        self.assertIn('NEW: 0/1 items scanned', out.getvalue())

    def test_rename_collision(self):
        load = TestDataFactory.create_load(self.location, 'A')
        TestDataFactory.create_load(self.location, 'B')
        item = TestDataFactory.create_item(self.location, sub_inventory='A')
        response = self.client.patch(f'/api/v1/loads/{load.id}/', {'sub_inventory_name': 'B'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        item.refresh_from_db()
        self.assertEqual(item.sub_inventory, 'A')

    def test_delete_unassigns_items(self):
        load = TestDataFactory.create_load(self.location, 'GONE')
        item = TestDataFactory.create_item(self.location, sub_inventory='GONE')
        response = self.client.delete(f'/api/v1/loads/{load.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        item.refresh_from_db()
        self.assertIsNone(item.sub_inventory)
        self.assertFalse(LoadMetadata.objects.filter(pk=load.id).exists())

    def test_sanity_check_flow(self):
        load = TestDataFactory.create_load(self.location, 'SC1')
        response = self.client.post(f'/api/v1/loads/{load.id}/sanity-check/request/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['sanity_check_requested'])
        self.assertEqual(response.data['sanity_check_requested_by'], self.user.username)

        response = self.client.post(f'/api/v1/loads/{load.id}/sanity-check/complete/')
        self.assertFalse(response.data['sanity_check_requested'])
        self.assertIsNotNone(response.data['sanity_check_completed_at'])
        actions = set(ActivityLog.objects.values_list('action', flat=True))
        self.assertEqual(actions, {'sanity_check_requested', 'sanity_check_completed'})

    def test_conflicts_list_and_resolve(self):
        conflict = TestDataFactory.create_conflict(self.location)
        response = self.client.get('/api/v1/loads/conflicts/')
        self.assertEqual(len(response.data), 1)

        response = self.client.post(f'/api/v1/loads/conflicts/{conflict.id}/resolve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(LoadConflict.objects.get(pk=conflict.id).status, 'resolved')
        response = self.client.get('/api/v1/loads/conflicts/')
        self.assertEqual(response.data, [])

    def test_session_load_metadata(self):
        TestDataFactory.create_load(self.location, 'M1', friendly_name='One', ge_cso='CSO1')
        TestDataFactory.create_load(self.location, 'M2')
        response = self.client.get('/api/v1/loads/session-metadata/?names=M1,MISSING')
        self.assertEqual(set(response.data.keys()), {'M1'})
        self.assertEqual(response.data['M1']['ge_cso'], 'CSO1')


class InventoryImportTests(InventoryTestCase):

    ROWS = [
        {'Model #': 'M1', 'Serial #': 'F1', 'Inv Qty': '2 units', 'Availability Status': 'Available'},
        {'Model #': 'M2', 'Serial #': 'F2', 'Inv Qty': '0'},
        {'Model #': 'M2', 'Serial #': 'F2', 'Inv Qty': '5'},
        {'Model #': 'M3', 'Serial #': 'X1'},
        {'Model #': 'M4', 'Serial #': ''},
        {'Model #': '', 'Serial #': 'Z9'},
    ]

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_user(companies=[self.company], role='admin')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin).use_location(self.location)
        self.fridge = TestDataFactory.create_product(model='M1', product_type='Refrigerator')
        self.existing = TestDataFactory.create_item(self.location, inventory_type='FG', serial='F1', model='M1',
                                                    cso='FG', is_scanned=True, sub_inventory='L1')
        self.missing = TestDataFactory.create_item(self.location, inventory_type='FG', serial='F9', cso='FG')
        self.asis = TestDataFactory.create_item(self.location, serial='X1')

    def test_import_reconciles_items(self):
        stats = import_inventory_snapshot(self.location, 'FG', self.ROWS, batch_size=1)
        self.assertEqual(stats, {
            'total_rows': 6,
            'processed_rows': 5,
            'cross_type_skipped': 1,
            'inserted': 2,
            'updated': 1,
            'orphans_marked': 1,
        })

        self.existing.refresh_from_db()
        self.assertEqual(self.existing.qty, 2)
        self.assertEqual(self.existing.product, self.fridge)
        self.assertEqual(self.existing.product_type, 'Refrigerator')
        self.assertEqual(self.existing.ge_availability_status, 'Available')
        self.assertFalse(self.existing.is_scanned)
        self.assertEqual(self.existing.sub_inventory, 'L1')

        # First row wins for a repeated serial; non-positive quantities import as 1
        new_item = InventoryItem.objects.get(serial='F2')
        self.assertEqual(new_item.qty, 1)
        self.assertEqual(new_item.ge_inv_qty, 0)
        self.assertEqual(new_item.product_type, 'UNKNOWN')
        self.assertEqual(new_item.cso, 'FG')
        self.assertTrue(InventoryItem.objects.filter(model='M4', serial__isnull=True, inventory_type='FG').exists())

        self.missing.refresh_from_db()
        self.assertTrue(self.missing.ge_orphaned)
        self.assertEqual(self.missing.status, 'NOT_IN_GE')

        self.assertEqual(InventoryItem.objects.filter(serial='X1').count(), 1)
        self.assertIsNotNone(LocationSettings.objects.get(location=self.location).last_sync_fg_at)

    def test_empty_snapshot_changes_nothing(self):
        stats = import_inventory_snapshot(self.location, 'STA', [])
        self.assertEqual(stats['total_rows'], 0)
        self.missing.refresh_from_db()
        self.assertFalse(self.missing.ge_orphaned)

    def test_api_json_rows(self):
        response = self.client.post('/api/v1/inventory/import/', {'source': 'FG', 'rows': self.ROWS}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inserted'], 2)
        entry = ActivityLog.objects.get(action='fg_sync')
        self.assertEqual(entry.details['cross_type_skipped'], 1)

    def test_api_csv_upload(self):
        upload = SimpleUploadedFile('sta.csv', b'Model #,Serial #,Inv Qty\nM1,S100,3\n', content_type='text/csv')
        response = self.client.post('/api/v1/inventory/import/', {'source': 'STA', 'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item = InventoryItem.objects.get(serial='S100')
        self.assertEqual(item.inventory_type, 'STA')
        self.assertEqual(item.qty, 3)
        self.assertIsNotNone(LocationSettings.objects.get(location=self.location).last_sync_sta_at)

    def test_api_rejects_bad_input(self):
        response = self.client.post('/api/v1/inventory/import/', {'source': 'FG'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/inventory/import/', {'source': 'ASIS', 'rows': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        upload = SimpleUploadedFile('fg.txt', b'Model #\nM1\n')
        response = self.client.post('/api/v1/inventory/import/', {'source': 'FG', 'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('file', response.data)

    def test_api_requires_admin(self):
        member = TestDataFactory.create_user(companies=[self.company])
        client = AuthenticatedAPIClient().authenticate_user(member).use_location(self.location)
        response = client.post('/api/v1/inventory/import/', {'source': 'FG', 'rows': self.ROWS}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sheet_rows_use_header(self):
        class Sheet:
            data = [['Model #', 'Serial #', 'Inv Qty'], ['M1', 12345.0, 2.0]]
            nrows = len(data)

            def row_values(self, index):
                return self.data[index]

        rows = rows_from_sheet(Sheet())
        self.assertEqual(rows, [{'Model #': 'M1', 'Serial #': 12345.0, 'Inv Qty': 2.0}])
        import_inventory_snapshot(self.location, 'FG', rows)
        self.assertEqual(InventoryItem.objects.get(serial='12345').qty, 2)

    def test_read_rows_rejects_unknown_extension(self):
        with self.assertRaises(ImportFileError):
            read_import_rows('fg.xlsx', b'')

    def test_command(self):
        with tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False, encoding='utf-8') as f:
            f.write('Model #,Serial #,Inv Qty\nM1,F1,4\n')
        self.addCleanup(os.remove, f.name)

        out = StringIO()
        call_command('import_inventory_snapshot', '--location', str(self.location.id), '--source', 'FG',
                     '--file', f.name, stdout=out)
        self.assertIn('Completed: 0 inserted, 1 updated, 1 orphans marked', out.getvalue())
        self.existing.refresh_from_db()
        self.assertEqual(self.existing.qty, 4)

    def test_command_missing_file(self):
        with self.assertRaises(CommandError):
            call_command('import_inventory_snapshot', '--location', str(self.location.id), '--source', 'FG',
                         '--file', '/nonexistent/fg.csv', stdout=StringIO())
