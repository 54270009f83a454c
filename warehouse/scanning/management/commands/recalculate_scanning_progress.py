from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError
from ...models import ProductLocation
from warehouse.inventory.models import InventoryItem, LoadMetadata


class Command(BaseCommand):
    help = 'Recalculate denormalized scanning progress counters on every load'

    def add_arguments(self, parser):
        parser.add_argument('--location', type=int, help='Only recalculate loads at this location id')
        parser.add_argument('--dry-run', action='store_true', help='Compute progress without saving it')

    def handle(self, *args, **options):
        location_id = options.get('location')
        dry_run = options.get('dry_run', False)

        try:
            loads = LoadMetadata.objects.all().order_by('location_id', 'inventory_type', 'sub_inventory_name')
            if location_id:
                loads = loads.filter(location_id=location_id)
            loads = list(loads)
        except DatabaseError as e:
            raise CommandError(f'Failed to fetch loads: {str(e)}')

        self.stdout.write(f'Found {len(loads)} loads to recalculate')
        if dry_run:
            self.stdout.write(self.style.WARNING('Dry run: no changes will be saved'))

        updated_count = 0
        error_count = 0

        for load in loads:
            try:
                items = InventoryItem.objects.filter(
                    location_id=load.location_id,
                    inventory_type=load.inventory_type,
                    sub_inventory=load.sub_inventory_name,
                )
                total = items.count()
                scanned = (
                    ProductLocation.objects.filter(inventory_item__in=items)
                    .values('inventory_item_id')
                    .distinct()
                    .count()
                )
                complete = total > 0 and scanned >= total

                if not dry_run:
                    LoadMetadata.objects.filter(pk=load.pk).update(
                        items_scanned_count=scanned,
                        items_total_count=total,
                        scanning_complete=complete,
                    )
                updated_count += 1
                self.stdout.write(f'  ✓ {load.sub_inventory_name}: {scanned}/{total} items scanned')
            except DatabaseError as e:
                error_count += 1
                self.stdout.write(self.style.WARNING(
                    f'  ✗ Error recalculating {load.sub_inventory_name}: {str(e)}'
                ))

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {updated_count} loads updated, {error_count} errors'
        ))
