import os
from django.core.management.base import BaseCommand, CommandError
from warehouse.core.models import Location
from ...importer import IMPORT_SOURCES, DEFAULT_BATCH_SIZE, ImportFileError, read_import_rows, import_inventory_snapshot


class Command(BaseCommand):
    help = 'Import a GE FG or STA inventory snapshot (.xls or .csv) for one location'

    def add_arguments(self, parser):
        parser.add_argument('--location', type=int, required=True, help='Location id to import into')
        parser.add_argument('--source', required=True, choices=sorted(IMPORT_SOURCES), help='Snapshot type')
        parser.add_argument('--file', required=True, help='Path to the exported spreadsheet')
        parser.add_argument('--batch-size', type=int, default=DEFAULT_BATCH_SIZE, help='Rows per insert/update batch')

    def handle(self, *args, **options):
        location = Location.objects.filter(id=options['location'], active=True).first()
        if location is None:
            raise CommandError(f"Location {options['location']} not found")

        if options['batch_size'] < 1:
            raise CommandError('--batch-size must be positive')

        path = options['file']
        if not os.path.exists(path):
            raise CommandError(f'File not found: {path}')

        with open(path, 'rb') as f:
            content = f.read()
        try:
            rows = read_import_rows(path, content)
        except ImportFileError as e:
            raise CommandError(str(e))

        self.stdout.write(f"Importing {len(rows)} {options['source']} rows for {location.name}...")
        stats = import_inventory_snapshot(location, options['source'], rows, batch_size=options['batch_size'])

        for key, value in stats.items():
            self.stdout.write(f'  {key}: {value}')
        if stats['cross_type_skipped']:
            self.stdout.write(self.style.WARNING(
                f"Skipped {stats['cross_type_skipped']} serials that exist under another inventory type"
            ))
        self.stdout.write(self.style.SUCCESS(
            f"\nCompleted: {stats['inserted']} inserted, {stats['updated']} updated, "
            f"{stats['orphans_marked']} orphans marked"
        ))
