from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from warehouse.core.models import Location
from ...client import GESyncError
from ...sync import prepare_ge_sync, execute_ge_sync, default_client, DEFAULT_ORPHAN_STATUS

User = get_user_model()


class Command(BaseCommand):
    help = 'Sync ASIS inventory and load status from the GE portal exports'

    def add_arguments(self, parser):
        parser.add_argument('--location', type=int, required=True, help='Location id to sync')
        parser.add_argument('--dry-run', action='store_true', help='Show what would change without saving')
        parser.add_argument('--mark-orphans', action='store_true',
                            help=f'Flag items missing from GE with status {DEFAULT_ORPHAN_STATUS}')
        parser.add_argument('--batch-size', type=int, default=None, help='Rows per insert/update batch')
        parser.add_argument('--base-url', default=None, help='Override GE_ASIS_BASE_URL')
        parser.add_argument('--user', default=None, help='Username recorded on the activity log entry')

    def handle(self, *args, **options):
        location = Location.objects.filter(id=options['location'], active=True).first()
        if location is None:
            raise CommandError(f"Location {options['location']} not found")

        user = None
        if options.get('user'):
            user = User.objects.filter(username=options['user']).first()
            if user is None:
                raise CommandError(f"User {options['user']} not found")

        batch_size = options.get('batch_size') or settings.GE_SYNC_BATCH_SIZE
        if batch_size < 1:
            raise CommandError('--batch-size must be positive')

        self.stdout.write(f'Fetching GE ASIS data for {location.name}...')
        try:
            result = prepare_ge_sync(location, default_client(location, base_url=options.get('base_url')))
        except GESyncError as e:
            raise CommandError(f'GE fetch failed: {str(e)}')

        for key, value in result.stats.items():
            self.stdout.write(f'  {key}: {value}')

        if options.get('dry_run'):
            self.stdout.write(self.style.WARNING('Dry run: no changes saved'))
            return

        summary = execute_ge_sync(
            location,
            result,
            batch_size=batch_size,
            mark_orphans=options.get('mark_orphans', False),
            user=user,
        )
        self.stdout.write(self.style.SUCCESS(
            f"\nCompleted: {summary['inserted']} inserted, {summary['updated']} updated, "
            f"{summary['orphans_marked']} orphans marked, {summary['loads']} loads"
        ))
