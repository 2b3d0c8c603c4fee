from django.core.management.base import BaseCommand, CommandError
import logging

from healthcare.services import AppointmentLedger

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'List patient/doctor pairs holding more than one live appointment'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fail-on-duplicates',
            action='store_true',
            help='Exit with status 1 when any duplicate pair is found',
        )

    def handle(self, *args, **options):
        pairs = AppointmentLedger.duplicate_live_pairs()

        if not pairs:
            self.stdout.write(self.style.SUCCESS('No duplicate live appointments found.'))
            return

        for pair in pairs:
            self.stdout.write(
                self.style.WARNING(
                    f"Patient {pair['patient']} / doctor {pair['doctor']}: {pair['live_count']} live appointments"
                )
            )
        logger.warning(f"Found {len(pairs)} patient/doctor pairs with duplicate live appointments")

        if options['fail_on_duplicates']:
            raise CommandError(f"{len(pairs)} duplicate pairs found")
