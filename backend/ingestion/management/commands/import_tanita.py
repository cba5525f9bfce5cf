"""
Management command to import a Tanita scale export from a local folder.

Usage:
    python manage.py import_tanita /media/sdcard
    python manage.py import_tanita /media/sdcard/TANITA --dry-run
    python manage.py import_tanita /media/sdcard --skip-duplicates
"""

from pathlib import Path
from django.core.management.base import BaseCommand, CommandError

from ingestion.services import IngestionService
from ingestion.adapters.data_processor import DataProcessor
from ingestion.adapters.tanita import TanitaAdapter


class Command(BaseCommand):
    help = 'Import profiles and weigh-ins from a Tanita GRAPHV1 export folder'

    def add_arguments(self, parser):
        parser.add_argument(
            'path',
            type=str,
            help='SD card root or its TANITA folder'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Parse and show what would be imported without touching the database'
        )
        parser.add_argument(
            '--skip-duplicates',
            action='store_true',
            help='Skip weigh-ins already stored for the same patient and timestamp'
        )
        parser.add_argument(
            '--tolerance',
            type=float,
            help='Height tolerance in cm for matching patients (default from settings)'
        )

    def handle(self, *args, **options):
        path = Path(options['path'])
        dry_run = options.get('dry_run', False)

        if not path.exists():
            raise CommandError(f"Path does not exist: {path}")

        self.stdout.write(f"Processing: {path}")
        self.stdout.write(f"Dry run: {dry_run}")
        self.stdout.write("-" * 50)

        if dry_run:
            self._dry_run(path)
        else:
            self._import(path, options.get('skip_duplicates', False), options.get('tolerance'))

    def _dry_run(self, path: Path):
        """Parse the export without saving, just show what was found."""
        result = TanitaAdapter().parse(path)
        if not result.success:
            raise CommandError("; ".join(result.errors))

        for outcome in result.outcomes:
            if outcome.reason:
                self.stdout.write(f"  Slot {outcome.slot}: {outcome.status.value} ({outcome.reason})")
            else:
                self.stdout.write(
                    f"  Slot {outcome.slot}: {outcome.status.value}, {outcome.measurements} measurements"
                )

        for slot in result.slots:
            summary = DataProcessor.summarize_measurements(slot.measurements)
            profile = slot.profile
            self.stdout.write(
                f"\nSlot {slot.slot} (CS={slot.profile_code or '-'}): "
                f"born {profile.birth_date}, {profile.height_cm} cm"
            )
            self.stdout.write(
                f"  {summary['count']} weigh-ins from {summary['first_timestamp']} "
                f"to {summary['last_timestamp']}, latest {summary['latest_weight_kg']} kg"
            )
            if summary['duplicate_timestamps']:
                self.stdout.write(self.style.WARNING(
                    f"  {summary['duplicate_timestamps']} repeated timestamps"
                ))

        self.stdout.write(self.style.SUCCESS(
            f"\nParsed {result.profiles_found} profiles, {result.records_parsed} measurements"
        ))
        self._write_errors(result.errors)

    def _import(self, path: Path, skip_duplicates: bool, tolerance: float | None):
        """Parse and reconcile with the patient store."""
        service = IngestionService(height_tolerance_cm=tolerance, skip_duplicates=skip_duplicates)

        import_log = service.ingest(path)

        if import_log.status == 'failed':
            raise CommandError("; ".join(import_log.errors) or f"Import of {path} failed")

        self.stdout.write(self.style.SUCCESS("\nImport completed successfully!"))
        self.stdout.write(f"Batch ID: {import_log.batch_id}")
        self.stdout.write(f"Slots found: {import_log.slots_found}")
        self.stdout.write(f"Patients touched: {import_log.patients_touched}")
        self.stdout.write(f"Records processed: {import_log.records_processed}")
        self.stdout.write(f"Records created: {import_log.records_created}")
        self.stdout.write(f"Records skipped: {import_log.records_skipped}")

        self._write_errors(import_log.errors)

    def _write_errors(self, errors: list[str]):
        if not errors:
            return
        self.stdout.write(self.style.WARNING(f"\nErrors ({len(errors)}):"))
        for error in errors[:10]:
            self.stdout.write(f"  - {error}")
        if len(errors) > 10:
            self.stdout.write(f"  ... and {len(errors) - 10} more")
