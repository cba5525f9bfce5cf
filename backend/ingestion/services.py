"""
Ingestion services - parse scale exports and reconcile them with patients.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from pathlib import Path
from uuid import uuid4, UUID
import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from patients.models import (
    ActivityLevel,
    DataImportLog,
    DataSource,
    Patient,
    PatientGender,
    ScaleMeasurement,
)
from .adapters.base import AdapterRegistry, ParseResult
from .adapters.data_processor import DataProcessor
from .adapters.tanita_records import (
    DeviceGender,
    ScaleMeasurementRecord,
    SlotImportResult,
    canonical_date,
)

logger = logging.getLogger(__name__)

MAX_STORED_ERRORS = 100


class ImportStateError(Exception):
    """An import log is not in a state that allows the requested step."""


def to_patient_gender(device_code: int | None) -> PatientGender | None:
    """
    Translate the scale's gender code (1 male, 2 female) to the
    application's (0 female, 1 male).
    """
    if device_code is None:
        return None
    try:
        device_gender = DeviceGender(device_code)
    except ValueError:
        logger.warning(f"Unknown device gender code: {device_code!r}")
        return None

    if device_gender is DeviceGender.MALE:
        return PatientGender.MALE
    return PatientGender.FEMALE


def _activity_level(value: int | None) -> int | None:
    if value is None:
        return None
    if value not in ActivityLevel.values:
        logger.warning(f"Activity level out of range: {value}")
        return None
    return value


@dataclass
class MergeSummary:
    """Aggregate outcome of a merge run."""
    patients_touched: int = 0
    measurements_created: int = 0
    measurements_skipped: int = 0
    measurements_failed: int = 0
    slots_failed: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class TanitaMergeService:
    """
    Reconciles imported slots with existing patients and stores their weigh-ins.

    A patient matches when the birth date is equal and the stored height is
    within the tolerance of the profile height; the first match (by id) wins.
    Every failure is logged and counted, and the run always completes.

    Usage:
        summary = TanitaMergeService(batch_id=batch_id).commit(result.slots)
    """

    def __init__(
        self,
        batch_id: UUID | None = None,
        height_tolerance_cm: float | None = None,
        skip_duplicates: bool = False
    ):
        self.batch_id = batch_id
        if height_tolerance_cm is None:
            height_tolerance_cm = getattr(settings, 'TANITA_HEIGHT_TOLERANCE_CM', 2.0)
        self.height_tolerance_cm = height_tolerance_cm
        self.skip_duplicates = skip_duplicates

    def commit(self, slots: list[SlotImportResult]) -> MergeSummary:
        summary = MergeSummary()

        for slot_result in sorted(slots, key=lambda s: s.slot):
            patient = self._resolve_patient(slot_result, summary)
            if patient is None:
                summary.slots_failed.append(slot_result.slot)
                continue

            summary.patients_touched += 1
            created = self._insert_measurements(patient, slot_result, summary)
            logger.info(
                f"Imported {created} measurements of DATA{slot_result.slot}.CSV "
                f"for patient ID={patient.pk}"
            )

        logger.info(
            f"Tanita import complete: {summary.patients_touched} patients processed, "
            f"{summary.measurements_created} measurements imported, "
            f"{summary.measurements_failed} failed, {summary.measurements_skipped} skipped"
        )
        return summary

    def find_matching_patient(self, birth_date: date, height_cm: float | None) -> Patient | None:
        """First patient born on birth_date whose height is within tolerance."""
        if height_cm is None:
            return None

        candidates = Patient.objects.filter(birth_date=birth_date).order_by('pk')
        for candidate in candidates:
            if candidate.height_cm is None:
                continue
            if abs(candidate.height_cm - height_cm) <= self.height_tolerance_cm:
                return candidate
        return None

    def _resolve_patient(
        self,
        slot_result: SlotImportResult,
        summary: MergeSummary
    ) -> Patient | None:
        """Update the matching patient or create a placeholder one."""
        slot = slot_result.slot
        profile = slot_result.profile

        try:
            birth_date = date.fromisoformat(canonical_date(profile.birth_date or ''))
        except ValueError as e:
            self._record_error(summary, f"Slot {slot}: invalid birth date {profile.birth_date!r}", e)
            return None

        values = {
            'birth_date': birth_date,
            'gender': to_patient_gender(profile.gender),
            'height_cm': profile.height_cm,
            'athlete_mode': bool(profile.athlete_mode),
            'activity_level': _activity_level(profile.activity_level),
            'tanita_slot': slot,
            'tanita_profile_code': slot_result.profile_code,
        }

        try:
            with transaction.atomic():
                matched = self.find_matching_patient(birth_date, profile.height_cm)

                if matched is not None:
                    for name, value in values.items():
                        setattr(matched, name, value)
                    matched.save()
                    logger.info(f"Slot {slot} matched patient {matched.name} (ID={matched.pk})")
                    return matched

                patient = Patient.objects.create(name=f"Tanita Slot {slot}", **values)
                logger.info(f"Slot {slot} created new patient (ID={patient.pk})")
                return patient
        except DatabaseError as e:
            self._record_error(summary, f"Slot {slot}: could not save patient {values}", e)
            return None

    def _insert_measurements(
        self,
        patient: Patient,
        slot_result: SlotImportResult,
        summary: MergeSummary
    ) -> int:
        created_count = 0

        for record in slot_result.measurements:
            try:
                created = self._save_measurement(patient, record)
            except (DatabaseError, ValueError) as e:
                summary.measurements_failed += 1
                self._record_error(
                    summary,
                    f"Slot {slot_result.slot}: could not insert measurement {record.timestamp!r} "
                    f"for patient ID={patient.pk}",
                    e
                )
                continue

            if created:
                created_count += 1
                summary.measurements_created += 1
            else:
                summary.measurements_skipped += 1

        return created_count

    def _save_measurement(self, patient: Patient, record: ScaleMeasurementRecord) -> bool:
        """
        Insert one weigh-in.

        Returns:
            True if created, False if skipped as an already stored duplicate
        """
        timestamp = DataProcessor.parse_datetime(record.canonical_timestamp)
        if timestamp is None:
            raise ValueError(f"unparseable timestamp {record.timestamp!r}")

        fields = asdict(record)
        fields.pop('timestamp')

        with transaction.atomic():
            if self.skip_duplicates and ScaleMeasurement.objects.filter(
                patient=patient, timestamp=timestamp
            ).exists():
                return False

            ScaleMeasurement.objects.create(
                patient=patient,
                timestamp=timestamp,
                source=DataSource.TANITA,
                import_batch_id=self.batch_id,
                **fields
            )
        return True

    def _record_error(self, summary: MergeSummary, message: str, exception: Exception):
        message = f"{message}: {exception}"
        logger.error(message)
        summary.errors.append(message)


class IngestionService:
    """
    Service for importing scale exports into the database in two steps.

    Usage:
        service = IngestionService()
        import_log = service.preview(path)   # parse only, status 'pending'
        service.commit(import_log)           # reconcile + store
        # or
        import_log = service.ingest(path)    # both at once
    """

    def __init__(
        self,
        height_tolerance_cm: float | None = None,
        skip_duplicates: bool = False
    ):
        self.height_tolerance_cm = height_tolerance_cm
        self.skip_duplicates = skip_duplicates

    def preview(
        self,
        path: Path | str,
        source: str | None = None,
        file_name: str | None = None
    ) -> DataImportLog:
        """
        Parse an export folder and store the result for later confirmation.

        Args:
            path: Export root (card root or TANITA folder)
            source: Optional source name (e.g., 'tanita'). Auto-detected if None.
            file_name: Name to record (e.g., the uploaded ZIP), defaults to path name

        Returns:
            DataImportLog with status 'pending', or 'failed' if the folder
            is not a recognised export
        """
        path = Path(path)
        batch_id = uuid4()

        import_log = DataImportLog.objects.create(
            batch_id=batch_id,
            source=source or DataSource.TANITA,
            status='processing',
            file_name=file_name or path.name,
        )

        try:
            if source:
                adapter = AdapterRegistry.get_adapter_by_name(source, batch_id)
            else:
                adapter = AdapterRegistry.get_adapter_for(path, batch_id)

            if adapter is None:
                logger.warning(f"No adapter found for path: {path}")
                return self._fail(import_log, [
                    f"{path.name or path} does not look like a supported scale export"
                ])

            result = adapter.parse(path)
            if not result.success:
                return self._fail(import_log, result.errors)

            import_log.source = adapter.SOURCE_NAME
            import_log.status = 'pending'
            import_log.slots_found = result.profiles_found
            import_log.records_processed = result.records_parsed
            import_log.errors = result.errors[:MAX_STORED_ERRORS]
            import_log.payload = self._payload(result)
            import_log.save()

        except Exception as e:
            logger.exception(f"Preview failed for {path}")
            return self._fail(import_log, [str(e)])

        logger.info(
            f"Preview {result.batch_id}: {result.profiles_found} profiles, "
            f"{result.records_parsed} measurements awaiting confirmation"
        )
        return import_log

    def commit(self, import_log: DataImportLog) -> DataImportLog:
        """Reconcile a pending preview with the patient store."""
        if import_log.status != 'pending':
            raise ImportStateError(
                f"Import {import_log.batch_id} is {import_log.status}, only pending imports can be committed"
            )

        import_log.status = 'processing'
        import_log.save(update_fields=['status'])
        parse_errors = list(import_log.errors)

        try:
            slots = self.load_slots(import_log)

            merge = TanitaMergeService(
                batch_id=import_log.batch_id,
                height_tolerance_cm=self.height_tolerance_cm,
                skip_duplicates=self.skip_duplicates,
            )
            summary = merge.commit(slots)

            import_log.status = 'completed'
            import_log.patients_touched = summary.patients_touched
            import_log.records_created = summary.measurements_created
            import_log.records_skipped = summary.measurements_skipped + summary.measurements_failed
            import_log.errors = (parse_errors + summary.errors)[:MAX_STORED_ERRORS]
            import_log.completed_at = timezone.now()
            import_log.save()

        except Exception as e:
            logger.exception(f"Commit of import {import_log.batch_id} failed")
            return self._fail(import_log, parse_errors + [str(e)])

        return import_log

    def ingest(self, path: Path | str, source: str | None = None) -> DataImportLog:
        """Parse and commit in one go."""
        import_log = self.preview(path, source=source)
        if import_log.status != 'pending':
            return import_log
        return self.commit(import_log)

    @staticmethod
    def load_slots(import_log: DataImportLog) -> list[SlotImportResult]:
        return [SlotImportResult.from_dict(s) for s in import_log.payload.get('slots', [])]

    def _payload(self, result: ParseResult) -> dict:
        return {
            'slots': [slot.to_dict() for slot in result.slots],
            'outcomes': [
                {
                    'slot': o.slot,
                    'status': o.status.value,
                    'reason': o.reason,
                    'measurements': o.measurements,
                }
                for o in result.outcomes
            ],
        }

    def _fail(self, import_log: DataImportLog, errors: list[str]) -> DataImportLog:
        import_log.status = 'failed'
        import_log.errors = errors[:MAX_STORED_ERRORS]
        import_log.completed_at = timezone.now()
        import_log.save()
        return import_log
