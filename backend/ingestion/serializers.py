"""
DRF Serializers for the ingestion API.
"""

from rest_framework import serializers
from patients.models import (
    ActivityLevel,
    DataImportLog,
    DataSource,
    Patient,
    ScaleMeasurement,
)
from .adapters.data_processor import DataProcessor
from .adapters.tanita_records import DeviceGender, SlotImportResult


class PatientSerializer(serializers.ModelSerializer):
    """Serializer for patients."""

    gender_label = serializers.CharField(source='get_gender_display', read_only=True)
    activity_level_label = serializers.CharField(source='get_activity_level_display', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'name',
            'email',
            'birth_date',
            'gender',
            'gender_label',
            'height_cm',
            'athlete_mode',
            'activity_level',
            'activity_level_label',
            'tanita_slot',
            'tanita_profile_code',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'tanita_slot', 'tanita_profile_code', 'created_at', 'updated_at']


class ScaleMeasurementSerializer(serializers.ModelSerializer):
    """Serializer for stored scale measurements."""

    class Meta:
        model = ScaleMeasurement
        fields = [
            'id',
            'patient',
            'source',
            'timestamp',
            'weight_kg',
            'bmi',
            'body_fat_percent',
            'water_percent',
            'muscle_mass_percent_total',
            'bone_mass_kg',
            'visceral_fat_rating',
            'metabolic_age',
            'daily_calorie_maintenance',
            'fat_arm_right',
            'fat_arm_left',
            'fat_leg_right',
            'fat_leg_left',
            'fat_trunk',
            'muscle_arm_right',
            'muscle_arm_left',
            'muscle_leg_right',
            'muscle_leg_left',
            'muscle_trunk',
            'import_batch_id',
            'created_at',
        ]
        read_only_fields = fields


class DataImportLogSerializer(serializers.ModelSerializer):
    """Serializer for import tracking."""

    class Meta:
        model = DataImportLog
        fields = [
            'id',
            'batch_id',
            'source',
            'status',
            'file_name',
            'slots_found',
            'records_processed',
            'patients_touched',
            'records_created',
            'records_skipped',
            'errors',
            'started_at',
            'completed_at',
        ]
        read_only_fields = fields


class ImportPreviewSerializer(DataImportLogSerializer):
    """
    Import log plus what the operator reviews before committing:
    one entry per included slot and the outcome of every slot.
    """

    slots = serializers.SerializerMethodField()
    outcomes = serializers.SerializerMethodField()

    class Meta(DataImportLogSerializer.Meta):
        fields = DataImportLogSerializer.Meta.fields + ['slots', 'outcomes']
        read_only_fields = fields

    def get_slots(self, obj: DataImportLog) -> list[dict]:
        previews = []
        for slot in obj.payload.get('slots', []):
            result = SlotImportResult.from_dict(slot)
            profile = result.profile
            try:
                birth_date = profile.canonical_birth_date
            except ValueError:
                birth_date = None

            previews.append({
                'slot': result.slot,
                'profile_code': result.profile_code,
                'birth_date': birth_date,
                'device_birth_date': profile.birth_date,
                'gender': profile.gender,
                'gender_label': _device_gender_label(profile.gender),
                'height_cm': profile.height_cm,
                'athlete_mode': bool(profile.athlete_mode),
                'activity_level': profile.activity_level,
                'activity_level_label': _activity_label(profile.activity_level),
                'measurements': DataProcessor.summarize_measurements(result.measurements),
            })
        return previews

    def get_outcomes(self, obj: DataImportLog) -> list[dict]:
        return obj.payload.get('outcomes', [])


def _device_gender_label(code: int | None) -> str:
    try:
        return DeviceGender(code).name.capitalize()
    except ValueError:
        return 'Unknown'


def _activity_label(level: int | None) -> str:
    if level in ActivityLevel.values:
        return ActivityLevel(level).label
    return 'Not informed'


class FileUploadSerializer(serializers.Serializer):
    """Serializer for export upload requests."""

    file = serializers.FileField(help_text="ZIP archive of the scale's SD card or TANITA folder")
    source = serializers.ChoiceField(
        choices=[(DataSource.TANITA.value, DataSource.TANITA.label)],
        required=False,
        help_text="Scale source type. If not provided, will be auto-detected."
    )

    def validate_file(self, value):
        if not value.name.lower().endswith('.zip'):
            raise serializers.ValidationError('Upload the export folder as a .zip archive.')
        return value


class CommitOptionsSerializer(serializers.Serializer):
    skip_duplicates = serializers.BooleanField(required=False, default=False)


class DataSourceInfoSerializer(serializers.Serializer):
    """Information about a supported data source."""

    name = serializers.CharField()
    label = serializers.CharField()
    supported_formats = serializers.ListField(child=serializers.CharField())
    description = serializers.CharField()
