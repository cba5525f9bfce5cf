from django.contrib import admin
from .models import Patient, ScaleMeasurement, DataImportLog


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'birth_date', 'gender', 'height_cm', 'tanita_slot', 'tanita_profile_code')
    list_filter = ('gender', 'athlete_mode', 'tanita_slot')
    search_fields = ('name', 'email', 'tanita_profile_code')
    date_hierarchy = 'birth_date'
    readonly_fields = ('created_at', 'updated_at')


@admin.register(ScaleMeasurement)
class ScaleMeasurementAdmin(admin.ModelAdmin):
    list_display = ('patient', 'timestamp', 'weight_kg', 'body_fat_percent', 'water_percent', 'source')
    list_filter = ('source', 'timestamp')
    search_fields = ('patient__name',)
    date_hierarchy = 'timestamp'
    readonly_fields = ('created_at', 'import_batch_id')


@admin.register(DataImportLog)
class DataImportLogAdmin(admin.ModelAdmin):
    list_display = ('batch_id', 'source', 'status', 'slots_found', 'patients_touched', 'records_created', 'started_at')
    list_filter = ('source', 'status', 'started_at')
    readonly_fields = ('batch_id', 'started_at', 'completed_at', 'payload')
