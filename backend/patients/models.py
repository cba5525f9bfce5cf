from django.db import models


class DataSource(models.TextChoices):
    """Supported measurement sources."""
    TANITA = 'tanita', 'Tanita'
    MANUAL = 'manual', 'Manual Entry'


class PatientGender(models.IntegerChoices):
    """Application gender convention (differs from the scale's own codes)."""
    FEMALE = 0, 'Female'
    MALE = 1, 'Male'


class ActivityLevel(models.IntegerChoices):
    SEDENTARY = 0, 'Sedentary'
    LIGHTLY_ACTIVE = 1, 'Lightly active'
    MODERATELY_ACTIVE = 2, 'Moderately active'
    VERY_ACTIVE = 3, 'Very active'
    EXTREMELY_ACTIVE = 4, 'Extremely active'


class Patient(models.Model):
    """
    A patient of the practice.
    The tanita_* fields remember which scale slot last wrote to this patient.
    """
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)

    birth_date = models.DateField(db_index=True)
    gender = models.PositiveSmallIntegerField(
        choices=PatientGender.choices,
        null=True,
        blank=True
    )
    height_cm = models.FloatField(null=True, blank=True)
    athlete_mode = models.BooleanField(default=False)
    activity_level = models.PositiveSmallIntegerField(
        choices=ActivityLevel.choices,
        null=True,
        blank=True
    )

    # Scale bookkeeping
    tanita_slot = models.PositiveSmallIntegerField(null=True, blank=True)
    tanita_profile_code = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']

    def __str__(self):
        return f"{self.name} ({self.birth_date})"


class ScaleMeasurement(models.Model):
    """
    One bioimpedance weigh-in, linked to the patient it was reconciled to.
    Segmental fields are percentages per body region.
    """
    patient = models.ForeignKey(
        Patient,
        on_delete=models.CASCADE,
        related_name='scale_measurements'
    )

    source = models.CharField(
        max_length=50,
        choices=DataSource.choices,
        default=DataSource.TANITA
    )

    # Device-local wall-clock time
    timestamp = models.DateTimeField(db_index=True)

    weight_kg = models.FloatField()
    bmi = models.FloatField(null=True, blank=True)
    body_fat_percent = models.FloatField(null=True, blank=True)
    water_percent = models.FloatField(null=True, blank=True)
    muscle_mass_percent_total = models.FloatField(null=True, blank=True)
    bone_mass_kg = models.FloatField(null=True, blank=True)
    visceral_fat_rating = models.IntegerField(null=True, blank=True)
    metabolic_age = models.IntegerField(null=True, blank=True)
    daily_calorie_maintenance = models.IntegerField(null=True, blank=True)  # kcal

    # -------------------------------------------------------------------------
    # Segmental fat (%)
    # -------------------------------------------------------------------------
    fat_arm_right = models.FloatField(null=True, blank=True)
    fat_arm_left = models.FloatField(null=True, blank=True)
    fat_leg_right = models.FloatField(null=True, blank=True)
    fat_leg_left = models.FloatField(null=True, blank=True)
    fat_trunk = models.FloatField(null=True, blank=True)

    # -------------------------------------------------------------------------
    # Segmental muscle
    # -------------------------------------------------------------------------
    muscle_arm_right = models.FloatField(null=True, blank=True)
    muscle_arm_left = models.FloatField(null=True, blank=True)
    muscle_leg_right = models.FloatField(null=True, blank=True)
    muscle_leg_left = models.FloatField(null=True, blank=True)
    muscle_trunk = models.FloatField(null=True, blank=True)

    import_batch_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'timestamp'], name='scale_patient_ts_idx'),
        ]
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.patient_id}: {self.weight_kg} kg ({self.timestamp})"


class DataImportLog(models.Model):
    """
    Tracks each scale import run, from the parsed preview to the final commit.
    """
    batch_id = models.UUIDField(unique=True, db_index=True)
    source = models.CharField(max_length=50, choices=DataSource.choices)

    status = models.CharField(
        max_length=20,
        choices=[
            ('pending', 'Pending'),
            ('processing', 'Processing'),
            ('completed', 'Completed'),
            ('failed', 'Failed'),
        ],
        default='pending'
    )

    file_name = models.CharField(max_length=255, blank=True)

    # Parse results
    slots_found = models.IntegerField(default=0)
    records_processed = models.IntegerField(default=0)

    # Commit results
    patients_touched = models.IntegerField(default=0)
    records_created = models.IntegerField(default=0)
    records_skipped = models.IntegerField(default=0)
    errors = models.JSONField(default=list, blank=True)

    # Parsed slots awaiting confirmation
    payload = models.JSONField(default=dict, blank=True)

    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-started_at']

    def __str__(self):
        return f"{self.source} import {self.batch_id} - {self.status}"
