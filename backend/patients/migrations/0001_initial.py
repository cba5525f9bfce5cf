import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='DataImportLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_id', models.UUIDField(db_index=True, unique=True)),
                ('source', models.CharField(choices=[('tanita', 'Tanita'), ('manual', 'Manual Entry')], max_length=50)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('file_name', models.CharField(blank=True, max_length=255)),
                ('slots_found', models.IntegerField(default=0)),
                ('records_processed', models.IntegerField(default=0)),
                ('patients_touched', models.IntegerField(default=0)),
                ('records_created', models.IntegerField(default=0)),
                ('records_skipped', models.IntegerField(default=0)),
                ('errors', models.JSONField(blank=True, default=list)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('started_at', models.DateTimeField(auto_now_add=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'ordering': ['-started_at'],
            },
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('birth_date', models.DateField(db_index=True)),
                ('gender', models.PositiveSmallIntegerField(blank=True, choices=[(0, 'Female'), (1, 'Male')], null=True)),
                ('height_cm', models.FloatField(blank=True, null=True)),
                ('athlete_mode', models.BooleanField(default=False)),
                ('activity_level', models.PositiveSmallIntegerField(blank=True, choices=[(0, 'Sedentary'), (1, 'Lightly active'), (2, 'Moderately active'), (3, 'Very active'), (4, 'Extremely active')], null=True)),
                ('tanita_slot', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('tanita_profile_code', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ScaleMeasurement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('source', models.CharField(choices=[('tanita', 'Tanita'), ('manual', 'Manual Entry')], default='tanita', max_length=50)),
                ('timestamp', models.DateTimeField(db_index=True)),
                ('weight_kg', models.FloatField()),
                ('bmi', models.FloatField(blank=True, null=True)),
                ('body_fat_percent', models.FloatField(blank=True, null=True)),
                ('water_percent', models.FloatField(blank=True, null=True)),
                ('muscle_mass_percent_total', models.FloatField(blank=True, null=True)),
                ('bone_mass_kg', models.FloatField(blank=True, null=True)),
                ('visceral_fat_rating', models.IntegerField(blank=True, null=True)),
                ('metabolic_age', models.IntegerField(blank=True, null=True)),
                ('daily_calorie_maintenance', models.IntegerField(blank=True, null=True)),
                ('fat_arm_right', models.FloatField(blank=True, null=True)),
                ('fat_arm_left', models.FloatField(blank=True, null=True)),
                ('fat_leg_right', models.FloatField(blank=True, null=True)),
                ('fat_leg_left', models.FloatField(blank=True, null=True)),
                ('fat_trunk', models.FloatField(blank=True, null=True)),
                ('muscle_arm_right', models.FloatField(blank=True, null=True)),
                ('muscle_arm_left', models.FloatField(blank=True, null=True)),
                ('muscle_leg_right', models.FloatField(blank=True, null=True)),
                ('muscle_leg_left', models.FloatField(blank=True, null=True)),
                ('muscle_trunk', models.FloatField(blank=True, null=True)),
                ('import_batch_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scale_measurements', to='patients.patient')),
            ],
            options={
                'ordering': ['-timestamp'],
                'indexes': [models.Index(fields=['patient', 'timestamp'], name='scale_patient_ts_idx')],
            },
        ),
    ]
