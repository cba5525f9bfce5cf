"""
Tests for the import_tanita management command.
"""
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from patients.models import DataImportLog, Patient, ScaleMeasurement


def _run(*args):
    out = StringIO()
    call_command('import_tanita', *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestImportTanitaCommand:

    def test_import(self, tanita_root):
        output = _run(str(tanita_root))

        assert 'Import completed successfully!' in output
        assert 'Records created: 2' in output
        assert Patient.objects.get().name == 'Tanita Slot 1'
        assert ScaleMeasurement.objects.count() == 2
        assert DataImportLog.objects.get().status == 'completed'

    def test_dry_run_writes_nothing(self, tanita_root):
        output = _run(str(tanita_root), '--dry-run')

        assert 'Slot 1: included, 2 measurements' in output
        assert 'Slot 2: skipped' in output
        assert 'Parsed 1 profiles, 2 measurements' in output
        assert Patient.objects.count() == 0
        assert DataImportLog.objects.count() == 0

    def test_skip_duplicates(self, tanita_root):
        _run(str(tanita_root))
        output = _run(str(tanita_root), '--skip-duplicates')

        assert 'Records created: 0' in output
        assert 'Records skipped: 2' in output
        assert ScaleMeasurement.objects.count() == 2

    def test_missing_path(self, tmp_path):
        with pytest.raises(CommandError, match='does not exist'):
            _run(str(tmp_path / 'nope'))

    def test_invalid_layout(self, tmp_path):
        with pytest.raises(CommandError):
            _run(str(tmp_path))
        assert DataImportLog.objects.get().status == 'failed'

    def test_invalid_layout_dry_run(self, tmp_path):
        with pytest.raises(CommandError, match='Invalid export folder'):
            _run(str(tmp_path), '--dry-run')
