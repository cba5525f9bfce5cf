"""
Tests for the pandas-based measurement summary.
"""
from datetime import datetime

from ingestion.adapters.data_processor import DataProcessor
from ingestion.adapters.tanita_records import ScaleMeasurementRecord


def _record(timestamp, weight):
    return ScaleMeasurementRecord(timestamp=timestamp, weight_kg=weight)


class TestParseDatetime:

    def test_with_seconds(self):
        assert DataProcessor.parse_datetime('2024-06-01 08:30:00') == datetime(2024, 6, 1, 8, 30, 0)

    def test_without_seconds(self):
        assert DataProcessor.parse_datetime('2024-06-01 08:30') == datetime(2024, 6, 1, 8, 30)

    def test_invalid(self):
        assert DataProcessor.parse_datetime('') is None
        assert DataProcessor.parse_datetime('2024-13-01 08:30:00') is None
        assert DataProcessor.parse_datetime('yesterday') is None


class TestSummarizeMeasurements:

    def test_empty(self):
        summary = DataProcessor.summarize_measurements([])
        assert summary['count'] == 0
        assert summary['latest_weight_kg'] is None
        assert summary['duplicate_timestamps'] == 0

    def test_summary_uses_chronological_order(self):
        records = [
            _record('03/06/2024 08:00:00', 79.5),
            _record('01/06/2024 08:00:00', 81.0),
            _record('02/06/2024 08:00', 80.1),
        ]

        summary = DataProcessor.summarize_measurements(records)

        assert summary['count'] == 3
        assert summary['first_timestamp'] == '2024-06-01 08:00:00'
        assert summary['last_timestamp'] == '2024-06-03 08:00:00'
        assert summary['latest_weight_kg'] == 79.5
        assert summary['min_weight_kg'] == 79.5
        assert summary['max_weight_kg'] == 81.0

    def test_repeated_timestamps_are_counted(self):
        records = [
            _record('01/06/2024 08:00:00', 80.0),
            _record('01/06/2024 08:00:00', 80.4),
            _record('02/06/2024 08:00:00', 80.1),
        ]

        summary = DataProcessor.summarize_measurements(records)

        assert summary['count'] == 3
        assert summary['duplicate_timestamps'] == 1

    def test_malformed_timestamp_still_counted(self):
        records = [
            _record('99/99/2024 08:00:00', 80.0),
            _record('01/06/2024 08:00:00', 81.0),
        ]

        summary = DataProcessor.summarize_measurements(records)

        assert summary['count'] == 2
        assert summary['first_timestamp'] == '2024-06-01 08:00:00'
        assert summary['latest_weight_kg'] == 81.0
        assert summary['max_weight_kg'] == 81.0
