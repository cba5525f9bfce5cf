"""
Pandas-based processing of parsed scale measurements.

Handles:
- Parsing canonical timestamps consistently (with or without seconds)
- Summarising a slot's weigh-ins for the operator before committing
- Spotting repeated timestamps (device clock collisions)
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable
import logging

import pandas as pd

from .tanita_records import ScaleMeasurementRecord

logger = logging.getLogger(__name__)


class DataProcessor:
    """
    Utility class for processing scale data with pandas.
    """

    # Canonical timestamp formats ('Ti' is sometimes written without seconds)
    DATETIME_FORMATS = [
        '%Y-%m-%d %H:%M:%S',      # 2024-06-01 08:30:00
        '%Y-%m-%d %H:%M',         # 2024-06-01 08:30
    ]

    DISPLAY_FORMAT = '%Y-%m-%d %H:%M:%S'

    @classmethod
    def parse_datetime(cls, dt_string: str) -> datetime | None:
        """Try the canonical formats in turn."""
        if not dt_string:
            return None

        for fmt in cls.DATETIME_FORMATS:
            try:
                return datetime.strptime(dt_string.strip(), fmt)
            except ValueError:
                continue

        logger.warning(f"Could not parse datetime: {dt_string}")
        return None

    @classmethod
    def measurements_to_dataframe(
        cls,
        records: Iterable[ScaleMeasurementRecord]
    ) -> pd.DataFrame:
        """
        One row per weigh-in, plus a parsed 'datetime' column
        (NaT where the device timestamp is malformed).
        """
        rows = []
        for record in records:
            row = asdict(record)
            try:
                row['datetime'] = cls.parse_datetime(record.canonical_timestamp)
            except ValueError:
                row['datetime'] = None
            rows.append(row)

        if not rows:
            return pd.DataFrame()

        df = pd.DataFrame(rows)
        df['datetime'] = pd.to_datetime(df['datetime'])
        return df

    @classmethod
    def summarize_measurements(
        cls,
        records: Iterable[ScaleMeasurementRecord]
    ) -> dict[str, Any]:
        """
        Summary shown to the operator for one slot.

        Returns dict with: count, first_timestamp, last_timestamp,
        latest_weight_kg, min_weight_kg, max_weight_kg, duplicate_timestamps
        """
        df = cls.measurements_to_dataframe(records)

        if df.empty:
            return {
                'count': 0,
                'first_timestamp': None,
                'last_timestamp': None,
                'latest_weight_kg': None,
                'min_weight_kg': None,
                'max_weight_kg': None,
                'duplicate_timestamps': 0,
            }

        weights = pd.to_numeric(df['weight_kg'], errors='coerce')
        dated = df.dropna(subset=['datetime']).sort_values('datetime', kind='stable')

        summary = {
            'count': int(len(df)),
            'first_timestamp': None,
            'last_timestamp': None,
            'latest_weight_kg': None,
            'min_weight_kg': round(float(weights.min()), 2),
            'max_weight_kg': round(float(weights.max()), 2),
            # Kept as separate rows on import; reported so the operator can see them
            'duplicate_timestamps': int(df.duplicated(subset=['timestamp']).sum()),
        }

        if not dated.empty:
            summary['first_timestamp'] = dated['datetime'].iloc[0].strftime(cls.DISPLAY_FORMAT)
            summary['last_timestamp'] = dated['datetime'].iloc[-1].strftime(cls.DISPLAY_FORMAT)
            summary['latest_weight_kg'] = float(dated['weight_kg'].iloc[-1])

        return summary
