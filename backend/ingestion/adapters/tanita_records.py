"""
Record types and parsers for Tanita GRAPHV1 CSV files.

Every line of a PROF/DATA file is a flat run of alternating key/value tokens:

    DB,"01/05/1990",GE,1,Hm,175.5,AL,2,Bt,0,CS,ABC123

Key codes are case-sensitive ('Fr' is right-arm fat, 'FR' right-leg fat).
Unknown codes are ignored so newer firmware fields do not break imports.
"""

from dataclasses import dataclass, field, asdict, fields
from datetime import date
from enum import IntEnum
from typing import Any, Callable
import logging

from .numeric import parse_decimal, parse_integer, strip_quotes

logger = logging.getLogger(__name__)


class DeviceGender(IntEnum):
    """Gender codes written by the scale."""
    MALE = 1
    FEMALE = 2


# -----------------------------------------------------------------------------
# Device date formats
# -----------------------------------------------------------------------------

def canonical_date(device_date: str) -> str:
    """
    Convert a device date 'DD/MM/YYYY' to 'YYYY-MM-DD'.

    Single-digit day/month are accepted ('1/2/1990' -> '1990-02-01').
    Raises ValueError for anything that is not a real calendar date.
    """
    parts = strip_quotes(device_date).split('/')
    if len(parts) != 3:
        raise ValueError(f"Not a DD/MM/YYYY date: {device_date!r}")
    day, month, year = (int(p) for p in parts)
    return date(year, month, day).isoformat()


def device_date(iso_date: str) -> str:
    """Convert 'YYYY-MM-DD' back to the device's zero-padded 'DD/MM/YYYY'."""
    d = date.fromisoformat(iso_date)
    return f"{d.day:02d}/{d.month:02d}/{d.year:04d}"


def canonical_timestamp(device_timestamp: str) -> str:
    """Convert 'DD/MM/YYYY HH:MM:SS' to 'YYYY-MM-DD HH:MM:SS'."""
    parts = device_timestamp.split()
    if len(parts) != 2:
        raise ValueError(f"Not a 'DD/MM/YYYY HH:MM:SS' timestamp: {device_timestamp!r}")
    day_part, time_part = parts
    return f"{canonical_date(day_part)} {time_part}"


# -----------------------------------------------------------------------------
# Record types
# -----------------------------------------------------------------------------

@dataclass
class ScaleProfile:
    """
    Demographic/config record of one scale slot.
    Fields missing from the file stay None.
    """
    slot: int
    profile_code: str | None = None
    birth_date: str | None = None  # DD/MM/YYYY as written by the device
    gender: int | None = None  # DeviceGender code
    height_cm: float | None = None
    athlete_mode: bool | None = None
    activity_level: int | None = None

    @property
    def canonical_birth_date(self) -> str | None:
        if not self.birth_date:
            return None
        return canonical_date(self.birth_date)


@dataclass
class ScaleMeasurementRecord:
    """One weigh-in line of a DATA file."""
    timestamp: str  # DD/MM/YYYY HH:MM:SS as written by the device
    weight_kg: float
    bmi: float | None = None
    body_fat_percent: float | None = None
    water_percent: float | None = None
    muscle_mass_percent_total: float | None = None
    bone_mass_kg: float | None = None
    visceral_fat_rating: int | None = None
    metabolic_age: int | None = None
    daily_calorie_maintenance: int | None = None

    # Segmental fat (%)
    fat_arm_right: float | None = None
    fat_arm_left: float | None = None
    fat_leg_right: float | None = None
    fat_leg_left: float | None = None
    fat_trunk: float | None = None

    # Segmental muscle
    muscle_arm_right: float | None = None
    muscle_arm_left: float | None = None
    muscle_leg_right: float | None = None
    muscle_leg_left: float | None = None
    muscle_trunk: float | None = None

    @property
    def canonical_timestamp(self) -> str:
        return canonical_timestamp(self.timestamp)


@dataclass
class SlotImportResult:
    """Everything imported from one slot: its profile and its weigh-ins."""
    slot: int
    profile_code: str
    profile: ScaleProfile
    measurements: list[ScaleMeasurementRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'SlotImportResult':
        return cls(
            slot=data['slot'],
            profile_code=data.get('profile_code') or '',
            profile=ScaleProfile(**_known_fields(ScaleProfile, data['profile'])),
            measurements=[
                ScaleMeasurementRecord(**_known_fields(ScaleMeasurementRecord, m))
                for m in data.get('measurements', [])
            ],
        )


def _known_fields(record_type: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(record_type)}
    return {k: v for k, v in data.items() if k in names}


# -----------------------------------------------------------------------------
# Tokenizer and field tables
# -----------------------------------------------------------------------------

def _raw(value: str) -> str:
    return value.strip()


def _flag(value: str) -> bool:
    return parse_integer(value) == 1


# key code -> (field name, converter)
PROFILE_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    'DB': ('birth_date', strip_quotes),
    'GE': ('gender', parse_integer),
    'Hm': ('height_cm', parse_decimal),
    'AL': ('activity_level', parse_integer),
    'Bt': ('athlete_mode', _flag),
    'CS': ('profile_code', _raw),
}

MEASUREMENT_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    'DT': ('date', strip_quotes),
    'Ti': ('time', strip_quotes),
    'Wk': ('weight_kg', parse_decimal),
    'MI': ('bmi', parse_decimal),
    'FW': ('body_fat_percent', parse_decimal),
    'ww': ('water_percent', parse_decimal),
    'mW': ('muscle_mass_percent_total', parse_decimal),
    'bW': ('bone_mass_kg', parse_decimal),
    'IF': ('visceral_fat_rating', parse_integer),
    'rA': ('metabolic_age', parse_integer),
    'rD': ('daily_calorie_maintenance', parse_integer),
    'Fr': ('fat_arm_right', parse_decimal),
    'Fl': ('fat_arm_left', parse_decimal),
    'FR': ('fat_leg_right', parse_decimal),
    'FL': ('fat_leg_left', parse_decimal),
    'FT': ('fat_trunk', parse_decimal),
    'mr': ('muscle_arm_right', parse_decimal),
    'ml': ('muscle_arm_left', parse_decimal),
    'mR': ('muscle_leg_right', parse_decimal),
    'mL': ('muscle_leg_left', parse_decimal),
    'mT': ('muscle_trunk', parse_decimal),
}


def _opens_quote(token: str) -> bool:
    return token.lstrip().startswith('"') and token.count('"') % 2 == 1


def _closes_quote(token: str) -> bool:
    return token.rstrip().endswith('"') and token.count('"') % 2 == 1


def split_tokens(line: str) -> list[str]:
    """
    Split on plain commas. A quoted comma decimal ("80,2") is joined back
    only when the very next token closes the quote; a stray quote never
    swallows the rest of the line.
    """
    raw = line.split(',')
    tokens: list[str] = []
    i = 0
    while i < len(raw):
        token = raw[i]
        if _opens_quote(token) and i + 1 < len(raw) and _closes_quote(raw[i + 1]):
            token = f"{token},{raw[i + 1]}"
            i += 1
        tokens.append(token)
        i += 1
    return tokens


def tokenize_line(line: str) -> dict[str, str]:
    """
    Split one packed line into {key code: raw value}.

    Values have their quotes stripped. Pairs with an empty key or value are
    dropped; a repeated key keeps its last value.
    """
    tokens = split_tokens(line.rstrip('\r\n'))

    pairs: dict[str, str] = {}
    for i in range(0, len(tokens), 2):
        key = tokens[i].strip()
        value = strip_quotes(tokens[i + 1]) if i + 1 < len(tokens) else ''
        if not key or not value:
            continue
        pairs[key] = value
    return pairs


def extract_fields(
    pairs: dict[str, str],
    table: dict[str, tuple[str, Callable[[str], Any]]]
) -> dict[str, Any]:
    """Apply a field table; unknown keys and unparseable values are skipped."""
    values: dict[str, Any] = {}
    for key, raw in pairs.items():
        if key not in table:
            continue
        name, convert = table[key]
        value = convert(raw)
        if value is None or value == '':
            continue
        values[name] = value
    return values


# -----------------------------------------------------------------------------
# Parsers
# -----------------------------------------------------------------------------

def parse_profile(content: str, slot: int) -> ScaleProfile | None:
    """
    Parse a PROFn.CSV file. Only the first non-blank line is meaningful.

    Returns None when the file holds nothing usable; the slot is then skipped.
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        logger.info(f"Slot {slot}: profile file is empty")
        return None

    pairs = tokenize_line(lines[0])
    if not pairs:
        logger.info(f"Slot {slot}: profile line has no key/value pairs")
        return None

    profile = ScaleProfile(slot=slot, **extract_fields(pairs, PROFILE_FIELDS))
    logger.info(f"Profile loaded: slot {slot}, CS={profile.profile_code}")
    return profile


def parse_measurements(content: str, slot: int) -> list[ScaleMeasurementRecord]:
    """
    Parse a DATAn.CSV file, one weigh-in per line, in file order.

    Lines without date, time and weight are dropped.
    """
    records: list[ScaleMeasurementRecord] = []
    dropped = 0

    for line in content.splitlines():
        if not line.strip():
            continue

        values = extract_fields(tokenize_line(line), MEASUREMENT_FIELDS)
        day = values.pop('date', None)
        time = values.pop('time', None)

        if not day or not time or values.get('weight_kg') is None:
            dropped += 1
            continue

        records.append(ScaleMeasurementRecord(timestamp=f"{day} {time}", **values))

    if dropped:
        logger.debug(f"Slot {slot}: dropped {dropped} incomplete lines")
    logger.info(f"Imported {len(records)} measurements from slot {slot}")
    return records
