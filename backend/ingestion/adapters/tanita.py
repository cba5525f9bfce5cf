"""
Tanita scale export adapter (BC-601 and other GRAPHV1 scales)

The scale writes its SD card as:
- [TANITA/]GRAPHV1/SYSTEM/PROF{1..4}.CSV - one profile line per slot
- [TANITA/]GRAPHV1/DATA/DATA{1..4}.CSV   - one line per weigh-in

Users may select either the card root or the TANITA folder, so both layouts
are accepted. Scales rarely populate all four slots: a slot with missing or
empty files is skipped and the scan carries on.
"""

from pathlib import Path
import logging

from django.conf import settings

from .base import (
    AdapterError,
    AdapterRegistry,
    BaseAdapter,
    ParseResult,
    SlotOutcome,
    SlotStatus,
)
from .tanita_records import SlotImportResult, parse_measurements, parse_profile

logger = logging.getLogger(__name__)

TANITA_DIR = 'TANITA'
GRAPH_DIR = 'GRAPHV1'
SYSTEM_DIR = 'SYSTEM'
DATA_DIR = 'DATA'


class TanitaLayoutError(AdapterError, ValueError):
    """The selected folder does not contain a GRAPHV1 export."""


class SlotFilesMissing(AdapterError):
    """A slot's PROF or DATA file (or its folder) is not on the card."""


def _find_child(directory: Path, name: str) -> Path | None:
    """
    Look up a child entry by name, ignoring case.
    SD cards mounted on case-sensitive systems may show lower-case names.
    """
    exact = directory / name
    if exact.exists():
        return exact
    if not directory.is_dir():
        return None
    for child in directory.iterdir():
        if child.name.upper() == name.upper():
            return child
    return None


def locate_graph_root(root: Path) -> Path:
    """
    Find GRAPHV1 directly under root or under root/TANITA.

    Raises:
        TanitaLayoutError: neither layout is present
    """
    graph = _find_child(root, GRAPH_DIR)
    if graph is not None and graph.is_dir():
        return graph

    tanita = _find_child(root, TANITA_DIR)
    if tanita is not None and tanita.is_dir():
        graph = _find_child(tanita, GRAPH_DIR)
        if graph is not None and graph.is_dir():
            return graph

    raise TanitaLayoutError(
        f"{root} does not look like a Tanita export "
        f"(expected {GRAPH_DIR}/ or {TANITA_DIR}/{GRAPH_DIR}/)"
    )


def resolve_slot_files(graph_root: Path, slot: int) -> tuple[Path, Path]:
    """
    Return the (profile, measurements) file pair of a slot.

    Raises:
        SlotFilesMissing: either file or its SYSTEM/DATA folder is missing
    """
    wanted = [
        (SYSTEM_DIR, f"PROF{slot}.CSV"),
        (DATA_DIR, f"DATA{slot}.CSV"),
    ]
    found: list[Path] = []

    for folder_name, file_name in wanted:
        folder = _find_child(graph_root, folder_name)
        if folder is None or not folder.is_dir():
            raise SlotFilesMissing(f"slot {slot}: {folder_name}/ folder not found")
        file = _find_child(folder, file_name)
        if file is None or not file.is_file():
            raise SlotFilesMissing(f"slot {slot}: {folder_name}/{file_name} not found")
        found.append(file)

    return found[0], found[1]


@AdapterRegistry.register
class TanitaAdapter(BaseAdapter):
    """
    Parser for Tanita GRAPHV1 exports.

    Slots are processed one after another; a failure in one slot never
    affects the others. No database access happens here.
    """

    SOURCE_NAME = 'tanita'

    def __init__(self, batch_id=None, slot_count: int | None = None):
        super().__init__(batch_id=batch_id)
        self.slot_count = slot_count or getattr(settings, 'TANITA_SLOT_COUNT', 4)

    def can_handle(self, path: Path) -> bool:
        if not path.is_dir():
            return False
        try:
            locate_graph_root(path)
        except TanitaLayoutError:
            return False
        return True

    def parse(self, path: Path) -> ParseResult:
        """Scan every slot of an export folder."""
        self.errors = []

        try:
            graph_root = locate_graph_root(path)
        except TanitaLayoutError as e:
            self._log_error("Invalid export folder", e)
            return self._result(path, success=False)

        slots: list[SlotImportResult] = []
        outcomes: list[SlotOutcome] = []

        for slot in range(1, self.slot_count + 1):
            result, outcome = self._parse_slot(graph_root, slot)
            outcomes.append(outcome)
            if result is not None:
                slots.append(result)

        records_parsed = sum(len(s.measurements) for s in slots)
        logger.info(
            f"Tanita scan of {path}: {len(slots)} profiles with measurements, "
            f"{records_parsed} measurements, "
            f"{len(outcomes) - len(slots)} slots skipped"
        )

        return self._result(
            path,
            success=True,
            slots=slots,
            outcomes=outcomes,
            records_parsed=records_parsed,
        )

    def _parse_slot(
        self,
        graph_root: Path,
        slot: int
    ) -> tuple[SlotImportResult | None, SlotOutcome]:
        """Parse one slot; returns (None, skipped outcome) on any failure."""
        try:
            profile_path, data_path = resolve_slot_files(graph_root, slot)
        except SlotFilesMissing as e:
            logger.info(f"Slot {slot}: skipped, {e}")
            return None, SlotOutcome(slot, SlotStatus.SKIPPED, str(e))

        try:
            profile = parse_profile(self._read_text(profile_path), slot)
        except OSError as e:
            self._log_error(f"Slot {slot}: could not read {profile_path.name}", e)
            return None, SlotOutcome(slot, SlotStatus.SKIPPED, f"unreadable {profile_path.name}")

        if profile is None:
            logger.info(f"Slot {slot}: profile missing or invalid")
            return None, SlotOutcome(slot, SlotStatus.SKIPPED, 'profile missing or invalid')

        try:
            measurements = parse_measurements(self._read_text(data_path), slot)
        except OSError as e:
            self._log_error(f"Slot {slot}: could not read {data_path.name}", e)
            return None, SlotOutcome(slot, SlotStatus.SKIPPED, f"unreadable {data_path.name}")

        if not measurements:
            logger.info(f"Slot {slot}: no measurements found")
            return None, SlotOutcome(slot, SlotStatus.SKIPPED, 'no measurements')

        result = SlotImportResult(
            slot=profile.slot,
            profile_code=profile.profile_code or '',
            profile=profile,
            measurements=measurements,
        )
        return result, SlotOutcome(slot, SlotStatus.INCLUDED, measurements=len(measurements))
