"""
Base adapter interface for body-composition scale exports.

Each scale vendor implements this interface to turn its proprietary export
folder into per-slot profile + measurement results that the merge service can
reconcile against the patient store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID
import logging

logger = logging.getLogger(__name__)


class AdapterError(Exception):
    """Raised by adapters for export problems they cannot recover from."""


class SlotStatus(str, Enum):
    INCLUDED = 'included'
    SKIPPED = 'skipped'


@dataclass
class SlotOutcome:
    """What happened to one device slot during a scan."""
    slot: int
    status: SlotStatus
    reason: str = ''
    measurements: int = 0


@dataclass
class ParseResult:
    """Result of scanning an entire export."""
    success: bool
    slots: list[Any] = field(default_factory=list)
    outcomes: list[SlotOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    records_parsed: int = 0
    file_path: str = ''
    batch_id: UUID | None = None

    @property
    def profiles_found(self) -> int:
        """Profiles that came with at least one measurement."""
        return len(self.slots)


class BaseAdapter(ABC):
    """
    Abstract base class for all scale export adapters.

    Each adapter is responsible for:
    1. Detecting if it can handle a given directory
    2. Parsing every slot of the export, isolating per-slot failures
    3. Handling vendor-specific quirks (encodings, decimal separators, etc.)

    Usage:
        adapter = TanitaAdapter()
        if adapter.can_handle(path):
            result = adapter.parse(path)
            for slot in result.slots:
                # Show to the operator, then merge
    """

    SOURCE_NAME: str = 'unknown'

    def __init__(self, batch_id: UUID | None = None):
        # Import batch the parsed slots will be committed under
        self.batch_id = batch_id
        self.errors: list[str] = []

    @abstractmethod
    def can_handle(self, path: Path) -> bool:
        """
        Check if this adapter can handle the given directory.

        Args:
            path: Path to the export root selected by the user

        Returns:
            True if this adapter can parse the given path
        """
        pass

    @abstractmethod
    def parse(self, path: Path) -> ParseResult:
        """
        Parse the export and return per-slot results.

        Args:
            path: Path to the export root

        Returns:
            ParseResult with the included slots and every slot outcome
        """
        pass

    def _log_error(self, message: str, exception: Exception | None = None):
        """Log and track an error during parsing."""
        if exception:
            message = f"{message}: {str(exception)}"
        logger.error(f"[{self.SOURCE_NAME} batch={self.batch_id}] {message}")
        self.errors.append(message)

    def _result(self, path: Path, success: bool, **fields) -> ParseResult:
        """Build a ParseResult stamped with this adapter's batch and errors."""
        return ParseResult(
            success=success,
            errors=self.errors,
            file_path=str(path),
            batch_id=self.batch_id,
            **fields
        )

    def _read_text(self, path: Path) -> str:
        """Read a device file; exports are not guaranteed to be UTF-8."""
        raw = path.read_bytes()
        try:
            return raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            logger.debug(f"[{self.SOURCE_NAME}] {path.name} is not UTF-8, decoding as latin-1")
            return raw.decode('latin-1')


class AdapterRegistry:
    """
    Adapters by source name. Detection asks each adapter in turn.
    """

    _adapters: dict[str, type[BaseAdapter]] = {}

    @classmethod
    def register(cls, adapter_class: type[BaseAdapter]):
        """Class decorator; a source name can only be registered once."""
        name = adapter_class.SOURCE_NAME
        registered = cls._adapters.get(name)
        if registered is not None and registered is not adapter_class:
            raise AdapterError(f"Source {name!r} already handled by {registered.__name__}")
        cls._adapters[name] = adapter_class
        return adapter_class

    @classmethod
    def get_adapter_for(cls, path: Path, batch_id: UUID | None = None) -> BaseAdapter | None:
        """
        First adapter that recognises the export root, bound to batch_id.
        None when no registered source matches.
        """
        for adapter_class in cls._adapters.values():
            adapter = adapter_class(batch_id=batch_id)
            if adapter.can_handle(path):
                return adapter
        return None

    @classmethod
    def get_adapter_by_name(cls, name: str, batch_id: UUID | None = None) -> BaseAdapter | None:
        adapter_class = cls._adapters.get(name)
        if adapter_class is None:
            return None
        return adapter_class(batch_id=batch_id)

    @classmethod
    def list_adapters(cls) -> list[str]:
        return list(cls._adapters)
