from .base import AdapterRegistry, BaseAdapter, ParseResult, SlotOutcome, SlotStatus
from .tanita import TanitaAdapter, TanitaLayoutError

__all__ = [
    'AdapterRegistry',
    'BaseAdapter',
    'ParseResult',
    'SlotOutcome',
    'SlotStatus',
    'TanitaAdapter',
    'TanitaLayoutError',
]
