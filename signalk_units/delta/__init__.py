"""Inbound SignalK message handling."""

from .delta_dispatcher import DeltaDispatcher, DispatchResult, parse_timestamp, source_label
from .schema_loader import InvalidDeltaError, load_schemas

__all__ = [
    "DeltaDispatcher",
    "DispatchResult",
    "InvalidDeltaError",
    "load_schemas",
    "parse_timestamp",
    "source_label",
]
