"""Telemetry sample types."""

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_SOURCE = "default"


class ValueKind(enum.Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXT = "text"
    STRUCTURED = "structured"
    NULL = "null"

    @classmethod
    def of(cls, value: Any) -> "ValueKind":
        if value is None:
            return cls.NULL
        # bool is an int subclass, check it first
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.TEXT
        return cls.STRUCTURED


@dataclass(frozen=True)
class DataPoint:
    """Latest received sample for one (path, source) pair.

    ``timestamp`` is the receipt time in epoch seconds from the cache clock;
    ``source_timestamp`` is the server-reported time, when one was sent.
    """

    path: str
    source: str
    value: Any
    timestamp: float
    source_timestamp: Optional[float] = None
    kind: ValueKind = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "kind", ValueKind.of(self.value))

    @property
    def numeric(self) -> Optional[float]:
        """The value as a float, or None for non-numeric samples."""
        if self.kind is not ValueKind.NUMBER:
            return None
        try:
            return float(self.value)
        except OverflowError:
            # JSON integers are unbounded
            return None

    def as_bool(self) -> bool:
        if self.kind is ValueKind.BOOLEAN:
            return self.value
        if self.kind is ValueKind.NUMBER:
            return self.value != 0
        if self.kind is ValueKind.TEXT:
            return self.value.lower() in ("true", "1")
        return False

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "source": self.source,
            "value": self.value,
            "kind": self.kind.value,
            "timestamp": self.timestamp,
            "source_timestamp": self.source_timestamp,
        }
