"""Read API combining the data point cache with the metadata store."""

import json
import logging
import math
from typing import Optional

from signalk_units.data_interface import (
    DEFAULT_DECIMALS,
    NO_DATA_SENTINEL,
    DataPoint,
    ValueKind,
    format_number,
)
from signalk_units.store import DataPointCache, MetadataStore

logger = logging.getLogger(__name__)


class ValueResolver:
    """Display values, formatted strings and command values for SignalK paths.

    Missing data and missing metadata are normal states here, never errors:
    numeric data without a rule is returned unconverted, and absent data
    comes back as None or the sentinel string.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        cache: DataPointCache,
        default_decimals: int = DEFAULT_DECIMALS,
        sentinel: str = NO_DATA_SENTINEL,
        default_ttl: Optional[float] = None,
    ):
        self.metadata = metadata
        self.cache = cache
        self.default_decimals = default_decimals
        self.sentinel = sentinel
        # None defers to the cache TTL
        self.default_ttl = default_ttl

    def get_data_point(self, path: str, source: Optional[str] = None) -> Optional[DataPoint]:
        return self.cache.get(path, source)

    def get_raw_value(self, path: str, source: Optional[str] = None) -> Optional[float]:
        """The SI value as received, or None if absent or non-numeric."""
        point = self.cache.get(path, source)
        if point is None:
            return None
        return point.numeric

    def convert_value(self, path: str, si_value: float) -> Optional[float]:
        """Convert an SI value for ``path``; unchanged when no rule exists."""
        rule = self.metadata.get(path)
        if rule is None:
            try:
                return float(si_value)
            except (TypeError, ValueError, OverflowError):
                return None
        return rule.try_to_display(si_value)

    def get_display_value(self, path: str, source: Optional[str] = None) -> Optional[float]:
        raw = self.get_raw_value(path, source)
        if raw is None:
            return None
        return self.convert_value(path, raw)

    def format_value(
        self,
        path: str,
        si_value: float,
        decimals: Optional[int] = None,
        include_unit: bool = True,
    ) -> str:
        """Convert and format an SI value for ``path``, e.g. ``"12.6 kn"``."""
        rule = self.metadata.get(path)
        if rule is None:
            try:
                number = float(si_value)
            except (TypeError, ValueError, OverflowError):
                return self.sentinel
            if not math.isfinite(number):
                return self.sentinel
            return format_number(number, self.default_decimals if decimals is None else decimals)
        return rule.format(si_value, decimals, include_unit=include_unit, sentinel=self.sentinel)

    def get_formatted(
        self,
        path: str,
        source: Optional[str] = None,
        decimals: Optional[int] = None,
        include_unit: bool = True,
    ) -> str:
        point = self.cache.get(path, source)
        if point is None or point.kind is ValueKind.NULL:
            return self.sentinel
        if point.kind is ValueKind.NUMBER:
            numeric = point.numeric
            if numeric is None:
                return self.sentinel
            return self.format_value(path, numeric, decimals, include_unit)
        if point.kind is ValueKind.BOOLEAN:
            return "true" if point.value else "false"
        if point.kind is ValueKind.TEXT:
            return point.value
        return json.dumps(point.value, sort_keys=True, default=str)

    def get_unit_symbol(self, path: str) -> Optional[str]:
        rule = self.metadata.get(path)
        return rule.symbol if rule is not None else None

    def to_si_for_command(self, path: str, display_value: float) -> Optional[float]:
        """SI value to send in a PUT for a value the user entered in display units.

        Without a rule the value is assumed to be SI already and is returned
        unchanged. With a rule whose inverse cannot be evaluated, returns None:
        the command must not be sent.
        """
        rule = self.metadata.get(path)
        if rule is None:
            return display_value
        si_value = rule.try_to_si(display_value)
        if si_value is None:
            logger.warning("Inverse conversion unavailable for %s (display value %r)", path, display_value)
        return si_value

    def is_fresh(self, path: str, source: Optional[str] = None, ttl: Optional[float] = None) -> bool:
        return self.cache.is_fresh(path, source, self.default_ttl if ttl is None else ttl)

    def get_bool(self, path: str, source: Optional[str] = None) -> bool:
        point = self.cache.get(path, source)
        return point.as_bool() if point is not None else False
