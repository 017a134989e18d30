"""Path-keyed registry of conversion rules."""

import logging
import threading
from types import MappingProxyType
from typing import Any, Mapping, Optional

from signalk_units.data_interface import ConversionRule, MalformedMetadataError, parse_descriptor

logger = logging.getLogger(__name__)


class MetadataStore:
    """Thread-safe registry of ConversionRule keyed by SignalK path.

    Copy-on-write: writers build a new mapping under a lock and publish it
    with a single reference assignment. Readers take no lock and always see
    one complete published mapping, so ``reset`` is atomic for them and a
    rejected update leaves every other path untouched.
    """

    def __init__(self) -> None:
        self._rules: Mapping[str, ConversionRule] = MappingProxyType({})
        self._write_lock = threading.Lock()

    def update(self, path: str, descriptor: Any) -> bool:
        """Parse a server descriptor and install the rule for ``path``.

        Malformed descriptors are logged and dropped.

        Returns:
            True if a rule for ``path`` is installed after the call.
        """
        try:
            rule = parse_descriptor(path, descriptor)
        except MalformedMetadataError as e:
            logger.warning("Dropping metadata update: %s", e)
            return False
        self.install(rule)
        return True

    def install(self, rule: ConversionRule) -> None:
        """Install a pre-built rule, replacing any rule for the same path."""
        with self._write_lock:
            if self._rules.get(rule.path) == rule:
                return
            rules = dict(self._rules)
            rules[rule.path] = rule
            self._rules = MappingProxyType(rules)
        logger.debug("Installed conversion for %s: %s -> %s", rule.path, rule.base_unit, rule.target_unit)

    def update_many(self, descriptors: Mapping[str, Any]) -> int:
        """Install a burst of descriptors with a single copy.

        Each path is validated on its own; failures are logged and skipped.

        Returns:
            Number of rules installed.
        """
        if not isinstance(descriptors, Mapping):
            logger.warning("Ignoring metadata batch of type %s", type(descriptors).__name__)
            return 0

        parsed = []
        for path, descriptor in descriptors.items():
            try:
                parsed.append(parse_descriptor(path, descriptor))
            except MalformedMetadataError as e:
                logger.warning("Dropping metadata update: %s", e)

        self._install_many(parsed)
        logger.debug("Installed %d of %d conversions", len(parsed), len(descriptors))
        return len(parsed)

    def _install_many(self, parsed: list[ConversionRule]) -> None:
        if not parsed:
            return
        with self._write_lock:
            rules = dict(self._rules)
            for rule in parsed:
                if rules.get(rule.path) != rule:
                    rules[rule.path] = rule
            self._rules = MappingProxyType(rules)

    def get(self, path: str) -> Optional[ConversionRule]:
        return self._rules.get(path)

    def has(self, path: str) -> bool:
        return path in self._rules

    def get_by_category(self, category: str) -> Optional[ConversionRule]:
        """First rule declared for ``category`` (e.g. ``"speed"``)."""
        for rule in self._rules.values():
            if rule.category == category:
                return rule
        return None

    def paths(self) -> list[str]:
        return list(self._rules)

    def snapshot(self) -> dict[str, ConversionRule]:
        """Point-in-time copy of all rules."""
        return dict(self._rules)

    def reset(self) -> None:
        """Drop every rule, e.g. on disconnect or server change."""
        with self._write_lock:
            self._rules = MappingProxyType({})
        logger.debug("Metadata store reset")

    def to_cache(self) -> dict[str, dict]:
        """Export all rules as descriptors for persisting between runs."""
        return {path: rule.to_dict() for path, rule in self._rules.items()}

    def load_from_cache(self, cached: Mapping[str, Any]) -> int:
        """Restore rules exported by ``to_cache``, keeping their update times.

        Unreadable entries are logged and skipped.

        Returns:
            Number of rules restored.
        """
        if not isinstance(cached, Mapping):
            logger.warning("Ignoring metadata cache of type %s", type(cached).__name__)
            return 0

        restored = []
        for path, data in cached.items():
            if not isinstance(path, str) or not path:
                logger.warning("Dropping cached metadata with invalid path %r", path)
                continue
            try:
                restored.append(ConversionRule.from_dict(path, data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping cached metadata for %s: %r", path, e)

        self._install_many(restored)
        logger.debug("Restored %d of %d cached conversions", len(restored), len(cached))
        return len(restored)

    def __contains__(self, path: str) -> bool:
        return self.has(path)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"MetadataStore({len(self)} paths)"
