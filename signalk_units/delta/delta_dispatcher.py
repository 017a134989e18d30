"""Applies inbound SignalK stream messages to the stores."""

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from signalk_units.store import DataPointCache, MetadataStore

from .schema_loader import InvalidDeltaError, build_validator, get_schema, load_schemas, validate_message

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Counts of what one message changed."""

    values: int = 0
    meta_applied: int = 0
    meta_rejected: int = 0
    skipped: int = 0


def parse_timestamp(text: Any) -> Optional[float]:
    """Parse an ISO 8601 SignalK timestamp to epoch seconds."""
    if not isinstance(text, str):
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp()
    except ValueError:
        logger.debug("Unparseable timestamp %r", text)
        return None


def source_label(update: Mapping[str, Any]) -> Optional[str]:
    """Source of an update: ``$source``, else ``source.label``, else ``source`` itself."""
    label = update.get("$source")
    if isinstance(label, str):
        return label
    source = update.get("source")
    if isinstance(source, dict):
        label = source.get("label")
        return label if isinstance(label, str) else None
    if isinstance(source, str):
        return source
    return None


class DeltaDispatcher:
    """Routes meta entries to the MetadataStore and values to the DataPointCache.

    A message that fails envelope validation is dropped as a whole; an item
    inside a valid message that fails its own validation is dropped alone.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        cache: DataPointCache,
        clock: Callable[[], float] = time.time,
    ):
        self.metadata = metadata
        self.cache = cache
        self._clock = clock
        schemas = load_schemas()
        if not schemas:
            raise ValueError("Failed to start dispatcher: Could not load schemas.")
        self._delta_validator = build_validator(get_schema(schemas, "delta"))
        self._value_validator = build_validator(get_schema(schemas, "path_value"))
        self._meta_validator = build_validator(get_schema(schemas, "meta_entry"))

    def handle_message(self, message: Union[str, bytes, dict]) -> DispatchResult:
        result = DispatchResult()
        data = self._decode(message)
        if data is None:
            return result

        if "requestId" in data and "state" in data:
            logger.info("Request %s: %s (%s)", data.get("requestId"), data.get("state"), data.get("statusCode"))
            return result

        if "updates" not in data:
            logger.debug("Ignoring non-delta message with keys %s", sorted(data))
            return result

        try:
            validate_message(data, self._delta_validator)
        except InvalidDeltaError as e:
            logger.warning("Dropping invalid delta: %s", e)
            return result

        received_at = self._clock()
        for update in data["updates"]:
            for entry in update.get("meta", []):
                self._apply_meta(entry, result)

            source = source_label(update)
            source_ts = parse_timestamp(update.get("timestamp"))
            for item in update.get("values", []):
                try:
                    validate_message(item, self._value_validator)
                except InvalidDeltaError as e:
                    logger.warning("Dropping invalid value: %s", e)
                    result.skipped += 1
                    continue
                self.cache.put(item["path"], source, item["value"], received_at, source_ts)
                result.values += 1
        return result

    def _apply_meta(self, entry: dict, result: DispatchResult):
        try:
            validate_message(entry, self._meta_validator)
        except InvalidDeltaError as e:
            logger.warning("Dropping invalid meta entry: %s", e)
            result.meta_rejected += 1
            return

        value = entry["value"]
        if "displayUnits" not in value and "conversions" not in value:
            # meta without a declared conversion, e.g. description or zones only
            return

        if self.metadata.update(entry["path"], value):
            result.meta_applied += 1
        else:
            result.meta_rejected += 1

    def apply_conversions_document(self, document: Mapping[str, Any]) -> int:
        """Ingest a bulk conversions response (path -> descriptor) fetched over REST."""
        installed = self.metadata.update_many(document)
        logger.info("Applied %d conversions from discovery document", installed)
        return installed

    def _decode(self, message: Union[str, bytes, dict]) -> Optional[dict]:
        if isinstance(message, (str, bytes, bytearray)):
            try:
                message = json.loads(message)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning("Dropping undecodable message: %s", e)
                return None
        if not isinstance(message, dict):
            logger.warning("Dropping message of type %s", type(message).__name__)
            return None
        return message
