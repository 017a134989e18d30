import json
import logging
from pathlib import Path
from typing import Optional

import jsonschema
from jsonschema.validators import validator_for

logger = logging.getLogger(__name__)

SCHEMA_FILES = {
    "delta": "delta.schema.json",
    "path_value": "path_value.schema.json",
    "meta_entry": "meta_entry.schema.json",
}


class InvalidDeltaError(ValueError):
    """An inbound message does not match its JSON schema."""


def load_schemas() -> Optional[dict]:
    """Tries to load all schemas from the schemas directory."""
    base = Path(__file__).parent / "schemas"
    logger.debug("Loading schemas from %s", base)
    try:
        schemas = {}
        for name, filename in SCHEMA_FILES.items():
            with open(base / filename) as f:
                schemas[name] = json.load(f)
        return schemas
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error loading schemas: %s", e)
        return None


def get_schema(schemas: dict, name: str) -> Optional[dict]:
    """Retrieves a schema by message kind."""
    return schemas.get(name)


def build_validator(schema: dict):
    """Build a reusable validator for the schema's declared draft."""
    cls = validator_for(schema)
    cls.check_schema(schema)
    return cls(schema)


def validate_message(message, validator) -> None:
    """Raises InvalidDeltaError if ``message`` does not satisfy ``validator``."""
    try:
        validator.validate(message)
    except jsonschema.ValidationError as e:
        raise InvalidDeltaError(f"{e.message} at {list(e.path)}") from e
