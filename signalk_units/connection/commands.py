"""Outbound PUT requests, always expressed in SI units."""

from typing import Optional
from uuid import uuid4

from signalk_units.resolution import ValueResolver


class CommandConversionError(ValueError):
    """A display value could not be converted to SI for a command."""

    def __init__(self, path: str, display_value: float):
        super().__init__(f"Cannot convert {display_value!r} to SI for {path}; command not sent")
        self.path = path
        self.display_value = display_value


def build_put_request(
    resolver: ValueResolver,
    path: str,
    display_value: float,
    request_id: Optional[str] = None,
    context: str = "vessels.self",
) -> dict:
    """Build a SignalK PUT message for a value entered in display units.

    Raises:
        CommandConversionError: If a rule exists for ``path`` but its inverse
            formula cannot be evaluated for ``display_value``.
    """
    si_value = resolver.to_si_for_command(path, display_value)
    if si_value is None:
        raise CommandConversionError(path, display_value)
    return {
        "context": context,
        "requestId": request_id or str(uuid4()),
        "put": {"path": path, "value": si_value},
    }
