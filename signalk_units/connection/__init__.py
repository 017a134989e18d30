"""Connection lifecycle: session ownership, stream client and commands."""

from .commands import CommandConversionError, build_put_request
from .session import SignalKSession
from .stream_client import SignalKStreamClient, login_message, stream_url, subscription_message

__all__ = [
    "CommandConversionError",
    "SignalKSession",
    "SignalKStreamClient",
    "build_put_request",
    "login_message",
    "stream_url",
    "subscription_message",
]
