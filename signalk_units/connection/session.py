"""Per-connection ownership of the metadata store and data point cache."""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Optional, Union

from signalk_units.config import Settings
from signalk_units.config import settings as default_settings
from signalk_units.delta import DeltaDispatcher, DispatchResult
from signalk_units.resolution import ValueResolver
from signalk_units.store import DataPointCache, MetadataStore

logger = logging.getLogger(__name__)


class SignalKSession:
    """One MetadataStore and one DataPointCache for one server connection.

    Consumers receive the session (or its ``resolver``) explicitly. Both
    stores are cleared when a connection begins and when it ends, so rules
    and samples from a previous connection never survive into the next one.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Callable[[], float] = time.time):
        self.settings = settings or default_settings
        self.metadata = MetadataStore()
        self.cache = DataPointCache(default_ttl=self.settings.DEFAULT_TTL_S, clock=clock)
        self.resolver = ValueResolver(
            self.metadata,
            self.cache,
            default_decimals=self.settings.DEFAULT_DECIMALS,
            sentinel=self.settings.NO_DATA_SENTINEL,
        )
        self.dispatcher = DeltaDispatcher(self.metadata, self.cache, clock=clock)
        self.server_id: Optional[str] = None
        self._connected = False
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._connected

    def begin_connection(self, server_id: str) -> None:
        """Start accepting messages from ``server_id`` with empty stores."""
        with self._lock:
            self.reset()
            if self.server_id is not None and self.server_id != server_id:
                logger.info("Server changed from %s to %s", self.server_id, server_id)
            self.server_id = server_id
            self._connected = True

    def end_connection(self) -> None:
        """Stop accepting messages and clear both stores."""
        with self._lock:
            self._connected = False
            self.reset()

    def reset(self) -> None:
        self.metadata.reset()
        self.cache.clear()

    @contextmanager
    def connection(self, server_id: str):
        self.begin_connection(server_id)
        try:
            yield self
        finally:
            self.end_connection()

    def handle_message(self, message: Union[str, bytes, dict]) -> DispatchResult:
        """Dispatch one inbound message; ignored while no connection is active."""
        if not self._connected:
            logger.debug("Ignoring message received outside a connection")
            return DispatchResult()
        return self.dispatcher.handle_message(message)

    def __repr__(self) -> str:
        return f"SignalKSession(server={self.server_id!r}, {self.metadata!r}, {self.cache!r})"
