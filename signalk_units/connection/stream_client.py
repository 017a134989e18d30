"""WebSocket client for the SignalK delta stream."""

import asyncio
import json
import logging
import threading
from concurrent.futures import Future
from typing import Iterable, Optional
from uuid import uuid4

import websockets
from websockets.exceptions import WebSocketException

from signalk_units.config import Settings

from .commands import build_put_request
from .session import SignalKSession

logger = logging.getLogger(__name__)


def stream_url(server_url: str, use_tls: bool = False) -> str:
    """Stream endpoint with no default subscription and meta deltas enabled."""
    protocol = "wss" if use_tls else "ws"
    return f"{protocol}://{server_url}/signalk/v1/stream?subscribe=none&sendMeta=all"


def subscription_message(
    period_ms: int = 1000, paths: Iterable[str] = ("*",), context: str = "vessels.self"
) -> dict:
    return {
        "context": context,
        "subscribe": [
            {"path": path, "period": period_ms, "format": "delta", "policy": "instant"} for path in paths
        ],
    }


def login_message(username: str, password: str, request_id: Optional[str] = None) -> dict:
    return {
        "requestId": request_id or str(uuid4()),
        "login": {"username": username, "password": password},
    }


class SignalKStreamClient(threading.Thread):
    """Threaded client that feeds the SignalK stream into a session.

    Runs its own asyncio loop. Every disconnect ends the session's connection,
    clearing both stores, before the next connection attempt.
    """

    def __init__(self, session: SignalKSession, settings: Optional[Settings] = None, connect=websockets.connect):
        super().__init__(daemon=True)
        self.session = session
        self.settings = settings or session.settings
        self._connect = connect
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._websocket = None
        self.running = True

    @property
    def url(self) -> str:
        return stream_url(self.settings.SERVER_URL, self.settings.USE_TLS)

    def run(self):
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self._task = self.loop.create_task(self._run_async())
        try:
            self.loop.run_until_complete(self._task)
        except asyncio.CancelledError:
            pass
        finally:
            self.session.end_connection()
            self.loop.close()
            logger.info("Stream client stopped")

    async def _run_async(self):
        delay = self.settings.RECONNECT_DELAY_S
        while self.running:
            try:
                async with self._connect(self.url) as websocket:
                    delay = self.settings.RECONNECT_DELAY_S
                    await self._serve(websocket)
            except (OSError, WebSocketException) as e:
                logger.warning("Connection to %s failed: %s", self.url, e)
            except Exception:
                logger.exception("Unexpected error on stream %s", self.url)
            finally:
                self.session.end_connection()

            if not self.running:
                break
            logger.info("Reconnecting to %s in %.1fs", self.url, delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.settings.MAX_RECONNECT_DELAY_S)

    async def _serve(self, websocket):
        self.session.begin_connection(self.settings.SERVER_URL)
        self._websocket = websocket
        logger.info("Connected to SignalK server: %s", self.url)
        try:
            if self.settings.USERNAME and self.settings.PASSWORD:
                await websocket.send(json.dumps(login_message(self.settings.USERNAME, self.settings.PASSWORD)))
            await websocket.send(json.dumps(subscription_message(self.settings.SUBSCRIBE_PERIOD_MS)))
            async for message in websocket:
                self.session.handle_message(message)
        finally:
            self._websocket = None
            logger.info("Disconnected from SignalK server: %s", self.url)

    async def _send(self, payload: str):
        if self._websocket is None:
            raise ConnectionError("Not connected to SignalK server")
        await self._websocket.send(payload)

    def send_put(self, path: str, display_value: float) -> Optional[Future]:
        """Convert ``display_value`` to SI and send it as a PUT on the stream.

        Raises:
            CommandConversionError: If the value cannot be converted to SI.
        """
        request = build_put_request(self.session.resolver, path, display_value)
        if self.loop is None or not self.session.connected:
            logger.warning("Not connected, PUT for %s not sent", path)
            return None
        logger.info("PUT %s = %r (display value %r)", path, request["put"]["value"], display_value)
        return asyncio.run_coroutine_threadsafe(self._send(json.dumps(request)), self.loop)

    def stop(self):
        self.running = False
        if self.loop is not None and self._task is not None and not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self._task.cancel)
        if self.is_alive():
            self.join(timeout=2.0)
