"""Tests for SignalKSession connection lifecycle."""

import pytest

from signalk_units.config import Settings
from signalk_units.connection import SignalKSession

from conftest import HEADING_PATH, SPEED_PATH, make_delta


def test_disconnect_clears_everything(session, speed_descriptor):
    session.handle_message(make_delta(SPEED_PATH, 5.0, meta=[{"path": SPEED_PATH, "value": speed_descriptor}]))
    assert session.resolver.get_formatted(SPEED_PATH) == "9.7 kn"

    session.end_connection()

    assert session.metadata.get(SPEED_PATH) is None
    assert session.cache.get(SPEED_PATH) is None
    assert session.resolver.get_formatted(SPEED_PATH) == "--"


def test_new_connection_starts_empty(session, heading_descriptor):
    session.handle_message(make_delta(HEADING_PATH, 1.0, meta=[{"path": HEADING_PATH, "value": heading_descriptor}]))

    session.begin_connection("other-server")

    assert session.server_id == "other-server"
    assert len(session.metadata) == 0
    assert len(session.cache) == 0


def test_messages_ignored_without_connection(settings, clock):
    session = SignalKSession(settings, clock=clock)

    result = session.handle_message(make_delta(SPEED_PATH, 5.0))

    assert not session.connected
    assert result.values == 0
    assert session.cache.get(SPEED_PATH) is None


def test_connection_context(settings, clock):
    session = SignalKSession(settings, clock=clock)

    with session.connection("boat.local:3000") as active:
        assert active is session
        assert session.connected
        session.handle_message(make_delta(SPEED_PATH, 5.0))
        assert session.cache.get(SPEED_PATH).value == 5.0

    assert not session.connected
    assert len(session.cache) == 0


def test_connection_context_clears_on_error(settings, clock):
    session = SignalKSession(settings, clock=clock)

    with pytest.raises(RuntimeError):
        with session.connection("boat.local:3000"):
            session.handle_message(make_delta(SPEED_PATH, 5.0))
            raise RuntimeError("stream failed")

    assert not session.connected
    assert len(session.cache) == 0


def test_settings_flow_into_stores(clock):
    session = SignalKSession(Settings(DEFAULT_TTL_S=5.0, NO_DATA_SENTINEL="n/a", DEFAULT_DECIMALS=3), clock=clock)

    assert session.cache.default_ttl == 5.0
    assert session.resolver.get_formatted(SPEED_PATH) == "n/a"
    with session.connection("boat"):
        session.handle_message(make_delta(SPEED_PATH, 5.0))
        assert session.resolver.get_formatted(SPEED_PATH) == "5.000"
        clock.advance(6)
        assert not session.resolver.is_fresh(SPEED_PATH)
