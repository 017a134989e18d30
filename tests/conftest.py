"""Pytest configuration and shared fixtures for signalk-units tests."""

import pytest

from signalk_units.config import Settings
from signalk_units.connection import SignalKSession
from signalk_units.store import DataPointCache, MetadataStore

HEADING_PATH = "navigation.headingTrue"
TEMPERATURE_PATH = "environment.outside.temperature"
SPEED_PATH = "navigation.speedOverGround"


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    """Return a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def heading_descriptor():
    """Return a radians -> degrees descriptor in the discovery shape."""
    return {
        "baseUnit": "rad",
        "category": "angle",
        "conversions": {
            "deg": {
                "formula": "value * 57.2957795",
                "inverseFormula": "value / 57.2957795",
                "symbol": "°",
                "description": "degrees",
            }
        },
    }


@pytest.fixture
def temperature_descriptor():
    """Return a Kelvin -> Fahrenheit descriptor in the streamed displayUnits shape."""
    return {
        "units": "degF",
        "category": "temperature",
        "formula": "(value - 273.15) * 9/5 + 32",
        "inverseFormula": "(value - 32) * 5/9 + 273.15",
        "symbol": "°F",
        "displayFormat": "0.00",
    }


@pytest.fixture
def speed_descriptor():
    """Return an m/s -> knots descriptor as a full meta value."""
    return {
        "units": "m/s",
        "description": "Speed over ground",
        "displayUnits": {
            "category": "speed",
            "targetUnit": "kn",
            "formula": "value * 1.94384",
            "inverseFormula": "value / 1.94384",
            "symbol": "kn",
        },
    }


@pytest.fixture
def metadata_store():
    """Return an empty metadata store."""
    return MetadataStore()


@pytest.fixture
def cache(clock):
    """Return an empty data point cache driven by the fake clock."""
    return DataPointCache(clock=clock)


@pytest.fixture
def settings():
    """Return settings with short reconnect delays for testing."""
    return Settings(RECONNECT_DELAY_S=0.01, MAX_RECONNECT_DELAY_S=0.02)


@pytest.fixture
def session(settings, clock):
    """Return a session with an active connection."""
    session = SignalKSession(settings, clock=clock)
    session.begin_connection("test-server")
    yield session
    session.end_connection()


def make_delta(path=None, value=None, source="gps1", timestamp="2024-05-01T12:00:00.000Z", meta=None):
    """Build a SignalK delta message with optional values and meta entries."""
    update = {"$source": source, "timestamp": timestamp}
    if path is not None:
        update["values"] = [{"path": path, "value": value}]
    if meta is not None:
        update["meta"] = meta
    return {"context": "vessels.self", "updates": [update]}
