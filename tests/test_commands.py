"""Tests for outbound PUT request construction."""

import pytest

from signalk_units.connection import CommandConversionError, build_put_request

from conftest import SPEED_PATH, TEMPERATURE_PATH


def test_put_value_is_si(session, temperature_descriptor):
    session.metadata.update(TEMPERATURE_PATH, temperature_descriptor)

    request = build_put_request(session.resolver, TEMPERATURE_PATH, 75.0, request_id="req-1")

    assert request["context"] == "vessels.self"
    assert request["requestId"] == "req-1"
    assert request["put"]["path"] == TEMPERATURE_PATH
    assert request["put"]["value"] == pytest.approx(297.039, abs=1e-3)


def test_put_without_rule_sends_value_unchanged(session):
    request = build_put_request(session.resolver, "steering.autopilot.target.headingTrue", 1.2)
    assert request["put"]["value"] == 1.2
    assert request["requestId"]


def test_request_ids_are_unique(session):
    first = build_put_request(session.resolver, SPEED_PATH, 1.0)
    second = build_put_request(session.resolver, SPEED_PATH, 1.0)
    assert first["requestId"] != second["requestId"]


def test_unconvertible_value_is_not_sent(session):
    session.metadata.update(SPEED_PATH, {"units": "s/m", "formula": "1 / value", "inverseFormula": "1 / value"})

    with pytest.raises(CommandConversionError) as excinfo:
        build_put_request(session.resolver, SPEED_PATH, 0.0)

    assert excinfo.value.path == SPEED_PATH
    assert excinfo.value.display_value == 0.0
