"""Tests for inbound message dispatch."""

import json
import logging
from datetime import datetime, timezone

import pytest

from signalk_units.delta import DeltaDispatcher, parse_timestamp, source_label

from conftest import HEADING_PATH, SPEED_PATH, TEMPERATURE_PATH, make_delta


@pytest.fixture
def dispatcher(metadata_store, cache, clock):
    return DeltaDispatcher(metadata_store, cache, clock=clock)


def test_values_are_cached(dispatcher, cache, clock):
    result = dispatcher.handle_message(make_delta(SPEED_PATH, 5.0))

    assert result.values == 1
    point = cache.get(SPEED_PATH, "gps1")
    assert point.value == 5.0
    assert point.timestamp == clock.now
    assert point.source_timestamp == datetime(2024, 5, 1, 12, tzinfo=timezone.utc).timestamp()


def test_meta_applied_before_values(dispatcher, metadata_store, speed_descriptor):
    message = make_delta(SPEED_PATH, 5.0, meta=[{"path": SPEED_PATH, "value": speed_descriptor}])

    result = dispatcher.handle_message(message)

    assert result.meta_applied == 1
    assert result.values == 1
    assert metadata_store.get(SPEED_PATH).symbol == "kn"


def test_meta_in_discovery_shape(dispatcher, metadata_store, heading_descriptor):
    dispatcher.handle_message(make_delta(meta=[{"path": HEADING_PATH, "value": heading_descriptor}]))
    assert metadata_store.get(HEADING_PATH).target_unit == "deg"


def test_meta_without_conversion_is_ignored(dispatcher, metadata_store):
    message = make_delta(meta=[{"path": SPEED_PATH, "value": {"units": "m/s", "description": "Speed"}}])

    result = dispatcher.handle_message(message)

    assert result.meta_applied == 0
    assert result.meta_rejected == 0
    assert len(metadata_store) == 0


def test_malformed_meta_rejected_alone(dispatcher, metadata_store, temperature_descriptor):
    message = make_delta(
        meta=[
            {"path": SPEED_PATH, "value": {"units": "m/s", "displayUnits": {"formula": "value *"}}},
            {"path": TEMPERATURE_PATH, "value": {"units": "K", "displayUnits": temperature_descriptor}},
            {"path": "", "value": {"displayUnits": temperature_descriptor}},
        ]
    )

    result = dispatcher.handle_message(message)

    assert result.meta_applied == 1
    assert result.meta_rejected == 2
    assert metadata_store.paths() == [TEMPERATURE_PATH]
    assert metadata_store.get(TEMPERATURE_PATH).base_unit == "K"


def test_invalid_value_item_skipped(dispatcher, cache):
    message = make_delta(SPEED_PATH, 5.0)
    message["updates"][0]["values"].append({"path": 42, "value": 1})
    message["updates"][0]["values"].append({"value": 1})

    result = dispatcher.handle_message(message)

    assert result.values == 1
    assert result.skipped == 2
    assert cache.paths() == [SPEED_PATH]


@pytest.mark.parametrize(
    "message",
    [
        {"updates": "not a list"},
        {"updates": [{"values": "not a list"}]},
        {"updates": [{"$source": 5, "values": []}]},
    ],
)
def test_invalid_envelope_dropped(dispatcher, cache, caplog, message):
    with caplog.at_level(logging.WARNING, logger="signalk_units.delta.delta_dispatcher"):
        result = dispatcher.handle_message(message)

    assert result.values == 0
    assert len(cache) == 0
    assert "Dropping invalid delta" in caplog.text


@pytest.mark.parametrize("message", ["{not json", b"\xff\xfe", "[1, 2]", 42])
def test_undecodable_message_dropped(dispatcher, message):
    assert dispatcher.handle_message(message).values == 0


def test_accepts_json_text_and_bytes(dispatcher, cache):
    dispatcher.handle_message(json.dumps(make_delta(SPEED_PATH, 5.0)))
    dispatcher.handle_message(json.dumps(make_delta(HEADING_PATH, 1.0)).encode("utf-8"))

    assert sorted(cache.paths()) == [HEADING_PATH, SPEED_PATH]


def test_hello_message_ignored(dispatcher, cache):
    hello = {"name": "signalk-server", "version": "2.8.0", "self": "vessels.urn:mrn:imo:mmsi:123", "roles": ["main"]}
    assert dispatcher.handle_message(hello).values == 0
    assert len(cache) == 0


def test_request_response_logged(dispatcher, caplog):
    response = {"requestId": "abc", "state": "COMPLETED", "statusCode": 200, "login": {"token": "t"}}

    with caplog.at_level(logging.INFO, logger="signalk_units.delta.delta_dispatcher"):
        result = dispatcher.handle_message(response)

    assert result.values == 0
    assert "abc" in caplog.text


def test_source_label_fallback(dispatcher, cache):
    message = {
        "updates": [
            {"source": {"label": "n2k-on-ve.can-socket", "type": "NMEA2000"}, "values": [{"path": SPEED_PATH, "value": 1}]},
            {"values": [{"path": HEADING_PATH, "value": 2}]},
        ]
    }

    dispatcher.handle_message(message)

    assert cache.sources(SPEED_PATH) == ["n2k-on-ve.can-socket"]
    assert cache.sources(HEADING_PATH) == ["default"]


@pytest.mark.parametrize(
    "update, expected",
    [
        ({"$source": "gps1", "source": {"label": "other"}}, "gps1"),
        ({"source": {"label": "nmea0183"}}, "nmea0183"),
        ({"source": "plain"}, "plain"),
        ({"source": {"type": "NMEA2000"}}, None),
        ({}, None),
    ],
)
def test_source_label(update, expected):
    assert source_label(update) == expected


def test_parse_timestamp():
    assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=timezone.utc).timestamp()
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_multiple_updates_in_one_message(dispatcher, cache):
    message = make_delta(SPEED_PATH, 5.0, source="gps1")
    message["updates"].append({"$source": "gps2", "values": [{"path": SPEED_PATH, "value": 6.0}]})

    assert dispatcher.handle_message(message).values == 2
    assert cache.get(SPEED_PATH).source == "gps2"
    assert cache.get(SPEED_PATH, "gps2").source_timestamp is None


def test_apply_conversions_document(dispatcher, metadata_store, heading_descriptor, speed_descriptor):
    installed = dispatcher.apply_conversions_document(
        {HEADING_PATH: heading_descriptor, SPEED_PATH: speed_descriptor, TEMPERATURE_PATH: {"units": "degF"}}
    )

    assert installed == 2
    assert sorted(metadata_store.paths()) == [HEADING_PATH, SPEED_PATH]
