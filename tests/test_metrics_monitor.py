"""Tests for MetricsMonitor."""

import logging

from signalk_units.metrics import MetricsMonitor

from conftest import HEADING_PATH, SPEED_PATH, make_delta


def test_sample_counts_session_state(session, clock, speed_descriptor):
    session.handle_message(make_delta(SPEED_PATH, 5.0, meta=[{"path": SPEED_PATH, "value": speed_descriptor}]))
    session.handle_message(make_delta(HEADING_PATH, 1.0, source="compass"))
    session.handle_message(make_delta(SPEED_PATH, 5.1, source="gps2"))
    clock.advance(10)
    session.handle_message(make_delta(HEADING_PATH, 1.1, source="compass"))
    clock.advance(25)

    sample = MetricsMonitor(session).sample()

    assert sample.rules == 1
    assert sample.data_points == 3
    assert sample.fresh_paths == 1
    assert sample.memory_mb > 0


def test_run_logs_high_memory(session, caplog):
    monitor = MetricsMonitor(session, memory_threshold_mb=0.0, interval_s=0.01)
    # stop after the first sample
    monitor._stopped.wait = lambda timeout: monitor._stopped.set()

    with caplog.at_level(logging.INFO, logger="signalk_units.metrics.metrics_monitor"):
        monitor.run()

    assert "[Metrics]" in caplog.text
    assert "HIGH MEMORY USAGE" in caplog.text


def test_stop_ends_thread(session):
    monitor = MetricsMonitor(session, interval_s=0.01)
    monitor.start()
    monitor.stop()

    assert not monitor.is_alive()
