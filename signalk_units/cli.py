"""Command line entry point: replay recorded SignalK messages or watch a live server."""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Iterator, Optional

from signalk_units.config import load_settings
from signalk_units.connection import SignalKSession, SignalKStreamClient
from signalk_units.delta import DispatchResult
from signalk_units.metrics import MetricsMonitor

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def read_messages(path: Path) -> Iterator[str]:
    """Yield one message per non-empty line of a JSON-lines recording."""
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if line:
                yield line


def render_table(session: SignalKSession) -> list[str]:
    resolver = session.resolver
    lines = []
    for path in sorted(session.cache.paths()):
        formatted = resolver.get_formatted(path)
        state = "fresh" if resolver.is_fresh(path) else "stale"
        sources = ",".join(session.cache.sources(path))
        lines.append(f"{path:<48} {formatted:>18}  {state:<5}  {sources}")
    return lines


def replay(session: SignalKSession, messages_path: Path, conversions_path: Optional[Path] = None) -> DispatchResult:
    """Feed a recording through the session; the caller owns the connection scope."""
    if conversions_path is not None:
        with open(conversions_path, "r") as f:
            session.dispatcher.apply_conversions_document(json.load(f))

    totals = DispatchResult()
    for message in read_messages(messages_path):
        result = session.handle_message(message)
        totals.values += result.values
        totals.meta_applied += result.meta_applied
        totals.meta_rejected += result.meta_rejected
        totals.skipped += result.skipped
    return totals


def run_live(session: SignalKSession, interval_s: float, with_metrics: bool) -> None:
    stop = threading.Event()

    def _signal_handler(sig, frame):
        print("\nReceived interrupt signal...")
        stop.set()

    signal.signal(signal.SIGINT, _signal_handler)

    client = SignalKStreamClient(session)
    monitor = None
    if with_metrics:
        monitor = MetricsMonitor(
            session,
            memory_threshold_mb=session.settings.MEMORY_THRESHOLD_MB,
            interval_s=session.settings.METRICS_INTERVAL_S,
        )
        monitor.start()
    client.start()
    try:
        while not stop.wait(interval_s):
            print("\n".join(render_table(session)) or "(no data)")
    finally:
        client.stop()
        if monitor:
            monitor.stop()
    print("Stream client stopped.")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="SignalK unit conversion inspector")
    parser.add_argument("--env-file", type=Path, default=None, help="Path to .env file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level",
    )
    parser.add_argument("--replay", type=Path, help="JSON-lines file of recorded stream messages")
    parser.add_argument("--conversions", type=Path, help="JSON conversions document (path -> descriptor)")
    parser.add_argument("--live", action="store_true", help="Connect to the configured server")
    parser.add_argument("--interval", type=float, default=2.0, help="Seconds between live table prints")
    parser.add_argument("--metrics", action="store_true", help="Log process and store metrics while live")
    args = parser.parse_args(argv)

    if not args.replay and not args.live:
        parser.error("one of --replay or --live is required")
    for path in (args.replay, args.conversions):
        if path is not None and not path.exists():
            parser.error(f"file not found: {path}")

    setup_logging(args.log_level)
    settings = load_settings(args.env_file)
    session = SignalKSession(settings)

    if args.replay:
        with session.connection(f"replay:{args.replay}"):
            totals = replay(session, args.replay, args.conversions)
            print("\n".join(render_table(session)) or "(no data)")
            print(
                f"values={totals.values} meta_applied={totals.meta_applied} "
                f"meta_rejected={totals.meta_rejected} skipped={totals.skipped}"
            )
        return 0

    run_live(session, args.interval, args.metrics)
    return 0


if __name__ == "__main__":
    sys.exit(main())
