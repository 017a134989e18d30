import logging
import os
import threading
import time
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)


@dataclass
class MetricsSample:
    timestamp: float
    memory_mb: float
    rules: int
    data_points: int
    fresh_paths: int


class MetricsMonitor(threading.Thread):
    """Periodically logs process memory and store sizes for a session."""

    def __init__(self, session, memory_threshold_mb: float = 512.0, interval_s: float = 5.0):
        super().__init__(daemon=True)
        self.process = psutil.Process(os.getpid())
        self.session = session
        self.memory_threshold_mb = memory_threshold_mb
        self.interval_s = interval_s
        self._stopped = threading.Event()

    def run(self):
        while not self._stopped.is_set():
            sample = self.sample()

            logger.info(
                "[Metrics] mem=%.1fMB rules=%d points=%d fresh=%d",
                sample.memory_mb,
                sample.rules,
                sample.data_points,
                sample.fresh_paths,
            )

            if sample.memory_mb > self.memory_threshold_mb:
                logger.warning("HIGH MEMORY USAGE: %.1fMB", sample.memory_mb)

            self._stopped.wait(self.interval_s)

    def sample(self) -> MetricsSample:
        cache = self.session.cache
        return MetricsSample(
            timestamp=time.time(),
            memory_mb=self.get_memory_mb(),
            rules=len(self.session.metadata),
            data_points=len(cache),
            fresh_paths=sum(1 for path in cache.paths() if cache.is_fresh(path)),
        )

    def get_memory_mb(self) -> float:
        return self.process.memory_info().rss / (1024 * 1024)

    def stop(self):
        self._stopped.set()
        if self.is_alive():
            self.join(timeout=1.0)
