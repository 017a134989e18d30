from .metrics_monitor import MetricsMonitor, MetricsSample

__all__ = ["MetricsMonitor", "MetricsSample"]
