from .jsonl import ActionSpan, MetricsClient, metrics
from .logger import configure_metrics_logger

__all__ = ["ActionSpan", "MetricsClient", "configure_metrics_logger", "metrics"]
