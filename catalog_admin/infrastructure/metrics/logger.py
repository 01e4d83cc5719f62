from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

METRICS_LOGGER_NAME = "metrics.actions"


class ReopeningRotatingFileHandler(RotatingFileHandler):
    """Reopens the metrics file when it disappears underneath a running process."""

    def emit(self, record):
        if self.stream and not Path(self.baseFilename).exists():
            self.stream.close()
            self.stream = self._open()
        super().emit(record)


def configure_metrics_logger(
    path: str,
    *,
    max_bytes: int = 5_000_000,
    backups: int = 10,
    logger_name: str = METRICS_LOGGER_NAME,
) -> logging.Logger:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    for handler in logger.handlers[:]:
        if getattr(handler, "baseFilename", None) == str(target.resolve()):
            return logger
        logger.removeHandler(handler)
        handler.close()

    handler = ReopeningRotatingFileHandler(
        filename=target,
        maxBytes=max_bytes,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
