"""Structured JSON logging shared by the API and the report CLI."""
import json
import logging
import logging.handlers
from datetime import datetime, timezone
from typing import Optional


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.') + f"{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logger(name: str, level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """Attach JSON handlers (stderr, optional rotating file) to logger *name*.

    Calling it again for the same logger does not add duplicate handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if getattr(logger, '_json_configured', False):
        return logger
    stderr_handler = logging.StreamHandler()
    stderr_handler.setFormatter(JsonFormatter())
    logger.addHandler(stderr_handler)
    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=3
        )
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)
    logger._json_configured = True
    return logger
