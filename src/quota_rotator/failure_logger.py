import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from .utils import mask_secret

FAILURE_LOGGER_NAME = "quota_rotator.failures"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.msg if isinstance(record.msg, dict) else record.getMessage(),
        }
        return json.dumps(log_record)


def setup_failure_logger(log_dir: str = "logs") -> logging.Logger:
    """Sets up a dedicated JSON logger for failed search calls."""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logger = logging.getLogger(FAILURE_LOGGER_NAME)
    logger.setLevel(logging.INFO)

    # Failures are written to their own file only
    logger.propagate = False

    # Use a rotating file handler to keep log files from growing too large
    handler = RotatingFileHandler(
        os.path.join(log_dir, 'failures.log'),
        maxBytes=5*1024*1024,  # 5 MB
        backupCount=2
    )
    handler.setFormatter(JsonFormatter())

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        logger.addHandler(handler)
    else:
        handler.close()

    return logger


def log_failure(
    credential_id: str,
    api_key: str,
    query: str,
    error: BaseException,
    status_code: Optional[int] = None,
) -> None:
    """Logs a structured message for a failed search call."""
    logger = logging.getLogger(FAILURE_LOGGER_NAME)
    # Only the file handler from setup_failure_logger counts as enabled
    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return

    log_data: Dict[str, Any] = {
        "credential_id": credential_id,
        "api_key": mask_secret(api_key),
        "query": query,
        "status_code": status_code,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
    logger.error(log_data)
