import json
import logging
import re
import sys
from datetime import UTC, datetime

from learning_journal.core.config import settings

# Simple regex to find potential email addresses
EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Regex for common API key patterns
API_KEY_REGEX = re.compile(r"\b(sk|pk|rk)-([a-zA-Z0-9_-]{20,})\b")
MASK_STRING = "[REDACTED]"

# Field names in `extra["props"]` to always mask the value of.
# Reflections are personal journal text and never logged verbatim.
SENSITIVE_FIELD_NAMES = {
    "api_key",
    "openai_api_key",
    "secret",
    "token",
    "authorization",
    "reflection",
}


def _mask_text(value: str) -> str:
    masked = EMAIL_REGEX.sub(MASK_STRING, value)
    return API_KEY_REGEX.sub(lambda m: m.group(1) + "-" + MASK_STRING, masked)


def _mask_value(key: str, value):
    if key.lower() in SENSITIVE_FIELD_NAMES:
        return MASK_STRING
    if isinstance(value, str):
        return _mask_text(value)
    if isinstance(value, dict):
        return {k: _mask_value(k, v) for k, v in value.items()}
    return value


class PIIMaskingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Store the masked message separately; the Formatter prefers it.
        record.masked_message = _mask_text(record.getMessage())

        if hasattr(record, "props") and isinstance(record.props, dict):
            record.props = {
                key: _mask_value(key, value) for key, value in record.props.items()
            }
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "message": getattr(record, "masked_message", record.getMessage()),
            "logger_name": record.name,
            "func_name": record.funcName,
            "line_no": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "props") and isinstance(record.props, dict):
            log_entry.update(record.props)
        return json.dumps(log_entry, default=str)


def setup_logging(log_level: str | None = None):
    level_name = (log_level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level_name}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove default handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    console_handler.addFilter(PIIMaskingFilter())
    root_logger.addHandler(console_handler)

    # Suppress verbose logging from libraries
    logging.getLogger("uvicorn.error").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)
