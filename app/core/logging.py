# app/core/logging.py
import logging
import sys

from app.core.config import get_settings


class KeyValueFormatter(logging.Formatter):
    """
    Single-line `key=value` formatter used outside local development,
    so log shippers can split fields without a JSON parser.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"time={self.formatTime(record, self.datefmt)} "
            f"level={record.levelname} "
            f"logger={record.name} "
            f'msg="{record.getMessage()}"'
        )
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def configure_logging() -> None:
    """
    Configure the root logger once at application startup.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if settings.ENVIRONMENT == "local":
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = KeyValueFormatter()
    handler.setFormatter(formatter)

    # Avoid duplicate lines when uvicorn --reload re-imports the app
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
