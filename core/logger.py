"""VKTeamsLogger — Singleton JSON logger with console and rotating file output.

Configures the ``vkteams`` logger.  SDK modules log through its children
(``vkteams.sdk.transport``, ``vkteams.sdk.events``, ...) so their records
end up here as single-line JSON, on stdout and in ``logs/vkteams.log``.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Keys passed through ``extra=`` (``api_endpoint``, ``chat_id``,
    ``event_type``, ``status_code``, ...) are merged into the object::

        logger.error("API error", extra={"api_endpoint": "/messages/sendText", "status_code": 403})

    Produces::

        {"timestamp": "…", "level": "ERROR", …, "api_endpoint": "/messages/sendText", "status_code": 403}
    """

    # Keys that belong to the standard LogRecord; everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    )))

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class VKTeamsLogger:
    """Singleton owner of the ``vkteams`` logger and its two handlers.

    Usage::

        from core.logger import VKTeamsLogger

        logger = VKTeamsLogger.get_logger()
        logger.info("Bot started")
    """

    _instance: Optional["VKTeamsLogger"] = None
    _logger: Optional[logging.Logger] = None

    LOGGER_NAME: str = "vkteams"

    # Rotation settings
    _LOG_DIR: str = "logs"
    _LOG_FILE: str = "vkteams.log"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO) -> "VKTeamsLogger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level)
        return cls._instance

    def _init_logger(self, level: int) -> None:
        self._logger = logging.getLogger(self.LOGGER_NAME)
        self._logger.setLevel(level)

        # Avoid duplicate handlers if the module is reloaded.
        if self._logger.handlers:
            return

        formatter = _JsonFormatter()

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        os.makedirs(self._LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(self._LOG_DIR, self._LOG_FILE),
            maxBytes=self._MAX_BYTES,
            backupCount=self._BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    @staticmethod
    def get_logger(level: int = logging.INFO) -> logging.Logger:
        """Return the shared ``vkteams`` logger, creating it on first call."""
        instance = VKTeamsLogger(level)
        assert instance._logger is not None  # guaranteed by __new__
        return instance._logger

    @staticmethod
    def set_level(level_name: str) -> None:
        """Apply a configured level name (``"debug"``, ``"info"``, ...)."""
        VKTeamsLogger.get_logger().setLevel(LEVELS.get(level_name.lower(), logging.INFO))

    def cleanup(self) -> None:
        """Flush and close all handlers attached to the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
