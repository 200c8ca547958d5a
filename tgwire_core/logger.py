"""TgwireLogger — Singleton JSON logger with console and optional rotating file output.

Provides a single, library-wide logger instance that writes structured JSON to
stdout and, when ``TGWIRE_LOG_FILE`` is set, to a rotating log file.
Components log through named children of the ``tgwire`` logger
(``tgwire.core``, ``tgwire.warn``, ``tgwire.error``) so each channel can be
silenced or raised independently.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Standard fields (timestamp, level, logger, message, module, func_name)
    are always present.  Any *extra* key-value pairs passed via the ``extra``
    parameter of a logging call are merged into the JSON object automatically,
    giving callers an easy way to attach call-specific context such as
    ``api_method``, ``error_code`` or ``elapsed_ms``.

    Example::

        logger.debug("Calling", extra={"api_method": "sendMessage"})

    Produces::

        {"timestamp": "…", "level": "DEBUG", …, "api_method": "sendMessage"}
    """

    # Keys that belong to the standard LogRecord — everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    )))

    def format(self, record: logging.LogRecord) -> str:
        """Serialize *record* to a JSON string."""
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

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class TgwireLogger:
    """Singleton logger with a console handler and an optional rotating file.

    Usage::

        from tgwire_core.logger import TgwireLogger

        logger = TgwireLogger.get_logger("core")
        logger.debug("Calling", extra={"api_method": "getMe"})
    """

    _instance: Optional["TgwireLogger"] = None
    _logger: Optional[logging.Logger] = None

    _ROOT_NAME: str = "tgwire"
    _LOG_FILE_ENV: str = "TGWIRE_LOG_FILE"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.WARNING) -> "TgwireLogger":
        """Ensure only one instance is ever created (Singleton)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level)
        return cls._instance

    # ------------------------------------------------------------------
    # Initialisation helpers
    # ------------------------------------------------------------------

    def _init_logger(self, level: int) -> None:
        """Create the underlying :class:`logging.Logger` and attach handlers."""
        self._logger = logging.getLogger(self._ROOT_NAME)
        self._logger.setLevel(level)

        # Avoid duplicate handlers if the module is reloaded.
        if self._logger.handlers:
            return

        formatter = _JsonFormatter()

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        log_path = os.environ.get(self._LOG_FILE_ENV)
        if log_path:
            log_dir = os.path.dirname(log_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=self._MAX_BYTES,
                backupCount=self._BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def get_logger(channel: str | None = None, level: int = logging.WARNING) -> logging.Logger:
        """Return the shared :class:`logging.Logger`, or one of its children.

        Creates the singleton on first call; subsequent calls return the
        same logger regardless of the *level* argument.  *channel* selects a
        child logger such as ``"core"`` (``tgwire.core``).
        """
        instance = TgwireLogger(level)
        assert instance._logger is not None  # guaranteed by __new__
        if channel is None:
            return instance._logger
        return instance._logger.getChild(channel)
