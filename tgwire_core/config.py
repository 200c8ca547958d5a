"""Environment configuration — ``.env`` loading and typed settings.

Loads ``TGWIRE_BOT_TOKEN``, ``TGWIRE_API_ROOT``, ``TGWIRE_ENVIRONMENT``,
``TGWIRE_TIMEOUT_SECONDS`` and ``TGWIRE_SENSITIVE_LOGS`` from the environment
via ``python-dotenv``.  Unlike an application config module, nothing is
resolved at import time: :func:`load_settings` reads the environment on each
call so tests and long-running processes see fresh values.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import dataclasses
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from tgwire_core.logger import TgwireLogger

logger = TgwireLogger.get_logger("core")

DEFAULT_API_ROOT: str = "https://api.telegram.org"
DEFAULT_ENVIRONMENT: str = "prod"
DEFAULT_TIMEOUT_SECONDS: float = 500.0

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_timeout(raw: str | None) -> float:
    """Parse a positive number of seconds, falling back to the default."""
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric TGWIRE_TIMEOUT_SECONDS", extra={"raw_value": raw})
        return DEFAULT_TIMEOUT_SECONDS
    if value <= 0:
        logger.warning("Ignoring non-positive TGWIRE_TIMEOUT_SECONDS", extra={"raw_value": raw})
        return DEFAULT_TIMEOUT_SECONDS
    return value


def _parse_flag(raw: str | None) -> bool:
    return raw is not None and raw.strip().lower() in _TRUTHY


# ── Public API ───────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class Settings:
    """Connection settings read from the environment."""

    bot_token: str | None
    api_root: str = DEFAULT_API_ROOT
    environment: str = DEFAULT_ENVIRONMENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    sensitive_logs: bool = False


def load_settings(dotenv_path: str | None = None) -> Settings:
    """Read :class:`Settings` from the process environment.

    A ``.env`` file (or *dotenv_path*) is loaded first without overriding
    variables that are already set.
    """
    load_dotenv(dotenv_path)

    environment = os.environ.get("TGWIRE_ENVIRONMENT", DEFAULT_ENVIRONMENT).strip().lower()
    if environment not in ("prod", "test"):
        logger.warning("Unknown TGWIRE_ENVIRONMENT, using prod", extra={"raw_value": environment})
        environment = DEFAULT_ENVIRONMENT

    settings = Settings(
        bot_token=os.environ.get("TGWIRE_BOT_TOKEN") or None,
        api_root=os.environ.get("TGWIRE_API_ROOT") or DEFAULT_API_ROOT,
        environment=environment,
        timeout_seconds=_parse_timeout(os.environ.get("TGWIRE_TIMEOUT_SECONDS")),
        sensitive_logs=_parse_flag(os.environ.get("TGWIRE_SENSITIVE_LOGS")),
    )

    if settings.bot_token:
        logger.debug("Settings loaded — bot token is set", extra={"api_root": settings.api_root})
    else:
        logger.debug("Settings loaded — bot token is NOT set", extra={"api_root": settings.api_root})
    return settings
