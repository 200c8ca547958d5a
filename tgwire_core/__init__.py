"""Core infrastructure — structured logging and environment configuration.

This package is framework-agnostic. It must NEVER import from ``tgwire_sdk/``
or ``tgwire_bot/``.
"""

from tgwire_core.config import Settings, load_settings
from tgwire_core.logger import TgwireLogger

__all__ = [
    "Settings",
    "load_settings",
    "TgwireLogger",
]
