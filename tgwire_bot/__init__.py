"""Webhook integration — request shims and the webhook callback adapter.

This package may import from ``tgwire_core/`` and ``tgwire_sdk/`` only.
"""

from tgwire_bot.frameworks import FRAMEWORK_ADAPTERS, SECRET_HEADER, RequestHandle
from tgwire_bot.webhook import UpdateDispatcher, WebhookHandler, webhook_callback

__all__ = [
    "FRAMEWORK_ADAPTERS",
    "SECRET_HEADER",
    "RequestHandle",
    "UpdateDispatcher",
    "WebhookHandler",
    "webhook_callback",
]
