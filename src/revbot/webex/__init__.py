"""Webex messages API client for notification delivery."""

from revbot.webex.client import (
    DEFAULT_MESSAGES_URL,
    WebexAPIError,
    WebexClient,
    WebexMessage,
)

__all__ = [
    "DEFAULT_MESSAGES_URL",
    "WebexAPIError",
    "WebexClient",
    "WebexMessage",
]
