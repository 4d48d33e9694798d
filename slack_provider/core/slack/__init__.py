"""Slack Web API client library.

This package provides a modular, testable interface to the Slack Web API
operations the provider needs.

Architecture:
- client.py: slack_sdk WebClient wrapper with error translation and cursor pagination
- conversations.py: Channel lifecycle and membership
- usergroups.py: Usergroup lifecycle and membership
- users.py: User directory lookups
- exceptions.py: Typed exceptions and Web API error codes

Usage:
    from slack_provider.core.slack import SlackClient, ConversationService

    client = SlackClient("xoxb-...")
    channel = ConversationService(client).info("C0123456")
"""
from .client import (
    SlackClient,
    REQUEST_TIMEOUT,
    DEFAULT_BASE_URL,
)
from .exceptions import (
    SlackError,
    SlackAPIError,
    SlackTransportError,
    ERR_CHANNEL_NOT_FOUND,
    ERR_ALREADY_ARCHIVED,
    ERR_NOT_ARCHIVED,
    ERR_ALREADY_IN_CHANNEL,
    ERR_CANT_INVITE_SELF,
    ERR_NAME_TAKEN,
    ERR_ALREADY_DISABLED,
    ERR_USERS_NOT_FOUND,
    ERR_RATELIMITED,
    ERR_HTTP_ERROR,
    ERR_REQUEST_FAILED,
)
from .conversations import ConversationService
from .usergroups import UsergroupService
from .users import UserService

__all__ = [
    # Client
    "SlackClient",
    "REQUEST_TIMEOUT",
    "DEFAULT_BASE_URL",

    # Exceptions
    "SlackError",
    "SlackAPIError",
    "SlackTransportError",
    "ERR_CHANNEL_NOT_FOUND",
    "ERR_ALREADY_ARCHIVED",
    "ERR_NOT_ARCHIVED",
    "ERR_ALREADY_IN_CHANNEL",
    "ERR_CANT_INVITE_SELF",
    "ERR_NAME_TAKEN",
    "ERR_ALREADY_DISABLED",
    "ERR_USERS_NOT_FOUND",
    "ERR_RATELIMITED",
    "ERR_HTTP_ERROR",
    "ERR_REQUEST_FAILED",

    # Services
    "ConversationService",
    "UsergroupService",
    "UserService",
]
