"""Slack Web API exceptions and error codes."""
from __future__ import annotations
from typing import Optional

# Error codes returned in the "error" field of a Web API response
ERR_CHANNEL_NOT_FOUND = "channel_not_found"
ERR_ALREADY_ARCHIVED = "already_archived"
ERR_NOT_ARCHIVED = "not_archived"
ERR_ALREADY_IN_CHANNEL = "already_in_channel"
ERR_CANT_INVITE_SELF = "cant_invite_self"
ERR_NAME_TAKEN = "name_taken"
ERR_ALREADY_DISABLED = "already_disabled"
ERR_USERS_NOT_FOUND = "users_not_found"
ERR_RATELIMITED = "ratelimited"

# Codes for failures that never produced a Web API payload
ERR_HTTP_ERROR = "http_error"
ERR_REQUEST_FAILED = "request_failed"


class SlackError(Exception):
    """Base exception for all Slack operations.

    Attributes:
        error: Machine-readable error code (e.g. "channel_not_found")
        method: Web API method that failed
        detail: Human-readable context (response body, transport message)
    """

    def __init__(self, error: str, method: str, detail: Optional[str] = None):
        self.error = error
        self.method = method
        self.detail = detail
        message = f"[{method}] {error}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SlackAPIError(SlackError):
    """Error reported by the Slack Web API.

    Attributes:
        status_code: HTTP status code
        retry_after: Seconds to wait before retrying (rate limits only)
    """

    def __init__(
        self,
        error: str,
        method: str,
        status_code: int = 200,
        retry_after: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(error, method, detail)


class SlackTransportError(SlackError):
    """The request never got a usable answer (timeout, connection, TLS)."""

    def __init__(self, method: str, detail: str):
        super().__init__(ERR_REQUEST_FAILED, method, detail)
