"""Thin wrapper around ``slack_sdk.WebClient``.

The SDK owns transport, parameter encoding and cursor pagination. This
module binds one WebClient to the provider settings and translates every
SDK failure into a ``SlackError`` carrying the Web API method name.
"""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web import SlackResponse

from .exceptions import (
    SlackAPIError,
    SlackTransportError,
    ERR_HTTP_ERROR,
    ERR_RATELIMITED,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
DEFAULT_BASE_URL = "https://slack.com/api/"
PAGE_SIZE = 200


class SlackClient:
    """Slack Web API client bound to a single token.

    Methods are addressed by their Web API name ("conversations.create") and
    dispatched to the matching typed WebClient method (``conversations_create``).
    The SDK's retry handlers are disabled: a rate limit surfaces as a
    ``ratelimited`` error with the server's Retry-After value.

    Usage:
        client = SlackClient("xoxb-...")
        payload = client.api_call("conversations.info", channel="C123")
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT,
        web_client: Optional[WebClient] = None,
    ):
        """Initialize Slack client.

        Args:
            token: Slack bearer token
            base_url: Web API base URL (defaults to https://slack.com/api/)
            timeout: Per-request timeout in seconds
            web_client: Prebuilt WebClient (tests inject a mock here)
        """
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/") + "/"
        self.timeout = timeout
        self.web = web_client or WebClient(
            token=token,
            base_url=self.base_url,
            timeout=timeout,
            retry_handlers=[],
        )

    def api_call(self, method: str, **params: Any) -> SlackResponse:
        """Invoke a Web API method and return the SDK response.

        Args:
            method: Web API method name (e.g. "conversations.create")
            **params: Method arguments; None values are dropped

        Raises:
            SlackAPIError: If Slack answered with an error
            SlackTransportError: If no usable answer was received
        """
        func = getattr(self.web, method.replace(".", "_"))
        params = {key: value for key, value in params.items() if value is not None}
        with _translate_errors(method):
            return func(**params)

    def paginate(self, method: str, key: str, **params: Any) -> Iterator[Any]:
        """Yield every item of ``key`` across all cursor pages.

        Args:
            method: Web API method supporting cursor pagination
            key: Response field holding the page items (e.g. "members")
            **params: Method arguments
        """
        params.setdefault("limit", PAGE_SIZE)
        pages = iter(self.api_call(method, **params))
        while True:
            # The SDK fetches the next page lazily, inside next()
            with _translate_errors(method):
                page = next(pages, None)
            if page is None:
                return
            yield from page.get(key) or []


@contextmanager
def _translate_errors(method: str):
    """Re-raise SDK and transport failures as SlackError subclasses."""
    try:
        yield
    except SlackApiError as exc:
        raise _api_error(method, exc) from exc
    except (SlackClientError, OSError, ValueError) as exc:
        # OSError covers urllib URLError, timeouts and TLS failures;
        # ValueError covers an undecodable response body
        logger.warning(f"[slack] {method} failed before a response was received: {exc}")
        raise SlackTransportError(method, str(exc) or type(exc).__name__) from exc


def _api_error(method: str, exc: SlackApiError) -> SlackAPIError:
    """Build a SlackAPIError from the response attached to an SDK error."""
    response = exc.response
    if isinstance(response, SlackResponse):
        status_code = response.status_code
        headers = response.headers or {}
    else:
        response = response or {}
        status_code = response.get("status", 200)
        headers = response.get("headers") or {}

    error = response.get("error")
    detail = None
    if status_code == 429:
        error = error or ERR_RATELIMITED
    elif not error:
        # Non-JSON or empty body: keep the code stable, the text goes to detail
        error = ERR_HTTP_ERROR
        detail = str(exc)

    retry_after = headers.get("Retry-After") or headers.get("retry-after")
    if isinstance(retry_after, list):
        retry_after = retry_after[0] if retry_after else None
    return SlackAPIError(
        error,
        method,
        status_code=status_code,
        retry_after=int(retry_after) if str(retry_after or "").isdigit() else None,
        detail=detail,
    )
