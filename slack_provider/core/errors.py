"""Provider-facing error taxonomy.

Every error surfaced to the host carries a short summary and a detail
message, mirroring the diagnostics a plugin host displays.
"""
from __future__ import annotations
from typing import Any, Optional

from slack_provider.core.slack import SlackError


class ProviderError(Exception):
    """Provider error with a diagnostic summary and detail."""

    summary = "Provider Error"

    def __init__(self, detail: str, summary: Optional[str] = None):
        self.detail = detail
        if summary:
            self.summary = summary
        super().__init__(detail)

    def to_dict(self) -> dict:
        """Convert to a host diagnostic."""
        return {
            "severity": "error",
            "summary": self.summary,
            "detail": self.detail,
        }


class ConfigurationError(ProviderError):
    """Invalid configuration, detected before any remote call."""

    summary = "Invalid Configuration"


class LookupNotFoundError(ProviderError):
    """A lookup matched nothing."""

    summary = "Not Found"


class AmbiguousLookupError(ProviderError):
    """A lookup matched more than one record."""

    summary = "Ambiguous Result"


class ReconcileError(ProviderError):
    """A remote call failed while converging a resource.

    Attributes:
        action: What was being attempted (e.g. "invite user U1 to conversation")
        cause: Underlying Slack error (API or transport), if any
        partial_state: State reached before the failure, when a resource exists
    """

    summary = "Client Error"

    def __init__(
        self,
        action: str,
        cause: Optional[SlackError] = None,
        partial_state: Any = None,
        reason: Optional[str] = None,
    ):
        self.action = action
        self.cause = cause
        self.partial_state = partial_state
        if reason is None and cause is not None:
            reason = f"{cause.error} ({cause.detail})" if cause.detail else cause.error
        if reason is None:
            reason = "unexpected response"
        super().__init__(f"Unable to {action}: {reason}")
