"""Slack user directory operations (read-only)."""
from __future__ import annotations
from typing import List

from .client import SlackClient


class UserService:
    """Service for reading the Slack user directory."""

    def __init__(self, client: SlackClient):
        self.client = client

    def list(self) -> List[dict]:
        """Return every user of the workspace (all pages)."""
        return list(self.client.paginate("users.list", "members"))

    def find_by_email(self, email: str) -> dict:
        """Return the user owning ``email``.

        Slack guarantees email uniqueness within a workspace.

        Raises:
            SlackAPIError: "users_not_found" when no user has this email
        """
        payload = self.client.api_call("users.lookupByEmail", email=email)
        return payload["user"]
