"""Slack usergroup operations.

The Web API has no fetch-by-ID endpoint for usergroups: lookups enumerate
``usergroups.list`` and match locally.
"""
from __future__ import annotations
from typing import Iterable, List, Optional

from .client import SlackClient


class UsergroupService:
    """Service for managing Slack usergroups."""

    def __init__(self, client: SlackClient):
        """Initialize usergroup service.

        Args:
            client: Authenticated Slack client
        """
        self.client = client

    def create(
        self,
        name: str,
        handle: Optional[str] = None,
        description: Optional[str] = None,
        channels: Optional[Iterable[str]] = None,
    ) -> dict:
        """Create a usergroup and return its representation.

        Args:
            name: Unique usergroup name
            handle: Mention handle (generated by Slack when omitted)
            description: Short description
            channels: Default channel IDs

        Returns:
            Usergroup representation
        """
        payload = self.client.api_call(
            "usergroups.create",
            name=name,
            handle=handle or None,
            description=description or None,
            channels=sorted(channels) if channels else None,
        )
        return payload["usergroup"]

    def list(self, include_users: bool = True, include_disabled: bool = False) -> List[dict]:
        """Return every usergroup of the workspace."""
        payload = self.client.api_call(
            "usergroups.list",
            include_users=include_users,
            include_disabled=include_disabled,
        )
        return payload.get("usergroups") or []

    def get(self, usergroup_id: str) -> Optional[dict]:
        """Return the usergroup with the given ID, or None if not listed."""
        for group in self.list(include_users=True):
            if group.get("id") == usergroup_id:
                return group
        return None

    def update(
        self,
        usergroup_id: str,
        name: Optional[str] = None,
        handle: Optional[str] = None,
        description: Optional[str] = None,
        channels: Optional[Iterable[str]] = None,
    ) -> dict:
        """Update usergroup attributes; arguments left as None are not sent."""
        payload = self.client.api_call(
            "usergroups.update",
            usergroup=usergroup_id,
            name=name,
            handle=handle,
            description=description,
            channels=sorted(channels) if channels is not None else None,
        )
        return payload["usergroup"]

    def replace_members(self, usergroup_id: str, user_ids: Iterable[str]) -> None:
        """Replace the full member list of a usergroup in one call."""
        self.client.api_call("usergroups.users.update", usergroup=usergroup_id, users=sorted(user_ids))

    def disable(self, usergroup_id: str) -> None:
        """Disable a usergroup (the Web API has no hard delete)."""
        self.client.api_call("usergroups.disable", usergroup=usergroup_id)
