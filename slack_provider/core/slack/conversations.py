"""Slack conversation (channel) operations."""
from __future__ import annotations
from typing import Optional, Set

from .client import SlackClient


class ConversationService:
    """Service for managing Slack conversations."""

    def __init__(self, client: SlackClient):
        """Initialize conversation service.

        Args:
            client: Authenticated Slack client
        """
        self.client = client

    def create(self, name: str, is_private: bool) -> dict:
        """Create a channel and return its representation."""
        payload = self.client.api_call("conversations.create", name=name, is_private=is_private)
        return payload["channel"]

    def info(self, channel_id: str) -> dict:
        """Return the channel representation.

        Raises:
            SlackAPIError: "channel_not_found" when the channel does not exist
        """
        payload = self.client.api_call("conversations.info", channel=channel_id)
        return payload["channel"]

    def set_topic(self, channel_id: str, topic: str) -> None:
        self.client.api_call("conversations.setTopic", channel=channel_id, topic=topic)

    def set_purpose(self, channel_id: str, purpose: str) -> None:
        self.client.api_call("conversations.setPurpose", channel=channel_id, purpose=purpose)

    def rename(self, channel_id: str, name: str) -> None:
        self.client.api_call("conversations.rename", channel=channel_id, name=name)

    def archive(self, channel_id: str) -> None:
        self.client.api_call("conversations.archive", channel=channel_id)

    def unarchive(self, channel_id: str) -> None:
        self.client.api_call("conversations.unarchive", channel=channel_id)

    def invite(self, channel_id: str, user_id: str) -> None:
        """Invite a single user to the channel."""
        self.client.api_call("conversations.invite", channel=channel_id, users=user_id)

    def kick(self, channel_id: str, user_id: str) -> None:
        """Remove a single user from the channel."""
        self.client.api_call("conversations.kick", channel=channel_id, user=user_id)

    def members(self, channel_id: str) -> Set[str]:
        """Return the IDs of every current channel member (all pages)."""
        return set(self.client.paginate("conversations.members", "members", channel=channel_id))

    def find_by_name(self, name: str) -> Optional[dict]:
        """Return the channel named exactly ``name``, archived ones included.

        Args:
            name: Channel name without the leading '#'

        Returns:
            Channel representation or None if not found
        """
        channels = self.client.paginate(
            "conversations.list",
            "channels",
            types="public_channel,private_channel",
            exclude_archived=False,
        )
        for channel in channels:
            if channel.get("name") == name:
                return channel
        return None
