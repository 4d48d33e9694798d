"""Read-only lookups (data sources).

Each lookup translates a human identifier (name, email) or an opaque ID into
a record. Argument combinations are validated before any remote call.
"""
from __future__ import annotations
import logging
from typing import Optional

from slack_provider.core.errors import (
    AmbiguousLookupError,
    LookupNotFoundError,
    ReconcileError,
)
from slack_provider.core.models import ConversationInfo, UserRecord, UsergroupRecord
from slack_provider.core.slack import (
    SlackClient,
    SlackError,
    ConversationService,
    UsergroupService,
    UserService,
    ERR_CHANNEL_NOT_FOUND,
    ERR_USERS_NOT_FOUND,
)
from slack_provider.core.validators import require_exactly_one

logger = logging.getLogger(__name__)


class ConversationLookup:
    """``slack_conversation`` data source: channel details by ID."""

    type_name = "slack_conversation"

    def __init__(self, client: SlackClient):
        self.conversations = ConversationService(client)

    def read(self, channel_id: str) -> ConversationInfo:
        """Return the channel with the given ID.

        Raises:
            LookupNotFoundError: If the channel does not exist
            ReconcileError: On any other remote failure
        """
        try:
            channel = self.conversations.info(channel_id)
        except SlackError as exc:
            if exc.error == ERR_CHANNEL_NOT_FOUND:
                raise LookupNotFoundError(f"could not find conversation with ID: {channel_id}") from exc
            raise ReconcileError("read conversation", exc) from exc
        return ConversationInfo.from_api(channel)


class UserLookup:
    """``slack_user`` data source: user by exact name or by email."""

    type_name = "slack_user"

    def __init__(self, client: SlackClient):
        self.users = UserService(client)

    def read(self, name: Optional[str] = None, email: Optional[str] = None) -> UserRecord:
        """Resolve a user from exactly one of ``name`` or ``email``.

        Raises:
            ConfigurationError: If neither or both keys are given
            LookupNotFoundError: If no user matches
            AmbiguousLookupError: If several users share the name
        """
        key = require_exactly_one(name=name, email=email)
        if key == "name":
            return self.find_by_exact_name(name)
        return self.find_by_email(email)

    def find_by_exact_name(self, name: str) -> UserRecord:
        """Return the only user whose name equals ``name``.

        Several users can share a name; this never picks one of them.
        """
        try:
            users = self.users.list()
        except SlackError as exc:
            raise ReconcileError("get workspace users", exc) from exc

        matches = [user for user in users if user.get("name") == name]
        logger.debug(f"[lookup] {len(matches)} of {len(users)} users named {name}")
        if not matches:
            raise LookupNotFoundError(f"no results found for name {name}")
        if len(matches) > 1:
            raise AmbiguousLookupError(f"multiple results found for name {name}")
        return UserRecord.from_api(matches[0])

    def find_by_email(self, email: str) -> UserRecord:
        try:
            user = self.users.find_by_email(email)
        except SlackError as exc:
            if exc.error == ERR_USERS_NOT_FOUND:
                raise LookupNotFoundError(f"no results found for email {email}") from exc
            raise ReconcileError("find user by email", exc) from exc
        return UserRecord.from_api(user)


class UsergroupLookup:
    """``slack_usergroup`` data source: usergroup by ID or by name."""

    type_name = "slack_usergroup"

    def __init__(self, client: SlackClient):
        self.usergroups = UsergroupService(client)

    def read(self, usergroup_id: Optional[str] = None, name: Optional[str] = None) -> UsergroupRecord:
        """Resolve a usergroup from exactly one of ``usergroup_id`` or ``name``.

        Raises:
            ConfigurationError: If neither or both keys are given
            LookupNotFoundError: If no enabled usergroup matches
        """
        key = require_exactly_one(id=usergroup_id, name=name)

        try:
            groups = self.usergroups.list(include_users=True)
        except SlackError as exc:
            raise ReconcileError("read usergroups", exc) from exc

        field, value = ("id", usergroup_id) if key == "id" else ("name", name)
        for group in groups:
            if group.get(field) == value:
                return UsergroupRecord.from_api(group)

        label = "ID" if key == "id" else "name"
        raise LookupNotFoundError(f"could not find usergroup with {label}: {value}")
