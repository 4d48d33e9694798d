"""State records for resources and lookups.

Membership collections are ``frozenset`` when managed and ``None`` when
unset: an unset collection is not reconciled at all, which is not the same
as reconciling towards an empty set.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, Iterable, Optional

ACTION_ON_DESTROY_ARCHIVE = "archive"
ACTION_ON_DESTROY_NONE = "none"
ACTION_ON_UPDATE_KICK = "kick"
ACTION_ON_UPDATE_NONE = "none"


def member_set(values: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    """Normalize a membership collection, keeping None as "unset"."""
    if values is None:
        return None
    return frozenset(values)


@dataclass(frozen=True)
class ConversationState:
    """Desired or observed state of a channel resource."""
    name: str
    is_private: bool
    id: Optional[str] = None
    topic: Optional[str] = None
    purpose: Optional[str] = None
    permanent_members: Optional[FrozenSet[str]] = None
    created: Optional[int] = None
    creator: Optional[str] = None
    is_archived: bool = False
    is_shared: bool = False
    is_ext_shared: bool = False
    is_org_shared: bool = False
    is_general: bool = False
    action_on_destroy: str = ACTION_ON_DESTROY_ARCHIVE
    action_on_update_permanent_members: str = ACTION_ON_UPDATE_KICK
    adopt_existing_channel: bool = False

    def __post_init__(self):
        object.__setattr__(self, "permanent_members", member_set(self.permanent_members))

    @property
    def tracks_members(self) -> bool:
        return self.permanent_members is not None

    def observed(self, channel: Dict[str, Any], members: Optional[Iterable[str]] = None) -> "ConversationState":
        """Return a copy refreshed from a conversations.info payload.

        Policy attributes are kept from this record. When ``members`` is given,
        the creator is removed before it becomes the tracked member set.
        """
        creator = channel.get("creator") or None
        tracked = None
        if members is not None:
            tracked = frozenset(m for m in members if m != creator)
        return replace(
            self,
            id=channel["id"],
            name=channel.get("name", self.name),
            topic=(channel.get("topic") or {}).get("value", ""),
            purpose=(channel.get("purpose") or {}).get("value", ""),
            permanent_members=tracked,
            created=channel.get("created"),
            creator=creator,
            is_private=bool(channel.get("is_private", self.is_private)),
            is_archived=bool(channel.get("is_archived", False)),
            is_shared=bool(channel.get("is_shared", False)),
            is_ext_shared=bool(channel.get("is_ext_shared", False)),
            is_org_shared=bool(channel.get("is_org_shared", False)),
            is_general=bool(channel.get("is_general", False)),
        )


@dataclass(frozen=True)
class UsergroupState:
    """Desired or observed state of a usergroup resource."""
    name: str
    id: Optional[str] = None
    handle: Optional[str] = None
    description: Optional[str] = None
    channels: Optional[FrozenSet[str]] = None
    users: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        object.__setattr__(self, "channels", member_set(self.channels))
        object.__setattr__(self, "users", member_set(self.users))

    @classmethod
    def from_api(cls, group: Dict[str, Any]) -> "UsergroupState":
        """Build the observed state from a usergroups.list entry."""
        return cls(
            id=group["id"],
            name=group.get("name", ""),
            handle=group.get("handle", ""),
            description=group.get("description", ""),
            channels=frozenset((group.get("prefs") or {}).get("channels") or []),
            users=frozenset(group.get("users") or []),
        )


@dataclass(frozen=True)
class ConversationInfo:
    """Read-only channel lookup result."""
    id: str
    name: str
    topic: str
    purpose: str
    created: int
    creator: str
    is_private: bool

    @classmethod
    def from_api(cls, channel: Dict[str, Any]) -> "ConversationInfo":
        return cls(
            id=channel["id"],
            name=channel.get("name", ""),
            topic=(channel.get("topic") or {}).get("value", ""),
            purpose=(channel.get("purpose") or {}).get("value", ""),
            created=channel.get("created", 0),
            creator=channel.get("creator", ""),
            is_private=bool(channel.get("is_private", False)),
        )


@dataclass(frozen=True)
class UserRecord:
    """Read-only user lookup result."""
    id: str
    name: str
    email: str

    @classmethod
    def from_api(cls, user: Dict[str, Any]) -> "UserRecord":
        return cls(
            id=user["id"],
            name=user.get("name", ""),
            email=(user.get("profile") or {}).get("email", ""),
        )


@dataclass(frozen=True)
class UsergroupRecord:
    """Read-only usergroup lookup result."""
    id: str
    name: str
    handle: str
    description: str
    users: FrozenSet[str]
    channels: FrozenSet[str]

    @classmethod
    def from_api(cls, group: Dict[str, Any]) -> "UsergroupRecord":
        return cls(
            id=group["id"],
            name=group.get("name", ""),
            handle=group.get("handle", ""),
            description=group.get("description", ""),
            users=frozenset(group.get("users") or []),
            channels=frozenset((group.get("prefs") or {}).get("channels") or []),
        )
