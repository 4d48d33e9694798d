"""Input validation for desired resource state.

All checks run before any remote call is issued.
"""
from __future__ import annotations
from typing import Iterable, Optional

from slack_provider.core.errors import ConfigurationError
from slack_provider.core.models import (
    ConversationState,
    UsergroupState,
    ACTION_ON_DESTROY_ARCHIVE,
    ACTION_ON_DESTROY_NONE,
    ACTION_ON_UPDATE_KICK,
    ACTION_ON_UPDATE_NONE,
)

CHANNEL_NAME_MAX_LENGTH = 80
TOPIC_MAX_LENGTH = 250
PURPOSE_MAX_LENGTH = 250


def validate_channel_name(name: str) -> None:
    """Validate a channel name (lowercase, no spaces or periods, max 80 chars).

    Raises:
        ConfigurationError: If the name is invalid
    """
    if not name:
        raise ConfigurationError("Channel name is required")
    if len(name) > CHANNEL_NAME_MAX_LENGTH:
        raise ConfigurationError(f"Channel name must not exceed {CHANNEL_NAME_MAX_LENGTH} characters")
    if name != name.lower():
        raise ConfigurationError(f"Channel name '{name}' must be lowercase")
    if any(char in name for char in " ."):
        raise ConfigurationError(f"Channel name '{name}' cannot contain spaces or periods")


def validate_text(value: Optional[str], field: str, max_length: int) -> None:
    if value is not None and len(value) > max_length:
        raise ConfigurationError(f"{field} must not exceed {max_length} characters")


def validate_members(members: Optional[Iterable[str]], field: str) -> None:
    if members is None:
        return
    for member in members:
        if not isinstance(member, str) or not member.strip():
            raise ConfigurationError(f"{field} entries must be non-empty IDs")


def validate_conversation(plan: ConversationState) -> None:
    """Validate a desired conversation state.

    Raises:
        ConfigurationError: On the first invalid attribute
    """
    validate_channel_name(plan.name)
    validate_text(plan.topic, "topic", TOPIC_MAX_LENGTH)
    validate_text(plan.purpose, "purpose", PURPOSE_MAX_LENGTH)
    validate_members(plan.permanent_members, "permanent_members")

    if plan.action_on_destroy not in (ACTION_ON_DESTROY_ARCHIVE, ACTION_ON_DESTROY_NONE):
        raise ConfigurationError(
            f"action_on_destroy must be '{ACTION_ON_DESTROY_ARCHIVE}' or '{ACTION_ON_DESTROY_NONE}', "
            f"got '{plan.action_on_destroy}'"
        )
    if plan.action_on_update_permanent_members not in (ACTION_ON_UPDATE_KICK, ACTION_ON_UPDATE_NONE):
        raise ConfigurationError(
            f"action_on_update_permanent_members must be '{ACTION_ON_UPDATE_KICK}' or "
            f"'{ACTION_ON_UPDATE_NONE}', got '{plan.action_on_update_permanent_members}'"
        )


def validate_usergroup(plan: UsergroupState) -> None:
    """Validate a desired usergroup state.

    Raises:
        ConfigurationError: On the first invalid attribute
    """
    if not plan.name or not plan.name.strip():
        raise ConfigurationError("Usergroup name is required")
    validate_members(plan.users, "users")
    validate_members(plan.channels, "channels")


def require_exactly_one(**keys: Optional[str]) -> str:
    """Return the name of the single key that is set.

    Raises:
        ConfigurationError: If none or more than one of the keys is set
    """
    provided = [name for name, value in keys.items() if value is not None]
    names = " or ".join(f"'{name}'" for name in keys)
    if not provided:
        raise ConfigurationError(f"Either {names} must be specified", summary="Invalid combination of arguments")
    if len(provided) > 1:
        raise ConfigurationError(
            f"Only one of {names} can be specified, not both",
            summary="Invalid combination of arguments",
        )
    return provided[0]
