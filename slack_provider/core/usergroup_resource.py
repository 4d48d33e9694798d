"""Usergroup resource lifecycle.

Usergroup membership is replaced as a whole (``usergroups.users.update``),
unlike channel membership which is changed one invite/kick at a time.

The Web API exposes no fetch-by-ID for usergroups, so every read lists all
groups and matches on the ID. Deleting a usergroup disables it; disabled
groups keep their name, so re-creating a group with the same name conflicts.
"""
from __future__ import annotations
import logging
from typing import Optional

from slack_provider import audit
from slack_provider.core.errors import LookupNotFoundError, ReconcileError
from slack_provider.core.models import UsergroupState
from slack_provider.core.slack import (
    SlackClient,
    SlackError,
    UsergroupService,
    ERR_ALREADY_DISABLED,
)
from slack_provider.core.validators import validate_usergroup

logger = logging.getLogger(__name__)


def _differs(desired, observed) -> bool:
    """An unset desired attribute never differs: it is not managed."""
    return desired is not None and desired != observed


class UsergroupResource:
    """Lifecycle operations for the ``slack_usergroup`` resource."""

    type_name = "slack_usergroup"

    def __init__(self, client: SlackClient, operator: str = "system"):
        """Initialize usergroup resource.

        Args:
            client: Authenticated Slack client
            operator: Operator identifier for audit logs
        """
        self.usergroups = UsergroupService(client)
        self.operator = operator

    def create(self, plan: UsergroupState) -> UsergroupState:
        """Create the usergroup and set its members in a single call.

        Returns:
            Observed state after creation

        Raises:
            ConfigurationError: If the plan is invalid
            ReconcileError: If a remote call fails
        """
        validate_usergroup(plan)

        try:
            group = self.usergroups.create(plan.name, plan.handle, plan.description, plan.channels)
        except SlackError as exc:
            self._audit("usergroup_create", "", {"name": plan.name, "error": exc.error}, success=False)
            raise ReconcileError("create usergroup", exc) from exc

        group_id = group["id"]
        logger.info(f"[usergroup] Usergroup '{plan.name}' created (id={group_id})")

        # A new group has no members: an empty set needs no call
        if plan.users:
            try:
                self.usergroups.replace_members(group_id, plan.users)
            except SlackError as exc:
                self._audit("usergroup_create", group_id, {"name": plan.name, "error": exc.error}, success=False)
                raise ReconcileError("update usergroup members", exc, UsergroupState.from_api(group)) from exc

        state = self._observe(group_id, "read usergroup after create")
        self._audit(
            "usergroup_create",
            group_id,
            {"name": plan.name, "users": sorted(plan.users or ())},
        )
        return state

    def read(self, state: UsergroupState) -> Optional[UsergroupState]:
        """Refresh state from the usergroup list.

        Returns:
            Observed state, or None when the group is no longer listed
        """
        try:
            group = self.usergroups.get(state.id)
        except SlackError as exc:
            raise ReconcileError("read usergroups", exc) from exc

        if group is None:
            logger.info(f"[usergroup] Usergroup {state.id} not found; removing from state")
            return None
        return UsergroupState.from_api(group)

    def update(self, plan: UsergroupState, prior: UsergroupState) -> UsergroupState:
        """Apply the attributes of ``plan`` that differ from ``prior``.

        The update call is skipped when no attribute changed; the member
        replace call is skipped when ``plan.users`` is unset or unchanged.
        """
        validate_usergroup(plan)

        group_id = prior.id
        changes = {}

        needs_update = (
            plan.name != prior.name
            or _differs(plan.handle, prior.handle)
            or _differs(plan.description, prior.description)
            or _differs(plan.channels, prior.channels)
        )

        try:
            if needs_update:
                self.usergroups.update(
                    group_id,
                    name=plan.name,
                    handle=plan.handle or None,
                    description=plan.description or None,
                    channels=plan.channels,
                )
                changes["attributes"] = {
                    "name": plan.name,
                    "handle": plan.handle,
                    "description": plan.description,
                    "channels": sorted(plan.channels) if plan.channels is not None else None,
                }
        except SlackError as exc:
            self._audit("usergroup_update", group_id, {"error": exc.error}, success=False)
            raise ReconcileError("update usergroup", exc, prior) from exc

        if _differs(plan.users, prior.users):
            try:
                self.usergroups.replace_members(group_id, plan.users)
            except SlackError as exc:
                changes["error"] = exc.error
                self._audit("usergroup_update", group_id, changes, success=False)
                raise ReconcileError("update usergroup members", exc, prior) from exc
            changes["users"] = sorted(plan.users)
            logger.info(f"[usergroup] Members of {group_id} replaced ({len(plan.users)} users)")

        state = self._observe(group_id, "read usergroup after update")
        if changes:
            self._audit("usergroup_update", group_id, changes)
        return state

    def delete(self, state: UsergroupState) -> None:
        """Disable the usergroup; an already disabled group counts as deleted."""
        try:
            self.usergroups.disable(state.id)
        except SlackError as exc:
            if exc.error != ERR_ALREADY_DISABLED:
                self._audit("usergroup_delete", state.id, {"error": exc.error}, success=False)
                raise ReconcileError("disable usergroup", exc) from exc
            logger.info(f"[usergroup] Usergroup {state.id} already disabled")

        self._audit("usergroup_delete", state.id, {"name": state.name, "action": "disable"})

    def import_state(self, usergroup_id: str) -> UsergroupState:
        """Adopt an existing usergroup by ID.

        Raises:
            LookupNotFoundError: If no enabled usergroup has this ID
        """
        state = self.read(UsergroupState(id=usergroup_id, name=""))
        if state is None:
            raise LookupNotFoundError(f"Cannot import non-existent usergroup {usergroup_id}")
        return state

    def _observe(self, group_id: str, action: str) -> UsergroupState:
        """Terminal read; a missing group here is an error, not a removal."""
        state = self.read(UsergroupState(id=group_id, name=""))
        if state is None:
            raise ReconcileError(action, partial_state=UsergroupState(id=group_id, name=""), reason="usergroup not found")
        return state

    def _audit(self, event_type: audit.EventType, resource_id: str, details: dict, success: bool = True) -> None:
        audit.safe_log_resource_event(
            event_type,
            resource_id,
            operator=self.operator,
            details=details,
            success=success,
        )
