"""Conversation (channel) resource lifecycle.

Converges a Slack channel towards a desired ConversationState:

    create ──> conversations.create (or adopt) ──> topic/purpose ──> invites ──┐
    update ──> rename ──> topic/purpose ──> unarchive ──> invite/kick ──> archive ┤
                                                                                  └──> terminal read

The terminal read is the only source of the returned state. Calls are issued
sequentially and nothing is rolled back on failure: the next update converges
from whatever partial state the remote channel reached.

Permanent members are the subset of channel membership this resource tracks.
The channel creator is always an implicit member and is never invited,
kicked or tracked.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Optional

from slack_provider import audit
from slack_provider.core.errors import LookupNotFoundError, ReconcileError, ConfigurationError
from slack_provider.core.membership import diff_members
from slack_provider.core.models import (
    ConversationState,
    ACTION_ON_DESTROY_NONE,
    ACTION_ON_UPDATE_KICK,
)
from slack_provider.core.slack import (
    SlackClient,
    SlackError,
    ConversationService,
    ERR_CHANNEL_NOT_FOUND,
    ERR_ALREADY_ARCHIVED,
    ERR_NOT_ARCHIVED,
    ERR_ALREADY_IN_CHANNEL,
    ERR_CANT_INVITE_SELF,
    ERR_NAME_TAKEN,
)
from slack_provider.core.validators import validate_conversation

logger = logging.getLogger(__name__)

# Invite errors meaning the user already is a member
BENIGN_INVITE_ERRORS = (ERR_ALREADY_IN_CHANNEL, ERR_CANT_INVITE_SELF)
BENIGN_KICK_ERRORS = ("not_in_channel",)


class ConversationResource:
    """Lifecycle operations for the ``slack_conversation`` resource."""

    type_name = "slack_conversation"

    def __init__(self, client: SlackClient, operator: str = "system"):
        """Initialize conversation resource.

        Args:
            client: Authenticated Slack client
            operator: Operator identifier for audit logs
        """
        self.conversations = ConversationService(client)
        self.operator = operator

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def create(self, plan: ConversationState) -> ConversationState:
        """Create (or adopt) the channel and apply topic, purpose and members.

        Args:
            plan: Desired state

        Returns:
            Observed state after creation

        Raises:
            ConfigurationError: If the plan is invalid
            ReconcileError: If a remote call fails; ``partial_state`` holds the
                channel when it was already created
        """
        validate_conversation(plan)

        channel, adopted = self._create_or_adopt(plan)
        channel_id = channel["id"]
        creator = channel.get("creator")
        partial = plan.observed(channel)

        try:
            if plan.topic:
                self._call("set conversation topic", partial, self.conversations.set_topic, channel_id, plan.topic)
            if plan.purpose:
                self._call("set conversation purpose", partial, self.conversations.set_purpose, channel_id, plan.purpose)

            invited = []
            for user_id in sorted(plan.permanent_members or ()):
                if user_id == creator:
                    logger.info(f"[conversation] Skipping invite of creator {user_id} to {channel_id}")
                    continue
                if self._invite(channel_id, user_id, partial):
                    invited.append(user_id)

            state = self._observe(replace(plan, id=channel_id), "read conversation after create")
        except ReconcileError as exc:
            if exc.partial_state is None:
                exc.partial_state = partial
            self._audit("conversation_create", channel_id, {"name": plan.name, "error": exc.detail}, success=False)
            raise

        self._audit(
            "conversation_create",
            channel_id,
            {"name": plan.name, "is_private": plan.is_private, "adopted": adopted, "invited": invited},
        )
        logger.info(f"[conversation] Channel '{state.name}' ready (id={channel_id}, adopted={adopted})")
        return state

    def read(self, state: ConversationState) -> Optional[ConversationState]:
        """Refresh state from Slack.

        Members are fetched only when ``state`` tracks permanent members; the
        creator is removed from the result.

        Returns:
            Observed state, or None when the channel no longer exists (the
            caller stops tracking the resource)

        Raises:
            ReconcileError: On any other remote failure
        """
        try:
            channel = self.conversations.info(state.id)
        except SlackError as exc:
            if exc.error == ERR_CHANNEL_NOT_FOUND:
                logger.info(f"[conversation] Channel {state.id} not found; removing from state")
                return None
            raise ReconcileError("read conversation", exc) from exc

        members = None
        if state.tracks_members:
            members = self._call("get users in conversation", None, self.conversations.members, state.id)
        return state.observed(channel, members)

    def update(self, plan: ConversationState, prior: ConversationState) -> ConversationState:
        """Apply the attributes of ``plan`` that differ from ``prior``.

        Args:
            plan: Desired state
            prior: Previously observed state (carries the channel ID)

        Returns:
            Observed state after the update
        """
        validate_conversation(plan)
        if plan.is_private != prior.is_private:
            raise ConfigurationError("is_private cannot be changed after the conversation is created")

        channel_id = prior.id
        plan = replace(plan, id=channel_id)
        partial = prior
        changes = {}

        try:
            if plan.name != prior.name:
                self._call("rename conversation", partial, self.conversations.rename, channel_id, plan.name)
                changes["name"] = plan.name

            if plan.topic and plan.topic != prior.topic:
                self._call("set conversation topic", partial, self.conversations.set_topic, channel_id, plan.topic)
                changes["topic"] = plan.topic

            if plan.purpose and plan.purpose != prior.purpose:
                self._call("set conversation purpose", partial, self.conversations.set_purpose, channel_id, plan.purpose)
                changes["purpose"] = plan.purpose

            # Membership changes are rejected on archived channels
            if prior.is_archived and not plan.is_archived:
                self._unarchive(channel_id, partial)
                changes["is_archived"] = False

            diff = diff_members(plan.permanent_members, prior.permanent_members)
            left_in_place = frozenset()
            if diff is not None and not diff.is_empty:
                invited = []
                for user_id in sorted(diff.to_add):
                    if user_id == prior.creator:
                        continue
                    if self._invite(channel_id, user_id, partial):
                        invited.append(user_id)
                if plan.action_on_update_permanent_members == ACTION_ON_UPDATE_KICK:
                    for user_id in sorted(diff.to_remove):
                        self._kick(channel_id, user_id, partial)
                    changes["kicked"] = sorted(diff.to_remove)
                elif diff.to_remove:
                    left_in_place = diff.to_remove
                    logger.info(
                        f"[conversation] Untracking {sorted(diff.to_remove)} in {channel_id} "
                        "without removing them from the channel"
                    )
                changes["invited"] = invited

            if plan.is_archived and not prior.is_archived:
                self._archive(channel_id, partial)
                changes["is_archived"] = True

            state = self._observe(plan, "read conversation after update")
        except ReconcileError as exc:
            if exc.partial_state is None:
                exc.partial_state = partial
            changes["error"] = exc.detail
            self._audit("conversation_update", channel_id, changes, success=False)
            raise

        if left_in_place and state.permanent_members is not None:
            state = replace(state, permanent_members=state.permanent_members - left_in_place)

        if changes:
            self._audit("conversation_update", channel_id, changes)
        return state

    def delete(self, state: ConversationState) -> None:
        """Archive the channel, or leave it untouched when action_on_destroy is "none".

        Slack channels cannot be deleted through the Web API.
        """
        if state.action_on_destroy == ACTION_ON_DESTROY_NONE:
            logger.warning(
                f"[conversation] Leaving channel '{state.name}' ({state.id}) in place; "
                "creating a channel with the same name will conflict"
            )
            return

        try:
            self.conversations.archive(state.id)
        except SlackError as exc:
            if exc.error not in (ERR_ALREADY_ARCHIVED, ERR_CHANNEL_NOT_FOUND):
                self._audit("conversation_delete", state.id, {"error": exc.error}, success=False)
                raise ReconcileError("archive conversation", exc) from exc
            logger.info(f"[conversation] Channel {state.id} already gone ({exc.error})")

        self._audit("conversation_delete", state.id, {"name": state.name, "action": "archive"})

    def import_state(self, channel_id: str) -> ConversationState:
        """Adopt an existing channel by ID.

        Raises:
            LookupNotFoundError: If the channel does not exist
        """
        state = self.read(ConversationState(id=channel_id, name="", is_private=False))
        if state is None:
            raise LookupNotFoundError(f"Cannot import non-existent conversation {channel_id}")
        return state

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _create_or_adopt(self, plan: ConversationState) -> tuple[dict, bool]:
        """Create the channel, adopting an existing one on a name clash if allowed."""
        try:
            return self.conversations.create(plan.name, plan.is_private), False
        except SlackError as exc:
            if exc.error != ERR_NAME_TAKEN or not plan.adopt_existing_channel:
                raise ReconcileError("create conversation", exc) from exc
            existing = self._call("find existing conversation", None, self.conversations.find_by_name, plan.name)
            if existing is None:
                raise ReconcileError("create conversation", exc) from exc

        logger.info(f"[conversation] Adopting existing channel '{plan.name}' (id={existing['id']})")
        if existing.get("is_archived"):
            self._unarchive(existing["id"], None)
        return existing, True

    def _observe(self, base: ConversationState, action: str) -> ConversationState:
        """Terminal read; a vanished channel here is an error, not a removal."""
        state = self.read(base)
        if state is None:
            raise ReconcileError(action, partial_state=base, reason=ERR_CHANNEL_NOT_FOUND)
        return state

    def _invite(self, channel_id: str, user_id: str, partial: Optional[ConversationState]) -> bool:
        """Invite a user; returns False when Slack reports they already are a member."""
        try:
            self.conversations.invite(channel_id, user_id)
        except SlackError as exc:
            if exc.error in BENIGN_INVITE_ERRORS:
                logger.warning(f"[conversation] Invite of {user_id} to {channel_id} skipped: {exc.error}")
                return False
            raise ReconcileError(f"invite user {user_id} to conversation", exc, partial) from exc
        logger.info(f"[conversation] Invited {user_id} to {channel_id}")
        return True

    def _kick(self, channel_id: str, user_id: str, partial: Optional[ConversationState]) -> None:
        try:
            self.conversations.kick(channel_id, user_id)
        except SlackError as exc:
            if exc.error in BENIGN_KICK_ERRORS:
                logger.warning(f"[conversation] Kick of {user_id} from {channel_id} skipped: {exc.error}")
                return
            raise ReconcileError(f"kick user {user_id} from conversation", exc, partial) from exc
        logger.info(f"[conversation] Kicked {user_id} from {channel_id}")

    def _archive(self, channel_id: str, partial: Optional[ConversationState]) -> None:
        try:
            self.conversations.archive(channel_id)
        except SlackError as exc:
            if exc.error != ERR_ALREADY_ARCHIVED:
                raise ReconcileError("archive conversation", exc, partial) from exc

    def _unarchive(self, channel_id: str, partial: Optional[ConversationState]) -> None:
        try:
            self.conversations.unarchive(channel_id)
        except SlackError as exc:
            if exc.error != ERR_NOT_ARCHIVED:
                raise ReconcileError("unarchive conversation", exc, partial) from exc

    @staticmethod
    def _call(action: str, partial: Optional[ConversationState], func, *args):
        """Run a service call, wrapping Slack errors with the attempted action."""
        try:
            return func(*args)
        except SlackError as exc:
            raise ReconcileError(action, exc, partial) from exc

    def _audit(self, event_type: audit.EventType, resource_id: str, details: dict, success: bool = True) -> None:
        audit.safe_log_resource_event(
            event_type,
            resource_id,
            operator=self.operator,
            details=details,
            success=success,
        )
