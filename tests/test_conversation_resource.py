"""Lifecycle tests for the slack_conversation resource against an in-memory workspace."""
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from slack_provider.core.conversation_resource import ConversationResource
from slack_provider.core.errors import ConfigurationError, LookupNotFoundError, ReconcileError
from slack_provider.core.models import ConversationState
from slack_provider.core.slack import SlackClient, SlackTransportError


@pytest.fixture
def resource(fake_slack):
    return ConversationResource(fake_slack, operator="pytest")


def _calls(fake, method):
    return [params for name, params in fake.calls if name == method]


# ─────────────────────────────────────────────────────────────────────────────
# Create
# ─────────────────────────────────────────────────────────────────────────────
def test_create_skips_creator_and_tracks_invited_members(resource, fake_slack):
    plan = ConversationState(
        name="eng",
        is_private=True,
        topic="Engineering",
        permanent_members={"UCREATOR", "U2"},
    )

    state = resource.create(plan)

    assert _calls(fake_slack, "conversations.invite") == [{"channel": state.id, "users": "U2"}]
    assert state.permanent_members == {"U2"}
    assert state.creator == "UCREATOR"
    assert state.topic == "Engineering"
    assert state.purpose == ""
    assert state.is_private is True
    assert state.created == 1700000000


def test_create_without_members_does_not_track_membership(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False))

    assert state.permanent_members is None
    assert "conversations.members" not in fake_slack.methods()
    assert "conversations.setTopic" not in fake_slack.methods()
    assert "conversations.setPurpose" not in fake_slack.methods()


def test_create_treats_already_in_channel_as_success(resource, fake_slack):
    fake_slack.fail_next("conversations.invite", "already_in_channel")

    state = resource.create(ConversationState(name="eng", is_private=False, permanent_members={"U2"}))

    assert state.id in fake_slack.channels
    assert state.permanent_members == frozenset()


def test_create_invite_failure_reports_partial_state(resource, fake_slack):
    fake_slack.fail_next("conversations.invite", "user_not_found")

    with pytest.raises(ReconcileError) as exc_info:
        resource.create(ConversationState(name="eng", is_private=False, permanent_members={"U404"}))

    err = exc_info.value
    assert str(err) == "Unable to invite user U404 to conversation: user_not_found"
    assert err.cause.error == "user_not_found"
    assert err.partial_state.id in fake_slack.channels
    assert err.partial_state.name == "eng"


def test_create_name_taken_without_adopt_fails(resource, fake_slack):
    fake_slack.add_channel("eng")

    with pytest.raises(ReconcileError) as exc_info:
        resource.create(ConversationState(name="eng", is_private=False))

    assert exc_info.value.partial_state is None
    assert "name_taken" in exc_info.value.detail


def test_create_adopts_and_unarchives_existing_channel(resource, fake_slack):
    existing = fake_slack.add_channel("eng", creator="UOTHER", is_archived=True)
    fake_slack.channel_members[existing["id"]].add("U5")

    state = resource.create(
        ConversationState(name="eng", is_private=False, permanent_members={"U2"}, adopt_existing_channel=True)
    )

    assert state.id == existing["id"]
    assert state.is_archived is False
    assert "conversations.unarchive" in fake_slack.methods()
    assert state.permanent_members == {"U2", "U5"}


def test_create_rejects_invalid_name_before_any_call(resource, fake_slack):
    with pytest.raises(ConfigurationError):
        resource.create(ConversationState(name="Eng Team", is_private=False))
    assert fake_slack.calls == []


# ─────────────────────────────────────────────────────────────────────────────
# Read / import
# ─────────────────────────────────────────────────────────────────────────────
def test_read_missing_channel_signals_removal(resource):
    assert resource.read(ConversationState(id="C404", name="gone", is_private=False)) is None


def test_read_other_errors_are_reported(resource, fake_slack):
    fake_slack.fail_next("conversations.info", "missing_scope")
    with pytest.raises(ReconcileError, match="missing_scope"):
        resource.read(ConversationState(id="C1", name="eng", is_private=False))


def test_read_excludes_creator_from_tracked_members(resource, fake_slack):
    channel = fake_slack.add_channel("eng", creator="UOTHER")
    fake_slack.channel_members[channel["id"]].update({"U1", "U2"})

    state = resource.read(ConversationState(id=channel["id"], name="eng", is_private=False, permanent_members=()))

    assert state.permanent_members == {"U1", "U2"}


def test_import_existing_and_missing(resource, fake_slack):
    channel = fake_slack.add_channel("eng")

    assert resource.import_state(channel["id"]).name == "eng"
    with pytest.raises(LookupNotFoundError):
        resource.import_state("C404")


# ─────────────────────────────────────────────────────────────────────────────
# Update
# ─────────────────────────────────────────────────────────────────────────────
def test_update_is_idempotent(resource, fake_slack):
    plan = ConversationState(name="eng", is_private=False, topic="t", purpose="p", permanent_members={"U1"})
    state = resource.create(plan)
    fake_slack.calls.clear()

    again = resource.update(plan, state)

    assert fake_slack.mutations == []
    assert again == state


def test_update_renames_and_sets_changed_topic_only(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, topic="t", purpose="p"))
    fake_slack.calls.clear()

    updated = resource.update(ConversationState(name="engineering", is_private=False, topic="new", purpose="p"), state)

    assert [m for m, _ in fake_slack.mutations] == ["conversations.rename", "conversations.setTopic"]
    assert updated.name == "engineering"
    assert updated.topic == "new"


def test_update_kicks_removed_members(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, permanent_members={"U1", "U2"}))
    fake_slack.calls.clear()

    updated = resource.update(replace(state, permanent_members={"U2", "U3"}), state)

    assert _calls(fake_slack, "conversations.invite") == [{"channel": state.id, "users": "U3"}]
    assert _calls(fake_slack, "conversations.kick") == [{"channel": state.id, "user": "U1"}]
    assert updated.permanent_members == {"U2", "U3"}


def test_update_with_none_policy_leaves_removed_members(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, permanent_members={"U1", "U2"}))
    fake_slack.calls.clear()

    plan = replace(state, permanent_members={"U2"}, action_on_update_permanent_members="none")
    updated = resource.update(plan, state)

    assert "conversations.kick" not in fake_slack.methods()
    assert "U1" in fake_slack.channel_members[state.id]
    assert updated.permanent_members == {"U2"}


def test_update_unset_members_are_not_managed(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, permanent_members={"U1"}))
    fake_slack.calls.clear()

    resource.update(replace(state, permanent_members=None), state)

    assert fake_slack.mutations == []


def test_update_rejects_privacy_change(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False))
    fake_slack.calls.clear()

    with pytest.raises(ConfigurationError, match="is_private"):
        resource.update(replace(state, is_private=True), state)
    assert fake_slack.calls == []


def test_update_unarchives_before_inviting(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, permanent_members=()))
    fake_slack.channels[state.id]["is_archived"] = True
    prior = resource.read(state)
    fake_slack.calls.clear()

    updated = resource.update(replace(prior, is_archived=False, permanent_members={"U1"}), prior)

    methods = [m for m, _ in fake_slack.mutations]
    assert methods == ["conversations.unarchive", "conversations.invite"]
    assert updated.is_archived is False


def test_update_archives_after_membership_changes(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, permanent_members=()))
    fake_slack.calls.clear()

    updated = resource.update(replace(state, is_archived=True, permanent_members={"U1"}), state)

    methods = [m for m, _ in fake_slack.mutations]
    assert methods == ["conversations.invite", "conversations.archive"]
    assert updated.is_archived is True


def test_update_failure_keeps_prior_as_partial_state(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False))
    fake_slack.fail_next("conversations.rename", "name_taken")

    with pytest.raises(ReconcileError) as exc_info:
        resource.update(replace(state, name="general"), state)

    assert exc_info.value.partial_state == state
    assert exc_info.value.detail == "Unable to rename conversation: name_taken"


# ─────────────────────────────────────────────────────────────────────────────
# Delete
# ─────────────────────────────────────────────────────────────────────────────
def test_delete_archives(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False))

    fake_slack.calls.clear()

    resource.delete(state)

    assert fake_slack.calls == [("conversations.archive", {"channel": state.id})]
    assert fake_slack.channels[state.id]["is_archived"] is True


def test_delete_with_none_policy_makes_no_call(resource, fake_slack):
    state = resource.create(ConversationState(name="eng", is_private=False, action_on_destroy="none"))
    fake_slack.calls.clear()

    resource.delete(state)

    assert fake_slack.calls == []


@pytest.mark.parametrize("error", ["already_archived", "channel_not_found"])
def test_delete_tolerates_gone_channel(resource, fake_slack, error):
    fake_slack.fail_next("conversations.archive", error)
    resource.delete(ConversationState(id="C1", name="eng", is_private=False))


def test_delete_reports_other_errors(resource, fake_slack):
    fake_slack.fail_next("conversations.archive", "cant_archive_general")
    with pytest.raises(ReconcileError, match="cant_archive_general"):
        resource.delete(ConversationState(id="C1", name="general", is_private=False))


# ─────────────────────────────────────────────────────────────────────────────
# Transport failures
# ─────────────────────────────────────────────────────────────────────────────
def test_create_timeout_names_the_action(_isolated_audit_log):
    web = MagicMock()
    web.conversations_create.side_effect = TimeoutError("connect timed out")
    resource = ConversationResource(SlackClient("xoxb-1", web_client=web))

    with pytest.raises(ReconcileError) as exc_info:
        resource.create(ConversationState(name="eng", is_private=False))

    assert exc_info.value.detail == "Unable to create conversation: request_failed (connect timed out)"
    assert exc_info.value.cause.method == "conversations.create"


def test_invite_connection_loss_keeps_partial_state(resource, fake_slack, _isolated_audit_log):
    fake_slack.fail_next("conversations.invite", SlackTransportError("conversations.invite", "connection reset"))

    with pytest.raises(ReconcileError) as exc_info:
        resource.create(ConversationState(name="eng", is_private=False, permanent_members={"U2"}))

    err = exc_info.value
    assert err.detail == "Unable to invite user U2 to conversation: request_failed (connection reset)"
    assert err.partial_state.id in fake_slack.channels
    events = (_isolated_audit_log / "resource-events.jsonl").read_text().splitlines()
    assert '"success": false' in events[-1]


def test_read_transport_failure_is_not_a_removal(resource, fake_slack):
    fake_slack.fail_next("conversations.info", SlackTransportError("conversations.info", "timed out"))

    with pytest.raises(ReconcileError, match="Unable to read conversation: request_failed"):
        resource.read(ConversationState(id="C1", name="eng", is_private=False))
