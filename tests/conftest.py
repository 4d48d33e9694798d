"""Pytest shared fixtures: network guard, audit isolation, in-memory Slack."""
import itertools
import pathlib
import sys
from typing import Any, Dict, List, Tuple

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from slack_sdk import WebClient

from slack_provider import audit
from slack_provider.core.slack import SlackAPIError


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting the live Slack Web API.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub_api_call(self, api_method, *args, **kwargs):
        raise RuntimeError(f"Unexpected Slack Web API call in unit test: {api_method}")

    monkeypatch.setattr(WebClient, "api_call", _stub_api_call)


@pytest.fixture(autouse=True)
def _isolated_audit_log(monkeypatch, tmp_path):
    """Write audit events to a per-test directory."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "resource-events.jsonl")
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    return audit_dir


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Slack Web API
# ─────────────────────────────────────────────────────────────────────────────
READ_METHODS = {
    "conversations.info",
    "conversations.members",
    "conversations.list",
    "usergroups.list",
    "users.list",
    "users.lookupByEmail",
}


def _ids(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item for item in value.split(",") if item]
    return list(value)


class FakeSlack:
    """Duck-typed SlackClient backed by in-memory workspace state.

    Every call is recorded in ``calls`` as ``(method, params)``. Errors can be
    queued per method with ``fail_next``.
    """

    def __init__(self, actor: str = "UCREATOR"):
        self.actor = actor
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.channels: Dict[str, dict] = {}
        self.channel_members: Dict[str, set] = {}
        self.usergroups: Dict[str, dict] = {}
        self.users: List[dict] = []
        self._errors: Dict[str, List[str]] = {}
        self._ids = itertools.count(1)

    # Test helpers ─────────────────────────────────────────────────────────

    def fail_next(self, method: str, error) -> None:
        """Queue an error code (or a ready-made exception) for the next call."""
        self._errors.setdefault(method, []).append(error)

    def add_channel(self, name: str, creator: str = "UOTHER", is_private: bool = False, **extra) -> dict:
        channel_id = f"C{next(self._ids):04d}"
        channel = {
            "id": channel_id,
            "name": name,
            "is_private": is_private,
            "created": 1700000000,
            "creator": creator,
            "is_archived": False,
            "is_general": False,
            "is_shared": False,
            "is_ext_shared": False,
            "is_org_shared": False,
            "topic": {"value": ""},
            "purpose": {"value": ""},
        }
        channel.update(extra)
        self.channels[channel_id] = channel
        self.channel_members[channel_id] = {creator}
        return channel

    def add_usergroup(self, name: str, handle: str = "", users=(), channels=(), description: str = "") -> dict:
        group_id = f"S{next(self._ids):04d}"
        self.usergroups[group_id] = {
            "id": group_id,
            "name": name,
            "handle": handle or name.lower(),
            "description": description,
            "prefs": {"channels": list(channels)},
            "users": list(users),
            "date_delete": 0,
        }
        return self.usergroups[group_id]

    def add_user(self, user_id: str, name: str, email: str = "") -> dict:
        user = {"id": user_id, "name": name, "profile": {"email": email}}
        self.users.append(user)
        return user

    @property
    def mutations(self) -> List[Tuple[str, Dict[str, Any]]]:
        return [call for call in self.calls if call[0] not in READ_METHODS]

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    # SlackClient interface ──────────────────────────────────────────────────

    def api_call(self, method: str, **params: Any) -> Dict[str, Any]:
        self.calls.append((method, params))
        queued = self._errors.get(method)
        if queued:
            error = queued.pop(0)
            raise error if isinstance(error, Exception) else SlackAPIError(error, method)
        handler = getattr(self, "_" + method.replace(".", "_"))
        payload = handler(**params)
        payload["ok"] = True
        return payload

    def paginate(self, method: str, key: str, **params: Any):
        yield from self.api_call(method, **params).get(key) or []

    # Conversations ──────────────────────────────────────────────────────────

    def _channel(self, channel_id: str) -> dict:
        if channel_id not in self.channels:
            raise SlackAPIError("channel_not_found", "conversations")
        return self.channels[channel_id]

    def _conversations_create(self, name, is_private):
        if any(c["name"] == name for c in self.channels.values()):
            raise SlackAPIError("name_taken", "conversations.create")
        return {"channel": dict(self.add_channel(name, creator=self.actor, is_private=is_private))}

    def _conversations_info(self, channel):
        return {"channel": dict(self._channel(channel))}

    def _conversations_setTopic(self, channel, topic):
        self._channel(channel)["topic"] = {"value": topic}
        return {}

    def _conversations_setPurpose(self, channel, purpose):
        self._channel(channel)["purpose"] = {"value": purpose}
        return {}

    def _conversations_rename(self, channel, name):
        self._channel(channel)["name"] = name
        return {}

    def _conversations_archive(self, channel):
        record = self._channel(channel)
        if record["is_archived"]:
            raise SlackAPIError("already_archived", "conversations.archive")
        record["is_archived"] = True
        return {}

    def _conversations_unarchive(self, channel):
        record = self._channel(channel)
        if not record["is_archived"]:
            raise SlackAPIError("not_archived", "conversations.unarchive")
        record["is_archived"] = False
        return {}

    def _conversations_invite(self, channel, users):
        self._channel(channel)
        members = self.channel_members[channel]
        for user_id in _ids(users):
            if user_id == self.actor:
                raise SlackAPIError("cant_invite_self", "conversations.invite")
            if user_id in members:
                raise SlackAPIError("already_in_channel", "conversations.invite")
            members.add(user_id)
        return {}

    def _conversations_kick(self, channel, user):
        self._channel(channel)
        members = self.channel_members[channel]
        if user not in members:
            raise SlackAPIError("not_in_channel", "conversations.kick")
        members.discard(user)
        return {}

    def _conversations_members(self, channel, **_):
        self._channel(channel)
        return {"members": sorted(self.channel_members[channel])}

    def _conversations_list(self, **_):
        return {"channels": [dict(c) for c in self.channels.values()]}

    # Usergroups ─────────────────────────────────────────────────────────────

    def _group(self, usergroup: str) -> dict:
        if usergroup not in self.usergroups:
            raise SlackAPIError("no_such_subteam", "usergroups")
        return self.usergroups[usergroup]

    def _usergroups_create(self, name, handle=None, description=None, channels=None):
        if any(g["name"] == name for g in self.usergroups.values()):
            raise SlackAPIError("name_already_exists", "usergroups.create")
        group = self.add_usergroup(name, handle=handle or "", channels=_ids(channels), description=description or "")
        return {"usergroup": dict(group)}

    def _usergroups_list(self, include_users=True, include_disabled=False):
        groups = []
        for group in self.usergroups.values():
            if group["date_delete"] and not include_disabled:
                continue
            entry = dict(group)
            if not include_users:
                entry.pop("users")
            groups.append(entry)
        return {"usergroups": groups}

    def _usergroups_update(self, usergroup, name=None, handle=None, description=None, channels=None):
        group = self._group(usergroup)
        if name is not None:
            group["name"] = name
        if handle is not None:
            group["handle"] = handle
        if description is not None:
            group["description"] = description
        if channels is not None:
            group["prefs"] = {"channels": _ids(channels)}
        return {"usergroup": dict(group)}

    def _usergroups_users_update(self, usergroup, users):
        self._group(usergroup)["users"] = _ids(users)
        return {"usergroup": dict(self.usergroups[usergroup])}

    def _usergroups_disable(self, usergroup):
        group = self._group(usergroup)
        if group["date_delete"]:
            raise SlackAPIError("already_disabled", "usergroups.disable")
        group["date_delete"] = 1700000001
        return {"usergroup": dict(group)}

    # Users ──────────────────────────────────────────────────────────────────

    def _users_list(self, **_):
        return {"members": list(self.users)}

    def _users_lookupByEmail(self, email):
        for user in self.users:
            if user["profile"].get("email") == email:
                return {"user": user}
        raise SlackAPIError("users_not_found", "users.lookupByEmail")


@pytest.fixture()
def fake_slack():
    """In-memory Slack workspace; the authenticated actor is UCREATOR."""
    return FakeSlack()
