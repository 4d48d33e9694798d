"""Operator CLI for Slack channels and usergroups.

This module serves as a CLI wrapper around the slack_provider resources and
lookups. Results are printed as JSON on stdout.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from dataclasses import asdict, replace
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from slack_provider.core.errors import ProviderError
from slack_provider.core.models import ConversationState, UsergroupState
from slack_provider.provider import Provider


def _emit(record) -> None:
    """Print a state record as JSON; sets are printed sorted."""
    print(json.dumps(asdict(record), default=sorted, indent=2, sort_keys=True))


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Slack channel and usergroup helper")
    parser.add_argument("--token", default=None, help="Slack token (default: /run/secrets/slack_token or SLACK_TOKEN)")
    parser.add_argument("--operator", default=os.environ.get("SLACK_PROVIDER_OPERATOR", "cli"),
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    cr = sub.add_parser("conversation-read")
    cr.add_argument("--id", required=True)
    cr.add_argument("--track-members", action="store_true")

    cc = sub.add_parser("conversation-create")
    cc.add_argument("--name", required=True)
    cc.add_argument("--private", action="store_true")
    cc.add_argument("--topic")
    cc.add_argument("--purpose")
    cc.add_argument("--member", action="append", default=None)
    cc.add_argument("--adopt", action="store_true")

    ca = sub.add_parser("conversation-archive")
    ca.add_argument("--id", required=True)

    ur = sub.add_parser("usergroup-read")
    ur.add_argument("--id", required=True)

    uc = sub.add_parser("usergroup-create")
    uc.add_argument("--name", required=True)
    uc.add_argument("--handle")
    uc.add_argument("--description")
    uc.add_argument("--channel", action="append", default=None)
    uc.add_argument("--user", action="append", default=None)

    um = sub.add_parser("usergroup-members")
    um.add_argument("--id", required=True)
    um.add_argument("--user", action="append", default=[])

    ud = sub.add_parser("usergroup-disable")
    ud.add_argument("--id", required=True)

    lu = sub.add_parser("user-lookup")
    lu.add_argument("--name")
    lu.add_argument("--email")

    lg = sub.add_parser("usergroup-lookup")
    lg.add_argument("--id")
    lg.add_argument("--name")

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    provider = Provider()
    try:
        provider.configure(args.token)
        provider.config.operator = args.operator
        run(provider, args)
    except ProviderError as e:
        print(f"[{args.cmd}] Error: {e.summary}: {e}", file=sys.stderr)
        sys.exit(1)


def run(provider: Provider, args: argparse.Namespace) -> None:
    """Dispatch a parsed command against a configured provider."""
    if args.cmd == "conversation-read":
        members = frozenset() if args.track_members else None
        state = provider.resource("slack_conversation").read(
            ConversationState(id=args.id, name="", is_private=False, permanent_members=members)
        )
        if state is None:
            print(f"[{args.cmd}] Channel {args.id} not found", file=sys.stderr)
            sys.exit(1)
        _emit(state)
    elif args.cmd == "conversation-create":
        plan = ConversationState(
            name=args.name,
            is_private=args.private,
            topic=args.topic,
            purpose=args.purpose,
            permanent_members=args.member,
            adopt_existing_channel=args.adopt,
        )
        _emit(provider.resource("slack_conversation").create(plan))
    elif args.cmd == "conversation-archive":
        provider.resource("slack_conversation").delete(ConversationState(id=args.id, name="", is_private=False))
        print(f"[{args.cmd}] Channel {args.id} archived", file=sys.stderr)
    elif args.cmd == "usergroup-read":
        state = provider.resource("slack_usergroup").read(UsergroupState(id=args.id, name=""))
        if state is None:
            print(f"[{args.cmd}] Usergroup {args.id} not found", file=sys.stderr)
            sys.exit(1)
        _emit(state)
    elif args.cmd == "usergroup-create":
        plan = UsergroupState(
            name=args.name,
            handle=args.handle,
            description=args.description,
            channels=args.channel,
            users=args.user,
        )
        _emit(provider.resource("slack_usergroup").create(plan))
    elif args.cmd == "usergroup-members":
        usergroups = provider.resource("slack_usergroup")
        prior = usergroups.import_state(args.id)
        _emit(usergroups.update(replace(prior, users=frozenset(args.user)), prior))
    elif args.cmd == "usergroup-disable":
        provider.resource("slack_usergroup").delete(UsergroupState(id=args.id, name=""))
        print(f"[{args.cmd}] Usergroup {args.id} disabled", file=sys.stderr)
    elif args.cmd == "user-lookup":
        _emit(provider.data_source("slack_user").read(name=args.name, email=args.email))
    elif args.cmd == "usergroup-lookup":
        _emit(provider.data_source("slack_usergroup").read(usergroup_id=args.id, name=args.name))


if __name__ == "__main__":
    main()
