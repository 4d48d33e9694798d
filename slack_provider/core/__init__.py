"""Core Business Logic Module

This module provides the reconciliation logic for Slack channels and
usergroups, independent of the plugin host that drives it.

Module Structure:
    - slack/                   : Low-level Slack Web API client
    - models.py                : Desired/observed state records
    - membership.py            : Membership differ (additions/removals)
    - validators.py            : Pre-flight validation of desired state
    - errors.py                : Provider error taxonomy (diagnostics)
    - conversation_resource.py : Channel lifecycle (create/read/update/delete/import)
    - usergroup_resource.py    : Usergroup lifecycle
    - lookups.py               : Read-only lookups (conversation, user, usergroup)

Usage Pattern:
    Import explicitly when needed:
        from slack_provider.core.conversation_resource import ConversationResource
        from slack_provider.core.models import ConversationState
        from slack_provider.core.membership import diff_members
"""
