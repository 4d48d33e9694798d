"""Slack workspace provider package.

To configure the provider:
    from slack_provider.provider import Provider

To use the Slack Web API services directly:
    from slack_provider.core.slack import SlackClient, ConversationService
"""
# Note: provider is not imported here so that the client library can be used
# without loading configuration
