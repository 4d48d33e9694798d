"""Provider configuration and resource registry.

The host configures the provider once with a token; every resource and data
source it hands out shares the single SlackClient built here. Nothing is
stored at module level.

Usage:
    provider = Provider()
    provider.configure(token="xoxb-...")
    conversations = provider.resource("slack_conversation")
    state = conversations.create(ConversationState(name="eng", is_private=True))
"""
from __future__ import annotations
import hashlib
import logging
from typing import Dict, Optional, Protocol, Any

from slack_provider.config import ProviderConfig, load_settings
from slack_provider.core.conversation_resource import ConversationResource
from slack_provider.core.errors import ConfigurationError
from slack_provider.core.lookups import ConversationLookup, UserLookup, UsergroupLookup
from slack_provider.core.slack import SlackClient
from slack_provider.core.usergroup_resource import UsergroupResource

logger = logging.getLogger(__name__)

TYPE_NAME = "slack"

# xoxb: bot, xoxp: user, xoxa: app (deprecated), xoxe: enterprise grid,
# xoxr: refresh, xapp: app-level
VALID_TOKEN_PREFIXES = ("xoxb-", "xoxp-", "xoxa-", "xoxe-", "xoxr-", "xapp-")


class Resource(Protocol):
    """Lifecycle capabilities every managed resource type implements."""

    type_name: str

    def create(self, plan: Any) -> Any: ...

    def read(self, state: Any) -> Optional[Any]: ...

    def update(self, plan: Any, prior: Any) -> Any: ...

    def delete(self, state: Any) -> None: ...

    def import_state(self, resource_id: str) -> Any: ...


RESOURCES = {
    ConversationResource.type_name: ConversationResource,
    UsergroupResource.type_name: UsergroupResource,
}

DATA_SOURCES = {
    ConversationLookup.type_name: ConversationLookup,
    UserLookup.type_name: UserLookup,
    UsergroupLookup.type_name: UsergroupLookup,
}


def validate_slack_token(token: str) -> None:
    """Reject empty tokens and tokens without a known Slack prefix.

    Raises:
        ConfigurationError: If the token is unusable
    """
    if not token:
        raise ConfigurationError(
            "While configuring the provider, the Slack token was not found. "
            "Please set the SLACK_TOKEN environment variable or configure the token in the provider configuration.",
            summary="Missing Slack Token Configuration",
        )
    if not token.startswith(VALID_TOKEN_PREFIXES):
        raise ConfigurationError(
            "The provided Slack token is invalid: invalid token format. "
            f"Slack tokens must start with one of: {', '.join(VALID_TOKEN_PREFIXES)}",
            summary="Invalid Slack Token",
        )


class Provider:
    """Slack provider: validates credentials and builds bound resources."""

    def __init__(self, config: Optional[ProviderConfig] = None):
        self.config = config
        self.client: Optional[SlackClient] = None

    def configure(self, token: Optional[str] = None) -> SlackClient:
        """Validate the token and build the shared Slack client.

        Args:
            token: Token from the provider configuration; falls back to the
                settings (Docker secret, then SLACK_TOKEN)

        Returns:
            The configured client

        Raises:
            ConfigurationError: If the token is missing or malformed
        """
        if self.config is None:
            self.config = load_settings(token)
        resolved = token or self.config.token
        validate_slack_token(resolved)

        # Hash token for safe logging (SHA256 truncated)
        token_hash = hashlib.sha256(resolved.encode()).hexdigest()[:12]
        logger.info(f"[provider] Configured Slack client | token_hash={token_hash} | api={self.config.api_base_url}")

        self.client = SlackClient(resolved, base_url=self.config.api_base_url, timeout=self.config.request_timeout)
        return self.client

    def resource(self, type_name: str) -> Resource:
        """Return the resource implementation for ``type_name`` bound to the client."""
        factory = RESOURCES.get(type_name)
        if factory is None:
            raise ConfigurationError(f"Unknown resource type '{type_name}'")
        return factory(self._require_client(), operator=self.config.operator)

    def data_source(self, type_name: str):
        """Return the data source implementation for ``type_name`` bound to the client."""
        factory = DATA_SOURCES.get(type_name)
        if factory is None:
            raise ConfigurationError(f"Unknown data source type '{type_name}'")
        return factory(self._require_client())

    def resource_types(self) -> Dict[str, type]:
        return dict(RESOURCES)

    def data_source_types(self) -> Dict[str, type]:
        return dict(DATA_SOURCES)

    def _require_client(self) -> SlackClient:
        if self.client is None:
            raise ConfigurationError(
                "Provider is not configured; call configure() before using resources",
                summary="Unconfigured Provider",
            )
        return self.client
