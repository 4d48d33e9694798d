"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from slack_provider.core.slack import DEFAULT_BASE_URL, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

SECRETS_DIR = "/run/secrets"


def _read_secret(secret_name: str, env_var: str) -> Optional[str]:
    """Return a mounted Docker secret, falling back to an environment variable."""
    secret_file = Path(SECRETS_DIR) / secret_name
    if secret_file.is_file():
        try:
            value = secret_file.read_text().strip()
        except OSError as e:
            logger.warning(f"[settings] Cannot read {secret_file}: {e}")
            value = ""
        if value:
            logger.info(f"[settings] {secret_name} loaded from {SECRETS_DIR}")
            return value
    return os.getenv(env_var) or None


@dataclass
class ProviderConfig:
    """Provider configuration container."""
    token: str = ""
    api_base_url: str = DEFAULT_BASE_URL
    request_timeout: int = REQUEST_TIMEOUT
    operator: str = "terraform"


def _int_from_env(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got '{raw}'")


def load_settings(token: Optional[str] = None) -> ProviderConfig:
    """Load provider settings.

    Token priority: explicit argument, /run/secrets/slack_token, SLACK_TOKEN.
    The token is not validated here; see ``validate_slack_token``.
    """
    resolved_token = token or _read_secret("slack_token", "SLACK_TOKEN") or ""

    config = ProviderConfig(
        token=resolved_token,
        api_base_url=os.environ.get("SLACK_API_URL", DEFAULT_BASE_URL).rstrip("/"),
        request_timeout=_int_from_env("SLACK_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
        operator=os.environ.get("SLACK_PROVIDER_OPERATOR", "terraform"),
    )
    logger.debug(f"[settings] api_base_url={config.api_base_url}; token={'***' if config.token else 'EMPTY'}")
    return config
