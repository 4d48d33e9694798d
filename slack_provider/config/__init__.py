"""Configuration module for the Slack provider."""
from .settings import ProviderConfig, load_settings

__all__ = ["ProviderConfig", "load_settings"]
