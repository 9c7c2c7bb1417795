"""Pydantic schemas for stockwatch.

All persisted and wire models are defined here for easy import.
"""

from stockwatch.schemas.target import Target
from stockwatch.schemas.monitor_config import MonitorConfig
from stockwatch.schemas.discord import DiscordWebhook, EmbedField, WebhookEmbed

__all__ = [
    "Target",
    "MonitorConfig",
    "DiscordWebhook",
    "EmbedField",
    "WebhookEmbed",
]
