"""Pydantic schemas for the Discord webhook payload."""

from typing import List, Optional

from pydantic import BaseModel, Field


class EmbedField(BaseModel):
    name: Optional[str] = None
    value: Optional[str] = None
    inline: Optional[bool] = None


class WebhookEmbed(BaseModel):
    """A single rich embed attached to a webhook message."""

    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    color: int = 0
    fields: List[EmbedField] = Field(default_factory=list)


class DiscordWebhook(BaseModel):
    """Body POSTed to a Discord webhook URL."""

    username: Optional[str] = None
    avatar_url: Optional[str] = None
    content: Optional[str] = None
    embeds: List[WebhookEmbed] = Field(default_factory=list)
