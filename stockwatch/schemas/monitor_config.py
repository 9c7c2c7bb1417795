"""Persisted watch-list configuration."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from stockwatch.schemas.target import Target


class MonitorConfig(BaseModel):
    """Everything the monitor keeps between runs.

    Stored as pretty-printed JSON so it stays hand-editable.
    """

    should_open_browser: Optional[bool] = None
    daemon_mode: bool = False
    daemon_timeout: Optional[int] = Field(None, ge=0, description="Seconds between cycles")
    discord_url: Optional[str] = None
    ratelimit_keys: Optional[Dict[str, datetime]] = None
    proxy_url: Optional[str] = None
    targets: List[Target] = Field(default_factory=list)

    @field_validator("ratelimit_keys")
    @classmethod
    def assume_utc_for_naive(
        cls, value: Optional[Dict[str, datetime]]
    ) -> Optional[Dict[str, datetime]]:
        """Hand-edited timestamps without an offset are taken as UTC."""
        if value is None:
            return None
        return {
            key: expiry if expiry.tzinfo else expiry.replace(tzinfo=timezone.utc)
            for key, expiry in value.items()
        }

    def open_browser_enabled(self) -> bool:
        return bool(self.should_open_browser)
