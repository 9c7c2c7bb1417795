"""Discord webhook notifications for restocks and detection regressions."""

from typing import Optional

import httpx
import structlog

from stockwatch.core.exceptions import NotificationError
from stockwatch.schemas.discord import DiscordWebhook, WebhookEmbed
from stockwatch.schemas.target import Target
from stockwatch.scrapers.utils.retry import http_retry


logger = structlog.get_logger(__name__)


BOT_USERNAME = "Product Notifier"
BOT_AVATAR_URL = (
    "https://www.amd.com/system/files/styles/992px/private/2020-09/"
    "616656-amd-ryzen-9-5000-series-PIB-1260x709_0.png"
)
TEST_NOT_FOUND_DESCRIPTION = (
    "Test product was not in stock, if the link shows it is in stock "
    "there's probably a bug with the provider implementation."
)


class DiscordNotifier:
    """Posts embeds to a Discord webhook.

    Without a webhook URL every call is a logged no-op, so the monitor can run
    with console output only.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """Initialize the notifier.

        Args:
            webhook_url: Discord webhook URL, or None to disable delivery
            http_client: Client to post with; a short-lived one is used if None
            timeout: Request timeout when no client is injected
        """
        self.webhook_url = webhook_url
        self.http_client = http_client
        self.timeout = timeout
        self.logger = logger.bind(service="discord_notifier")

    async def notify_restock(self, target: Target) -> None:
        """Announce that a target is in stock."""
        message = target.new_stock_message()
        self.logger.info("restock_found", target_key=target.key, target_name=target.name, message=message)
        await self._send(
            WebhookEmbed(
                title=f"Found Product [{target.name}] {target.key}",
                url=target.url,
                description=message,
            )
        )

    async def notify_test_target_not_found(self, target: Target) -> None:
        """Alert that a test target was reported out of stock."""
        self.logger.warning("test_target_alert", target_key=target.key, target_name=target.name)
        await self._send(
            WebhookEmbed(
                title=f"Test Product [{target.name}] not In Stock at {target.key}",
                url=target.url,
                description=TEST_NOT_FOUND_DESCRIPTION,
            )
        )

    async def _send(self, embed: WebhookEmbed) -> None:
        if not self.webhook_url:
            self.logger.debug("webhook_skipped", reason="no_webhook_url", title=embed.title)
            return

        payload = DiscordWebhook(
            username=BOT_USERNAME,
            avatar_url=BOT_AVATAR_URL,
            embeds=[embed],
        )
        try:
            response = await self._post(payload.model_dump(mode="json"))
        except httpx.HTTPError as e:
            raise NotificationError("discord", str(e) or type(e).__name__) from e

        if not response.is_success:
            raise NotificationError("discord", f"webhook returned status {response.status_code}")

    @http_retry
    async def _post(self, body: dict) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.post(self.webhook_url, json=body)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.webhook_url, json=body)
