"""Collaborators around the polling engine.

Config persistence, restock notifications and the browser opener live here;
the engine itself is in stockwatch.scrapers.
"""

from stockwatch.services.browser_opener import BrowserOpener, NoOpBrowserOpener, WebBrowserOpener
from stockwatch.services.config_store import load_config, save_config
from stockwatch.services.notification_service import DiscordNotifier

__all__ = [
    "BrowserOpener",
    "NoOpBrowserOpener",
    "WebBrowserOpener",
    "load_config",
    "save_config",
    "DiscordNotifier",
]
