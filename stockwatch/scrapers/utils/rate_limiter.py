"""Per-retailer cool-down store.

A retailer key that answered with a throttling response is skipped until its
cool-down expires. Expiry is checked lazily: stale entries are simply treated
as "not limited" and get overwritten by the next limit event.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterator, Mapping, Optional, Tuple


DEFAULT_COOLDOWN = timedelta(minutes=2)


class RateLimitStore:
    """Mapping from retailer key to cool-down expiry timestamp.

    Only the polling engine writes to the store, and only from its sequential
    aggregation step, so no lock is needed.
    """

    def __init__(
        self,
        entries: Optional[Mapping[str, datetime]] = None,
        cooldown: timedelta = DEFAULT_COOLDOWN,
    ):
        """Initialize the store.

        Args:
            entries: Existing key -> expiry map (e.g. loaded from config)
            cooldown: Window applied by set_limit()
        """
        self.cooldown = cooldown
        self._expiries: Dict[str, datetime] = dict(entries or {})

    def is_limited(self, key: str, now: datetime) -> bool:
        """Return True iff an entry exists for key and now < expiry."""
        expiry = self._expiries.get(key)
        if expiry is None:
            return False
        return now < expiry

    def set_limit(self, key: str, now: datetime) -> datetime:
        """Insert or overwrite the cool-down for key.

        Args:
            key: Retailer key
            now: Current time; expiry is now + cooldown

        Returns:
            The new expiry timestamp
        """
        expiry = now + self.cooldown
        self._expiries[key] = expiry
        return expiry

    def get_expiry(self, key: str) -> Optional[datetime]:
        return self._expiries.get(key)

    def prune(self, now: datetime) -> int:
        """Drop expired entries.

        Returns:
            Number of entries removed
        """
        stale = [key for key, expiry in self._expiries.items() if expiry <= now]
        for key in stale:
            del self._expiries[key]
        return len(stale)

    def to_dict(self) -> Dict[str, datetime]:
        """Snapshot suitable for persisting in the config file."""
        return dict(self._expiries)

    def items(self) -> Iterator[Tuple[str, datetime]]:
        return iter(self._expiries.items())

    def __len__(self) -> int:
        return len(self._expiries)

    def __contains__(self, key: object) -> bool:
        return key in self._expiries
