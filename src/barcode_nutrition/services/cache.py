"""Product cache abstractions."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from barcode_nutrition.domain.nutrition import CACHE_TTL, CachedProduct, ScannedProduct


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ProductCache(Protocol):
    """Key-value store of resolved products keyed by barcode.

    Implementations never raise: storage failures are logged and treated as a
    miss, a dropped write, or an empty purge.
    """

    def get(self, barcode: str) -> CachedProduct | None:
        """Return the cached entry, expired or not, if present."""

    def put(self, barcode: str, product: ScannedProduct) -> None:
        """Upsert a product with a fresh expiry window."""

    def purge_expired(self) -> int:
        """Delete expired entries and return how many were removed."""


@dataclass
class InMemoryProductCache(ProductCache):
    """Process-local product cache."""

    ttl: timedelta = CACHE_TTL
    clock: Callable[[], datetime] = utc_now
    _entries: dict[str, CachedProduct] = field(default_factory=dict)

    def get(self, barcode: str) -> CachedProduct | None:
        """Return the cached entry for a barcode."""
        return self._entries.get(barcode)

    def put(self, barcode: str, product: ScannedProduct) -> None:
        """Store a product with a TTL."""
        cached_at = self.clock()
        self._entries[barcode] = CachedProduct(
            barcode=barcode,
            product=product,
            cached_at=cached_at,
            expires_at=cached_at + self.ttl,
        )

    def purge_expired(self) -> int:
        """Drop every entry whose expiry has passed."""
        now = self.clock()
        expired = [
            barcode
            for barcode, entry in self._entries.items()
            if entry.expires_at < now
        ]
        for barcode in expired:
            self._entries.pop(barcode, None)
        return len(expired)
