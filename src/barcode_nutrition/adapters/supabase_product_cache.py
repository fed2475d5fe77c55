"""Supabase implementation of the barcode product cache."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from supabase import Client

from barcode_nutrition.domain.nutrition import CACHE_TTL, CachedProduct, ScannedProduct
from barcode_nutrition.services.cache import ProductCache, utc_now

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseProductCache(ProductCache):
    """Supabase-backed product cache with an ``expires_at`` column."""

    client: Client
    table: str = "barcode_products"
    ttl: timedelta = CACHE_TTL
    clock: Callable[[], datetime] = utc_now

    def get(self, barcode: str) -> CachedProduct | None:
        """Return a cached product row, or None on miss or storage failure."""
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("barcode", barcode)
                .limit(1)
                .execute()
            )
            if not response.data:
                return None
            return _parse_cached_product(response.data[0])
        except Exception as exc:
            _logger.warning("Failed to get cached product %s: %s", barcode, exc)
            return None

    def put(self, barcode: str, product: ScannedProduct) -> None:
        """Upsert a product row with a fresh expiry."""
        cached_at = self.clock()
        try:
            self.client.table(self.table).upsert(
                {
                    "barcode": barcode,
                    "product": product.to_dict(),
                    "cached_at": cached_at.isoformat(),
                    "expires_at": (cached_at + self.ttl).isoformat(),
                },
                on_conflict="barcode",
            ).execute()
        except Exception as exc:
            _logger.warning("Failed to cache product %s: %s", barcode, exc)

    def purge_expired(self) -> int:
        """Delete rows whose expiry is in the past."""
        now = self.clock()
        try:
            response = (
                self.client.table(self.table)
                .delete()
                .lt("expires_at", now.isoformat())
                .execute()
            )
        except Exception as exc:
            _logger.warning("Failed to clear expired cache: %s", exc)
            return 0
        return len(response.data or [])


def _parse_cached_product(row: dict[str, object]) -> CachedProduct:
    """Parse a cache row into a domain model."""
    product = row.get("product")
    if not isinstance(product, dict):
        raise ValueError("Cached row is missing its product payload")
    return CachedProduct(
        barcode=str(row["barcode"]),
        product=ScannedProduct.from_dict(product),
        cached_at=_parse_timestamp(row["cached_at"]),
        expires_at=_parse_timestamp(row["expires_at"]),
    )


def _parse_timestamp(value: object) -> datetime:
    """Parse a stored timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
