"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from barcode_nutrition.adapters.off_client import HttpxOpenFoodFactsClient
from barcode_nutrition.adapters.supabase_product_cache import SupabaseProductCache
from barcode_nutrition.config import Settings
from barcode_nutrition.services.cache import InMemoryProductCache, ProductCache
from barcode_nutrition.services.resolver import BarcodeResolver


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    product_cache: ProductCache
    resolver: BarcodeResolver
    close_resources: Callable[[], Awaitable[None]]


def build_product_cache(settings: Settings) -> ProductCache:
    """Create the configured product cache backend."""
    if settings.product_cache_backend == "memory":
        return InMemoryProductCache(ttl=settings.product_cache_ttl)
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError("Supabase cache backend requires SUPABASE_URL and key")
    supabase_client = create_client(
        settings.supabase_url, settings.supabase_service_key
    )
    return SupabaseProductCache(
        supabase_client,
        table=settings.product_cache_table,
        ttl=settings.product_cache_ttl,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    product_cache = build_product_cache(resolved_settings)
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout_seconds=resolved_settings.off_timeout_seconds,
    )
    resolver = BarcodeResolver(client=off_client, cache=product_cache)

    async def close_resources() -> None:
        await off_client.close()

    return AppContainer(
        settings=resolved_settings,
        product_cache=product_cache,
        resolver=resolver,
        close_resources=close_resources,
    )
