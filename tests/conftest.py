"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from barcode_nutrition.adapters.off_client import OpenFoodFactsClient
from barcode_nutrition.config import Settings
from barcode_nutrition.containers import AppContainer
from barcode_nutrition.domain.errors import CameraUnavailable
from barcode_nutrition.domain.nutrition import CachedProduct, ScannedProduct
from barcode_nutrition.domain.scanning import DecodeEvent
from barcode_nutrition.services.cache import InMemoryProductCache, ProductCache
from barcode_nutrition.services.resolver import BarcodeResolver
from barcode_nutrition.services.scanner import FrameDecoder, FrameSource

COLA_BARCODE = "5449000000996"


def cola_payload() -> dict[str, object]:
    return {
        "status": 1,
        "code": COLA_BARCODE,
        "product": {
            "product_name": "Cola Classic",
            "brands": "Fizz Co",
            "image_url": "https://images.example/cola.jpg",
            "serving_size": "330 ml",
            "quantity": "1.5 l",
            "nutriments": {
                "energy-kcal_100g": 42,
                "proteins_100g": 0,
                "carbohydrates_100g": 10.6,
                "sugars_100g": 10.6,
                "fat_100g": 0,
                "sodium_100g": 0.01,
            },
        },
    }


@dataclass
class FakeOffClient(OpenFoodFactsClient):
    """Fake Open Food Facts client that counts calls."""

    payloads: dict[str, dict[str, object]] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def get_product(self, barcode: str) -> dict[str, object]:
        self.calls.append(barcode)
        if self.error is not None:
            raise self.error
        return self.payloads.get(barcode, {"status": 0})


@dataclass
class BrokenProductCache(ProductCache):
    """Cache whose reads miss and whose writes are dropped."""

    puts: int = 0

    def get(self, barcode: str) -> CachedProduct | None:
        return None

    def put(self, barcode: str, product: ScannedProduct) -> None:
        self.puts += 1

    def purge_expired(self) -> int:
        return 0


@dataclass
class FakeFrameSource(FrameSource):
    """Frame source that replays a fixed list of frames."""

    frames: list[object] = field(default_factory=list)
    open_error: CameraUnavailable | None = None
    open_delay: float = 0.0
    opened: bool = False
    close_calls: int = 0
    read_calls: int = 0

    async def open(self) -> None:
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def read_frame(self) -> object | None:
        self.read_calls += 1
        if not self.frames:
            return None
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame

    async def close(self) -> None:
        self.close_calls += 1


@dataclass
class FakeFrameDecoder(FrameDecoder):
    """Decoder that treats string frames as payloads and None as a miss."""

    def decode(self, frame: object) -> DecodeEvent:
        if isinstance(frame, str):
            return DecodeEvent.found(frame)
        if isinstance(frame, Exception):
            return DecodeEvent.failed(frame)
        return DecodeEvent.miss()


class FixedClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def settings() -> Settings:
    return Settings(
        admin_token="admin-token",
        product_cache_backend="memory",
    )


@pytest.fixture
def off_client() -> FakeOffClient:
    return FakeOffClient(payloads={COLA_BARCODE: cola_payload()})


@pytest.fixture
def container(settings: Settings, off_client: FakeOffClient) -> AppContainer:
    product_cache = InMemoryProductCache()
    resolver = BarcodeResolver(client=off_client, cache=product_cache)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        product_cache=product_cache,
        resolver=resolver,
        close_resources=close_resources,
    )
