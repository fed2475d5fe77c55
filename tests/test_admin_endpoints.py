"""Tests for admin endpoints."""

from datetime import timedelta

from fastapi.testclient import TestClient

from barcode_nutrition.api.app import create_app
from barcode_nutrition.config import Settings
from barcode_nutrition.domain.nutrition import NutritionRecord, ScannedProduct
from barcode_nutrition.services.cache import InMemoryProductCache
from tests.conftest import FixedClock


def _product(barcode: str) -> ScannedProduct:
    return ScannedProduct(
        barcode=barcode,
        name="Rice Cakes",
        nutrition=NutritionRecord(
            calories=35, protein=1, carbs=7, fat=0, serving_size=9, serving_unit="g"
        ),
    )


def test_admin_requires_token(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/admin/health").status_code == 401
    response = client.post("/admin/cache/purge", headers={"X-Admin-Token": "nope"})
    assert response.status_code == 401


def test_admin_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health", headers={"X-Admin-Token": "admin-token"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_admin_purge_removes_expired_products(container) -> None:
    clock = FixedClock()
    cache = InMemoryProductCache(clock=clock)
    container.product_cache = cache
    cache.put("11111111", _product("11111111"))
    cache.put("22222222", _product("22222222"))
    clock.now = clock.now + timedelta(days=8)
    cache.put("33333333", _product("33333333"))
    client = TestClient(create_app(container))

    response = client.post(
        "/admin/cache/purge", headers={"X-Admin-Token": "admin-token"}
    )

    assert response.status_code == 200
    assert response.json() == {"removed": 2}
    assert cache.get("33333333") is not None


def test_admin_closed_without_configured_token(container) -> None:
    container.settings = Settings(admin_token=None, product_cache_backend="memory")
    client = TestClient(create_app(container))

    assert client.get("/admin/health").status_code == 401
    response = client.get("/admin/health", headers={"X-Admin-Token": "guess"})
    assert response.status_code == 401
