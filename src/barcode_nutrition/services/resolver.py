"""Barcode to nutrition resolution backed by a product cache."""

import dataclasses
import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime

import httpx

from barcode_nutrition.adapters.off_client import OpenFoodFactsClient
from barcode_nutrition.domain.errors import LookupFailed, ProductNotFound
from barcode_nutrition.domain.nutrition import (
    NutritionRecord,
    ScannedProduct,
    round_half_up,
)
from barcode_nutrition.domain.serving import ServingSize
from barcode_nutrition.services.cache import ProductCache, utc_now
from barcode_nutrition.services.serving import normalize_serving

_CALORIE_KEYS = ("energy_kcal_100g", "energy-kcal_100g")
_REQUIRED_NUTRIMENTS = {
    "protein": "proteins_100g",
    "carbs": "carbohydrates_100g",
    "fat": "fat_100g",
}
_OPTIONAL_NUTRIMENTS = {
    "fiber": "fiber_100g",
    "sugar": "sugars_100g",
}
_SODIUM_KEY = "sodium_100g"
_MG_PER_G = 1000

_logger = logging.getLogger(__name__)


@dataclass
class BarcodeResolver:
    """Resolve barcodes to nutrition records, cache first."""

    client: OpenFoodFactsClient
    cache: ProductCache
    clock: Callable[[], datetime] = utc_now

    async def resolve(self, barcode: str) -> NutritionRecord:
        """Return the nutrition record for one serving of the product."""
        product = await self.lookup(barcode)
        return product.nutrition

    async def lookup(self, barcode: str) -> ScannedProduct:
        """Return the full product, from cache when fresh."""
        cached = self.cache.get(barcode)
        if cached is not None and not cached.is_expired(self.clock()):
            _logger.debug("Product cache hit: barcode=%s", barcode)
            return dataclasses.replace(cached.product, source="cache")

        try:
            payload = await self.client.get_product(barcode)
        except httpx.HTTPError as exc:
            _logger.warning("Product lookup failed: barcode=%s error=%s", barcode, exc)
            raise LookupFailed(barcode, exc) from exc
        except ValueError as exc:
            raise LookupFailed(barcode, exc) from exc

        if not isinstance(payload, Mapping):
            _logger.warning(
                "Product payload is not an object: barcode=%s type=%s",
                barcode,
                type(payload).__name__,
            )
            raise LookupFailed(
                barcode, TypeError("Response payload must be a JSON object")
            )
        if payload.get("status") == 0:
            raise ProductNotFound(barcode)

        try:
            product = build_product(barcode, payload)
        except (KeyError, TypeError, ValueError) as exc:
            _logger.warning(
                "Product payload unusable: barcode=%s error=%s", barcode, exc
            )
            raise LookupFailed(barcode, exc) from exc

        self.cache.put(barcode, product)
        return product


def build_product(barcode: str, payload: Mapping[str, object]) -> ScannedProduct:
    """Build a product from an Open Food Facts response payload."""
    raw = payload.get("product")
    if not isinstance(raw, Mapping):
        raise ValueError("Response payload has no product")
    serving = normalize_serving(raw)
    nutriments = raw.get("nutriments") or {}
    if not isinstance(nutriments, Mapping):
        raise TypeError("Product nutriments must be a mapping")
    return ScannedProduct(
        barcode=barcode,
        name=str(raw.get("product_name") or "Unknown Product"),
        brand=_optional_text(raw.get("brands")),
        image_url=_optional_text(raw.get("image_url")),
        nutrition=scale_nutriments(nutriments, serving),
        source="openfoodfacts",
    )


def scale_nutriments(
    nutriments: Mapping[str, object], serving: ServingSize
) -> NutritionRecord:
    """Scale per-100-unit nutriments to the serving's grams-equivalent."""
    multiplier = serving.grams / 100
    calories = next(
        (
            value
            for value in (_number(nutriments.get(key)) for key in _CALORIE_KEYS)
            if value is not None
        ),
        0.0,
    )
    values: dict[str, float | None] = {
        name: round_half_up((_number(nutriments.get(key)) or 0.0) * multiplier)
        for name, key in _REQUIRED_NUTRIMENTS.items()
    }
    for name, key in _OPTIONAL_NUTRIMENTS.items():
        amount = _number(nutriments.get(key))
        values[name] = None if amount is None else round_half_up(amount * multiplier)
    sodium = _number(nutriments.get(_SODIUM_KEY))
    values["sodium"] = (
        None if sodium is None else round_half_up(sodium * multiplier * _MG_PER_G)
    )
    return NutritionRecord(
        calories=round_half_up(calories * multiplier, 0),
        serving_size=serving.value,
        serving_unit=serving.unit,
        serving_description=serving.description,
        **values,
    )


def _number(value: object) -> float | None:
    """Coerce numeric or numeric-string nutriment values."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        number = float(value.strip().replace(",", "."))
    else:
        return None
    if not math.isfinite(number):
        raise ValueError(f"Nutriment value must be finite, got {value!r}")
    return number


def _optional_text(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None
