"""Nutrition domain models."""

import math
from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Context, Decimal

from barcode_nutrition.domain.errors import InvalidServingSize

MIN_BARCODE_LENGTH = 8
CACHE_TTL = timedelta(days=7)

NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber", "sugar", "sodium")

# Wide enough to quantize any finite float to a tenth.
_ROUNDING = Context(prec=400, rounding=ROUND_HALF_UP)


def is_valid_barcode(barcode: str | None) -> bool:
    """Return true when the barcode is long enough to be looked up."""
    return bool(barcode) and len(barcode.strip()) >= MIN_BARCODE_LENGTH


@dataclass(frozen=True)
class NutritionRecord:
    """Nutrition content for a concrete serving size.

    Gram quantities are in grams, ``sodium`` is in milligrams and ``calories``
    in kcal. ``serving_description`` keeps the upstream text for display.
    """

    calories: float
    protein: float
    carbs: float
    fat: float
    serving_size: float
    serving_unit: str
    serving_description: str = ""
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None

    def __post_init__(self) -> None:
        for name in NUTRIENT_FIELDS:
            value = getattr(self, name)
            if value is not None and not (math.isfinite(value) and value >= 0):
                raise ValueError(
                    f"{name} must be a finite non-negative number, got {value}"
                )
        if not (math.isfinite(self.serving_size) and self.serving_size > 0):
            raise InvalidServingSize(self.serving_size)

    def nutrients(self) -> dict[str, float | None]:
        """Return nutrient values keyed by field name."""
        return {name: getattr(self, name) for name in NUTRIENT_FIELDS}

    def to_dict(self) -> dict[str, object]:
        return {item.name: getattr(self, item.name) for item in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "NutritionRecord":
        return cls(
            calories=float(data.get("calories", 0.0)),
            protein=float(data.get("protein", 0.0)),
            carbs=float(data.get("carbs", 0.0)),
            fat=float(data.get("fat", 0.0)),
            fiber=_optional_float(data.get("fiber")),
            sugar=_optional_float(data.get("sugar")),
            sodium=_optional_float(data.get("sodium")),
            serving_size=float(data.get("serving_size", 100.0)),
            serving_unit=str(data.get("serving_unit", "g")),
            serving_description=str(data.get("serving_description", "")),
        )


@dataclass(frozen=True)
class ScannedProduct:
    """A resolved product with nutrition for its serving."""

    barcode: str
    name: str
    nutrition: NutritionRecord
    brand: str | None = None
    image_url: str | None = None
    source: str = "openfoodfacts"

    def to_dict(self) -> dict[str, object]:
        return {
            "barcode": self.barcode,
            "name": self.name,
            "brand": self.brand,
            "image_url": self.image_url,
            "source": self.source,
            "nutrition": self.nutrition.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ScannedProduct":
        nutrition = data.get("nutrition") or {}
        return cls(
            barcode=str(data["barcode"]),
            name=str(data.get("name") or "Unknown Product"),
            brand=data.get("brand"),
            image_url=data.get("image_url"),
            source=str(data.get("source", "openfoodfacts")),
            nutrition=NutritionRecord.from_dict(nutrition),
        )


@dataclass(frozen=True)
class CachedProduct:
    """A cached product with its expiry window."""

    barcode: str
    product: ScannedProduct
    cached_at: datetime
    expires_at: datetime

    @property
    def record(self) -> NutritionRecord:
        return self.product.nutrition

    def is_expired(self, now: datetime) -> bool:
        """Return true once the entry should be ignored."""
        return self.expires_at <= now


def round_half_up(value: float, digits: int = 1) -> float:
    """Round halves away from zero, matching how values are shown to users."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value {value}")
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, context=_ROUNDING))


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)
