"""Linear nutrition scaling by quantity and unit."""

import math

from barcode_nutrition.domain.errors import InvalidServingSize, UnknownUnit
from barcode_nutrition.domain.nutrition import (
    NUTRIENT_FIELDS,
    NutritionRecord,
    round_half_up,
)
from barcode_nutrition.domain.serving import BaseNutritionProfile, ScalingMode
from barcode_nutrition.services.serving import grams_equivalent

UNIT_MULTIPLIERS: dict[str, float] = {
    "serving": 1.0,
    "cup": 1.2,
    "piece": 0.8,
    "slice": 0.6,
    "bowl": 1.5,
    "plate": 2.0,
    "gram": 0.01,
    "ounce": 0.28,
}


def unit_multiplier(unit: str) -> float:
    """Return the multiplier of ``unit`` relative to one serving."""
    multiplier = UNIT_MULTIPLIERS.get(unit.strip().lower())
    if multiplier is None:
        raise UnknownUnit(unit)
    return multiplier


def scale(
    profile: BaseNutritionProfile, quantity: float, unit: str
) -> NutritionRecord:
    """Scale a base profile to ``quantity`` of ``unit``.

    The profile itself is never modified, so scaling to A and then to B gives
    the same result as scaling to B directly.
    """
    factor = _factor(profile, quantity, unit)
    values = {
        name: None if value is None else round_half_up(value * factor)
        for name, value in _nutrients(profile).items()
    }
    return NutritionRecord(
        serving_size=quantity,
        serving_unit=unit,
        serving_description=f"{quantity:g} {unit}",
        **values,
    )


def set_as_base(
    values: NutritionRecord,
    quantity: float,
    unit: str,
    mode: ScalingMode = ScalingMode.SERVING,
) -> BaseNutritionProfile:
    """Recover a base profile from currently displayed values.

    ``values`` are the already-scaled numbers shown for ``quantity`` of
    ``unit``. In serving mode the current multiplier is divided out; in
    absolute mode the profile is re-anchored at the current grams-equivalent.
    """
    _check_quantity(quantity)
    nutrients = values.nutrients()
    if mode is ScalingMode.ABSOLUTE:
        return BaseNutritionProfile(
            **nutrients,
            mode=ScalingMode.ABSOLUTE,
            base_grams=grams_equivalent(quantity, unit),
        )
    divisor = quantity * unit_multiplier(unit)
    return BaseNutritionProfile(
        **{
            name: None if value is None else value / divisor
            for name, value in nutrients.items()
        },
        mode=ScalingMode.SERVING,
    )


def profile_for_product(record: NutritionRecord) -> BaseNutritionProfile:
    """Build an absolute profile anchored at a product's resolved serving."""
    return set_as_base(
        record, record.serving_size, record.serving_unit, mode=ScalingMode.ABSOLUTE
    )


def profile_per_serving(
    record: NutritionRecord, quantity: float, unit: str = "serving"
) -> BaseNutritionProfile:
    """Build a per-serving profile from an estimate made for ``quantity`` units."""
    return set_as_base(record, quantity, unit, mode=ScalingMode.SERVING)


def _factor(profile: BaseNutritionProfile, quantity: float, unit: str) -> float:
    _check_quantity(quantity)
    if profile.mode is ScalingMode.ABSOLUTE:
        if not profile.base_grams or profile.base_grams <= 0:
            raise InvalidServingSize(profile.base_grams or 0.0)
        return grams_equivalent(quantity, unit) / profile.base_grams
    return quantity * unit_multiplier(unit)


def _check_quantity(quantity: float) -> None:
    if not math.isfinite(quantity) or quantity <= 0:
        raise InvalidServingSize(quantity)


def _nutrients(profile: BaseNutritionProfile) -> dict[str, float | None]:
    return {name: getattr(profile, name) for name in NUTRIENT_FIELDS}
