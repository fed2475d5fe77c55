"""Meal form session that rescales nutrition as the quantity changes."""

import math
from dataclasses import dataclass, field

from barcode_nutrition.domain.errors import InvalidServingSize, UnknownUnit
from barcode_nutrition.domain.nutrition import NutritionRecord
from barcode_nutrition.domain.serving import BaseNutritionProfile, ScalingMode
from barcode_nutrition.services.scaling import (
    UNIT_MULTIPLIERS,
    profile_for_product,
    profile_per_serving,
    scale,
    set_as_base,
)
from barcode_nutrition.services.serving import GRAM_FACTORS


@dataclass
class MealFormSession:
    """Holds the displayed values and the base profile for one meal edit.

    The base profile only changes through :meth:`set_as_base`,
    :meth:`enable_scaling` and :meth:`disable_scaling`; quantity changes
    always scale from it and never overwrite it.
    """

    displayed: NutritionRecord
    quantity: float = 1.0
    unit: str = "serving"
    profile: BaseNutritionProfile | None = None
    error: str | None = field(default=None, init=False)

    @classmethod
    def for_product(cls, record: NutritionRecord) -> "MealFormSession":
        """Start a session for a barcode-resolved product."""
        return cls(
            displayed=record,
            quantity=record.serving_size,
            unit=record.serving_unit,
            profile=profile_for_product(record),
        )

    @classmethod
    def for_estimate(
        cls, record: NutritionRecord, quantity: float = 1.0, unit: str = "serving"
    ) -> "MealFormSession":
        """Start a session for an AI or manual estimate made for ``quantity``."""
        return cls(
            displayed=record,
            quantity=quantity,
            unit=unit,
            profile=profile_per_serving(record, quantity, unit),
        )

    @property
    def can_submit(self) -> bool:
        return self.error is None

    @property
    def scaling_enabled(self) -> bool:
        return self.profile is not None

    def change_quantity(
        self, quantity: float, unit: str | None = None
    ) -> NutritionRecord:
        """Apply a new quantity and unit, rescaling when a profile is set.

        Invalid input leaves the displayed values untouched and blocks submit.
        """
        target_unit = unit or self.unit
        if self.profile is None:
            if not math.isfinite(quantity) or quantity <= 0:
                self.error = str(InvalidServingSize(quantity))
                return self.displayed
            self.quantity, self.unit, self.error = quantity, target_unit, None
            return self.displayed
        try:
            scaled = scale(self.profile, quantity, target_unit)
        except (InvalidServingSize, UnknownUnit) as exc:
            self.error = str(exc)
            return self.displayed
        self.displayed = scaled
        self.quantity, self.unit, self.error = quantity, target_unit, None
        return scaled

    def set_as_base(self) -> BaseNutritionProfile:
        """Use the currently displayed values as the new reference point."""
        mode = self.profile.mode if self.profile else ScalingMode.SERVING
        self.profile = set_as_base(self.displayed, self.quantity, self.unit, mode=mode)
        return self.profile

    def enable_scaling(self) -> BaseNutritionProfile:
        """Create a profile from the displayed values if none is set."""
        if self.profile is not None:
            return self.profile
        unit = self.unit.strip().lower()
        mode = (
            ScalingMode.SERVING
            if unit in UNIT_MULTIPLIERS or unit not in GRAM_FACTORS
            else ScalingMode.ABSOLUTE
        )
        self.profile = set_as_base(self.displayed, self.quantity, self.unit, mode=mode)
        return self.profile

    def disable_scaling(self) -> None:
        """Discard the base profile; values become fixed."""
        self.profile = None
