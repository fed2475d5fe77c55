"""Serving size and scaling profile models."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ServingSize:
    """A parsed serving size with its grams-equivalent."""

    value: float
    unit: str
    grams: float
    description: str


class ScalingMode(Enum):
    """How a base profile relates to a target quantity."""

    SERVING = "serving"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class BaseNutritionProfile:
    """Nutrition values for exactly one reference unit.

    In ``SERVING`` mode the reference is one serving and unit multipliers apply.
    In ``ABSOLUTE`` mode the values describe ``base_grams`` grams-equivalent of
    product and scaling uses a direct grams ratio.
    """

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None
    mode: ScalingMode = ScalingMode.SERVING
    base_grams: float | None = None
