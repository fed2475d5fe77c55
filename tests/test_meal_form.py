"""Tests for the meal form scaling session."""

from barcode_nutrition.domain.nutrition import NutritionRecord
from barcode_nutrition.domain.serving import ScalingMode
from barcode_nutrition.services.meal_form import MealFormSession


def _estimate() -> NutritionRecord:
    return NutritionRecord(
        calories=100, protein=4, carbs=15, fat=2, serving_size=1, serving_unit="serving"
    )


def test_change_quantity_scales_from_base() -> None:
    session = MealFormSession.for_estimate(_estimate())

    session.change_quantity(2, "cup")
    displayed = session.change_quantity(1, "serving")

    assert displayed.calories == 100
    assert session.can_submit


def test_invalid_quantity_keeps_previous_values() -> None:
    session = MealFormSession.for_estimate(_estimate())
    before = session.change_quantity(3, "piece")

    after_zero = session.change_quantity(0)
    after_negative = session.change_quantity(-2, "cup")

    assert after_zero == before
    assert after_negative == before
    assert session.displayed == before
    assert session.quantity == 3
    assert session.unit == "piece"
    assert not session.can_submit

    session.change_quantity(1)
    assert session.can_submit


def test_set_as_base_redefines_reference() -> None:
    session = MealFormSession.for_estimate(_estimate())
    session.change_quantity(2, "cup")

    profile = session.set_as_base()
    restored = session.change_quantity(1, "serving")

    assert round(profile.calories, 6) == 100
    assert abs(restored.calories - 100) <= 0.1


def test_product_session_scales_by_grams() -> None:
    record = NutritionRecord(
        calories=210, protein=3, carbs=40, fat=4, serving_size=150, serving_unit="g"
    )
    session = MealFormSession.for_product(record)

    doubled = session.change_quantity(300)

    assert session.profile is not None
    assert session.profile.mode is ScalingMode.ABSOLUTE
    assert doubled.calories == 420
    assert doubled.serving_unit == "g"


def test_disable_scaling_fixes_values() -> None:
    session = MealFormSession.for_estimate(_estimate())
    session.disable_scaling()

    displayed = session.change_quantity(4, "bowl")

    assert not session.scaling_enabled
    assert displayed.calories == 100
    assert session.quantity == 4


def test_enable_scaling_uses_displayed_values() -> None:
    session = MealFormSession(displayed=_estimate(), quantity=2, unit="slice")

    profile = session.enable_scaling()

    assert profile.mode is ScalingMode.SERVING
    assert round(profile.calories, 2) == round(100 / 1.2, 2)
