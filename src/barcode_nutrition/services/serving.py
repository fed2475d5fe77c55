"""Serving size normalization for upstream product payloads.

Upstream serving data is free text spread across several fields. Each
strategy below returns a :class:`ServingSize` or ``None`` and can be used on
its own; :func:`normalize_serving` chains them.
"""

import logging
import math
import re
from collections.abc import Mapping

from barcode_nutrition.domain.errors import UnknownUnit
from barcode_nutrition.domain.serving import ServingSize

SERVING_FIELDS = ("serving_size", "net_quantity", "product_quantity", "quantity")
DEFAULT_SERVING_TEXT = "100g"
DEFAULT_SERVING = ServingSize(
    value=100.0, unit="g", grams=100.0, description=DEFAULT_SERVING_TEXT
)

# ml is treated as mass-equivalent to g.
GRAM_FACTORS: dict[str, float] = {
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "ml": 1.0,
    "cl": 10.0,
    "l": 1000.0,
    "kg": 1000.0,
    "oz": 28.35,
    "ounce": 28.35,
}

_SERVING_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*(g|ml|l|kg|cl)?", re.IGNORECASE)
_NAME_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*(ml|g|l)\b", re.IGNORECASE)

_logger = logging.getLogger(__name__)


def grams_equivalent(value: float, unit: str) -> float:
    """Convert a value in ``unit`` to grams-equivalent."""
    factor = GRAM_FACTORS.get(unit.strip().lower())
    if factor is None:
        raise UnknownUnit(unit)
    return value * factor


def parse_serving_text(text: str) -> ServingSize | None:
    """Parse ``<number> <unit>`` text.

    Returns None when nothing matches or the size is not a finite number.
    """
    match = _SERVING_PATTERN.search(text)
    if match is None:
        return None
    return _build_serving(match.group(1), (match.group(2) or "g").lower(), text)


def declared_serving(product: Mapping[str, object]) -> ServingSize | None:
    """Parse the first non-empty serving field of the product.

    The first populated field wins even when it cannot be parsed; in that case
    the size falls back to 100 g while keeping the declared text.
    """
    text = _first_serving_text(product)
    if text is None:
        return None
    parsed = parse_serving_text(text)
    if parsed is None:
        return ServingSize(value=100.0, unit="g", grams=100.0, description=text)
    return parsed


def serving_from_name(product: Mapping[str, object]) -> ServingSize | None:
    """Recover a size from product titles such as ``"Cola 500ml Bottle"``."""
    name = product.get("product_name")
    if not isinstance(name, str) or not name:
        return None
    match = _NAME_PATTERN.search(name.lower())
    if match is None:
        return None
    return _build_serving(match.group(1), match.group(2), match.group(0))


def normalize_serving(product: Mapping[str, object]) -> ServingSize:
    """Return the best-effort serving size for an upstream product."""
    serving = declared_serving(product) or DEFAULT_SERVING
    if serving.grams == 100 or serving.grams <= 0:
        from_name = serving_from_name(product)
        if from_name is not None and from_name.grams > 0:
            _logger.debug(
                "Serving size recovered from product name: %s", from_name.description
            )
            return ServingSize(
                value=from_name.value,
                unit=from_name.unit,
                grams=from_name.grams,
                description=serving.description,
            )
    if serving.grams <= 0:
        return ServingSize(
            value=100.0, unit="g", grams=100.0, description=serving.description
        )
    return serving


def _first_serving_text(product: Mapping[str, object]) -> str | None:
    for field in SERVING_FIELDS:
        value = product.get(field)
        if value is None or isinstance(value, bool):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _build_serving(raw: str, unit: str, description: str) -> ServingSize | None:
    value = float(raw.replace(",", "."))
    grams = grams_equivalent(value, unit)
    if not math.isfinite(grams):
        return None
    return ServingSize(value=value, unit=unit, grams=grams, description=description)
