"""Pydantic request and response models for the HTTP API."""

from pydantic import BaseModel, Field

from barcode_nutrition.domain.nutrition import NutritionRecord, ScannedProduct
from barcode_nutrition.domain.serving import BaseNutritionProfile, ScalingMode


class NutritionOut(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None
    serving_size: float
    serving_unit: str
    serving_description: str = ""

    @classmethod
    def from_record(cls, record: NutritionRecord) -> "NutritionOut":
        return cls.model_validate(record.to_dict())


class ProductOut(BaseModel):
    """Resolved product returned by the barcode endpoint."""

    barcode: str
    name: str
    brand: str | None = None
    image_url: str | None = None
    source: str
    nutrition: NutritionOut

    @classmethod
    def from_product(cls, product: ScannedProduct) -> "ProductOut":
        return cls(
            barcode=product.barcode,
            name=product.name,
            brand=product.brand,
            image_url=product.image_url,
            source=product.source,
            nutrition=NutritionOut.from_record(product.nutrition),
        )


class ProfileIn(BaseModel):
    """Base nutrition values for one reference unit."""

    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    fiber: float | None = Field(default=None, ge=0)
    sugar: float | None = Field(default=None, ge=0)
    sodium: float | None = Field(default=None, ge=0)
    mode: ScalingMode = ScalingMode.SERVING
    base_grams: float | None = Field(default=None, gt=0)

    def to_profile(self) -> BaseNutritionProfile:
        return BaseNutritionProfile(**self.model_dump())


class ScaleRequest(BaseModel):
    profile: ProfileIn
    quantity: float
    unit: str = "serving"
