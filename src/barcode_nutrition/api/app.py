"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from barcode_nutrition.api.admin import router as admin_router
from barcode_nutrition.api.models import NutritionOut, ProductOut, ScaleRequest
from barcode_nutrition.app_logging import configure_logging
from barcode_nutrition.containers import AppContainer
from barcode_nutrition.domain.errors import LookupFailed, ProductNotFound
from barcode_nutrition.domain.nutrition import is_valid_barcode
from barcode_nutrition.services.scaling import scale


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        removed = app.state.container.product_cache.purge_expired()
        logger.info("Startup cache sweep removed %s expired products", removed)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/barcode/{barcode}", response_model=ProductOut)
    async def get_barcode_product(barcode: str, request: Request) -> object:
        """Resolve a barcode to a product with per-serving nutrition."""
        state_container: AppContainer = request.app.state.container
        barcode = barcode.strip()
        if not is_valid_barcode(barcode):
            return JSONResponse(
                {"error": "Invalid barcode"}, status_code=status.HTTP_400_BAD_REQUEST
            )
        try:
            product = await state_container.resolver.lookup(barcode)
        except ProductNotFound:
            return JSONResponse(
                {"error": "Product not found", "barcode": barcode},
                status_code=status.HTTP_404_NOT_FOUND,
            )
        except LookupFailed:
            logger.exception(
                "Error fetching barcode product", extra={"barcode": barcode}
            )
            return JSONResponse(
                {"error": "Failed to fetch product information"},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return ProductOut.from_product(product)

    @app.post("/nutrition/scale", response_model=NutritionOut)
    async def scale_nutrition(body: ScaleRequest) -> object:
        """Scale a base profile to a quantity and unit.

        Any input the scaler rejects gives 422.
        """
        try:
            record = scale(body.profile.to_profile(), body.quantity, body.unit)
        except ValueError as exc:
            return JSONResponse({"error": str(exc)}, status_code=422)
        return NutritionOut.from_record(record)

    return app
