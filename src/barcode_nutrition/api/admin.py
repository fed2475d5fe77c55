"""Admin API endpoints with simple token auth."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from barcode_nutrition.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])

_logger = logging.getLogger(__name__)


def _get_admin_token(request: Request) -> str | None:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str | None = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token.

    Admin routes stay closed when no token is configured.
    """
    if not admin_token or not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/cache/purge", dependencies=[Depends(require_admin)])
async def purge_cache(request: Request) -> dict[str, int]:
    """Delete expired product cache entries; meant to be called on a schedule."""
    container: AppContainer = request.app.state.container
    removed = container.product_cache.purge_expired()
    _logger.info("Purged %s expired cache entries", removed)
    return {"removed": removed}
