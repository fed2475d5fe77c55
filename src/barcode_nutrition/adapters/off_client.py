"""Open Food Facts product API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

NOT_FOUND_PAYLOAD: dict[str, object] = {"status": 0}


class OpenFoodFactsClient(Protocol):
    """Interface for Open Food Facts product lookups."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout_seconds: float = 15
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            user_agent=user_agent,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product; an HTTP 404 is reported as ``status: 0``."""
        url = f"{self.base_url}/product/{barcode}.json"
        response = await self.http_client.get(
            url,
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout_seconds,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return dict(NOT_FOUND_PAYLOAD)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
