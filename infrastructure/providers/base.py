from decimal import Decimal
from typing import Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

RETRY_WAIT = wait_exponential(multiplier=1, min=1, max=10)


class FiatRateProvider(Protocol):
    @property
    def name(self) -> str:
        ...

    async def get_conversions_for_base(self, base_currency: str) -> dict[str, Decimal]:
        ...

    async def close(self) -> None:
        ...


class SpotPriceProvider(Protocol):
    @property
    def name(self) -> str:
        ...

    async def get_spot_price(self, currency: str, fiat_currency: str) -> Decimal:
        ...

    async def close(self) -> None:
        ...


async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: dict | None = None,
    max_attempts: int = 3,
) -> httpx.Response:
    """GET that retries transport failures. HTTP status errors are never retried."""
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=RETRY_WAIT,
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    ):
        with attempt:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response
