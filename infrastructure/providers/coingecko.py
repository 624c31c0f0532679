from collections.abc import Mapping
from decimal import Decimal, InvalidOperation

import httpx

from domain.exceptions.currency import ProviderError
from infrastructure.providers.base import get_with_retry


class CoinGeckoClient:
    BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str,
        currency_ids: Mapping[str, str],
        client: httpx.AsyncClient | None = None,
        base_url: str = BASE_URL,
        timeout: int = 10,
        max_attempts: int = 3,
    ):
        self.api_key = api_key
        self.currency_ids = {code.upper(): coin_id for code, coin_id in currency_ids.items()}
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"x-cg-pro-api-key": api_key},
        )

    @property
    def name(self) -> str:
        return "coingecko"

    async def _request(self, endpoint: str, params: dict) -> dict:
        url = f"{self.base_url}/{endpoint}"
        try:
            response = await get_with_retry(self._client, url, params=params, max_attempts=self.max_attempts)
            data = response.json()

            if isinstance(data, dict) and "status" in data and "error_message" in data["status"]:
                raise ProviderError(f"CoinGecko API error: {data['status']['error_message']}")

            return data

        except ProviderError:
            raise
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"CoinGecko HTTP error {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(f"CoinGecko request failed: {e.__class__.__name__}") from e
        except Exception as e:
            raise ProviderError(f"CoinGecko response parsing error: {str(e)}") from e

    async def get_spot_price(self, currency: str, fiat_currency: str) -> Decimal:
        coin_id = self.currency_ids.get(currency.upper())
        if coin_id is None:
            raise ProviderError(f"No CoinGecko id configured for {currency}")

        fiat = fiat_currency.lower()
        data = await self._request("simple/price", {"ids": coin_id, "vs_currencies": fiat})

        try:
            price = Decimal(str(data[coin_id][fiat]))
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Price for {currency} in {fiat_currency.upper()} not found in CoinGecko response") from e
        except InvalidOperation as e:
            raise ProviderError(f"Malformed CoinGecko price for {currency}") from e

        if not price.is_finite():
            raise ProviderError(f"CoinGecko returned non-finite price {price} for {currency}")
        if price <= 0:
            raise ProviderError(f"CoinGecko returned non-positive price {price} for {currency}")

        return price

    async def close(self) -> None:
        await self._client.aclose()
