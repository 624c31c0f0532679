from decimal import Decimal, InvalidOperation

import httpx

from domain.exceptions.currency import ProviderError
from infrastructure.providers.base import get_with_retry


class FixerClient:
	BASE_URL = 'https://data.fixer.io/api'

	def __init__(
		self,
		api_key: str,
		client: httpx.AsyncClient | None = None,
		base_url: str = BASE_URL,
		timeout: int = 10,
		max_attempts: int = 3,
	):
		self.api_key = api_key
		self.base_url = base_url.rstrip('/')
		self.max_attempts = max_attempts
		self._client = client or httpx.AsyncClient(timeout=timeout)

	@property
	def name(self) -> str:
		return 'fixer'

	async def _request(self, endpoint: str, params: dict) -> dict:
		params['access_key'] = self.api_key
		url = f'{self.base_url}/{endpoint}'

		try:
			response = await get_with_retry(self._client, url, params=params, max_attempts=self.max_attempts)
			data = response.json()

			if not data.get('success', False):
				info = data.get('error', {}).get('info', 'Unknown error')
				raise ProviderError(f'Fixer API error: {info}')

			return data

		except ProviderError:
			raise
		except httpx.HTTPStatusError as e:
			raise ProviderError(
				f'Fixer HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise ProviderError(f'Fixer request failed: {e.__class__.__name__}') from e
		except Exception as e:
			raise ProviderError(f'Fixer response parsing error: {str(e)}') from e

	async def get_conversions_for_base(self, base_currency: str) -> dict[str, Decimal]:
		data = await self._request('latest', {'base': base_currency.upper()})
		try:
			rates = {code.upper(): Decimal(str(rate)) for code, rate in data['rates'].items()}
		except KeyError as e:
			raise ProviderError(f'Missing rates for base {base_currency}') from e
		except (InvalidOperation, AttributeError) as e:
			raise ProviderError(f'Malformed rates for base {base_currency}') from e

		non_finite = [code for code, rate in rates.items() if not rate.is_finite()]
		if non_finite:
			raise ProviderError(f'Non-finite rates for {", ".join(non_finite)} in base {base_currency}')

		return rates

	async def close(self) -> None:
		await self._client.aclose()
