import logging

from redis.asyncio import Redis

from application.services.currency_conversion_manager import CurrencyConversionManager
from config.settings import Settings
from infrastructure.cache.redis_cache import SpotPriceCache
from infrastructure.providers import CoinGeckoClient, FixerClient

logger = logging.getLogger(__name__)


class ServiceFactory:
	"""Wires the conversion manager and its collaborators from settings."""

	def __init__(self, settings: Settings):
		self.settings = settings
		self.redis_client: Redis | None = None
		self.fixer_client: FixerClient | None = None
		self.coingecko_client: CoinGeckoClient | None = None
		self.manager: CurrencyConversionManager | None = None

	def create_manager(self) -> CurrencyConversionManager:
		settings = self.settings

		self.redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
		self.fixer_client = FixerClient(
			api_key=settings.FIXER_API_KEY,
			base_url=settings.FIXER_BASE_URL,
			timeout=settings.HTTP_TIMEOUT_SECONDS,
			max_attempts=settings.HTTP_MAX_ATTEMPTS,
		)
		self.coingecko_client = CoinGeckoClient(
			api_key=settings.COINGECKO_API_KEY,
			currency_ids=settings.COINGECKO_CURRENCY_IDS,
			base_url=settings.COINGECKO_BASE_URL,
			timeout=settings.HTTP_TIMEOUT_SECONDS,
			max_attempts=settings.HTTP_MAX_ATTEMPTS,
		)

		self.manager = CurrencyConversionManager(
			fiat_provider=self.fixer_client,
			spot_provider=self.coingecko_client,
			spot_price_cache=SpotPriceCache(self.redis_client),
			base_currencies=settings.CONVERSION_BASE_CURRENCIES,
			fiat_refresh_interval=settings.FIXER_REFRESH_INTERVAL,
			spot_price_ttl=settings.SPOT_PRICE_CACHE_TTL,
		)
		logger.info(f'Conversion manager created for {settings.CONVERSION_BASE_CURRENCIES}')
		return self.manager

	async def cleanup(self) -> None:
		if self.fixer_client:
			await self.fixer_client.close()
		if self.coingecko_client:
			await self.coingecko_client.close()
		if self.redis_client:
			await self.redis_client.aclose()
		logger.info('Services cleaned up')
