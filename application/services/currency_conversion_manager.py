import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from application.services.conversion_math import build_conversion_table, divide_to_cents
from domain.exceptions.currency import CacheError
from domain.models.currency import USD, ConversionSnapshot, FiatRateTable, SpotPriceSnapshot
from infrastructure.cache.redis_cache import SpotPriceCache
from infrastructure.providers.base import FiatRateProvider, SpotPriceProvider

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
	return datetime.now(UTC)


class CurrencyConversionManager:
	"""
	Keeps a conversion table for each configured base currency.

	Two upstream sources feed the tables and each is gated independently:
	spot prices are re-queried only when the shared cache marker has expired
	or been deleted, fiat rates only when the local refresh interval has
	elapsed. Refreshes are expected to run serially from a single driver.
	Readers may call the read methods at any time; they only ever see a fully
	built snapshot because publishing is a single reference assignment.
	"""

	def __init__(
		self,
		fiat_provider: FiatRateProvider,
		spot_provider: SpotPriceProvider,
		spot_price_cache: SpotPriceCache,
		base_currencies: Iterable[str],
		fiat_refresh_interval: timedelta = timedelta(hours=2),
		spot_price_ttl: timedelta = timedelta(minutes=10),
		clock: Callable[[], datetime] = utc_now,
	):
		self.fiat_provider = fiat_provider
		self.spot_provider = spot_provider
		self.spot_price_cache = spot_price_cache
		self.base_currencies = list(dict.fromkeys(code.upper() for code in base_currencies))
		self.fiat_refresh_interval = fiat_refresh_interval
		self.spot_price_ttl = spot_price_ttl
		self.clock = clock

		self._fiat_table: FiatRateTable | None = None
		self._spot_prices: dict[str, SpotPriceSnapshot] = {}
		self._pending_publish = False
		self._snapshot: ConversionSnapshot | None = None

	async def update_cache_if_necessary(self) -> None:
		"""
		Run one refresh tick.

		Raises ProviderError (or a Redis error) when a required fetch fails. The
		published snapshot is left as it was; a source fetched successfully
		before the failure is kept and published by the next successful tick.
		"""
		await self._refresh_fiat_rates_if_stale()
		await self._refresh_spot_prices_if_stale()

		if not self._pending_publish:
			logger.debug('Conversion inputs unchanged, keeping published snapshot')
			return

		self._publish()

	def get_currency_conversions(self) -> ConversionSnapshot | None:
		return self._snapshot

	def convert_to_usd(self, amount: Decimal, currency_code: str) -> Decimal | None:
		if currency_code.upper() == USD:
			return amount

		snapshot = self._snapshot
		if snapshot is None:
			return None

		rate = snapshot.fiat_rates.rate_for(currency_code)
		if rate is None or rate <= 0:
			return None

		return divide_to_cents(amount, rate)

	async def _refresh_fiat_rates_if_stale(self) -> None:
		now = self.clock()
		if self._fiat_table is not None and now - self._fiat_table.fetched_at < self.fiat_refresh_interval:
			logger.debug(f'Fiat rates fetched at {self._fiat_table.fetched_at.isoformat()} are still fresh')
			return

		rates = await self.fiat_provider.get_conversions_for_base(USD)
		self._fiat_table = FiatRateTable(rates=rates, fetched_at=now)
		self._pending_publish = True
		logger.info(f'Fetched {len(rates)} fiat rates from {self.fiat_provider.name}')

	async def _refresh_spot_prices_if_stale(self) -> None:
		if not self.base_currencies:
			return

		if await self.spot_price_cache.is_current():
			shared = await self._read_shared_spot_prices()
			if shared is not None:
				if shared != self._spot_prices:
					self._spot_prices = shared
					self._pending_publish = True
					logger.info(f'Adopted shared spot prices for {", ".join(shared)}')
				else:
					logger.debug('Shared spot prices are current and unchanged')
				return

		now = self.clock()
		prices = {}
		for base in self.base_currencies:
			price = await self.spot_provider.get_spot_price(base, USD)
			prices[base] = SpotPriceSnapshot(asset_base=base, price_in_usd=price, fetched_at=now)

		self._spot_prices = prices
		self._pending_publish = True
		logger.info(f'Fetched spot prices for {", ".join(prices)} from {self.spot_provider.name}')

		await self.spot_price_cache.set_spot_prices(prices, self.spot_price_ttl)

	async def _read_shared_spot_prices(self) -> dict[str, SpotPriceSnapshot] | None:
		try:
			shared = await self.spot_price_cache.get_spot_prices()
		except CacheError as e:
			logger.warning(f'Ignoring unreadable shared spot prices: {e}')
			return None

		missing = [base for base in self.base_currencies if base not in shared]
		if missing:
			logger.debug(f'Shared spot prices missing for {", ".join(missing)}')
			return None

		return {base: shared[base] for base in self.base_currencies}

	def _publish(self) -> None:
		if self._fiat_table is None:
			return

		fiat_table = self._fiat_table
		spot_prices = {base: self._spot_prices[base] for base in self.base_currencies if base in self._spot_prices}

		tables = tuple(
			build_conversion_table(base, snapshot.price_in_usd, fiat_table.rates)
			for base, snapshot in spot_prices.items()
		)

		self._snapshot = ConversionSnapshot(
			currencies=tables,
			fiat_rates=fiat_table,
			timestamp=self.clock(),
			spot_prices=spot_prices,
		)
		self._pending_publish = False
		logger.info(f'Published currency conversions for {len(tables)} base currencies')
