from .base import FiatRateProvider, SpotPriceProvider
from .coingecko import CoinGeckoClient
from .fixer import FixerClient

__all__ = ['FiatRateProvider', 'SpotPriceProvider', 'CoinGeckoClient', 'FixerClient']
