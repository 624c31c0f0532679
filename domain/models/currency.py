from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType

USD = 'USD'


def _freeze(mapping: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class SpotPriceSnapshot:
    asset_base: str
    price_in_usd: Decimal
    fetched_at: datetime

    def __post_init__(self):
        if self.price_in_usd <= 0:
            raise ValueError(f'Spot price for {self.asset_base} must be positive, got {self.price_in_usd}')


@dataclass(frozen=True)
class FiatRateTable:
    rates: Mapping[str, Decimal]  # units of currency per 1 USD
    fetched_at: datetime
    base_code: str = USD

    def __post_init__(self):
        object.__setattr__(self, 'rates', _freeze({code.upper(): rate for code, rate in self.rates.items()}))

    def rate_for(self, currency_code: str) -> Decimal | None:
        return self.rates.get(currency_code.upper())


@dataclass(frozen=True)
class ConversionTable:
    base: str
    conversions: Mapping[str, Decimal]  # units of target per 1 unit of base

    def __post_init__(self):
        object.__setattr__(self, 'base', self.base.upper())
        object.__setattr__(self, 'conversions', _freeze(self.conversions))


@dataclass(frozen=True)
class ConversionSnapshot:
    """Published result. Replaced as a whole, never mutated."""
    currencies: tuple[ConversionTable, ...]
    fiat_rates: FiatRateTable
    timestamp: datetime
    spot_prices: Mapping[str, SpotPriceSnapshot] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'currencies', tuple(self.currencies))
        object.__setattr__(self, 'spot_prices', MappingProxyType(dict(self.spot_prices)))

    def table_for(self, base: str) -> ConversionTable | None:
        base = base.upper()
        return next((table for table in self.currencies if table.base == base), None)
