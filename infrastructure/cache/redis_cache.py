import json
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from redis import asyncio as redis

from domain.exceptions.currency import CacheError
from domain.models.currency import SpotPriceSnapshot


class SpotPriceCache:
    """
    Spot prices shared by every service instance.

    The marker key carries the expiry: while it exists the prices in the data
    hash are considered fresh. Deleting it forces the next refresh on any
    instance to query the spot price provider again.
    """

    CURRENT_KEY = "currency_conversion:spot_price:current"
    DATA_KEY = "currency_conversion:spot_price:data"

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def is_current(self) -> bool:
        return bool(await self.redis.exists(self.CURRENT_KEY))

    async def get_spot_prices(self) -> dict[str, SpotPriceSnapshot]:
        data = await self.redis.hgetall(self.DATA_KEY)

        prices = {}
        for base, raw in data.items():
            try:
                price_dict = json.loads(raw)
                prices[base] = SpotPriceSnapshot(
                    asset_base=price_dict["asset_base"],
                    price_in_usd=Decimal(price_dict["price_in_usd"]),
                    fetched_at=datetime.fromisoformat(price_dict["fetched_at"]),
                )
            except (json.JSONDecodeError, KeyError, TypeError, ValueError, InvalidOperation) as e:
                raise CacheError(f"Invalid json data for spot price {base}: {e}") from e

        return prices

    async def set_spot_prices(self, prices: dict[str, SpotPriceSnapshot], ttl: timedelta) -> None:
        mapping = {
            base: json.dumps({
                "asset_base": snapshot.asset_base,
                "price_in_usd": str(snapshot.price_in_usd),
                "fetched_at": snapshot.fetched_at.isoformat(),
            })
            for base, snapshot in prices.items()
        }

        # Data first, so an instance that sees the marker always finds the prices
        await self.redis.hset(self.DATA_KEY, mapping=mapping)
        await self.redis.set(self.CURRENT_KEY, "true", ex=ttl)

    async def invalidate(self) -> None:
        await self.redis.delete(self.CURRENT_KEY)
