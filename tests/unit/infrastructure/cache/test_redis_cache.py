# nosec B101


import pytest
import json
from datetime import datetime, timedelta, UTC
from decimal import Decimal
from unittest.mock import AsyncMock, call


from infrastructure.cache.redis_cache import SpotPriceCache
from domain.models.currency import SpotPriceSnapshot
from domain.exceptions.currency import CacheError


FETCHED_AT = datetime(2025, 11, 5, 10, 30, 0, tzinfo=UTC)


# ============================================================================
# TEST: is_current()
# ============================================================================

@pytest.mark.asyncio
async def test_is_current_when_marker_exists():
    mock_redis = AsyncMock()
    mock_redis.exists.return_value = 1

    cache = SpotPriceCache(redis_client=mock_redis)

    assert await cache.is_current() is True
    mock_redis.exists.assert_called_once_with('currency_conversion:spot_price:current')


@pytest.mark.asyncio
async def test_is_not_current_when_marker_missing():
    mock_redis = AsyncMock()
    mock_redis.exists.return_value = 0

    cache = SpotPriceCache(redis_client=mock_redis)

    assert await cache.is_current() is False


# ============================================================================
# TEST: get_spot_prices()
# ============================================================================

@pytest.mark.asyncio
async def test_get_spot_prices_returns_snapshots():
    mock_redis = AsyncMock()
    mock_redis.hgetall.return_value = {
        'MOB': json.dumps({
            'asset_base': 'MOB',
            'price_in_usd': '0.123456789',
            'fetched_at': '2025-11-05T10:30:00+00:00',
        })
    }

    cache = SpotPriceCache(redis_client=mock_redis)
    result = await cache.get_spot_prices()

    assert result == {
        'MOB': SpotPriceSnapshot(asset_base='MOB', price_in_usd=Decimal('0.123456789'), fetched_at=FETCHED_AT)
    }
    assert str(result['MOB'].price_in_usd) == '0.123456789'
    mock_redis.hgetall.assert_called_once_with('currency_conversion:spot_price:data')


@pytest.mark.asyncio
async def test_get_spot_prices_empty_hash():
    mock_redis = AsyncMock()
    mock_redis.hgetall.return_value = {}

    cache = SpotPriceCache(redis_client=mock_redis)

    assert await cache.get_spot_prices() == {}


@pytest.mark.asyncio
async def test_get_spot_prices_malformed_json_raises_cache_error():
    mock_redis = AsyncMock()
    mock_redis.hgetall.return_value = {'MOB': '{ invalid json }'}

    cache = SpotPriceCache(redis_client=mock_redis)

    with pytest.raises(CacheError) as exc_info:
        await cache.get_spot_prices()

    assert 'Invalid json data' in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize('payload', [
    {'asset_base': 'MOB', 'fetched_at': '2025-11-05T10:30:00+00:00'},
    {'asset_base': 'MOB', 'price_in_usd': 'abc', 'fetched_at': '2025-11-05T10:30:00+00:00'},
    {'asset_base': 'MOB', 'price_in_usd': '0', 'fetched_at': '2025-11-05T10:30:00+00:00'},
    {'asset_base': 'MOB', 'price_in_usd': '1.5', 'fetched_at': 'yesterday'},
])
async def test_get_spot_prices_invalid_entry_raises_cache_error(payload):
    mock_redis = AsyncMock()
    mock_redis.hgetall.return_value = {'MOB': json.dumps(payload)}

    cache = SpotPriceCache(redis_client=mock_redis)

    with pytest.raises(CacheError):
        await cache.get_spot_prices()


# ============================================================================
# TEST: set_spot_prices()
# ============================================================================

@pytest.mark.asyncio
async def test_set_spot_prices_writes_data_then_marker_with_ttl():
    mock_redis = AsyncMock()
    cache = SpotPriceCache(redis_client=mock_redis)

    snapshot = SpotPriceSnapshot(asset_base='MOB', price_in_usd=Decimal('2.350'), fetched_at=FETCHED_AT)

    await cache.set_spot_prices({'MOB': snapshot}, ttl=timedelta(minutes=10))

    mapping = mock_redis.hset.call_args.kwargs['mapping']
    stored = json.loads(mapping['MOB'])
    assert stored == {
        'asset_base': 'MOB',
        'price_in_usd': '2.350',
        'fetched_at': '2025-11-05T10:30:00+00:00',
    }
    assert mock_redis.mock_calls == [
        call.hset('currency_conversion:spot_price:data', mapping=mapping),
        call.set('currency_conversion:spot_price:current', 'true', ex=timedelta(minutes=10)),
    ]


@pytest.mark.asyncio
async def test_spot_prices_round_trip(spot_price_cache):
    snapshot = SpotPriceSnapshot(asset_base='MOB', price_in_usd=Decimal('43521.123456'), fetched_at=FETCHED_AT)

    await spot_price_cache.set_spot_prices({'MOB': snapshot}, ttl=timedelta(minutes=10))

    assert await spot_price_cache.is_current()
    assert await spot_price_cache.get_spot_prices() == {'MOB': snapshot}


@pytest.mark.asyncio
async def test_marker_expires_but_data_remains(spot_price_cache, fake_redis):
    snapshot = SpotPriceSnapshot(asset_base='MOB', price_in_usd=Decimal('1.5'), fetched_at=FETCHED_AT)
    await spot_price_cache.set_spot_prices({'MOB': snapshot}, ttl=timedelta(minutes=10))

    fake_redis.advance(601)

    assert not await spot_price_cache.is_current()
    assert await spot_price_cache.get_spot_prices() == {'MOB': snapshot}


# ============================================================================
# TEST: invalidate()
# ============================================================================

@pytest.mark.asyncio
async def test_invalidate_deletes_marker_only():
    mock_redis = AsyncMock()
    cache = SpotPriceCache(redis_client=mock_redis)

    await cache.invalidate()

    mock_redis.delete.assert_called_once_with('currency_conversion:spot_price:current')
