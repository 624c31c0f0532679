from datetime import timedelta
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	REDIS_URL: str = 'redis://localhost:6379'

	FIXER_API_KEY: str = ''
	FIXER_BASE_URL: str = 'https://data.fixer.io/api'

	COINGECKO_API_KEY: str = ''
	COINGECKO_BASE_URL: str = 'https://pro-api.coingecko.com/api/v3'
	COINGECKO_CURRENCY_IDS: dict[str, str] = {'MOB': 'mobilecoin'}

	# Conversion engine
	CONVERSION_BASE_CURRENCIES: list[str] = ['MOB']
	FIXER_REFRESH_INTERVAL: timedelta = timedelta(hours=2)
	SPOT_PRICE_CACHE_TTL: timedelta = timedelta(minutes=10)
	REFRESH_TICK_SECONDS: float = 15

	HTTP_TIMEOUT_SECONDS: int = 10
	HTTP_MAX_ATTEMPTS: int = 3

	# Application
	APP_NAME: str = 'Currency Conversion Service'
	DEBUG: bool = False
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

	@field_validator('CONVERSION_BASE_CURRENCIES')
	@classmethod
	def uppercase_base_currencies(cls, v: list[str]) -> list[str]:
		return [code.strip().upper() for code in v if code.strip()]

	@field_validator('COINGECKO_CURRENCY_IDS')
	@classmethod
	def uppercase_currency_id_keys(cls, v: dict[str, str]) -> dict[str, str]:
		return {code.upper(): coin_id for code, coin_id in v.items()}


@lru_cache
def get_settings() -> Settings:
	return Settings()
