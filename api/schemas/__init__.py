from .responses import CurrencyConversionEntity, CurrencyConversionsResponse, UsdConversionResponse

__all__ = [
	'CurrencyConversionEntity',
	'CurrencyConversionsResponse',
	'UsdConversionResponse',
]
