from .currency_conversion_manager import CurrencyConversionManager

__all__ = ['CurrencyConversionManager']
