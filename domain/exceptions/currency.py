class CurrencyException(Exception):
    pass


class ProviderError(CurrencyException):
    """An upstream rate provider call could not complete."""


class CacheError(CurrencyException):
    pass
