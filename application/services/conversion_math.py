"""
Exact decimal arithmetic for conversion tables.

Every operation here runs in a decimal context wide enough that no digit of
the true result is lost. Binary floats never enter the calculation.
"""
from collections.abc import Mapping
from decimal import Context, Decimal

from domain.models.currency import USD, ConversionTable


def _digits(value: Decimal) -> int:
    return max(len(value.as_tuple().digits), 1)


def canonicalize(value: Decimal) -> Decimal:
    """
    Strip trailing fractional zeros without ever producing a positive exponent.

    ``Decimal('1.00000')`` becomes ``Decimal('1')`` and ``Decimal('700.000')``
    becomes ``Decimal('700')`` rather than ``Decimal('7E+2')``.
    """
    normalized = value.normalize(Context(prec=_digits(value)))
    if normalized.as_tuple().exponent > 0:
        return Decimal(int(normalized))
    return normalized


def exact_multiply(a: Decimal, b: Decimal) -> Decimal:
    # The product of an m-digit and an n-digit coefficient has at most m + n digits
    return Context(prec=_digits(a) + _digits(b)).multiply(a, b)


def to_plain_string(value: Decimal) -> str:
    return format(value, 'f')


def build_conversion_table(
    base: str, spot_price_in_usd: Decimal, fiat_rates: Mapping[str, Decimal]
) -> ConversionTable:
    conversions = {USD: canonicalize(spot_price_in_usd)}
    for currency, rate in fiat_rates.items():
        currency = currency.upper()
        if currency == USD:
            continue
        conversions[currency] = canonicalize(exact_multiply(spot_price_in_usd, rate))

    return ConversionTable(base=base, conversions=conversions)


def divide_to_cents(amount: Decimal, rate: Decimal) -> Decimal:
    """Return ``amount / rate`` rounded half-up to exactly two fractional digits."""
    if rate == 0:
        raise ZeroDivisionError('Conversion rate must be non-zero')

    scaled = amount.scaleb(2, Context(prec=_digits(amount)))
    context = Context(prec=_digits(scaled) + _digits(rate) + max(scaled.adjusted() - rate.adjusted(), 0) + 2)
    quotient, remainder = context.divmod(scaled, rate)

    cents = int(quotient)
    if context.multiply(2, context.abs(remainder)) >= context.abs(rate):
        cents += 1 if (scaled < 0) == (rate < 0) else -1

    return Decimal(cents).scaleb(-2, Context(prec=len(str(abs(cents))) + 2))
