"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and helpers for monetary columns and
    currency codes.  Centralizes smallest-unit conversion, rounding and
    currency validation so every model and service uses identical rules.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Amounts are integers in the currency's smallest unit.  Conversion from
      a decimal major-unit value goes through round_money() only.
    - validate_currency_code() rejects anything that is not an ISO 4217 code.
    - No floats: from_smallest_unit() returns Decimal, never float.

Failure modes:
    - InvalidCurrencyError on an unknown currency code.
    - InvalidAmountError when a major-unit value cannot be parsed.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import BigInteger, String

from ledger_kernel.exceptions import InvalidAmountError, InvalidCurrencyError

# Monetary amount in smallest currency units (e.g. cents)
Amount = Annotated[int, BigInteger]

# ISO 4217 currency code (e.g. "KZT", "USD")
CurrencyCode = Annotated[str, String(3)]

# Monotonic sequence number for ordering
Sequence = Annotated[int, BigInteger]

# Short identifier strings (account codes, entry numbers, references)
ShortCode = Annotated[str, String(50)]

# Long text for descriptions
LongText = Annotated[str, String(4000)]

DEFAULT_DECIMALS = 2
MAX_DECIMALS = 6
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = DEFAULT_DECIMALS,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    The only sanctioned rounding function for money in the kernel.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)


def to_smallest_unit(value: Decimal | str | int, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a major-unit amount to integer smallest units.

    Example:
        to_smallest_unit("1000.50", 2) -> 100050

    Raises:
        InvalidAmountError: If value is a float, bool or not a number.
    """
    if isinstance(value, (bool, float)):
        raise InvalidAmountError(value, "use Decimal or str, not float")
    try:
        amount = Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(value, "not a number") from None
    if not amount.is_finite():
        raise InvalidAmountError(value, "not a finite number")
    return int(round_money(amount, decimals).scaleb(decimals))


def from_smallest_unit(value: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """
    Convert integer smallest units back to a major-unit Decimal.

    Example:
        from_smallest_unit(100050, 2) -> Decimal("1000.50")
    """
    return Decimal(value).scaleb(-decimals).quantize(Decimal(1).scaleb(-decimals))


def format_amount(
    value: int,
    decimals: int = DEFAULT_DECIMALS,
    symbol: str | None = None,
) -> str:
    """Render smallest units for display, e.g. ``1,000.50 ₸``."""
    major = from_smallest_unit(value, decimals)
    text = f"{major:,.{decimals}f}"
    return f"{text} {symbol}" if symbol else text


def is_valid_amount(value: object) -> bool:
    """True iff value is a non-negative int (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


# ISO 4217 Currency Codes
ISO_4217_CURRENCIES: frozenset[str] = frozenset({
    "AED", "AFN", "ALL", "AMD", "ANG", "AOA", "ARS", "AUD", "AWG", "AZN",
    "BAM", "BBD", "BDT", "BGN", "BHD", "BIF", "BMD", "BND", "BOB", "BRL", "BSD", "BTN", "BWP", "BYN", "BZD",
    "CAD", "CDF", "CHF", "CLP", "CNY", "COP", "CRC", "CUP", "CVE", "CZK",
    "DJF", "DKK", "DOP", "DZD",
    "EGP", "ERN", "ETB", "EUR",
    "FJD", "FKP",
    "GBP", "GEL", "GHS", "GIP", "GMD", "GNF", "GTQ", "GYD",
    "HKD", "HNL", "HTG", "HUF",
    "IDR", "ILS", "INR", "IQD", "IRR", "ISK",
    "JMD", "JOD", "JPY",
    "KES", "KGS", "KHR", "KMF", "KPW", "KRW", "KWD", "KYD", "KZT",
    "LAK", "LBP", "LKR", "LRD", "LSL", "LYD",
    "MAD", "MDL", "MGA", "MKD", "MMK", "MNT", "MOP", "MRU", "MUR", "MVR", "MWK", "MXN", "MYR", "MZN",
    "NAD", "NGN", "NIO", "NOK", "NPR", "NZD",
    "OMR",
    "PAB", "PEN", "PGK", "PHP", "PKR", "PLN", "PYG",
    "QAR",
    "RON", "RSD", "RUB", "RWF",
    "SAR", "SBD", "SCR", "SDG", "SEK", "SGD", "SHP", "SLE", "SOS", "SRD", "SSP", "STN", "SYP", "SZL",
    "THB", "TJS", "TMT", "TND", "TOP", "TRY", "TTD", "TWD", "TZS",
    "UAH", "UGX", "USD", "UYU", "UZS",
    "VES", "VND", "VUV",
    "WST",
    "XAF", "XCD", "XOF", "XPF",
    "YER",
    "ZAR", "ZMW", "ZWL",
})


def validate_currency_code(code: str) -> str:
    """
    Validate and normalize a currency code.

    Returns:
        The uppercase, trimmed code.

    Raises:
        InvalidCurrencyError: If the code is not ISO 4217.
    """
    if not code or not isinstance(code, str):
        raise InvalidCurrencyError(str(code))
    normalized = code.strip().upper()
    if normalized not in ISO_4217_CURRENCIES:
        raise InvalidCurrencyError(code)
    return normalized
