"""Integer-cents money helpers with locale-aware parsing and formatting"""

import re
from dataclasses import dataclass
from typing import Dict

from finance_core.domain.exceptions import InvalidAmountFormat
from finance_core.domain.models import INCOME, Movement


@dataclass(frozen=True)
class LocaleFormat:
    """Separators and currency symbol used to spell amounts"""

    grouping: str
    decimal: str
    symbol: str


LOCALES: Dict[str, LocaleFormat] = {
    "es-CO": LocaleFormat(grouping=".", decimal=",", symbol="$"),
    "en-US": LocaleFormat(grouping=",", decimal=".", symbol="$"),
    "de-DE": LocaleFormat(grouping=".", decimal=",", symbol="€"),
    "fr-FR": LocaleFormat(grouping=" ", decimal=",", symbol="€"),
}

_DIGITS = re.compile(r"[0-9]+")


def get_locale(locale: str) -> LocaleFormat:
    try:
        return LOCALES[locale]
    except KeyError:
        raise InvalidAmountFormat(f"Unsupported locale: {locale}") from None


def _split(text: str, locale: str) -> tuple[bool, str, str]:
    """Break an amount string into (negative, integer digits, fraction digits)"""
    fmt = get_locale(locale)
    raw = text.strip() if isinstance(text, str) else ""
    if not raw:
        raise InvalidAmountFormat("Amount is empty")

    negative = raw.startswith("-")
    if negative:
        raw = raw[1:].lstrip()
    if raw.startswith(fmt.symbol):
        raw = raw[len(fmt.symbol):].lstrip()
    elif raw.endswith(fmt.symbol):
        raw = raw[: -len(fmt.symbol)].rstrip()

    # Grouping variants: the locale separator plus non-breaking spaces for fr-FR
    raw = raw.replace(fmt.grouping, "").replace("\u00a0", "").replace("\u202f", "")
    if fmt.decimal in raw:
        integer_part, _, fraction = raw.partition(fmt.decimal)
    else:
        integer_part, fraction = raw, ""

    # ASCII digits only; int() would also accept other scripts
    if not _DIGITS.fullmatch(integer_part) or (fraction and not _DIGITS.fullmatch(fraction)):
        raise InvalidAmountFormat(f"Amount is not numeric: {text!r}")
    if len(fraction) > 2:
        raise InvalidAmountFormat(f"Amount has more than two decimals: {text!r}")

    return negative, integer_part, fraction


def parse_amount(text: str, locale: str = "es-CO") -> int:
    """
    Parse a locale-formatted amount into integer cents.

    Examples (es-CO):
        "1.234.567"   → 123456700
        "$ 1.234,5"   → 123450
        "-12,05"      → -1205

    Raises:
        InvalidAmountFormat: Non-numeric input after stripping grouping separators
    """
    negative, integer_part, fraction = _split(text, locale)
    cents = int(integer_part) * 100 + int(fraction.ljust(2, "0"))
    return -cents if negative else cents


def _group(digits: str, separator: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return separator.join(groups)


def format_amount(cents: int, locale: str = "es-CO") -> str:
    """Format integer cents with locale grouping and exactly two decimals"""
    fmt = get_locale(locale)
    sign = "-" if cents < 0 else ""
    units, minor = divmod(abs(cents), 100)
    return f"{sign}{_group(str(units), fmt.grouping)}{fmt.decimal}{minor:02d}"


def normalize_amount(text: str, locale: str = "es-CO") -> str:
    """Canonical spelling of a valid amount string, independent of grouping variance"""
    fmt = get_locale(locale)
    negative, integer_part, fraction = _split(text, locale)
    integer_part = integer_part.lstrip("0") or "0"
    fraction = fraction.ljust(2, "0")
    sign = "-" if negative and (integer_part != "0" or fraction != "00") else ""
    return f"{sign}{_group(integer_part, fmt.grouping)}{fmt.decimal}{fraction}"


def signed_amount(movement: Movement) -> int:
    """Positive for income, negative for expense"""
    return movement.amount_cents if movement.direction == INCOME else -movement.amount_cents
