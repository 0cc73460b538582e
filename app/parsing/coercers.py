"""
app/parsing/coercers.py

Pure value coercers for raw CSV cells.

Every coercer accepts ``str | None`` and returns a typed value or ``None``;
none of them raise.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil import parser as date_parser

MISSING_SENTINEL = "NA"
TRUTHY_VALUES = frozenset({"Y", "YES", "1"})
HOURS_PER_YEAR = 2080

_NUMBER_NOISE = re.compile(r"[$,]")
_DATE_DEFAULT = datetime(1970, 1, 1)
_CENTS = Decimal("0.01")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped or stripped == MISSING_SENTINEL:
        return None
    return stripped


def parse_string(value: str | None) -> str | None:
    """
    Trim a cell; blank becomes None.
    """

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_date(value: str | None) -> date | None:
    """
    Parse a date permissively and return the calendar day.

    Timezone-aware inputs are converted to UTC before the time is dropped.
    """

    raw = _clean(value)
    if raw is None:
        return None
    try:
        parsed = date_parser.parse(raw, default=_DATE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def parse_number(value: str | None) -> float | None:
    """
    Parse a money/number cell after removing ``$`` and thousands separators.
    """

    raw = _clean(value)
    if raw is None:
        return None
    try:
        number = float(_NUMBER_NOISE.sub("", raw))
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_integer(value: str | None) -> int | None:
    number = parse_number(value)
    if number is None:
        return None
    return int(round(number))


def parse_boolean(value: str | None) -> bool | None:
    """
    Return True for ``Y``, ``YES`` or ``1`` (case-insensitive).

    Blank and ``NA`` are None. Every other value, including ``TRUE`` and
    ``T``, is False.
    """

    raw = _clean(value)
    if raw is None:
        return None
    return raw.upper() in TRUTHY_VALUES


def annualize_hourly(hourly: float | None) -> float | None:
    """
    Convert an hourly wage to an annual figure rounded half-up to cents.

    Zero and None both yield None.
    """

    if not hourly:
        return None
    try:
        annual = (Decimal(str(hourly)) * HOURS_PER_YEAR).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    return float(annual)
