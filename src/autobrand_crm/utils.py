"""
Small helpers shared across the CRM core.

new_id() wraps fastuuid.uuid7() and returns the canonical string form, so
record ids sort by creation time.
"""

import re
from datetime import datetime, timezone

import fastuuid

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def new_id() -> str:
    """Generate a UUIDv7 (time-sortable) record id."""
    return str(fastuuid.uuid7())


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(tz=timezone.utc)


def parse_int(value: object, default: int) -> int:
    """
    Parse the leading integer of a value, the way a browser's parseInt does.

    "15000" -> 15000, "12.5k" -> 12, " 42 viewers" -> 42. Anything without
    a leading integer (None, "", "n/a") returns ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def format_currency(amount: int | float, currency: str = 'USD') -> str:
    """Format a whole-unit amount for activity text, e.g. 1500 -> '$1,500'."""
    symbols = {'USD': '$', 'EUR': '€', 'GBP': '£'}
    symbol = symbols.get(currency.upper())
    sign = '-' if amount < 0 else ''
    body = f'{abs(amount):,.0f}'
    if symbol:
        return f'{sign}{symbol}{body}'
    return f'{sign}{body} {currency.upper()}'
