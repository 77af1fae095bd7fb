"""Calendar helpers shared by the ledger builder, the aggregator and the projections."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from fee_ledger.core.exceptions import PreconditionError


MONTH_KEYS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
MONTH_NAMES = tuple(k.capitalize() for k in MONTH_KEYS)
MONTH_LABELS = tuple(name[:3] for name in MONTH_NAMES)


def check_month_index(index: int) -> int:
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index <= 11:
        raise PreconditionError(f"Month index must be within 0..11, got {index!r}")
    return index


def require_as_of(as_of) -> date:
    """Return ``as_of`` as a plain date; a missing value is a caller bug."""
    if as_of is None:
        raise PreconditionError("as_of date is required")
    if isinstance(as_of, datetime):
        return as_of.date()
    if not isinstance(as_of, date):
        raise PreconditionError(f"as_of must be a date, got {type(as_of).__name__}")
    return as_of


def parse_calendar_date(value) -> Optional[date]:
    """Calendar date of a stored value: 'YYYY-MM-DD', a full ISO timestamp, or a date object.

    Returns None for anything unreadable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) < 10:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    if isinstance(val, Decimal):
        return val
    try:
        parsed = Decimal(str(val).strip() or "0")
    except InvalidOperation:
        return Decimal("0")
    return parsed if parsed.is_finite() else Decimal("0")


def count_joined(value: Optional[str]) -> int:
    """Number of entries in a comma-joined id list; the ids themselves are not inspected."""
    if not value:
        return 0
    return len(str(value).split(","))
