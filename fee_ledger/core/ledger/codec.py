"""Month payment field codec.

A month field on a student record has been stored in three shapes over the life
of the product:

* nothing (``None``, ``""`` or the literal ``"undefined"``): the month is open;
* the literal ``"Dues"``: the month was explicitly declared unpaid;
* a bare ISO timestamp ``YYYY-MM-DDTHH:MM:SS.mmmZ``: legacy "paid in full"
  marker, the amount was never stored;
* ``amount=d=date`` records joined by ``;``: the current format, one record per
  payment.

``decode`` classifies a field once into a :class:`DecodedField` so callers never
have to pattern-match raw strings again.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Tuple

from fee_ledger.core.enums import FieldShape

from .months import parse_calendar_date

logger = logging.getLogger(__name__)

EMPTY_MARKERS = ("", "undefined")
DUES_MARKER = "Dues"
EVENT_SEPARATOR = ";"
AMOUNT_DATE_SEPARATOR = "=d="
LEGACY_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


@dataclass(frozen=True)
class FeeEvent:
    """A single payment found in a month field.

    ``paid_on`` is None for the legacy marker (and for a current-format record
    whose date text is unreadable); ``raw_date`` keeps the stored text.
    """

    amount: Decimal
    paid_on: Optional[date] = None
    raw_date: Optional[str] = None
    legacy: bool = False


@dataclass(frozen=True)
class DecodedField:
    shape: FieldShape
    events: Tuple[FeeEvent, ...] = field(default_factory=tuple)

    @property
    def explicit_due(self) -> bool:
        return self.shape == FieldShape.EXPLICIT_DUE

    @property
    def total(self) -> Decimal:
        return sum((e.amount for e in self.events), Decimal("0"))

    @property
    def has_events(self) -> bool:
        return bool(self.events)


EMPTY_FIELD = DecodedField(FieldShape.EMPTY)
EXPLICIT_DUE_FIELD = DecodedField(FieldShape.EXPLICIT_DUE)


def _parse_amount(text: str) -> Optional[Decimal]:
    try:
        amount = Decimal(text.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _decode_segment(segment: str) -> Optional[FeeEvent]:
    parts = segment.split(AMOUNT_DATE_SEPARATOR)
    if len(parts) != 2:
        return None
    amount = _parse_amount(parts[0])
    if amount is None:
        return None
    raw_date = parts[1].strip()
    return FeeEvent(amount=amount, paid_on=parse_calendar_date(raw_date), raw_date=raw_date)


def classify(value: Optional[str]) -> FieldShape:
    if value is None:
        return FieldShape.EMPTY
    text = str(value).strip()
    if text in EMPTY_MARKERS:
        return FieldShape.EMPTY
    if text == DUES_MARKER:
        return FieldShape.EXPLICIT_DUE
    if LEGACY_TIMESTAMP_RE.match(text):
        return FieldShape.LEGACY_FULL
    return FieldShape.EVENT_LIST


def decode(value: Optional[str], legacy_full_amount) -> DecodedField:
    """Decode one month field. Never raises on bad data; unreadable segments are dropped."""
    shape = classify(value)
    if shape == FieldShape.EMPTY:
        return EMPTY_FIELD
    if shape == FieldShape.EXPLICIT_DUE:
        return EXPLICIT_DUE_FIELD
    text = str(value).strip()
    if shape == FieldShape.LEGACY_FULL:
        amount = legacy_full_amount if isinstance(legacy_full_amount, Decimal) else Decimal(str(legacy_full_amount or 0))
        return DecodedField(shape, (FeeEvent(amount=amount, raw_date=text, legacy=True),))

    events = []
    for segment in text.split(EVENT_SEPARATOR):
        if not segment.strip():
            continue
        event = _decode_segment(segment)
        if event is None:
            logger.debug("Dropped malformed payment segment %r", segment)
            continue
        events.append(event)
    return DecodedField(shape, tuple(events))


def _format_amount(amount: Decimal) -> str:
    amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal("1")))
    return format(amount.normalize(), "f")


def _format_paid_at(paid_at) -> str:
    if isinstance(paid_at, datetime):
        if paid_at.tzinfo is not None:
            paid_at = paid_at.astimezone(timezone.utc).replace(tzinfo=None)
        return paid_at.isoformat(timespec="milliseconds") + "Z"
    if isinstance(paid_at, date):
        return paid_at.isoformat()
    return str(paid_at)


def encode_events(events: Iterable[Tuple[Decimal, object]]) -> Optional[str]:
    """Serialize ``(amount, paid_at)`` pairs in the current ``amount=d=date;...`` format."""
    parts = [
        f"{_format_amount(amount)}{AMOUNT_DATE_SEPARATOR}{_format_paid_at(paid_at)}"
        for amount, paid_at in events
    ]
    return EVENT_SEPARATOR.join(parts) or None


def append_payment(value: Optional[str], amount, paid_at) -> str:
    """Return the field with one more payment recorded.

    Legacy, ``Dues`` and empty fields carry no reusable records, so the result
    starts a fresh list; existing current-format records are kept verbatim.
    """
    amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if amount < 0:
        raise ValueError("Payment amount cannot be negative")
    new_record = encode_events([(amount, paid_at)])
    if classify(value) != FieldShape.EVENT_LIST:
        return new_record
    existing = str(value).strip().rstrip(EVENT_SEPARATOR)
    return f"{existing}{EVENT_SEPARATOR}{new_record}"
