"""Unit tests for the month payment field codec."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from fee_ledger.core.enums import FieldShape
from fee_ledger.core.ledger.codec import append_payment, classify, decode, encode_events


def _encode(amounts) -> str:
    """Test-side encoder: one record per amount, dated on consecutive days of January."""
    return ";".join(f"{amount}=d=2024-01-{index + 1:02d}" for index, amount in enumerate(amounts))


@pytest.mark.parametrize("field", [None, "", "   ", "undefined"])
def test_empty_markers_decode_to_open_month(field) -> None:
    decoded = decode(field, Decimal("500"))
    assert decoded.shape == FieldShape.EMPTY
    assert decoded.events == ()
    assert decoded.total == 0
    assert decoded.explicit_due is False


def test_dues_marker_is_explicit_due_without_events() -> None:
    decoded = decode("Dues", Decimal("500"))
    assert decoded.shape == FieldShape.EXPLICIT_DUE
    assert decoded.explicit_due is True
    assert decoded.events == ()


@pytest.mark.parametrize(
    "stamp", ["2024-03-05T10:20:30.123Z", "2023-12-31T23:59:59.000Z"]
)
def test_legacy_timestamp_is_one_full_payment_without_date(stamp) -> None:
    """The legacy marker never stores an amount; it resolves to the scheduled fee."""
    decoded = decode(stamp, Decimal("750"))
    assert decoded.shape == FieldShape.LEGACY_FULL
    assert len(decoded.events) == 1
    event = decoded.events[0]
    assert event.amount == Decimal("750")
    assert event.paid_on is None
    assert event.legacy is True


def test_near_legacy_timestamp_is_not_treated_as_paid() -> None:
    """Without milliseconds the legacy pattern does not match and nothing parses."""
    decoded = decode("2024-03-05T10:20:30Z", Decimal("750"))
    assert decoded.shape == FieldShape.EVENT_LIST
    assert decoded.events == ()
    assert decoded.total == 0


@pytest.mark.parametrize(
    "amounts",
    [
        ["500"],
        ["200", "150"],
        ["100", "100", "100.50", "0"],
        ["1", "2", "3", "4", "5", "6", "7"],
    ],
)
def test_well_formed_list_keeps_every_segment(amounts) -> None:
    decoded = decode(_encode(amounts), Decimal("500"))
    assert decoded.shape == FieldShape.EVENT_LIST
    assert len(decoded.events) == len(amounts)
    assert decoded.total == sum(Decimal(a) for a in amounts)


def test_event_dates_are_calendar_dates() -> None:
    decoded = decode("200=d=2024-01-05;150=d=2024-05-06T08:00:00.000Z", Decimal("500"))
    assert [e.paid_on for e in decoded.events] == [date(2024, 1, 5), date(2024, 5, 6)]
    assert decoded.events[1].raw_date == "2024-05-06T08:00:00.000Z"


def test_malformed_segment_is_dropped_not_raised() -> None:
    decoded = decode("abc;200=d=2024-02-01", Decimal("500"))
    assert len(decoded.events) == 1
    assert decoded.total == Decimal("200")


@pytest.mark.parametrize(
    "field",
    [
        "-50=d=2024-01-01",
        "NaN=d=2024-01-01",
        "Infinity=d=2024-01-01",
        "100=d=2024-01-01=d=2024-01-02",
        "100",
        "=d=2024-01-01",
    ],
)
def test_unparseable_segments_yield_nothing(field) -> None:
    assert decode(field, Decimal("500")).events == ()


def test_trailing_separator_is_ignored() -> None:
    decoded = decode("300=d=2024-04-01;", Decimal("500"))
    assert len(decoded.events) == 1
    assert decoded.total == Decimal("300")


def test_unreadable_date_keeps_amount() -> None:
    decoded = decode("300=d=soon", Decimal("500"))
    assert decoded.total == Decimal("300")
    assert decoded.events[0].paid_on is None
    assert decoded.events[0].legacy is False


def test_same_date_payments_are_summed() -> None:
    decoded = decode("100=d=2024-01-05;100=d=2024-01-05", Decimal("500"))
    assert len(decoded.events) == 2
    assert decoded.total == Decimal("200")


def test_classify_matches_decode() -> None:
    assert classify(None) == FieldShape.EMPTY
    assert classify("Dues") == FieldShape.EXPLICIT_DUE
    assert classify("2024-03-05T10:20:30.123Z") == FieldShape.LEGACY_FULL
    assert classify("garbage") == FieldShape.EVENT_LIST


def test_encode_events_current_format() -> None:
    field = encode_events([(Decimal("200"), date(2024, 1, 5)), (Decimal("150.50"), date(2024, 1, 20))])
    assert field == "200=d=2024-01-05;150.5=d=2024-01-20"
    assert decode(field, Decimal("0")).total == Decimal("350.5")


def test_append_payment_to_empty_field_uses_iso_timestamp() -> None:
    field = append_payment(None, 200, datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc))
    assert field == "200=d=2024-01-05T10:30:00.000Z"
    assert decode(field, Decimal("0")).events[0].paid_on == date(2024, 1, 5)


def test_append_payment_keeps_existing_records() -> None:
    field = append_payment("200=d=2024-01-05", Decimal("100"), date(2024, 1, 20))
    assert field == "200=d=2024-01-05;100=d=2024-01-20"


@pytest.mark.parametrize("existing", ["Dues", "2024-03-05T10:20:30.123Z", "undefined"])
def test_append_payment_replaces_markers(existing) -> None:
    assert append_payment(existing, 300, date(2024, 3, 9)) == "300=d=2024-03-09"


def test_append_negative_payment_raises() -> None:
    with pytest.raises(ValueError):
        append_payment(None, -1, date(2024, 1, 1))
