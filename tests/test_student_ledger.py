"""Unit tests for the per-student ledger builder."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from fee_ledger.core.enums import MonthStatus
from fee_ledger.core.exceptions import PreconditionError
from fee_ledger.core.ledger import OtherFee, StudentRecord
from fee_ledger.core.ledger.builder import build_student_ledger, month_status
from fee_ledger.core.ledger.codec import decode


def _student(**fields) -> StudentRecord:
    return StudentRecord(name="Test", roll_number="7", class_name="5", **fields)


def _statuses(ledger) -> list:
    return [entry.status for entry in ledger.entries]


def test_partial_payment_leaves_balance() -> None:
    """Fee 500, paid 200 + 150 in January, observed in January."""
    ledger = build_student_ledger(
        _student(january="200=d=2024-01-05;150=d=2024-01-20"), Decimal("500"), date(2024, 1, 31)
    )
    january = ledger.entries[0]
    assert january.status == MonthStatus.PARTIAL
    assert january.amount_paid == Decimal("350")
    assert january.amount_due == Decimal("150")
    assert ledger.total_paid == Decimal("350")
    assert ledger.session_dues == Decimal("150")


def test_all_twelve_months_are_present_and_future_ones_upcoming() -> None:
    ledger = build_student_ledger(_student(), Decimal("500"), date(2024, 3, 10))
    assert len(ledger.entries) == 12
    assert [e.month for e in ledger.entries][:3] == ["January", "February", "March"]
    assert _statuses(ledger)[:3] == [MonthStatus.DUE] * 3
    assert _statuses(ledger)[3:] == [MonthStatus.UPCOMING] * 9
    assert all(e.amount_due == 0 for e in ledger.entries[3:])
    assert ledger.session_dues == Decimal("1500")


def test_dues_marker_before_cutoff_counts_after_cutoff_does_not() -> None:
    """The same record observed in May and in June differs by exactly one month's fee."""
    student = _student(june="Dues")
    may = build_student_ledger(student, Decimal("500"), date(2024, 5, 31))
    june = build_student_ledger(student, Decimal("500"), date(2024, 6, 1))
    assert may.entries[5].status == MonthStatus.UPCOMING
    assert june.entries[5].status == MonthStatus.DUE
    assert june.entries[5].explicit_due is True
    assert june.session_dues - may.session_dues == Decimal("500")


def test_payment_recorded_for_future_month_counts_as_paid_only() -> None:
    ledger = build_student_ledger(_student(december="300=d=2024-03-01"), Decimal("500"), date(2024, 3, 15))
    december = ledger.entries[11]
    assert december.status == MonthStatus.UPCOMING
    assert december.amount_due == 0
    assert december.amount_paid == Decimal("300")
    assert ledger.total_paid == Decimal("300")


def test_legacy_marker_is_paid_in_full() -> None:
    ledger = build_student_ledger(_student(february="2024-02-03T09:00:00.000Z"), Decimal("800"), date(2024, 2, 20))
    february = ledger.entries[1]
    assert february.status == MonthStatus.PAID
    assert february.amount_paid == Decimal("800")
    assert february.amount_due == 0


def test_overpayment_is_paid_without_credit() -> None:
    ledger = build_student_ledger(_student(january="700=d=2024-01-02"), Decimal("500"), date(2024, 1, 31))
    assert ledger.entries[0].status == MonthStatus.PAID
    assert ledger.entries[0].amount_due == 0
    assert ledger.total_paid == Decimal("700")


def test_zero_fee_makes_every_past_month_paid() -> None:
    ledger = build_student_ledger(_student(march="Dues"), Decimal("0"), date(2024, 4, 1))
    assert _statuses(ledger)[:4] == [MonthStatus.PAID] * 4
    assert ledger.session_dues == 0
    assert ledger.explicit_due_months == 1


def test_unreadable_field_is_due() -> None:
    ledger = build_student_ledger(_student(january="garbage"), Decimal("500"), date(2024, 1, 31))
    assert ledger.entries[0].status == MonthStatus.DUE
    assert ledger.entries[0].amount_due == Decimal("500")


def test_running_balance_starts_from_previous_dues() -> None:
    ledger = build_student_ledger(_student(previous_dues=500), Decimal("1000"), date(2024, 3, 1))
    balances = [e.running_balance for e in ledger.entries]
    assert balances[:3] == [Decimal("1500"), Decimal("2500"), Decimal("3500")]
    assert balances[3:] == [Decimal("3500")] * 9
    assert ledger.total_dues == Decimal("3500")
    assert ledger.previous_dues == Decimal("500")


def test_totals_are_sums_of_entries() -> None:
    student = _student(
        january="500=d=2024-01-03",
        february="200=d=2024-02-03",
        march="Dues",
        previous_dues=250,
    )
    ledger = build_student_ledger(student, Decimal("500"), date(2024, 4, 30))
    assert ledger.total_paid == sum(e.amount_paid for e in ledger.entries)
    assert ledger.session_dues == sum(e.amount_due for e in ledger.entries)
    assert ledger.session_dues == Decimal("1300")
    assert ledger.total_dues == ledger.session_dues + Decimal("250")
    assert ledger.entries[-1].running_balance == ledger.total_dues


def test_other_fees_are_tracked_apart_from_month_dues() -> None:
    student = _student(
        other_fees=[
            OtherFee(fees_name="Exam", amount=200, paid_date="2024-02-01"),
            OtherFee(fees_name="Kit", amount=350),
        ]
    )
    ledger = build_student_ledger(student, Decimal("0"), date(2024, 3, 1))
    assert ledger.other_fees_paid == Decimal("200")
    assert ledger.other_fees_due == Decimal("350")
    assert ledger.total_dues == 0
    assert ledger.net_outstanding == Decimal("350")


def test_events_carry_month_and_date() -> None:
    ledger = build_student_ledger(
        _student(march="100=d=2024-03-02;50=d=2024-03-09", april="2024-04-01T00:00:00.000Z"),
        Decimal("150"),
        date(2024, 4, 15),
    )
    assert [(e.month_index, e.amount, e.paid_on, e.legacy) for e in ledger.events] == [
        (2, Decimal("100"), date(2024, 3, 2), False),
        (2, Decimal("50"), date(2024, 3, 9), False),
        (3, Decimal("150"), None, True),
    ]


def test_datetime_as_of_is_reduced_to_date() -> None:
    ledger = build_student_ledger(_student(), Decimal("100"), datetime(2024, 2, 1, 23, 59))
    assert ledger.as_of == date(2024, 2, 1)
    assert ledger.session_dues == Decimal("200")


@pytest.mark.parametrize("as_of", [None, "2024-01-01"])
def test_missing_or_invalid_as_of_is_a_precondition_error(as_of) -> None:
    with pytest.raises(PreconditionError):
        build_student_ledger(_student(), Decimal("100"), as_of)


def test_out_of_range_month_index_is_a_precondition_error() -> None:
    with pytest.raises(PreconditionError):
        _student().month_field(12)


@pytest.mark.parametrize(
    "field, is_past, expected",
    [
        ("200=d=2024-01-05", False, (MonthStatus.UPCOMING, Decimal("0"))),
        ("Dues", True, (MonthStatus.DUE, Decimal("500"))),
        ("200=d=2024-01-05", True, (MonthStatus.PARTIAL, Decimal("300"))),
        ("500=d=2024-01-05", True, (MonthStatus.PAID, Decimal("0"))),
    ],
)
def test_month_status_returns_status_and_amount_owed(field, is_past, expected) -> None:
    result = month_status(decode(field, Decimal("500")), Decimal("500"), is_past)
    assert isinstance(result, tuple)
    assert result == expected
