"""Per-student fee ledger for the current session."""

from datetime import date
from decimal import Decimal
from typing import List, Tuple

from fee_ledger.core.enums import MonthStatus

from .codec import DecodedField, decode
from .months import MONTH_NAMES, require_as_of, to_decimal
from .records import StudentRecord
from .snapshot import LedgerEvent, MonthLedgerEntry, StudentLedger

ZERO = Decimal("0")


def month_status(decoded: DecodedField, fee: Decimal, is_past: bool) -> Tuple[MonthStatus, Decimal]:
    """Status and amount owed for one month. Order of the checks matters."""
    if not is_past:
        return MonthStatus.UPCOMING, ZERO
    if fee <= 0:
        return MonthStatus.PAID, ZERO
    paid = decoded.total
    if decoded.explicit_due or not decoded.has_events:
        return MonthStatus.DUE, fee
    if paid >= fee:
        return MonthStatus.PAID, ZERO
    return MonthStatus.PARTIAL, fee - paid


def build_student_ledger(student: StudentRecord, fee, as_of: date) -> StudentLedger:
    """Build the twelve-month ledger of ``student`` as observed on ``as_of``.

    Months after the as-of month are Upcoming and never owe anything, but money
    already recorded against them still counts as paid. Previous dues are added
    once to the session total.
    """
    as_of = require_as_of(as_of)
    fee = to_decimal(fee)
    previous_dues = to_decimal(student.previous_dues)
    as_of_index = as_of.month - 1

    entries: List[MonthLedgerEntry] = []
    events: List[LedgerEvent] = []
    total_paid = ZERO
    session_dues = ZERO
    explicit_due_months = 0
    running = previous_dues

    for index in range(12):
        decoded = decode(student.month_field(index), fee)
        is_past = index <= as_of_index
        status, amount_due = month_status(decoded, fee, is_past)
        amount_paid = decoded.total

        total_paid += amount_paid
        session_dues += amount_due
        running += amount_due
        if decoded.explicit_due:
            explicit_due_months += 1

        entries.append(
            MonthLedgerEntry(
                month_index=index,
                month=MONTH_NAMES[index],
                status=status,
                fee=fee,
                amount_paid=amount_paid,
                amount_due=amount_due,
                running_balance=running,
                is_past=is_past,
                explicit_due=decoded.explicit_due,
            )
        )
        events.extend(
            LedgerEvent(month_index=index, amount=e.amount, paid_on=e.paid_on, legacy=e.legacy)
            for e in decoded.events
        )

    other_paid = ZERO
    other_due = ZERO
    for other in student.other_fees:
        if other.paid_date:
            other_paid += to_decimal(other.amount)
        else:
            other_due += to_decimal(other.amount)

    total_dues = session_dues + previous_dues
    return StudentLedger(
        name=student.name,
        roll_number=student.roll_number,
        class_name=student.class_name,
        fee=fee,
        as_of=as_of,
        entries=entries,
        total_paid=total_paid,
        session_dues=session_dues,
        previous_dues=previous_dues,
        total_dues=total_dues,
        other_fees_paid=other_paid,
        other_fees_due=other_due,
        net_outstanding=total_dues + other_due,
        explicit_due_months=explicit_due_months,
        events=events,
    )
