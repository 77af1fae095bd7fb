"""Cohort aggregation: fold student ledgers and side records into one snapshot.

Student contributions are collected in a :class:`CohortAccumulator`. Two
accumulators built over disjoint student lists can be merged in any order and
give the same result as a single pass over the combined list, which is what
lets a host shard the student list across workers. Everything that is not
per-student (attendance, staff, salaries, expenses, exams) is reduced once in
:func:`summarize`.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from fee_ledger.core.enums import Gender

from .builder import build_student_ledger
from .months import count_joined, parse_calendar_date, require_as_of, to_decimal
from .records import (
    AttendanceDay,
    ClassRecord,
    ExamResult,
    ExpenseRecord,
    SalaryRecord,
    StaffAttendanceDay,
    StaffRecord,
    StudentRecord,
)
from .schedule import FeeSchedule
from .snapshot import (
    AggregateSnapshot,
    ClassSummary,
    DailyCount,
    ExamSummary,
    StaffSummary,
    StudentLedger,
    SubjectSummary,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
UNASSIGNED_CLASS = "Unassigned"
DEFAULT_CASTE = "General"
UNCATEGORIZED = "Uncategorized"
SALARY_BANDS = (
    ("0-10k", Decimal("10000")),
    ("10k-20k", Decimal("20000")),
    ("20k-50k", Decimal("50000")),
    ("50k+", None),
)


def _zero_months() -> List[Decimal]:
    return [ZERO] * 12


def _add_series(a: Sequence, b: Sequence) -> list:
    return [x + y for x, y in zip(a, b)]


@dataclass
class ClassTotals:
    students: int = 0
    total_paid: Decimal = ZERO
    total_dues: Decimal = ZERO
    paid_today: Decimal = ZERO
    paid_this_month: Decimal = ZERO
    students_with_dues: int = 0

    def merged(self, other: "ClassTotals") -> "ClassTotals":
        return ClassTotals(
            students=self.students + other.students,
            total_paid=self.total_paid + other.total_paid,
            total_dues=self.total_dues + other.total_dues,
            paid_today=self.paid_today + other.paid_today,
            paid_this_month=self.paid_this_month + other.paid_this_month,
            students_with_dues=self.students_with_dues + other.students_with_dues,
        )


@dataclass
class CohortAccumulator:
    """Running student-side totals for one as-of date."""

    as_of: date
    students: int = 0
    total_paid: Decimal = ZERO
    total_dues: Decimal = ZERO
    total_previous_dues: Decimal = ZERO
    paid_today: Decimal = ZERO
    paid_this_month: Decimal = ZERO
    students_with_dues: int = 0
    other_fees_paid: Decimal = ZERO
    other_fees_due: Decimal = ZERO
    classes: Dict[str, ClassTotals] = field(default_factory=dict)
    collections_by_month: List[Decimal] = field(default_factory=_zero_months)
    admissions_by_month: List[int] = field(default_factory=lambda: [0] * 12)
    gender: Counter = field(default_factory=Counter)
    caste: Counter = field(default_factory=Counter)

    def add(self, student: StudentRecord, ledger: StudentLedger) -> None:
        as_of = self.as_of
        class_name = student.class_name or UNASSIGNED_CLASS
        totals = self.classes.setdefault(class_name, ClassTotals())

        paid_today = ZERO
        paid_this_month = ZERO
        for event in ledger.events:
            if event.paid_on is None:
                continue
            if event.paid_on == as_of:
                paid_today += event.amount
            if event.paid_on.year == as_of.year:
                self.collections_by_month[event.paid_on.month - 1] += event.amount
                if event.paid_on.month == as_of.month:
                    paid_this_month += event.amount

        for other in student.other_fees:
            paid_on = parse_calendar_date(other.paid_date)
            if paid_on is not None and paid_on.year == as_of.year:
                self.collections_by_month[paid_on.month - 1] += to_decimal(other.amount)

        has_dues = ledger.has_session_dues
        self.students += 1
        self.total_paid += ledger.total_paid
        self.total_dues += ledger.total_dues
        self.total_previous_dues += ledger.previous_dues
        self.paid_today += paid_today
        self.paid_this_month += paid_this_month
        self.students_with_dues += int(has_dues)
        self.other_fees_paid += ledger.other_fees_paid
        self.other_fees_due += ledger.other_fees_due

        totals.students += 1
        totals.total_paid += ledger.total_paid
        totals.total_dues += ledger.total_dues
        totals.paid_today += paid_today
        totals.paid_this_month += paid_this_month
        totals.students_with_dues += int(has_dues)

        registered = parse_calendar_date(student.registration_date)
        if registered is not None and registered.year == as_of.year:
            self.admissions_by_month[registered.month - 1] += 1

        self.gender[_gender_bucket(student.gender)] += 1
        self.caste[student.caste or DEFAULT_CASTE] += 1

    def merge(self, other: "CohortAccumulator") -> "CohortAccumulator":
        if other.as_of != self.as_of:
            raise ValueError("Cannot merge accumulators built for different as-of dates")
        classes: Dict[str, ClassTotals] = {}
        for part in (self.classes, other.classes):
            for name, totals in part.items():
                classes[name] = classes.get(name, ClassTotals()).merged(totals)
        return CohortAccumulator(
            as_of=self.as_of,
            students=self.students + other.students,
            total_paid=self.total_paid + other.total_paid,
            total_dues=self.total_dues + other.total_dues,
            total_previous_dues=self.total_previous_dues + other.total_previous_dues,
            paid_today=self.paid_today + other.paid_today,
            paid_this_month=self.paid_this_month + other.paid_this_month,
            students_with_dues=self.students_with_dues + other.students_with_dues,
            other_fees_paid=self.other_fees_paid + other.other_fees_paid,
            other_fees_due=self.other_fees_due + other.other_fees_due,
            classes=classes,
            collections_by_month=_add_series(self.collections_by_month, other.collections_by_month),
            admissions_by_month=_add_series(self.admissions_by_month, other.admissions_by_month),
            gender=self.gender + other.gender,
            caste=self.caste + other.caste,
        )


def _gender_bucket(value: Optional[str]) -> str:
    if value == Gender.MALE.value:
        return Gender.MALE.value
    if value == Gender.FEMALE.value:
        return Gender.FEMALE.value
    return Gender.OTHER.value


def fold_students(
    students: Optional[Iterable[StudentRecord]],
    schedule: FeeSchedule,
    as_of: date,
) -> CohortAccumulator:
    """Single pass over ``students``; no student sees another's state."""
    acc = CohortAccumulator(as_of=require_as_of(as_of))
    for student in students or []:
        fee = schedule.resolve(student.class_name)
        acc.add(student, build_student_ledger(student, fee, acc.as_of))
    return acc


def merge_accumulators(parts: Iterable[CohortAccumulator], as_of: date) -> CohortAccumulator:
    result = CohortAccumulator(as_of=require_as_of(as_of))
    for part in parts:
        result = result.merge(part)
    return result


# --- Side sources ---
def _note_missing(sources: Dict[str, bool]) -> None:
    missing = [name for name, present in sources.items() if not present]
    if missing:
        logger.info("Optional sources not supplied, treating as zero: %s", ", ".join(missing))


def _attendance_stats(
    attendance: Sequence[AttendanceDay],
    classes: Sequence[ClassRecord],
    as_of: date,
    trend_days: int,
):
    class_names = {str(c.id): c.class_name for c in classes if c.id is not None}
    window_start = as_of - timedelta(days=trend_days - 1)
    by_day: Dict[date, int] = {window_start + timedelta(days=i): 0 for i in range(trend_days)}
    by_month = [0] * 12
    present_today = 0
    absent_today = 0
    class_today: Dict[str, List[int]] = {}

    for record in attendance:
        day = parse_calendar_date(record.date)
        if day is None:
            logger.debug("Skipping attendance row with unreadable date %r", record.date)
            continue
        present = count_joined(record.present)
        if day.year == as_of.year:
            by_month[day.month - 1] += present
        if day in by_day:
            by_day[day] += present
        if day == as_of:
            absent = count_joined(record.absent)
            present_today += present
            absent_today += absent
            name = class_names.get(str(record.class_id)) if record.class_id is not None else None
            if name is not None:
                counts = class_today.setdefault(name, [0, 0])
                counts[0] += present
                counts[1] += absent

    daily = [DailyCount(date=d, value=v) for d, v in sorted(by_day.items())]
    return by_month, daily, present_today, absent_today, class_today


def _salary_band(amount: Decimal) -> str:
    for label, upper in SALARY_BANDS:
        if upper is None or amount < upper:
            return label
    return SALARY_BANDS[-1][0]


def _staff_summary(
    staff: Sequence[StaffRecord],
    staff_attendance: Sequence[StaffAttendanceDay],
    salary_records: Sequence[SalaryRecord],
    as_of: date,
):
    bands = {label: 0 for label, _ in SALARY_BANDS}
    active = 0
    liability = ZERO
    for member in staff:
        salary = to_decimal(member.salary_amount)
        bands[_salary_band(salary)] += 1
        if member.is_active is not False:
            active += 1
            liability += salary

    present_today = sum(
        count_joined(row.staff_id)
        for row in staff_attendance
        if parse_calendar_date(row.date) == as_of
    )

    by_month = _zero_months()
    paid_all_time = ZERO
    paid_this_month = ZERO
    for record in salary_records:
        amount = to_decimal(record.amount)
        paid_all_time += amount
        paid_on = parse_calendar_date(record.date_time)
        if paid_on is not None and paid_on.year == as_of.year:
            by_month[paid_on.month - 1] += amount
            if paid_on.month == as_of.month:
                paid_this_month += amount

    summary = StaffSummary(
        total_staff=len(staff),
        active_staff=active,
        present_today=present_today,
        monthly_liability=liability,
        salary_bands=bands,
        salary_paid_all_time=paid_all_time,
        salary_paid_this_month=paid_this_month,
    )
    return summary, by_month


def _percent(obtained: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return ZERO
    return obtained / total * HUNDRED


def _exam_summaries(results: Sequence[ExamResult], pass_percent: Decimal):
    exams: Dict[str, List[Decimal]] = {}
    subjects: Dict[str, List[Decimal]] = {}
    for result in results:
        total = sum((to_decimal(s.total_marks) for s in result.subjects), ZERO)
        obtained = sum((to_decimal(s.obtained_marks) for s in result.subjects), ZERO)
        exams.setdefault(result.exam_name, []).append(_percent(obtained, total))
        for s in result.subjects:
            subject_total = to_decimal(s.total_marks)
            if subject_total <= 0:
                continue
            subjects.setdefault(s.subject_name, []).append(
                _percent(to_decimal(s.obtained_marks), subject_total)
            )

    exam_rows = []
    for name in sorted(exams):
        percents = exams[name]
        passed = sum(1 for p in percents if p >= pass_percent)
        exam_rows.append(
            ExamSummary(
                exam_name=name,
                results=len(percents),
                average_percent=sum(percents, ZERO) / len(percents),
                pass_rate=Decimal(passed) / len(percents) * HUNDRED,
            )
        )
    subject_rows = [
        SubjectSummary(
            subject_name=name,
            entries=len(subjects[name]),
            average_percent=sum(subjects[name], ZERO) / len(subjects[name]),
        )
        for name in sorted(subjects)
    ]
    return exam_rows, subject_rows


def summarize(
    acc: CohortAccumulator,
    classes: Optional[Sequence[ClassRecord]] = None,
    *,
    attendance: Optional[Sequence[AttendanceDay]] = None,
    staff: Optional[Sequence[StaffRecord]] = None,
    staff_attendance: Optional[Sequence[StaffAttendanceDay]] = None,
    salary_records: Optional[Sequence[SalaryRecord]] = None,
    expenses: Optional[Sequence[ExpenseRecord]] = None,
    exam_results: Optional[Sequence[ExamResult]] = None,
    trend_days: int = 7,
    pass_percent=33,
) -> AggregateSnapshot:
    """Turn a student accumulator plus the side sources into an immutable snapshot."""
    as_of = acc.as_of
    if trend_days < 1:
        raise ValueError("trend_days must be at least 1")
    sources = {
        "attendance": attendance is not None,
        "staff": staff is not None,
        "staff_attendance": staff_attendance is not None,
        "salary_records": salary_records is not None,
        "expenses": expenses is not None,
        "exam_results": exam_results is not None,
    }
    _note_missing(sources)
    classes = list(classes or [])

    attendance_by_month, attendance_by_day, present_today, absent_today, class_today = _attendance_stats(
        attendance or [], classes, as_of, trend_days
    )
    staff_summary, salary_by_month = _staff_summary(
        staff or [], staff_attendance or [], salary_records or [], as_of
    )

    expenses_by_month = _zero_months()
    expenses_by_category: Dict[str, Decimal] = {}
    expenses_total = ZERO
    for expense in expenses or []:
        amount = to_decimal(expense.amount)
        expenses_total += amount
        category = expense.category or UNCATEGORIZED
        expenses_by_category[category] = expenses_by_category.get(category, ZERO) + amount
        spent_on = parse_calendar_date(expense.date)
        if spent_on is not None and spent_on.year == as_of.year:
            expenses_by_month[spent_on.month - 1] += amount

    exam_rows, subject_rows = _exam_summaries(exam_results or [], to_decimal(pass_percent))

    class_names = set(acc.classes) | set(class_today)
    class_rows = []
    for name in sorted(class_names):
        totals = acc.classes.get(name, ClassTotals())
        present, absent = class_today.get(name, (0, 0))
        class_rows.append(
            ClassSummary(
                class_name=name,
                students=totals.students,
                total_paid=totals.total_paid,
                total_dues=totals.total_dues,
                paid_today=totals.paid_today,
                paid_this_month=totals.paid_this_month,
                students_with_dues=totals.students_with_dues,
                present_today=present,
                absent_today=absent,
            )
        )

    return AggregateSnapshot(
        as_of=as_of,
        total_students=acc.students,
        total_classes=len(classes),
        total_paid=acc.total_paid,
        total_dues=acc.total_dues,
        total_previous_dues=acc.total_previous_dues,
        paid_today=acc.paid_today,
        paid_this_month=acc.paid_this_month,
        students_with_dues=acc.students_with_dues,
        other_fees_paid=acc.other_fees_paid,
        other_fees_due=acc.other_fees_due,
        total_expenses=expenses_total + staff_summary.salary_paid_all_time,
        classes=class_rows,
        collections_by_month=list(acc.collections_by_month),
        admissions_by_month=list(acc.admissions_by_month),
        attendance_by_month=attendance_by_month,
        salary_by_month=salary_by_month,
        expenses_by_month=expenses_by_month,
        net_by_month=[c - e for c, e in zip(acc.collections_by_month, expenses_by_month)],
        attendance_by_day=attendance_by_day,
        present_today=present_today,
        absent_today=absent_today,
        expenses_by_category=dict(sorted(expenses_by_category.items())),
        gender={g.value: acc.gender.get(g.value, 0) for g in Gender},
        caste=dict(sorted(acc.caste.items())),
        class_strength={name: t.students for name, t in sorted(acc.classes.items())},
        staff=staff_summary,
        exams=exam_rows,
        subjects=subject_rows,
        sources=sources,
    )


def aggregate(
    students: Optional[Iterable[StudentRecord]],
    classes: Optional[Sequence[ClassRecord]],
    as_of: date,
    **sources,
) -> AggregateSnapshot:
    """Compute the full cohort snapshot as observed on ``as_of``.

    ``sources`` are the optional keyword inputs of :func:`summarize`
    (attendance, staff, staff_attendance, salary_records, expenses,
    exam_results, trend_days, pass_percent). Calling this twice with equal
    inputs returns equal snapshots; there are no clock reads.
    """
    as_of = require_as_of(as_of)
    classes = list(classes or [])
    acc = fold_students(students, FeeSchedule.from_classes(classes), as_of)
    return summarize(acc, classes, **sources)


def aggregate_sharded(
    shards: Iterable[Iterable[StudentRecord]],
    classes: Optional[Sequence[ClassRecord]],
    as_of: date,
    **sources,
) -> AggregateSnapshot:
    """Same result as :func:`aggregate` over the concatenated shards."""
    as_of = require_as_of(as_of)
    classes = list(classes or [])
    schedule = FeeSchedule.from_classes(classes)
    acc = merge_accumulators((fold_students(shard, schedule, as_of) for shard in shards), as_of)
    return summarize(acc, classes, **sources)
