"""Reshape engine output into what each dashboard view draws.

No business logic lives here beyond ordering, trimming and display rounding;
the snapshot totals stay exact and every view reads the same numbers.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from fee_ledger.core.enums import Gender, MonthStatus

from .months import MONTH_LABELS, to_decimal
from .snapshot import AggregateSnapshot, StudentLedger

PRESENT_ABSENT_COLORS = ("#10b981", "#ef4444")
GENDER_COLORS = ("#3b82f6", "#ec4899")
STATUS_COLORS = ("#10b981", "#9ca3af")
EXPENSE_PALETTE = ("#f59e0b", "#6366f1", "#ec4899", "#8b5cf6", "#14b8a6")
CATEGORY_PALETTE = ("#6366f1", "#10b981", "#f59e0b", "#ef4444", "#ec4899")
CURRENCY_SYMBOL = "₹"


# --- Shapes ---
class LabelValue(BaseModel):
    label: str
    value: float


class DonutSlice(BaseModel):
    label: str
    value: float
    color: str


class BarGroup(BaseModel):
    name: str
    values: List[float]


class GroupedBars(BaseModel):
    labels: List[str]
    groups: List[BarGroup]


# --- Primitive reshapers ---
def display_number(value, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_percent(value, places: int = 0) -> float:
    return display_number(value, places)


def percent_of(part, whole, places: int = 0) -> float:
    whole = to_decimal(whole)
    if whole <= 0:
        return 0.0
    return round_percent(to_decimal(part) / whole * 100, places)


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount) -> str:
    """Rupee amount with Indian digit grouping, e.g. 123456.5 -> '₹1,23,456.50'."""
    value = to_decimal(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        return f"{sign}{CURRENCY_SYMBOL}{_group_indian(str(int(value)))}"
    whole, frac = str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)).split(".")
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}.{frac}"


def to_label_value_series(
    mapping: Mapping[str, object],
    ranked: bool = False,
    limit: Optional[int] = None,
    places: int = 2,
) -> List[LabelValue]:
    """``ranked`` sorts by value, highest first (ties by label); otherwise the mapping order is kept."""
    items = list(mapping.items())
    if ranked:
        items.sort(key=lambda kv: (-to_decimal(kv[1]), kv[0]))
    if limit is not None:
        items = items[:limit]
    return [LabelValue(label=str(label), value=display_number(value, places)) for label, value in items]


def month_series(values: Sequence, places: int = 2) -> List[LabelValue]:
    return [LabelValue(label=MONTH_LABELS[i], value=display_number(v, places)) for i, v in enumerate(values)]


def to_donut(mapping: Mapping[str, object], palette: Sequence[str] = CATEGORY_PALETTE) -> List[DonutSlice]:
    return [
        DonutSlice(label=str(label), value=display_number(value), color=palette[i % len(palette)])
        for i, (label, value) in enumerate(mapping.items())
    ]


def to_grouped_bars(labels: Sequence[str], groups: Mapping[str, Sequence]) -> GroupedBars:
    return GroupedBars(
        labels=list(labels),
        groups=[BarGroup(name=name, values=[display_number(v) for v in values]) for name, values in groups.items()],
    )


def _gender_donut(gender: Mapping[str, int]) -> List[DonutSlice]:
    return to_donut(
        {"Boys": gender.get(Gender.MALE.value, 0), "Girls": gender.get(Gender.FEMALE.value, 0)},
        GENDER_COLORS,
    )


# --- Views ---
class DashboardView(BaseModel):
    total_students: int
    total_staff: int
    total_classes: int
    total_revenue: float
    total_expenses: float
    total_dues: float
    cards: Dict[str, str]
    attendance_today: List[DonutSlice]
    revenue_trend: List[LabelValue]
    expense_category: List[DonutSlice]
    class_strength: List[LabelValue]
    gender: List[DonutSlice]
    exam_performance: List[LabelValue]
    staff_status: List[DonutSlice]
    profit_trend: List[LabelValue]


def dashboard_view(snapshot: AggregateSnapshot, top_classes: int = 10) -> DashboardView:
    revenue = snapshot.total_paid + snapshot.other_fees_paid
    dues = snapshot.total_dues + snapshot.other_fees_due
    staff = snapshot.staff
    return DashboardView(
        total_students=snapshot.total_students,
        total_staff=staff.total_staff,
        total_classes=snapshot.total_classes,
        total_revenue=display_number(revenue),
        total_expenses=display_number(snapshot.total_expenses),
        total_dues=display_number(dues),
        cards={
            "Total Revenue": format_currency(revenue),
            "Total Expenses": format_currency(snapshot.total_expenses),
            "Net Dues": format_currency(dues),
            "Total Students": str(snapshot.total_students),
        },
        attendance_today=to_donut(
            {"Present": snapshot.present_today, "Absent": snapshot.absent_today}, PRESENT_ABSENT_COLORS
        ),
        revenue_trend=month_series(snapshot.collections_by_month),
        expense_category=to_donut(snapshot.expenses_by_category, EXPENSE_PALETTE),
        class_strength=to_label_value_series(snapshot.class_strength, ranked=True, limit=top_classes, places=0),
        gender=_gender_donut(snapshot.gender),
        exam_performance=[
            LabelValue(label=e.exam_name, value=round_percent(e.average_percent)) for e in snapshot.exams
        ],
        staff_status=to_donut(
            {"Active": staff.active_staff, "Inactive": staff.total_staff - staff.active_staff}, STATUS_COLORS
        ),
        profit_trend=month_series(snapshot.net_by_month),
    )


class FeesAnalysisView(BaseModel):
    total_paid: float
    total_dues: float
    total_expenses: float
    total_classes: int
    total_staff: int
    today_present_students: int
    today_dues_students: int
    today_paid_money: float
    class_attendance_today: List[LabelValue]
    class_dues_count: List[LabelValue]
    class_dues_amount: List[LabelValue]
    class_paid_today: List[LabelValue]
    class_paid_this_month: List[LabelValue]
    class_collection_vs_dues: GroupedBars
    caste_total: List[DonutSlice]
    admission_trend: List[LabelValue]


def fees_analysis_view(snapshot: AggregateSnapshot) -> FeesAnalysisView:
    classes = snapshot.classes
    return FeesAnalysisView(
        total_paid=display_number(snapshot.total_paid),
        total_dues=display_number(snapshot.total_dues),
        total_expenses=display_number(snapshot.total_expenses),
        total_classes=snapshot.total_classes,
        total_staff=snapshot.staff.total_staff,
        today_present_students=snapshot.present_today,
        today_dues_students=snapshot.students_with_dues,
        today_paid_money=display_number(snapshot.paid_today),
        class_attendance_today=to_label_value_series(
            {c.class_name: c.present_today for c in classes if c.present_today or c.absent_today}, places=0
        ),
        class_dues_count=to_label_value_series(
            {c.class_name: c.students_with_dues for c in classes if c.students_with_dues}, ranked=True, places=0
        ),
        class_dues_amount=to_label_value_series(
            {c.class_name: c.total_dues for c in classes if c.total_dues > 0}, ranked=True
        ),
        class_paid_today=to_label_value_series(
            {c.class_name: c.paid_today for c in classes if c.paid_today > 0}, ranked=True
        ),
        class_paid_this_month=to_label_value_series(
            {c.class_name: c.paid_this_month for c in classes if c.paid_this_month > 0}, ranked=True
        ),
        class_collection_vs_dues=to_grouped_bars(
            [c.class_name for c in classes],
            {"Collected": [c.total_paid for c in classes], "Dues": [c.total_dues for c in classes]},
        ),
        caste_total=to_donut(snapshot.caste),
        admission_trend=month_series(snapshot.admissions_by_month, places=0),
    )


class AdmissionsView(BaseModel):
    total_students: int
    new_admissions: int
    trend: List[LabelValue]
    gender: List[DonutSlice]
    caste: List[DonutSlice]
    class_strength: List[LabelValue]


def admissions_view(snapshot: AggregateSnapshot) -> AdmissionsView:
    return AdmissionsView(
        total_students=snapshot.total_students,
        new_admissions=sum(snapshot.admissions_by_month),
        trend=month_series(snapshot.admissions_by_month, places=0),
        gender=_gender_donut(snapshot.gender),
        caste=to_donut(snapshot.caste, EXPENSE_PALETTE),
        class_strength=to_label_value_series(snapshot.class_strength, ranked=True, places=0),
    )


class AttendanceView(BaseModel):
    present_today: int
    absent_today: int
    attendance_rate: float
    today: List[DonutSlice]
    daily_trend: List[LabelValue]
    class_today: List[LabelValue]
    monthly: List[LabelValue]


def attendance_view(snapshot: AggregateSnapshot) -> AttendanceView:
    marked = snapshot.present_today + snapshot.absent_today
    return AttendanceView(
        present_today=snapshot.present_today,
        absent_today=snapshot.absent_today,
        attendance_rate=percent_of(snapshot.present_today, marked, places=1),
        today=to_donut({"Present": snapshot.present_today, "Absent": snapshot.absent_today}, PRESENT_ABSENT_COLORS),
        daily_trend=[
            LabelValue(label=f"{MONTH_LABELS[d.date.month - 1]} {d.date.day}", value=d.value)
            for d in snapshot.attendance_by_day
        ],
        class_today=to_label_value_series(
            {c.class_name: c.present_today for c in snapshot.classes if c.present_today or c.absent_today},
            ranked=True,
            places=0,
        ),
        monthly=month_series(snapshot.attendance_by_month, places=0),
    )


class SalaryView(BaseModel):
    total_paid_all_time: float
    monthly_liability: float
    current_month_paid: float
    trend: List[LabelValue]
    liability_vs_paid: List[LabelValue]


def salary_view(snapshot: AggregateSnapshot) -> SalaryView:
    staff = snapshot.staff
    return SalaryView(
        total_paid_all_time=display_number(staff.salary_paid_all_time),
        monthly_liability=display_number(staff.monthly_liability),
        current_month_paid=display_number(staff.salary_paid_this_month),
        trend=month_series(snapshot.salary_by_month),
        liability_vs_paid=to_label_value_series(
            {"Expected Payout": staff.monthly_liability, "Paid This Month": staff.salary_paid_this_month}
        ),
    )


class StaffView(BaseModel):
    total_staff: int
    active_staff: int
    present_today: int
    salary_distribution: List[LabelValue]
    status: List[DonutSlice]
    attendance: List[DonutSlice]


def staff_view(snapshot: AggregateSnapshot) -> StaffView:
    staff = snapshot.staff
    return StaffView(
        total_staff=staff.total_staff,
        active_staff=staff.active_staff,
        present_today=staff.present_today,
        salary_distribution=to_label_value_series(staff.salary_bands, places=0),
        status=to_donut(
            {"Active": staff.active_staff, "Inactive": staff.total_staff - staff.active_staff},
            PRESENT_ABSENT_COLORS,
        ),
        attendance=to_donut(
            {"Present": staff.present_today, "Absent": max(staff.active_staff - staff.present_today, 0)},
            ("#3b82f6", "#f59e0b"),
        ),
    )


class ResultsView(BaseModel):
    total_exams: int
    exam_performance: List[LabelValue]
    pass_rates: List[LabelValue]
    subject_performance: List[LabelValue]


def results_view(snapshot: AggregateSnapshot, top_subjects: int = 10) -> ResultsView:
    return ResultsView(
        total_exams=len(snapshot.exams),
        exam_performance=[
            LabelValue(label=e.exam_name, value=round_percent(e.average_percent)) for e in snapshot.exams
        ],
        pass_rates=[LabelValue(label=e.exam_name, value=round_percent(e.pass_rate)) for e in snapshot.exams],
        subject_performance=to_label_value_series(
            {s.subject_name: s.average_percent for s in snapshot.subjects},
            ranked=True,
            limit=top_subjects,
            places=0,
        ),
    )


# --- Ledger-level views ---
class DuesStudentRow(BaseModel):
    name: str
    roll_number: Optional[str] = None
    explicit_due_months: int
    session_dues: float
    previous_dues: float
    other_fees_due: float
    due_amount: float


class DuesClassGroup(BaseModel):
    class_name: str
    total_dues: float
    students: List[DuesStudentRow]


class DuesListView(BaseModel):
    total_dues: float
    classes: List[DuesClassGroup]


def dues_list_view(ledgers: Iterable[StudentLedger]) -> DuesListView:
    """Students who owe anything, grouped by class; biggest debts first."""
    grouped: Dict[str, List[StudentLedger]] = {}
    for ledger in ledgers:
        if ledger.net_outstanding <= 0:
            continue
        grouped.setdefault(ledger.class_name or "Unassigned", []).append(ledger)

    groups = []
    for class_name, members in grouped.items():
        members.sort(key=lambda l: (-l.net_outstanding, l.name))
        total = sum((l.net_outstanding for l in members), Decimal("0"))
        groups.append(
            (
                total,
                DuesClassGroup(
                    class_name=class_name,
                    total_dues=display_number(total),
                    students=[
                        DuesStudentRow(
                            name=l.name,
                            roll_number=l.roll_number,
                            explicit_due_months=l.explicit_due_months,
                            session_dues=display_number(l.session_dues),
                            previous_dues=display_number(l.previous_dues),
                            other_fees_due=display_number(l.other_fees_due),
                            due_amount=display_number(l.net_outstanding),
                        )
                        for l in members
                    ],
                ),
            )
        )
    groups.sort(key=lambda g: (-g[0], g[1].class_name))
    return DuesListView(
        total_dues=display_number(sum((g[0] for g in groups), Decimal("0"))),
        classes=[g[1] for g in groups],
    )


class FeeCardRow(BaseModel):
    month: str
    fee: float
    paid: float
    balance: float
    status: MonthStatus
    status_text: str


class StudentFeeCard(BaseModel):
    name: str
    class_name: Optional[str] = None
    monthly_fee: float
    rows: List[FeeCardRow]
    total_paid: float
    session_dues: float
    previous_dues: float
    net_outstanding: float
    summary: Dict[str, str] = Field(default_factory=dict)


def _status_text(status: MonthStatus, balance: Decimal) -> str:
    if status == MonthStatus.PARTIAL:
        return f"Bal: {format_currency(balance)}"
    if status == MonthStatus.DUE:
        return "Dues"
    return status.value


def student_fee_card(ledger: StudentLedger) -> StudentFeeCard:
    return StudentFeeCard(
        name=ledger.name,
        class_name=ledger.class_name,
        monthly_fee=display_number(ledger.fee),
        rows=[
            FeeCardRow(
                month=e.month,
                fee=display_number(e.fee),
                paid=display_number(e.amount_paid),
                balance=display_number(e.amount_due),
                status=e.status,
                status_text=_status_text(e.status, e.amount_due),
            )
            for e in ledger.entries
        ],
        total_paid=display_number(ledger.total_paid),
        session_dues=display_number(ledger.session_dues),
        previous_dues=display_number(ledger.previous_dues),
        net_outstanding=display_number(ledger.net_outstanding),
        summary={
            "Total Paid": format_currency(ledger.total_paid + ledger.other_fees_paid),
            "Previous Dues": format_currency(ledger.previous_dues),
            "Net Outstanding": format_currency(ledger.net_outstanding),
        },
    )
