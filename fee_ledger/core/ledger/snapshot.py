"""Immutable engine output: per-student ledgers and the cohort snapshot."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from fee_ledger.core.enums import MonthStatus


class MonthLedgerEntry(BaseModel):
    month_index: int = Field(..., ge=0, le=11)
    month: str
    status: MonthStatus
    fee: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    running_balance: Decimal
    is_past: bool
    explicit_due: bool = False

    class Config:
        frozen = True


class LedgerEvent(BaseModel):
    """A decoded payment kept on the ledger so dated reducers need not re-decode."""

    month_index: int = Field(..., ge=0, le=11)
    amount: Decimal
    paid_on: Optional[date] = None
    legacy: bool = False

    class Config:
        frozen = True


class StudentLedger(BaseModel):
    name: str
    roll_number: Optional[str] = None
    class_name: Optional[str] = None
    fee: Decimal
    as_of: date
    entries: List[MonthLedgerEntry]
    total_paid: Decimal
    session_dues: Decimal
    previous_dues: Decimal
    total_dues: Decimal
    other_fees_paid: Decimal = Decimal("0")
    other_fees_due: Decimal = Decimal("0")
    net_outstanding: Decimal
    explicit_due_months: int = 0
    events: List[LedgerEvent] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def has_session_dues(self) -> bool:
        return self.session_dues > 0


class ClassSummary(BaseModel):
    class_name: str
    students: int = 0
    total_paid: Decimal = Decimal("0")
    total_dues: Decimal = Decimal("0")
    paid_today: Decimal = Decimal("0")
    paid_this_month: Decimal = Decimal("0")
    students_with_dues: int = 0
    present_today: int = 0
    absent_today: int = 0

    class Config:
        frozen = True


class DailyCount(BaseModel):
    date: date
    value: int

    class Config:
        frozen = True


class StaffSummary(BaseModel):
    total_staff: int = 0
    active_staff: int = 0
    present_today: int = 0
    monthly_liability: Decimal = Decimal("0")
    salary_bands: Dict[str, int] = Field(default_factory=dict)
    salary_paid_all_time: Decimal = Decimal("0")
    salary_paid_this_month: Decimal = Decimal("0")

    class Config:
        frozen = True


class ExamSummary(BaseModel):
    exam_name: str
    results: int
    average_percent: Decimal
    pass_rate: Decimal

    class Config:
        frozen = True


class SubjectSummary(BaseModel):
    subject_name: str
    entries: int
    average_percent: Decimal

    class Config:
        frozen = True


class AggregateSnapshot(BaseModel):
    """Result of one aggregation pass. Built fresh on every call, never mutated."""

    as_of: date

    # Fee totals
    total_students: int
    total_classes: int
    total_paid: Decimal
    total_dues: Decimal
    total_previous_dues: Decimal
    paid_today: Decimal
    paid_this_month: Decimal
    students_with_dues: int
    other_fees_paid: Decimal
    other_fees_due: Decimal
    total_expenses: Decimal

    classes: List[ClassSummary]

    # Calendar series for the as-of year, January first
    collections_by_month: List[Decimal]
    admissions_by_month: List[int]
    attendance_by_month: List[int]
    salary_by_month: List[Decimal]
    expenses_by_month: List[Decimal]
    net_by_month: List[Decimal]

    attendance_by_day: List[DailyCount]
    present_today: int
    absent_today: int

    expenses_by_category: Dict[str, Decimal]
    gender: Dict[str, int]
    caste: Dict[str, int]
    class_strength: Dict[str, int]

    staff: StaffSummary
    exams: List[ExamSummary]
    subjects: List[SubjectSummary]

    sources: Dict[str, bool]

    class Config:
        frozen = True

    def class_summary(self, class_name: str) -> Optional[ClassSummary]:
        for c in self.classes:
            if c.class_name == class_name:
                return c
        return None
