"""Ledger schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from fee_ledger.core.enums import FieldShape
from fee_ledger.core.ledger.records import (
    AttendanceDay,
    ClassRecord,
    ExamResult,
    ExpenseRecord,
    SalaryRecord,
    StaffAttendanceDay,
    StaffRecord,
    StudentRecord,
)


# --- Month field ---
class DecodeFieldRequest(BaseModel):
    field: Optional[str] = Field(None, description="Raw month field as stored on the student record")
    legacy_full_amount: Decimal = Field(Decimal("0"), ge=0, description="Monthly fee used for the legacy paid-in-full marker")


class FeeEventResponse(BaseModel):
    amount: Decimal
    paid_on: Optional[date] = None
    raw_date: Optional[str] = None
    legacy: bool = False


class DecodeFieldResponse(BaseModel):
    shape: FieldShape
    explicit_due: bool
    total: Decimal
    events: List[FeeEventResponse]


class RecordPaymentRequest(BaseModel):
    field: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    paid_at: Optional[datetime] = None


class RecordPaymentResponse(BaseModel):
    field: str
    decoded: DecodeFieldResponse


# --- Student ledger ---
class StudentLedgerRequest(BaseModel):
    student: StudentRecord
    classes: List[ClassRecord] = Field(default_factory=list)
    fee: Optional[Decimal] = Field(None, ge=0, description="Overrides the class fee lookup when given")
    as_of: Optional[date] = None


# --- Cohort ---
class CohortRequest(BaseModel):
    """Already-fetched records for one school. Omitted optional sources count as zero."""

    students: List[StudentRecord] = Field(default_factory=list)
    classes: List[ClassRecord] = Field(default_factory=list)
    attendance: Optional[List[AttendanceDay]] = None
    staff: Optional[List[StaffRecord]] = None
    staff_attendance: Optional[List[StaffAttendanceDay]] = None
    salary_records: Optional[List[SalaryRecord]] = None
    expenses: Optional[List[ExpenseRecord]] = None
    exam_results: Optional[List[ExamResult]] = None
    as_of: Optional[date] = None
