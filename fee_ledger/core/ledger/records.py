"""Plain input records handed to the engine by the external record store.

Every field that a real school may leave blank is optional; the engine treats a
missing value as a zero contribution.
"""

from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from .months import MONTH_KEYS, check_month_index


class OtherFee(BaseModel):
    """One-off fee attached to a student (exam fee, admission kit, ...)."""

    fees_name: str = ""
    amount: Optional[Decimal] = Field(None, ge=0)
    dues_date: Optional[str] = None
    paid_date: Optional[str] = None

    class Config:
        extra = "ignore"


class StudentRecord(BaseModel):
    name: str = ""
    roll_number: Optional[str] = None
    class_name: Optional[str] = Field(None, alias="class")
    registration_date: Optional[str] = None
    gender: Optional[str] = None
    caste: Optional[str] = None
    previous_dues: Optional[Decimal] = Field(None, ge=0)
    other_fees: List[OtherFee] = Field(default_factory=list)

    january: Optional[str] = None
    february: Optional[str] = None
    march: Optional[str] = None
    april: Optional[str] = None
    may: Optional[str] = None
    june: Optional[str] = None
    july: Optional[str] = None
    august: Optional[str] = None
    september: Optional[str] = None
    october: Optional[str] = None
    november: Optional[str] = None
    december: Optional[str] = None

    class Config:
        populate_by_name = True
        extra = "ignore"

    def month_field(self, index: int) -> Optional[str]:
        return getattr(self, MONTH_KEYS[check_month_index(index)])


class ClassRecord(BaseModel):
    id: Optional[Union[int, str]] = None
    class_name: str
    school_fees: Optional[Decimal] = Field(None, ge=0)

    class Config:
        extra = "ignore"


class AttendanceDay(BaseModel):
    """One class's attendance sheet for one day."""

    class_id: Optional[Union[int, str]] = None
    date: Optional[str] = None
    present: Optional[str] = Field(None, description="Comma-joined roll numbers")
    absent: Optional[str] = Field(None, description="Comma-joined roll numbers")

    class Config:
        extra = "ignore"


class StaffRecord(BaseModel):
    staff_id: Optional[str] = None
    name: Optional[str] = None
    salary_amount: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = True

    class Config:
        extra = "ignore"


class StaffAttendanceDay(BaseModel):
    date: Optional[str] = None
    staff_id: Optional[str] = Field(None, description="Comma-joined ids of staff present")

    class Config:
        extra = "ignore"


class SalaryRecord(BaseModel):
    staff_id: Optional[str] = None
    date_time: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)

    class Config:
        extra = "ignore"


class ExpenseRecord(BaseModel):
    date: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)

    class Config:
        extra = "ignore"


class SubjectMarks(BaseModel):
    subject_name: str
    total_marks: Optional[Union[Decimal, str]] = None
    pass_marks: Optional[Union[Decimal, str]] = None
    obtained_marks: Optional[Union[Decimal, str]] = None

    class Config:
        extra = "ignore"


class ExamResult(BaseModel):
    exam_name: str
    class_name: Optional[str] = Field(None, alias="class")
    roll_number: Optional[str] = None
    subjects: List[SubjectMarks] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        extra = "ignore"
