from enum import Enum


class FieldShape(str, Enum):
    """Which historical encoding a month field was stored in."""

    EMPTY = "EMPTY"
    EXPLICIT_DUE = "EXPLICIT_DUE"
    LEGACY_FULL = "LEGACY_FULL"
    EVENT_LIST = "EVENT_LIST"


class MonthStatus(str, Enum):
    PAID = "Paid"
    PARTIAL = "Partial"
    DUE = "Due"
    UPCOMING = "Upcoming"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class ReportView(str, Enum):
    DASHBOARD = "dashboard"
    FEES = "fees"
    ADMISSIONS = "admissions"
    ATTENDANCE = "attendance"
    SALARY = "salary"
    STAFF = "staff"
    RESULTS = "results"
    DUES = "dues"
