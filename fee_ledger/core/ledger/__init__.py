from fee_ledger.core.ledger.codec import (
    DecodedField,
    FeeEvent,
    append_payment,
    classify,
    decode,
    encode_events,
)
from fee_ledger.core.ledger.schedule import FeeSchedule, resolve_fee
from fee_ledger.core.ledger.builder import build_student_ledger
from fee_ledger.core.ledger.aggregator import (
    CohortAccumulator,
    aggregate,
    aggregate_sharded,
    fold_students,
    merge_accumulators,
    summarize,
)
from fee_ledger.core.ledger.records import (
    AttendanceDay,
    ClassRecord,
    ExamResult,
    ExpenseRecord,
    OtherFee,
    SalaryRecord,
    StaffAttendanceDay,
    StaffRecord,
    StudentRecord,
    SubjectMarks,
)
from fee_ledger.core.ledger.snapshot import (
    AggregateSnapshot,
    ClassSummary,
    MonthLedgerEntry,
    StudentLedger,
)

__all__ = [
    "DecodedField",
    "FeeEvent",
    "append_payment",
    "classify",
    "decode",
    "encode_events",
    "FeeSchedule",
    "resolve_fee",
    "build_student_ledger",
    "CohortAccumulator",
    "aggregate",
    "aggregate_sharded",
    "fold_students",
    "merge_accumulators",
    "summarize",
    "AttendanceDay",
    "ClassRecord",
    "ExamResult",
    "ExpenseRecord",
    "OtherFee",
    "SalaryRecord",
    "StaffAttendanceDay",
    "StaffRecord",
    "StudentRecord",
    "SubjectMarks",
    "AggregateSnapshot",
    "ClassSummary",
    "MonthLedgerEntry",
    "StudentLedger",
]
