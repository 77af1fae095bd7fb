"""Ledger service: month field decoding, student ledgers and cohort snapshots over supplied records."""

import asyncio
import logging
import math
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import status

from fee_ledger.core.config import settings
from fee_ledger.core.exceptions import ServiceError
from fee_ledger.core.ledger import (
    AggregateSnapshot,
    CohortAccumulator,
    DecodedField,
    FeeSchedule,
    StudentLedger,
    append_payment,
    build_student_ledger,
    decode,
    fold_students,
    merge_accumulators,
    summarize,
)

from .schemas import (
    CohortRequest,
    DecodeFieldRequest,
    DecodeFieldResponse,
    FeeEventResponse,
    RecordPaymentRequest,
    RecordPaymentResponse,
    StudentLedgerRequest,
)

logger = logging.getLogger(__name__)


def _today() -> date:
    # The host is the only place allowed to read the clock; the engine always gets as_of.
    return date.today()


def _decoded_to_response(decoded: DecodedField) -> DecodeFieldResponse:
    return DecodeFieldResponse(
        shape=decoded.shape,
        explicit_due=decoded.explicit_due,
        total=decoded.total,
        events=[
            FeeEventResponse(amount=e.amount, paid_on=e.paid_on, raw_date=e.raw_date, legacy=e.legacy)
            for e in decoded.events
        ],
    )


# --- Month field ---
async def decode_field(payload: DecodeFieldRequest) -> DecodeFieldResponse:
    return _decoded_to_response(decode(payload.field, payload.legacy_full_amount))


async def record_payment(payload: RecordPaymentRequest) -> RecordPaymentResponse:
    paid_at = payload.paid_at or datetime.now(timezone.utc)
    try:
        new_field = append_payment(payload.field, payload.amount, paid_at)
    except ValueError as e:
        raise ServiceError(str(e), status.HTTP_400_BAD_REQUEST)
    return RecordPaymentResponse(
        field=new_field,
        decoded=_decoded_to_response(decode(new_field, 0)),
    )


# --- Student ledger ---
async def get_student_ledger(payload: StudentLedgerRequest) -> StudentLedger:
    as_of = payload.as_of or _today()
    if payload.fee is not None:
        fee = payload.fee
    else:
        fee = FeeSchedule.from_classes(payload.classes).resolve(payload.student.class_name)
    return build_student_ledger(payload.student, fee, as_of)


def _build_ledgers(students, schedule: FeeSchedule, as_of: date) -> List[StudentLedger]:
    return [build_student_ledger(s, schedule.resolve(s.class_name), as_of) for s in students]


async def list_student_ledgers(payload: CohortRequest) -> List[StudentLedger]:
    as_of = payload.as_of or _today()
    schedule = FeeSchedule.from_classes(payload.classes)
    return await asyncio.to_thread(_build_ledgers, payload.students, schedule, as_of)


# --- Cohort ---
async def _fold_sharded(payload: CohortRequest, as_of: date, workers: int) -> CohortAccumulator:
    schedule = FeeSchedule.from_classes(payload.classes)
    students = payload.students
    if workers <= 1 or len(students) < 2:
        return await asyncio.to_thread(fold_students, students, schedule, as_of)
    size = math.ceil(len(students) / workers)
    shards = [students[i:i + size] for i in range(0, len(students), size)]
    logger.debug("Folding %d students in %d shards", len(students), len(shards))
    parts = await asyncio.gather(
        *(asyncio.to_thread(fold_students, shard, schedule, as_of) for shard in shards)
    )
    return merge_accumulators(parts, as_of)


async def build_snapshot(payload: CohortRequest, workers: Optional[int] = None) -> AggregateSnapshot:
    as_of = payload.as_of or _today()
    acc = await _fold_sharded(payload, as_of, workers or settings.aggregation_workers)
    return summarize(
        acc,
        payload.classes,
        attendance=payload.attendance,
        staff=payload.staff,
        staff_attendance=payload.staff_attendance,
        salary_records=payload.salary_records,
        expenses=payload.expenses,
        exam_results=payload.exam_results,
        trend_days=settings.attendance_trend_days,
        pass_percent=settings.exam_pass_percent,
    )
