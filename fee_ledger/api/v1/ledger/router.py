"""Ledger router: decode month fields, record a payment, student ledger, cohort snapshot."""

from fastapi import APIRouter, HTTPException, status

from fee_ledger.core.exceptions import ServiceError
from fee_ledger.core.ledger import AggregateSnapshot, StudentLedger

from .schemas import (
    CohortRequest,
    DecodeFieldRequest,
    DecodeFieldResponse,
    RecordPaymentRequest,
    RecordPaymentResponse,
    StudentLedgerRequest,
)
from . import service

router = APIRouter(prefix="/api/v1/ledger", tags=["ledger"])


@router.post("/decode", response_model=DecodeFieldResponse)
async def decode_field(payload: DecodeFieldRequest) -> DecodeFieldResponse:
    """Classify a raw month field and list the payments it holds."""
    return await service.decode_field(payload)


@router.post("/payments", response_model=RecordPaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(payload: RecordPaymentRequest) -> RecordPaymentResponse:
    """Return the month field with one more payment appended. Storing it is up to the caller."""
    try:
        return await service.record_payment(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/student", response_model=StudentLedger)
async def get_student_ledger(payload: StudentLedgerRequest) -> StudentLedger:
    try:
        return await service.get_student_ledger(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/snapshot", response_model=AggregateSnapshot)
async def build_snapshot(payload: CohortRequest) -> AggregateSnapshot:
    try:
        return await service.build_snapshot(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
