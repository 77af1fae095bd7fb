"""Reports router: one endpoint per dashboard view, the student fee card and the dues workbook."""

from fastapi import APIRouter, HTTPException, Response

from fee_ledger.api.v1.ledger.schemas import CohortRequest, StudentLedgerRequest
from fee_ledger.core.enums import ReportView
from fee_ledger.core.exceptions import ServiceError
from fee_ledger.core.ledger.projection import (
    AdmissionsView,
    AttendanceView,
    DashboardView,
    DuesListView,
    FeesAnalysisView,
    ResultsView,
    SalaryView,
    StaffView,
    StudentFeeCard,
)
from . import service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _view(view: ReportView, payload: CohortRequest):
    try:
        return await service.get_view(view, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/dashboard", response_model=DashboardView)
async def dashboard(payload: CohortRequest) -> DashboardView:
    return await _view(ReportView.DASHBOARD, payload)


@router.post("/fees", response_model=FeesAnalysisView)
async def fees_analysis(payload: CohortRequest) -> FeesAnalysisView:
    return await _view(ReportView.FEES, payload)


@router.post("/admissions", response_model=AdmissionsView)
async def admissions(payload: CohortRequest) -> AdmissionsView:
    return await _view(ReportView.ADMISSIONS, payload)


@router.post("/attendance", response_model=AttendanceView)
async def attendance(payload: CohortRequest) -> AttendanceView:
    return await _view(ReportView.ATTENDANCE, payload)


@router.post("/salary", response_model=SalaryView)
async def salary(payload: CohortRequest) -> SalaryView:
    return await _view(ReportView.SALARY, payload)


@router.post("/staff", response_model=StaffView)
async def staff(payload: CohortRequest) -> StaffView:
    return await _view(ReportView.STAFF, payload)


@router.post("/results", response_model=ResultsView)
async def results(payload: CohortRequest) -> ResultsView:
    return await _view(ReportView.RESULTS, payload)


@router.post("/dues", response_model=DuesListView)
async def dues_list(payload: CohortRequest) -> DuesListView:
    return await _view(ReportView.DUES, payload)


@router.post("/dues/export")
async def export_dues(payload: CohortRequest) -> Response:
    """Download the dues list as an Excel workbook (class summary + per-student sheet)."""
    try:
        content = await service.export_dues_workbook(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=dues_list.xlsx"},
    )


@router.post("/student-card", response_model=StudentFeeCard)
async def student_fee_card(payload: StudentLedgerRequest) -> StudentFeeCard:
    try:
        return await service.get_student_fee_card(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
