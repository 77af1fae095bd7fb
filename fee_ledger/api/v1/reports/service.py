"""Reports service: dashboard views and the dues workbook, all derived from one snapshot pass."""

import io

from openpyxl import Workbook
from pydantic import BaseModel

from fee_ledger.api.v1.ledger import service as ledger_service
from fee_ledger.api.v1.ledger.schemas import CohortRequest, StudentLedgerRequest
from fee_ledger.core.config import settings
from fee_ledger.core.enums import ReportView
from fee_ledger.core.ledger import projection
from fee_ledger.core.ledger.projection import DuesListView, StudentFeeCard

SUMMARY_SHEET_NAME = "Dues by class"
STUDENTS_SHEET_NAME = "Students with dues"
SUMMARY_HEADERS = ("class_name", "students", "total_dues")
STUDENT_HEADERS = (
    "class_name",
    "name",
    "roll_number",
    "months_marked_dues",
    "session_dues",
    "previous_dues",
    "other_fees_due",
    "total_due",
)


async def get_view(view: ReportView, payload: CohortRequest) -> BaseModel:
    if view == ReportView.DUES:
        return await get_dues_list(payload)
    snapshot = await ledger_service.build_snapshot(payload)
    if view == ReportView.DASHBOARD:
        return projection.dashboard_view(snapshot, top_classes=settings.top_class_limit)
    if view == ReportView.FEES:
        return projection.fees_analysis_view(snapshot)
    if view == ReportView.ADMISSIONS:
        return projection.admissions_view(snapshot)
    if view == ReportView.ATTENDANCE:
        return projection.attendance_view(snapshot)
    if view == ReportView.SALARY:
        return projection.salary_view(snapshot)
    if view == ReportView.STAFF:
        return projection.staff_view(snapshot)
    return projection.results_view(snapshot, top_subjects=settings.top_class_limit)


async def get_dues_list(payload: CohortRequest) -> DuesListView:
    ledgers = await ledger_service.list_student_ledgers(payload)
    return projection.dues_list_view(ledgers)


async def get_student_fee_card(payload: StudentLedgerRequest) -> StudentFeeCard:
    ledger = await ledger_service.get_student_ledger(payload)
    return projection.student_fee_card(ledger)


def _build_dues_excel(dues: DuesListView) -> bytes:
    wb = Workbook()

    # Sheet: one row per class, biggest dues first
    ws_summary = wb.active
    ws_summary.title = SUMMARY_SHEET_NAME
    ws_summary.append(list(SUMMARY_HEADERS))
    for group in dues.classes:
        ws_summary.append([group.class_name, len(group.students), group.total_dues])
    ws_summary.append(["Total", sum(len(g.students) for g in dues.classes), dues.total_dues])

    # Sheet: one row per student
    ws_students = wb.create_sheet(STUDENTS_SHEET_NAME)
    ws_students.append(list(STUDENT_HEADERS))
    for group in dues.classes:
        for row in group.students:
            ws_students.append(
                [
                    group.class_name,
                    row.name,
                    row.roll_number or "",
                    row.explicit_due_months,
                    row.session_dues,
                    row.previous_dues,
                    row.other_fees_due,
                    row.due_amount,
                ]
            )

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


async def export_dues_workbook(payload: CohortRequest) -> bytes:
    """Excel workbook of the dues list: a class summary sheet and a per-student sheet."""
    return _build_dues_excel(await get_dues_list(payload))
