"""
Unit tests for orgdesk/services/attendance_export.py

Renders small daily and weekly payloads to PDF and Excel and checks the
output format, layout and status coloring.
"""

import io
import uuid
from datetime import date, datetime
from types import SimpleNamespace

import pytest
from openpyxl import load_workbook

from orgdesk.schemas.settings import EffectiveWorkingTime
from orgdesk.services.attendance_export import (
    HEADER_FILL_HEX,
    PDF_MEDIA_TYPE,
    TONE_COLORS,
    XLSX_MEDIA_TYPE,
    ExportMeta,
    daily_cell,
    render_export,
    weekly_cell_text,
)
from orgdesk.services.attendance_service import (
    TONE_RED,
    Employee,
    build_daily_rows,
    build_weekly_view,
)
from orgdesk.services.calendar_service import build_default_calendar

MONDAY = date(2026, 3, 2)


def _meta():
    return ExportMeta(
        company_name="Acme",
        workspace_name="Acme Workspace",
        start=MONDAY,
        end=MONDAY,
        employee_count=1,
        generated_at=datetime(2026, 3, 2, 12, 0),
    )


def _payloads():
    calendar = build_default_calendar(EffectiveWorkingTime(
        working_hours_start="09:00",
        working_hours_end="18:00",
        working_days=["monday", "tuesday", "wednesday", "thursday", "friday"],
    ))
    employee = Employee(id=str(uuid.uuid4()), name="Deniz")
    record = SimpleNamespace(
        id=uuid.uuid4(),
        employee_id=uuid.UUID(employee.id),
        work_date=MONDAY,
        shift_start=None,
        shift_end=None,
        check_in="09:30",
        check_out="18:45",
        check_in_source="web",
        check_out_source="web",
        location_shared=False,
        approval_status="approved",
    )
    rows = build_daily_rows([employee], [record], MONDAY, MONDAY, calendar)
    view = build_weekly_view([employee], [record], MONDAY, calendar)
    return rows, view


def test_meta_text():
    meta = _meta()

    assert meta.summary == "Period: 02.03.2026 - 02.03.2026 | Employees: 1"
    assert meta.footer == "Acme Workspace | Generated 02.03.2026 12:00 UTC"


def test_cell_text():
    rows, view = _payloads()
    row = rows[0]

    assert daily_cell(row, "date") == "02.03.2026 (Mon)"
    assert daily_cell(row, "check_in_status") == "Late check-in"
    assert daily_cell(row, "check_out_status") == "Overtime"
    assert daily_cell(row, "location_shared") == "-"
    assert daily_cell(row, "diff") == "+00:15"
    assert weekly_cell_text(view["rows"][0]["cells"][0]["row"]) == "09:30 / 18:45\n09:00-18:00\n+00:15"
    assert weekly_cell_text(None) == "-"


@pytest.mark.parametrize("view_name", ["daily", "weekly"])
def test_pdf_export(view_name):
    rows, view = _payloads()
    payload = rows if view_name == "daily" else view

    content, media_type, filename = render_export(view_name, "pdf", payload, _meta())

    assert content.startswith(b"%PDF")
    assert media_type == PDF_MEDIA_TYPE
    assert filename == f"attendance-{view_name}.pdf"


def test_daily_xlsx_layout():
    rows, _ = _payloads()

    content, media_type, filename = render_export("daily", "xlsx", rows, _meta())

    assert content.startswith(b"PK")
    assert media_type == XLSX_MEDIA_TYPE
    assert filename == "attendance-daily.xlsx"

    ws = load_workbook(io.BytesIO(content)).active
    assert ws.title == "Daily"
    assert ws["A1"].value == "Acme - Daily Attendance"
    assert ws["A3"].value == "Employee"
    assert ws["A3"].fill.start_color.rgb.endswith(HEADER_FILL_HEX)
    assert ws.freeze_panes == "A4"
    assert ws["A4"].value == "Deniz"
    # check-in status column is red for a late arrival
    late_cell = ws["E4"]
    assert late_cell.value == "Late check-in"
    assert late_cell.fill.start_color.rgb.endswith(TONE_COLORS[TONE_RED][0])


def test_weekly_xlsx_layout():
    _, view = _payloads()

    content, _, filename = render_export("weekly", "xlsx", view, _meta())

    assert filename == "attendance-weekly.xlsx"
    ws = load_workbook(io.BytesIO(content)).active
    assert ws.title == "Weekly"
    assert ws["B3"].value == "Mon 02.03"
    assert ws["H3"].value == "Sun 08.03"
    assert ws["B4"].fill.start_color.rgb.endswith(TONE_COLORS[TONE_RED][0])
    assert ws["H4"].value == "-"
