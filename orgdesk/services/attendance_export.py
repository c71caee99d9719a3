"""
Attendance exports: PDF (reportlab) and Excel (openpyxl).

Both formats render the rows built by attendance_service; status cells are
colored the same way in each.
"""

import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A3, A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from orgdesk.services.attendance_service import TONE_AMBER, TONE_BLUE, TONE_RED

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (fill, font) hex pairs
TONE_COLORS = {
    TONE_RED: ("FDECEA", "B71C1C"),
    TONE_AMBER: ("FFF4E5", "B26A00"),
    TONE_BLUE: ("E3F2FD", "1565C0"),
}

HEADER_FILL_HEX = "F2F2F2"
ZEBRA_FILL_HEX = "FAFAFA"

CHECK_IN_LABELS = {"late": "Late check-in", "early": "Early check-in", "on_time": "On time"}
CHECK_OUT_LABELS = {"early": "Early check-out", "overtime": "Overtime", "on_time": "On time"}

DAILY_COLUMNS = [
    ("employee_name", "Employee"),
    ("date", "Date"),
    ("shift", "Shift"),
    ("check_in", "Check-in"),
    ("check_in_status", "Check-in status"),
    ("check_out", "Check-out"),
    ("check_out_status", "Check-out status"),
    ("worked", "Worked"),
    ("diff", "Difference"),
    ("location_shared", "Location shared"),
]


@dataclass
class ExportMeta:
    company_name: str
    workspace_name: str
    start: date
    end: date
    employee_count: int
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def period(self) -> str:
        return f"{self.start:%d.%m.%Y} - {self.end:%d.%m.%Y}"

    @property
    def summary(self) -> str:
        return f"Period: {self.period} | Employees: {self.employee_count}"

    @property
    def footer(self) -> str:
        return f"{self.workspace_name} | Generated {self.generated_at:%d.%m.%Y %H:%M} UTC"


def export_filename(view: str, fmt: str) -> str:
    return f"attendance-{view}.{fmt}"


def check_in_tone(status: Optional[str]) -> Optional[str]:
    if status == "late":
        return TONE_RED
    if status == "early":
        return TONE_AMBER
    return None


def check_out_tone(status: Optional[str]) -> Optional[str]:
    if status == "early":
        return TONE_RED
    if status == "overtime":
        return TONE_BLUE
    return None


def status_label(kind: str, status: Optional[str]) -> str:
    labels = CHECK_IN_LABELS if kind == "in" else CHECK_OUT_LABELS
    return labels.get(status, "-")


def daily_cell(row: dict, key: str) -> str:
    if key == "date":
        return f"{row['date']:%d.%m.%Y} ({row['date']:%a})"
    if key == "check_in_status":
        return status_label("in", row.get("check_in_status"))
    if key == "check_out_status":
        return status_label("out", row.get("check_out_status"))
    if key == "location_shared":
        return "Yes" if row.get("location_shared") else "-"
    value = row.get(key)
    return value if value else "-"


def weekly_cell_text(row: Optional[dict]) -> str:
    if not row:
        return "-"
    lines = [f"{row.get('check_in') or '-'} / {row.get('check_out') or '-'}"]
    if row.get("shift"):
        lines.append(row["shift"])
    if row.get("diff") and row["diff"] != "-":
        lines.append(row["diff"])
    return "\n".join(lines)


def weekly_headers(view: dict) -> list[str]:
    return ["Employee"] + [f"{d:%a} {d:%d.%m}" for d in view["days"]]


class AttendancePDF:
    """Builds attendance tables as PDF documents."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name="CompanyHeader",
            parent=self.styles["Normal"],
            fontSize=14,
            fontName="Helvetica-Bold",
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name="ReportTitle",
            parent=self.styles["Normal"],
            fontSize=18,
            fontName="Helvetica-Bold",
            alignment=TA_CENTER,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name="Summary",
            parent=self.styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#555555"),
            spaceAfter=2,
        ))
        self.styles.add(ParagraphStyle(
            name="Footer",
            parent=self.styles["Normal"],
            fontSize=8,
            textColor=colors.HexColor("#777777"),
            alignment=TA_RIGHT,
        ))

    def _header(self, title: str, meta: ExportMeta) -> list:
        return [
            Paragraph(meta.company_name, self.styles["CompanyHeader"]),
            Paragraph(title, self.styles["ReportTitle"]),
            Paragraph(meta.summary, self.styles["Summary"]),
            Paragraph(meta.footer, self.styles["Footer"]),
            Spacer(1, 0.4 * cm),
        ]

    @staticmethod
    def _base_style() -> list:
        return [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(f"#{HEADER_FILL_HEX}")),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("ALIGN", (1, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#CCCCCC")),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ]

    @staticmethod
    def _tone_style(style: list, col: int, row: int, tone: Optional[str]):
        if tone is None:
            return
        fill, font = TONE_COLORS[tone]
        style.append(("BACKGROUND", (col, row), (col, row), colors.HexColor(f"#{fill}")))
        style.append(("TEXTCOLOR", (col, row), (col, row), colors.HexColor(f"#{font}")))

    def _build(self, story: list, pagesize) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=pagesize,
            leftMargin=1 * cm,
            rightMargin=1 * cm,
            topMargin=1 * cm,
            bottomMargin=1 * cm,
        )
        doc.build(story)
        buffer.seek(0)
        return buffer.getvalue()

    def daily(self, rows: list[dict], meta: ExportMeta) -> bytes:
        keys = [key for key, _ in DAILY_COLUMNS]
        data = [[label for _, label in DAILY_COLUMNS]]
        style = self._base_style()
        in_col = keys.index("check_in_status")
        out_col = keys.index("check_out_status")
        for index, row in enumerate(rows, start=1):
            data.append([daily_cell(row, key) for key in keys])
            self._tone_style(style, in_col, index, check_in_tone(row.get("check_in_status")))
            self._tone_style(style, out_col, index, check_out_tone(row.get("check_out_status")))

        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle(style))
        story = self._header("Daily Attendance Report", meta) + [table]
        return self._build(story, landscape(A4))

    def weekly(self, view: dict, meta: ExportMeta) -> bytes:
        data = [weekly_headers(view)]
        style = self._base_style()
        for index, person in enumerate(view["rows"], start=1):
            data.append(
                [person["employee_name"]]
                + [weekly_cell_text(cell["row"]) for cell in person["cells"]]
            )
            for col, cell in enumerate(person["cells"], start=1):
                self._tone_style(style, col, index, cell["tone"])

        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle(style))
        story = self._header("Weekly Attendance Report", meta) + [table]
        return self._build(story, landscape(A3))


THIN_BORDER = Border(
    left=Side(style="thin", color="DDDDDD"),
    right=Side(style="thin", color="DDDDDD"),
    top=Side(style="thin", color="DDDDDD"),
    bottom=Side(style="thin", color="DDDDDD"),
)
HEADER_ROW = 3


def _fill(hex_color: str) -> PatternFill:
    return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")


def _apply_tone(cell, tone: Optional[str]):
    if tone is None:
        return
    fill, font = TONE_COLORS[tone]
    cell.fill = _fill(fill)
    cell.font = Font(color=font)


def _start_sheet(wb: Workbook, title: str, sheet_title: str, meta: ExportMeta, headers: list[str]):
    ws = wb.active
    ws.title = sheet_title
    ws.cell(row=1, column=1, value=f"{meta.company_name} - {title}").font = Font(bold=True, size=14)
    ws.cell(row=2, column=1, value=meta.summary).font = Font(italic=True, color="555555")
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=header)
        cell.font = Font(bold=True)
        cell.fill = _fill(HEADER_FILL_HEX)
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = THIN_BORDER
    ws.freeze_panes = ws.cell(row=HEADER_ROW + 1, column=1)
    return ws


def _finish_sheet(ws, headers: list[str], wb: Workbook, max_width: int = 40) -> bytes:
    for col in range(1, len(headers) + 1):
        max_len = 0
        for row in ws.iter_rows(min_row=HEADER_ROW, max_row=ws.max_row, min_col=col, max_col=col):
            for cell in row:
                if cell.value:
                    longest = max(len(line) for line in str(cell.value).split("\n"))
                    max_len = max(max_len, min(longest, max_width))
        ws.column_dimensions[get_column_letter(col)].width = max(max_len + 2, 10)
    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()


def daily_xlsx(rows: list[dict], meta: ExportMeta) -> bytes:
    wb = Workbook()
    headers = [label for _, label in DAILY_COLUMNS]
    ws = _start_sheet(wb, "Daily Attendance", "Daily", meta, headers)
    keys = [key for key, _ in DAILY_COLUMNS]

    for offset, row in enumerate(rows):
        excel_row = HEADER_ROW + 1 + offset
        zebra = offset % 2 == 1
        for col, key in enumerate(keys, start=1):
            cell = ws.cell(row=excel_row, column=col, value=daily_cell(row, key))
            cell.border = THIN_BORDER
            if zebra:
                cell.fill = _fill(ZEBRA_FILL_HEX)
            if key == "check_in_status":
                _apply_tone(cell, check_in_tone(row.get("check_in_status")))
            elif key == "check_out_status":
                _apply_tone(cell, check_out_tone(row.get("check_out_status")))
            elif key == "diff" and row.get("diff_minutes"):
                cell.font = Font(color="1565C0" if row["diff_minutes"] > 0 else "B71C1C")

    return _finish_sheet(ws, headers, wb)


def weekly_xlsx(view: dict, meta: ExportMeta) -> bytes:
    wb = Workbook()
    headers = weekly_headers(view)
    ws = _start_sheet(wb, "Weekly Attendance", "Weekly", meta, headers)

    for offset, person in enumerate(view["rows"]):
        excel_row = HEADER_ROW + 1 + offset
        zebra = offset % 2 == 1
        name_cell = ws.cell(row=excel_row, column=1, value=person["employee_name"])
        name_cell.border = THIN_BORDER
        if zebra:
            name_cell.fill = _fill(ZEBRA_FILL_HEX)
        for col, day in enumerate(person["cells"], start=2):
            cell = ws.cell(row=excel_row, column=col, value=weekly_cell_text(day["row"]))
            cell.alignment = Alignment(wrap_text=True, horizontal="center", vertical="top")
            cell.border = THIN_BORDER
            if zebra:
                cell.fill = _fill(ZEBRA_FILL_HEX)
            _apply_tone(cell, day["tone"])

    return _finish_sheet(ws, headers, wb, max_width=24)


def render_export(view: str, fmt: str, payload, meta: ExportMeta) -> tuple[bytes, str, str]:
    """Return (content, media type, filename) for a daily or weekly export."""
    if fmt == "pdf":
        pdf = AttendancePDF()
        content = pdf.daily(payload, meta) if view == "daily" else pdf.weekly(payload, meta)
        media_type = PDF_MEDIA_TYPE
    else:
        content = daily_xlsx(payload, meta) if view == "daily" else weekly_xlsx(payload, meta)
        media_type = XLSX_MEDIA_TYPE
    return content, media_type, export_filename(view, fmt)
