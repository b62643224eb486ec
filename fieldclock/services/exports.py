from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from fieldclock.schemas import HoursReportResponse

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

DAILY_BLOCK_DAY_HEADERS = [
    "Date",
    "Sunday/Holiday",
    "Regular Hours",
    "Overtime Hours",
    "Sunday Hours",
    "Total Hours",
]
WEEKLY_CAP_DAY_HEADERS = [
    "Date",
    "Week Start",
    "Hours",
    "Night Hours",
]
WEEK_HEADERS = [
    "Week Start",
    "Week End",
    "Total Hours",
    "Regular Hours",
    "Overtime Hours",
    "Night Hours",
]

HEADER_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
META_LABEL_FILL = PatternFill(fill_type="solid", fgColor="EAF4F9")
META_VALUE_FILL = PatternFill(fill_type="solid", fgColor="F8FCFF")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
PREMIUM_FILL = PatternFill(fill_type="solid", fgColor="FFF3CD")
SUCCESS_FILL = PatternFill(fill_type="solid", fgColor="E6F4EA")

HEADER_FONT = Font(bold=True, color="FFFFFF")
BOLD_FONT = Font(bold=True, color="0F172A")
TITLE_FONT = Font(bold=True, color="0B4F73", size=14)
MUTED_FONT = Font(color="334155")

THIN_SIDE = Side(style="thin", color="D5E2EC")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)


def _style_header(ws: Worksheet, row: int = 1) -> None:
    for cell in ws[row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = THIN_BORDER


def _auto_width(ws: Worksheet) -> None:
    for column_cells in ws.iter_cols(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        max_len = 0
        col_letter = get_column_letter(column_cells[0].column)
        for cell in column_cells:
            if cell.coordinate in ws.merged_cells:
                continue
            value = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(value))
        ws.column_dimensions[col_letter].width = min(max_len + 2, 45)


def _style_table_rows(ws: Worksheet, *, header_row: int, highlight_col: int | None = None) -> None:
    data_end_row = ws.max_row
    ws.freeze_panes = f"A{header_row + 1}"
    if data_end_row <= header_row:
        return

    ws.auto_filter.ref = f"A{header_row}:{get_column_letter(ws.max_column)}{data_end_row}"
    for row_idx in range(header_row + 1, data_end_row + 1):
        highlighted = highlight_col is not None and ws.cell(row=row_idx, column=highlight_col).value == "Yes"
        for col_idx in range(1, ws.max_column + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.border = THIN_BORDER
            if highlighted:
                cell.fill = PREMIUM_FILL
            elif row_idx % 2 == 0:
                cell.fill = ZEBRA_FILL
            if isinstance(cell.value, (int, float)):
                cell.alignment = Alignment(horizontal="center", vertical="center")
            else:
                cell.alignment = Alignment(horizontal="left", vertical="center")


def _build_summary_sheet(ws: Worksheet, report: HoursReportResponse) -> None:
    ws.title = "Summary"
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=4)
    title = ws.cell(row=1, column=1, value=f"Hours report - {report.worker_id} ({report.site})")
    title.font = TITLE_FONT
    title.alignment = Alignment(horizontal="left", vertical="center")

    rows: list[tuple[str, object]] = [
        ("Worker", report.worker_id),
        ("Site", report.site),
        ("Policy", report.policy),
        ("From", report.start_date.isoformat()),
        ("To", report.end_date.isoformat()),
        ("Total Hours", report.total_hours),
        ("Regular Hours", report.regular_hours),
        ("Overtime Hours", report.overtime_hours),
        ("Sunday Hours", report.sunday_hours),
        ("Night Hours", report.night_hours),
        ("Absence Hours", report.absence_hours),
    ]
    for offset, (label, value) in enumerate(rows):
        row_idx = 3 + offset
        label_cell = ws.cell(row=row_idx, column=1, value=label)
        value_cell = ws.cell(row=row_idx, column=2, value=value)
        label_cell.font = BOLD_FONT
        label_cell.fill = META_LABEL_FILL
        label_cell.border = THIN_BORDER
        value_cell.font = MUTED_FONT
        value_cell.fill = META_VALUE_FILL
        value_cell.border = THIN_BORDER
        if label == "Overtime Hours" and isinstance(value, float) and value > 0:
            value_cell.fill = SUCCESS_FILL
    _auto_width(ws)


def _build_daily_sheet(ws: Worksheet, report: HoursReportResponse) -> None:
    ws.title = "Daily"
    if report.policy == "DAILY_BLOCK":
        ws.append(DAILY_BLOCK_DAY_HEADERS)
        for day in report.days:
            ws.append(
                [
                    day.date.isoformat(),
                    "Yes" if day.is_sunday else "No",
                    day.regular_hours,
                    day.overtime_hours,
                    day.sunday_hours,
                    day.total_hours,
                ]
            )
        highlight_col = 2
    else:
        ws.append(WEEKLY_CAP_DAY_HEADERS)
        for day in report.days:
            ws.append(
                [
                    day.date.isoformat(),
                    day.week_start.isoformat() if day.week_start else "-",
                    day.total_hours,
                    day.night_hours,
                ]
            )
        highlight_col = None
    _style_header(ws)
    _style_table_rows(ws, header_row=1, highlight_col=highlight_col)
    _auto_width(ws)


def _build_weekly_sheet(ws: Worksheet, report: HoursReportResponse) -> None:
    ws.title = "Weekly"
    ws.append(WEEK_HEADERS)
    for week in report.weeks:
        ws.append(
            [
                week.week_start.isoformat(),
                week.week_end.isoformat(),
                week.total_hours,
                week.regular_hours,
                week.overtime_hours,
                week.night_hours,
            ]
        )
    _style_header(ws)
    _style_table_rows(ws, header_row=1)
    _auto_width(ws)


def build_hours_report_xlsx_bytes(report: HoursReportResponse) -> bytes:
    wb = Workbook()
    _build_summary_sheet(wb.active, report)
    _build_daily_sheet(wb.create_sheet(), report)
    if report.policy == "WEEKLY_CAP":
        _build_weekly_sheet(wb.create_sheet(), report)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
