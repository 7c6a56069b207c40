"""
Excel class broadsheet: one row per student with every term average,
rank and the annual remark.
"""
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from . import config
from .engine import ANNUAL, LOW_SCORE_THRESHOLD, TERM_KEYS, remark, term_label


def build_broadsheet(records, title, scale=None):
    """Return the broadsheet workbook as bytes."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Broadsheet"

    # Styles
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color=config.EXCEL_HEADER_COLOR, end_color=config.EXCEL_HEADER_COLOR, fill_type="solid")
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )
    low_font = Font(color="B91C1C", bold=True)

    ws.cell(row=1, column=1, value=title).font = Font(bold=True, size=13)

    headers = ["Registration No", "Student Name"]
    for key in TERM_KEYS:
        label = term_label(key).title()
        headers.extend([f"{label} Avg", f"{label} Rank"])
    headers.append("Remark")

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=3, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center', wrap_text=True)
        cell.border = thin_border

    ordered = sorted(records, key=lambda r: r.term_totals[ANNUAL].rank or 0)
    for row, record in enumerate(ordered, 4):
        ws.cell(row=row, column=1, value=record.student.registration_number).border = thin_border
        ws.cell(row=row, column=2, value=record.student.name).border = thin_border

        col = 3
        for key in TERM_KEYS:
            totals = record.term_totals[key]
            average_cell = ws.cell(row=row, column=col, value=totals.average)
            average_cell.number_format = '0.0'
            if totals.average < LOW_SCORE_THRESHOLD:
                average_cell.font = low_font
            ws.cell(row=row, column=col + 1, value=f"{totals.rank}/{totals.out_of}")
            for offset in (0, 1):
                cell = ws.cell(row=row, column=col + offset)
                cell.border = thin_border
                cell.alignment = Alignment(horizontal='center')
            col += 2

        annual = record.term_totals[ANNUAL].average
        text, _ = remark(annual or None, scale, empty='N/A')
        ws.cell(row=row, column=col, value=text).border = thin_border

    # Adjust column widths
    ws.column_dimensions['A'].width = 18
    ws.column_dimensions['B'].width = 32
    for col in range(3, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 14

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
