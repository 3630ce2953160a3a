# Overview: Spreadsheet export of the company report.

from __future__ import annotations

import io

from openpyxl import Workbook
from openpyxl.styles import Font

from .order_service import OrderFilters
from .profit_service import generate_company_report


REPORT_COLUMNS = (
    ("date", "Date"),
    ("series", "Series"),
    ("customer", "Customer"),
    ("item", "Item"),
    ("service", "Service"),
    ("uom", "UOM"),
    ("quantity", "Quantity"),
    ("unit", "Unit"),
    ("base_uom", "Base UOM"),
    ("cost_price", "Cost Price"),
    ("total_cost", "Total Cost"),
    ("selling_price", "Selling Price"),
    ("sales", "Sales"),
    ("commission", "Commission"),
    ("daily_fixed_cost_per_day", "Daily Fixed Cost"),
    ("profit_before_fixed_cost", "Profit Before Fixed Cost"),
)

TOTAL_LABELS = (
    ("total_sales", "Total Sales"),
    ("total_cost", "Total Cost"),
    ("total_commission", "Total Commission"),
    ("constant_daily_fixed_cost", "Daily Fixed Cost"),
    ("number_of_days", "Number of Days"),
    ("total_daily_fixed_cost", "Total Fixed Cost"),
    ("total_profit", "Total Profit"),
    ("orders_count", "Orders"),
    ("items_count", "Items"),
)


def company_report_workbook(filters: OrderFilters | None = None) -> bytes:
    """
    Render every matching report row (no pagination) plus a totals sheet
    as an .xlsx document.
    """
    report = generate_company_report(skip=0, take=1, filters=filters)
    total_items = report["pagination"]["total_items"]
    if total_items > 1:
        report = generate_company_report(skip=0, take=total_items, filters=filters)

    wb = Workbook()
    sheet = wb.active
    sheet.title = "Report"
    sheet.append([label for _, label in REPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in report["rows"]:
        sheet.append([row.get(key) for key, _ in REPORT_COLUMNS])

    totals = wb.create_sheet("Totals")
    for key, label in TOTAL_LABELS:
        totals.append([label, report["totals"][key]])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
