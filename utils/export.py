"""
utils/export.py — Excel export of expense lists using openpyxl.

One sheet, styled header row, one row per expense, a total row at the end.
Columns: Date, Farm, Category, Amount, Notes.
"""

from io import BytesIO
from datetime import date

from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from utils.dates import parse_date

CATEGORY_FILLS = {
    'Seeds': PatternFill(start_color='4CAF50', end_color='4CAF50', fill_type='solid'),
    'Fertilizer': PatternFill(start_color='00897B', end_color='00897B', fill_type='solid'),
    'Equipment': PatternFill(start_color='1565C0', end_color='1565C0', fill_type='solid'),
    'Labor': PatternFill(start_color='FFB300', end_color='FFB300', fill_type='solid'),
    'Maintenance': PatternFill(start_color='7B1FA2', end_color='7B1FA2', fill_type='solid'),
    'Other': PatternFill(start_color='757575', end_color='757575', fill_type='solid'),
}

HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='2E7D32', end_color='2E7D32', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
HEADER_BORDER = Border(
    bottom=Side(style='thin', color='1B5E20'),
    right=Side(style='thin', color='E2E8F0'),
)
CELL_BORDER = Border(
    bottom=Side(style='thin', color='E2E8F0'),
    right=Side(style='thin', color='E2E8F0'),
)
AMOUNT_FORMAT = '#,##0.00'


def _build_sheet(ws, expenses):
    """Populate a worksheet with expense rows, styled header and total."""
    columns = ['Date', 'Farm', 'Category', 'Amount', 'Notes']
    for col_idx, col_name in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER

    row_idx = 2
    for expense in expenses:
        parsed = parse_date(expense.get('date'))
        date_cell = ws.cell(row=row_idx, column=1, value=parsed.date() if parsed else None)
        date_cell.number_format = 'YYYY-MM-DD'
        date_cell.border = CELL_BORDER

        ws.cell(row=row_idx, column=2, value=expense.get('farm_name', '')).border = CELL_BORDER

        category = expense.get('category', '')
        cat_cell = ws.cell(row=row_idx, column=3, value=category)
        cat_cell.border = CELL_BORDER
        if category in CATEGORY_FILLS:
            cat_cell.fill = CATEGORY_FILLS[category]
            cat_cell.font = Font(color='FFFFFF', bold=True)

        amount_cell = ws.cell(row=row_idx, column=4, value=float(expense.get('amount') or 0))
        amount_cell.number_format = AMOUNT_FORMAT
        amount_cell.border = CELL_BORDER

        ws.cell(row=row_idx, column=5, value=expense.get('notes') or '').border = CELL_BORDER
        row_idx += 1

    ws.cell(row=row_idx, column=3, value='Total').font = Font(bold=True)
    total_cell = ws.cell(row=row_idx, column=4, value=f'=SUM(D2:D{row_idx - 1})')
    total_cell.number_format = AMOUNT_FORMAT
    total_cell.font = Font(bold=True)

    ws.column_dimensions['A'].width = 12
    ws.column_dimensions['B'].width = 24
    ws.column_dimensions['C'].width = 14
    ws.column_dimensions['D'].width = 12
    ws.column_dimensions['E'].width = 36

    ws.freeze_panes = 'A2'


def generate_expense_workbook(expenses, month=None):
    """Generate an Excel workbook for a list of serialized expenses.

    Returns:
        (BytesIO buffer, filename) on success, (None, None) when there is nothing to export.
    """
    import openpyxl

    if not expenses:
        return None, None

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = f'Expenses {month}' if month else 'Expenses'

    _build_sheet(ws, expenses)

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    suffix = month or date.today().strftime('%Y%m%d')
    filename = f"farmlog_expenses_{suffix}.xlsx"
    return buffer, filename
