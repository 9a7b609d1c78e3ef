"""
tests/test_export.py — Excel export of expense lists.
"""

import openpyxl

from utils.export import generate_expense_workbook

EXPENSES = [
    {'date': '2024-05-20', 'farm_name': 'North', 'category': 'Labor', 'amount': 50.25, 'notes': 'Weeding'},
    {'date': '2024-05-02', 'farm_name': 'South', 'category': 'Seeds', 'amount': 100.0, 'notes': ''},
]


def test_nothing_to_export():
    assert generate_expense_workbook([]) == (None, None)


def test_workbook_layout():
    buffer, filename = generate_expense_workbook(EXPENSES, month='2024-05')
    assert filename == 'farmlog_expenses_2024-05.xlsx'

    ws = openpyxl.load_workbook(buffer).active
    assert ws.title == 'Expenses 2024-05'
    assert [c.value for c in ws[1]] == ['Date', 'Farm', 'Category', 'Amount', 'Notes']
    assert ws['B2'].value == 'North'
    assert ws['D3'].value == 100.0
    assert ws['C4'].value == 'Total'
    assert ws['D4'].value == '=SUM(D2:D3)'
    assert ws.freeze_panes == 'A2'


def test_filename_without_month_uses_today():
    _, filename = generate_expense_workbook(EXPENSES)
    assert filename.startswith('farmlog_expenses_')
    assert filename.endswith('.xlsx')
