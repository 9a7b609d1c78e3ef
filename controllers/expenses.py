"""
controllers/expenses.py — Expense tracker screen.

Loads expenses and farms together. Filters: farm, category, month
('YYYY-MM'). Newest expenses first. Totals are computed over the filtered
set; export() hands the same set to the Excel builder.
"""

from collections import defaultdict

from controllers.base import ScreenController, farm_name
from utils.dates import format_date, parse_date
from utils.export import generate_expense_workbook
from utils.validators import validate_expense


def _month_key(value):
    parsed = parse_date(value)
    return parsed.strftime('%Y-%m') if parsed else None


class ExpenseListController(ScreenController):
    error_message = "Failed to load expenses"

    def fetchers(self):
        return {
            'expenses': self.repos.expenses.get_all,
            'farms': self.repos.farms.get_all,
        }

    @property
    def expenses(self):
        return self.data.get('expenses', [])

    @property
    def farms(self):
        return self.data.get('farms', [])

    def visible(self):
        result = list(self.expenses)

        farm_id = self.filters.get('farm')
        if farm_id:
            result = [e for e in result if e.farm_id == int(farm_id)]

        category = self.filters.get('category')
        if category:
            result = [e for e in result if e.category == category]

        month = self.filters.get('month')
        if month:
            result = [e for e in result if _month_key(e.date) == month]

        # Undated expenses sort last.
        dated = [e for e in result if parse_date(e.date) is not None]
        undated = [e for e in result if parse_date(e.date) is None]
        dated.sort(key=lambda e: parse_date(e.date), reverse=True)
        return dated + undated

    def totals(self, expenses=None):
        expenses = self.visible() if expenses is None else expenses
        by_category = defaultdict(float)
        for expense in expenses:
            by_category[expense.category] += float(expense.amount or 0)
        total = sum(by_category.values())
        count = len(expenses)
        return {
            'total': round(total, 2),
            'by_category': {k: round(v, 2) for k, v in sorted(by_category.items())},
            'count': count,
            'average': round(total / count, 2) if count else 0.0,
        }

    def serialize(self, expense):
        item = expense.to_dict()
        item['farm_name'] = farm_name(self.farms, expense.farm_id)
        item['date_label'] = format_date(expense.date)
        return item

    def view(self):
        visible = self.visible()
        view = self.snapshot()
        view['expenses'] = [self.serialize(e) for e in visible]
        view['summary'] = self.totals(visible)
        view['farms'] = [f.to_dict() for f in self.farms]
        return view

    def export(self):
        """(BytesIO, filename) for the filtered expenses, or (None, None)."""
        return generate_expense_workbook(
            [self.serialize(e) for e in self.visible()],
            month=self.filters.get('month'),
        )

    def create(self, fields):
        self.ensure_loaded()
        cleaned = self._validated(validate_expense, fields, self.farms)
        return self._mutate(
            lambda: self.repos.expenses.create(cleaned),
            "Expense recorded successfully", "Failed to save expense",
        )

    def update(self, expense_id, fields):
        self.ensure_loaded()
        cleaned = self._validated(validate_expense, fields, self.farms)
        return self._mutate(
            lambda: self.repos.expenses.update(expense_id, cleaned),
            "Expense updated successfully", "Failed to save expense",
        )

    def delete(self, expense_id):
        return self._mutate(
            lambda: self.repos.expenses.delete(expense_id),
            "Expense deleted successfully", "Failed to delete expense",
        )
