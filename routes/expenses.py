"""
routes/expenses.py — Expense API routes.

Provides:
- GET    /api/expenses                 — Expenses (?farm=<id>&category=...&month=YYYY-MM)
- GET    /api/expenses/export          — Download the filtered expenses as Excel
- POST   /api/expenses                 — Record an expense
- PUT    /api/expenses/<expense_id>    — Edit an expense
- DELETE /api/expenses/<expense_id>    — Delete an expense
"""

from flask import Blueprint, request, send_file

from controllers.expenses import ExpenseListController
from routes.common import controller_for, load_or_fail, payload, respond

expenses_bp = Blueprint('expenses', __name__, url_prefix='/api/expenses')


def _controller():
    controller = controller_for(ExpenseListController)
    controller.set_filters(
        farm=request.args.get('farm', type=int),
        category=request.args.get('category', ''),
        month=request.args.get('month', ''),
    )
    return controller


@expenses_bp.route('', methods=['GET'])
def list_expenses():
    controller = _controller()
    failed = load_or_fail(controller)
    if failed:
        return failed
    return respond(**controller.view())


@expenses_bp.route('/export', methods=['GET'])
def export_expenses():
    """Excel download of the expenses matching the current filters."""
    controller = _controller()
    failed = load_or_fail(controller)
    if failed:
        return failed

    buffer, filename = controller.export()
    if not buffer:
        return respond(404, success=False, error="No expenses to export")

    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )


@expenses_bp.route('', methods=['POST'])
def add_expense():
    controller = _controller()
    expense = controller.create(payload())
    return respond(201, expense=expense.to_dict(), **controller.view())


@expenses_bp.route('/<int:expense_id>', methods=['PUT'])
def edit_expense(expense_id):
    controller = _controller()
    expense = controller.update(expense_id, payload())
    return respond(expense=expense.to_dict(), **controller.view())


@expenses_bp.route('/<int:expense_id>', methods=['DELETE'])
def delete_expense(expense_id):
    controller = _controller()
    deleted = controller.delete(expense_id)
    return respond(deleted=deleted, **controller.view())
