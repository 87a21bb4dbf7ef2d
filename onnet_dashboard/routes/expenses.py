# onnet_dashboard/routes/expenses.py
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required
import logging

from onnet_dashboard.services.api_client import get_api_client
from onnet_dashboard.services.listing import page_args, page_meta, paginate, search
from onnet_dashboard.services.validation import (
    ValidationError, iso_date, json_body, positive_number, required_text
)

expenses_bp = Blueprint('expenses', __name__)
logger = logging.getLogger(__name__)


def _expense_payload(data):
    return {
        'description': required_text(data, 'description', 'Description'),
        'amount': positive_number(data, 'amount', 'Amount'),
        'date': iso_date(data, 'date', 'Date'),
    }


def filter_expenses(expenses, term=None, start_date=None, end_date=None):
    """Description search plus an inclusive YYYY-MM-DD date range"""
    result = search(expenses, term, ('description',))
    if start_date:
        result = [e for e in result if e.date and e.date >= start_date]
    if end_date:
        result = [e for e in result if e.date and e.date <= end_date]
    return result


@expenses_bp.route('', methods=['GET'])
@login_required
def get_expenses():
    args = request.args
    start_date = iso_date(args, 'start_date', 'Start date', required=False)
    end_date = iso_date(args, 'end_date', 'End date', required=False)
    if start_date and end_date and start_date > end_date:
        raise ValidationError('Start date cannot be after end date', 'start_date')

    expenses = get_api_client().list_expenses(start_date=start_date, end_date=end_date)
    filtered = filter_expenses(expenses, args.get('q'), start_date, end_date)
    filtered.sort(key=lambda e: (e.date or '', e.id or 0), reverse=True)

    page = paginate(filtered, *page_args(args, current_app.config.get('EXPENSES_PAGE_SIZE', 20)))
    return jsonify({
        'expenses': [e.to_dict() for e in page.items],
        'pagination': page_meta(page),
        'total_amount': round(sum(e.amount for e in filtered), 2),
    })


@expenses_bp.route('', methods=['POST'])
@login_required
def create_expense():
    payload = _expense_payload(json_body())
    expense = get_api_client().create_expense(payload)
    logger.info(f"Expense '{payload['description']}' of {payload['amount']} recorded for {payload['date']}")
    return jsonify({'message': 'Expense created', 'expense': expense.to_dict()}), 201


@expenses_bp.route('/<int:expense_id>', methods=['PUT'])
@login_required
def update_expense(expense_id):
    payload = _expense_payload(json_body())
    expense = get_api_client().update_expense(expense_id, payload)
    logger.info(f"Expense {expense_id} updated")
    return jsonify({'message': 'Expense updated', 'expense': expense.to_dict()})


@expenses_bp.route('/<int:expense_id>', methods=['DELETE'])
@login_required
def delete_expense(expense_id):
    get_api_client().delete_expense(expense_id)
    logger.info(f"Expense {expense_id} deleted")
    return jsonify({'message': 'Expense deleted successfully'})
