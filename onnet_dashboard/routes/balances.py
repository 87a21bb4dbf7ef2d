# onnet_dashboard/routes/balances.py
from flask import Blueprint, request, jsonify
from flask_login import login_required
import logging

from onnet_dashboard.services.api_client import ApiError, get_api_client
from onnet_dashboard.services.date_utils import (
    month_name, month_range, parse_date_local, today_local
)
from onnet_dashboard.services.quotes import round_money
from onnet_dashboard.services.validation import month_and_year

balances_bp = Blueprint('balances', __name__)
logger = logging.getLogger(__name__)

PROFIT_LABEL = 'Beneficio'
LOSS_LABEL = 'Pérdida'


def _requested_month():
    today = today_local()
    return month_and_year(
        request.args.get('month', today.month),
        request.args.get('year', today.year),
    )


def _customer_names(loader):
    try:
        return {c.id: c.name for c in loader()}
    except ApiError as e:
        logger.warning(f"Could not load customer names for the balance: {e.message}")
        return {}


def build_balance(payments, expenses, year, month, names=None):
    """
    Income against expenses for one calendar month.

    Payments count when their local payment date falls inside the month, and
    expenses when their date does; upstream month queries can include
    timestamps that belong to a neighbouring day in local time.
    """
    names = names or {}
    start, end = month_range(year, month)

    income = []
    for payment in payments:
        paid_on = parse_date_local(payment.paid_on)
        if paid_on is None or not start <= paid_on <= end:
            continue
        income.append({
            'id': payment.id,
            'date': paid_on.isoformat(),
            'customer_id': payment.customer_id,
            'customer_name': names.get(payment.customer_id),
            'method': payment.method,
            'reference': payment.reference,
            'amount': payment.amount,
        })

    spent = []
    for expense in expenses:
        spent_on = parse_date_local(expense.date)
        if spent_on is None or not start <= spent_on <= end:
            continue
        spent.append({
            'id': expense.id,
            'date': spent_on.isoformat(),
            'description': expense.description,
            'amount': expense.amount,
        })

    income.sort(key=lambda entry: entry['date'])
    spent.sort(key=lambda entry: entry['date'])

    total_income = round_money(sum(entry['amount'] for entry in income))
    total_expenses = round_money(sum(entry['amount'] for entry in spent))
    profit = round_money(total_income - total_expenses)

    return {
        'year': year,
        'month': month,
        'month_name': month_name(month),
        'income': income,
        'expenses': spent,
        'total_income': total_income,
        'total_expenses': total_expenses,
        'profit': profit,
        'result': PROFIT_LABEL if profit >= 0 else LOSS_LABEL,
    }


@balances_bp.route('/monthly', methods=['GET'])
@login_required
def get_monthly_balance():
    """Internet income and expenses for a month"""
    month, year = _requested_month()
    client = get_api_client()

    balance = build_balance(
        client.list_payments_for_month(month, year),
        client.list_expenses(),
        year, month,
        names=_customer_names(client.list_customers),
    )
    logger.info(f"Internet balance {month}/{year}: profit {balance['profit']}")
    return jsonify(balance)


@balances_bp.route('/tv', methods=['GET'])
@login_required
def get_tv_balance():
    """IPTV income and expenses for a month"""
    month, year = _requested_month()
    client = get_api_client()

    balance = build_balance(
        client.list_tv_payments_for_month(month, year),
        client.list_tv_expenses(),
        year, month,
        names=_customer_names(client.list_tv_customers),
    )
    logger.info(f"IPTV balance {month}/{year}: profit {balance['profit']}")
    return jsonify(balance)
