# onnet_dashboard/routes/payments.py
from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
import logging

from onnet_dashboard.middleware.auth import cashier_or_admin_required
from onnet_dashboard.models import Receipt, db
from onnet_dashboard.services.api_client import ApiError, get_api_client
from onnet_dashboard.services.billing import (
    customer_owed_months, is_pending_payment, owed_amount, payable_months
)
from onnet_dashboard.services.cash_desk import register_internet_payment
from onnet_dashboard.services.customer_service import (
    customer_summary, customers_with_statuses, plan_map
)
from onnet_dashboard.services.date_utils import (
    month_name, one_month_ago, parse_date_local, today_local
)
from onnet_dashboard.services.file_utils import generate_receipt_pdf, pdf_response
from onnet_dashboard.services.listing import (
    filter_by_payment_day, page_args, page_meta, paginate, payment_day_arg, search
)
from onnet_dashboard.services.validation import json_body

payments_bp = Blueprint('payments', __name__)
receipts_bp = Blueprint('receipts', __name__)
logger = logging.getLogger(__name__)

CUSTOMER_SEARCH_FIELDS = ('name', 'phone', 'address')


@payments_bp.route('/methods', methods=['GET'])
@login_required
def get_payment_methods():
    return jsonify([method.to_dict() for method in get_api_client().list_payment_methods()])


@payments_bp.route('', methods=['GET'])
@login_required
def get_payment_history():
    """All payments, filtered by customer name and method"""
    client = get_api_client()
    today = today_local()

    try:
        names = {c.id: c.name for c in client.list_customers()}
    except ApiError as e:
        logger.warning(f"Could not load customer names for the payment history: {e.message}")
        names = {}

    customer_term = (request.args.get('customer') or '').strip().lower()
    method_term = (request.args.get('method') or '').strip().lower()

    rows = []
    for payment in client.list_payments():
        customer_name = names.get(payment.customer_id, '')
        if customer_term not in customer_name.lower():
            continue
        if method_term not in (payment.method or '').lower():
            continue
        row = payment.to_dict()
        row['customer_name'] = customer_name or None
        row['paid_on_date'] = parse_date_local(payment.paid_on)
        rows.append(row)

    since = one_month_ago(today)
    last_month = sum(1 for row in rows if row['paid_on_date'] and row['paid_on_date'] >= since)
    total_amount = round(sum(row['amount'] for row in rows), 2)

    rows.sort(key=lambda row: (row['paid_on_date'] is not None, row['paid_on_date']), reverse=True)
    for row in rows:
        paid_on_date = row.pop('paid_on_date')
        row['paid_on'] = paid_on_date.isoformat() if paid_on_date else row['paid_on']

    page = paginate(rows, *page_args(request.args, default_per_page=max(len(rows), 1)))
    return jsonify({
        'payments': page.items,
        'pagination': page_meta(page),
        'summary': {
            'count': len(rows),
            'total_amount': total_amount,
            'last_month_count': last_month,
        },
    })


@payments_bp.route('/pending-months/<int:customer_id>', methods=['GET'])
@login_required
def get_pending_months(customer_id):
    """Months the cash desk can charge, oldest first and preselected"""
    months = payable_months(get_api_client().pending_months(customer_id), today_local())
    return jsonify({
        'customer_id': customer_id,
        'months': [
            {
                'id': status.id,
                'month': status.month,
                'year': status.year,
                'name': f"{month_name(status.month)} {status.year}",
                'status': status.status,
                'selected': index == 0,
            }
            for index, status in enumerate(months)
        ],
    })


@payments_bp.route('/pending', methods=['GET'])
@login_required
def get_pending_customers():
    """Customers whose current month is still unpaid"""
    client = get_api_client()
    today = today_local()

    customers = customers_with_statuses(client, today.year, initialize=False)
    pending = [c for c in customers if is_pending_payment(c.statuses, c.payment_day, today)]
    plans = plan_map(client, pending)

    filtered = filter_by_payment_day(pending, payment_day_arg(request.args))
    filtered = search(filtered, request.args.get('q'), CUSTOMER_SEARCH_FIELDS)
    page = paginate(filtered, *page_args(request.args))

    return jsonify({
        'customers': [customer_summary(c, plans, today) for c in page.items],
        'pagination': page_meta(page),
        'total_pending': len(pending),
    })


@payments_bp.route('/debtors', methods=['GET'])
@login_required
@cashier_or_admin_required
def get_debtors():
    """Cash desk view: paying customers owing at least one due month"""
    client = get_api_client()
    today = today_local()

    customers = customers_with_statuses(client, today.year, initialize=False)
    plans = plan_map(client, customers)
    debtors = [
        c for c in customers
        if c.monthly_price(plans) > 0 and customer_owed_months(c, today, full_rule=True)
    ]

    filtered = filter_by_payment_day(debtors, payment_day_arg(request.args))
    filtered = search(filtered, request.args.get('q'), CUSTOMER_SEARCH_FIELDS)
    page = paginate(filtered, *page_args(request.args))

    rows = [customer_summary(c, plans, today, full_rule=True) for c in page.items]
    return jsonify({
        'customers': rows,
        'pagination': page_meta(page),
        'total_debtors': len(debtors),
        'total_owed': round(sum(
            owed_amount(customer_owed_months(c, today, full_rule=True), c.monthly_price(plans))
            for c in filtered
        ), 2),
    })


@payments_bp.route('', methods=['POST'])
@login_required
@cashier_or_admin_required
def register_payment():
    """Register a payment and issue its receipt"""
    receipt = register_internet_payment(
        get_api_client(), json_body(), issued_by=current_user.username
    )
    return jsonify({'message': 'Payment registered', 'receipt': receipt.to_dict()}), 201


# --- Receipts ---

@receipts_bp.route('', methods=['GET'])
@login_required
def get_receipts():
    query = Receipt.query
    kind = request.args.get('kind')
    if kind:
        query = query.filter(Receipt.kind == kind)
    customer_id = request.args.get('customer_id', type=int)
    if customer_id:
        query = query.filter(Receipt.customer_id == customer_id)
    receipts = query.order_by(Receipt.created_at.desc(), Receipt.id.desc()).all()
    return jsonify([receipt.to_dict() for receipt in receipts])


@receipts_bp.route('/<int:receipt_id>', methods=['GET'])
@login_required
def get_receipt(receipt_id):
    receipt = db.get_or_404(Receipt, receipt_id)
    return jsonify(receipt.to_dict())


@receipts_bp.route('/<int:receipt_id>/pdf', methods=['GET'])
@login_required
def download_receipt(receipt_id):
    receipt = db.get_or_404(Receipt, receipt_id)
    try:
        pdf = generate_receipt_pdf(receipt)
    except Exception as e:
        logger.error(f"Error generating receipt {receipt_id} PDF: {str(e)}")
        return jsonify({'error': 'Failed to generate receipt PDF'}), 500
    return pdf_response(pdf, f"recibo_{receipt.number}.pdf")
