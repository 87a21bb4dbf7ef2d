# onnet_dashboard/routes/iptv.py
from flask import Blueprint, current_app, request, jsonify
from flask_login import login_required, current_user
import logging

from onnet_dashboard.middleware.auth import cashier_or_admin_required
from onnet_dashboard.models.iptv import CURRENCIES, TV_STATUSES
from onnet_dashboard.services.api_client import ApiError, get_api_client
from onnet_dashboard.services.billing import expiry_state
from onnet_dashboard.services.cash_desk import register_tv_renewal
from onnet_dashboard.services.date_utils import parse_date_local, today_local
from onnet_dashboard.services.listing import page_args, page_meta, paginate, search
from onnet_dashboard.services.validation import (
    ValidationError, clean_text, iso_date, json_body, optional_int, optional_text,
    required_int, required_text, to_number
)

iptv_bp = Blueprint('iptv', __name__)
logger = logging.getLogger(__name__)

SEARCH_FIELDS = ('name', 'username', 'phone', 'address', 'status_name', 'plan_name')
OTHER_STATUS = 'Otro'
DEFAULT_STATUS_ID = 1  # Activo


def normalize_status(value):
    """Map an upstream status description onto one of TV_STATUSES or 'Otro'"""
    text = clean_text(value).lower()
    for status in TV_STATUSES:
        if status.lower() == text:
            return status
    return OTHER_STATUS


def status_name_args(args):
    """Repeatable ?status=Activo&status=Suspendido, matched case-insensitively"""
    selected = set()
    for raw in args.getlist('status'):
        for part in str(raw).split(','):
            status = normalize_status(part)
            if status != OTHER_STATUS:
                selected.add(status)
    return selected


def tv_status_counts(customers):
    counts = {status: 0 for status in TV_STATUSES}
    for customer in customers:
        status = normalize_status(customer.status_name)
        if status in counts:
            counts[status] += 1
    counts['total'] = len(customers)
    return counts


def _fill_catalog_names(client, customers):
    # Older upstream versions omit the joined plan and status names
    if all(c.plan_name and c.status_name for c in customers):
        return
    try:
        plans = {p.id: p for p in client.list_tv_plans()}
        statuses = {s.id: s.description for s in client.list_tv_statuses()}
    except ApiError as e:
        logger.warning(f"Could not load IPTV catalogs: {e.message}")
        return
    for customer in customers:
        plan = plans.get(customer.plan_id)
        if not customer.plan_name and plan:
            customer.plan_name = plan.name
            if customer.plan_price is None:
                customer.plan_price = plan.monthly_price
        if not customer.status_name:
            customer.status_name = statuses.get(customer.status_id)


def _apply_expiry(customer, today):
    """Work out the expiry state locally when the API did not send one"""
    if customer.expiry_state and customer.days_remaining is not None:
        return customer
    state, days = expiry_state(
        customer.expires_on, today, current_app.config.get('EXPIRY_WARNING_DAYS', 7)
    )
    customer.expiry_state = customer.expiry_state or state
    if customer.days_remaining is None:
        customer.days_remaining = days
    return customer


def tv_customer_payload(data, partial=False):
    payload = {}

    if not partial or 'name' in data:
        payload['name'] = required_text(data, 'name', 'Name')
    if not partial or 'plan_id' in data:
        payload['plan_id'] = required_int(data, 'plan_id', 'IPTV plan')

    if partial:
        if 'status_id' in data:
            payload['status_id'] = required_int(data, 'status_id', 'Status')
    else:
        payload['status_id'] = optional_int(data, 'status_id', 'Status') or DEFAULT_STATUS_ID

    for field in ('username', 'address', 'phone', 'notes'):
        if field in data:
            payload[field] = optional_text(data, field)

    for field, label in (('starts_on', 'Start date'), ('expires_on', 'Expiry date')):
        if field in data:
            payload[field] = iso_date(data, field, label, required=False)

    if data.get('amount_paid') not in (None, ''):
        amount = to_number(data.get('amount_paid'), 'amount_paid', 'Amount paid')
        if amount < 0:
            raise ValidationError('Amount paid cannot be negative', 'amount_paid')
        payload['amount_paid'] = amount
    if 'currency' in data:
        currency = clean_text(data.get('currency')).upper()
        if currency not in CURRENCIES:
            raise ValidationError(f"Currency must be one of: {', '.join(CURRENCIES)}", 'currency')
        payload['currency'] = currency
    if 'credits' in data:
        credits = optional_int(data, 'credits', 'Credits')
        if credits is not None and credits < 0:
            raise ValidationError('Credits cannot be negative', 'credits')
        payload['credits'] = credits or 0

    return payload


def _device_payload(data):
    return {
        'description': optional_text(data, 'description'),
        'mac_address': optional_text(data, 'mac_address'),
    }


# --- Customers ---

@iptv_bp.route('/customers', methods=['GET'])
@login_required
def get_tv_customers():
    """IPTV customers with search, status filter, counts and expiry state"""
    client = get_api_client()
    today = today_local()

    customers = client.list_tv_customers()
    _fill_catalog_names(client, customers)
    for customer in customers:
        _apply_expiry(customer, today)

    filtered = search(customers, request.args.get('q'), SEARCH_FIELDS)
    selected = status_name_args(request.args)
    if selected:
        filtered = [c for c in filtered if normalize_status(c.status_name) in selected]
    page = paginate(filtered, *page_args(request.args))

    return jsonify({
        'customers': [c.to_dict() for c in page.items],
        'pagination': page_meta(page),
        'counts': tv_status_counts(customers),
    })


@iptv_bp.route('/customers', methods=['POST'])
@login_required
def create_tv_customer():
    payload = tv_customer_payload(json_body())
    result = get_api_client().create_tv_customer(payload)
    logger.info(f"IPTV customer '{payload['name']}' created")
    return jsonify({'message': 'IPTV customer created', 'id': result.get('id')}), 201


@iptv_bp.route('/customers/<int:customer_id>', methods=['GET'])
@login_required
def get_tv_customer(customer_id):
    client = get_api_client()
    customer = client.get_tv_customer(customer_id)
    _fill_catalog_names(client, [customer])
    _apply_expiry(customer, today_local())
    return jsonify(customer.to_dict())


@iptv_bp.route('/customers/<int:customer_id>', methods=['PUT'])
@login_required
def update_tv_customer(customer_id):
    payload = tv_customer_payload(json_body(), partial=True)
    if not payload:
        raise ValidationError('No fields to update')
    get_api_client().update_tv_customer(customer_id, payload)
    logger.info(f"IPTV customer {customer_id} updated: {sorted(payload)}")
    return jsonify({'message': 'IPTV customer updated'})


@iptv_bp.route('/customers/<int:customer_id>', methods=['DELETE'])
@login_required
def delete_tv_customer(customer_id):
    get_api_client().delete_tv_customer(customer_id)
    logger.info(f"IPTV customer {customer_id} deleted")
    return jsonify({'message': 'IPTV customer deleted successfully'})


# --- Catalogs ---

@iptv_bp.route('/plans', methods=['GET'])
@login_required
def get_tv_plans():
    return jsonify([plan.to_dict() for plan in get_api_client().list_tv_plans()])


@iptv_bp.route('/statuses', methods=['GET'])
@login_required
def get_tv_statuses():
    return jsonify([status.to_dict() for status in get_api_client().list_tv_statuses()])


@iptv_bp.route('/payment-methods', methods=['GET'])
@login_required
def get_tv_payment_methods():
    return jsonify([method.to_dict() for method in get_api_client().list_tv_payment_methods()])


# --- Devices ---

@iptv_bp.route('/customers/<int:customer_id>/devices', methods=['GET'])
@login_required
def get_tv_devices(customer_id):
    devices = get_api_client().list_tv_devices(customer_id)
    return jsonify([device.to_dict() for device in devices])


@iptv_bp.route('/customers/<int:customer_id>/devices', methods=['POST'])
@login_required
def create_tv_device(customer_id):
    payload = {'customer_id': customer_id, **_device_payload(json_body())}
    device = get_api_client().create_tv_device(payload)
    logger.info(f"Device added to IPTV customer {customer_id}")
    return jsonify({'message': 'Device created', 'device': device.to_dict()}), 201


@iptv_bp.route('/devices/<int:device_id>', methods=['PUT'])
@login_required
def update_tv_device(device_id):
    device = get_api_client().update_tv_device(device_id, _device_payload(json_body()))
    logger.info(f"IPTV device {device_id} updated")
    return jsonify({'message': 'Device updated', 'device': device.to_dict()})


@iptv_bp.route('/devices/<int:device_id>', methods=['DELETE'])
@login_required
def delete_tv_device(device_id):
    get_api_client().delete_tv_device(device_id)
    logger.info(f"IPTV device {device_id} deleted")
    return jsonify({'message': 'Device deleted successfully'})


# --- Payments ---

@iptv_bp.route('/payments', methods=['GET'])
@login_required
def get_tv_payments():
    """IPTV payment history filtered by customer name and payment month"""
    client = get_api_client()
    month = request.args.get('month', type=int)
    year = request.args.get('year', type=int)
    customer_term = (request.args.get('customer') or '').strip().lower()

    try:
        names = {c.id: c.name for c in client.list_tv_customers()}
    except ApiError as e:
        logger.warning(f"Could not load IPTV customer names: {e.message}")
        names = {}

    rows = []
    for payment in client.list_tv_payments():
        paid_on = parse_date_local(payment.paid_on)
        if month and (paid_on is None or paid_on.month != month):
            continue
        if year and (paid_on is None or paid_on.year != year):
            continue
        customer_name = names.get(payment.customer_id, '')
        if customer_term not in customer_name.lower():
            continue
        row = payment.to_dict()
        row['paid_on'] = paid_on.isoformat() if paid_on else payment.paid_on
        row['customer_name'] = customer_name or None
        rows.append(row)

    rows.sort(key=lambda row: row['paid_on'] or '', reverse=True)
    return jsonify({
        'payments': rows,
        'count': len(rows),
        'total_amount': round(sum(row['amount'] for row in rows), 2),
    })


@iptv_bp.route('/customers/<int:customer_id>/renewals', methods=['POST'])
@login_required
@cashier_or_admin_required
def renew_tv_customer(customer_id):
    """Charge a renewal up to a new expiry date and issue its receipt"""
    receipt = register_tv_renewal(
        get_api_client(), customer_id, json_body(), issued_by=current_user.username
    )
    return jsonify({'message': 'Renewal registered', 'receipt': receipt.to_dict()}), 201
