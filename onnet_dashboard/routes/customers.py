# onnet_dashboard/routes/customers.py
from flask import Blueprint, request, jsonify
from flask_login import login_required
import logging

from onnet_dashboard.models import Customer
from onnet_dashboard.services.api_client import get_api_client
from onnet_dashboard.services.billing import (
    load_year_statuses, month_grid, status_counts, suspended_debt_summary
)
from onnet_dashboard.services.customer_service import (
    customer_payload, customer_summary, customers_with_statuses, plan_map
)
from onnet_dashboard.services.date_utils import today_local
from onnet_dashboard.services.listing import (
    filter_by_status, page_args, page_meta, paginate, search, status_args
)
from onnet_dashboard.services.validation import ValidationError, json_body

customers_bp = Blueprint('customers', __name__)
logger = logging.getLogger(__name__)

SEARCH_FIELDS = ('name', 'phone', 'address', 'status_label')


@customers_bp.route('', methods=['GET'])
@login_required
def get_customers():
    """Customers with this year's statuses, debt, counts and pagination"""
    client = get_api_client()
    today = today_local()

    customers = customers_with_statuses(client, today.year, initialize=True)
    plans = plan_map(client, customers)

    filtered = search(customers, request.args.get('q'), SEARCH_FIELDS)
    filtered = filter_by_status(filtered, status_args(request.args))
    page = paginate(filtered, *page_args(request.args))

    return jsonify({
        'customers': [customer_summary(c, plans, today) for c in page.items],
        'pagination': page_meta(page),
        'counts': status_counts(customers),
        'suspended': suspended_debt_summary(customers, plans, today),
    })


@customers_bp.route('', methods=['POST'])
@login_required
def create_customer():
    """Register a new customer upstream"""
    payload = customer_payload(json_body())
    result = get_api_client().create_customer(payload)
    logger.info(f"Customer '{payload['name']}' created")

    customer = Customer.from_api(result) if result.get('id') else None
    return jsonify({
        'message': 'Customer created',
        'customer': customer.to_dict() if customer else None,
    }), 201


@customers_bp.route('/<int:customer_id>', methods=['GET'])
@login_required
def get_customer(customer_id):
    client = get_api_client()
    today = today_local()
    customer = client.get_customer(customer_id)
    customer.statuses = load_year_statuses(client, customer_id, today.year, initialize=False)
    plans = plan_map(client, [customer])
    return jsonify(customer_summary(customer, plans, today))


@customers_bp.route('/<int:customer_id>', methods=['PUT'])
@login_required
def update_customer(customer_id):
    payload = customer_payload(json_body(), partial=True)
    if not payload:
        raise ValidationError('No fields to update')
    get_api_client().update_customer(customer_id, payload)
    logger.info(f"Customer {customer_id} updated: {sorted(payload)}")
    return jsonify({'message': 'Customer updated'})


@customers_bp.route('/<int:customer_id>', methods=['DELETE'])
@login_required
def delete_customer(customer_id):
    get_api_client().delete_customer(customer_id)
    logger.info(f"Customer {customer_id} deleted")
    return jsonify({'message': 'Customer deleted successfully'})


@customers_bp.route('/<int:customer_id>/statuses', methods=['GET'])
@login_required
def get_customer_statuses(customer_id):
    """Twelve-month status strip for any year"""
    year = request.args.get('year', type=int) or today_local().year
    if not 2000 <= year <= 2100:
        raise ValidationError('Year must be between 2000 and 2100', 'year')
    statuses = load_year_statuses(get_api_client(), customer_id, year, initialize=False)
    return jsonify({
        'customer_id': customer_id,
        'year': year,
        'months': month_grid(statuses, year),
    })
