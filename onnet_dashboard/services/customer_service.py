# onnet_dashboard/services/customer_service.py
import logging
from concurrent.futures import ThreadPoolExecutor

from flask import copy_current_request_context, current_app, has_request_context

from onnet_dashboard.services.api_client import ApiError
from onnet_dashboard.services.billing import (
    customer_owed_months, load_year_statuses, month_grid, owed_amount
)
from onnet_dashboard.services.date_utils import today_local
from onnet_dashboard.services.map_links import build_map_links
from onnet_dashboard.services.validation import (
    ValidationError, iso_date, optional_int, optional_text, required_text
)

logger = logging.getLogger(__name__)


def plan_map(client, customers=None):
    """
    {plan_id: Plan}, fetched only when some customer lacks an embedded plan.

    A failure here only loses prices, so it is logged and an empty map is used.
    """
    if customers is not None and all(c.plan is not None for c in customers):
        return {}
    try:
        return {plan.id: plan for plan in client.list_plans()}
    except ApiError as e:
        logger.warning(f"Could not load plans: {e.message}")
        return {}


DEFAULT_STATUS_WORKERS = 8


def customers_with_statuses(client, year, initialize=True):
    """
    All customers with their status rows for `year` attached.

    The upstream only serves statuses per customer, so they are fetched on a
    bounded thread pool (`STATUS_FETCH_WORKERS`). Each task runs in a copy of
    the request context, which carries the session token.
    """
    customers = client.list_customers()
    if not customers:
        return customers

    def load(customer_id):
        return load_year_statuses(client, customer_id, year, initialize=initialize)

    workers = current_app.config.get('STATUS_FETCH_WORKERS', DEFAULT_STATUS_WORKERS)
    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(customers)))) as executor:
        futures = []
        for customer in customers:
            task = copy_current_request_context(load) if has_request_context() else load
            futures.append(executor.submit(task, customer.id))
        for customer, future in zip(customers, futures):
            customer.statuses = future.result()
    return customers


def customer_summary(customer, plans=None, today=None, full_rule=False):
    """Customer row as shown in the listings: status strip, debt and map links"""
    today = today or today_local()
    months = customer_owed_months(customer, today, full_rule=full_rule)
    price = customer.monthly_price(plans)
    summary = customer.to_dict()
    summary.update({
        'plan_name': customer.plan_name(plans),
        'monthly_price': price,
        'months': month_grid(customer.statuses, today.year),
        'owed_months': months,
        'owed_amount': owed_amount(months, price),
        'map_links': build_map_links(customer.coordinates, customer.address),
    })
    return summary


def customer_payload(data, partial=False):
    """
    Validate a create/update body for the upstream customer record.

    With `partial`, only the keys present in the body are validated and sent.
    """
    payload = {}

    if not partial or 'name' in data:
        payload['name'] = required_text(data, 'name', 'Customer name')

    for field in ('ip', 'address', 'coordinates', 'phone', 'onu_password', 'tag'):
        if field in data:
            payload[field] = optional_text(data, field)

    if 'plan_id' in data:
        payload['plan_id'] = optional_int(data, 'plan_id', 'Plan')

    if 'payment_day' in data:
        payment_day = optional_int(data, 'payment_day', 'Payment day')
        if payment_day is not None and not 1 <= payment_day <= 31:
            raise ValidationError('Payment day must be between 1 and 31', 'payment_day')
        payload['payment_day'] = payment_day

    if 'status_id' in data:
        payload['status_id'] = optional_int(data, 'status_id', 'Status')

    if 'installed_on' in data:
        payload['installed_on'] = iso_date(data, 'installed_on', 'Installation date', required=False)

    return payload
