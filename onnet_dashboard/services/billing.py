# onnet_dashboard/services/billing.py
"""
Monthly billing rules.

Every customer has one status row per month ("Pagado", "Pendiente",
"Pagado Parcial"). The screens of the dashboard ask three questions of those
rows: which months are owed, is the current month pending, and which months
can be paid at the cash desk. The answers differ slightly per screen, so the
variations are explicit keyword options here instead of copies of the loop.

All functions take `today` explicitly so results do not depend on the clock.
"""

import logging
from datetime import date

from onnet_dashboard.models import (
    PAID, PENDING, STATUS_ACTIVE, STATUS_INACTIVE, STATUS_SUSPENDED, MonthlyStatus
)
from onnet_dashboard.services.api_client import ApiError
from onnet_dashboard.services.date_utils import (
    MONTH_INITIALS, MONTH_NAMES, add_months, iter_months, parse_date_local, today_local
)

logger = logging.getLogger(__name__)

EXPIRED = 'Expirado'
EXPIRING = 'Por Expirar'
CURRENT = 'Vigente'

NO_STATUS = 'Sin estado'


def _status_for(statuses, month, year):
    for status in statuses or []:
        if status.month == month and status.year == year:
            return status
    return None


def cutoff_day(value):
    """Payment day used for the due-date cut-off; anything unusable counts as 1"""
    try:
        day = int(value)
    except (TypeError, ValueError):
        return 1
    return day if 1 <= day <= 31 else 1


def owed_months(statuses, year, today=None, *, payment_day=None, installed_on=None):
    """
    Months of `year` that are due and not paid.

    Args:
        statuses (list[MonthlyStatus]): the customer's status rows
        year (int): year being inspected
        today (date): reference date, today in the business timezone by default
        payment_day (int): when given, the current month only becomes due on
            that day of the month
        installed_on (str or date): when given, months before the installation
            are never owed

    Returns:
        list[int]: month numbers, ascending. A missing status counts as owed.
    """
    today = today or today_local()
    if year > today.year:
        return []

    first_month = 1
    last_month = today.month if year == today.year else 12

    if payment_day is not None and year == today.year and today.day < payment_day:
        last_month -= 1

    if installed_on:
        installed = parse_date_local(installed_on)
        if installed is not None:
            if installed.year > year:
                return []
            if installed.year == year:
                first_month = max(1, installed.month)

    if last_month < first_month:
        return []

    months = []
    for month in range(first_month, last_month + 1):
        status = _status_for(statuses, month, year)
        if status is None or status.status != PAID:
            months.append(month)
    return months


def customer_owed_months(customer, today=None, *, full_rule=False):
    """
    Owed months of the current year for a customer.

    The simple rule counts every month up to the current one. The full rule,
    used by the cash desk, also waits for the payment day and ignores months
    before the installation date.
    """
    today = today or today_local()
    if not full_rule:
        return owed_months(customer.statuses, today.year, today)
    return owed_months(
        customer.statuses, today.year, today,
        payment_day=cutoff_day(customer.payment_day),
        installed_on=customer.installed_on,
    )


def owed_amount(months, monthly_price):
    return len(months) * (monthly_price or 0)


def is_pending_payment(statuses, payment_day, today=None):
    """Is the current month still unpaid for a customer with this payment day?"""
    today = today or today_local()
    if not statuses:
        return True

    current = _status_for(statuses, today.month, today.year)
    if current is None:
        return True
    if current.status == PAID:
        return False
    if payment_day == 15:
        # Customers billed on the 15th are only late from the 16th on
        return today.day > 15
    return True


def suspended_debt_summary(customers, plans=None, today=None):
    """Number of suspended customers and what they owe this year (simple rule)"""
    today = today or today_local()
    total_customers = 0
    total_owed = 0.0
    for customer in customers:
        if customer.status_code != STATUS_SUSPENDED:
            continue
        total_customers += 1
        months = owed_months(customer.statuses, today.year, today)
        total_owed += owed_amount(months, customer.monthly_price(plans))
    return {'total_customers': total_customers, 'total_owed': round(total_owed, 2)}


def status_counts(customers):
    counts = {'total': 0, 'active': 0, 'inactive': 0, 'suspended': 0}
    for customer in customers:
        counts['total'] += 1
        code = customer.status_code
        if code == STATUS_ACTIVE:
            counts['active'] += 1
        elif code == STATUS_INACTIVE:
            counts['inactive'] += 1
        elif code == STATUS_SUSPENDED:
            counts['suspended'] += 1
    return counts


def month_grid(statuses, year):
    """Twelve entries for the per-customer status strip"""
    grid = []
    for month in range(1, 13):
        status = _status_for(statuses, month, year)
        grid.append({
            'month': month,
            'short': MONTH_INITIALS[month - 1],
            'name': MONTH_NAMES[month - 1],
            'status': status.status if status else NO_STATUS,
        })
    return grid


def payable_months(pending, today=None):
    """Pending months that have already started, oldest first"""
    today = today or today_local()
    result = [
        status for status in pending
        if 1 <= status.month <= 12 and status.year and date(status.year, status.month, 1) <= today
    ]
    result.sort(key=lambda status: (status.year, status.month))
    return result


def is_later_date(new, previous):
    """Compare two YYYY-MM-DD strings; both must be present"""
    if not new or not previous:
        return False
    return new > previous


def renewal_months(previous_expiry, new_expiry):
    """
    Months covered by a prepaid IPTV renewal.

    Service is paid in advance: the renewal covers the month of the previous
    expiry up to, but not including, the month of the new expiry.
    """
    try:
        start_year, start_month = (int(p) for p in str(previous_expiry).split('-')[:2])
        end_year, end_month = (int(p) for p in str(new_expiry).split('-')[:2])
    except (TypeError, ValueError):
        return []
    if not (1 <= start_month <= 12 and 1 <= end_month <= 12) or not start_year or not end_year:
        return []

    end_year, end_month = add_months(end_year, end_month, -1)
    return [
        {'month': month, 'year': year}
        for year, month in iter_months(start_year, start_month, end_year, end_month)
    ]


def expiry_state(expires_on, today=None, warning_days=7):
    """
    Expiry state of an IPTV subscription.

    Returns:
        tuple: (state, days_remaining); (None, None) when the date is unusable
    """
    today = today or today_local()
    expiry = parse_date_local(expires_on)
    if expiry is None:
        return None, None
    days = (expiry - today).days
    if days < 0:
        return EXPIRED, days
    if days <= warning_days:
        return EXPIRING, days
    return CURRENT, days


def load_year_statuses(client, customer_id, year, initialize=True):
    """
    A customer's statuses for a year, creating the twelve months when missing.

    Months that fail to be created are left out. Upstream failures are logged
    and give an empty list so one customer cannot break a whole listing.
    """
    try:
        statuses = client.get_monthly_statuses(customer_id, year)
    except ApiError as e:
        logger.warning(f"Could not load statuses for customer {customer_id}: {e.message}")
        statuses = []

    if statuses or not initialize:
        return statuses

    created = []
    for month in range(1, 13):
        try:
            client.create_monthly_status(customer_id, month, year, PENDING)
        except ApiError as e:
            logger.warning(f"Could not create status {month}/{year} for customer {customer_id}: {e.message}")
            continue
        created.append(MonthlyStatus(month=month, year=year, status=PENDING))
    return created
