# onnet_dashboard/services/cash_desk.py
"""
Cash desk operations: internet payments and IPTV renewals.

The upstream API records the payments. The dashboard validates the amounts,
works out which months a payment covers and keeps the issued receipt, since
the amount received and the change only matter to the receipt.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from onnet_dashboard.models import PAID, Receipt, db
from onnet_dashboard.models.receipt import (
    KIND_INTERNET, KIND_TV, MODE_MULTIPLE, MODE_RENEWAL, MODE_SINGLE
)
from onnet_dashboard.services.api_client import ApiError
from onnet_dashboard.services.billing import is_later_date, payable_months, renewal_months
from onnet_dashboard.services.date_utils import today_local
from onnet_dashboard.services.quotes import round_money
from onnet_dashboard.services.validation import (
    ValidationError, clean_text, iso_date, optional_text, positive_number, required_int, to_number
)

logger = logging.getLogger(__name__)

PAYMENT_MODES = (MODE_SINGLE, MODE_MULTIPLE)


class ReceiptNotStored(Exception):
    """The upstream payment went through but the local receipt could not be saved"""

    def __init__(self, payment_ids):
        super().__init__('The payment was registered but its receipt could not be saved')
        self.message = str(self)
        self.payment_ids = payment_ids

    def to_dict(self):
        return {'error': self.message, 'code': 'RECEIPT_NOT_STORED', 'payment_ids': self.payment_ids}


def _fallback_number():
    return datetime.utcnow().strftime('%Y%m%d%H%M%S')


def _method_name(methods, method_id):
    for method in methods:
        if method.id == method_id:
            return method.description
    return f'Método #{method_id}'


def _store_receipt(receipt):
    try:
        db.session.add(receipt)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(
            f"Receipt for customer {receipt.customer_id} not stored after upstream "
            f"payment(s) {receipt.payment_ids}: {str(e)}"
        )
        raise ReceiptNotStored(receipt.payment_ids)


def _load_methods(loader):
    try:
        return loader()
    except ApiError as e:
        logger.warning(f"Could not load payment methods: {e.message}")
        return []


def selected_months(data):
    """Validate the `months` list of a payment body, oldest first"""
    raw_months = data.get('months') or []
    if not isinstance(raw_months, list):
        raise ValidationError('Months must be a list', 'months')

    months = []
    for raw in raw_months:
        if not isinstance(raw, dict):
            raise ValidationError('Each month needs a month and a year', 'months')
        month = required_int(raw, 'month', 'Month')
        year = required_int(raw, 'year', 'Year')
        if not 1 <= month <= 12:
            raise ValidationError('Month must be between 1 and 12', 'months')
        entry = {'month': month, 'year': year}
        if raw.get('id'):
            entry['id'] = required_int(raw, 'id', 'Month id')
        months.append(entry)

    months.sort(key=lambda m: (m['year'], m['month']))
    return months


def check_received(received, amount):
    """The customer must hand over at least the amount due; returns the change"""
    if received < amount:
        raise ValidationError('The amount received cannot be less than the amount due', 'received')
    return round_money(received - amount)


def register_internet_payment(client, data, issued_by=None, today=None):
    """
    Register an internet payment upstream and issue its receipt.

    Single mode applies the payment to the oldest selected month, or the
    oldest payable month, or the current month. Multiple mode applies it to
    every selected month; without an explicit amount it charges the plan price
    for each of them.

    Returns:
        Receipt: the stored receipt
    """
    today = today or today_local()

    customer_id = required_int(data, 'customer_id', 'Customer')
    method_id = required_int(data, 'method_id', 'Payment method')
    paid_on = iso_date(data, 'paid_on', 'Payment date')
    mode = clean_text(data.get('mode')).lower() or MODE_SINGLE
    if mode not in PAYMENT_MODES:
        raise ValidationError(f"Mode must be one of: {', '.join(PAYMENT_MODES)}", 'mode')
    reference = optional_text(data, 'reference')
    note = optional_text(data, 'note')
    months = selected_months(data)

    customer = client.get_customer(customer_id)
    plan = customer.plan
    if plan is None and customer.plan_id:
        try:
            plan = client.get_plan(customer.plan_id)
        except ApiError as e:
            logger.warning(f"Could not load plan {customer.plan_id} for customer {customer_id}: {e.message}")

    if mode == MODE_MULTIPLE:
        if not months:
            raise ValidationError('Select at least one month to apply the payment to', 'months')
        if data.get('amount') in (None, ''):
            amount = round_money((plan.monthly_price if plan else 0) * len(months))
            if amount <= 0:
                raise ValidationError('Amount must be greater than 0', 'amount')
        else:
            amount = positive_number(data, 'amount', 'Amount')
    else:
        amount = positive_number(data, 'amount', 'Amount')
        if not months:
            pending = payable_months(client.pending_months(customer_id), today)
            if pending:
                months = [{'month': pending[0].month, 'year': pending[0].year}]
        target = months[0] if months else {'month': today.month, 'year': today.year}
        months = [target]

    received = to_number(data.get('received'), 'received', 'Amount received')
    change = check_received(received, amount)

    if mode == MODE_MULTIPLE:
        payments = client.create_multiple_payments(
            customer_id, amount, paid_on, method_id, months, reference=reference, note=note
        )
    else:
        payment = client.create_payment(
            customer_id, amount, paid_on, method_id, months[0]['month'], months[0]['year'],
            reference=reference, note=note
        )
        if payment.applied_month and payment.applied_year:
            months = [{'month': payment.applied_month, 'year': payment.applied_year}]
        payments = [payment]

    payment_ids = [p.id for p in payments if p.id is not None]
    methods = _load_methods(client.list_payment_methods)

    receipt = Receipt(
        number=str(payment_ids[0]) if payment_ids else _fallback_number(),
        kind=KIND_INTERNET,
        mode=mode,
        customer_id=customer_id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_address=customer.address,
        plan_name=plan.name if plan else None,
        plan_price=plan.monthly_price if plan else None,
        method=_method_name(methods, method_id),
        reference=reference,
        note=note,
        paid_on=paid_on,
        months=[{'month': m['month'], 'year': m['year']} for m in months],
        payment_ids=payment_ids,
        total=amount,
        received=received,
        change=change,
        issued_by=issued_by,
    )
    _store_receipt(receipt)

    logger.info(
        f"Payment of {amount} registered for customer {customer_id} "
        f"({len(months)} month(s), receipt {receipt.number})"
    )
    return receipt


def mark_tv_months_paid(client, customer_id, months):
    """
    Flag renewed months as paid in the IPTV monthly status.

    The payments are already recorded at this point, so failures are only
    logged.
    """
    updated = 0
    for year in sorted({m['year'] for m in months}):
        try:
            statuses = client.get_tv_monthly_statuses(customer_id, year)
        except ApiError as e:
            logger.warning(f"Could not load IPTV statuses {year} for customer {customer_id}: {e.message}")
            continue

        wanted = {m['month'] for m in months if m['year'] == year}
        for status in statuses:
            if status.month not in wanted or not status.id:
                continue
            try:
                client.update_tv_monthly_status(status.id, PAID)
                updated += 1
            except ApiError as e:
                logger.warning(f"Could not mark IPTV month {status.month}/{year} paid: {e.message}")
    return updated


def register_tv_renewal(client, customer_id, data, issued_by=None):
    """
    Renew a prepaid IPTV subscription up to a new expiry date.

    Returns:
        Receipt: the stored renewal receipt
    """
    paid_on = iso_date(data, 'paid_on', 'Payment date')
    new_expiry = iso_date(data, 'new_expiry', 'New expiry date')
    method_id = required_int(data, 'method_id', 'Payment method')

    customer = client.get_tv_customer(customer_id)
    previous_expiry = customer.expires_on
    if not is_later_date(new_expiry, previous_expiry):
        raise ValidationError(
            'The new expiry date must be later than the current expiry date', 'new_expiry'
        )

    amount = positive_number(data, 'amount', 'Amount')
    received = to_number(data.get('received'), 'received', 'Amount received')
    change = check_received(received, amount)

    months = renewal_months(previous_expiry, new_expiry)
    if not months:
        raise ValidationError(
            'There are no months to pay between the current and the new expiry date', 'new_expiry'
        )

    reference = optional_text(data, 'reference')
    note = optional_text(data, 'note') or f'Pago de renovación plan TV hasta {new_expiry}.'

    payments = client.create_tv_payments(
        customer_id, amount, paid_on, method_id, months, reference=reference, note=note
    )
    client.update_tv_customer(customer_id, {'expires_on': new_expiry})
    marked = mark_tv_months_paid(client, customer_id, months)

    payment_ids = [p.id for p in payments if p.id is not None]
    methods = _load_methods(client.list_tv_payment_methods)

    receipt = Receipt(
        number=str(payment_ids[0]) if payment_ids else _fallback_number(),
        kind=KIND_TV,
        mode=MODE_RENEWAL,
        customer_id=customer_id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_address=customer.address,
        plan_name=customer.plan_name,
        plan_price=customer.plan_price,
        method=_method_name(methods, method_id),
        reference=reference,
        note=note,
        paid_on=paid_on,
        months=months,
        payment_ids=payment_ids,
        total=amount,
        received=received,
        change=change,
        previous_expiry=previous_expiry,
        new_expiry=new_expiry,
        issued_by=issued_by,
    )
    _store_receipt(receipt)

    logger.info(
        f"IPTV customer {customer_id} renewed until {new_expiry}: "
        f"{len(months)} month(s), {marked} status row(s) marked paid"
    )
    return receipt
