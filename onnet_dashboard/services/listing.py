# onnet_dashboard/services/listing.py

import math
from collections import namedtuple

from flask import current_app

Page = namedtuple('Page', ['items', 'page', 'per_page', 'total', 'pages'])

PAYMENT_DAY_CHOICES = (15, 30)


def _value(item, field):
    if isinstance(item, dict):
        value = item.get(field)
    else:
        value = getattr(item, field, None)
    return value() if callable(value) else value


def search(items, term, fields):
    """Case-insensitive substring match of `term` against any of `fields`"""
    term = (term or '').strip().lower()
    if not term:
        return list(items)
    result = []
    for item in items:
        for field in fields:
            value = _value(item, field)
            if value is not None and term in str(value).lower():
                result.append(item)
                break
    return result


def filter_by_status(customers, status_ids):
    """Keep customers whose status id is selected; no selection keeps everyone"""
    if not status_ids:
        return list(customers)
    selected = set(status_ids)
    return [c for c in customers if c.status_code in selected]


def filter_by_payment_day(customers, payment_day):
    if payment_day is None:
        return list(customers)
    return [c for c in customers if c.payment_day == payment_day]


def paginate(items, page=1, per_page=10):
    items = list(items)
    per_page = max(1, per_page)
    total = len(items)
    pages = max(1, math.ceil(total / per_page))
    page = min(max(1, page), pages)
    start = (page - 1) * per_page
    return Page(items[start:start + per_page], page, per_page, total, pages)


def page_meta(page):
    return {
        'page': page.page,
        'per_page': page.per_page,
        'total': page.total,
        'pages': page.pages,
    }


# --- Query string helpers ---

def _int_arg(args, name, default):
    try:
        return int(args.get(name, default))
    except (TypeError, ValueError):
        return default


def page_args(args, default_per_page=None):
    """(page, per_page) from the query string, falling back to ITEMS_PER_PAGE"""
    if default_per_page is None:
        default_per_page = current_app.config.get('ITEMS_PER_PAGE', 10)
    return _int_arg(args, 'page', 1), _int_arg(args, 'per_page', default_per_page)


def status_args(args):
    """Repeatable ?status=1&status=3; unknown values are ignored"""
    selected = []
    for raw in args.getlist('status'):
        for part in str(raw).split(','):
            try:
                selected.append(int(part))
            except ValueError:
                continue
    return selected


def payment_day_arg(args):
    """?payment_day=15|30|todos -> 15, 30 or None"""
    raw = (args.get('payment_day') or 'todos').strip().lower()
    try:
        day = int(raw)
    except ValueError:
        return None
    return day if day in PAYMENT_DAY_CHOICES else None
