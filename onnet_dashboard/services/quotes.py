# onnet_dashboard/services/quotes.py
"""
Quote arithmetic.

Unit prices are entered with the sales tax (ISV) already included, which is
how prices are quoted to customers in Honduras. The printed document breaks
the total back down into subtotal and ISV.
"""

import re

from onnet_dashboard.services.validation import (
    ValidationError, clean_text, positive_number, required_text, optional_text
)

DEFAULT_ISV_RATE = 0.15


def round_money(value):
    return round(float(value), 2)


def price_without_isv(price, isv_rate=DEFAULT_ISV_RATE):
    return price / (1 + isv_rate)


def line_total(quantity, price):
    return quantity * price


def quote_totals(items, isv_rate=DEFAULT_ISV_RATE):
    """
    Totals of a quote.

    Args:
        items: iterable of objects or dicts exposing quantity and unit_price
        isv_rate (float): tax rate, 0.15 by default

    Returns:
        dict: subtotal, isv and total, rounded to cents
    """
    total = 0.0
    for item in items:
        quantity = item['quantity'] if isinstance(item, dict) else item.quantity
        price = item['unit_price'] if isinstance(item, dict) else item.unit_price
        total += line_total(quantity, price)

    # ISV taken as a straight percentage of the tax-inclusive total
    isv = total * isv_rate
    subtotal = total - isv
    return {
        'subtotal': round_money(subtotal),
        'isv': round_money(isv),
        'total': round_money(total),
    }


def validate_quote_payload(data):
    """Validate a quote request body and return normalised customer and item data"""
    if not isinstance(data, dict):
        raise ValidationError('No data provided')

    customer = {
        'customer_name': required_text(data, 'customer_name', 'Customer name'),
        'customer_address': required_text(data, 'customer_address', 'Customer address'),
        'customer_phone': required_text(data, 'customer_phone', 'Customer phone'),
        'customer_rtn': optional_text(data, 'customer_rtn'),
        'notes': optional_text(data, 'notes'),
    }

    raw_items = data.get('items') or []
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError('Add at least one item to the quote', 'items')

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f'Item {index + 1} is not valid', 'items')
        label = f'Item {index + 1}'
        items.append({
            'concept': required_text(raw, 'concept', f'{label} concept'),
            'description': optional_text(raw, 'description'),
            'quantity': positive_number(raw, 'quantity', f'{label} quantity'),
            'unit_price': positive_number(raw, 'unit_price', f'{label} price'),
        })

    return customer, items


def quote_filename(customer_name, quote_date):
    """cotizacion_<name>_<date>.pdf with the name reduced to filesystem-safe characters"""
    name = re.sub(r'[^A-Za-z0-9]+', '_', clean_text(customer_name)).strip('_') or 'cliente'
    return f"cotizacion_{name}_{quote_date.isoformat()}.pdf"
