# onnet_dashboard/services/date_utils.py
import calendar
import logging
from datetime import datetime, date

import pytz
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'America/Tegucigalpa'

MONTH_NAMES = [
    'Enero', 'Febrero', 'Marzo', 'Abril', 'Mayo', 'Junio',
    'Julio', 'Agosto', 'Septiembre', 'Octubre', 'Noviembre', 'Diciembre'
]
MONTH_INITIALS = ['E', 'F', 'M', 'A', 'M', 'J', 'J', 'A', 'S', 'O', 'N', 'D']


def get_timezone():
    """Timezone the business operates in (configurable, Honduras by default)"""
    name = DEFAULT_TIMEZONE
    if has_app_context():
        name = current_app.config.get('TIMEZONE', DEFAULT_TIMEZONE)
    return pytz.timezone(name)


def today_local():
    """Today's date in the business timezone, independent of the server clock zone"""
    return datetime.now(get_timezone()).date()


def month_name(month):
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return str(month)


def parse_date_local(value):
    """
    Parse a date coming from the upstream API into a local calendar date.

    The API mixes plain 'YYYY-MM-DD' strings with full ISO timestamps
    ('2025-03-01T06:00:00.000Z'). Plain dates are taken literally; timestamps
    with an offset are converted to the business timezone first so a payment
    recorded late in the evening does not slide into the next day.

    Args:
        value (str, date or datetime): The value to parse

    Returns:
        date: Parsed date, or None when the value is empty or unparseable
    """
    if not value:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(get_timezone()).date()
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        if 'T' in text:
            date_part, time_part = text.split('T', 1)
            if text.endswith('Z') or '+' in time_part or '-' in time_part:
                dt = datetime.fromisoformat(text.replace('Z', '+00:00'))
                return dt.astimezone(get_timezone()).date()
            text = date_part
        return datetime.strptime(text[:10], '%Y-%m-%d').date()
    except ValueError as e:
        logger.warning(f"Could not parse date '{value}': {e}")
        return None


def format_long_date_es(date_obj):
    """Spanish long date as printed on documents, e.g. '19 de octubre de 2026'"""
    return f"{date_obj.day} de {MONTH_NAMES[date_obj.month - 1].lower()} de {date_obj.year}"


def month_range(year, month):
    """First and last calendar day of a month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def add_months(year, month, delta):
    month_value = month + delta
    year_value = year + (month_value - 1) // 12
    month_value = (month_value - 1) % 12 + 1
    return year_value, month_value


def iter_months(start_year, start_month, end_year, end_month):
    """Yield (year, month) pairs from start to end, both inclusive"""
    year, month = start_year, start_month
    while (year, month) <= (end_year, end_month):
        yield year, month
        year, month = add_months(year, month, 1)


def one_month_ago(today):
    """Same day one month earlier, clamped to the end of shorter months"""
    year, month = add_months(today.year, today.month, -1)
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
