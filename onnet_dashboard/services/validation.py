# onnet_dashboard/services/validation.py
import math
import re
from datetime import datetime

from flask import request

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class ValidationError(ValueError):
    """Raised when request data fails a business validation rule"""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self):
        return {'error': self.message, 'field': self.field}


def clean_text(value):
    if value is None:
        return ''
    return ' '.join(str(value).strip().split())


def required_text(data, field, label):
    value = clean_text(data.get(field))
    if not value:
        raise ValidationError(f'{label} is required', field)
    return value


def optional_text(data, field):
    return clean_text(data.get(field)) or None


def to_number(value, field, label):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f'{label} is required', field)
    try:
        number = float(str(value).replace(',', '').strip())
    except (TypeError, ValueError):
        raise ValidationError(f'{label} must be a number', field)
    # float() accepts "nan" and "inf"
    if not math.isfinite(number):
        raise ValidationError(f'{label} must be a number', field)
    return number


def positive_number(data, field, label):
    number = to_number(data.get(field), field, label)
    if number <= 0:
        raise ValidationError(f'{label} must be greater than 0', field)
    return number


def optional_int(data, field, label):
    value = data.get(field)
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} must be a whole number', field)


def required_int(data, field, label):
    value = optional_int(data, field, label)
    if value is None:
        raise ValidationError(f'{label} is required', field)
    return value


def iso_date(data, field, label, required=True):
    """
    Validate a YYYY-MM-DD date string and return it unchanged.

    Dates travel to the upstream API as plain strings, so the string is
    returned instead of a date object to avoid any timezone shifting.
    """
    value = clean_text(data.get(field))
    if not value:
        if required:
            raise ValidationError(f'{label} is required', field)
        return None
    if not ISO_DATE_PATTERN.match(value):
        raise ValidationError(f'{label} must use the YYYY-MM-DD format', field)
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise ValidationError(f'{label} is not a valid date', field)
    return value


def month_and_year(month, year):
    """Validate a (month, year) pair coming from query parameters"""
    try:
        month = int(month)
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError('Month and year must be whole numbers')
    if not 1 <= month <= 12:
        raise ValidationError('Month must be between 1 and 12', 'month')
    if not 2000 <= year <= 2100:
        raise ValidationError('Year must be between 2000 and 2100', 'year')
    return month, year


def json_body():
    """The request JSON object; anything else is a validation error"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('No data provided')
    return data
