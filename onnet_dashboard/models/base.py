# onnet_dashboard/models/base.py

from flask_sqlalchemy import SQLAlchemy

from onnet_dashboard.services.date_utils import parse_date_local

db = SQLAlchemy()


def as_int(value, default=None):
    """Coerce an upstream value to int; the API sends ids as numbers or strings"""
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_float(value, default=0.0):
    # MySQL DECIMAL columns arrive as strings ("450.00")
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_text(value):
    if value is None:
        return ''
    return str(value).strip()


def date_text(value):
    """YYYY-MM-DD of an upstream date; timestamps are read in the business timezone"""
    parsed = parse_date_local(value)
    return parsed.isoformat() if parsed else None
