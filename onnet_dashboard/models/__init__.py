# onnet_dashboard/models/__init__.py

from .base import db

# Upstream-backed value objects
from .customer import (
    Plan, Customer, MonthlyStatus, PAID, PENDING, PARTIAL,
    STATUS_ACTIVE, STATUS_INACTIVE, STATUS_SUSPENDED, STATUS_UNKNOWN, STATUS_LABELS
)
from .payment import PaymentMethod, Payment, Expense
from .employee import Employee, JobRole
from .iptv import TvCustomer, TvDevice, TvPlan, TvStatus

# Session user
from .user import User

# Dashboard-owned tables
from .quote import Quote, QuoteItem
from .receipt import Receipt

__all__ = [
    'db',
    'Plan',
    'Customer',
    'MonthlyStatus',
    'PAID',
    'PENDING',
    'PARTIAL',
    'STATUS_ACTIVE',
    'STATUS_INACTIVE',
    'STATUS_SUSPENDED',
    'STATUS_UNKNOWN',
    'STATUS_LABELS',
    'PaymentMethod',
    'Payment',
    'Expense',
    'Employee',
    'JobRole',
    'TvCustomer',
    'TvDevice',
    'TvPlan',
    'TvStatus',
    'User',
    'Quote',
    'QuoteItem',
    'Receipt',
]
