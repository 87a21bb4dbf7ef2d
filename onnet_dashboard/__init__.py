"""
ON-NET WIRELESS administrative dashboard.

Flask application that fronts the ON-NET ISP API: customers, monthly billing
statuses, the cash desk, expenses, balances, IPTV renewals, quotes and PDF
receipts.
"""

__version__ = '1.0.0'

from onnet_dashboard.app import create_app

__all__ = ['create_app']
