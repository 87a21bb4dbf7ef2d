# onnet_dashboard/middleware/auth.py

from functools import wraps
from flask import jsonify, session
from flask_login import current_user
import logging

from onnet_dashboard.models.user import ROLE_ADMIN, ROLE_CASHIER

logger = logging.getLogger(__name__)

SESSION_USER_KEY = 'onnet_user'


def current_token():
    """Upstream bearer token of the logged-in user, if any"""
    data = session.get(SESSION_USER_KEY)
    if not data:
        return None
    return data.get('token')


def _require_roles(roles, message):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                logger.warning("Unauthenticated access attempt to a protected route.")
                return jsonify({'error': 'Authentication required'}), 401

            if getattr(current_user, 'role', None) not in roles:
                logger.warning(
                    f"User '{current_user.username}' (role: {getattr(current_user, 'role', 'N/A')}) "
                    f"attempted to access a route restricted to {', '.join(roles)}."
                )
                return jsonify({'error': message}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """
    Only administrators may continue.
    This must be placed AFTER the @login_required decorator.
    """
    return _require_roles((ROLE_ADMIN,), 'Admin access required')(f)


def cashier_or_admin_required(f):
    """
    Cash desk operations: cashiers and administrators.
    This must be placed AFTER the @login_required decorator.
    """
    return _require_roles((ROLE_ADMIN, ROLE_CASHIER), 'Insufficient permissions')(f)
