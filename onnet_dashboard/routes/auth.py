# onnet_dashboard/routes/auth.py
from flask import Blueprint, jsonify, session
from flask_login import login_user, logout_user, login_required, current_user
import logging

from onnet_dashboard.middleware.auth import SESSION_USER_KEY
from onnet_dashboard.models import User
from onnet_dashboard.services.api_client import ApiError, get_api_client
from onnet_dashboard.services.validation import ValidationError, clean_text, json_body

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Log in against the upstream API and open a dashboard session"""
    data = json_body()
    username = clean_text(data.get('username'))
    password = data.get('password') or ''

    if not username or not password:
        logger.warning("Login validation failed: missing username or password")
        raise ValidationError('Username and password are required')

    logger.info(f"Login attempt for username: '{username}'")
    try:
        result = get_api_client().login(username, password)
    except ApiError as e:
        if e.status_code >= 500:
            raise
        logger.warning(f"Login rejected for '{username}': {e.message}")
        return jsonify({'error': e.message or 'Invalid username or password'}), 401

    token = result.get('token')
    user_data = result.get('user') or {}
    if not token or not user_data:
        logger.error(f"Upstream login for '{username}' returned no token or user")
        return jsonify({'error': 'Login failed: unexpected response from the ON-NET API'}), 502

    user = User.from_api(user_data, token=token)
    session[SESSION_USER_KEY] = user.to_session()
    session.permanent = True
    login_user(user)

    logger.info(f"User '{user.username}' logged in (role: {user.role})")
    return jsonify({
        'message': 'Login successful',
        'user': user.to_dict(),
        'dashboard_route': result.get('dashboardRoute') or user.dashboard_route,
    })


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    username = current_user.username
    logout_user()
    session.pop(SESSION_USER_KEY, None)
    logger.info(f"User '{username}' logged out")
    return jsonify({'message': 'Logout successful'})


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """The logged-in user"""
    return jsonify({
        'user': current_user.to_dict(),
        'dashboard_route': current_user.dashboard_route,
    })
