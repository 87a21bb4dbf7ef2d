# onnet_dashboard/routes/health.py
from datetime import datetime

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from onnet_dashboard import __version__
from onnet_dashboard.config import validate_config
from onnet_dashboard.models import db

health_bp = Blueprint('health', __name__)

APP_NAME = 'ON-NET WIRELESS Dashboard API'
CRITICAL_BLUEPRINTS = ('auth', 'customers', 'payments', 'iptv')


def _database_check():
    try:
        db.session.execute(text('SELECT 1'))
        db.session.commit()
    except SQLAlchemyError as db_error:
        current_app.logger.error(f"Database health check failed: {db_error}")
        db.session.rollback()
        return {'status': 'unhealthy', 'connected': False, 'error': str(db_error)}

    db_url = current_app.config.get('SQLALCHEMY_DATABASE_URI', '').lower()
    if 'sqlite' in db_url:
        db_type = 'SQLite'
    elif 'postgres' in db_url:
        db_type = 'PostgreSQL'
    else:
        db_type = 'Unknown'
    return {'status': 'healthy', 'type': db_type, 'connected': True}


def _configuration_check():
    valid, message = validate_config()
    issues = [] if valid else [message]
    if not current_app.config.get('ONNET_API_URL'):
        issues.append('ONNET_API_URL is not set')
    if issues:
        current_app.logger.warning(f"Configuration issues detected: {issues}")
    return {
        'status': 'healthy' if not issues else 'warning',
        'issues': issues,
        'upstream_api': current_app.config.get('ONNET_API_URL'),
        'timezone': current_app.config.get('TIMEZONE'),
        'cors_configured': bool(current_app.config.get('CORS_ORIGINS')),
    }


def _application_check():
    registered = [bp.name for bp in current_app.blueprints.values()]
    missing = [name for name in CRITICAL_BLUEPRINTS if name not in registered]
    if missing:
        current_app.logger.warning(f"Missing critical blueprints: {missing}")
    api_routes = [rule for rule in current_app.url_map.iter_rules() if rule.rule.startswith('/api/')]
    return {
        'status': 'healthy' if not missing else 'warning',
        'blueprints': {
            'registered': registered,
            'missing_critical': missing,
        },
        'api_routes': len(api_routes),
    }


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Service health: local database, configuration and registered routes.

    The upstream API is not called; its URL is reported so a misconfigured
    deployment shows up here.
    """
    checks = {
        'database': _database_check(),
        'configuration': _configuration_check(),
        'application': _application_check(),
    }

    status_code = 200
    if any(check['status'] == 'unhealthy' for check in checks.values()):
        status = 'unhealthy'
        status_code = 503
    elif any(check['status'] == 'warning' for check in checks.values()):
        status = 'degraded'
    else:
        status = 'healthy'

    current_app.logger.info(f"Health check completed: {status}")
    return jsonify({
        'status': status,
        'app': APP_NAME,
        'version': __version__,
        'timestamp': datetime.utcnow().isoformat() + 'Z',
        'checks': checks,
        'summary': {
            'healthy_checks': sum(1 for c in checks.values() if c['status'] == 'healthy'),
            'warning_checks': sum(1 for c in checks.values() if c['status'] == 'warning'),
            'unhealthy_checks': sum(1 for c in checks.values() if c['status'] == 'unhealthy'),
            'total_checks': len(checks),
        },
    }), status_code


@health_bp.route('/health/simple', methods=['GET'])
def simple_health_check():
    """Minimal check for load balancers"""
    try:
        db.session.execute(text('SELECT 1'))
        db.session.commit()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Simple health check failed: {e}")
        db.session.rollback()
        return jsonify({'status': 'unhealthy', 'message': 'Database connection failed'}), 503

    return jsonify({'status': 'healthy', 'message': 'Service is running'}), 200
