import os
import logging
from flask import Flask, request, jsonify, session
from flask_login import LoginManager
from flask_cors import CORS
from sqlalchemy import text

from onnet_dashboard.config import config, get_config_name
from onnet_dashboard.middleware.auth import SESSION_USER_KEY, current_token
from onnet_dashboard.models import db, User
from onnet_dashboard.models.user import is_token_valid
from onnet_dashboard.services.api_client import ApiError, OnNetApiClient
from onnet_dashboard.services.cash_desk import ReceiptNotStored
from onnet_dashboard.services.validation import ValidationError

BLUEPRINTS = [
    ('onnet_dashboard.routes.auth', 'auth_bp', '/api/auth'),
    ('onnet_dashboard.routes.customers', 'customers_bp', '/api/customers'),
    ('onnet_dashboard.routes.plans', 'plans_bp', '/api/plans'),
    ('onnet_dashboard.routes.employees', 'employees_bp', '/api/employees'),
    ('onnet_dashboard.routes.payments', 'payments_bp', '/api/payments'),
    ('onnet_dashboard.routes.payments', 'receipts_bp', '/api/receipts'),
    ('onnet_dashboard.routes.expenses', 'expenses_bp', '/api/expenses'),
    ('onnet_dashboard.routes.balances', 'balances_bp', '/api/balances'),
    ('onnet_dashboard.routes.quotes', 'quotes_bp', '/api/quotes'),
    ('onnet_dashboard.routes.iptv', 'iptv_bp', '/api/tv'),
    ('onnet_dashboard.routes.health', 'health_bp', '/api'),
]


def create_app(config_name=None, api_client=None):
    """
    Application factory.

    Args:
        config_name (str): 'development', 'production' or 'testing'; detected
            from the environment when omitted
        api_client: object exposing the OnNetApiClient methods, used instead
            of the HTTP client (tests pass an in-memory fake)
    """
    if config_name is None:
        config_name = get_config_name()

    app = Flask(__name__)

    try:
        config_instance = config[config_name]()
        app.config.from_object(config_instance)
        app.logger.info(f"Configuration loaded for {config_name} environment")
    except Exception as config_error:
        app.logger.error(f"Configuration loading failed: {config_error}")
        raise

    # Configure logging based on environment
    if not app.debug and config_name == 'production':
        app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        app.logger.addHandler(handler)
        logging.getLogger('onnet_dashboard').setLevel(app.config.get('LOG_LEVEL', 'INFO'))
        logging.getLogger('onnet_dashboard').addHandler(handler)
    elif app.debug:
        app.logger.setLevel(logging.DEBUG)
        logging.getLogger('onnet_dashboard').setLevel(logging.DEBUG)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError as e:
        app.logger.warning(f"Could not create instance folder: {e}")

    db.init_app(app)

    CORS(app,
         origins=app.config.get('CORS_ORIGINS', []),
         supports_credentials=app.config.get('CORS_SUPPORTS_CREDENTIALS', True),
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization', 'X-Requested-With', 'Accept', 'Origin'],
         expose_headers=['Content-Type', 'Content-Disposition'],
         max_age=86400)

    # Upstream API client; every call forwards the session user's token
    if api_client is None:
        api_client = OnNetApiClient(
            app.config['ONNET_API_URL'],
            timeout=app.config.get('ONNET_API_TIMEOUT', 10),
            token_provider=current_token,
        )
    app.extensions['onnet_api'] = api_client
    app.logger.info(f"Upstream API: {app.config['ONNET_API_URL']}")

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def handle_unauthorized():
        """JSON instead of a redirect to a login page"""
        app.logger.warning(f"Unauthorized API access attempt to {request.path} from {request.remote_addr}")
        return jsonify({
            'error': 'Authentication required',
            'message': 'You must be logged in to access this endpoint',
            'code': 'UNAUTHORIZED'
        }), 401

    @login_manager.user_loader
    def load_user(user_id):
        """Rebuild the user from the session; an expired upstream token logs them out"""
        data = session.get(SESSION_USER_KEY)
        if not data or str(data.get('id')) != str(user_id):
            return None
        if not is_token_valid(data.get('token')):
            app.logger.info(f"Session token for user {user_id} expired")
            session.pop(SESSION_USER_KEY, None)
            return None
        return User.from_session(data)

    registered_blueprints = []
    for module_name, blueprint_name, url_prefix in BLUEPRINTS:
        module = __import__(module_name, fromlist=[blueprint_name])
        blueprint = getattr(module, blueprint_name)
        app.register_blueprint(blueprint, url_prefix=url_prefix)
        registered_blueprints.append(blueprint_name)
        app.logger.debug(f"Registered {blueprint_name} blueprint at {url_prefix}")

    @app.route('/')
    def index():
        return jsonify({
            'message': 'ON-NET WIRELESS dashboard API',
            'status': 'running',
            'version': '1.0.0',
            'environment': config_name,
            'endpoints': {
                'health': '/api/health',
                'auth': '/api/auth',
                'customers': '/api/customers',
                'plans': '/api/plans',
                'employees': '/api/employees',
                'payments': '/api/payments',
                'receipts': '/api/receipts',
                'expenses': '/api/expenses',
                'balances': '/api/balances',
                'quotes': '/api/quotes',
                'tv': '/api/tv',
            },
        })

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        status_code = error.status_code if 400 <= error.status_code < 500 else 502
        app.logger.warning(f"Upstream error on {request.path}: {error.status_code} {error.message}")
        return jsonify(error.to_dict()), status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify(error.to_dict()), 400

    @app.errorhandler(ReceiptNotStored)
    def handle_receipt_not_stored(error):
        return jsonify(error.to_dict()), 500

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'error': 'Forbidden', 'code': 'FORBIDDEN'}), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': f'The requested endpoint {request.path} does not exist',
            'code': 'NOT_FOUND'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'error': 'Method Not Allowed',
            'message': f'The method {request.method} is not allowed for endpoint {request.path}',
            'code': 'METHOD_NOT_ALLOWED'
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        """500 handler with database rollback"""
        db.session.rollback()
        app.logger.error(f"Internal server error: {error}")
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred. Please try again later.',
            'code': 'INTERNAL_ERROR'
        }), 500

    with app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
            db.create_all()
            app.logger.info("Local database tables created/verified")
        except Exception as db_error:
            app.logger.error(f"Database initialization error: {db_error}")
            if config_name != 'production':
                raise

    app.logger.info(f"Dashboard API created: {len(registered_blueprints)} blueprints, environment {config_name}")
    return app


if __name__ == '__main__':
    local_app = create_app()
    local_app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
