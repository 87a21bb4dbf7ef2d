import os
from datetime import timedelta

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))


def _env_bool(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 't')


def _normalize_database_url(database_url):
    # Hosting providers still hand out postgres:// URLs
    if database_url and database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    return database_url


class Config:
    """Base configuration shared by every environment"""

    # --- Security ---
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # --- Local store (quotes and issued receipts) ---
    SQLALCHEMY_DATABASE_URI = None  # Set in __init__
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Upstream ISP API ---
    ONNET_API_URL = os.environ.get('ONNET_API_URL', 'http://localhost:4000')
    ONNET_API_TIMEOUT = float(os.environ.get('ONNET_API_TIMEOUT', 10))

    # --- Session ---
    PERMANENT_SESSION_LIFETIME = timedelta(hours=12)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = _env_bool('SESSION_COOKIE_SECURE', 'False')
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_NAME = 'onnet_session'

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if origin.strip()
    ]
    CORS_SUPPORTS_CREDENTIALS = True

    # --- Business settings ---
    TIMEZONE = os.environ.get('TIMEZONE', 'America/Tegucigalpa')
    ISV_RATE = float(os.environ.get('ISV_RATE', 0.15))
    ITEMS_PER_PAGE = int(os.environ.get('ITEMS_PER_PAGE', 10))
    EXPENSES_PAGE_SIZE = int(os.environ.get('EXPENSES_PAGE_SIZE', 20))
    EXPIRY_WARNING_DAYS = int(os.environ.get('EXPIRY_WARNING_DAYS', 7))
    STATUS_FETCH_WORKERS = int(os.environ.get('STATUS_FETCH_WORKERS', 8))

    # --- Company identity printed on quotes and receipts ---
    COMPANY_NAME = os.environ.get('COMPANY_NAME', 'ON-NET WIRELESS')
    COMPANY_ADDRESS = os.environ.get('COMPANY_ADDRESS', 'Tegucigalpa, Honduras')
    COMPANY_PHONE = os.environ.get('COMPANY_PHONE', '+504 0000-0000')
    COMPANY_EMAIL = os.environ.get('COMPANY_EMAIL', 'info@onnetwireless.hn')
    COMPANY_RTN = os.environ.get('COMPANY_RTN', '')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    @staticmethod
    def get_database_url():
        """Get properly formatted database URL string"""
        database_url = _normalize_database_url(os.environ.get('DATABASE_URL'))
        return database_url or 'sqlite:///' + os.path.join(basedir, 'onnet_dashboard.db')

    def __init__(self):
        self.SQLALCHEMY_DATABASE_URI = self.get_database_url()


class DevelopmentConfig(Config):
    DEBUG = True
    DEVELOPMENT = True

    def __init__(self):
        super().__init__()
        dev_database_url = _normalize_database_url(os.environ.get('DEV_DATABASE_URL'))
        if dev_database_url:
            self.SQLALCHEMY_DATABASE_URI = dev_database_url


class ProductionConfig(Config):
    DEBUG = False
    DEVELOPMENT = False

    def __init__(self):
        super().__init__()

        secret_key = os.environ.get('SECRET_KEY')
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable is required for production")
        self.SECRET_KEY = secret_key

        if not os.environ.get('ONNET_API_URL'):
            raise ValueError("ONNET_API_URL environment variable is required for production")

        self.SESSION_COOKIE_SECURE = True


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    ONNET_API_URL = 'http://upstream.test'

    def __init__(self):
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
        self.CORS_ORIGINS = ['*']


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config_name():
    """Detect the environment from FLASK_ENV, then CI markers"""
    flask_env = os.environ.get('FLASK_ENV', '').lower()
    if flask_env in ['production', 'testing', 'development']:
        return flask_env

    if os.environ.get('TESTING') or os.environ.get('CI'):
        return 'testing'

    return 'development'


def validate_config():
    """Validate the variables the selected environment depends on"""
    config_name = get_config_name()

    if config_name == 'production':
        required_vars = ['SECRET_KEY', 'ONNET_API_URL']
        missing_vars = [var for var in required_vars if not os.environ.get(var)]
        if missing_vars:
            return False, f"Missing required environment variables: {', '.join(missing_vars)}"

    return True, "Configuration is valid"


__all__ = [
    'Config',
    'config',
    'get_config_name',
    'validate_config',
]
