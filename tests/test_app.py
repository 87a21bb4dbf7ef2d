from onnet_dashboard.config import TestingConfig, get_config_name, validate_config


def test_health_reports_checks(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    data = response.get_json()
    assert data['status'] == 'healthy'
    assert data['checks']['database'] == {'status': 'healthy', 'type': 'SQLite', 'connected': True}
    assert data['checks']['configuration']['upstream_api'] == 'http://upstream.test'
    assert data['checks']['application']['blueprints']['missing_critical'] == []
    assert data['summary']['total_checks'] == 3


def test_simple_health(client):
    assert client.get('/api/health/simple').get_json() == {'status': 'healthy', 'message': 'Service is running'}


def test_index_and_json_errors(client):
    assert client.get('/').get_json()['status'] == 'running'

    response = client.get('/api/nowhere')
    assert response.status_code == 404
    assert response.get_json()['code'] == 'NOT_FOUND'

    response = client.delete('/api/health')
    assert response.status_code == 405
    assert response.get_json()['code'] == 'METHOD_NOT_ALLOWED'


def test_upstream_server_errors_become_bad_gateway(admin_client, fake_api, monkeypatch):
    from onnet_dashboard.services.api_client import ApiError

    def broken():
        raise ApiError(500, 'Error interno')

    monkeypatch.setattr(fake_api, 'list_plans', broken)
    response = admin_client.get('/api/plans')
    assert response.status_code == 502
    assert response.get_json() == {'error': 'Error interno', 'code': 'UPSTREAM_ERROR', 'status_code': 500}


def test_config_name_detection(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'production')
    assert get_config_name() == 'production'

    monkeypatch.delenv('FLASK_ENV')
    monkeypatch.delenv('TESTING', raising=False)
    monkeypatch.delenv('CI', raising=False)
    assert get_config_name() == 'development'

    monkeypatch.setenv('CI', 'true')
    assert get_config_name() == 'testing'


def test_validate_config_in_production(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'production')
    monkeypatch.delenv('SECRET_KEY', raising=False)
    monkeypatch.setenv('ONNET_API_URL', 'http://api.example')
    valid, message = validate_config()
    assert valid is False
    assert 'SECRET_KEY' in message


def test_testing_config_defaults():
    config = TestingConfig()
    assert config.SQLALCHEMY_DATABASE_URI == 'sqlite:///:memory:'
    assert config.ISV_RATE == 0.15
    assert config.TIMEZONE == 'America/Tegucigalpa'


def test_development_server_entry_point(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'testing')
    monkeypatch.setenv('PORT', '5055')
    from onnet_dashboard import wsgi

    runs = []
    monkeypatch.setattr(wsgi.app, 'run', lambda **kwargs: runs.append(kwargs))
    wsgi.main()

    assert wsgi.app.config['TESTING'] is True
    assert runs == [{'debug': False, 'host': '0.0.0.0', 'port': 5055}]
