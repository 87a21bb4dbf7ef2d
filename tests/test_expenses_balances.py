def test_expenses_listing_with_range_search_and_total(admin_client, fake_api):
    data = admin_client.get('/api/expenses').get_json()
    assert [e['id'] for e in data['expenses']] == [3, 1, 2]
    assert data['total_amount'] == 1650.5
    assert data['pagination']['per_page'] == 20

    data = admin_client.get('/api/expenses?start_date=2025-06-01&end_date=2025-06-30').get_json()
    assert [e['id'] for e in data['expenses']] == [3, 1]
    assert ('list_expenses', '2025-06-01', '2025-06-30') in fake_api.calls

    data = admin_client.get('/api/expenses?q=router').get_json()
    assert [e['description'] for e in data['expenses']] == ['Router de repuesto']


def test_expenses_reject_inverted_range(admin_client):
    response = admin_client.get('/api/expenses?start_date=2025-07-01&end_date=2025-06-01')
    assert response.status_code == 400
    assert response.get_json()['field'] == 'start_date'


def test_expense_crud(admin_client, fake_api):
    response = admin_client.post('/api/expenses', json={
        'description': 'Antena', 'amount': '950.25', 'date': '2025-06-19',
    })
    assert response.status_code == 201
    expense = response.get_json()['expense']
    assert expense['amount'] == 950.25

    response = admin_client.put(f"/api/expenses/{expense['id']}", json={
        'description': 'Antena sectorial', 'amount': 990, 'date': '2025-06-19',
    })
    assert response.get_json()['expense']['description'] == 'Antena sectorial'

    assert admin_client.delete(f"/api/expenses/{expense['id']}").status_code == 200
    assert expense['id'] not in fake_api.expenses


def test_expense_validation(admin_client):
    response = admin_client.post('/api/expenses', json={'description': 'X', 'amount': -5, 'date': '2025-06-01'})
    assert response.get_json()['field'] == 'amount'

    response = admin_client.post('/api/expenses', json={'description': '', 'amount': 5, 'date': '2025-06-01'})
    assert response.get_json()['field'] == 'description'

    response = admin_client.post('/api/expenses', data='not json', content_type='text/plain')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No data provided'


def test_monthly_balance_filters_by_local_payment_date(admin_client, today):
    data = admin_client.get('/api/balances/monthly?month=6&year=2025').get_json()

    # The 03:00 UTC payment of June 1st belongs to May 31st in Honduras
    assert [entry['id'] for entry in data['income']] == [1]
    assert data['income'][0]['customer_name'] == 'Ana López'
    assert [entry['id'] for entry in data['expenses']] == [1, 3]
    assert data['total_income'] == 500.0
    assert data['total_expenses'] == 450.5
    assert data['profit'] == 49.5
    assert data['result'] == 'Beneficio'
    assert data['month_name'] == 'Junio'


def test_monthly_balance_reports_a_loss(admin_client, fake_api, today):
    fake_api.expenses[9] = {'id': 9, 'descripcion': 'Torre', 'monto': '5000', 'fecha': '2025-06-01'}
    data = admin_client.get('/api/balances/monthly?month=6&year=2025').get_json()
    assert data['profit'] == -4950.5
    assert data['result'] == 'Pérdida'


def test_balance_defaults_to_current_month_and_validates(admin_client, today):
    data = admin_client.get('/api/balances/monthly').get_json()
    assert (data['month'], data['year']) == (6, 2025)

    assert admin_client.get('/api/balances/monthly?month=13&year=2025').status_code == 400


def test_tv_balance(admin_client, today):
    data = admin_client.get('/api/balances/tv?month=6&year=2025').get_json()
    assert data['total_income'] == 150.0
    assert data['income'][0]['customer_name'] == 'Pedro Ramos'
    assert data['total_expenses'] == 400.0
    assert data['result'] == 'Pérdida'


def test_expense_amount_must_be_finite(admin_client, fake_api):
    for raw in ('nan', 'inf', '1e999'):
        response = admin_client.post('/api/expenses', json={'description': 'X', 'amount': raw, 'date': '2025-06-01'})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'amount'
    assert not any(c[0] == 'create_expense' for c in fake_api.calls)


def test_timestamped_expense_near_midnight_counts_in_its_local_month(admin_client, fake_api, today):
    # 02:00 UTC on March 1st is still February 28th in Honduras
    fake_api.expenses = {
        7: {'id': 7, 'descripcion': 'Combustible', 'monto': '10.00', 'fecha': '2025-03-01T02:00:00.000Z'},
    }

    february = admin_client.get('/api/balances/monthly?month=2&year=2025').get_json()
    march = admin_client.get('/api/balances/monthly?month=3&year=2025').get_json()

    assert february['total_expenses'] == 10.0
    assert february['expenses'][0]['date'] == '2025-02-28'
    assert march['total_expenses'] == 0.0
