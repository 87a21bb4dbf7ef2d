def test_tv_customer_listing_fills_catalog_names_and_expiry(admin_client, today):
    data = admin_client.get('/api/tv/customers').get_json()

    assert data['counts'] == {'Activo': 1, 'Inactivo': 0, 'Suspendido': 1, 'Cancelado': 1, 'total': 3}

    by_id = {c['id']: c for c in data['customers']}
    assert (by_id[10]['expiry_state'], by_id[10]['days_remaining']) == ('Por Expirar', 5)
    assert by_id[10]['expires_on'] == '2025-06-25'
    assert (by_id[11]['expiry_state'], by_id[11]['days_remaining']) == ('Expirado', -50)
    assert by_id[11]['plan_name'] == 'TV Básico'
    assert by_id[11]['plan_price'] == 150.0
    assert by_id[11]['status'] == 'Suspendido'
    assert by_id[12]['expiry_state'] == 'Vigente'


def test_tv_customer_search_and_status_filter(admin_client, today):
    data = admin_client.get('/api/tv/customers?q=lflores').get_json()
    assert [c['id'] for c in data['customers']] == [11]

    data = admin_client.get('/api/tv/customers?status=suspendido,Cancelado').get_json()
    assert [c['id'] for c in data['customers']] == [11, 12]


def test_create_tv_customer_defaults_to_active(admin_client, fake_api):
    response = admin_client.post('/api/tv/customers', json={
        'name': 'Nuevo TV', 'plan_id': '1', 'phone': '9555-0000', 'currency': 'usd',
    })

    assert response.status_code == 201
    call = next(c for c in fake_api.calls if c[0] == 'create_tv_customer')
    assert call[1] == {
        'nombre': 'Nuevo TV', 'plantv_id': 1, 'estado_id': 1, 'telefono': '9555-0000', 'moneda': 'USD',
    }


def test_tv_customer_validation(admin_client):
    response = admin_client.post('/api/tv/customers', json={'name': 'Sin plan'})
    assert response.get_json()['field'] == 'plan_id'

    response = admin_client.post('/api/tv/customers', json={'name': 'X', 'plan_id': 1, 'currency': 'EUR'})
    assert response.get_json()['field'] == 'currency'

    response = admin_client.put('/api/tv/customers/10', json={'expires_on': '25-06-2025'})
    assert response.get_json()['field'] == 'expires_on'


def test_update_and_delete_tv_customer(admin_client, fake_api):
    assert admin_client.put('/api/tv/customers/10', json={'notes': 'Cliente VIP'}).status_code == 200
    assert fake_api.tv_customers[10]['notas'] == 'Cliente VIP'

    assert admin_client.delete('/api/tv/customers/12').status_code == 200
    assert 12 not in fake_api.tv_customers


def test_catalogs(admin_client):
    assert admin_client.get('/api/tv/plans').get_json()[0]['name'] == 'TV Básico'
    assert len(admin_client.get('/api/tv/statuses').get_json()) == 4
    assert admin_client.get('/api/tv/payment-methods').get_json()[0]['description'] == 'Efectivo'


def test_devices_crud(admin_client, fake_api):
    devices = admin_client.get('/api/tv/customers/10/devices').get_json()
    assert devices == [{'id': 100, 'customer_id': 10, 'description': 'TV Sala', 'mac_address': 'AA:BB:CC:00:11:22'}]

    response = admin_client.post('/api/tv/customers/10/devices', json={'description': 'TV Cuarto'})
    assert response.status_code == 201
    device = response.get_json()['device']
    assert device['customer_id'] == 10
    assert device['mac_address'] == ''

    response = admin_client.put(f"/api/tv/devices/{device['id']}", json={'description': 'TV Cuarto', 'mac_address': 'FF:EE'})
    assert response.get_json()['device']['mac_address'] == 'FF:EE'

    assert admin_client.delete(f"/api/tv/devices/{device['id']}").status_code == 200
    assert admin_client.delete('/api/tv/devices/999').status_code == 404


def test_tv_payment_history_filters(admin_client):
    data = admin_client.get('/api/tv/payments?month=6&year=2025').get_json()
    assert [p['id'] for p in data['payments']] == [1]
    assert data['payments'][0]['customer_name'] == 'Pedro Ramos'

    data = admin_client.get('/api/tv/payments?customer=lucía').get_json()
    assert [p['id'] for p in data['payments']] == [2]
    assert data['total_amount'] == 150.0


def test_renewal_pays_months_moves_expiry_and_issues_receipt(cashier_client, fake_api, today):
    response = cashier_client.post('/api/tv/customers/10/renewals', json={
        'paid_on': '2025-06-20',
        'new_expiry': '2025-08-25',
        'method_id': 1,
        'amount': 300,
        'received': 500,
    })

    assert response.status_code == 201
    receipt = response.get_json()['receipt']
    assert receipt['kind'] == 'tv'
    assert receipt['mode'] == 'renewal'
    assert receipt['months'] == [{'month': 6, 'year': 2025}, {'month': 7, 'year': 2025}]
    assert receipt['previous_expiry'] == '2025-06-25'
    assert receipt['new_expiry'] == '2025-08-25'
    assert receipt['change'] == 200.0
    assert receipt['note'] == 'Pago de renovación plan TV hasta 2025-08-25.'

    assert fake_api.tv_customers[10]['fecha_expiracion'] == '2025-08-25'
    paid = {row['mes'] for row in fake_api.tv_monthly[(10, 2025)] if row['estado'] == 'Pagado'}
    assert paid == {6, 7}

    call = next(c for c in fake_api.calls if c[0] == 'create_tv_payments')
    assert call[1:3] == (10, 300.0)


def test_renewal_validation(cashier_client, fake_api):
    base = {'paid_on': '2025-06-20', 'method_id': 1, 'amount': 150, 'received': 150}

    response = cashier_client.post('/api/tv/customers/10/renewals', json={**base, 'new_expiry': '2025-06-01'})
    assert response.status_code == 400
    assert response.get_json()['field'] == 'new_expiry'

    response = cashier_client.post('/api/tv/customers/10/renewals', json={**base, 'new_expiry': '2025-06-30'})
    assert response.get_json()['error'].startswith('There are no months to pay')

    response = cashier_client.post(
        '/api/tv/customers/10/renewals', json={**base, 'new_expiry': '2025-07-25', 'received': 100}
    )
    assert response.get_json()['field'] == 'received'

    assert not any(c[0] == 'create_tv_payments' for c in fake_api.calls)


def test_technicians_cannot_renew(technician_client):
    response = technician_client.post('/api/tv/customers/10/renewals', json={})
    assert response.status_code == 403


def test_renewal_rejects_non_finite_amounts(cashier_client, fake_api):
    base = {'paid_on': '2025-06-20', 'new_expiry': '2025-07-25', 'method_id': 1}

    response = cashier_client.post('/api/tv/customers/10/renewals', json={**base, 'amount': 'nan', 'received': 'nan'})
    assert response.status_code == 400
    assert response.get_json()['field'] == 'amount'

    response = cashier_client.post('/api/tv/customers/10/renewals', json={**base, 'amount': 150, 'received': 'inf'})
    assert response.get_json()['field'] == 'received'

    assert not any(c[0] == 'create_tv_payments' for c in fake_api.calls)
    assert fake_api.tv_customers[10]['fecha_expiracion'] == '2025-06-25T06:00:00.000Z'
