from decimal import Decimal


def _create_customer(client, headers, name='Khalid Stores'):
    response = client.post('/api/customers', json={'name': name}, headers=headers)
    assert response.status_code == 201
    return response.get_json()['customer']


def _create_invoice(client, headers, customer_id, items=None, date=None):
    payload = {'customer_id': customer_id, 'items': items or [{'name': 'Design', 'quantity': 3, 'price': 50}]}
    if date:
        payload['date'] = date
    response = client.post('/api/invoices', json=payload, headers=headers)
    assert response.status_code == 201
    return response.get_json()['invoice']


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_register_login_me(client):
    response = client.post('/api/auth/register', json={'username': 'Shop1', 'password': 'secret123'})
    assert response.status_code == 201
    assert response.get_json()['profile']['username'] == 'shop1'

    response = client.post('/api/auth/login', json={'username': 'shop1', 'password': 'secret123'})
    assert response.status_code == 200
    token = response.get_json()['access_token']

    response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert response.get_json()['profile']['username'] == 'shop1'


def test_login_errors(client, tenant):
    response = client.post('/api/auth/login', json={'username': tenant, 'password': 'wrong-pass'})
    assert response.status_code == 401
    assert response.get_json()['code'] == 'UNAUTHORIZED'

    response = client.post('/api/auth/register', json={'username': 'bad name', 'password': 'secret123'})
    assert response.status_code == 400
    assert response.get_json()['code'] == 'VALIDATION_ERROR'


def test_login_can_create_missing_profile(client):
    response = client.post('/api/auth/login', json={
        'username': 'newshop', 'password': 'secret123', 'create_if_missing': True
    })
    assert response.status_code == 200
    assert response.get_json()['profile']['username'] == 'newshop'


def test_data_routes_require_token(client):
    for url in ['/api/customers', '/api/services', '/api/invoices', '/api/vouchers', '/api/dashboard']:
        assert client.get(url).status_code == 401

    response = client.get('/api/customers', headers={'Authorization': 'Bearer not-a-token'})
    assert response.status_code == 401


def test_customer_crud(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    url = f"/api/customers/{customer['id']}"

    response = client.put(url, json={'email': 'Shop@Example.com'}, headers=auth_headers)
    assert response.get_json()['customer']['email'] == 'shop@example.com'

    response = client.put(url, json={'join_date': '2020-01-01'}, headers=auth_headers)
    assert response.status_code == 400

    assert client.get('/api/customers', headers=auth_headers).get_json()['total'] == 1
    assert client.delete(url, headers=auth_headers).status_code == 200
    assert client.get(url, headers=auth_headers).status_code == 404


def test_service_crud(client, auth_headers):
    response = client.post('/api/services', json={'name': 'Hosting', 'price': '19.99'}, headers=auth_headers)
    assert response.status_code == 201
    service = response.get_json()['service']
    assert Decimal(service['price']) == Decimal('19.99')

    response = client.post('/api/services', json={'name': 'Broken', 'price': -1}, headers=auth_headers)
    assert response.status_code == 400

    response = client.post('/api/services', json={'name': 'Broken', 'price': '1.005'}, headers=auth_headers)
    assert response.status_code == 400

    url = f"/api/services/{service['id']}"
    response = client.put(url, json={'price': 25}, headers=auth_headers)
    assert Decimal(response.get_json()['service']['price']) == Decimal('25')
    assert client.delete(url, headers=auth_headers).status_code == 200


def test_invoice_payment_flow(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    invoice = _create_invoice(client, auth_headers, customer['id'])
    assert invoice['invoice_number'] == 1001
    assert Decimal(invoice['total']) == Decimal('150')
    assert invoice['status'] == 'pending'

    response = client.get(f"/api/customers/{customer['id']}/payable-invoices", headers=auth_headers)
    payable = response.get_json()['invoices']
    assert [inv['id'] for inv in payable] == [invoice['id']]
    assert Decimal(payable[0]['suggested_amount']) == Decimal('150')

    response = client.post('/api/vouchers', json={'invoice_id': invoice['id'], 'amount': 150}, headers=auth_headers)
    assert response.status_code == 201
    voucher = response.get_json()['voucher']
    assert voucher['voucher_number'] == 1

    invoice = client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).get_json()['invoice']
    assert invoice['status'] == 'paid'
    assert Decimal(invoice['remaining_amount']) == Decimal('0')

    response = client.get(f"/api/customers/{customer['id']}/payable-invoices", headers=auth_headers)
    assert response.get_json()['invoices'] == []

    response = client.get(f"/api/invoices/{invoice['id']}/vouchers", headers=auth_headers)
    assert [v['id'] for v in response.get_json()['vouchers']] == [voucher['id']]

    response = client.get(f"/api/vouchers/{voucher['id']}/receipt", headers=auth_headers)
    assert response.status_code == 200
    assert response.mimetype == 'application/pdf'
    assert 'VCH-1' in response.headers['Content-Disposition']


def test_payment_errors(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    invoice = _create_invoice(client, auth_headers, customer['id'])

    response = client.post('/api/vouchers', json={'invoice_id': invoice['id'], 'amount': 0}, headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()['code'] == 'INVALID_AMOUNT'

    response = client.post('/api/vouchers', json={'invoice_id': invoice['id'], 'amount': '0.005'}, headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()['code'] == 'INVALID_AMOUNT'

    response = client.post('/api/vouchers', json={'invoice_id': 'missing', 'amount': 10}, headers=auth_headers)
    assert response.status_code == 404

    response = client.post('/api/vouchers', json={'amount': 10}, headers=auth_headers)
    assert response.status_code == 400


def test_invoice_update_rederives_amounts(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    invoice = _create_invoice(client, auth_headers, customer['id'])
    client.post('/api/vouchers', json={'invoice_id': invoice['id'], 'amount': 100}, headers=auth_headers)

    url = f"/api/invoices/{invoice['id']}"
    response = client.put(url, json={'items': [{'name': 'Design', 'quantity': 1, 'price': 80}]}, headers=auth_headers)
    updated = response.get_json()['invoice']
    assert Decimal(updated['total']) == Decimal('80')
    assert Decimal(updated['paid_amount']) == Decimal('100')
    assert Decimal(updated['remaining_amount']) == Decimal('-20')
    assert updated['status'] == 'paid'
    assert updated['invoice_number'] == invoice['invoice_number']

    response = client.put(url, json={'paid_amount': 0}, headers=auth_headers)
    assert response.status_code == 400


def test_invoice_list_filters_and_overdue(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    first = _create_invoice(client, auth_headers, customer['id'])
    second = _create_invoice(client, auth_headers, customer['id'])
    assert second['invoice_number'] == first['invoice_number'] + 1

    response = client.post(f"/api/invoices/{first['id']}/overdue", headers=auth_headers)
    assert response.get_json()['invoice']['status'] == 'overdue'

    response = client.get('/api/invoices?status=overdue', headers=auth_headers)
    assert [inv['id'] for inv in response.get_json()['invoices']] == [first['id']]

    response = client.get('/api/invoices?status=lost', headers=auth_headers)
    assert response.status_code == 400


def test_invoice_requires_existing_customer_and_items(client, auth_headers):
    response = client.post('/api/invoices', json={'customer_id': 'missing', 'items': [
        {'name': 'A', 'quantity': 1, 'price': 1}
    ]}, headers=auth_headers)
    assert response.status_code == 404

    customer = _create_customer(client, auth_headers)
    response = client.post('/api/invoices', json={'customer_id': customer['id'], 'items': []}, headers=auth_headers)
    assert response.status_code == 400

    response = client.post('/api/invoices', json={'customer_id': customer['id'], 'items': [
        {'name': 'A', 'quantity': 3, 'price': '0.333'}
    ]}, headers=auth_headers)
    assert response.status_code == 400
    assert client.get('/api/invoices', headers=auth_headers).get_json()['invoices'] == []


def test_tenants_cannot_see_each_other(client, auth_headers):
    customer = _create_customer(client, auth_headers)

    token = client.post('/api/auth/register', json={
        'username': 'rival', 'password': 'secret123'
    }).get_json()['access_token']
    rival = {'Authorization': f'Bearer {token}'}

    assert client.get('/api/customers', headers=rival).get_json()['customers'] == []
    assert client.get(f"/api/customers/{customer['id']}", headers=rival).status_code == 404


def test_deleted_invoice_vouchers_remain(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    invoice = _create_invoice(client, auth_headers, customer['id'])
    client.post('/api/vouchers', json={'invoice_id': invoice['id'], 'amount': 50}, headers=auth_headers)

    assert client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 200

    response = client.get(f"/api/vouchers?invoice_id={invoice['id']}", headers=auth_headers)
    assert response.get_json()['total'] == 1


def test_dashboard(client, auth_headers):
    customer = _create_customer(client, auth_headers)
    _create_invoice(client, auth_headers, customer['id'], date='2024-03-10')
    _create_invoice(client, auth_headers, customer['id'], date='2024-01-02',
                    items=[{'name': 'Hosting', 'quantity': 2, 'price': 25}])

    data = client.get('/api/dashboard', headers=auth_headers).get_json()
    assert Decimal(data['total_sales']) == Decimal('200')
    assert Decimal(data['estimated_profit']) == Decimal('50')
    assert [m['name'] for m in data['monthly_sales']] == ['March', 'January']
    assert data['customer_count'] == 1
    assert data['invoice_count'] == 2
