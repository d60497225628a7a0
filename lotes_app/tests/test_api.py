import pytest

from lotes_app.main import app


@pytest.fixture
def client(container):
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


def login(client, email):
    password = email.split('@')[0] + '123'
    r = client.post('/api/login', json={'email': email, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()


def test_login_returns_user_and_capabilities(client):
    data = login(client, 'master@lotes.com')
    assert data['user']['id'] == 'usr-001'
    assert data['capabilities']['can_delete_project'] is True

    me = client.get('/api/me').get_json()
    assert me['user']['email'] == 'master@lotes.com'


def test_login_failures(client):
    r = client.post('/api/login', json={'email': 'master@lotes.com', 'password': 'x'})
    assert r.status_code == 401
    assert r.get_json()['ok'] is False

    r = client.post('/api/login', json={'email': 'master@lotes.com'})
    assert r.status_code == 400


def test_routes_require_login(client):
    for path in ('/api/me', '/api/lots', '/api/payments', '/api/dashboard'):
        assert client.get(path).status_code == 401


def test_logout_clears_session(client):
    login(client, 'admin@lotes.com')
    assert client.post('/api/logout').status_code == 200
    assert client.get('/api/me').status_code == 401


def test_security_headers(client):
    r = client.get('/api/me')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'


def test_client_isolation_over_http(client):
    login(client, 'cliente1@email.com')

    lots = client.get('/api/lots').get_json()['lots']
    assert sorted(l['id'] for l in lots) == ['lot-001', 'lot-007']

    payments = client.get('/api/payments?client_id=usr-006').get_json()['payments']
    assert payments == []

    assert client.get('/api/commissions').get_json()['commissions'] == []
    assert client.get('/api/statements/lot-003').status_code == 403
    assert client.get('/api/lots/lot-003').status_code == 403
    assert client.get('/api/clients/usr-006/statements').status_code == 403
    assert client.get('/api/users').status_code == 403
    assert client.get('/api/reports/executive').status_code == 403


def test_client_statement_over_http(client):
    login(client, 'cliente1@email.com')
    r = client.get('/api/statements/lot-001')
    assert r.status_code == 200
    totals = r.get_json()['totals']
    assert totals['total_paid'] == 158666
    assert totals['remaining'] == 541334

    r = client.get('/api/clients/usr-005/statements')
    assert len(r.get_json()['statements']) == 2


def test_gateway_over_http(client):
    login(client, 'cliente1@email.com')
    r = client.post('/api/payments/gateway', json={'lot_id': 'lot-001', 'amount': 9333, 'method': 'card'})
    assert r.status_code == 201
    assert r.get_json()['reference'].startswith('PAY-')

    r = client.post('/api/payments/gateway', json={'lot_id': 'lot-003', 'amount': 100, 'method': 'card'})
    assert r.status_code == 403


def test_staff_cannot_use_gateway(client):
    login(client, 'admin@lotes.com')
    r = client.post('/api/payments/gateway', json={'lot_id': 'lot-001', 'amount': 100, 'method': 'card'})
    assert r.status_code == 403


def test_commission_flow_over_http(client):
    login(client, 'admin@lotes.com')
    assert client.post('/api/commissions/com-003/approve').status_code == 200
    assert client.post('/api/commissions/com-003/pay').status_code == 403

    client.post('/api/logout')
    login(client, 'master@lotes.com')
    r = client.post('/api/commissions/com-005/pay')
    assert r.status_code == 409
    assert r.get_json()['current'] == 'pending'

    r = client.post('/api/commissions/com-003/pay')
    assert r.status_code == 200
    assert r.get_json()['commission']['status'] == 'paid'

    assert client.post('/api/commissions/com-999/approve').status_code == 404


def test_lot_lifecycle_over_http(client):
    login(client, 'ventas@lotes.com')

    plan = client.get('/api/lots/lot-002/suggested-plan').get_json()['plan']
    assert plan['down_payment'] == 140000

    body = dict(plan, client_id='usr-006')
    r = client.post('/api/lots/lot-002/assign', json=body)
    assert r.status_code == 200
    assert r.get_json()['commission']['commission_amount'] == 21000

    assert client.post('/api/lots/lot-002/assign', json=body).status_code == 409
    assert client.post('/api/lots/lot-010/assign', json=body).status_code == 403

    r = client.post('/api/lots/lot-002/release', json={'reason': 'Cancelado'})
    assert r.status_code == 200
    assert r.get_json()['commission']['status'] == 'cancelled'


def test_validation_errors_are_400(client):
    login(client, 'admin@lotes.com')
    r = client.post('/api/payments', json={'lot_id': 'lot-001', 'amount': -5})
    assert r.status_code == 400
    assert 'amount' in r.get_json()['errors']

    r = client.post('/api/projects', json={'name': ''})
    assert r.status_code == 400


def test_project_crud_permissions(client):
    login(client, 'admin@lotes.com')
    r = client.post('/api/projects', json={
        'name': 'Lomas del Sol', 'location': 'León, Guanajuato', 'price_per_m2': 2500,
    })
    assert r.status_code == 201
    project_id = r.get_json()['project']['id']
    assert project_id == 'proj-004'

    r = client.put(f'/api/projects/{project_id}', json={'status': 'sold_out'})
    assert r.status_code == 200
    assert client.delete(f'/api/projects/{project_id}').status_code == 403

    client.post('/api/logout')
    login(client, 'master@lotes.com')
    assert client.delete(f'/api/projects/{project_id}').status_code == 200
    assert client.get(f'/api/projects/{project_id}').status_code == 404


def test_comercial_sees_assigned_projects_only(client):
    login(client, 'maria@lotes.com')
    projects = client.get('/api/projects').get_json()['projects']
    assert sorted(p['id'] for p in projects) == ['proj-001', 'proj-003']
    assert client.get('/api/projects/proj-002').status_code == 403


def test_users_endpoints(client):
    login(client, 'master@lotes.com')
    r = client.post('/api/users', json={'name': 'Nuevo', 'email': 'nuevo@email.com', 'role': 'cliente'})
    assert r.status_code == 201

    r = client.delete('/api/users/usr-001')
    assert r.status_code == 400

    assert len(client.get('/api/clients').get_json()['clients']) == 5


def test_deleted_user_loses_session(client, container):
    login(client, 'cliente4@email.com')
    container.user_repo.delete_user('usr-008')
    assert client.get('/api/me').status_code == 401


def test_reports_and_export(client):
    login(client, 'admin@lotes.com')
    assert client.get('/api/reports/executive?period=quarter').status_code == 200
    assert client.get('/api/reports/executive?period=bad').status_code == 400
    assert client.get('/api/dashboard').status_code == 200
    assert client.get('/api/audit?type=SISTEMA').get_json()['logs']

    r = client.get('/api/payments/export')
    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    assert 'attachment' in r.headers['Content-Disposition']
    assert r.get_data(as_text=True).startswith('Recibo,')


def test_receipt_over_http(client):
    login(client, 'cliente2@email.com')
    assert client.get('/api/payments/pay-004/receipt').status_code == 200
    assert client.get('/api/payments/pay-001/receipt').status_code == 403
    assert client.get('/api/payments/pay-999/receipt').status_code == 404


def test_profiling_endpoints_for_master_only(client):
    login(client, 'admin@lotes.com')
    assert client.get('/api/profiling').status_code == 403

    client.post('/api/logout')
    login(client, 'master@lotes.com')
    data = client.get('/api/profiling').get_json()
    assert set(data) == {'enabled', 'functions', 'logs'}
    assert client.post('/api/profiling/report').status_code == 200


@pytest.mark.parametrize('raw_amount', ['NaN', 'Infinity', '-Infinity', '1e309', '"nan"', '"abc"'])
def test_non_finite_amount_is_400(client, container, raw_amount):
    login(client, 'admin@lotes.com')
    body = ('{"lot_id": "lot-001", "amount": %s, "type": "monthly", '
            '"method": "cash", "date": "2024-04-15"}' % raw_amount)
    r = client.post('/api/payments', data=body, content_type='application/json')
    assert r.status_code == 400
    assert 'amount' in r.get_json()['errors']
    assert len(container.payment_repo.get_all()) == 16


@pytest.mark.parametrize('raw_months', ['Infinity', 'NaN', '"inf"'])
def test_non_finite_total_months_is_400(client, raw_months):
    login(client, 'ventas@lotes.com')
    body = ('{"client_id": "usr-006", "down_payment": 140000, "monthly_payment": 11667, '
            '"total_months": %s, "start_date": "2024-05-01"}' % raw_months)
    r = client.post('/api/lots/lot-002/assign', data=body, content_type='application/json')
    assert r.status_code == 400
    assert 'total_months' in r.get_json()['errors']


def test_comercial_scope_over_http(client):
    login(client, 'ventas@lotes.com')
    assert client.get('/api/lots/lot-009').status_code == 403
    assert client.get('/api/statements/lot-009').status_code == 403
    assert client.get('/api/lots/lot-010/suggested-plan').status_code == 403
    assert client.get('/api/payments/pay-016/receipt').status_code == 403

    payments = client.get('/api/payments').get_json()['payments']
    assert 'Mirador de la Sierra' not in {p['project_name'] for p in payments}

    r = client.post('/api/payments', json={
        'lot_id': 'lot-009', 'amount': 23467, 'type': 'monthly',
        'method': 'cash', 'date': '2024-04-01',
    })
    assert r.status_code == 403

    statements = client.get('/api/clients/usr-005/statements').get_json()['statements']
    assert len(statements) == 2


def test_my_sales_over_http(client):
    login(client, 'maria@lotes.com')
    data = client.get('/api/my-sales').get_json()
    assert data['total_sales'] == 2
    assert data['paid_commissions'] == 26250

    client.post('/api/logout')
    login(client, 'cliente1@email.com')
    assert client.get('/api/my-sales').status_code == 403


def test_project_rejects_non_finite_numbers(client):
    login(client, 'admin@lotes.com')
    body = '{"name": "Lomas", "location": "León", "price_per_m2": Infinity, "commission_rate": NaN}'
    r = client.post('/api/projects', data=body, content_type='application/json')
    assert r.status_code == 400
    assert set(r.get_json()['errors']) == {'price_per_m2', 'commission_rate'}
