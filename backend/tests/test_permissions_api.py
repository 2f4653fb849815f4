from tests.test_utils_seed import ensure_store, ensure_user, jwt_headers, role_headers


def test_my_permissions_follow_the_table(client):
    store = ensure_store('Houdemont')
    resp = client.get('/permissions/me', headers=role_headers('employee', store))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['role'] == 'employee'
    assert body['modules']['customer-orders'] == ['view', 'create']
    assert body['modules']['admin'] == []


def test_check_endpoint_answers_and_fails_closed(client):
    store = ensure_store('Houdemont')
    headers = role_headers('manager', store)
    ok = client.get('/permissions/check?module=tasks&action=validate', headers=headers).get_json()
    assert ok['allowed'] is True
    denied = client.get('/permissions/check?module=tasks&action=create', headers=headers).get_json()
    assert denied['allowed'] is False
    unknown = client.get('/permissions/check?module=spaceships&action=fly', headers=headers)
    assert unknown.status_code == 200
    assert unknown.get_json() == {'module': 'spaceships', 'action': 'fly', 'role': 'manager', 'allowed': False}


def test_check_defaults_to_view(client):
    store = ensure_store('Houdemont')
    body = client.get('/permissions/check?module=reconciliation', headers=role_headers('directeur', store)).get_json()
    assert body['action'] == 'view'
    assert body['allowed'] is True


def test_matrix_is_admin_only(client):
    store = ensure_store('Houdemont')
    admin = ensure_user('matrix_admin', role='admin')
    resp = client.get('/permissions/matrix', headers=jwt_headers(admin))
    assert resp.status_code == 200
    modules = resp.get_json()['modules']
    assert modules['tasks']['manager'] == ['view', 'validate']
    assert len(modules) == 11
    assert client.get('/permissions/matrix', headers=role_headers('directeur', store)).status_code == 403


def test_stored_role_is_case_insensitive(client):
    u = ensure_user('shouty_admin', role='ADMIN')
    resp = client.get('/permissions/matrix', headers=jwt_headers(u))
    assert resp.status_code == 200
