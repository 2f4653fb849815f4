from tests.test_utils_seed import ensure_store, role_headers

STORE = 'Tasks Nancy'


def _create(client, headers, store, **extra):
    payload = {'title': 'Inventaire rayon frais', 'assigned_to': 'Equipe matin', 'store_id': store.id}
    payload.update(extra)
    return client.post('/tasks', json=payload, headers=headers)


def test_employee_can_list_but_not_create(client):
    store = ensure_store(STORE)
    headers = role_headers('employee', store)
    assert client.get('/tasks', headers=headers).status_code == 200
    resp = _create(client, headers, store)
    assert resp.status_code == 403
    assert resp.get_json()['error']['status'] == 403


def test_directeur_full_lifecycle(client):
    store = ensure_store(STORE)
    headers = role_headers('directeur', store)
    resp = _create(client, headers, store, priority='high', due_date='2026-11-02')
    assert resp.status_code == 201, resp.get_json()
    task = resp.get_json()
    assert task['status'] == 'pending'
    assert task['due_date'] == '2026-11-02'

    upd = client.put(f"/tasks/{task['id']}", json={'title': 'Inventaire complet'}, headers=headers)
    assert upd.status_code == 200
    assert upd.get_json()['title'] == 'Inventaire complet'

    done = client.post(f"/tasks/{task['id']}/complete", headers=headers)
    assert done.status_code == 200
    assert done.get_json()['status'] == 'completed'
    assert done.get_json()['completed_by'] is not None

    again = client.post(f"/tasks/{task['id']}/complete", headers=headers)
    assert again.status_code == 400

    assert client.delete(f"/tasks/{task['id']}", headers=headers).status_code == 200
    assert client.get(f"/tasks/{task['id']}", headers=headers).status_code == 404


def test_manager_validates_but_cannot_create_or_delete(client):
    store = ensure_store(STORE)
    task = _create(client, role_headers('admin', store), store).get_json()
    manager = role_headers('manager', store)
    assert _create(client, manager, store).status_code == 403
    assert client.put(f"/tasks/{task['id']}", json={'title': 'x'}, headers=manager).status_code == 403
    assert client.delete(f"/tasks/{task['id']}", headers=manager).status_code == 403
    assert client.post(f"/tasks/{task['id']}/complete", headers=manager).status_code == 200


def test_employee_cannot_complete(client):
    store = ensure_store(STORE)
    task = _create(client, role_headers('admin', store), store).get_json()
    resp = client.post(f"/tasks/{task['id']}/complete", headers=role_headers('employee', store))
    assert resp.status_code == 403


def test_tasks_are_store_scoped(client):
    mine = ensure_store(STORE)
    other = ensure_store('Tasks Metz')
    admin = role_headers('admin', mine)
    foreign = _create(client, admin, other, title='Tache Metz').get_json()

    directeur = role_headers('directeur', mine)
    listing = client.get('/tasks?limit=200', headers=directeur).get_json()
    assert all(t['store_id'] == mine.id for t in listing['data'])
    assert client.get(f"/tasks/{foreign['id']}", headers=directeur).status_code == 403
    assert _create(client, directeur, other).status_code == 403

    all_tasks = client.get('/tasks?limit=200', headers=admin).get_json()
    assert foreign['id'] in [t['id'] for t in all_tasks['data']]


def test_create_validates_payload(client):
    store = ensure_store(STORE)
    headers = role_headers('admin', store)
    assert client.post('/tasks', json={'title': 'x'}, headers=headers).status_code == 400
    assert _create(client, headers, store, priority='urgent').status_code == 400
    assert _create(client, headers, store, due_date='02/11/2026').status_code == 400


def test_list_filters_and_pagination(client):
    store = ensure_store('Tasks Filters')
    headers = role_headers('admin', store)
    for i in range(3):
        _create(client, headers, store, title=f'T{i}')
    resp = client.get(f'/tasks?store_id={store.id}&status=pending&limit=2', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['pagination']['total'] == 3
    assert body['pagination']['returned'] == 2
    assert client.get('/tasks?status=archived', headers=headers).status_code == 400
    assert client.get('/tasks?limit=abc', headers=headers).status_code == 400


def test_missing_token_is_401(client):
    assert client.get('/tasks').status_code == 401


def test_text_fields_must_be_strings(client):
    store = ensure_store(STORE)
    headers = role_headers('admin', store)
    resp = _create(client, headers, store, title={'a': 1}, assigned_to=['x'])
    assert resp.status_code == 400
    assert resp.get_json()['error']['detail'] == 'title must be a string'
    assert _create(client, headers, store, description=['a', 'b']).status_code == 400
    task = _create(client, headers, store).get_json()
    assert client.put(f"/tasks/{task['id']}", json={'assigned_to': {'id': 3}}, headers=headers).status_code == 400
    assert client.put(f"/tasks/{task['id']}", json={'title': ''}, headers=headers).status_code == 400
