from logiflow import get_db
from tests.test_utils_seed import ensure_user, jwt_headers


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_forbidden_shape(client):
    u = ensure_user('err_employee', role='employee')
    resp = client.get('/admin/users', headers=jwt_headers(u))
    assert resp.status_code == 403
    body = resp.get_json()
    assert body['error']['title'] == 'Forbidden'
    assert 'admin' in body['error']['detail']


def test_internal_error_shape(client, monkeypatch):
    u = ensure_user('err_admin', role='admin')
    headers = jwt_headers(u)
    import logiflow.routes.admin as admin_mod

    class BoomSession:
        def query(self, *a, **k):
            raise RuntimeError('explode')

    monkeypatch.setattr(admin_mod, 'get_db', lambda: BoomSession())
    resp = client.get('/admin/stores', headers=headers)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'


def test_healthz(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}


def test_app_teardown_discards_the_session(app_instance):
    before = get_db()
    app_instance.do_teardown_appcontext()
    after = get_db()
    assert after is not before
    # the replacement session is usable straight away
    assert ensure_user('after_teardown').id is not None
