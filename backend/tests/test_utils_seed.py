"""Test seeding utilities shared by the API tests.

The app fixture is session scoped and shares one in-memory database, so
helpers are idempotent and callers pick unique usernames / store names.
"""
from typing import Iterable
from flask_jwt_extended import create_access_token
from logiflow import get_db
from logiflow.models.authz import User, Store, UserStore


def ensure_store(name: str) -> Store:
    session = get_db()
    s = session.query(Store).filter_by(name=name).one_or_none()
    if not s:
        s = Store(name=name)
        session.add(s); session.commit(); session.refresh(s)
    return s


def ensure_user(username: str, role: str = 'employee', password: str = 'pw', stores: Iterable[Store] = ()) -> User:
    session = get_db()
    u = session.query(User).filter_by(username=username).one_or_none()
    if not u:
        u = User(username=username, name=username, role=role, password_hash='')
        u.set_password(password)
        session.add(u); session.flush()
    existing = {us.store_id for us in session.query(UserStore).filter_by(user_id=u.id)}
    for s in stores:
        if s.id not in existing:
            session.add(UserStore(user_id=u.id, store_id=s.id))
    session.commit(); session.refresh(u)
    return u


def jwt_headers(user: User):
    """Bearer header for user without going through /auth/login.

    Authorization reads the user's stored role and stores, so the token only
    carries the identity.
    """
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}


def login_headers(client, username: str, password: str = 'pw'):
    resp = client.post('/auth/login', json={'username': username, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return {'Authorization': f"Bearer {resp.get_json()['access_token']}"}


def role_headers(role: str, store: Store, suffix: str = ''):
    """Seed a user of the given role attached to store and return auth headers."""
    u = ensure_user(f'{role}{suffix}@{store.name}', role=role, stores=[store])
    return jwt_headers(u)
