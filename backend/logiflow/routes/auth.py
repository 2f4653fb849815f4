from flask import Blueprint, abort, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_current_user
from sqlalchemy import select, func
from logiflow.models.authz import User
from logiflow import get_db
from logiflow.constants.permissions import permission_snapshot
from logiflow.security.passwords import needs_rehash
from logiflow.services.policy import compute_store_ids
from logiflow.utils.validation import json_body, parse_str

auth_bp = Blueprint('auth', __name__)


def _user_json(user: User, store_ids):
    role = user.parsed_role
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'name': user.name,
        'role': role.value if role else None,
        'password_changed': bool(user.password_changed),
        'store_ids': store_ids,
    }


@auth_bp.post('/login')
def login():
    data = json_body()
    username = data.get('username'); password = data.get('password')
    if not username or not password:
        abort(400, description='username & password required')
    username = parse_str(username, 'username', required=True)
    password = parse_str(password, 'password', required=True, strip=False)
    session = get_db()
    user = session.execute(
        select(User).where(func.lower(User.username)==username.lower())
    ).scalar_one_or_none()
    if not user or not user.is_active or not user.verify_password(password):
        current_app.logger.info('Failed login for %s', username)
        abort(401, description='invalid credentials')
    if needs_rehash(user.password_hash):
        # legacy hash verified; store it again in the current format
        user.set_password(password)
        session.commit()
        current_app.logger.info('Upgraded password hash for user %s', user.id)
    role = user.parsed_role
    if role is None:
        current_app.logger.warning('User %s has unrecognised role %r; no permissions granted', user.id, user.role)
    store_ids = compute_store_ids(user)
    claims = {
        'role': role.value if role else None,
        'store_ids': store_ids,
    }
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=claims)
    return {'access_token': token, 'user': _user_json(user, store_ids)}


@auth_bp.get('/me')
@jwt_required()
def me():
    user = get_current_user()
    body = _user_json(user, compute_store_ids(user))
    body['permissions'] = permission_snapshot(user.parsed_role)
    return body
