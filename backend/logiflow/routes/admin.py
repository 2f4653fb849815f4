from flask import Blueprint, request, abort
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, delete, func
from logiflow.models.authz import User, Store, UserStore
from logiflow.models.audit import AuditLog
from logiflow import get_db
from logiflow.constants.permissions import Action, Module, Role, parse_role
from logiflow.decorators.auth import require_permission, require_admin, require_admin_or_directeur
from logiflow.services.audit import add_audit
from logiflow.services.policy import assert_not_removing_last_admin, compute_store_ids
from logiflow.utils.listing import apply_pagination, build_list_payload
from logiflow.utils.validation import json_body, require_fields, parse_int, parse_str

admin_bp = Blueprint('admin', __name__)


def _user_json(u: User):
    role = u.parsed_role
    return {
        'id': u.id,
        'username': u.username,
        'email': u.email,
        'name': u.name,
        'role': role.value if role else None,
        'is_active': bool(u.is_active),
        'password_changed': bool(u.password_changed),
        'store_ids': compute_store_ids(u),
    }


def _parse_role_or_400(raw) -> Role:
    role = parse_role(raw)
    if role is None:
        abort(400, description='role invalid')
    return role


@admin_bp.get('/users')
@require_permission(Module.ADMIN, Action.VIEW)
def list_users():
    q = get_db().query(User).order_by(User.id.asc())
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([_user_json(u) for u in paged_q.all()], total, limit, offset)


def _assert_email_free(session, email, user_id=None):
    if email is None:
        return
    q = select(User.id).where(func.lower(User.email)==email.lower())
    if user_id is not None:
        q = q.where(User.id!=user_id)
    if session.execute(q).first():
        abort(400, description='email exists')


def _flush_or_400(session, detail: str):
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        abort(400, description=detail)


@admin_bp.post('/users')
@require_permission(Module.ADMIN, Action.CREATE)
def create_user():
    data = json_body()
    require_fields(data, 'username', 'password')
    session = get_db()
    username = parse_str(data['username'], 'username', required=True)
    password = parse_str(data['password'], 'password', required=True, strip=False)
    email = parse_str(data.get('email'), 'email')
    if session.execute(select(User).where(func.lower(User.username)==username.lower())).scalar_one_or_none():
        abort(400, description='username exists')
    _assert_email_free(session, email)
    u = User(
        username=username,
        email=email,
        name=parse_str(data.get('name'), 'name'),
        role=_parse_role_or_400(data.get('role') or Role.EMPLOYEE.value).value,
        password_changed=False,
        password_hash='',
    )
    u.set_password(password)
    session.add(u)
    _flush_or_400(session, 'user exists')
    add_audit('USER.CREATE', 'User', u.id, {'username': u.username, 'role': u.role})
    session.commit()
    return _user_json(u), 201


@admin_bp.put('/users/<int:user_id>')
@require_permission(Module.ADMIN, Action.EDIT)
def update_user(user_id: int):
    session = get_db()
    u = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not u:
        abort(404)
    data = json_body()
    new_role = _parse_role_or_400(data['role']) if 'role' in data else u.parsed_role
    new_active = bool(data['is_active']) if 'is_active' in data else bool(u.is_active)
    assert_not_removing_last_admin(u, new_role, new_active)
    changes = {}
    if 'email' in data:
        email = parse_str(data['email'], 'email')
        _assert_email_free(session, email, u.id)
        changes['email'] = email
    if 'name' in data:
        changes['name'] = parse_str(data['name'], 'name')
    password = None
    if 'password' in data:
        password = parse_str(data['password'], 'password', required=True, strip=False)
    before_role = u.role
    if 'role' in data:
        u.role = new_role.value
    for field, value in changes.items():
        setattr(u, field, value)
    u.is_active = new_active
    if password is not None:
        u.set_password(password)
        u.password_changed = True
    meta = {'fields': sorted(k for k in data.keys() if k != 'password')}
    if before_role != u.role:
        meta['changes'] = {'role': {'before': before_role, 'after': u.role}}
    _flush_or_400(session, 'email exists')
    add_audit('USER.UPDATE', 'User', u.id, meta)
    session.commit()
    return _user_json(u)


@admin_bp.put('/users/<int:user_id>/stores')
@require_permission(Module.ADMIN, Action.MANAGE)
def set_user_stores(user_id: int):
    session = get_db()
    u = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not u:
        abort(404)
    data = json_body()
    raw_ids = data.get('store_ids') or []
    if not isinstance(raw_ids, list):
        abort(400, description='store_ids must be a list')
    store_ids = {parse_int(s, 'store_ids') for s in raw_ids}
    found = set(session.execute(select(Store.id).where(Store.id.in_(list(store_ids)))).scalars()) if store_ids else set()
    missing = store_ids - found
    if missing:
        abort(400, description=f'Unknown store ids: {sorted(missing)}')
    session.execute(delete(UserStore).where(UserStore.user_id==u.id))
    for sid in store_ids:
        session.add(UserStore(user_id=u.id, store_id=sid))
    add_audit('USER.STORES.SET', 'User', u.id, {'store_ids': sorted(store_ids)})
    session.commit()
    return {'user_id': u.id, 'store_ids': sorted(store_ids)}


@admin_bp.get('/stores')
@require_admin_or_directeur
def list_stores():
    rows = get_db().query(Store).order_by(Store.name.asc()).all()
    return {'data': [{'id': s.id, 'name': s.name, 'color': s.color} for s in rows]}


@admin_bp.post('/stores')
@require_admin
def create_store():
    data = json_body()
    require_fields(data, 'name')
    session = get_db()
    name = parse_str(data['name'], 'name', required=True)
    if session.execute(select(Store).where(Store.name==name)).scalar_one_or_none():
        abort(400, description='store exists')
    s = Store(name=name, color=parse_str(data.get('color'), 'color') or '#1976D2')
    session.add(s)
    _flush_or_400(session, 'store exists')
    add_audit('STORE.CREATE', 'Store', s.id, {'name': s.name})
    session.commit()
    return {'id': s.id, 'name': s.name, 'color': s.color}, 201


@admin_bp.get('/audit/logs')
@require_permission(Module.ADMIN, Action.VIEW)
def list_audit_logs():
    q = get_db().query(AuditLog)
    actor = request.args.get('actor_user_id')
    if actor:
        q = q.filter(AuditLog.actor_user_id==parse_int(actor, 'actor_user_id'))
    for field in ('action', 'entity', 'entity_id'):
        value = request.args.get(field)
        if value:
            q = q.filter(getattr(AuditLog, field)==value)
    paged_q, total, limit, offset = apply_pagination(q.order_by(AuditLog.id.desc()))
    rows = [
        {
            'id': r.id,
            'actor_user_id': r.actor_user_id,
            'role': r.role,
            'action': r.action,
            'entity': r.entity,
            'entity_id': r.entity_id,
            'meta': r.meta,
            'created_at': r.created_at.isoformat() if r.created_at else None,
        } for r in paged_q.all()
    ]
    return build_list_payload(rows, total, limit, offset)
