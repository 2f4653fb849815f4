from __future__ import annotations
from typing import List, Optional
from flask import abort
from flask_jwt_extended import get_current_user
from sqlalchemy import select
from logiflow.constants.permissions import Action, Role
from logiflow.models.authz import User, UserStore
from logiflow import get_db

# HTTP verb -> action implied for module-level checks
METHOD_ACTIONS = {
    'GET': Action.VIEW,
    'HEAD': Action.VIEW,
    'POST': Action.CREATE,
    'PUT': Action.EDIT,
    'PATCH': Action.EDIT,
    'DELETE': Action.DELETE,
}


def action_for_method(method: Optional[str]) -> Optional[Action]:
    if not method:
        return None
    return METHOD_ACTIONS.get(method.upper())


def current_role() -> Optional[Role]:
    """Role of the authenticated user as stored now, not as issued in the token."""
    user = get_current_user()
    return user.parsed_role if user is not None else None


def current_store_ids() -> List[int]:
    user = get_current_user()
    return compute_store_ids(user) if user is not None else []


def compute_store_ids(user: User) -> List[int]:
    """Store ids the user is attached to; admins are unscoped and get []."""
    if user.parsed_role is Role.ADMIN:
        return []
    session = get_db()
    rows = session.execute(select(UserStore.store_id).where(UserStore.user_id==user.id)).scalars()
    return sorted(set(rows))


def is_store_scoped() -> bool:
    return current_role() is not Role.ADMIN


def assert_store_access(store_id: int):
    if not is_store_scoped():
        return
    if store_id not in current_store_ids():
        abort(403, description='Store access denied')


def filter_query_by_stores(query, model_store_column):
    """Restrict query to the caller's stores unless unscoped."""
    if not is_store_scoped():
        return query
    return query.filter(model_store_column.in_(current_store_ids()))


def count_active_admins(session) -> int:
    # role is free text in the database, so it is parsed rather than compared in SQL
    users = session.execute(select(User).where(User.is_active.is_(True))).scalars()
    return sum(1 for u in users if u.parsed_role is Role.ADMIN)


def assert_not_removing_last_admin(user: User, new_role: Optional[Role], new_active: bool):
    """Abort 400 when demoting or deactivating user would leave no active admin."""
    if user.parsed_role is not Role.ADMIN or not user.is_active:
        return
    if new_role is Role.ADMIN and new_active:
        return
    if count_active_admins(get_db()) <= 1:
        abort(400, description='Cannot remove the last active admin')
