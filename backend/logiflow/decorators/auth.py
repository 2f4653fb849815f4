"""Request authorization decorators backed by the shared permission matrix.

Each decorator stores what it enforces on the wrapped view as
``view.required_permission`` (a ``(module, action)`` tuple, action None when
inferred from the HTTP verb) so the registered routes can be audited.
"""
from functools import wraps
from typing import Optional, Union
from flask import abort, current_app, request
from flask_jwt_extended import verify_jwt_in_request
from logiflow.constants.permissions import (
    Action, Module, Role, parse_action, parse_module, has_permission, can_access_module,
)
from logiflow.services.policy import action_for_method, current_role


def _deny(module, action, role: Optional[Role], detail: str):
    current_app.logger.warning(
        'Permission denied: role=%s module=%s action=%s path=%s',
        role.value if role else None,
        getattr(module, 'value', module),
        getattr(action, 'value', action),
        request.path,
    )
    abort(403, description=detail)


def require_permission(module: Union[Module, str], action: Union[Action, str, None] = None):
    mod = parse_module(module)
    act = parse_action(action) if action is not None else None
    if mod is None or (action is not None and act is None):
        raise ValueError(f'unknown permission {module!r}/{action!r}')

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()
            needed = act or action_for_method(request.method)
            if not has_permission(mod, role, needed):
                _deny(mod, needed, role, f"Permission denied: {getattr(needed, 'value', needed)} on {mod.value}")
            return fn(*args, **kwargs)
        wrapper.required_permission = (mod, act)
        return wrapper
    return outer


def require_module_access(module: Union[Module, str]):
    mod = parse_module(module)
    if mod is None:
        raise ValueError(f'unknown module {module!r}')

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()
            if not can_access_module(mod, role):
                _deny(mod, None, role, f'Access denied to module {mod.value}')
            return fn(*args, **kwargs)
        wrapper.required_permission = (mod, None)
        return wrapper
    return outer


def _require_roles(*roles: Role):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()
            if role not in roles:
                _deny(Module.ADMIN, None, role, 'Reserved to ' + ' or '.join(r.value for r in roles))
            return fn(*args, **kwargs)
        wrapper.required_permission = (Module.ADMIN, None)
        return wrapper
    return outer


require_admin = _require_roles(Role.ADMIN)
require_admin_or_directeur = _require_roles(Role.ADMIN, Role.DIRECTEUR)
