from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from logiflow.constants.permissions import (
    Action, Module, has_permission, matrix_snapshot, parse_action, parse_module, permission_snapshot,
)
from logiflow.decorators.auth import require_permission
from logiflow.services.policy import current_role

perms_bp = Blueprint('permissions', __name__)


@perms_bp.get('/me')
@jwt_required()
def my_permissions():
    role = current_role()
    return {
        'role': role.value if role else None,
        'modules': permission_snapshot(role),
    }


@perms_bp.get('/check')
@jwt_required()
def check_permission():
    # Unknown module/action are answered, never rejected: fail closed
    module_raw = request.args.get('module', '')
    action_raw = request.args.get('action', Action.VIEW.value)
    role = current_role()
    module = parse_module(module_raw)
    action = parse_action(action_raw)
    return {
        'module': module.value if module else module_raw,
        'action': action.value if action else action_raw,
        'role': role.value if role else None,
        'allowed': has_permission(module, role, action),
    }


@perms_bp.get('/matrix')
@require_permission(Module.ADMIN, Action.VIEW)
def full_matrix():
    return {'modules': matrix_snapshot()}
